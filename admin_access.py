"""
admin_access.py

Administrator check for the front-ends.

No secret lives in the source: the expected credential is a salted PBKDF2
hash supplied through configuration (the LENDING_ADMIN_CREDENTIAL
environment variable), in the form

    pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>

`hash_credential` produces such a string. Passwords are compared in
constant time, and a gate without a configured credential denies everyone.
"""

from __future__ import annotations
import hashlib
import hmac
import logging
import os
import secrets
from typing import Optional

ADMIN_CREDENTIAL_ENV = "LENDING_ADMIN_CREDENTIAL"
ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 240_000

logger = logging.getLogger("AdminAccess")


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def hash_credential(password: str, salt: Optional[bytes] = None, iterations: int = DEFAULT_ITERATIONS) -> str:
    """
    Encode `password` as a credential string suitable for LENDING_ADMIN_CREDENTIAL.

    Args:
        password: the clear-text administrator password.
        salt: optional salt bytes; a random 16-byte salt is drawn when omitted.
        iterations: PBKDF2 iteration count.

    Returns:
        The encoded credential string.
    """
    salt = salt if salt is not None else secrets.token_bytes(16)
    digest = _derive(password, salt, iterations)
    return f"{ALGORITHM}${iterations}${salt.hex()}${digest.hex()}"


class AdminGate:
    """Verifies administrator passwords against one stored credential."""

    def __init__(self, credential: Optional[str] = None):
        self._iterations = 0
        self._salt = b""
        self._digest = b""
        self.configured = False
        if credential:
            self._parse(credential)

    @classmethod
    def from_env(cls, env_var: str = ADMIN_CREDENTIAL_ENV) -> "AdminGate":
        credential = os.environ.get(env_var, "").strip()
        if not credential:
            logger.warning("%s is not set; administrator access is disabled", env_var)
        return cls(credential or None)

    def _parse(self, credential: str) -> None:
        try:
            algorithm, iterations, salt_hex, digest_hex = credential.split("$")
            if algorithm != ALGORITHM:
                raise ValueError(f"unsupported algorithm {algorithm!r}")
            self._iterations = int(iterations)
            self._salt = bytes.fromhex(salt_hex)
            self._digest = bytes.fromhex(digest_hex)
        except ValueError as exc:
            logger.error("Malformed administrator credential (%s); access disabled", exc)
            return
        self.configured = True

    def verify(self, password: str) -> bool:
        """Return True if `password` matches the configured credential."""
        if not self.configured or not password:
            return False
        candidate = _derive(password, self._salt, self._iterations)
        return hmac.compare_digest(candidate, self._digest)
