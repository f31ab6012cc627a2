import sys
import pathlib
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

from admin_access import ADMIN_CREDENTIAL_ENV, AdminGate, hash_credential


def test_hashed_credential_verifies_only_the_right_password():
    credential = hash_credential("s3cret", iterations=1000)
    assert credential.startswith("pbkdf2_sha256$1000$")
    assert "s3cret" not in credential
    gate = AdminGate(credential)
    assert gate.configured
    assert gate.verify("s3cret")
    assert not gate.verify("S3cret")
    assert not gate.verify("")


def test_same_password_gets_distinct_salts():
    assert hash_credential("pw", iterations=1000) != hash_credential("pw", iterations=1000)


def test_unconfigured_gate_denies_everyone(monkeypatch):
    monkeypatch.delenv(ADMIN_CREDENTIAL_ENV, raising=False)
    gate = AdminGate.from_env()
    assert not gate.configured
    assert not gate.verify("anything")


def test_gate_from_environment(monkeypatch):
    monkeypatch.setenv(ADMIN_CREDENTIAL_ENV, hash_credential("letmein", iterations=1000))
    assert AdminGate.from_env().verify("letmein")


def test_malformed_credential_disables_access():
    for credential in ("plaintext", "md5$1$00$00", "pbkdf2_sha256$x$00$00"):
        gate = AdminGate(credential)
        assert not gate.configured
        assert not gate.verify("plaintext")
