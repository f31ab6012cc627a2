"""
lending_members.py

Library members. A member only holds data; the ledger decides and records
every loan, return and penalty charge.
"""

from __future__ import annotations
import datetime
from dataclasses import dataclass, field
from typing import List

# Configuration
MAX_ACTIVE_LOANS = 5
PENALTY_LIMIT = 10.0


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass
class Member:
    member_id: str
    last_name: str
    first_name: str
    email: str
    registered_at: datetime.datetime = field(default_factory=_utc_now)
    # ids of the items currently on loan to this member
    loan_ids: List[str] = field(default_factory=list)
    # accrued late-return charges, never decreased by the ledger
    penalty_total: float = 0.0

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def can_borrow(self, max_loans: int = MAX_ACTIVE_LOANS, penalty_limit: float = PENALTY_LIMIT) -> bool:
        """True while the member holds fewer than `max_loans` items and owes less than `penalty_limit`."""
        return len(self.loan_ids) < max_loans and self.penalty_total < penalty_limit
