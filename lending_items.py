"""
lending_items.py

Catalog entries that can be lent out: books, periodicals and media.

Every entry is a single `LendableItem` tagged with an `ItemKind`. The kind
selects the display name and the late-return `PenaltyRule`; the
variant-specific details (pages, ISBN, issue number, duration...) live in
the `attributes` mapping and play no part in the loan logic.
"""

from __future__ import annotations
import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class PenaltyRule:
    """Grace period in days and the charge per day once it has elapsed."""

    grace_days: int
    daily_rate: float

    def charge(self, days_elapsed: int) -> float:
        """Amount owed for a loan lasting `days_elapsed` whole days."""
        late_days = max(0, days_elapsed - self.grace_days)
        return late_days * self.daily_rate


class ItemKind(Enum):
    BOOK = ("Book", "books", PenaltyRule(grace_days=14, daily_rate=0.5))
    PERIODICAL = ("Periodical", "periodicals", PenaltyRule(grace_days=7, daily_rate=0.3))
    MEDIA = ("Media", "media", PenaltyRule(grace_days=3, daily_rate=1.0))

    def __init__(self, type_name: str, stat_key: str, rule: PenaltyRule):
        self.type_name = type_name
        self.stat_key = stat_key
        self.rule = rule


class BorrowOutcome(Enum):
    BORROWED = "borrowed"
    ALREADY_BORROWED = "already_borrowed"


def utc_now() -> datetime.datetime:
    """Timezone-aware current time in UTC."""
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass
class LendableItem:
    """
    A catalog entry and its loan state.

    The loan state (`available`, `borrower_id`, `loaned_at`) is only set by
    `borrow` and only cleared by `return_item`, so the three always agree:
    an available item has neither borrower nor loan timestamp.
    """

    item_id: str
    title: str
    creator: str
    published: datetime.date
    kind: ItemKind
    attributes: Dict[str, Any] = field(default_factory=dict)
    _available: bool = field(default=True, init=False, repr=False)
    _borrower_id: Optional[str] = field(default=None, init=False, repr=False)
    _loaned_at: Optional[datetime.datetime] = field(default=None, init=False, repr=False)

    @property
    def available(self) -> bool:
        """Loan flag; False exactly when `borrower_id` and `loaned_at` are set."""
        return self._available

    @property
    def borrower_id(self) -> Optional[str]:
        """Id of the member holding the item, None when available."""
        return self._borrower_id

    @property
    def loaned_at(self) -> Optional[datetime.datetime]:
        """Start of the current loan, None when available."""
        return self._loaned_at

    def is_available(self) -> bool:
        """True when the item is on the shelf (no borrower, no loan timestamp)."""
        return self._available

    def type_name(self) -> str:
        """Display name of the item kind: Book, Periodical or Media."""
        return self.kind.type_name

    def borrow(self, member_id: str, now: Optional[datetime.datetime] = None) -> BorrowOutcome:
        """
        Put the item on loan to `member_id`.

        Args:
            member_id: id of the borrowing member.
            now: loan timestamp; defaults to the current UTC time.

        Returns:
            BorrowOutcome.ALREADY_BORROWED (and no change) if the item is on loan,
            BorrowOutcome.BORROWED otherwise.
        """
        if not self._available:
            return BorrowOutcome.ALREADY_BORROWED
        self._available = False
        self._borrower_id = member_id
        self._loaned_at = now or utc_now()
        return BorrowOutcome.BORROWED

    def return_item(self) -> None:
        """Clear the loan state. Safe to call on an item that is already available."""
        self._available = True
        self._borrower_id = None
        self._loaned_at = None

    def days_on_loan(self, now: Optional[datetime.datetime] = None) -> int:
        """Whole days since the loan started (partial days are dropped); 0 when not on loan."""
        if self._loaned_at is None:
            return 0
        return ((now or utc_now()) - self._loaned_at).days

    def compute_penalty(self, now: Optional[datetime.datetime] = None) -> float:
        """
        Late-return charge if the item were returned at `now`.

        Returns 0.0 when the item is not on loan. Otherwise the days beyond the
        kind's grace period are charged at its daily rate.
        """
        if self._loaned_at is None:
            return 0.0
        return self.kind.rule.charge(self.days_on_loan(now))

    def to_record(self) -> Dict[str, Any]:
        """Flat dict of the item, used for reports and the catalog search frame."""
        return {
            "Item ID": self.item_id,
            "Type": self.kind.type_name,
            "Title": self.title,
            "Creator": self.creator,
            "Published": self.published.isoformat(),
            "available": self._available,
            "Borrower ID": self._borrower_id or "",
            "Loaned At": self._loaned_at.isoformat() if self._loaned_at else "",
        }


# ---------------- Variant factories ----------------
def make_book(item_id: str, title: str, author: str, published: datetime.date,
              pages: int, isbn: str, genre: str) -> LendableItem:
    """Build a book; `author` is its searchable creator."""
    return LendableItem(item_id, title, author, published, ItemKind.BOOK,
                        {"pages": pages, "isbn": isbn, "genre": genre})


def make_periodical(item_id: str, title: str, publisher: str, published: datetime.date,
                    issue_number: int, frequency: str) -> LendableItem:
    """Build a periodical issue; the publisher is its searchable creator."""
    return LendableItem(item_id, title, publisher, published, ItemKind.PERIODICAL,
                        {"issue_number": issue_number, "frequency": frequency})


def make_media(item_id: str, title: str, director: str, published: datetime.date,
               duration_minutes: int, genre: str) -> LendableItem:
    # the director doubles as the searchable creator
    return LendableItem(item_id, title, director, published, ItemKind.MEDIA,
                        {"duration_minutes": duration_minutes, "director": director, "genre": genre})
