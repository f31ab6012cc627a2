#!/usr/bin/env python3
"""
lending_ledger.py

The lending ledger: owns every catalog item and member, records loans and
returns, settles late-return penalties and answers catalog queries.
"""

from __future__ import annotations
import datetime
import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from activity_log import ActivityLog, TIMESTAMP_FORMAT
from lending_items import BorrowOutcome, ItemKind, LendableItem, utc_now
from lending_members import MAX_ACTIVE_LOANS, PENALTY_LIMIT, Member

# Configuration
# updatable descriptive fields and the type each new value must have
ITEM_UPDATABLE_FIELDS = {"title": str, "creator": str, "published": datetime.date, "attributes": Mapping}
MEMBER_UPDATABLE_FIELDS = {"last_name": str, "first_name": str, "email": str}
ACTIVITY_REPORT_SIZE = 10
ITEM_REPORT_COLUMNS = ["Item ID", "Type", "Title", "Creator", "Published", "Borrower ID", "Loaned At"]
MEMBER_REPORT_COLUMNS = ["Member ID", "Name", "Email", "LoanCount", "LoanedItems", "PenaltyTotal", "CanBorrow"]
OVERDUE_REPORT_COLUMNS = ["Item ID", "Type", "Title", "Borrower ID", "DaysOnLoan", "DaysOverdue", "PendingPenalty"]

# Logging
logger = logging.getLogger("LendingLedger")

Clock = Callable[[], datetime.datetime]


def _refused_changes(changes: Dict[str, Any], field_types: Dict[str, type]) -> List[str]:
    """Names of the fields in `changes` that may not be set, or are given a value of the wrong type."""
    if not changes:
        return ["<no changes>"]
    refused = []
    for name, value in sorted(changes.items()):
        expected = field_types.get(name)
        if expected is None or not isinstance(value, expected):
            refused.append(name)
    return refused


class LedgerConsistencyError(Exception):
    """Raised when the ledger's own records contradict each other (e.g. an unknown borrower)."""

    def __init__(self, item_id: str, message: str):
        super().__init__(message)
        self.item_id = item_id


class LendingLedger:
    """
    LendingLedger manages items, members and the loans between them in memory.

    Items and members are registered by the caller with their own ids. Every
    operation checks all its preconditions before touching any state, so it
    either applies completely or not at all. Expected failures (unknown id,
    item on loan, ineligible member) are reported as False; each state change
    is written to the audit sink.

    The ledger is not thread-safe: callers serving several clients must hold
    one lock around each operation.
    """

    def __init__(self,
                 clock: Optional[Clock] = None,
                 audit_sink: Any = None,
                 max_loans: int = MAX_ACTIVE_LOANS,
                 penalty_limit: float = PENALTY_LIMIT):
        """
        Initialize an empty ledger.

        Args:
            clock: zero-argument callable returning the current time; UTC now by default.
            audit_sink: object with a `record(str)` method; a fresh ActivityLog by default.
            max_loans: number of simultaneous loans a member may hold.
            penalty_limit: accrued penalty total at which a member stops being able to borrow.
        """
        self._clock: Clock = clock or utc_now
        self.audit_sink = audit_sink if audit_sink is not None else ActivityLog()
        self.max_loans = int(max_loans)
        self.penalty_limit = float(penalty_limit)

        self._items: Dict[str, LendableItem] = {}
        self._members: Dict[str, Member] = {}
        self._consistency_violations: List[str] = []

    # -------------- Internal helpers ----------------
    def now(self) -> datetime.datetime:
        """Current time according to the ledger clock."""
        return self._clock()

    def _audit(self, message: str) -> None:
        """Write a timestamped line to the audit sink. Sink failures never reach the caller."""
        entry = f"{self.now().strftime(TIMESTAMP_FORMAT)} - {message}"
        try:
            self.audit_sink.record(entry)
        except Exception:
            logger.warning("Audit sink rejected entry %r", entry, exc_info=True)

    def _can_borrow(self, member: Member) -> bool:
        return member.can_borrow(self.max_loans, self.penalty_limit)

    def _report_violation(self, exc: LedgerConsistencyError) -> None:
        message = f"Consistency violation on {exc.item_id}: {exc}"
        self._consistency_violations.append(message)
        logger.error("%s", message)
        self._audit(message)

    # ---------------- Registration ----------------
    def register_item(self, item: LendableItem) -> bool:
        """
        Add an item to the catalog.

        Returns True on success, False if an item with the same id is already
        registered or the item arrives already on loan.
        """
        if item.item_id in self._items:
            logger.debug("Attempt to register existing item: %s", item.item_id)
            return False
        if not item.is_available():
            logger.debug("Attempt to register item %s already lent to %s", item.item_id, item.borrower_id)
            return False
        self._items[item.item_id] = item
        logger.info("Registered %s %s", item.type_name(), item.item_id)
        self._audit(f"Item added: {item.type_name()} - {item.title}")
        return True

    def register_member(self, member: Member) -> bool:
        """
        Add a member.

        Returns True on success, False if the member id is already registered or the
        member arrives with loans or a negative penalty total (the ledger records both).
        """
        if member.member_id in self._members:
            logger.debug("Attempt to register existing member: %s", member.member_id)
            return False
        if member.loan_ids or member.penalty_total < 0:
            logger.debug("Attempt to register member %s with loans %s and penalty %.2f",
                         member.member_id, member.loan_ids, member.penalty_total)
            return False
        self._members[member.member_id] = member
        logger.info("Registered member %s", member.member_id)
        self._audit(f"Member added: {member.full_name}")
        return True

    def update_item(self, item_id: str, **changes: Any) -> bool:
        """
        Change descriptive fields of a registered item (title, creator, published, attributes).

        Loan state cannot be changed here. Returns False, without applying anything,
        for an unknown id, no changes, a field outside the updatable set or a value
        of the wrong type (e.g. `published` given as a string).
        """
        item = self._items.get(item_id)
        if item is None:
            logger.warning("Item not found: %s", item_id)
            return False
        rejected = _refused_changes(changes, ITEM_UPDATABLE_FIELDS)
        if rejected:
            logger.debug("Refused item update of %s for %s", rejected, item_id)
            return False
        if "attributes" in changes:
            changes["attributes"] = dict(changes["attributes"])
        for name, value in changes.items():
            setattr(item, name, value)
        logger.info("Updated item %s: %s", item_id, sorted(changes))
        self._audit(f"Item updated: {item.type_name()} - {item.title}")
        return True

    def update_member(self, member_id: str, **changes: Any) -> bool:
        """
        Change identity fields of a member (last_name, first_name, email).

        Loans and penalty totals are owned by the ledger and cannot be changed here;
        like `update_item`, empty, unknown or non-string changes are refused.
        """
        member = self._members.get(member_id)
        if member is None:
            logger.warning("Member not found: %s", member_id)
            return False
        rejected = _refused_changes(changes, MEMBER_UPDATABLE_FIELDS)
        if rejected:
            logger.debug("Refused member update of %s for %s", rejected, member_id)
            return False
        for name, value in changes.items():
            setattr(member, name, value)
        logger.info("Updated member %s: %s", member_id, sorted(changes))
        self._audit(f"Member updated: {member.full_name}")
        return True

    # ---------------- Core operations ----------------
    def borrow_item(self, item_id: str, member_id: str) -> bool:
        """
        Lend an item to a member.

        Fails (False) for an unknown item or member, an item already on loan, or a
        member who may not borrow; nothing changes in those cases.
        """
        item = self._items.get(item_id)
        member = self._members.get(member_id)
        if item is None or member is None:
            logger.debug("Borrow refused, unknown item %s or member %s", item_id, member_id)
            return False
        if not item.is_available() or not self._can_borrow(member):
            logger.debug("Borrow refused for %s by %s (available=%s, eligible=%s)",
                         item_id, member_id, item.is_available(), self._can_borrow(member))
            return False

        outcome = item.borrow(member_id, self.now())
        if outcome is not BorrowOutcome.BORROWED:
            logger.warning("Item %s refused loan to %s: %s", item_id, member_id, outcome.value)
            self._audit(f"Loan error: {item.title} ({outcome.value})")
            return False

        member.loan_ids.append(item_id)
        logger.info("Lent %s to %s", item_id, member_id)
        self._audit(f"Loan: {member.full_name} - {item.title}")
        return True

    def _settle_return(self, item: LendableItem) -> float:
        """Charge the penalty, release the item and drop it from the borrower's loans."""
        member = self._members.get(item.borrower_id)
        if member is None:
            raise LedgerConsistencyError(
                item.item_id, f"borrower {item.borrower_id!r} of {item.item_id!r} is not a registered member")

        penalty = item.compute_penalty(self.now())
        if penalty > 0:
            member.penalty_total += penalty
            logger.info("Charged %.2f to %s for %s", penalty, member.member_id, item.item_id)
            self._audit(f"Penalty applied: {penalty:.2f} for {member.full_name}")

        item.return_item()
        if item.item_id in member.loan_ids:
            member.loan_ids.remove(item.item_id)
        logger.info("Item %s returned by %s", item.item_id, member.member_id)
        self._audit(f"Return: {item.title} by {member.full_name}")
        return penalty

    def return_item(self, item_id: str) -> bool:
        """
        Take back a lent item and charge any late-return penalty to its borrower.

        Returns False for an unknown item or one that is not on loan. If the
        recorded borrower is not a registered member the return is refused, the
        item stays on loan and the violation is logged and kept in
        `consistency_violations`.
        """
        item = self._items.get(item_id)
        if item is None:
            logger.debug("Return refused, unknown item %s", item_id)
            return False
        if item.is_available():
            logger.debug("Return refused, item %s is not on loan", item_id)
            return False
        try:
            self._settle_return(item)
        except LedgerConsistencyError as exc:
            self._report_violation(exc)
            return False
        return True

    # ---------------- Reports / Queries ----------------
    def search_documents(self, term: str) -> List[LendableItem]:
        """
        Search items by title or creator using a case-insensitive substring match.

        Returns matching items in registration order; an empty term matches every item.
        """
        if not self._items:
            return []
        catalog = self._catalog_frame()
        q = term or ""
        mask_title = catalog["Title"].astype(str).str.contains(q, case=False, regex=False, na=False)
        mask_creator = catalog["Creator"].astype(str).str.contains(q, case=False, regex=False, na=False)
        return [self._items[item_id] for item_id in catalog.loc[mask_title | mask_creator, "Item ID"]]

    def get_statistics(self) -> Dict[str, int]:
        """Counts of items (total, available, borrowed, per kind) and members, computed afresh."""
        available = sum(1 for item in self._items.values() if item.is_available())
        stats = {
            "total_items": len(self._items),
            "available_items": available,
            "borrowed_items": len(self._items) - available,
            "total_members": len(self._members),
        }
        for kind in ItemKind:
            stats[kind.stat_key] = sum(1 for item in self._items.values() if item.kind is kind)
        return stats

    def get_item(self, item_id: str) -> Optional[LendableItem]:
        """
        Retrieve a single item by ID.

        Returns the item or None if not found.
        """
        return self._items.get(item_id)

    def get_member(self, member_id: str) -> Optional[Member]:
        """
        Retrieve a single member by ID.

        Returns the member or None if not found.
        """
        return self._members.get(member_id)

    def list_items(self) -> List[LendableItem]:
        """All registered items in registration order."""
        return list(self._items.values())

    def list_members(self) -> List[Member]:
        """All registered members in registration order."""
        return list(self._members.values())

    def member_loans(self, member_id: str) -> List[LendableItem]:
        """
        Items currently on loan to a member, in borrowing order.

        Returns an empty list for an unknown member.
        """
        member = self._members.get(member_id)
        if member is None:
            return []
        return [self._items[i] for i in member.loan_ids if i in self._items]

    def pending_penalty(self, item_id: str) -> float:
        """Penalty a return of `item_id` would charge right now (0.0 for unknown or available items)."""
        item = self._items.get(item_id)
        if item is None:
            return 0.0
        return item.compute_penalty(self.now())

    @property
    def consistency_violations(self) -> Tuple[str, ...]:
        """Messages of every consistency violation met by `return_item` so far."""
        return tuple(self._consistency_violations)

    def check_invariants(self) -> List[str]:
        """
        Describe every broken loan invariant; an empty list means the ledger is consistent.

        Checks that availability, borrower and loan timestamp agree on each item,
        that every borrower is a member, and that each member's loan ids are
        exactly the items lent to them.
        """
        problems: List[str] = []
        lent_to: Dict[str, List[str]] = {}
        for item in self._items.values():
            if item.available != (item.borrower_id is None) or item.available != (item.loaned_at is None):
                problems.append(f"{item.item_id}: loan state out of sync (available={item.available})")
            if item.borrower_id is not None:
                if item.borrower_id not in self._members:
                    problems.append(f"{item.item_id}: borrower {item.borrower_id} is not a member")
                lent_to.setdefault(item.borrower_id, []).append(item.item_id)
        for member in self._members.values():
            expected = sorted(lent_to.get(member.member_id, []))
            if sorted(member.loan_ids) != expected:
                problems.append(f"{member.member_id}: loan ids {sorted(member.loan_ids)} != {expected}")
        return problems

    def activity_report(self, limit: int = ACTIVITY_REPORT_SIZE) -> List[str]:
        """Latest audit entries, oldest first. Empty when the sink cannot list its entries."""
        recent = getattr(self.audit_sink, "recent", None)
        if recent is None:
            return []
        return list(recent(limit))

    # ---------------- Utilities ----------------
    def _catalog_frame(self) -> pd.DataFrame:
        """One row per item (see `LendableItem.to_record`), registration order."""
        return pd.DataFrame([item.to_record() for item in self._items.values()],
                            columns=ITEM_REPORT_COLUMNS + ["available"])

    def export_report_items(self) -> pd.DataFrame:
        """
        Produce a DataFrame suitable for reporting the catalog.

        The returned DataFrame contains human-friendly Availability values.
        """
        out = self._catalog_frame()
        out["Availability"] = out["available"].map({True: "Available", False: "On loan"})
        return out[ITEM_REPORT_COLUMNS + ["Availability"]]

    def export_report_members(self) -> pd.DataFrame:
        """
        Build a DataFrame summarizing members, their current loans and penalties.

        Returns columns: Member ID, Name, Email, LoanCount, LoanedItems (comma separated),
        PenaltyTotal, CanBorrow.
        """
        rows = []
        for m in self._members.values():
            rows.append({
                "Member ID": m.member_id,
                "Name": m.full_name,
                "Email": m.email,
                "LoanCount": len(m.loan_ids),
                "LoanedItems": ",".join(m.loan_ids),
                "PenaltyTotal": round(m.penalty_total, 2),
                "CanBorrow": self._can_borrow(m),
            })
        return pd.DataFrame(rows, columns=MEMBER_REPORT_COLUMNS)

    def overdue_report(self, now: Optional[datetime.datetime] = None) -> pd.DataFrame:
        """
        List items on loan past their grace period, with the penalty a return at `now` would charge.

        Returns columns: Item ID, Type, Title, Borrower ID, DaysOnLoan, DaysOverdue,
        PendingPenalty, sorted by PendingPenalty descending.
        """
        now = now or self.now()
        on_loan = [item for item in self._items.values() if not item.is_available()]
        if not on_loan:
            return pd.DataFrame(columns=OVERDUE_REPORT_COLUMNS)
        df = pd.DataFrame({
            "Item ID": [i.item_id for i in on_loan],
            "Type": [i.type_name() for i in on_loan],
            "Title": [i.title for i in on_loan],
            "Borrower ID": [i.borrower_id for i in on_loan],
            "DaysOnLoan": [i.days_on_loan(now) for i in on_loan],
            "PendingPenalty": [i.compute_penalty(now) for i in on_loan],
        })
        grace = np.array([i.kind.rule.grace_days for i in on_loan])
        df["DaysOverdue"] = np.maximum(df["DaysOnLoan"].to_numpy() - grace, 0)
        df = df[df["DaysOverdue"] > 0]
        return df.sort_values("PendingPenalty", ascending=False)[OVERDUE_REPORT_COLUMNS].reset_index(drop=True)

