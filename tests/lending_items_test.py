import sys
import pathlib
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

import datetime

import pytest

from lending_items import BorrowOutcome, ItemKind, make_book, make_media, make_periodical

T0 = datetime.datetime(2024, 3, 1, 10, 0, tzinfo=datetime.timezone.utc)


def days(n, hours=0):
    return T0 + datetime.timedelta(days=n, hours=hours)


def book():
    return make_book("L002", "1984", "George Orwell", datetime.date(1949, 6, 8), 328, "978-0-452-28423-4", "SF")


def test_new_item_is_available_without_loan_state():
    item = book()
    assert item.is_available()
    assert item.borrower_id is None
    assert item.loaned_at is None
    assert item.compute_penalty(days(100)) == 0.0


def test_borrow_sets_loan_state_and_second_borrow_is_refused():
    item = book()
    assert item.borrow("U001", T0) is BorrowOutcome.BORROWED
    assert not item.is_available()
    assert item.borrower_id == "U001"
    assert item.loaned_at == T0

    assert item.borrow("U002", days(1)) is BorrowOutcome.ALREADY_BORROWED
    assert item.borrower_id == "U001"
    assert item.loaned_at == T0


def test_return_is_idempotent():
    item = book()
    item.return_item()
    assert item.is_available()
    item.borrow("U001", T0)
    item.return_item()
    item.return_item()
    assert item.is_available()
    assert item.borrower_id is None
    assert item.loaned_at is None


@pytest.mark.parametrize("factory, elapsed, expected", [
    (lambda: book(), 20, 3.0),
    (lambda: make_periodical("R001", "National Geographic", "Various", datetime.date(2024, 1, 1), 245, "Monthly"), 5, 0.0),
    (lambda: make_media("D001", "Inception", "Christopher Nolan", datetime.date(2010, 7, 16), 148, "SF"), 10, 7.0),
])
def test_penalty_per_kind(factory, elapsed, expected):
    item = factory()
    item.borrow("U001", T0)
    assert item.compute_penalty(days(elapsed)) == pytest.approx(expected)


def test_penalty_counts_whole_days_only():
    item = book()
    item.borrow("U001", T0)
    # 15 days and 23 hours is still 15 whole days: one day past the grace period
    assert item.compute_penalty(days(15, hours=23)) == pytest.approx(0.5)
    assert item.compute_penalty(days(14, hours=23)) == 0.0


def test_periodical_rate_after_grace():
    item = make_periodical("R002", "Science et Vie", "Various", datetime.date(2024, 1, 1), 1287, "Monthly")
    item.borrow("U001", T0)
    assert item.compute_penalty(days(17)) == pytest.approx(3.0)


def test_kind_rules_and_names():
    assert (ItemKind.BOOK.rule.grace_days, ItemKind.BOOK.rule.daily_rate) == (14, 0.5)
    assert (ItemKind.PERIODICAL.rule.grace_days, ItemKind.PERIODICAL.rule.daily_rate) == (7, 0.3)
    assert (ItemKind.MEDIA.rule.grace_days, ItemKind.MEDIA.rule.daily_rate) == (3, 1.0)
    assert book().type_name() == "Book"
    media = make_media("D002", "The Godfather", "Francis Ford Coppola", datetime.date(1972, 3, 24), 175, "Drama")
    assert media.type_name() == "Media"
    assert media.creator == "Francis Ford Coppola"
    assert media.attributes["duration_minutes"] == 175
