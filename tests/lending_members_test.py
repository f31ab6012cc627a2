import sys
import pathlib
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

from lending_members import Member


def member(**kwargs):
    return Member("U001", "Martin", "Jean", "jean.martin@email.com", **kwargs)


def test_new_member_can_borrow():
    m = member()
    assert m.can_borrow()
    assert m.full_name == "Jean Martin"
    assert m.loan_ids == []
    assert m.penalty_total == 0.0


def test_five_loans_block_borrowing_regardless_of_penalty():
    assert member(loan_ids=["a", "b", "c", "d"]).can_borrow()
    assert not member(loan_ids=["a", "b", "c", "d", "e"]).can_borrow()


def test_penalty_limit_blocks_borrowing_with_no_loans():
    assert member(penalty_total=9.99).can_borrow()
    assert not member(penalty_total=10.0).can_borrow()
    assert not member(penalty_total=25.5).can_borrow()


def test_limits_can_be_overridden():
    m = member(loan_ids=["a", "b"])
    assert not m.can_borrow(max_loans=2)
    assert m.can_borrow(max_loans=3, penalty_limit=1.0)
