import sys
import pathlib
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

import datetime

import pytest

import lending_cli
from admin_access import AdminGate, hash_credential
from lending_ledger import LendingLedger
from lending_seed import seed_demo_data

T0 = datetime.datetime(2024, 3, 1, 10, 0, tzinfo=datetime.timezone.utc)


@pytest.fixture
def ledger():
    lib = LendingLedger(clock=lambda: T0)
    seed_demo_data(lib)
    return lib


def feed(monkeypatch, answers):
    """Answer input() prompts in order, then behave like a closed stdin."""
    remaining = iter(answers)

    def fake_input(prompt=""):
        try:
            return next(remaining)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr("builtins.input", fake_input)


def test_search_borrow_return_session(ledger, monkeypatch, capsys):
    feed(monkeypatch, ["1", "orwell", "2", "L002", "U001", "2", "L002", "U002", "3", "L002", "4", "0"])
    lending_cli.cli_loop(ledger, AdminGate())
    out = capsys.readouterr().out
    assert "[L002] Book: 1984 by George Orwell (Available)" in out
    assert "Loan recorded." in out
    assert "Could not lend this item." in out
    assert "Return recorded." in out
    assert "total_items: 7" in out
    assert "Goodbye." in out
    assert ledger.get_item("L002").is_available()


def test_unknown_choice_and_end_of_input(ledger, monkeypatch, capsys):
    feed(monkeypatch, ["9", "3", "L001"])
    lending_cli.cli_loop(ledger, AdminGate())
    out = capsys.readouterr().out
    assert "Unknown choice. Try again." in out
    assert "Could not return this item." in out
    assert "Goodbye." in out


def test_activity_report(ledger, monkeypatch, capsys):
    feed(monkeypatch, ["5", "0"])
    lending_cli.cli_loop(ledger, AdminGate())
    out = capsys.readouterr().out
    assert "Total activities: 10" in out
    assert "Member added: Pierre Lambert" in out


def test_admin_access(ledger, monkeypatch, capsys):
    gate = AdminGate(hash_credential("librarian", iterations=1000))
    feed(monkeypatch, ["6", "wrong", "6", "librarian", "0"])
    lending_cli.cli_loop(ledger, gate)
    out = capsys.readouterr().out
    assert "Access denied." in out
    assert "Access granted." in out
    assert "jean.martin@email.com" in out
    assert "Overdue items (0):" in out
