import sys
import pathlib
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

import datetime

import pandas as pd

import lending_report
from lending_ledger import LendingLedger
from lending_seed import seed_demo_data

T0 = datetime.datetime(2024, 3, 1, 10, 0, tzinfo=datetime.timezone.utc)


def test_build_report_writes_tables_and_charts(tmp_path):
    clock = lending_report.ReplayClock(T0)
    ledger = LendingLedger(clock=clock)
    seed_demo_data(ledger)
    lending_report.simulate_history(ledger, clock)

    summary = lending_report.build_report(ledger, tmp_path / "out")
    out = tmp_path / "out"
    for name in ("statistics.csv", "items.csv", "members.csv", "overdue.csv", "activity.csv",
                 "catalog_by_kind.png", "penalties_by_member.png"):
        assert (out / name).exists(), name

    assert summary["statistics"]["borrowed_items"] == 2
    # R001 and L001 have been out for 25 days
    assert summary["overdue_items"] == 2

    members = pd.read_csv(out / "members.csv").set_index("Member ID")
    # 1984 returned after 20 days (3.0) and Inception after 20 days (17.0)
    assert members.loc["U001", "PenaltyTotal"] == 20.0
    stats = pd.read_csv(out / "statistics.csv").set_index("Statistic")["Value"]
    assert stats["total_items"] == 7


def test_report_on_empty_ledger_skips_charts(tmp_path):
    summary = lending_report.build_report(LendingLedger(clock=lambda: T0), tmp_path)
    names = {p.name for p in summary["files"]}
    assert "statistics.csv" in names
    assert "catalog_by_kind.png" not in names
    assert "penalties_by_member.png" not in names
    assert summary["overdue_items"] == 0


def test_main_entry_point(tmp_path, capsys):
    summary = lending_report.main(["--out", str(tmp_path)])
    assert summary["statistics"]["total_items"] == 7
    assert "=== Lending report ===" in capsys.readouterr().out
    assert (tmp_path / "overdue.csv").exists()
