#!/usr/bin/env python3
"""
lending_report.py

Report pipeline for the lending ledger.

Writes the ledger's current state to an output folder:
- statistics.csv, items.csv, members.csv, overdue.csv, activity.csv
- catalog_by_kind.png: items per kind, split into available / on loan
- penalties_by_member.png: accrued penalty totals per member

Typical usage (demo catalog with a few simulated late returns):
    python lending_report.py --out lending_outputs
"""
from __future__ import annotations
import argparse
import datetime
import logging
import math
from pathlib import Path
from typing import Dict, List, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from lending_items import utc_now
from lending_ledger import LendingLedger
from lending_seed import seed_demo_data

logger = logging.getLogger("LendingReport")


# -------------------- Helpers -------------------- #
def save_plot(fig, path: Path) -> None:
    """
    Save a matplotlib figure to disk ensuring the parent directory exists.

    Args:
        fig: matplotlib.figure.Figure instance.
        path: Path to the PNG file to write.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, bbox_inches="tight")
    plt.close(fig)


def annotate_bar_values(ax, fmt="{:.0f}", fontsize=8, va="bottom"):
    """Add numeric labels on top of the bars of `ax`, skipping empty and NaN bars."""
    for p in ax.patches:
        height = p.get_height()
        if height is None or (isinstance(height, float) and math.isnan(height)):
            continue
        if abs(height) < 1e-12:
            continue
        x = p.get_x() + p.get_width() / 2
        ax.text(x, height, fmt.format(height), ha="center", va=va, fontsize=fontsize)


def statistics_frame(ledger: LendingLedger) -> pd.DataFrame:
    """`get_statistics` as a two-column (Statistic, Value) frame."""
    stats = ledger.get_statistics()
    return pd.DataFrame({"Statistic": list(stats.keys()), "Value": list(stats.values())})


def catalog_by_kind(ledger: LendingLedger) -> pd.DataFrame:
    """Item counts per kind and availability, in long format (Type, Availability, Count)."""
    items = ledger.export_report_items()
    if items.empty:
        return pd.DataFrame(columns=["Type", "Availability", "Count"])
    return items.groupby(["Type", "Availability"]).size().reset_index(name="Count")


# -------------------- Plots -------------------- #
def plot_catalog_by_kind(counts: pd.DataFrame, path: Path) -> Optional[Path]:
    """Bar chart of item counts per kind and availability; None when the catalog is empty."""
    if counts.empty:
        return None
    fig, ax = plt.subplots(figsize=(8, 5))
    sns.barplot(data=counts, x="Type", y="Count", hue="Availability", ax=ax)
    ax.set_title("Catalog by Item Type")
    ax.set_xlabel("")
    annotate_bar_values(ax)
    save_plot(fig, path)
    return path


def plot_penalties(members: pd.DataFrame, path: Path) -> Optional[Path]:
    """Bar chart of members with a positive penalty total; None when nobody was charged."""
    charged = members[members["PenaltyTotal"] > 0]
    if charged.empty:
        return None
    charged = charged.sort_values("PenaltyTotal", ascending=False)
    fig, ax = plt.subplots(figsize=(10, 6))
    sns.barplot(data=charged, x="Name", y="PenaltyTotal", color="tab:red", ax=ax)
    ax.set_title("Accrued Penalties by Member")
    ax.set_ylabel("Penalty total")
    ax.set_xlabel("")
    plt.xticks(rotation=45, ha="right")
    annotate_bar_values(ax, fmt="{:.2f}")
    save_plot(fig, path)
    return path


# -------------------- Orchestrator -------------------- #
def build_report(ledger: LendingLedger, out_dir: Path, now: Optional[datetime.datetime] = None) -> Dict[str, object]:
    """
    Write aggregates and charts for `ledger` into `out_dir`.

    Args:
        ledger: the ledger to report on; it is only read.
        out_dir: output folder, created if missing.
        now: reference time for the overdue table; the ledger clock by default.

    Returns:
        Summary dictionary with keys: statistics (dict), overdue_items (int),
        files (list of written paths).
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    files: List[Path] = []

    tables = {
        "statistics.csv": statistics_frame(ledger),
        "items.csv": ledger.export_report_items(),
        "members.csv": ledger.export_report_members(),
        "overdue.csv": ledger.overdue_report(now),
    }
    frame_of_log = getattr(ledger.audit_sink, "to_frame", None)
    if frame_of_log is not None:
        tables["activity.csv"] = frame_of_log()
    for name, df in tables.items():
        df.to_csv(out_dir / name, index=False)
        files.append(out_dir / name)
        logger.info("Saved %d rows to %s", len(df), out_dir / name)

    for p in (plot_catalog_by_kind(catalog_by_kind(ledger), out_dir / "catalog_by_kind.png"),
              plot_penalties(tables["members.csv"], out_dir / "penalties_by_member.png")):
        if p is not None:
            files.append(p)
            logger.info("Saved plot %s", p)

    return {
        "statistics": ledger.get_statistics(),
        "overdue_items": len(tables["overdue.csv"]),
        "files": files,
    }


class ReplayClock:
    """Settable clock for replaying a loan history."""

    def __init__(self, start: datetime.datetime):
        self.current = start

    def __call__(self) -> datetime.datetime:
        return self.current

    def advance(self, days: int) -> None:
        self.current += datetime.timedelta(days=days)


def simulate_history(ledger: LendingLedger, clock: ReplayClock) -> None:
    """Replay a few loans on the demo catalog so the report has late returns to show."""
    for item_id, member_id in (("L002", "U001"), ("D001", "U001"), ("R001", "U002"), ("L001", "U003")):
        ledger.borrow_item(item_id, member_id)
    clock.advance(20)
    ledger.return_item("L002")
    ledger.return_item("D001")
    clock.advance(5)


# -------------------- CLI -------------------- #
def main(argv: Optional[List[str]] = None) -> Dict[str, object]:
    parser = argparse.ArgumentParser(description="Lending ledger report")
    parser.add_argument("--out", default="lending_outputs", help="Output folder for plots & aggregates")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    clock = ReplayClock(utc_now() - datetime.timedelta(days=25))
    ledger = LendingLedger(clock=clock)
    seed_demo_data(ledger)
    simulate_history(ledger, clock)

    summary = build_report(ledger, Path(args.out))
    print("\n=== Lending report ===")
    for key, value in summary["statistics"].items():
        print(f"{key}: {value}")
    print(f"Overdue items: {summary['overdue_items']}")
    print("\nSaved files to:", Path(args.out).resolve())
    for p in summary["files"]:
        print(" -", Path(p).resolve())
    return summary


if __name__ == "__main__":
    main()
