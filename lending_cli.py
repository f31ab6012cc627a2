#!/usr/bin/env python3
"""
lending_cli.py

Interactive text menu over the lending ledger. It only reads input, calls
ledger operations and prints their results.
"""

from __future__ import annotations
import logging

from admin_access import AdminGate
from lending_ledger import LendingLedger
from lending_seed import seed_demo_data


def input_prompt(prompt: str) -> str:
    """
    Wrapper around built-in input() that returns a stripped string and handles interrupts.

    Returns an empty string on EOF/KeyboardInterrupt.
    """
    try:
        return input(prompt).strip()
    except (EOFError, KeyboardInterrupt):
        print()
        return ""


def print_menu():
    """
    Print the lending menu to stdout.

    This function only prints available options and does not return a value.
    """
    print("\n--- Library Lending (CLI) ---")
    print("1. Search items by title/creator")
    print("2. Borrow an item")
    print("3. Return an item")
    print("4. Show statistics")
    print("5. Activity report")
    print("6. Administrator access")
    print("0. Exit")


def show_search(ledger: LendingLedger) -> None:
    """Prompt for a term and list matching items with their availability."""
    q = input_prompt("Search term: ")
    res = ledger.search_documents(q)
    if not res:
        print("No items found.")
        return
    print(f"Found {len(res)} item(s):")
    for item in res:
        status = "Available" if item.is_available() else "On loan"
        print(f"- [{item.item_id}] {item.type_name()}: {item.title} by {item.creator} ({status})")


def show_statistics(ledger: LendingLedger) -> None:
    """Print every counter returned by `LendingLedger.get_statistics`."""
    print("\n=== Statistics ===")
    for key, value in ledger.get_statistics().items():
        print(f"{key}: {value}")


def show_activity(ledger: LendingLedger) -> None:
    """Print the audit entry count and the latest entries."""
    recent = ledger.activity_report()
    print("\n=== Activity report ===")
    total = len(ledger.audit_sink) if hasattr(ledger.audit_sink, "__len__") else len(recent)
    print(f"Total activities: {total}")
    print("Latest activities:")
    for entry in recent:
        print(f"- {entry}")


def admin_access(ledger: LendingLedger, gate: AdminGate) -> None:
    """
    Ask for the administrator password and, if `gate` accepts it, print the
    member report, the overdue items and any recorded consistency violations.
    """
    password = input_prompt("Administrator password: ")
    if not gate.verify(password):
        print("Access denied.")
        return
    print("Access granted.")
    print("\nMembers:")
    print(ledger.export_report_members().to_string(index=False))
    overdue = ledger.overdue_report()
    print(f"\nOverdue items ({len(overdue)}):")
    if not overdue.empty:
        print(overdue.to_string(index=False))
    for problem in ledger.consistency_violations:
        print(f"! {problem}")


def cli_loop(ledger: LendingLedger, gate: AdminGate):
    """
    Interactive command-loop for the lending ledger.

    Presents a text menu, accepts user input and invokes `LendingLedger` methods
    until the user picks 0 or input ends.
    """
    while True:
        print_menu()
        choice = input_prompt("Choose (0-6): ")
        if choice in ("0", ""):
            print("Goodbye.")
            break
        elif choice == "1":
            show_search(ledger)
        elif choice == "2":
            item_id = input_prompt("Item ID: ")
            member_id = input_prompt("Member ID: ")
            if ledger.borrow_item(item_id, member_id):
                print("Loan recorded.")
            else:
                print("Could not lend this item.")
        elif choice == "3":
            item_id = input_prompt("Item ID: ")
            penalty = ledger.pending_penalty(item_id)
            if ledger.return_item(item_id):
                print("Return recorded." + (f" Penalty charged: {penalty:.2f}" if penalty > 0 else ""))
            else:
                print("Could not return this item.")
        elif choice == "4":
            show_statistics(ledger)
        elif choice == "5":
            show_activity(ledger)
        elif choice == "6":
            admin_access(ledger, gate)
        else:
            print("Unknown choice. Try again.")


def demo_run():
    """Start an interactive session on a ledger seeded with the demo catalog."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    ledger = LendingLedger()
    seed_demo_data(ledger)
    print("Welcome - demo catalog loaded.")
    cli_loop(ledger, AdminGate.from_env())


if __name__ == "__main__":
    demo_run()
