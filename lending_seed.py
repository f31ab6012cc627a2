"""
lending_seed.py

Demo catalog and members used by the CLI and the report pipeline.
"""

from __future__ import annotations
import datetime

from lending_items import make_book, make_media, make_periodical
from lending_ledger import LendingLedger
from lending_members import Member


def seed_demo_data(ledger: LendingLedger) -> None:
    today = ledger.now().date()

    # books
    ledger.register_item(make_book("L001", "Le Petit Prince", "Antoine de Saint-Exupéry",
                                   datetime.date(1943, 4, 6), 96, "978-2-07-040839-2", "Fiction"))
    ledger.register_item(make_book("L002", "1984", "George Orwell",
                                   datetime.date(1949, 6, 8), 328, "978-0-452-28423-4", "Science-Fiction"))
    ledger.register_item(make_book("L003", "L'Étranger", "Albert Camus",
                                   datetime.date(1942, 1, 1), 159, "978-2-07-036002-1", "Philosophy"))

    # periodicals
    ledger.register_item(make_periodical("R001", "National Geographic", "Various",
                                         today - datetime.timedelta(days=30), 245, "Monthly"))
    ledger.register_item(make_periodical("R002", "Science et Vie", "Various",
                                         today - datetime.timedelta(days=15), 1287, "Monthly"))

    # media
    ledger.register_item(make_media("D001", "Inception", "Christopher Nolan",
                                    datetime.date(2010, 7, 16), 148, "Science-Fiction"))
    ledger.register_item(make_media("D002", "The Godfather", "Francis Ford Coppola",
                                    datetime.date(1972, 3, 24), 175, "Drama"))

    # members
    now = ledger.now()
    ledger.register_member(Member("U001", "Martin", "Jean", "jean.martin@email.com", registered_at=now))
    ledger.register_member(Member("U002", "Dubois", "Marie", "marie.dubois@email.com", registered_at=now))
    ledger.register_member(Member("U003", "Lambert", "Pierre", "pierre.lambert@email.com", registered_at=now))
