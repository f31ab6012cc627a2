"""
activity_log.py

Append-only audit trail of ledger events.

The ledger hands over lines already prefixed with their timestamp
("2024-05-01 10:15:00 - Loan: Jean Martin - 1984"); the log stores them in
arrival order and can present them as a pandas DataFrame for reports.
"""

from __future__ import annotations
from typing import List

import pandas as pd

LOG_COLUMNS = ["timestamp", "message"]
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
# an entry as written by the ledger: timestamp in TIMESTAMP_FORMAT, separator, message
ENTRY_PATTERN = r"(?s)^(?P<timestamp>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}) - (?P<message>.*)$"


class ActivityLog:
    """In-memory audit sink. Anything with a `record(str)` method can replace it."""

    def __init__(self) -> None:
        self._entries: List[str] = []

    def record(self, entry: str) -> None:
        """Append one entry; entries are never changed or removed."""
        self._entries.append(entry)

    def entries(self) -> List[str]:
        """Copy of every entry, oldest first."""
        return list(self._entries)

    def recent(self, limit: int = 10) -> List[str]:
        """Return the last `limit` entries, oldest first."""
        if limit <= 0:
            return []
        return self._entries[-limit:]

    def __len__(self) -> int:
        return len(self._entries)

    def to_frame(self) -> pd.DataFrame:
        """
        Build a DataFrame of the log with `timestamp` and `message` columns.

        Only a leading "YYYY-MM-DD HH:MM:SS - " counts as a timestamp; any other
        entry keeps an empty timestamp and its whole text as the message.
        """
        if not self._entries:
            return pd.DataFrame(columns=LOG_COLUMNS)
        raw = pd.Series(self._entries, dtype=str)
        parts = raw.str.extract(ENTRY_PATTERN)
        has_prefix = parts["timestamp"].notna()
        frame = pd.DataFrame({
            "timestamp": parts["timestamp"].where(has_prefix, ""),
            "message": parts["message"].where(has_prefix, raw),
        })
        return frame[LOG_COLUMNS]
