"""
Storage module for SURL Platform (in-memory implementation).

Responsibilities:
    - Keep records in append order
    - Serve positional reads for lookup
    - Replay every record for startup recovery

Design:
    - This is an in-memory reference implementation that satisfies the BaseRecordStorage contract.
    - It is intentionally simple to keep unit/integration tests fast and deterministic.
    - Nothing survives a restart; use the "file" or "postgres" backend for durable data.
"""

from typing import Iterable, Iterator, List, Optional

from .base import BaseRecordStorage, Record


class MemoryRecordStorage(BaseRecordStorage):
    name = "memory"

    def __init__(self, records: Optional[Iterable[Record]] = None):
        """
        Initialize storage, optionally pre-populated.

        Args:
            records (Optional[Iterable[Record]]): Initial contents, kept in the
                given order and not checked; the index store validates them
                during recovery like any other medium.
        """
        self.records: List[Record] = list(records or [])

    def append(self, record: Record) -> None:
        self.records.append(record)

    def read(self, position: int) -> Optional[Record]:
        """Return the record at `position`, or None past the end."""
        if 0 <= position < len(self.records):
            return self.records[position]
        return None

    def scan(self) -> Iterator[Record]:
        # Iterate over a snapshot so concurrent appends do not disturb recovery.
        return iter(list(self.records))

    def __len__(self) -> int:
        return len(self.records)
