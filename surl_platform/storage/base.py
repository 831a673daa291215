"""
Base record-storage interface for SURL Platform.

Purpose:
    Define the small, append-only contract the index store needs from a
    durable medium, so that CSV files, memory and PostgreSQL can back it
    without any change to allocation or lookup logic.

Contract:
    - Records are appended in strictly increasing index order.
    - Position N in the medium holds the record the store labelled N.
    - Backends report, they do not repair: I/O problems raise StorageFailure,
      unparsable rows raise Corrupted. Label/position checks are done by the
      index store, which knows which label it expects.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass(frozen=True)
class Record:
    """A persisted (index, long URL) pair."""
    index: int
    url: str


class BaseRecordStorage(ABC):
    """Abstract base class for record storage backends."""

    #: Short backend name, reported by the health endpoint.
    name: str = "abstract"

    @abstractmethod  # pragma: no cover
    def append(self, record: Record) -> None:
        """
        Durably persist one record at the end of the medium.

        The call returns only once the record would survive a process crash.

        Raises:
            StorageFailure: If the write (or its flush) fails.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def read(self, position: int) -> Optional[Record]:
        """
        Return the record stored at `position`, or None if the medium is shorter.

        Raises:
            StorageFailure: If the medium cannot be read.
            Corrupted: If the row at `position` cannot be parsed.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def scan(self) -> Iterator[Record]:
        """
        Yield every record in medium order, from the first to the last.

        Raises:
            StorageFailure: If the medium cannot be read.
            Corrupted: On the first row that cannot be parsed.
        """
        raise NotImplementedError
