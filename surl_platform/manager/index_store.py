"""
IndexStore module for SURL Platform.

Responsibilities:
    - Own the process-wide counter `next_index`
    - Allocate indexes: persist (index, url) and only then advance the counter
    - Look records up by index and verify their self-describing label
    - Recover the counter from the durable medium at construction time

Design notes:
    - One threading.Lock covers read-counter / append / increment. The append
      and the increment succeed or fail together; a failed append leaves the
      counter untouched, so no index is spent without a record.
    - Lookups take no lock. The medium is append-only and a lookup only ever
      targets an index that was already handed out.
    - Recovery refuses to guess: any record whose label is not its position
      aborts construction with Corrupted.
    - One instance per process, injected into the app; running two processes
      against the same medium is not supported.
"""

import logging
import threading

from ..codec.codec import DOMAIN_SIZE
from ..errors import Corrupted, DomainExhausted, InvalidInput, NotFound, OutOfRange
from ..storage.base import BaseRecordStorage, Record

log = logging.getLogger("surl.store")


class IndexStore:
    """
    Append-only allocator of dense indexes backed by a record storage.

    Args:
        storage (BaseRecordStorage): Durable medium.
        limit (int): Number of indexes that may ever be allocated. Defaults to
            the size of the code domain; smaller values are useful in tests.

    Raises:
        Corrupted: If the medium is not labelled 0, 1, 2, ... in order.
        StorageFailure: If the medium cannot be read during recovery.
    """

    def __init__(self, storage: BaseRecordStorage, limit: int = DOMAIN_SIZE):
        if not 0 < limit <= DOMAIN_SIZE:
            raise ValueError(f"limit must be in (0, {DOMAIN_SIZE}], got {limit}")
        self.storage = storage
        self.limit = limit
        self._lock = threading.Lock()
        self._next_index = self._recover()

    def _recover(self) -> int:
        """Scan the medium and return the next free index."""
        expected = 0
        for record in self.storage.scan():
            if record.index != expected:
                log.error(
                    "Record storage corrupted: position %d carries label %d", expected, record.index
                )
                raise Corrupted(
                    f"record at position {expected} is labelled {record.index}",
                    position=expected,
                    label=record.index,
                )
            expected += 1
        if expected > self.limit:
            raise Corrupted(f"medium holds {expected} records, more than the limit {self.limit}")
        log.info("Recovered %d records from %s storage", expected, self.storage.name)
        return expected

    @property
    def next_index(self) -> int:
        """The next index `allocate` will hand out (also the number of records)."""
        return self._next_index

    def __len__(self) -> int:
        return self._next_index

    def allocate(self, url: str) -> int:
        """
        Persist `url` under the next free index and return that index.

        Raises:
            InvalidInput: If `url` is empty.
            DomainExhausted: If every index up to `limit` is taken. Permanent.
            StorageFailure: If the record could not be persisted; the counter
                is not advanced.
        """
        if not url:
            raise InvalidInput("URL must be a non-empty string")
        with self._lock:
            index = self._next_index
            if index >= self.limit:
                log.error("Index domain exhausted at %d", index)
                raise DomainExhausted(f"all {self.limit} indexes have been allocated")
            self.storage.append(Record(index=index, url=url))
            self._next_index = index + 1
        log.debug("Allocated index %d", index)
        return index

    def lookup(self, index: int) -> str:
        """
        Return the URL stored under `index`.

        Raises:
            OutOfRange: If `index` was never allocated by this store.
            NotFound: If the medium has no record at that position.
            Corrupted: If the record there carries a different label.
            StorageFailure: If the medium cannot be read.
        """
        if not 0 <= index < self._next_index:
            raise OutOfRange(f"index {index} has not been allocated")
        record = self.storage.read(index)
        if record is None:
            log.error("No record at position %d although next_index is %d", index, self._next_index)
            raise NotFound(f"no record at position {index}")
        if record.index != index:
            log.error("Record at position %d carries label %d", index, record.index)
            raise Corrupted(
                f"record at position {index} is labelled {record.index}",
                position=index,
                label=record.index,
            )
        return record.url
