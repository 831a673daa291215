"""
CsvRecordStorage – append-only CSV file storage for SURL Platform
================================================================

The default durable medium. One CSV row per record, two fields:

    0,https://example.com
    1,"https://example.com/a,b"

The file is human-inspectable and self-describing: the first field of row N
is N. The `csv` module quotes and escapes commas, quotes and newlines inside
the URL, so arbitrary URL strings round-trip.

Key Design Points
-----------------
- **Durability**: every append is flushed and fsync'ed before returning, so an
  index is never handed out for a record that is not on disk.
- **No rewriting**: the file is only ever opened for appending or reading.
- **Positional reads**: `read(n)` walks the file to row n. This mirrors the
  scan done at startup; lookups on large files are linear in the index.
- **Missing file**: created empty when `create_missing` is true. Otherwise
  construction fails, so a mistyped path cannot quietly restart the counter
  at 0 next to an existing data file.
"""

import csv
import itertools
import logging
import os
from typing import Iterator, List, Optional

from ..errors import Corrupted, StorageFailure
from .base import BaseRecordStorage, Record

log = logging.getLogger("surl.storage")


class CsvRecordStorage(BaseRecordStorage):
    """CSV file implementation of the record storage contract.

    Parameters
    ----------
    path : str
        Location of the data file, e.g. "savedURLs.csv".
    create_missing : bool
        Create an empty data file if none exists (default True).
    """

    name = "file"

    def __init__(self, path: str, create_missing: bool = True) -> None:
        self.path = os.fspath(path)
        if not os.path.exists(self.path):
            if not create_missing:
                raise StorageFailure(
                    f"data file {self.path!r} does not exist; create it or enable SURL_CREATE_DATA_FILE"
                )
            try:
                with open(self.path, "a", encoding="utf-8", newline=""):
                    pass
            except OSError as e:
                raise StorageFailure(f"unable to create data file {self.path!r}: {e}") from e
            log.info("Created empty data file %s", self.path)

    # ---- Internal helpers -------------------------------------------------

    def _parse(self, row: List[str], position: int) -> Record:
        """Turn a CSV row into a Record, or raise Corrupted."""
        if len(row) != 2:
            raise Corrupted(
                f"{self.path}: row {position} has {len(row)} fields, expected 2",
                position=position,
            )
        label, url = row
        if not (label.isascii() and label.isdigit()) or not url:
            raise Corrupted(
                f"{self.path}: row {position} is malformed (label={label!r})",
                position=position,
                label=label,
            )
        return Record(index=int(label), url=url)

    # ---- Contract methods -------------------------------------------------

    def append(self, record: Record) -> None:
        try:
            with open(self.path, "a", encoding="utf-8", newline="") as f:
                csv.writer(f).writerow([str(record.index), record.url])
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise StorageFailure(f"unable to append record {record.index} to {self.path!r}: {e}") from e
        except UnicodeEncodeError as e:
            raise StorageFailure(f"record {record.index} cannot be encoded for {self.path!r}: {e}") from e

    def read(self, position: int) -> Optional[Record]:
        if position < 0:
            return None
        try:
            with open(self.path, "r", encoding="utf-8", newline="") as f:
                row = next(itertools.islice(csv.reader(f), position, None), None)
        except OSError as e:
            raise StorageFailure(f"unable to read {self.path!r}: {e}") from e
        except csv.Error as e:
            raise Corrupted(f"{self.path}: unreadable CSV before row {position}: {e}", position=position) from e
        except UnicodeDecodeError as e:
            raise Corrupted(f"{self.path}: invalid UTF-8 before row {position}: {e}", position=position) from e
        if row is None:
            return None
        return self._parse(row, position)

    def scan(self) -> Iterator[Record]:
        try:
            with open(self.path, "r", encoding="utf-8", newline="") as f:
                reader = csv.reader(f)
                position = 0
                while True:
                    try:
                        row = next(reader)
                    except StopIteration:
                        return
                    except csv.Error as e:
                        raise Corrupted(f"{self.path}: unreadable CSV at row {position}: {e}", position=position) from e
                    except UnicodeDecodeError as e:
                        raise Corrupted(f"{self.path}: invalid UTF-8 at row {position}: {e}", position=position) from e
                    yield self._parse(row, position)
                    position += 1
        except OSError as e:
            raise StorageFailure(f"unable to read {self.path!r}: {e}") from e
