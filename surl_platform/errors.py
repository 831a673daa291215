"""
Error kinds for SURL Platform.

Every failure of the codec or the index store is raised as one of these
exceptions. The HTTP layer maps them to status codes; nothing below it
swallows them or substitutes a guessed value.

    SurlError
    ├── InvalidInput        malformed code or empty URL (also a ValueError)
    ├── OutOfRange          index outside the issued/valid range
    ├── NotFound            no record at the requested position
    ├── DomainExhausted     all 62**6 indexes have been allocated
    ├── StorageFailure      durable read/write error
    ├── Corrupted           a record's label does not match its position
    └── CodecInternalError  arithmetic precondition violated (a bug)
"""

__all__ = [
    "SurlError",
    "InvalidInput",
    "OutOfRange",
    "NotFound",
    "DomainExhausted",
    "StorageFailure",
    "Corrupted",
    "CodecInternalError",
]


class SurlError(Exception):
    """Base class for all SURL Platform errors."""


class InvalidInput(SurlError, ValueError):
    """A code or URL was rejected before reaching core logic."""


class OutOfRange(SurlError):
    """A syntactically valid code refers to an index that was never issued."""


class NotFound(SurlError):
    """The durable medium holds no record at the requested position."""


class DomainExhausted(SurlError):
    """The counter reached the size of the code domain; no allocation is possible."""


class StorageFailure(SurlError):
    """Reading from or writing to the durable medium failed."""


class Corrupted(SurlError):
    """
    A persisted record does not carry the index its position implies.

    Attributes:
        position (int | None): Position in the medium where the mismatch was seen.
        label (str | int | None): Label actually found there.
    """

    def __init__(self, message: str, position=None, label=None):
        super().__init__(message)
        self.position = position
        self.label = label


class CodecInternalError(SurlError):
    """Raised when the modular arithmetic receives operands it can never legitimately see."""
