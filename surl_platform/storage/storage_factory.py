"""
Storage factory – switch record storage backend from config (lazy env version)
=============================================================================

Centralizes selection of the durable medium (CSV file, memory or PostgreSQL)
so the index store and the app stay ignorant of where records live.

- Reads environment **at call time** to avoid stale values in tests.
- Imports the DB backend **only if** the selected backend is "postgres".

Environment variables
---------------------
- SURL_STORAGE_BACKEND:  "file" (default), "memory" or "postgres"
- SURL_DATA_FILE:        CSV path if backend=="file" (default "savedURLs.csv")
- SURL_CREATE_DATA_FILE: "0" to refuse a missing data file
- SURL_DB_DSN:           DSN string if backend=="postgres"
"""

import logging
import os
from typing import Optional

from surl_platform.storage.base import BaseRecordStorage
from surl_platform.storage.file_storage import CsvRecordStorage
from surl_platform.storage.storage import MemoryRecordStorage

log = logging.getLogger("surl.storage")


def get_storage(backend: Optional[str] = None, **kwargs) -> BaseRecordStorage:
    """
    Return a record storage backend based on configuration.

    Parameters
    ----------
    backend : str, optional
        "file", "memory" or "postgres". If omitted, reads SURL_STORAGE_BACKEND.
    kwargs : dict
        Extra args for the backend: path=/create_missing= for "file", dsn= for "postgres".

    Returns
    -------
    BaseRecordStorage instance

    Raises
    ------
    ValueError
        Unknown backend, or postgres selected without a DSN.
    """
    be = (backend or os.getenv("SURL_STORAGE_BACKEND", "file")).strip().lower()
    log.info("Selected storage backend: %r", be)

    if be == "memory":
        return MemoryRecordStorage()

    if be == "file":
        path = kwargs.get("path") or os.getenv("SURL_DATA_FILE", "savedURLs.csv")
        create_missing = kwargs.get("create_missing")
        if create_missing is None:
            create_missing = os.getenv("SURL_CREATE_DATA_FILE", "1").strip().lower() in {"1", "true", "yes", "on"}
        return CsvRecordStorage(path, create_missing=create_missing)

    if be == "postgres":
        dsn = kwargs.get("dsn") or os.getenv("SURL_DB_DSN", "")
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env SURL_DB_DSN)")
        # Local import to avoid hard dependency when not using postgres
        from surl_platform.storage.db_storage import DBRecordStorage
        return DBRecordStorage(dsn=dsn)

    raise ValueError(f"Unknown storage backend: {be!r}")
