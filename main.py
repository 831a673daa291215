"""
Main API module for SURL Platform.

Responsibilities:
    - Serve the index page with the shorten form
    - Shorten URLs (POST /shorten) and redirect codes (GET /{code})
    - Translate core errors into HTTP statuses without leaking internals

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - The record storage is chosen by SURL_STORAGE_BACKEND unless injected.
    - One IndexStore per app; it recovers its counter when the app is built,
      so a corrupted medium stops the app from starting at all.

Status mapping:
    - malformed code, unissued index, missing record  -> 404
    - empty URL (or malformed URL with validation on) -> 400
    - storage failure, domain exhaustion, corruption  -> 500 (details only in logs)

Run:
    uvicorn main:app --port 8080
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import BaseModel

from surl_platform.codec.codec import is_valid_code
from surl_platform.config import settings
from surl_platform.errors import (
    Corrupted,
    DomainExhausted,
    InvalidInput,
    NotFound,
    OutOfRange,
    StorageFailure,
)
from surl_platform.manager.index_store import IndexStore
from surl_platform.manager.shortener import UrlShortener
from surl_platform.storage.base import BaseRecordStorage
from surl_platform.storage.storage_factory import get_storage


class URLRequest(BaseModel):
    """Request payload for shortening a URL."""
    url: str


INDEX_PAGE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>URL shortener</title></head>
<body>
  <h1>URL shortener</h1>
  <form id="shorten">
    <input type="text" name="url" size="80" placeholder="https://example.com/a/very/long/path">
    <button type="submit">Shorten</button>
  </form>
  <p id="result"></p>
  <script>
    document.getElementById("shorten").addEventListener("submit", async (ev) => {
      ev.preventDefault();
      const url = ev.target.url.value;
      const resp = await fetch("/shorten", {
        method: "POST",
        headers: {"Content-Type": "application/json"},
        body: JSON.stringify({url: url}),
      });
      const data = await resp.json();
      const out = document.getElementById("result");
      out.textContent = resp.ok ? data.short_url + " -> " + data.original_url : "Error: " + data.detail;
    });
  </script>
</body>
</html>
"""


def create_app(storage: Optional[BaseRecordStorage] = None) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        storage (Optional[BaseRecordStorage]): Durable medium to use. When
            omitted, `get_storage()` picks one from the environment.

    Returns:
        FastAPI: A configured application with its own IndexStore.

    Raises:
        Corrupted: If the medium fails recovery. The app is not built.
        StorageFailure: If the medium cannot be opened or read.
    """
    if not logging.getLogger().handlers:
        logging.basicConfig(level=settings.LOG_LEVEL)
    log = logging.getLogger("surl")

    app = FastAPI(
        title="SURL Platform",
        description="URL shortener with scrambled, collision-free six-character codes",
        docs_url="/docs",
    )

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    if storage is None:
        storage = get_storage()
    try:
        store = IndexStore(storage)
    except Corrupted as e:
        log.critical("Refusing to start: %s (position=%s, label=%s)", e, e.position, e.label)
        raise
    shortener = UrlShortener(store)
    log.info("SURL storage backend: %s, next index: %d", storage.name, store.next_index)

    app.state.store = store
    app.state.shortener = shortener

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.get("/", response_class=HTMLResponse)
    @app.get("/index.html", response_class=HTMLResponse)
    def index_page() -> str:
        return INDEX_PAGE

    @app.get("/healthz")
    def health() -> Dict[str, Any]:
        return {"status": "ok", "backend": storage.name, "next_index": store.next_index}

    @app.post("/shorten")
    def shorten(req: URLRequest, request: Request) -> Dict[str, Any]:
        """
        Shorten a URL.

        Returns:
            dict: message, code, absolute short_url, relative short_path, original_url.

        Raises:
            HTTPException: 400 for an empty (or invalid) URL, 500 when the
                record cannot be persisted or the code space is used up.
        """
        try:
            link = shortener.shorten(req.url)
        except InvalidInput as e:
            raise HTTPException(status_code=400, detail=str(e))
        except DomainExhausted:
            log.error("Shorten rejected: code space exhausted")
            raise HTTPException(status_code=500, detail="Set of short URLs exhausted")
        except StorageFailure as e:
            log.error("Shorten failed: %s", e)
            raise HTTPException(status_code=500, detail="Unable to save URL")

        return {
            "message": "Short URL created",
            "code": link.code,
            "short_url": str(request.url_for("redirect_code", code=link.code)),
            "short_path": app.url_path_for("redirect_code", code=link.code),
            "original_url": link.url,
        }

    @app.get("/{code}", name="redirect_code")
    def redirect_code(code: str) -> RedirectResponse:
        """
        Redirect a short code to its original URL.

        Codes that do not match [0-9a-zA-Z]{6} are answered with 404 before the
        codec sees them.
        """
        if not is_valid_code(code):
            raise HTTPException(status_code=404, detail="Short URL not found")
        try:
            url = shortener.resolve(code)
        except (InvalidInput, OutOfRange, NotFound):
            raise HTTPException(status_code=404, detail="Short URL not found")
        except Corrupted as e:
            log.error("Corrupted record for code %s: %s (position=%s, label=%s)", code, e, e.position, e.label)
            raise HTTPException(status_code=500, detail="Internal error")
        except StorageFailure as e:
            log.error("Lookup failed for code %s: %s", code, e)
            raise HTTPException(status_code=500, detail="Internal error")
        return RedirectResponse(url=url, status_code=302)

    return app


_app: Optional[FastAPI] = None


def __getattr__(name: str):
    """
    Build the module-level `app` on first access.

    `uvicorn main:app` and `from main import app` still work, but importing
    `main` for `create_app` alone touches no storage.
    """
    global _app
    if name == "app":
        if _app is None:
            _app = create_app()
        return _app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8080)
