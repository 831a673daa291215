"""
UrlShortener module for SURL Platform.

Responsibilities:
    - Shorten: allocate the next index for a URL and encode it as a code
    - Resolve: validate a code, decode it, bound-check it, look the URL up
    - Keep boundary checks (empty URL, code pattern) out of the core pieces

Design notes:
    - Codes are derived from indexes, never stored; the codec is a bijection,
      so there is nothing to collide and nothing to retry.
    - No dedupe: shortening the same URL twice yields two records and two codes.
    - The codec and the index store are injected; the defaults come from
      `surl_platform.config.settings`.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from ..codec.codec import Codec, is_valid_code
from ..config import settings
from ..errors import InvalidInput, OutOfRange
from .index_store import IndexStore

log = logging.getLogger("surl")


@dataclass(frozen=True)
class ShortLink:
    """Result of a successful shorten call."""
    index: int
    code: str
    url: str


class UrlShortener:
    """
    Coordinates the codec and the index store for the HTTP layer.

    Args:
        store (IndexStore): Allocator and record lookup.
        codec (Optional[Codec]): Index <-> code transform; built from
            settings.CODEC_MULTIPLIER when omitted.
        validate_urls (Optional[bool]): Reject URLs that are not http(s) with a
            host. Defaults to settings.VALIDATE_URLS.
    """

    def __init__(
        self,
        store: IndexStore,
        codec: Optional[Codec] = None,
        validate_urls: Optional[bool] = None,
    ):
        self.store = store
        self.codec = codec if codec is not None else Codec(settings.CODEC_MULTIPLIER)
        self.validate_urls = settings.VALIDATE_URLS if validate_urls is None else validate_urls

    def _validate_url(self, url: str) -> None:
        """
        Validate that a URL has an http/https scheme and a netloc.

        Raises:
            InvalidInput: If the URL is malformed.
        """
        parsed = urlparse(url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise InvalidInput("Invalid URL format")

    def shorten(self, url: str) -> ShortLink:
        """
        Allocate an index for `url` and return it with its code.

        Raises:
            InvalidInput: Empty URL, or malformed URL when validation is on.
            DomainExhausted, StorageFailure: Propagated from the index store.
        """
        if not url:
            raise InvalidInput("URL must be a non-empty string")
        if self.validate_urls:
            self._validate_url(url)
        index = self.store.allocate(url)
        code = self.codec.encode(index)
        log.info("Shortened index=%d code=%s", index, code)
        return ShortLink(index=index, code=code, url=url)

    def resolve(self, code: str) -> str:
        """
        Return the URL a code stands for.

        Raises:
            InvalidInput: The code does not match [0-9a-zA-Z]{6}.
            OutOfRange: The code is well formed but its index was never issued.
            NotFound, Corrupted, StorageFailure: Propagated from the index store.
        """
        if not is_valid_code(code):
            raise InvalidInput(f"not a valid short code: {code!r}")
        index = self.codec.decode(code)
        if index >= self.store.next_index:
            raise OutOfRange(f"code {code} maps to unissued index {index}")
        return self.store.lookup(index)
