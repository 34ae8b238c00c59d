from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from selectolax.parser import HTMLParser

from .errors import DecodeError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/109.0.0.0 Safari/537.36"
)


class PageFetcher:
    """One GET per call, turned into a parsed page or a typed error.

    No caching and no retries. The client is built without a timeout, so a
    request that never answers blocks the calling worker.
    """

    def __init__(
        self,
        *,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.headers = headers or {"User-Agent": DEFAULT_USER_AGENT}
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=None, headers=self.headers, follow_redirects=True)

    def __enter__(self) -> "PageFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # --- Public API ---
    def fetch_html(self, url: str) -> HTMLParser:
        resp = self._get(url)
        return HTMLParser(resp.text)

    def fetch_json(self, url: str) -> Any:
        resp = self._get(url)
        try:
            return resp.json()
        except ValueError as exc:
            raise DecodeError(url, str(exc)) from exc

    # --- Internals ---
    def _get(self, url: str) -> httpx.Response:
        logger.debug("GET %s", url)
        try:
            resp = self._client.get(url, headers=self.headers)
        except httpx.HTTPError as exc:
            raise TransportError(url, detail=str(exc)) from exc
        if not resp.is_success:
            raise TransportError(url, resp.status_code)
        return resp
