"""HTTP fetching utilities for the restaurant week specials map."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT_HEADER = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
)
DEFAULT_MIN_INTERVAL = 2.0


@dataclass(slots=True)
class FetchResult:
    """Describes the outcome of fetching a URL."""

    url: str
    final_url: str
    status_code: int
    content_type: str | None
    text: str


class Crawler:
    """Sequential crawler that spaces out requests to the same host.

    There is no retry: HTTP error statuses raise ``httpx.HTTPStatusError`` and
    transport failures raise ``httpx.RequestError``.
    """

    def __init__(
        self,
        *,
        user_agent: str,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        connect_timeout: float = 10.0,
        read_timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")

        self._user_agent = user_agent
        self._min_interval = min_interval

        if client is None:
            timeout = httpx.Timeout(
                connect=connect_timeout,
                read=read_timeout,
                write=read_timeout,
                pool=connect_timeout,
            )
            client = httpx.Client(
                headers={
                    "User-Agent": user_agent,
                    "Accept": DEFAULT_ACCEPT_HEADER,
                    "Accept-Language": "en-US,en;q=0.9",
                },
                timeout=timeout,
                http2=True,
                follow_redirects=True,
            )
        self._client = client

        # Per-host timestamp of the last finished request
        self._host_last_request_ts: dict[str, float] = {}

    @property
    def client(self) -> httpx.Client:
        return self._client

    @property
    def user_agent(self) -> str:
        return self._user_agent

    def __enter__(self) -> "Crawler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def fetch(self, url: str) -> FetchResult:
        """Fetch *url*, waiting first if the host was contacted too recently."""

        original_url = url
        url = _sanitize_url(url)
        if url != original_url:
            logger.debug("Sanitized URL from %r to %r", original_url, url)

        host = urlparse(url).hostname or ""
        self._wait_for_host(host)

        try:
            logger.debug("GET %s", url)
            response = self._client.get(url)
        finally:
            self._host_last_request_ts[host] = time.monotonic()

        response.raise_for_status()
        return FetchResult(
            url=url,
            final_url=str(response.url),
            status_code=response.status_code,
            content_type=response.headers.get("content-type"),
            text=response.text,
        )

    def _wait_for_host(self, host: str) -> None:
        last = self._host_last_request_ts.get(host)
        if last is None:
            return
        wait_for = self._min_interval - (time.monotonic() - last)
        if wait_for > 0:
            logger.debug("Waiting %.2fs before next request to %s", wait_for, host)
            time.sleep(wait_for)


def _sanitize_url(url: str) -> str:
    """Remove control characters and normalize basic whitespace in URLs.

    - Strips leading/trailing whitespace
    - Removes ASCII control chars (including CR/LF, tabs)
    - Replaces literal spaces with %20
    """
    if not url:
        return url
    cleaned = re.sub(r"[\x00-\x1f\x7f]", "", url).strip()
    if " " in cleaned:
        cleaned = cleaned.replace(" ", "%20")
    return cleaned
