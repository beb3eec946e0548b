"""Robots.txt check run once before scraping the listing pages."""

from __future__ import annotations

import logging
from urllib import robotparser
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)


def _origin_from_url(url: str) -> str | None:
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc}"


class RobotsPolicy:
    """Parsed robots.txt for a single origin.

    A missing parser means the file could not be read, and everything is
    treated as allowed.
    """

    def __init__(self, origin: str, parser: robotparser.RobotFileParser | None) -> None:
        self.origin = origin
        self._parser = parser

    @classmethod
    def fetch(
        cls,
        client: httpx.Client,
        url: str,
        *,
        user_agent: str,
        request_timeout: float = 10.0,
    ) -> "RobotsPolicy":
        origin = _origin_from_url(url)
        if not origin:
            raise ValueError(f"URL {url!r} lacks a valid origin")

        robots_url = f"{origin}/robots.txt"
        try:
            response = client.get(
                robots_url,
                timeout=request_timeout,
                headers={"User-Agent": user_agent},
            )
        except httpx.RequestError as exc:
            logger.debug("Failed to fetch robots.txt for %s: %s", origin, exc)
            return cls(origin, None)

        status = response.status_code
        if status == 404:
            logger.debug("robots.txt not found for %s (404)", origin)
            return cls(origin, None)

        if status in (401, 403):
            logger.info("robots.txt restricted for %s (status %s)", origin, status)
            parser = robotparser.RobotFileParser()
            parser.parse(["User-agent: *", "Disallow: /"])
            return cls(origin, parser)

        if status >= 500:
            logger.debug("robots.txt unavailable for %s (status %s)", origin, status)
            return cls(origin, None)

        parser = robotparser.RobotFileParser()
        parser.set_url(robots_url)
        parser.parse(response.text.splitlines())
        return cls(origin, parser)

    def allows(self, url: str, user_agent: str) -> bool:
        """Return True if crawling *url* is permitted for *user_agent*."""

        if self._parser is None:
            return True
        return self._parser.can_fetch(user_agent, url)


def check_robots(client: httpx.Client, url: str, *, user_agent: str) -> bool:
    """Log whether robots.txt permits fetching *url*.

    The verdict is advisory: callers decide what to do with it.
    """

    policy = RobotsPolicy.fetch(client, url, user_agent=user_agent)
    allowed = policy.allows(url, user_agent)
    if allowed:
        logger.info("robots.txt for %s permits %s", policy.origin, url)
    else:
        logger.warning("robots.txt for %s disallows %s; continuing anyway", policy.origin, url)
    return allowed
