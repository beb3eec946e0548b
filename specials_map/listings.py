"""Scrape the restaurant week listing pages into a table of listings."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence
from urllib.parse import parse_qsl, urlencode, urlparse

import pandas as pd
from bs4 import BeautifulSoup

from .crawler import Crawler
from .models import LISTING_COLUMNS, Listing

logger = logging.getLogger(__name__)

DEFAULT_LISTING_URL = "https://centercityphila.org/explore-center-city/ccd-restaurant-week"
DEFAULT_PAGE_COUNT = 3
LINK_CLASSES = ("table-tag", "link")


class ListingParseError(RuntimeError):
    """Raised when a listing page does not have the expected structure."""


def listing_page_url(base_url: str, page: int) -> str:
    """Return *base_url* with its ``page`` query parameter set to *page*."""

    parsed = urlparse(base_url)
    params = [(key, value) for key, value in parse_qsl(parsed.query) if key != "page"]
    params.append(("page", str(page)))
    return parsed._replace(query=urlencode(params)).geturl()


def parse_listing_page(html: str, base_url: str) -> pd.DataFrame:
    """Extract the listings table from one page.

    Rows of the first ``<table>`` are paired by position with the ``href`` of
    every ``.table-tag.link`` element on the page. The Specials URL is
    *base_url* with the raw href appended.
    """

    soup = BeautifulSoup(html, "lxml")
    table = soup.find("table")
    if table is None:
        raise ListingParseError("No <table> element found on listing page")

    rows = _table_rows(table)
    hrefs = _special_links(soup)

    if len(rows) != len(hrefs):
        raise ListingParseError(
            f"Listing table has {len(rows)} rows but {len(hrefs)} specials links were found"
        )

    listings = [
        Listing(name=name, address=address, specials=base_url + href)
        for (name, address, _label), href in zip(rows, hrefs)
    ]
    return listings_frame(listings)


def listings_frame(listings: Iterable[Listing]) -> pd.DataFrame:
    return pd.DataFrame(
        [(item.name, item.address, item.specials) for item in listings],
        columns=LISTING_COLUMNS,
    )


def scrape_page(
    crawler: Crawler,
    page: int,
    *,
    base_url: str = DEFAULT_LISTING_URL,
    page_count: int = DEFAULT_PAGE_COUNT,
) -> pd.DataFrame:
    """Fetch and parse a single listing page."""

    if not 1 <= page <= page_count:
        raise ValueError(f"page must be between 1 and {page_count}, got {page}")

    url = listing_page_url(base_url, page)
    logger.info("Fetching listing page %d: %s", page, url)
    result = crawler.fetch(url)
    frame = parse_listing_page(result.text, base_url)
    logger.info("Page %d yielded %d listings", page, len(frame))
    return frame


def scrape_listings(
    crawler: Crawler,
    pages: Sequence[int] | None = None,
    *,
    base_url: str = DEFAULT_LISTING_URL,
    page_count: int = DEFAULT_PAGE_COUNT,
) -> pd.DataFrame:
    """Scrape every page and concatenate the results in page order.

    Duplicates are kept. The crawler's per-host interval supplies the
    courtesy delay between pages.
    """

    if pages is None:
        pages = range(1, page_count + 1)

    frames = [
        scrape_page(crawler, page, base_url=base_url, page_count=page_count)
        for page in pages
    ]
    if not frames:
        return listings_frame([])
    return pd.concat(frames, ignore_index=True)


def _table_rows(table) -> list[tuple[str, str, str]]:
    rows: list[tuple[str, str, str]] = []
    for tr in table.find_all("tr"):
        cells = [cell.get_text(" ", strip=True) for cell in tr.find_all("td")]
        if not cells:
            # Header rows only carry <th> cells
            continue
        if len(cells) < 2:
            raise ListingParseError(f"Listing row has {len(cells)} cell(s), expected name and address")
        label = cells[2] if len(cells) > 2 else ""
        rows.append((cells[0], cells[1], label))
    return rows


def _special_links(soup: BeautifulSoup) -> list[str]:
    selector = "".join(f".{name}" for name in LINK_CLASSES)
    hrefs: list[str] = []
    for element in soup.select(selector):
        href = (element.get("href") or "").strip()
        if not href:
            raise ListingParseError(f"Specials link without href: {element!s:.120}")
        hrefs.append(href)
    return hrefs
