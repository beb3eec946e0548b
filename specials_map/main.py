"""CLI entry point for the restaurant week specials map."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Sequence

import pandas as pd

from .crawler import DEFAULT_MIN_INTERVAL, Crawler
from .geocoding import PROVIDERS, geocode_listings, make_geocoder
from .listings import DEFAULT_LISTING_URL, DEFAULT_PAGE_COUNT, scrape_listings
from .mapping import DEFAULT_TILES, MapOptions, plottable, render_map
from .robots import check_robots
from .storage import GEOCODED_FILENAME, LISTINGS_FILENAME, load_or_build

DEFAULT_OUTPUT_DIR = "output"
DEFAULT_MAP_FILENAME = "restaurant_week_map.html"
DEFAULT_USER_AGENT = "RestaurantWeekSpecialsMap/0.1 (+https://example.com/contact)"
DEFAULT_PROVIDER = "arcgis"


def main(argv: Sequence[str] | None = None) -> None:
    """Execute the CLI."""

    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    if args.pages < 1:
        parser.error("--pages must be at least 1")
    if args.delay < 0:
        parser.error("--delay must not be negative")
    if args.geocode_delay < 0:
        parser.error("--geocode-delay must not be negative")
    if args.provider == "google" and not args.api_key:
        parser.error("--provider google needs --api-key or GOOGLE_MAPS_API_KEY")

    output_dir = Path(args.output_dir)
    map_path = Path(args.map_output) if args.map_output else output_dir / DEFAULT_MAP_FILENAME

    listings = load_or_build(
        output_dir / LISTINGS_FILENAME,
        lambda: _scrape(args),
        refresh=args.refresh_listings,
    )

    if listings.empty:
        logging.warning("No listings were scraped from %s", args.listing_url)
        return

    # Fresh listings invalidate the geocoded table built from the previous scrape.
    with make_geocoder(args.provider, api_key=args.api_key) as geocoder:
        geocoded = load_or_build(
            output_dir / GEOCODED_FILENAME,
            lambda: geocode_listings(listings, geocoder, delay=args.geocode_delay),
            refresh=args.refresh_geocodes or args.refresh_listings,
        )

    options = MapOptions(tiles=args.tiles, fullscreen=not args.no_fullscreen)
    render_map(geocoded, map_path, options)
    _log_summary(listings, geocoded, map_path)


def _scrape(args: argparse.Namespace) -> pd.DataFrame:
    with Crawler(user_agent=args.user_agent, min_interval=args.delay) as crawler:
        if not args.skip_robots:
            check_robots(crawler.client, args.listing_url, user_agent=crawler.user_agent)
        return scrape_listings(crawler, base_url=args.listing_url, page_count=args.pages)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--listing-url",
        default=os.getenv("SPECIALS_LISTING_URL", DEFAULT_LISTING_URL),
        help="Listing page URL without the page parameter",
    )
    parser.add_argument(
        "--pages",
        type=int,
        default=DEFAULT_PAGE_COUNT,
        help="Number of listing pages to fetch",
    )
    parser.add_argument(
        "--provider",
        choices=PROVIDERS,
        default=os.getenv("GEOCODER_PROVIDER", DEFAULT_PROVIDER),
        help="Geocoding backend",
    )
    parser.add_argument(
        "--api-key",
        default=os.getenv("GOOGLE_MAPS_API_KEY"),
        help="API key for the Google geocoder",
    )
    parser.add_argument(
        "--output-dir",
        default=DEFAULT_OUTPUT_DIR,
        help="Directory for the cached tables and the map",
    )
    parser.add_argument(
        "--map-output",
        default=None,
        help="Path of the rendered HTML map (defaults to the output directory)",
    )
    parser.add_argument(
        "--refresh-listings",
        action="store_true",
        help="Scrape again even if the listings table exists",
    )
    parser.add_argument(
        "--refresh-geocodes",
        action="store_true",
        help="Geocode again even if the geocoded table exists",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=DEFAULT_MIN_INTERVAL,
        help="Seconds to wait between listing page requests",
    )
    parser.add_argument(
        "--geocode-delay",
        type=float,
        default=0.0,
        help="Seconds to wait between geocoding requests",
    )
    parser.add_argument(
        "--user-agent",
        default=DEFAULT_USER_AGENT,
        help="User-Agent header to send with HTTP requests",
    )
    parser.add_argument(
        "--tiles",
        default=DEFAULT_TILES,
        help="Tile provider name understood by folium",
    )
    parser.add_argument(
        "--no-fullscreen",
        action="store_true",
        help="Leave out the fullscreen toggle",
    )
    parser.add_argument(
        "--skip-robots",
        action="store_true",
        help="Do not fetch robots.txt before scraping",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. INFO, DEBUG)",
    )
    return parser


def _configure_logging(level: str) -> None:
    resolved = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=resolved, format="%(levelname)s %(message)s")
    if resolved > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def _log_summary(listings: pd.DataFrame, geocoded: pd.DataFrame, map_path: Path) -> None:
    plotted = len(plottable(geocoded))
    logging.info("=" * 50)
    logging.info("Listings scraped:   %d", len(listings))
    logging.info("Listings geocoded:  %d", len(geocoded))
    logging.info("Markers plotted:    %d", plotted)
    logging.info("Map written to:     %s", map_path)
    logging.info("=" * 50)


if __name__ == "__main__":
    main()
