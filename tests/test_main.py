"""Tests for the CLI wiring."""

import pandas as pd
import pytest

from specials_map import main as cli
from specials_map.storage import GEOCODED_FILENAME, LISTINGS_FILENAME, write_table


def test_main_runs_all_stages(market_street: pd.DataFrame, monkeypatch, tmp_path) -> None:
    """Test a run writes both tables and the map, then reuses the tables."""
    scrapes: list[int] = []
    geocodes: list[int] = []

    def fake_scrape(crawler, *, base_url, page_count):
        scrapes.append(page_count)
        return market_street[["Name", "Address", "Specials"]]

    def fake_geocode(listings, geocoder, *, delay):
        geocodes.append(len(listings))
        return market_street

    monkeypatch.setattr(cli, "scrape_listings", fake_scrape)
    monkeypatch.setattr(cli, "geocode_listings", fake_geocode)

    argv = ["--output-dir", str(tmp_path), "--skip-robots", "--log-level", "WARNING"]
    cli.main(argv)

    assert (tmp_path / LISTINGS_FILENAME).is_file()
    assert (tmp_path / GEOCODED_FILENAME).is_file()
    assert (tmp_path / cli.DEFAULT_MAP_FILENAME).is_file()
    assert scrapes == [3]
    assert geocodes == [2]

    cli.main(argv)
    assert scrapes == [3]
    assert geocodes == [2]

    cli.main(argv + ["--refresh-listings"])
    assert scrapes == [3, 3]
    assert geocodes == [2, 2]


def test_main_requires_key_for_google(monkeypatch, tmp_path) -> None:
    """Test the Google backend cannot be chosen without a key."""
    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)

    with pytest.raises(SystemExit):
        cli.main(["--provider", "google", "--output-dir", str(tmp_path)])


def test_main_rejects_zero_pages(tmp_path) -> None:
    """Test at least one listing page must be requested."""
    with pytest.raises(SystemExit):
        cli.main(["--pages", "0", "--output-dir", str(tmp_path)])


def test_main_rejects_negative_delays(tmp_path) -> None:
    """Test negative waits are refused by the parser."""
    with pytest.raises(SystemExit):
        cli.main(["--delay", "-1", "--output-dir", str(tmp_path)])
    with pytest.raises(SystemExit):
        cli.main(["--geocode-delay", "-1", "--output-dir", str(tmp_path)])


def test_cached_listings_skip_crawler_and_robots(market_street: pd.DataFrame, monkeypatch, tmp_path) -> None:
    """Test nothing is fetched when both tables are already cached."""
    write_table(market_street[["Name", "Address", "Specials"]], tmp_path / LISTINGS_FILENAME)
    write_table(market_street, tmp_path / GEOCODED_FILENAME)

    def fail(*args, **kwargs):
        raise AssertionError("no network access expected")

    monkeypatch.setattr(cli, "Crawler", fail)
    monkeypatch.setattr(cli, "check_robots", fail)

    cli.main(["--output-dir", str(tmp_path), "--log-level", "WARNING"])

    assert (tmp_path / cli.DEFAULT_MAP_FILENAME).is_file()
