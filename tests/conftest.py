"""Pytest configuration and fixtures."""

from collections.abc import Callable, Generator
from pathlib import Path

import httpx
import pandas as pd
import pytest

FIXTURES = Path(__file__).parent / "fixtures"

BASE_URL = "https://centercityphila.org/explore-center-city/ccd-restaurant-week"


@pytest.fixture
def listing_html() -> str:
    """HTML of a saved listing page with three restaurants."""
    return (FIXTURES / "listing_page.html").read_text(encoding="utf-8")


@pytest.fixture
def mock_client() -> Generator[Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client], None, None]:
    """Build httpx clients whose requests are answered by a handler function."""
    clients: list[httpx.Client] = []

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()


@pytest.fixture
def market_street() -> pd.DataFrame:
    """Two geocoded listings on Market Street."""
    return pd.DataFrame(
        {
            "Name": ["First Bistro", "Second Tavern"],
            "Address": ["1 Market St, Philadelphia, PA", "2 Market St, Philadelphia, PA"],
            "Specials": [f"{BASE_URL}/first", f"{BASE_URL}/second"],
            "Longitude": [-75.1, -75.2],
            "Latitude": [39.95, 39.96],
        }
    )
