"""Data models used across the restaurant week specials map."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

LISTING_COLUMNS = ["Name", "Address", "Specials"]
GEOCODED_COLUMNS = LISTING_COLUMNS + ["Longitude", "Latitude"]


@dataclass(slots=True)
class Listing:
    """A restaurant or bar taking part in the event."""

    name: str
    address: str
    specials: str


@dataclass(slots=True)
class Coordinates:
    """A resolved point, longitude first."""

    longitude: float
    latitude: float


@dataclass(slots=True)
class GeocodedListing:
    """A listing with the coordinates its address resolved to."""

    listing: Listing
    longitude: Optional[float]
    latitude: Optional[float]
