"""Address geocoding backends and the table-level geocoding step."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, ClassVar

import httpx
import pandas as pd

from .models import GEOCODED_COLUMNS, Coordinates

logger = logging.getLogger(__name__)

ARCGIS_URL = (
    "https://geocode.arcgis.com/arcgis/rest/services/World/GeocodeServer/findAddressCandidates"
)
GOOGLE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
PROVIDERS = ("arcgis", "google")


class GeocodingError(RuntimeError):
    """Raised when a geocoding provider rejects or fails a request."""


class Geocoder(ABC):
    """Turns an address into coordinates.

    Backends return their provider's own field names from :meth:`lookup`;
    ``field_names`` maps those to ``Longitude`` and ``Latitude``.
    """

    name: ClassVar[str]
    field_names: ClassVar[dict[str, str]]

    def __init__(self, client: httpx.Client | None = None, *, timeout: float = 20.0) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout, connect=5.0))

    def __enter__(self) -> "Geocoder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    @abstractmethod
    def lookup(self, address: str) -> dict[str, Any] | None:
        """Return provider-specific coordinate fields, or None if unresolved."""

    def geocode(self, address: str) -> Coordinates | None:
        """Resolve a single address.

        Tables go through :func:`geocode_listings`, which renames the same
        ``field_names`` at the column level.
        """
        raw = self.lookup(address)
        if raw is None:
            return None
        normalized = {self.field_names[key]: value for key, value in raw.items() if key in self.field_names}
        return Coordinates(
            longitude=float(normalized["Longitude"]),
            latitude=float(normalized["Latitude"]),
        )


class ArcGISGeocoder(Geocoder):
    """ArcGIS World Geocoding Service, usable without an API key."""

    name = "arcgis"
    field_names = {"x": "Longitude", "y": "Latitude"}

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        url: str = ARCGIS_URL,
        timeout: float = 20.0,
    ) -> None:
        super().__init__(client, timeout=timeout)
        self._url = url

    def lookup(self, address: str) -> dict[str, Any] | None:
        response = self._client.get(
            self._url,
            params={"SingleLine": address, "f": "json", "maxLocations": 1, "outFields": "Match_addr"},
        )
        response.raise_for_status()
        payload = response.json()

        error = payload.get("error")
        if error:
            raise GeocodingError(
                f"ArcGIS error {error.get('code')}: {error.get('message', 'unknown error')}"
            )

        candidates = payload.get("candidates") or []
        if not candidates:
            return None
        best = max(candidates, key=lambda candidate: candidate.get("score", 0))
        location = best.get("location") or {}
        if "x" not in location or "y" not in location:
            return None
        return {"x": location["x"], "y": location["y"]}


class GoogleGeocoder(Geocoder):
    """Google Maps Geocoding API; requires an API key."""

    name = "google"
    field_names = {"lng": "Longitude", "lat": "Latitude"}

    def __init__(
        self,
        api_key: str,
        client: httpx.Client | None = None,
        *,
        url: str = GOOGLE_URL,
        timeout: float = 20.0,
    ) -> None:
        if not api_key:
            raise ValueError("Google geocoding requires an API key")
        super().__init__(client, timeout=timeout)
        self._api_key = api_key
        self._url = url

    def lookup(self, address: str) -> dict[str, Any] | None:
        response = self._client.get(self._url, params={"address": address, "key": self._api_key})
        response.raise_for_status()
        payload = response.json()

        status = payload.get("status")
        if status == "ZERO_RESULTS":
            return None
        if status != "OK":
            message = payload.get("error_message") or "no error message"
            raise GeocodingError(f"Google geocoding status {status}: {message}")

        results = payload.get("results") or []
        if not results:
            return None
        location = results[0].get("geometry", {}).get("location", {})
        return {"lng": location["lng"], "lat": location["lat"]}


def make_geocoder(
    provider: str,
    *,
    api_key: str | None = None,
    client: httpx.Client | None = None,
) -> Geocoder:
    """Build the backend named *provider* (``arcgis`` or ``google``)."""

    provider = provider.strip().lower()
    if provider == "arcgis":
        return ArcGISGeocoder(client)
    if provider == "google":
        return GoogleGeocoder(api_key or "", client)
    raise ValueError(f"Unknown geocoding provider {provider!r}; expected one of {', '.join(PROVIDERS)}")


def geocode_listings(
    listings: pd.DataFrame,
    geocoder: Geocoder,
    *,
    delay: float = 0.0,
) -> pd.DataFrame:
    """Append ``Longitude``/``Latitude`` columns to a listings table.

    Each distinct address is looked up once. Blank addresses are never sent
    to the provider. Those, and addresses the provider cannot resolve, get
    NaN coordinates; provider errors propagate.
    """

    unique = list(dict.fromkeys(listings["Address"]))
    addresses = [address for address in unique if _is_lookup_address(address)]
    if len(addresses) < len(unique):
        logger.warning("Skipping %d blank address(es)", len(unique) - len(addresses))
    logger.info("Geocoding %d unique addresses with %s", len(addresses), geocoder.name)

    records: list[dict[str, Any]] = []
    for index, address in enumerate(addresses):
        if index and delay > 0:
            time.sleep(delay)
        raw = geocoder.lookup(address)
        if raw is None:
            logger.warning("Could not geocode address %r", address)
            raw = {}
        records.append({"Address": address, **raw})

    provider_columns = list(geocoder.field_names)
    lookups = pd.DataFrame.from_records(records, columns=["Address", *provider_columns])
    lookups = lookups.rename(columns=geocoder.field_names)
    lookups["Address"] = lookups["Address"].astype(listings["Address"].dtype)
    for column in ("Longitude", "Latitude"):
        lookups[column] = pd.to_numeric(lookups[column], errors="coerce").astype(float)

    geocoded = listings.merge(lookups, on="Address", how="left", validate="many_to_one")
    resolved = int(geocoded[["Longitude", "Latitude"]].notna().all(axis=1).sum())
    logger.info("Resolved %d of %d listings", resolved, len(geocoded))
    return geocoded[GEOCODED_COLUMNS]


def _is_lookup_address(address: Any) -> bool:
    return isinstance(address, str) and bool(address.strip())
