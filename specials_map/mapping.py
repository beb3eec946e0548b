"""Render geocoded listings as an interactive Leaflet map via folium."""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import folium
import pandas as pd
from folium.plugins import Fullscreen

from .models import Coordinates, GeocodedListing, Listing

logger = logging.getLogger(__name__)

DEFAULT_EVENT_NAME = "Center City District Restaurant Week"
DEFAULT_CITY = "Philadelphia"
DEFAULT_TILES = "CartoDB positron"
DEFAULT_ZOOM = 16
DEFAULT_MIN_ZOOM = 14
DEFAULT_MAX_ZOOM = 18

POPUP_MAX_WIDTH = 300

POPUP_TEMPLATE = """
<div style="font-family: Helvetica, Arial, sans-serif; font-size: 13px; line-height: 1.4;">
  <h4 style="margin: 0 0 4px 0; color: #2c3e50;">{name}</h4>
  <a href="{specials}" target="_blank" rel="noopener" style="color: #c0392b; font-weight: bold;">See the specials</a>
  <p style="margin: 4px 0 0 0; color: #555;">{address}</p>
</div>
""".strip()

CENTROID_TEMPLATE = """
<div style="font-family: Helvetica, Arial, sans-serif; font-size: 13px;">
  <b>{event}</b><br>Restaurants and bars across {city} serving prix-fixe specials.
</div>
""".strip()

TITLE_TEMPLATE = """
<div style="position: fixed; top: 10px; left: 50px; z-index: 9999; padding: 6px 12px;
            background: rgba(255, 255, 255, 0.9); border-radius: 4px;
            font-family: Helvetica, Arial, sans-serif; box-shadow: 0 1px 4px rgba(0, 0, 0, 0.3);">
  <div style="font-size: 16px; font-weight: bold;">{event}</div>
  <div style="font-size: 12px; color: #555;">{count} participating spots in {city}. Click a marker for its specials.</div>
</div>
""".strip()


@dataclass(slots=True)
class MapOptions:
    """Fixed presentation settings for the rendered map."""

    event_name: str = DEFAULT_EVENT_NAME
    city: str = DEFAULT_CITY
    tiles: str = DEFAULT_TILES
    zoom_start: int = DEFAULT_ZOOM
    min_zoom: int = DEFAULT_MIN_ZOOM
    max_zoom: int = DEFAULT_MAX_ZOOM
    fullscreen: bool = True
    title: bool = True


def plottable(frame: pd.DataFrame) -> pd.DataFrame:
    """Drop rows without both coordinates; they are not rendered."""

    mask = frame[["Longitude", "Latitude"]].notna().all(axis=1)
    dropped = frame.loc[~mask, "Name"].tolist()
    if dropped:
        logger.warning(
            "Skipping %d listing(s) without coordinates: %s", len(dropped), ", ".join(map(str, dropped))
        )
    return frame.loc[mask].reset_index(drop=True)


def center_point(frame: pd.DataFrame) -> Coordinates:
    """Mean longitude and mean latitude of the plottable rows."""

    points = plottable(frame)
    if points.empty:
        raise ValueError("Cannot compute a center point without geocoded listings")
    return Coordinates(
        longitude=float(points["Longitude"].mean()),
        latitude=float(points["Latitude"].mean()),
    )


def iter_geocoded(frame: pd.DataFrame) -> Iterator[GeocodedListing]:
    for row in frame.itertuples(index=False):
        yield GeocodedListing(
            listing=Listing(name=row.Name, address=row.Address, specials=row.Specials),
            longitude=None if pd.isna(row.Longitude) else float(row.Longitude),
            latitude=None if pd.isna(row.Latitude) else float(row.Latitude),
        )


def popup_html(listing: Listing) -> str:
    return POPUP_TEMPLATE.format(
        name=html.escape(listing.name),
        specials=html.escape(listing.specials, quote=True),
        address=html.escape(listing.address),
    )


def build_map(frame: pd.DataFrame, options: MapOptions | None = None) -> folium.Map:
    """Build a map with one marker per listing plus a centroid marker."""

    options = options or MapOptions()
    points = plottable(frame)
    center = center_point(points)

    fmap = folium.Map(
        location=[center.latitude, center.longitude],
        zoom_start=options.zoom_start,
        min_zoom=options.min_zoom,
        max_zoom=options.max_zoom,
        tiles=options.tiles,
    )

    for item in iter_geocoded(points):
        folium.Marker(
            location=[item.latitude, item.longitude],
            tooltip=html.escape(item.listing.name),
            popup=folium.Popup(popup_html(item.listing), max_width=POPUP_MAX_WIDTH),
            icon=folium.Icon(color="blue", icon="cutlery", prefix="fa"),
        ).add_to(fmap)

    folium.Marker(
        location=[center.latitude, center.longitude],
        tooltip=html.escape(options.event_name),
        popup=folium.Popup(
            CENTROID_TEMPLATE.format(event=html.escape(options.event_name), city=html.escape(options.city)),
            max_width=POPUP_MAX_WIDTH,
        ),
        icon=folium.Icon(color="red", icon="star", prefix="fa"),
    ).add_to(fmap)

    if options.fullscreen:
        Fullscreen(position="topright").add_to(fmap)

    if options.title:
        header = TITLE_TEMPLATE.format(
            event=html.escape(options.event_name),
            city=html.escape(options.city),
            count=len(points),
        )
        fmap.get_root().html.add_child(folium.Element(header))

    logger.info(
        "Built map centred on (%.5f, %.5f) with %d listing markers",
        center.longitude,
        center.latitude,
        len(points),
    )
    return fmap


def render_map(frame: pd.DataFrame, path: Path, options: MapOptions | None = None) -> Path:
    """Write the map as a self-contained HTML document."""

    fmap = build_map(frame, options)
    path.parent.mkdir(parents=True, exist_ok=True)
    fmap.save(str(path))
    logger.info("Saved map to %s", path)
    return path
