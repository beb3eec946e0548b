"""Flat CSV tables that let a run skip scraping or geocoding."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import pandas as pd

logger = logging.getLogger(__name__)

LISTINGS_FILENAME = "listings.csv"
GEOCODED_FILENAME = "geocoded_listings.csv"
COORDINATE_COLUMNS = ("Longitude", "Latitude")


def write_table(frame: pd.DataFrame, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(path, index=False, encoding="utf-8", lineterminator="\n")
    logger.info("Wrote %d rows to %s", len(frame), path)
    return path


def read_table(path: Path) -> pd.DataFrame:
    # Blank text cells stay "" so a missing address never turns into NaN.
    frame = pd.read_csv(
        path,
        encoding="utf-8",
        dtype={"Name": str, "Address": str, "Specials": str},
        keep_default_na=False,
    )
    for column in COORDINATE_COLUMNS:
        if column in frame.columns:
            frame[column] = pd.to_numeric(frame[column], errors="coerce").astype(float)
    logger.info("Loaded %d rows from %s", len(frame), path)
    return frame


def load_or_build(
    path: Path,
    build: Callable[[], pd.DataFrame],
    *,
    refresh: bool = False,
) -> pd.DataFrame:
    """Return the table cached at *path*, building and saving it if needed."""

    if path.exists() and not refresh:
        logger.info("Reusing cached table %s (pass a refresh flag to rebuild)", path)
        return read_table(path)

    frame = build()
    write_table(frame, path)
    return frame
