"""
Load marker lists and hydration documents from disk.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import pandas as pd

logger = logging.getLogger(__name__)

MARKER_COLUMNS = [
    "address", "lat", "long", "lon", "label", "popup",
    "icon_url", "icon_x", "icon_y", "icon_w", "icon_h",
]
ICON_COLUMNS = ["icon_url", "icon_x", "icon_y", "icon_w", "icon_h"]


def row_to_marker(row: dict) -> dict:
    """
    Convert one CSV row (blank cells already dropped) to a marker entry.

    Icon columns are folded into a nested icon dict.
    """
    marker = {k: v for k, v in row.items() if k not in ICON_COLUMNS}
    icon = {k: row[k] for k in ICON_COLUMNS if k in row}
    if icon:
        marker["icon"] = icon
    return marker


def load_markers_csv(path: Path) -> List[dict]:
    """
    Read a marker list from CSV.

    Each row becomes either {address} or {lat, long, label?, popup?, icon?}.
    Unrecognized columns are ignored; row validation happens when the
    markers are placed.

    Raises:
        FileNotFoundError: If path does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Marker file not found: {path}")

    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    unknown = [c for c in df.columns if c not in MARKER_COLUMNS]
    if unknown:
        logger.warning(f"Ignoring unknown marker columns: {unknown}")
    df = df[[c for c in df.columns if c in MARKER_COLUMNS]]

    markers = []
    for record in df.to_dict(orient="records"):
        row = {k: v.strip() for k, v in record.items() if isinstance(v, str) and v.strip()}
        markers.append(row_to_marker(row))

    logger.info(f"Loaded {len(markers)} markers from {path.name}")
    return markers


def load_map_json(path: Path) -> str:
    """Read a hydration document ({position, markers}) as text."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        return f.read()
