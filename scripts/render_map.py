#!/usr/bin/env python3
"""
Render a Leaflet map to a standalone HTML page.

Sources, in order of precedence:
1. --json: hydration document {position, markers}
2. --lat/--long/--zoom/--address plus optional --markers-csv
"""

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import DEFAULT_LAT, DEFAULT_LONG, DEFAULT_ZOOM, LOG_DATE_FORMAT, LOG_FORMAT, OUTPUT_DIR
from mapper.errors import GeocodingError, MapConfigError, MapInitError
from mapper.mapper import Mapper
from mapper.markers_io import load_map_json, load_markers_csv
from mapper.models import MapConfiguration

logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
logger = logging.getLogger("render_map")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render a Leaflet map with markers to HTML")
    parser.add_argument("--json", type=Path, help="Hydration document ({position, markers})")
    parser.add_argument("--markers-csv", type=Path, help="CSV of markers (address or lat/long)")
    parser.add_argument("--lat", type=float, default=DEFAULT_LAT, help="Initial latitude")
    parser.add_argument("--long", type=float, default=DEFAULT_LONG, help="Initial longitude")
    parser.add_argument("--zoom", type=float, default=DEFAULT_ZOOM, help="Initial zoom (default: 13)")
    parser.add_argument("--address", help="Center on this address instead of --lat/--long")
    parser.add_argument("--locate", action="store_true",
                        help="Attach browser geolocation to the page")
    parser.add_argument("--rate-limit-ms", type=float, default=1000,
                        help="Minimum ms between geocode calls (>= 1000)")
    parser.add_argument("--out", type=Path, default=OUTPUT_DIR / "map.html",
                        help="Output HTML file (default: output/map.html)")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    start = time.time()

    try:
        markers = load_markers_csv(args.markers_csv) if args.markers_csv else []
        json_string = load_map_json(args.json) if args.json else None
    except FileNotFoundError as e:
        logger.error(f"Could not read input: {e}")
        sys.exit(1)

    try:
        mapper = Mapper(MapConfiguration(
            lat=args.lat,
            long=args.long,
            zoom=args.zoom,
            address=args.address,
            markers=markers,
            locate_on_start=args.locate,
            rate_limit_ms=args.rate_limit_ms,
        ))
        result = asyncio.run(mapper.draw(json_string))
    except (MapConfigError, MapInitError, GeocodingError) as e:
        logger.error(f"Could not draw map: {e}")
        sys.exit(1)

    args.out.parent.mkdir(parents=True, exist_ok=True)
    mapper.save(args.out)

    elapsed = time.time() - start
    logger.info("=" * 60)
    logger.info(f"Center: ({mapper.lat:.5f}, {mapper.long:.5f}) zoom {mapper.zoom:g}")
    logger.info(f"Markers: {result.added} added, {len(result.failed)} failed")
    logger.info(f"Output: {args.out}")
    logger.info(f"Done in {elapsed:.1f}s")


if __name__ == "__main__":
    main()
