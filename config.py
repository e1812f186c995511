"""
Leaf Mapper configuration.

Geocoder endpoints, tile settings, map defaults, and logging constants.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# --- Paths ---
PROJECT_ROOT = Path(__file__).parent
OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", PROJECT_ROOT / "output"))

# --- API Keys ---
STADIA_API_KEY = os.getenv("STADIA_API_KEY", "")

# --- Geocoding ---
GEOCODER_PROVIDER = os.getenv("GEOCODER_PROVIDER", "nominatim").lower()
NOMINATIM_URL = os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org/search")
STADIA_URL = os.getenv("STADIA_URL", "https://api.stadiamaps.com/geocoding/v1/search")
GEOCODER_USER_AGENT = os.getenv("GEOCODER_USER_AGENT", "LeafMapper/1.0")
GEOCODE_TIMEOUT = float(os.getenv("GEOCODE_TIMEOUT", "10"))  # seconds
MIN_GEOCODE_INTERVAL_MS = 1000  # Nominatim usage policy: max 1 req/sec

# --- Tiles ---
TILE_URL = os.getenv("TILE_URL", "https://tile.openstreetmap.org/{z}/{x}/{y}.png")
TILE_ATTRIBUTION = os.getenv(
    "TILE_ATTRIBUTION",
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors',
)

# --- Map Defaults ---
DEFAULT_LAT = 0.0
DEFAULT_LONG = 0.0
DEFAULT_ZOOM = 13
DEFAULT_CONTAINER_ID = "map-display-div-id"

# Full-viewport container used when the mapper creates its own page
CONTAINER_STYLE = {
    "position": "absolute",
    "top": "0%",
    "left": "0%",
    "width": "100%",
    "height": "100%",
}

# --- Logging ---
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
