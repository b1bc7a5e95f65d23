import os
from dotenv import load_dotenv

load_dotenv()


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


GOOGLE_PLACES_API_KEY = os.getenv("GOOGLE_PLACES_API_KEY", "")

# --- API ---
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:8000,http://localhost:3000").split(",")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# --- Places search (Places API v1, searchNearby) ---
PLACES_SEARCH_URL = "https://places.googleapis.com/v1/places:searchNearby"
PLACES_FIELD_MASK = "places.id,places.displayName,places.formattedAddress,places.location"
SEARCH_RADIUS_M = 1200.0
MAX_RESULT_COUNT = 12
LANGUAGE_CODE = os.getenv("LANGUAGE_CODE", "en")
PLACES_TIMEOUT_S = 8.0

# Filter selected when nothing else has been chosen
DEFAULT_FILTER = os.getenv("DEFAULT_FILTER", "poi")

# --- Snapshot (last known state) ---
SNAPSHOT_DB_PATH = os.getenv("SNAPSHOT_DB_PATH", "snapshot.db")

# --- Reverse geocoding (OpenStreetMap Nominatim) ---
REVERSE_GEOCODE_ENABLED = _as_bool(os.getenv("REVERSE_GEOCODE_ENABLED"), True)
NOMINATIM_REVERSE_URL = os.getenv("NOMINATIM_REVERSE_URL", "https://nominatim.openstreetmap.org/reverse")
NOMINATIM_USER_AGENT = os.getenv("NOMINATIM_USER_AGENT", "where-nearby/1.0 (contact: example@example.com)")
GEOCODE_TIMEOUT_S = 5.0

# --- Emergency ---
EMERGENCY_NUMBERS = ("999", "112", "911")
MAPS_LINK_BASE = "https://maps.google.com/?q="
