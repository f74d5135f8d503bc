import os
from typing import List, Tuple

def get_env_float(var: str, default: float) -> float:
    """Read a float environment variable, falling back on blank or bad values."""
    value = os.getenv(var)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise EnvironmentError(f"Environment variable {var} must be a number, got {value!r}")

def get_env_list(var: str, default: str) -> List[str]:
    value = os.getenv(var, default)
    return [part.strip() for part in value.split(",") if part.strip()]

def get_env_center(var: str, default: Tuple[float, float]) -> Tuple[float, float]:
    value = os.getenv(var)
    if not value:
        return default
    parts = get_env_list(var, "")
    if len(parts) != 2:
        raise EnvironmentError(f"Environment variable {var} must look like 'lat,lng', got {value!r}")
    return float(parts[0]), float(parts[1])

class Config:
    # Proxy chain
    PROXY_ORDER = get_env_list("LOCATOR_PROXY_ORDER", "allorigins,corsproxy,cors_anywhere")
    PROXY_TIMEOUT_SEC = get_env_float("LOCATOR_PROXY_TIMEOUT_SEC", 10.0)

    # Upstream geocoder
    GEOCODER_URL = os.getenv("LOCATOR_GEOCODER_URL", "https://nominatim.openstreetmap.org/search")
    GEOCODER_USER_AGENT = os.getenv("LOCATOR_USER_AGENT", "landmark-locator/1.0")
    SEARCH_REGION = os.getenv("LOCATOR_SEARCH_REGION", "India")
    CITY_REGION = os.getenv("LOCATOR_CITY_REGION", "Haryana, India")
    CITY_TIMEOUT_SEC = get_env_float("LOCATOR_CITY_TIMEOUT_SEC", 8.0)
    SEARCH_LIMIT = int(get_env_float("LOCATOR_SEARCH_LIMIT", 5))

    # Short-URL expansion
    EXPAND_TIMEOUT_SEC = get_env_float("LOCATOR_EXPAND_TIMEOUT_SEC", 10.0)
    MAP_LINK_HOSTS = get_env_list("LOCATOR_MAP_LINK_HOSTS", "google.com,maps.app.goo.gl,goo.gl")

    # Live search
    DEBOUNCE_MS = get_env_float("LOCATOR_DEBOUNCE_MS", 500.0)
    MIN_QUERY_LENGTH = int(get_env_float("LOCATOR_MIN_QUERY_LENGTH", 2))

    # Map defaults
    DEFAULT_CITY = os.getenv("LOCATOR_DEFAULT_CITY", "Panipat")
    DEFAULT_CENTER = get_env_center("LOCATOR_DEFAULT_CENTER", (29.3909, 76.9635))

    # Local settings (map view preference)
    SETTINGS_PATH = os.getenv("LOCATOR_SETTINGS_PATH", os.path.join(os.path.expanduser("~"), ".landmark-locator.json"))

    LOG_LEVEL = os.getenv("LOCATOR_LOG_LEVEL", "INFO")

CFG = Config()
