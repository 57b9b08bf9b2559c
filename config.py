"""
Configuration settings for the CEBA Mapper application.

Loads environment variables and provides centralized configuration
for the facility feed, the geocoding service, map and logging settings.
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


# Numeric settings whose value could not be parsed, reported by validate()
_invalid_settings = {}


def _get_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        _invalid_settings[name] = raw
        return default


class Config:
    """Application configuration settings."""

    # ============================================================================
    # DATA SOURCES
    # ============================================================================
    FEED_URL = os.getenv(
        'CEBA_FEED_URL',
        'https://docs.google.com/spreadsheets/d/e/2PACX-1vSQADDmts-FWnd3fIM6oLrPVonUMFsyMGojDJjj6Ke3DLqJuU8EvEEzMA1WLXuV4G3KJ4mUDnM-LD5A/pub?output=csv'
    )

    GEOCODER_URL = os.getenv('GEOCODER_URL', 'https://nominatim.openstreetmap.org/search')
    GEOCODER_USER_AGENT = os.getenv('GEOCODER_USER_AGENT', 'ceba-mapper/1.0')

    # Country appended to every geocoding query
    DEFAULT_COUNTRY = "Perú"

    # Nominatim allows at most one request per second
    MIN_PACING_INTERVAL = 1.0
    PACING_INTERVAL = max(_get_float('PACING_INTERVAL', 1.0), MIN_PACING_INTERVAL)

    HTTP_TIMEOUT = _get_float('HTTP_TIMEOUT', 15.0)

    # ============================================================================
    # APPLICATION SETTINGS
    # ============================================================================
    APP_TITLE = "Mapa de CEBAs"
    APP_ICON = "🏫"
    APP_DESCRIPTION = "Busca Centros de Educación Básica Alternativa por distrito"

    # ============================================================================
    # MAP SETTINGS
    # ============================================================================
    # Default map center (Peru)
    DEFAULT_MAP_CENTER = (-9.19, -75.015)
    DEFAULT_MAP_ZOOM = 6

    # Zoom used after a successful district search
    RESULT_ZOOM_LEVEL = 13

    # Zoom used when centering on the user's position
    USER_ZOOM_LEVEL = 12

    MAX_ZOOM = 18
    MAP_TILES = "OpenStreetMap"

    USER_MARKER_LABEL = "Estás aquí"
    USER_MARKER_COLOR = "red"
    FACILITY_MARKER_COLOR = "blue"

    # Optional fixed position of the user (degrees)
    USER_LATITUDE = _get_float('USER_LATITUDE', None)
    USER_LONGITUDE = _get_float('USER_LONGITUDE', None)

    # ============================================================================
    # STATUS COLORS
    # ============================================================================
    STATUS_ERROR_COLOR = '#d63333'
    STATUS_SUCCESS_COLOR = '#28a745'

    # ============================================================================
    # LOGGING SETTINGS
    # ============================================================================
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def validate(cls) -> bool:
        """
        Validate that the configuration is usable.

        Returns:
            True if valid, False otherwise
        """
        valid = True

        for name, raw in _invalid_settings.items():
            print(f"ERROR: {name} must be a number, got {raw!r}")
            valid = False

        for name in ('FEED_URL', 'GEOCODER_URL'):
            url = getattr(cls, name)
            if not url or not url.startswith(('http://', 'https://')):
                print(f"ERROR: {name} must be an http(s) URL, got {url!r}")
                valid = False

        if cls.HTTP_TIMEOUT is None or cls.HTTP_TIMEOUT <= 0:
            print("ERROR: HTTP_TIMEOUT must be a positive number")
            valid = False

        if (cls.USER_LATITUDE is None) != (cls.USER_LONGITUDE is None):
            print("ERROR: USER_LATITUDE and USER_LONGITUDE must be set together")
            valid = False

        return valid

    @classmethod
    def get_user_position(cls) -> Optional[tuple]:
        """
        Get the configured user position.

        Returns:
            (latitude, longitude) tuple, or None if not configured
        """
        if cls.USER_LATITUDE is None or cls.USER_LONGITUDE is None:
            return None
        return (cls.USER_LATITUDE, cls.USER_LONGITUDE)


# Create a singleton config instance
config = Config()


if __name__ == "__main__":
    """Test configuration loading."""
    print("=" * 60)
    print("Configuration Test")
    print("=" * 60)

    print("\nData Sources:")
    print(f"  Feed URL: {Config.FEED_URL}")
    print(f"  Geocoder URL: {Config.GEOCODER_URL}")
    print(f"  User-Agent: {Config.GEOCODER_USER_AGENT}")
    print(f"  Pacing interval: {Config.PACING_INTERVAL}s")

    print("\nMap Settings:")
    print(f"  Default Center: {Config.DEFAULT_MAP_CENTER}")
    print(f"  Result Zoom: {Config.RESULT_ZOOM_LEVEL}")
    print(f"  User Position: {Config.get_user_position()}")

    print("\nValidation:")
    if Config.validate():
        print("  ✓ Configuration is valid")
    else:
        print("  ✗ Configuration is invalid")
