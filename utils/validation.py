"""
Input validation utilities for the CEBA Mapper.

Provides functions to normalize the district typed by the user and to
check coordinates coming from configuration or the geocoder.
"""

import re
from typing import Any, Optional, Tuple

def normalize_district_input(text: Optional[str]) -> str:
    """
    Normalize a district search input.

    Trims, collapses inner whitespace and lowercases, so it can be
    compared against the lowercase districts of the record store.

    Args:
        text: Raw user input

    Returns:
        Normalized query, empty string when nothing usable was given
    """
    if not text or not isinstance(text, str):
        return ""

    # Replace multiple spaces with single space
    text = re.sub(r'\s+', ' ', text.strip())

    return text.lower()

def sanitize_input(text: str) -> str:
    """
    Sanitize user input for display, e.g. "  san   juan " -> "San Juan".

    Args:
        text: Input text to sanitize

    Returns:
        Sanitized text
    """
    if not text or not isinstance(text, str):
        return ""

    text = re.sub(r'\s+', ' ', text.strip())

    return text.title()

def validate_coordinates(lat: Any, lon: Any) -> bool:
    """
    Validate that latitude and longitude are valid coordinates.

    Args:
        lat: Latitude
        lon: Longitude

    Returns:
        True if valid, False otherwise
    """
    if isinstance(lat, bool) or isinstance(lon, bool):
        return False

    if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
        return False

    # Check latitude range
    if lat < -90 or lat > 90:
        return False

    # Check longitude range
    if lon < -180 or lon > 180:
        return False

    return True

def parse_position(position: Any) -> Optional[Tuple[float, float]]:
    """
    Turn a (lat, lon) pair into floats if it is a valid position.

    Returns:
        (latitude, longitude) tuple, or None if missing or invalid
    """
    if not position or len(position) != 2:
        return None

    try:
        lat, lon = float(position[0]), float(position[1])
    except (TypeError, ValueError):
        return None

    if not validate_coordinates(lat, lon):
        return None

    return (lat, lon)
