"""
Geometry utilities for the CEBA Mapper.

Distance between the user and located facilities.
"""

from math import radians, sin, cos, sqrt, atan2
from typing import Tuple

# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0

def calculate_distance(
    point1: Tuple[float, float],
    point2: Tuple[float, float]
) -> float:
    """
    Calculate distance between two points in kilometers using Haversine formula.

    Args:
        point1: (latitude, longitude) tuple
        point2: (latitude, longitude) tuple

    Returns:
        Distance in kilometers, rounded to 2 decimals
    """
    lat1, lon1 = point1
    lat2, lon2 = point2

    lat1_rad = radians(lat1)
    lat2_rad = radians(lat2)

    # Haversine formula
    dlat = lat2_rad - lat1_rad
    dlon = radians(lon2 - lon1)

    a = sin(dlat / 2)**2 + cos(lat1_rad) * cos(lat2_rad) * sin(dlon / 2)**2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return round(EARTH_RADIUS_KM * c, 2)
