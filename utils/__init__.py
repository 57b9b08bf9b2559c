"""
Utility functions for the CEBA Mapper.

This package contains helper modules for:
- Input validation
- Distance calculations
- Map state and Folium rendering
- Logging setup
"""

from .validation import (
    normalize_district_input,
    sanitize_input,
    validate_coordinates,
    parse_position
)

from .geo_utils import (
    calculate_distance
)

from .map_view import (
    MapView,
    MarkerKind,
    TaggedMarker
)

from .map_builder import (
    create_base_map,
    add_markers_to_map,
    create_full_map
)

__all__ = [
    # Validation
    'normalize_district_input',
    'sanitize_input',
    'validate_coordinates',
    'parse_position',

    # Geo utilities
    'calculate_distance',

    # Map state
    'MapView',
    'MarkerKind',
    'TaggedMarker',

    # Map building
    'create_base_map',
    'add_markers_to_map',
    'create_full_map',
]
