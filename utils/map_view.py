"""
Map state for the CEBA Mapper.

Keeps the markers and camera position independent of the rendering
library. Markers carry an explicit kind so search results can be cleared
without touching the user's own location marker. Rendering to folium
lives in map_builder.
"""

import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from config import Config
from facility_store import Coordinates

logger = logging.getLogger(__name__)


class MarkerKind(Enum):
    USER_LOCATION = "user_location"
    FACILITY_RESULT = "facility_result"


@dataclass(frozen=True)
class TaggedMarker:
    handle: int
    kind: MarkerKind
    label: str
    coords: Coordinates


class MapView:
    """
    Marker set and camera of the facility map.

    Args:
        center: Initial camera center, defaults to Config.DEFAULT_MAP_CENTER
        zoom: Initial zoom level, defaults to Config.DEFAULT_MAP_ZOOM
    """

    def __init__(self, center: Optional[Coordinates] = None, zoom: Optional[int] = None):
        if center is None:
            center = Coordinates(*Config.DEFAULT_MAP_CENTER)
        if zoom is None:
            zoom = Config.DEFAULT_MAP_ZOOM

        self.center = center
        self.zoom = zoom
        self._markers: Dict[int, TaggedMarker] = {}
        self._handles = itertools.count(1)

    def add_marker(
        self,
        coords: Coordinates,
        label: str,
        kind: MarkerKind = MarkerKind.FACILITY_RESULT
    ) -> int:
        """Place a marker and return its handle."""
        handle = next(self._handles)
        self._markers[handle] = TaggedMarker(handle=handle, kind=kind, label=label, coords=coords)
        return handle

    def remove_marker(self, handle: int) -> None:
        """Remove a marker. Unknown handles are ignored."""
        self._markers.pop(handle, None)

    def set_view(self, coords: Coordinates, zoom: int) -> None:
        self.center = coords
        self.zoom = zoom

    def list_markers(self) -> Iterator[Tuple[int, str]]:
        """Yield (handle, label) pairs in placement order."""
        for marker in list(self._markers.values()):
            yield marker.handle, marker.label

    def tagged_markers(self, kind: Optional[MarkerKind] = None) -> List[TaggedMarker]:
        """Markers in placement order, optionally limited to one kind."""
        return [m for m in self._markers.values() if kind is None or m.kind is kind]

    def clear_results(self) -> int:
        """
        Remove every facility result marker, keeping the user's location.

        Returns:
            Number of markers removed
        """
        results = self.tagged_markers(MarkerKind.FACILITY_RESULT)
        for marker in results:
            self.remove_marker(marker.handle)

        if results:
            logger.info(f"Cleared {len(results)} previous result markers")
        return len(results)
