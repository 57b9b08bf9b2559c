"""
Application state for the CEBA Mapper.

One explicit object replaces the module-level facility list and user
location: it is created once per session, handed to the search pipeline
and the map, and only the feed loader writes the record store.
"""

from dataclasses import dataclass, field
from typing import Optional

from facility_store import Coordinates, RecordStore
from utils.map_view import MapView


@dataclass
class AppState:
    store: RecordStore = field(default_factory=RecordStore)
    map_view: MapView = field(default_factory=MapView)
    user_location: Optional[Coordinates] = None
