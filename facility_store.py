"""
In-memory facility records for the CEBA Mapper.

Holds the records parsed from the facility feed together with an explicit
load state, so searches can tell "not loaded yet" apart from "loaded but
nothing matched".
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FacilityRecord:
    """A single CEBA from the feed. District is stored lowercase."""
    name: str
    district: str


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


class LoadState(Enum):
    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class RecordStore:
    """
    Ordered list of facility records plus the state of the feed load.

    Only the feed loader changes the contents; everything else reads.
    """

    def __init__(self):
        self._records: List[FacilityRecord] = []
        self.state = LoadState.NOT_LOADED
        self.error = None

    @property
    def records(self) -> Tuple[FacilityRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def is_ready(self) -> bool:
        """True once the feed loaded and produced at least one record."""
        return self.state is LoadState.LOADED and bool(self._records)

    def mark_loading(self) -> None:
        self.state = LoadState.LOADING
        self.error = None

    def replace(self, records: Iterable[FacilityRecord]) -> None:
        self._records = list(records)
        self.state = LoadState.LOADED
        self.error = None
        logger.info(f"Record store holds {len(self._records)} facilities")

    def mark_failed(self, error: Exception) -> None:
        self._records = []
        self.state = LoadState.FAILED
        self.error = error
