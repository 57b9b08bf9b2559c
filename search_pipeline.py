"""
District search for the CEBA Mapper.

This module handles:
- Validating the district typed by the user
- Filtering the record store by district (case-insensitive substring)
- Geocoding the matches one at a time with a fixed pause between lookups
- Replacing the previous search results on the map
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional, Sequence

from app_state import AppState
from config import Config
from errors import InputMissing, NoMatches, NoneGeocoded, StoreNotReady
from facility_store import Coordinates, FacilityRecord, RecordStore
from utils.geo_utils import calculate_distance
from utils.validation import normalize_district_input

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    FILTERING = "filtering"
    GEOCODING = "geocoding"
    DONE = "done"


class SearchStatus(Enum):
    SEARCHING = "searching"
    INPUT_MISSING = "input_missing"
    STORE_NOT_READY = "store_not_ready"
    NO_MATCHES = "no_matches"
    NONE_GEOCODED = "none_geocoded"
    SUCCESS = "success"
    SEARCH_IN_PROGRESS = "search_in_progress"


STATUS_MESSAGES = {
    SearchStatus.SEARCHING: "⏳ Buscando CEBAs en el distrito...",
    SearchStatus.INPUT_MISSING: "⚠️ Por favor, ingresa un distrito.",
    SearchStatus.STORE_NOT_READY: "⚠️ La base de datos aún no está cargada.",
    SearchStatus.NO_MATCHES: "⚠️ No se encontraron CEBAs para ese distrito.",
    SearchStatus.NONE_GEOCODED: "⚠️ No se pudo ubicar ningún CEBA en ese distrito.",
    SearchStatus.SUCCESS: "✅ Se encontraron {count} CEBAs en el distrito.",
    SearchStatus.SEARCH_IN_PROGRESS: "⏳ Ya hay una búsqueda en curso.",
}


def status_message(status: SearchStatus, count: int = 0) -> str:
    return STATUS_MESSAGES[status].format(count=count)


def status_color(status: SearchStatus) -> str:
    if status is SearchStatus.SUCCESS:
        return Config.STATUS_SUCCESS_COLOR
    return Config.STATUS_ERROR_COLOR


@dataclass
class SearchResult:
    """One geocoding attempt. coords is None when the lookup failed."""
    record: FacilityRecord
    coords: Optional[Coordinates] = None
    distance_km: Optional[float] = None

    @property
    def located(self) -> bool:
        return self.coords is not None


@dataclass
class SearchReport:
    status: SearchStatus
    query: str = ""
    matches: List[FacilityRecord] = field(default_factory=list)
    results: List[SearchResult] = field(default_factory=list)
    first_location: Optional[Coordinates] = None
    # States the pipeline went through, ending with the one it stopped in
    states: List[PipelineState] = field(default_factory=list)

    @property
    def located(self) -> int:
        return sum(1 for r in self.results if r.located)

    @property
    def message(self) -> str:
        return status_message(self.status, self.located)

    @property
    def color(self) -> str:
        return status_color(self.status)


def validate_search(raw_input: Optional[str], store: RecordStore) -> str:
    """
    Check that a search can run.

    Returns:
        The normalized (trimmed, lowercase) district query

    Raises:
        InputMissing: If the input is empty after trimming
        StoreNotReady: If the facility feed has not been loaded
    """
    query = normalize_district_input(raw_input)
    if not query:
        raise InputMissing("No district was entered")

    if not store.is_ready():
        raise StoreNotReady(f"Facility data not available (state: {store.state.value})")

    return query


def filter_by_district(records: Iterable[FacilityRecord], query: str) -> List[FacilityRecord]:
    """
    Select records whose district contains the query.

    Matching is a case-insensitive substring test, so "lima" matches
    "lima este". Feed order is preserved.
    """
    needle = query.lower()
    return [record for record in records if needle in record.district]


def ensure_matches(matches: Sequence[FacilityRecord], query: str) -> None:
    """Raise NoMatches if the district filter came back empty."""
    if not matches:
        raise NoMatches(query)


class PacedScheduler:
    """
    Hands out items one at a time with a fixed pause between them.

    The pause happens before every item except the first, so a consumer
    doing one request per item never issues two requests closer together
    than the interval.

    Args:
        interval: Pause in seconds
        sleep: Function used to wait, time.sleep by default
    """

    def __init__(self, interval: Optional[float] = None, sleep: Callable[[float], None] = time.sleep):
        self.interval = Config.PACING_INTERVAL if interval is None else interval
        self.sleep = sleep

    def pace(self, items: Iterable) -> Iterator:
        first = True
        for item in items:
            if not first and self.interval > 0:
                self.sleep(self.interval)
            first = False
            yield item


def iter_geocode(
    matches: Sequence[FacilityRecord],
    geocoder,
    scheduler: Optional[PacedScheduler] = None
) -> Iterator[SearchResult]:
    """
    Geocode matches in order, yielding after each attempt.

    A failed lookup yields a result without coordinates and processing
    continues with the next record.
    """
    scheduler = scheduler or PacedScheduler()
    for record in scheduler.pace(matches):
        coords = geocoder.geocode(record.name, record.district)
        yield SearchResult(record=record, coords=coords)


ProgressCallback = Callable[[int, int, SearchResult], None]


class SearchPipeline:
    """
    Runs district searches against the application state.

    Only one search runs at a time: a search started while another is in
    flight is rejected with SEARCH_IN_PROGRESS and leaves the map alone.

    Args:
        state: Application state holding the record store and map
        geocoder: Object with geocode(name, district) -> Optional[Coordinates]
        scheduler: Pacing policy for geocoding requests
    """

    def __init__(self, state: AppState, geocoder, scheduler: Optional[PacedScheduler] = None):
        self.app_state = state
        self.geocoder = geocoder
        self.scheduler = scheduler or PacedScheduler()
        self.state = PipelineState.IDLE
        self._trail: List[PipelineState] = []
        self._busy = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    def run(self, raw_input: Optional[str], on_progress: Optional[ProgressCallback] = None) -> SearchReport:
        """
        Search facilities by district and plot the ones that can be located.

        Args:
            raw_input: District as typed by the user
            on_progress: Called after each geocoding attempt with
                (index, total, result), index starting at 1

        Returns:
            SearchReport describing the outcome
        """
        if not self._busy.acquire(blocking=False):
            logger.warning("Search rejected: another search is in progress")
            return SearchReport(status=SearchStatus.SEARCH_IN_PROGRESS)

        self._trail = []
        try:
            report = self._run(raw_input, on_progress)
            report.states = list(self._trail)
            return report
        finally:
            self.state = PipelineState.IDLE
            self._busy.release()

    def _run(self, raw_input: Optional[str], on_progress: Optional[ProgressCallback]) -> SearchReport:
        logger.info("[Step 2] Starting search...")
        self._enter(PipelineState.VALIDATING)

        try:
            query = validate_search(raw_input, self.app_state.store)
        except InputMissing:
            logger.warning("[Step 2] No district was entered.")
            return SearchReport(status=SearchStatus.INPUT_MISSING)
        except StoreNotReady as e:
            logger.warning(f"[Step 2] {e}")
            return SearchReport(status=SearchStatus.STORE_NOT_READY, query=normalize_district_input(raw_input))

        logger.info(f"[Step 2] District input received: \"{query}\"")

        self._enter(PipelineState.FILTERING)
        logger.info("[Step 3] Searching for matches...")
        matches = filter_by_district(self.app_state.store.records, query)
        logger.info(f"[Step 3] CEBAs found for district \"{query}\": {len(matches)}")

        self.app_state.map_view.clear_results()

        try:
            ensure_matches(matches, query)
        except NoMatches as e:
            logger.warning(f"[Step 3] {e}")
            self._enter(PipelineState.DONE)
            return SearchReport(status=SearchStatus.NO_MATCHES, query=query)

        report = SearchReport(status=SearchStatus.SEARCHING, query=query, matches=matches)
        self._enter(PipelineState.GEOCODING)
        logger.info("[Step 4] Geocoding matches...")

        total = len(matches)
        for index, result in enumerate(iter_geocode(matches, self.geocoder, self.scheduler), start=1):
            if result.located:
                self._place(result)
                if report.first_location is None:
                    report.first_location = result.coords
            report.results.append(result)
            if on_progress is not None:
                on_progress(index, total, result)

        self._enter(PipelineState.DONE)
        try:
            self._finish(report)
        except NoneGeocoded as e:
            logger.warning(f"[Step 5] {e}")
            report.status = SearchStatus.NONE_GEOCODED

        logger.info("[Step 6] Search finished.")
        return report

    def _enter(self, state: PipelineState) -> None:
        self.state = state
        self._trail.append(state)

    def _place(self, result: SearchResult) -> None:
        record = result.record
        label = f"{record.name}, {record.district}"
        self.app_state.map_view.add_marker(result.coords, label)

        user_location = self.app_state.user_location
        if user_location is not None:
            result.distance_km = calculate_distance(user_location.as_tuple(), result.coords.as_tuple())

    def _finish(self, report: SearchReport) -> None:
        if report.first_location is None:
            raise NoneGeocoded(f"None of the {len(report.matches)} CEBAs could be located")

        self.app_state.map_view.set_view(report.first_location, Config.RESULT_ZOOM_LEVEL)
        report.status = SearchStatus.SUCCESS
        logger.info(f"[Step 5] {report.located} CEBAs were geocoded and shown on the map.")
