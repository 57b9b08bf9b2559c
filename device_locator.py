"""
User location for the CEBA Mapper.

Looks up the user's position once at startup and places the
"you are here" marker. The position comes from the browser's geolocation
API; a position set in configuration is used until the browser answers
and when it refuses.
"""

import logging
from typing import Any, Callable, Optional

from streamlit_js_eval import get_geolocation

from app_state import AppState
from config import Config
from facility_store import Coordinates
from utils.map_view import MarkerKind
from utils.validation import parse_position

logger = logging.getLogger(__name__)

PositionProvider = Callable[[], Optional[Coordinates]]


class ConfiguredPositionProvider:
    """
    Position taken from configuration (USER_LATITUDE / USER_LONGITUDE).

    Returns None when the position is not configured or out of range.
    """

    def __init__(self, position: Optional[tuple] = None):
        self.position = position if position is not None else Config.get_user_position()

    def __call__(self) -> Optional[Coordinates]:
        parsed = parse_position(self.position)
        if parsed is None:
            return None
        return Coordinates(*parsed)


def parse_browser_position(response: Any) -> Optional[Coordinates]:
    """
    Read coordinates from a browser geolocation answer.

    Args:
        response: {'coords': {'latitude': ..., 'longitude': ...}} on success,
            {'error': {...}} when the user or the browser refused

    Returns:
        Coordinates, or None for errors and malformed answers
    """
    if not isinstance(response, dict):
        return None

    coords = response.get('coords')
    if not isinstance(coords, dict):
        return None

    parsed = parse_position((coords.get('latitude'), coords.get('longitude')))
    if parsed is None:
        return None
    return Coordinates(*parsed)


class BrowserPositionProvider:
    """
    Position reported by the user's browser.

    The browser answers asynchronously: the first script runs get nothing
    back, so poll() has to be called on each run until it returns True.

    Args:
        fetch: Function returning the browser's answer or None while pending
    """

    def __init__(self, fetch: Callable[[], Any] = get_geolocation):
        self.fetch = fetch
        self.answered = False
        self.coords: Optional[Coordinates] = None

    def poll(self) -> bool:
        """Ask the browser once more. True once it has answered."""
        if self.answered:
            return True

        response = self.fetch()
        if response is None:
            return False

        self.answered = True
        self.coords = parse_browser_position(response)
        if self.coords is None:
            logger.warning(f"[Location] Browser did not provide a position: {response!r}")
        return True

    def __call__(self) -> Optional[Coordinates]:
        if not self.poll():
            return None
        return self.coords


def locate_user(state: AppState, provider: Optional[PositionProvider]) -> Optional[Coordinates]:
    """
    Place the user's marker and center the map on it.

    Args:
        state: Application state to update
        provider: Source of the user's position, None if unavailable

    Returns:
        The user's coordinates, or None if they could not be obtained
    """
    if provider is None:
        logger.warning("[Location] Geolocation is not available.")
        return None

    coords = provider()
    if coords is None:
        logger.warning("[Location] Could not get the user's location.")
        return None

    map_view = state.map_view
    for marker in map_view.tagged_markers(MarkerKind.USER_LOCATION):
        map_view.remove_marker(marker.handle)

    state.user_location = coords
    map_view.add_marker(coords, Config.USER_MARKER_LABEL, kind=MarkerKind.USER_LOCATION)
    map_view.set_view(coords, Config.USER_ZOOM_LEVEL)

    logger.info("[Location] User located successfully.")
    return coords
