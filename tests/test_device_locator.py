from app_state import AppState
from device_locator import (
    BrowserPositionProvider,
    ConfiguredPositionProvider,
    locate_user,
    parse_browser_position,
)
from facility_store import Coordinates
from utils.map_view import MarkerKind


def test_locate_user_places_marker_and_recenters() -> None:
    state = AppState()
    here = Coordinates(-12.0464, -77.0428)

    assert locate_user(state, lambda: here) == here

    assert state.user_location == here
    markers = state.map_view.tagged_markers()
    assert [(m.kind, m.label) for m in markers] == [(MarkerKind.USER_LOCATION, "Estás aquí")]
    assert (state.map_view.center, state.map_view.zoom) == (here, 12)


def test_locate_user_without_position_leaves_map_unchanged() -> None:
    state = AppState()

    assert locate_user(state, lambda: None) is None
    assert locate_user(state, None) is None

    assert state.user_location is None
    assert state.map_view.tagged_markers() == []
    assert state.map_view.zoom == 6


def test_locate_user_twice_keeps_one_marker() -> None:
    state = AppState()
    locate_user(state, lambda: Coordinates(-12.0, -77.0))
    locate_user(state, lambda: Coordinates(-13.0, -76.0))

    assert len(state.map_view.tagged_markers(MarkerKind.USER_LOCATION)) == 1
    assert state.user_location == Coordinates(-13.0, -76.0)


def test_configured_position_provider() -> None:
    assert ConfiguredPositionProvider(("-12.5", "-77"))() == Coordinates(-12.5, -77.0)
    assert ConfiguredPositionProvider((95.0, 0.0))() is None
    assert ConfiguredPositionProvider(("abc", 1))() is None


def test_browser_position_is_polled_until_answered() -> None:
    answers = [None, None, {'coords': {'latitude': -12.0464, 'longitude': -77.0428}, 'timestamp': 1}]
    provider = BrowserPositionProvider(fetch=lambda: answers.pop(0))
    state = AppState()

    assert not provider.poll()
    assert locate_user(state, provider) is None
    assert state.map_view.tagged_markers() == []

    here = locate_user(state, provider)

    assert here == Coordinates(-12.0464, -77.0428)
    assert provider.answered
    assert [m.label for m in state.map_view.tagged_markers(MarkerKind.USER_LOCATION)] == ["Estás aquí"]
    assert state.map_view.zoom == 12
    # Answered: no further requests to the browser
    assert provider.poll()
    assert answers == []


def test_browser_refusal_keeps_configured_position() -> None:
    state = AppState()
    locate_user(state, ConfiguredPositionProvider((-12.5, -77.0)))
    provider = BrowserPositionProvider(fetch=lambda: {'error': {'code': 1, 'message': 'User denied Geolocation'}})

    assert provider.poll()
    assert provider.coords is None
    assert locate_user(state, provider) is None
    assert state.user_location == Coordinates(-12.5, -77.0)
    assert len(state.map_view.tagged_markers(MarkerKind.USER_LOCATION)) == 1


def test_parse_browser_position() -> None:
    assert parse_browser_position({'coords': {'latitude': 1.5, 'longitude': 2.5}}) == Coordinates(1.5, 2.5)
    assert parse_browser_position({'coords': {'latitude': 100, 'longitude': 0}}) is None
    assert parse_browser_position({'coords': None}) is None
    assert parse_browser_position("denied") is None
