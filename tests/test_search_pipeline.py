from app_state import AppState
from facility_store import Coordinates, FacilityRecord
from feed_loader import parse_feed
from geocoder import NominatimGeocoder
from search_pipeline import (
    PacedScheduler,
    PipelineState,
    SearchPipeline,
    SearchStatus,
    filter_by_district,
    iter_geocode,
    status_message,
)
from utils.map_view import MarkerKind
from fakes import FakeGeocoder, FakeResponse, FakeSession


def make_pipeline(state, geocoder, clock):
    return SearchPipeline(state, geocoder, PacedScheduler(interval=1.0, sleep=clock.sleep))


def test_filter_is_case_insensitive_substring() -> None:
    records = [
        FacilityRecord(name="A", district="lima este"),
        FacilityRecord(name="B", district="callao"),
        FacilityRecord(name="C", district="lima"),
    ]

    assert [r.name for r in filter_by_district(records, "Lima")] == ["A", "C"]
    assert filter_by_district(records, "lim a") == []


def test_paced_scheduler_waits_between_items_only(clock) -> None:
    scheduler = PacedScheduler(interval=1.0, sleep=clock.sleep)

    assert list(scheduler.pace(["a", "b", "c"])) == ["a", "b", "c"]
    assert clock.sleeps == [1.0, 1.0]
    assert list(scheduler.pace([])) == []


def test_iter_geocode_one_lookup_per_match_in_order_and_spaced(loaded_state, clock, lima) -> None:
    matches = list(loaded_state.store.records)
    geocoder = FakeGeocoder({"CEBA Norte": lima}, clock=clock)

    results = list(iter_geocode(matches, geocoder, PacedScheduler(interval=1.0, sleep=clock.sleep)))

    assert [name for name, _, _ in geocoder.calls] == ["CEBA Norte", "CEBA Sur", "CEBA Este"]
    times = [t for _, _, t in geocoder.calls]
    assert all(later - earlier >= 1.0 for earlier, later in zip(times, times[1:]))
    assert [r.located for r in results] == [True, False, False]


def test_single_match_issues_one_composed_query(clock) -> None:
    state = AppState()
    state.store.replace(parse_feed("nombre,distrito\nCEBA Norte, Lima\nCEBA Sur, Callao").records)
    session = FakeSession(FakeResponse(payload=[{'lat': '-12.0', 'lon': '-77.0'}]))
    pipeline = make_pipeline(state, NominatimGeocoder(session=session), clock)

    report = pipeline.run("lima")

    assert [r.name for r in report.matches] == ["CEBA Norte"]
    assert [c['params']['q'] for c in session.calls] == ["Norte, lima, Perú"]
    assert report.status is SearchStatus.SUCCESS
    assert clock.sleeps == []


def test_empty_store_is_not_ready(clock) -> None:
    state = AppState()
    geocoder = FakeGeocoder()
    pipeline = make_pipeline(state, geocoder, clock)

    report = pipeline.run("lima")

    assert report.status is SearchStatus.STORE_NOT_READY
    assert report.message == "⚠️ La base de datos aún no está cargada."
    assert geocoder.calls == []
    assert pipeline.state is PipelineState.IDLE


def test_empty_input_stops_before_store_check(loaded_state, clock, lima) -> None:
    loaded_state.map_view.add_marker(lima, "CEBA Viejo, lima")
    geocoder = FakeGeocoder()

    report = make_pipeline(loaded_state, geocoder, clock).run("   ")

    assert report.status is SearchStatus.INPUT_MISSING
    assert report.message == "⚠️ Por favor, ingresa un distrito."
    assert geocoder.calls == []
    assert len(loaded_state.map_view.tagged_markers()) == 1

    report = make_pipeline(AppState(), geocoder, clock).run("")
    assert report.status is SearchStatus.INPUT_MISSING


def test_no_matches_clears_results_but_keeps_user_marker(loaded_state, clock, lima) -> None:
    map_view = loaded_state.map_view
    map_view.add_marker(lima, "Estás aquí", kind=MarkerKind.USER_LOCATION)
    map_view.add_marker(lima, "CEBA Viejo, lima")
    geocoder = FakeGeocoder()

    report = make_pipeline(loaded_state, geocoder, clock).run("Arequipa")

    assert report.status is SearchStatus.NO_MATCHES
    assert report.message == "⚠️ No se encontraron CEBAs para ese distrito."
    assert geocoder.calls == []
    assert [label for _, label in map_view.list_markers()] == ["Estás aquí"]


def test_failed_lookup_does_not_stop_the_rest(loaded_state, clock) -> None:
    second = Coordinates(-12.03, -76.93)
    geocoder = FakeGeocoder({"CEBA Este": second}, clock=clock)

    report = make_pipeline(loaded_state, geocoder, clock).run("lima")

    assert [name for name, _, _ in geocoder.calls] == ["CEBA Norte", "CEBA Este"]
    assert report.status is SearchStatus.SUCCESS
    assert report.located == 1
    assert report.first_location == second
    assert report.message == "✅ Se encontraron 1 CEBAs en el distrito."
    assert loaded_state.map_view.center == second
    assert loaded_state.map_view.zoom == 13
    assert [label for _, label in loaded_state.map_view.list_markers()] == ["CEBA Este, lima este"]


def test_first_success_sets_camera(loaded_state, clock, lima) -> None:
    other = Coordinates(-12.03, -76.93)
    geocoder = FakeGeocoder({"CEBA Norte": lima, "CEBA Este": other})

    report = make_pipeline(loaded_state, geocoder, clock).run("LIMA")

    assert report.located == 2
    assert loaded_state.map_view.center == lima
    assert clock.sleeps == [1.0]


def test_nothing_located(loaded_state, clock) -> None:
    report = make_pipeline(loaded_state, FakeGeocoder(), clock).run("lima")

    assert report.status is SearchStatus.NONE_GEOCODED
    assert report.message == "⚠️ No se pudo ubicar ningún CEBA en ese distrito."
    assert len(report.results) == 2
    assert loaded_state.map_view.tagged_markers() == []


def test_new_search_replaces_previous_results(loaded_state, clock, lima) -> None:
    geocoder = FakeGeocoder({"CEBA Norte": lima, "CEBA Sur": lima, "CEBA Este": lima})
    pipeline = make_pipeline(loaded_state, geocoder, clock)

    pipeline.run("lima")
    pipeline.run("callao")

    assert [label for _, label in loaded_state.map_view.list_markers()] == ["CEBA Sur, callao"]


def test_overlapping_search_is_rejected(loaded_state, clock, lima) -> None:
    geocoder = FakeGeocoder({"CEBA Norte": lima})
    pipeline = make_pipeline(loaded_state, geocoder, clock)
    nested = []

    def search_again(index, total, result):
        nested.append(pipeline.run("callao"))

    report = pipeline.run("lima", on_progress=search_again)

    assert [r.status for r in nested] == [SearchStatus.SEARCH_IN_PROGRESS] * 2
    assert report.status is SearchStatus.SUCCESS
    assert [name for name, _, _ in geocoder.calls] == ["CEBA Norte", "CEBA Este"]
    assert not pipeline.busy


def test_results_carry_distance_from_user(loaded_state, clock, lima) -> None:
    loaded_state.user_location = Coordinates(-12.0464, -77.0428)
    geocoder = FakeGeocoder({"CEBA Sur": Coordinates(-12.0566, -77.1181)})

    report = make_pipeline(loaded_state, geocoder, clock).run("callao")

    assert report.results[0].distance_km is not None
    assert 7.0 < report.results[0].distance_km < 9.0


def test_status_messages_are_distinct() -> None:
    messages = {status_message(status) for status in SearchStatus}

    assert len(messages) == len(SearchStatus)


def test_district_with_extra_spaces_is_found(clock, lima) -> None:
    state = AppState()
    state.store.replace(parse_feed("nombre,distrito\nCEBA X,san  juan").records)
    geocoder = FakeGeocoder({"CEBA X": lima})

    report = make_pipeline(state, geocoder, clock).run("san  juan")

    assert report.status is SearchStatus.SUCCESS
    assert [r.name for r in report.matches] == ["CEBA X"]


def test_report_records_state_sequence(loaded_state, clock, lima) -> None:
    pipeline = make_pipeline(loaded_state, FakeGeocoder({"CEBA Norte": lima}), clock)
    seen = []

    report = pipeline.run("lima", on_progress=lambda index, total, result: seen.append(pipeline.state))

    assert report.states == [
        PipelineState.VALIDATING,
        PipelineState.FILTERING,
        PipelineState.GEOCODING,
        PipelineState.DONE,
    ]
    assert seen == [PipelineState.GEOCODING, PipelineState.GEOCODING]
    assert pipeline.state is PipelineState.IDLE

    assert pipeline.run("").states == [PipelineState.VALIDATING]
    assert pipeline.run("arequipa").states == [
        PipelineState.VALIDATING,
        PipelineState.FILTERING,
        PipelineState.DONE,
    ]
