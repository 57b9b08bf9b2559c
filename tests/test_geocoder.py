import requests

from fakes import FakeResponse, FakeSession
from facility_store import Coordinates
from geocoder import NominatimGeocoder, build_query, clean_facility_name


def test_clean_facility_name_strips_prefix_case_insensitive() -> None:
    assert clean_facility_name("CEBA Norte") == "Norte"
    assert clean_facility_name("ceba   José Olaya ") == "José Olaya"
    assert clean_facility_name("Colegio CEBA") == "Colegio CEBA"
    assert clean_facility_name("") == ""


def test_build_query_appends_district_and_country() -> None:
    assert build_query("CEBA Norte", "lima") == "Norte, lima, Perú"
    assert build_query("CEBA Norte", "lima", country="Peru") == "Norte, lima, Peru"


def test_geocode_returns_first_candidate() -> None:
    session = FakeSession(FakeResponse(payload=[{'lat': '-12.05', 'lon': '-77.04'}]))
    geocoder = NominatimGeocoder(session=session, base_url="https://geo.example/search", user_agent="test-agent")

    coords = geocoder.geocode("CEBA Norte", "lima")

    assert coords == Coordinates(-12.05, -77.04)
    call = session.calls[0]
    assert call['url'] == "https://geo.example/search"
    assert call['params'] == {'format': 'json', 'q': "Norte, lima, Perú", 'limit': 1}
    assert call['headers'] == {'User-Agent': "test-agent"}


def test_geocode_no_candidates_is_none() -> None:
    geocoder = NominatimGeocoder(session=FakeSession(FakeResponse(payload=[])))

    assert geocoder.geocode("CEBA Norte", "lima") is None


def test_geocode_errors_are_none() -> None:
    session = FakeSession(
        requests.Timeout("slow"),
        FakeResponse(status_code=503),
        FakeResponse(payload=ValueError("not json")),
        FakeResponse(payload=[{'lat': 'abc', 'lon': '1'}]),
        FakeResponse(payload=[{'display_name': 'no coords'}]),
    )
    geocoder = NominatimGeocoder(session=session)

    for _ in range(5):
        assert geocoder.geocode("CEBA Norte", "lima") is None
    assert len(session.calls) == 5
