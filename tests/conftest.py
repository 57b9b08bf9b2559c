import pytest

from app_state import AppState
from facility_store import Coordinates, FacilityRecord
from fakes import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def loaded_state():
    state = AppState()
    state.store.replace([
        FacilityRecord(name="CEBA Norte", district="lima"),
        FacilityRecord(name="CEBA Sur", district="callao"),
        FacilityRecord(name="CEBA Este", district="lima este"),
    ])
    return state


@pytest.fixture
def lima():
    return Coordinates(-12.0464, -77.0428)
