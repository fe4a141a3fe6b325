from datetime import date, time, timedelta

import pytest
from fastapi.testclient import TestClient

from slotfinder.config import Settings
from slotfinder.errors import ConfigurationError, UpstreamStoreError
from slotfinder.main import SlotServices, create_app
from slotfinder.models.domain import Location, WorkingWindow
from slotfinder.persistence.stores import InMemoryAppointmentStore, InMemoryWorkingHoursSource
from slotfinder.services.routing.cache import DriveTimeCache
from slotfinder.services.routing.estimator import DriveTimeEstimator
from slotfinder.services.slots.service import SlotFinder
from slotfinder.services.slots.validator import SlotValidator

DAY_1 = date(2026, 3, 9)
HOME = Location(latitude=55.7956, longitude=-3.7939)


class DummyRouting:
    name = "dummy"

    async def duration_seconds(self, origin, destination):
        return 600.0


class BrokenAppointmentStore:
    async def list_confirmed_appointments(self, day):
        raise UpstreamStoreError("appointments table unreachable")


def _config(**overrides) -> Settings:
    values = {"google_maps_api_key": None, "osrm_base_url": None, "frontend_allowed_origins": ()}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _services(store=None) -> SlotServices:
    windows = [WorkingWindow(date=DAY_1 + timedelta(days=i), start_time=time(9, 0), end_time=time(17, 0)) for i in range(3)]
    estimator = DriveTimeEstimator([DummyRouting()], DriveTimeCache())
    finder = SlotFinder(
        InMemoryWorkingHoursSource(windows),
        store or InMemoryAppointmentStore(),
        SlotValidator(estimator, home_base=HOME),
        config=_config(),
        today=lambda: DAY_1,
    )
    return SlotServices(slot_finder=finder, estimator=estimator)


@pytest.fixture
def api_client():
    with TestClient(create_app(_config(), services=_services())) as client:
        yield client


def test_health(api_client: TestClient):
    assert api_client.get("/api/health").json() == {"status": "ok"}

    routing = api_client.get("/api/health/routing").json()
    assert routing["configured"] is True
    assert routing["providers"] == ["dummy"]


def test_available_slots_endpoint(api_client: TestClient):
    response = api_client.post("/api/slots/available", json={"lat": 55.8, "lng": -3.8, "duration_mins": 60})

    assert response.status_code == 200
    payload = response.json()
    assert len(payload["featured_slots"]) == 5
    assert sorted(payload["all_slots"]) == ["2026-03-09", "2026-03-10", "2026-03-11"]
    first = payload["all_slots"]["2026-03-09"][0]
    assert first["start_time"] == "09:15"
    assert first["end_time"] == "10:15"
    assert first["score"] == 20.0


def test_available_slots_rejects_bad_duration(api_client: TestClient):
    response = api_client.post("/api/slots/available", json={"lat": 55.8, "lng": -3.8, "duration_mins": 20})

    assert response.status_code == 422


def test_preferred_slots_endpoint(api_client: TestClient):
    response = api_client.post(
        "/api/slots/preferred",
        json={
            "lat": 55.8,
            "lng": -3.8,
            "duration_mins": 60,
            "preferred_date": "2026-03-09",
            "preferred_window": "afternoon",
        },
    )

    assert response.status_code == 200
    slots = response.json()["slots"]
    assert len(slots) == 3
    assert slots[0]["start_time"] == "12:00"


def test_available_dates_endpoint(api_client: TestClient):
    response = api_client.post(
        "/api/slots/dates",
        json={"lat": 55.8, "lng": -3.8, "duration_mins": 60, "preferred_window": "morning", "days_ahead": 5},
    )

    assert response.status_code == 200
    assert response.json()["available_dates"] == ["2026-03-09", "2026-03-10", "2026-03-11"]


def test_store_failure_maps_to_bad_gateway():
    app = create_app(_config(), services=_services(store=BrokenAppointmentStore()))
    with TestClient(app) as client:
        response = client.post("/api/slots/available", json={"lat": 55.8, "lng": -3.8, "duration_mins": 60})

    assert response.status_code == 502
    assert "appointments table unreachable" in response.json()["detail"]


def test_startup_fails_without_routing_configuration():
    app = create_app(_config(routing_providers=("google", "osrm")))

    with pytest.raises(ConfigurationError):
        with TestClient(app):
            pass
