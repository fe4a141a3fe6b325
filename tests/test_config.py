from datetime import time

import pytest
from pydantic import ValidationError

from slotfinder.config import Settings


def test_defaults():
    config = Settings(_env_file=None)

    assert config.routing_providers == ("google", "osrm")
    assert config.day_start == time(9, 0)
    assert config.day_end == time(17, 0)
    assert config.buffer_mins == 0
    assert config.max_candidates_checked == 120
    assert config.min_feasible_results == 5
    assert config.drive_cache_ttl_seconds == 600


def test_provider_order_from_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SLOTFINDER_ROUTING_PROVIDERS", "OSRM, haversine")

    config = Settings(_env_file=None)

    assert config.routing_providers == ("osrm", "haversine")


def test_provider_order_accepts_json(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SLOTFINDER_ROUTING_PROVIDERS", '["haversine"]')

    assert Settings(_env_file=None).routing_providers == ("haversine",)


def test_unknown_provider_is_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, routing_providers=("google", "mapbox"))


def test_day_bounds_from_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SLOTFINDER_DAY_START", "08:30")
    monkeypatch.setenv("SLOTFINDER_BUFFER_MINS", "5")

    config = Settings(_env_file=None)

    assert config.day_start == time(8, 30)
    assert config.buffer_mins == 5
