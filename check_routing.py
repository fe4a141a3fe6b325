#!/usr/bin/env python3
"""Manual check that the configured routing providers answer drive-time requests."""

import asyncio
import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

import httpx  # noqa: E402

from slotfinder.config import settings  # noqa: E402
from slotfinder.errors import ConfigurationError, RouteUnavailable  # noqa: E402
from slotfinder.models.domain import Location  # noqa: E402
from slotfinder.services.routing.cache import DriveTimeCache  # noqa: E402
from slotfinder.services.routing.estimator import DriveTimeEstimator  # noqa: E402
from slotfinder.services.routing.osrm_client import check_health  # noqa: E402
from slotfinder.services.routing.providers import build_providers  # noqa: E402


async def run() -> int:
    home = Location(latitude=settings.home_base_lat, longitude=settings.home_base_lng)
    nearby = Location(latitude=home.latitude + 0.02, longitude=home.longitude + 0.02)

    async with httpx.AsyncClient(timeout=settings.routing_timeout_seconds) as http_client:
        print("1. Building providers...")
        try:
            providers = build_providers(http_client, settings)
        except ConfigurationError as e:
            print(f"   [ERROR] {e}")
            return 1
        print(f"   [OK] {', '.join(provider.name for provider in providers)}")

        if settings.osrm_base_url:
            print("2. Checking OSRM health...")
            healthy = await check_health(http_client)
            print(f"   [{'OK' if healthy else 'ERROR'}] {settings.osrm_base_url}")

        print("3. Querying each provider...")
        for provider in providers:
            try:
                seconds = await provider.duration_seconds(home, nearby)
                print(f"   [OK] {provider.name}: {seconds:.0f}s")
            except RouteUnavailable as e:
                print(f"   [ERROR] {e}")

        print("4. Estimating through the full chain...")
        estimator = DriveTimeEstimator(providers, DriveTimeCache(settings.drive_cache_ttl_seconds))
        try:
            minutes = await estimator.estimate(home, nearby)
        except RouteUnavailable as e:
            print(f"   [ERROR] {e}")
            return 1
        print(f"   [OK] {minutes} min from home base")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(run()))
