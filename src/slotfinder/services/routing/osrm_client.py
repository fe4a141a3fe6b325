"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import asyncio
import logging

import httpx

from ...config import settings
from ...errors import ConfigurationError, PointUnsnappable, RouteUnavailable
from ...models.domain import Location

# OSRM answers "NoSegment" when a coordinate cannot be snapped to a road.
UNSNAPPABLE_CODES = frozenset({"NoSegment"})

logger = logging.getLogger(__name__)


class OSRMClient:
    name = "osrm"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str | None = None,
        profile: str | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ConfigurationError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.max_retries = max_retries if max_retries is not None else settings.routing_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.routing_backoff_seconds
        self._client = http_client

    async def _get_json(self, url: str, params: dict) -> dict:
        attempt = 0
        while True:
            try:
                response = await self._client.get(url, params=params)
                # OSRM reports NoSegment/NoRoute with a 400 and a JSON body
                if response.status_code == 400:
                    return response.json()
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                if e.response.status_code < 500:
                    raise RouteUnavailable(self.name, f"HTTP {e.response.status_code} from OSRM") from e
                attempt += 1
                if attempt > self.max_retries:
                    raise RouteUnavailable(self.name, f"HTTP {e.response.status_code} after {attempt} attempts") from e
                await asyncio.sleep(self.backoff_seconds * attempt)
            except (httpx.TimeoutException, httpx.NetworkError) as e:
                attempt += 1
                if attempt > self.max_retries:
                    logger.warning(f"OSRM request failed after {self.max_retries} retries: {e}")
                    raise RouteUnavailable(self.name, f"Failed to reach OSRM at {self.base_url}: {e}") from e
                wait_time = self.backoff_seconds * (2 ** (attempt - 1))  # Exponential backoff
                logger.debug(f"OSRM network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                await asyncio.sleep(wait_time)
            except ValueError as e:
                raise RouteUnavailable(self.name, f"Invalid JSON from OSRM: {e}") from e

    async def duration_seconds(self, origin: Location, destination: Location) -> float:
        """Driving duration between two points using the OSRM route endpoint."""
        # OSRM expects "lon,lat;lon,lat"
        coordinate_str = f"{origin.longitude},{origin.latitude};{destination.longitude},{destination.latitude}"
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"
        params = {"overview": "false", "steps": "false"}

        data = await self._get_json(url, params)
        code = data.get("code")
        if code in UNSNAPPABLE_CODES:
            raise PointUnsnappable(self.name, data.get("message") or code)
        if code != "Ok":
            raise RouteUnavailable(self.name, data.get("message") or f"OSRM returned code {code!r}")

        routes = data.get("routes") or []
        if not routes or routes[0].get("duration") is None:
            raise RouteUnavailable(self.name, "OSRM response contained no route duration.")
        return float(routes[0]["duration"])


async def check_health(http_client: httpx.AsyncClient, base_url: str | None = None) -> bool:
    """Check OSRM service health by routing between two nearby points."""
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    client = OSRMClient(http_client, base_url=base, max_retries=0)
    try:
        await client.duration_seconds(
            Location(latitude=settings.home_base_lat, longitude=settings.home_base_lng),
            Location(latitude=settings.home_base_lat + 0.01, longitude=settings.home_base_lng + 0.01),
        )
        return True
    except RouteUnavailable:
        return False
