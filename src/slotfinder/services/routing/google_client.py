"""Google Distance Matrix client for single-pair drive times."""

from __future__ import annotations

import asyncio
import logging

import httpx

from ...config import settings
from ...errors import ConfigurationError, PointUnsnappable, RouteUnavailable
from ...models.domain import Location

DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"

logger = logging.getLogger(__name__)


class GoogleDistanceMatrixClient:
    name = "google"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str | None = None,
        base_url: str = DISTANCE_MATRIX_URL,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.api_key = api_key or settings.google_maps_api_key
        if not self.api_key:
            raise ConfigurationError("Google Maps API key is not configured.")
        self.base_url = base_url
        self.max_retries = max_retries if max_retries is not None else settings.routing_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.routing_backoff_seconds
        self._client = http_client

    async def _get_json(self, params: dict) -> dict:
        attempt = 0
        while True:
            try:
                response = await self._client.get(self.base_url, params=params)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                if e.response.status_code < 500:
                    raise RouteUnavailable(self.name, f"HTTP {e.response.status_code} from Distance Matrix") from e
                attempt += 1
                if attempt > self.max_retries:
                    raise RouteUnavailable(self.name, f"HTTP {e.response.status_code} after {attempt} attempts") from e
                await asyncio.sleep(self.backoff_seconds * attempt)
            except (httpx.TimeoutException, httpx.NetworkError) as e:
                attempt += 1
                if attempt > self.max_retries:
                    logger.warning(f"Distance Matrix request failed after {self.max_retries} retries: {e}")
                    raise RouteUnavailable(self.name, f"Failed to reach Distance Matrix: {e}") from e
                wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                logger.debug(f"Distance Matrix network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                await asyncio.sleep(wait_time)
            except ValueError as e:
                raise RouteUnavailable(self.name, f"Invalid JSON from Distance Matrix: {e}") from e

    async def duration_seconds(self, origin: Location, destination: Location) -> float:
        params = {
            "origins": f"{origin.latitude},{origin.longitude}",
            "destinations": f"{destination.latitude},{destination.longitude}",
            "departure_time": "now",
            "key": self.api_key,
        }
        data = await self._get_json(params)

        if data.get("status") != "OK":
            raise RouteUnavailable(self.name, data.get("error_message") or f"Distance Matrix status {data.get('status')!r}")

        rows = data.get("rows") or []
        elements = rows[0].get("elements") if rows else None
        if not elements:
            raise RouteUnavailable(self.name, "Distance Matrix response contained no elements.")

        element = elements[0]
        status = element.get("status")
        if status == "NOT_FOUND":
            raise PointUnsnappable(self.name, "Origin or destination could not be matched to the road network.")
        if status != "OK":
            raise RouteUnavailable(self.name, f"Drive time unavailable for route (status {status!r}).")

        duration = element.get("duration")
        if not duration or duration.get("value") is None:
            raise RouteUnavailable(self.name, "Distance Matrix element has no duration.")
        return float(duration["value"])
