"""Routing provider protocol, haversine fallback and provider construction."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

import httpx

from ...config import Settings, settings as default_settings
from ...errors import ConfigurationError
from ...models.domain import Location
from ..geospatial import distance_km
from .google_client import GoogleDistanceMatrixClient
from .osrm_client import OSRMClient

logger = logging.getLogger(__name__)


class RoutingProvider(Protocol):
    name: str

    async def duration_seconds(self, origin: Location, destination: Location) -> float:
        """Return the driving duration in seconds, or raise RouteUnavailable."""
        ...


class HaversineEstimator:
    """Straight-line drive-time estimate at a fixed average speed."""

    name = "haversine"

    def __init__(self, speed_kmh: float | None = None) -> None:
        self.speed_kmh = speed_kmh if speed_kmh is not None else default_settings.haversine_speed_kmh
        if self.speed_kmh <= 0:
            raise ValueError("Average speed must be positive.")

    async def duration_seconds(self, origin: Location, destination: Location) -> float:
        return distance_km(origin, destination) / self.speed_kmh * 3600.0


def build_providers(http_client: httpx.AsyncClient, config: Settings | None = None) -> list[RoutingProvider]:
    """Instantiate the configured providers in priority order.

    Providers without credentials are skipped; if nothing is left the
    process cannot compute drive times at all.
    """
    config = config or default_settings
    providers: list[RoutingProvider] = []
    for name in config.routing_providers:
        if name == "google":
            if not config.google_maps_api_key:
                logger.warning("Skipping Google routing provider: SLOTFINDER_GOOGLE_MAPS_API_KEY is not set")
                continue
            providers.append(
                GoogleDistanceMatrixClient(
                    http_client,
                    api_key=config.google_maps_api_key,
                    max_retries=config.routing_max_retries,
                    backoff_seconds=config.routing_backoff_seconds,
                )
            )
        elif name == "osrm":
            if not config.osrm_base_url:
                logger.warning("Skipping OSRM routing provider: SLOTFINDER_OSRM_BASE_URL is not set")
                continue
            providers.append(
                OSRMClient(
                    http_client,
                    base_url=config.osrm_base_url,
                    profile=config.osrm_profile,
                    max_retries=config.routing_max_retries,
                    backoff_seconds=config.routing_backoff_seconds,
                )
            )
        elif name == "haversine":
            providers.append(HaversineEstimator(speed_kmh=config.haversine_speed_kmh))

    if not providers:
        raise ConfigurationError(
            "No routing provider is configured. Set SLOTFINDER_GOOGLE_MAPS_API_KEY or SLOTFINDER_OSRM_BASE_URL."
        )
    logger.info(f"Routing providers in use: {', '.join(provider.name for provider in providers)}")
    return providers


def provider_chain_id(providers: Sequence[RoutingProvider]) -> str:
    return ">".join(provider.name for provider in providers)
