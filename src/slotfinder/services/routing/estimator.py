"""Drive-time estimation with caching, perturbation retries and provider fallback.

Each provider is wrapped in a strategy that returns a ``DriveAttempt``: either
whole minutes or the typed failure that stopped it. Strategies are tried in
order by :func:`first_success`; the estimator only raises once all of them
have failed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

from ...errors import PointUnsnappable, RouteUnavailable
from ...models.domain import Location
from ..geospatial import rounded_coordinates
from .cache import DriveTimeCache
from .providers import RoutingProvider, provider_chain_id

# Applied to both axes of a point when the exact coordinate cannot be snapped to a road.
PERTURBATION_OFFSETS: tuple[float, ...] = (0.0, 0.0008, -0.0008, 0.002, -0.002, 0.005, -0.005)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DriveAttempt:
    minutes: Optional[int] = None
    failure: Optional[RouteUnavailable] = None

    @property
    def ok(self) -> bool:
        return self.minutes is not None


Strategy = Callable[[Location, Location], Awaitable[DriveAttempt]]


def seconds_to_minutes(seconds: float) -> int:
    """Round a duration up to whole minutes so travel time is never understated."""
    if seconds < 0:
        raise ValueError("Drive duration cannot be negative.")
    return int(math.ceil(seconds / 60.0))


def perturbed_pairs(origin: Location, destination: Location) -> list[tuple[Location, Location]]:
    """All origin/destination variants to try, the exact pair first."""
    return [
        (origin.offset(origin_delta), destination.offset(destination_delta))
        for origin_delta in PERTURBATION_OFFSETS
        for destination_delta in PERTURBATION_OFFSETS
    ]


def perturbing_strategy(provider: RoutingProvider) -> Strategy:
    """Query ``provider``, nudging both points when it cannot snap them to a road."""

    async def attempt(origin: Location, destination: Location) -> DriveAttempt:
        original_failure: Optional[PointUnsnappable] = None
        for index, (shifted_origin, shifted_destination) in enumerate(perturbed_pairs(origin, destination)):
            try:
                seconds = await provider.duration_seconds(shifted_origin, shifted_destination)
            except PointUnsnappable as exc:
                if original_failure is None:
                    original_failure = exc
                continue
            except RouteUnavailable as exc:
                # Only a failure on the exact pair ends the walk.
                if original_failure is None:
                    return DriveAttempt(failure=exc)
                continue
            if index:
                logger.debug(f"{provider.name}: route found after {index} perturbation retries")
            return DriveAttempt(minutes=seconds_to_minutes(seconds))
        return DriveAttempt(failure=original_failure)

    return attempt


async def first_success(strategies: Sequence[Strategy], origin: Location, destination: Location) -> DriveAttempt:
    """Run strategies in order and return the first successful attempt.

    When every strategy fails the first failure is returned, since that one
    came from the preferred provider.
    """
    failures: list[DriveAttempt] = []
    for strategy in strategies:
        result = await strategy(origin, destination)
        if result.ok:
            return result
        failures.append(result)
    if failures:
        return failures[0]
    return DriveAttempt(failure=RouteUnavailable("none", "No routing strategies available."))


class DriveTimeEstimator:
    """Resolve drive minutes between two locations through an ordered provider chain."""

    def __init__(self, providers: Sequence[RoutingProvider], cache: DriveTimeCache) -> None:
        if not providers:
            raise ValueError("At least one routing provider is required.")
        self.providers = tuple(providers)
        self.provider_id = provider_chain_id(self.providers)
        self.cache = cache
        self._strategies = [perturbing_strategy(provider) for provider in self.providers]

    def cache_key(self, origin: Location, destination: Location) -> tuple:
        return (*rounded_coordinates(origin), *rounded_coordinates(destination), self.provider_id)

    async def estimate(self, origin: Location, destination: Location) -> int:
        key = self.cache_key(origin, destination)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        result = await first_success(self._strategies, origin, destination)
        if not result.ok:
            failure = result.failure
            logger.warning(
                f"Drive time unavailable from ({origin.latitude}, {origin.longitude}) "
                f"to ({destination.latitude}, {destination.longitude}): {failure}"
            )
            raise RouteUnavailable(self.provider_id, "No provider could compute a route.") from failure

        self.cache.set(key, result.minutes)
        return result.minutes
