"""Exception types raised by the slot finder."""

from __future__ import annotations


class SlotFinderError(Exception):
    """Base class for slot finder failures."""


class ConfigurationError(SlotFinderError):
    """Required configuration (e.g. routing credentials) is missing."""


class UpstreamStoreError(SlotFinderError):
    """Working hours or appointments could not be fetched from the store."""


class RoutingError(SlotFinderError):
    pass


class RouteUnavailable(RoutingError):
    """No drive time could be computed between two points."""

    def __init__(self, provider: str, detail: str) -> None:
        super().__init__(f"[{provider}] {detail}")
        self.provider = provider
        self.detail = detail


class PointUnsnappable(RouteUnavailable):
    """A coordinate could not be matched to the road network."""
