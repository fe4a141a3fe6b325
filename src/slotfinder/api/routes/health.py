"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/routing", status_code=status.HTTP_200_OK)
def health_routing(request: Request) -> dict:
    """Report the routing provider chain and drive-time cache size."""
    services = getattr(request.app.state, "services", None)
    if services is None or services.estimator is None:
        return {"service": "routing", "configured": False}
    estimator = services.estimator
    return {
        "service": "routing",
        "configured": True,
        "providers": [provider.name for provider in estimator.providers],
        "cached_routes": len(estimator.cache),
    }
