"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import health, slots
from .config import Settings, settings as default_settings
from .db.supabase import get_supabase_client
from .models.domain import Location
from .persistence.stores import SupabaseAppointmentStore, SupabaseWorkingHoursSource
from .services.routing.cache import DriveTimeCache
from .services.routing.estimator import DriveTimeEstimator
from .services.routing.providers import build_providers
from .services.slots.service import SlotFinder
from .services.slots.validator import SlotValidator

logger = logging.getLogger(__name__)


@dataclass
class SlotServices:
    slot_finder: SlotFinder
    estimator: Optional[DriveTimeEstimator] = None
    http_client: Optional[httpx.AsyncClient] = None

    async def aclose(self) -> None:
        if self.http_client is not None:
            await self.http_client.aclose()


async def build_services(config: Settings) -> SlotServices:
    """Wire the process-wide components. Raises ConfigurationError without routing credentials."""
    http_client = httpx.AsyncClient(timeout=httpx.Timeout(config.routing_timeout_seconds, connect=5.0))
    try:
        providers = build_providers(http_client, config)
        estimator = DriveTimeEstimator(providers, DriveTimeCache(ttl_seconds=config.drive_cache_ttl_seconds))
        validator = SlotValidator(
            estimator,
            home_base=Location(latitude=config.home_base_lat, longitude=config.home_base_lng),
            day_start=config.day_start,
            day_end=config.day_end,
            buffer_mins=config.buffer_mins,
        )
        supabase = get_supabase_client()
        finder = SlotFinder(
            SupabaseWorkingHoursSource(supabase),
            SupabaseAppointmentStore(supabase),
            validator,
            config=config,
        )
    except Exception:
        await http_client.aclose()
        raise
    return SlotServices(slot_finder=finder, estimator=estimator, http_client=http_client)


def create_app(config: Settings | None = None, services: SlotServices | None = None) -> FastAPI:
    config = config or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        active = services or await build_services(config)
        app.state.services = active
        app.state.slot_finder = active.slot_finder
        logger.info(f"{config.app_name} started")
        try:
            yield
        finally:
            await active.aclose()

    app = FastAPI(title=config.app_name, lifespan=lifespan)
    if config.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(config.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/")
    def root():
        return {
            "service": config.app_name,
            "status": "running",
            "api_prefix": config.api_prefix,
            "health": f"{config.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=config.api_prefix)
    app.include_router(slots.router, prefix=config.api_prefix)
    return app


app = create_app()
