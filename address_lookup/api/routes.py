from __future__ import annotations

from fastapi import APIRouter

from address_lookup.api import steps
from address_lookup.api.v2 import journeys
from address_lookup.core.config import get_settings


def build_router(base_path: str | None = None) -> APIRouter:
    router = APIRouter()
    router.include_router(journeys.router, prefix="/api/v2", tags=["journeys"])
    router.include_router(
        steps.router, prefix=base_path or get_settings().base_path, tags=["steps"]
    )
    return router
