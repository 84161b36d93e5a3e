from __future__ import annotations

from fastapi import FastAPI

from address_lookup.api.routes import build_router
from address_lookup.core.config import get_settings
from address_lookup.core.errors import install_exception_handlers
from address_lookup.core.logging import configure_logging


settings = get_settings()
configure_logging(settings.debug)

app = FastAPI(title="Address Lookup Frontend", version="0.1.0", debug=settings.debug)

install_exception_handlers(app)
app.include_router(build_router(settings.base_path))


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Return basic service health."""

    return {"status": "ok"}
