from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import JSONResponse

from address_lookup.api.dependencies import get_service
from address_lookup.core.errors import JourneyNotFound
from address_lookup.domain.journey import JourneyState
from address_lookup.domain.validation import validate_confirmed_id
from address_lookup.services.journey_service import JourneyService


router = APIRouter()


@router.post("/init", status_code=status.HTTP_202_ACCEPTED)
async def init_journey(
    config: dict[str, Any] = Body(...),
    service: JourneyService = Depends(get_service),
) -> JSONResponse:
    """Start a journey and point the caller at its first page."""

    record = await service.initialise(config)
    location = service.step_url(record.journey_id, JourneyState.BEGIN)
    return JSONResponse(
        {"journeyId": record.journey_id, "location": location},
        status_code=status.HTTP_202_ACCEPTED,
        headers={"Location": location},
    )


@router.get("/confirmed")
async def confirmed(
    id: str | None = Query(default=None),
    service: JourneyService = Depends(get_service),
) -> dict[str, Any]:
    journey_id = validate_confirmed_id(id)
    address = await service.confirmed_address(journey_id)
    if address is None:
        raise JourneyNotFound(journey_id)

    body: dict[str, Any] = {
        "lines": list(address.display_lines()),
        "country": address.country.model_dump(),
    }
    if address.organisation:
        body["organisation"] = address.organisation
    if address.postcode:
        body["postcode"] = address.postcode
    return {"auditRef": journey_id, "id": address.id, "address": body}
