from __future__ import annotations

from fastapi import APIRouter, Depends, Form, status
from fastapi.responses import JSONResponse, RedirectResponse, Response

from address_lookup.api.dependencies import get_locale, get_service
from address_lookup.services.journey_service import (
    JourneyService,
    StepOutcome,
    StepRedirect,
)


router = APIRouter()


def _respond(outcome: StepOutcome) -> Response:
    if isinstance(outcome, StepRedirect):
        return RedirectResponse(outcome.url, status_code=status.HTTP_303_SEE_OTHER)
    return JSONResponse(outcome.to_payload())


@router.get("/{journey_id}/begin")
async def begin(journey_id: str, service: JourneyService = Depends(get_service)) -> Response:
    return _respond(await service.begin(journey_id))


@router.get("/{journey_id}/country-picker")
async def show_country_picker(
    journey_id: str,
    locale: str = Depends(get_locale),
    service: JourneyService = Depends(get_service),
) -> Response:
    return _respond(await service.show_country_picker(journey_id, locale))


@router.post("/{journey_id}/country-picker")
async def pick_country(
    journey_id: str,
    country_code: str | None = Form(default=None, alias="countryCode"),
    locale: str = Depends(get_locale),
    service: JourneyService = Depends(get_service),
) -> Response:
    return _respond(await service.pick_country(journey_id, country_code, locale))


@router.get("/{journey_id}/lookup")
async def show_lookup(
    journey_id: str,
    postcode: str | None = None,
    filter: str | None = None,
    locale: str = Depends(get_locale),
    service: JourneyService = Depends(get_service),
) -> Response:
    return _respond(await service.show_lookup(journey_id, postcode, filter, locale))


@router.post("/{journey_id}/lookup")
async def lookup(
    journey_id: str,
    postcode: str | None = Form(default=None),
    filter: str | None = Form(default=None),
    locale: str = Depends(get_locale),
    service: JourneyService = Depends(get_service),
) -> Response:
    return _respond(await service.lookup(journey_id, postcode, filter, locale))


@router.post("/{journey_id}/bfpo-lookup")
async def lookup_bfpo(
    journey_id: str,
    number: str | None = Form(default=None),
    postcode: str | None = Form(default=None),
    locale: str = Depends(get_locale),
    service: JourneyService = Depends(get_service),
) -> Response:
    return _respond(await service.lookup_bfpo(journey_id, number, postcode, locale))


@router.get("/{journey_id}/select")
async def show_select(
    journey_id: str,
    locale: str = Depends(get_locale),
    service: JourneyService = Depends(get_service),
) -> Response:
    return _respond(await service.show_select(journey_id, locale))


@router.post("/{journey_id}/select")
async def select(
    journey_id: str,
    address_id: str | None = Form(default=None, alias="addressId"),
    locale: str = Depends(get_locale),
    service: JourneyService = Depends(get_service),
) -> Response:
    return _respond(await service.select(journey_id, address_id, locale))


@router.get("/{journey_id}/edit")
async def show_edit(
    journey_id: str,
    locale: str = Depends(get_locale),
    service: JourneyService = Depends(get_service),
) -> Response:
    return _respond(await service.show_edit(journey_id, locale))


@router.post("/{journey_id}/edit")
async def edit(
    journey_id: str,
    organisation: str | None = Form(default=None),
    line1: str | None = Form(default=None),
    line2: str | None = Form(default=None),
    line3: str | None = Form(default=None),
    town: str | None = Form(default=None),
    postcode: str | None = Form(default=None),
    country_code: str | None = Form(default=None, alias="countryCode"),
    locale: str = Depends(get_locale),
    service: JourneyService = Depends(get_service),
) -> Response:
    form = {
        "organisation": organisation,
        "line1": line1,
        "line2": line2,
        "line3": line3,
        "town": town,
        "postcode": postcode,
        "countryCode": country_code,
    }
    return _respond(await service.edit(journey_id, form, locale))


@router.get("/{journey_id}/confirm")
async def show_confirm(
    journey_id: str,
    locale: str = Depends(get_locale),
    service: JourneyService = Depends(get_service),
) -> Response:
    return _respond(await service.show_confirm(journey_id, locale))


@router.post("/{journey_id}/confirm")
async def confirm(
    journey_id: str, service: JourneyService = Depends(get_service)
) -> Response:
    return _respond(await service.confirm(journey_id))
