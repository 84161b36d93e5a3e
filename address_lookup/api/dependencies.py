from __future__ import annotations

from fastapi import Cookie, Query

from address_lookup.domain.messages import resolve_locale
from address_lookup.services.journey_service import JourneyService, get_journey_service


def get_service() -> JourneyService:
    return get_journey_service()


def get_locale(
    lang: str | None = Query(default=None),
    play_lang: str | None = Cookie(default=None, alias="PLAY_LANG"),
) -> str:
    """Pick the page language from ``?lang=`` first, then the language cookie."""

    return resolve_locale(lang or play_lang)
