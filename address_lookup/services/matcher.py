from __future__ import annotations

from typing import Iterable

from address_lookup.core.logging import get_logger
from address_lookup.domain.countries import COUNTRY_ALIASES
from address_lookup.domain.postcode import Outcode, Postcode
from address_lookup.domain.ranking import rank
from address_lookup.domain.validation import normalize_bfpo_number
from address_lookup.schemas.address import AddressCandidate, Country
from address_lookup.services.provider import AddressProvider


_logger = get_logger(__name__)

# Every BFPO address shares this outcode.
BFPO_OUTCODE = Outcode("BF1")


class AddressMatcher:
    """Finds candidate addresses and puts them in display order."""

    def __init__(self, provider: AddressProvider) -> None:
        self._provider = provider

    async def find(
        self,
        postcode: Postcode,
        filter: str | None = None,
        uk_mode: bool = False,
    ) -> list[AddressCandidate]:
        found = await self._provider.query_by_postcode(str(postcode), filter)
        candidates = _prepare(found, uk_mode)
        _logger.info(
            "Address lookup",
            postcode=str(postcode),
            filter=filter,
            uk_mode=uk_mode,
            found=len(found),
            kept=len(candidates),
        )
        return candidates

    async def find_bfpo(self, number: str) -> list[AddressCandidate]:
        cleaned = normalize_bfpo_number(number)
        if cleaned is None:
            return []
        found = await self._provider.query_by_outcode_and_number(str(BFPO_OUTCODE), cleaned)
        candidates = _prepare(found, uk_mode=False)
        _logger.info("BFPO lookup", number=cleaned, found=len(candidates))
        return candidates

    async def find_by_id(self, address_id: str) -> AddressCandidate | None:
        candidate = await self._provider.query_by_id(address_id)
        if candidate is None:
            return None
        return _with_canonical_country(candidate)


def _prepare(found: Iterable[AddressCandidate], uk_mode: bool) -> list[AddressCandidate]:
    candidates = [_with_canonical_country(candidate) for candidate in found]
    if uk_mode:
        candidates = [candidate for candidate in candidates if candidate.country.code == "GB"]
    return rank(candidates)


def _with_canonical_country(candidate: AddressCandidate) -> AddressCandidate:
    code = COUNTRY_ALIASES.get(candidate.country.code.strip().upper())
    if code is None:
        return candidate
    return candidate.model_copy(
        update={"country": Country(code=code, name=candidate.country.name)}
    )
