from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

import httpx

from address_lookup.core.config import Settings, get_settings
from address_lookup.core.errors import LookupUnavailable
from address_lookup.core.logging import get_logger
from address_lookup.schemas.address import AddressCandidate, Country


_logger = get_logger(__name__)


class AddressProvider(Protocol):
    async def query_by_postcode(
        self, postcode: str, filter: str | None = None
    ) -> Sequence[AddressCandidate]: ...

    async def query_by_outcode_and_number(
        self, outcode: str, number: str
    ) -> Sequence[AddressCandidate]: ...

    async def query_by_id(self, address_id: str) -> AddressCandidate | None: ...


class AddressLookupClient:
    """HTTP client for the upstream address-lookup API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        user_agent: str = "address-lookup-frontend",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout)
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "AddressLookupClient":
        settings = settings or get_settings()
        return cls(
            settings.provider_url,
            timeout=settings.provider_timeout,
            user_agent=settings.user_agent,
        )

    async def query_by_postcode(
        self, postcode: str, filter: str | None = None
    ) -> list[AddressCandidate]:
        params = {"postcode": postcode}
        if filter:
            params["filter"] = filter
        payload = await self._get("/v2/uk/addresses", params, context="postcode lookup")
        return _to_candidates(payload)

    async def query_by_outcode_and_number(
        self, outcode: str, number: str
    ) -> list[AddressCandidate]:
        payload = await self._get(
            "/v2/uk/addresses",
            {"outcode": outcode, "filter": number},
            context="outcode lookup",
        )
        return _to_candidates(payload)

    async def query_by_id(self, address_id: str) -> AddressCandidate | None:
        payload = await self._get(
            f"/v2/uk/addresses/{address_id}", None, context="id lookup", allow_missing=True
        )
        if payload is None:
            return None
        return _to_candidate(payload)

    async def _get(
        self,
        path: str,
        params: Mapping[str, str] | None,
        *,
        context: str,
        allow_missing: bool = False,
    ) -> Any:
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                headers=self._headers,
                transport=self._transport,
            ) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            _logger.warning("Address provider unreachable", context=context, error=str(exc))
            raise LookupUnavailable(f"Address {context} failed: {exc}") from exc

        if allow_missing and response.status_code == httpx.codes.NOT_FOUND:
            return None
        if response.is_error:
            _logger.warning(
                "Address provider error",
                context=context,
                status_code=response.status_code,
            )
            raise LookupUnavailable(
                f"Address {context} failed with status {response.status_code}"
            )

        try:
            return response.json()
        except ValueError as exc:
            raise LookupUnavailable(f"Address {context} returned invalid JSON") from exc


def _to_candidates(payload: Any) -> list[AddressCandidate]:
    if not isinstance(payload, list):
        raise LookupUnavailable("Address provider returned an unexpected payload")
    return [_to_candidate(item) for item in payload]


def _to_candidate(record: Mapping[str, Any]) -> AddressCandidate:
    try:
        address = record["address"]
        country = address.get("country") or {}
        return AddressCandidate(
            id=str(record["id"]),
            lines=address.get("lines") or [],
            town=address.get("town"),
            county=address.get("county"),
            postcode=address.get("postcode") or "",
            country=Country(
                code=str(country.get("code") or "GB"),
                name=str(country.get("name") or "United Kingdom"),
            ),
        )
    except (KeyError, TypeError, AttributeError, ValueError) as exc:
        raise LookupUnavailable(f"Malformed address record: {exc}") from exc
