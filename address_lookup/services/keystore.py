from __future__ import annotations

import asyncio
import json
from typing import Any, Protocol

import httpx
from cachetools import TTLCache

from address_lookup.core.config import Settings, get_settings
from address_lookup.core.errors import KeystoreUnavailable
from address_lookup.core.logging import get_logger
from address_lookup.schemas.journey import JourneyRecord, load_record


_logger = get_logger(__name__)


class Keystore(Protocol):
    async def get(self, journey_id: str) -> JourneyRecord | None: ...

    async def put(self, journey_id: str, record: JourneyRecord) -> None: ...


class InMemoryKeystore:
    """Process-local keystore; entries expire like the hosted session cache."""

    def __init__(self, *, ttl_seconds: int = 3600, max_entries: int = 10_000) -> None:
        self._cache: TTLCache[str, str] = TTLCache(maxsize=max_entries, ttl=ttl_seconds)
        self._lock = asyncio.Lock()

    async def get(self, journey_id: str) -> JourneyRecord | None:
        async with self._lock:
            raw = self._cache.get(journey_id)
        if raw is None:
            return None
        return load_record(journey_id, json.loads(raw))

    async def put(self, journey_id: str, record: JourneyRecord) -> None:
        raw = json.dumps(record.to_payload(), ensure_ascii=False)
        async with self._lock:
            self._cache[journey_id] = raw


class HttpKeystore:
    """Keystore backed by a remote session-cache service speaking JSON."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout)
        self._transport = transport

    async def get(self, journey_id: str) -> JourneyRecord | None:
        response = await self._request("GET", journey_id)
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        self._raise_for_status(response, journey_id)
        try:
            payload = response.json()
        except ValueError as exc:
            raise KeystoreUnavailable(f"Keystore returned invalid JSON for {journey_id}") from exc
        return load_record(journey_id, payload)

    async def put(self, journey_id: str, record: JourneyRecord) -> None:
        response = await self._request("PUT", journey_id, json_body=record.to_payload())
        self._raise_for_status(response, journey_id)

    async def _request(
        self, method: str, journey_id: str, *, json_body: Any | None = None
    ) -> httpx.Response:
        url = f"{self._base_url}/{journey_id}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                return await client.request(method, url, json=json_body)
        except httpx.HTTPError as exc:
            _logger.warning(
                "Keystore unreachable", method=method, journey_id=journey_id, error=str(exc)
            )
            raise KeystoreUnavailable(f"Keystore {method} failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response, journey_id: str) -> None:
        if response.is_error:
            _logger.warning(
                "Keystore error",
                journey_id=journey_id,
                status_code=response.status_code,
            )
            raise KeystoreUnavailable(
                f"Keystore responded with status {response.status_code}"
            )


def create_keystore(settings: Settings | None = None) -> Keystore:
    settings = settings or get_settings()
    if settings.keystore_backend == "http":
        return HttpKeystore(settings.keystore_url, timeout=settings.keystore_timeout)
    return InMemoryKeystore(
        ttl_seconds=settings.keystore_ttl_seconds,
        max_entries=settings.keystore_max_entries,
    )
