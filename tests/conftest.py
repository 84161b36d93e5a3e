from __future__ import annotations

import pytest

from address_lookup.schemas.address import AddressCandidate, Country


class StubProvider:
    """In-memory stand-in for the upstream address-lookup API."""

    def __init__(self, candidates=None):
        self.candidates = list(candidates or [])
        self.calls = []

    async def query_by_postcode(self, postcode, filter=None):
        self.calls.append(("postcode", postcode, filter))
        return list(self.candidates)

    async def query_by_outcode_and_number(self, outcode, number):
        self.calls.append(("outcode", outcode, number))
        return list(self.candidates)

    async def query_by_id(self, address_id):
        self.calls.append(("id", address_id))
        return next((c for c in self.candidates if c.id == address_id), None)


@pytest.fixture
def candidates():
    return [
        AddressCandidate(
            id="GB200",
            lines=["2 Other Place", "Some District"],
            town="Anytown",
            postcode="ZZ1 1ZZ",
            country=Country(code="UK", name="United Kingdom"),
        ),
        AddressCandidate(
            id="GB100",
            lines=["1 High Street", "Line 2"],
            town="Anytown",
            postcode="ZZ1 1ZZ",
        ),
    ]


@pytest.fixture
def journey_payload():
    return {
        "version": 2,
        "options": {"continueUrl": "https://service.example/done"},
    }
