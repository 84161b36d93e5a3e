"""UK postcode normalisation and validation."""

from __future__ import annotations

import re
from dataclasses import dataclass

from address_lookup.core.errors import (
    EmptyPostcode,
    InvalidCharacters,
    MalformedPostcode,
)

_OUTCODE = r"[A-Z]{1,2}[0-9][A-Z0-9]?"
_INCODE = r"[0-9][A-Z]{2}"

# The inward code is always the last three characters.
UK_POSTCODE_RE = re.compile(rf"^({_OUTCODE})({_INCODE})$", re.ASCII)
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class Postcode:
    outcode: str
    incode: str

    def __str__(self) -> str:
        return f"{self.outcode} {self.incode}"


@dataclass(frozen=True, slots=True)
class Outcode:
    value: str

    def __str__(self) -> str:
        return self.value


def normalize(raw: str, uk_mode: bool = False) -> Postcode:
    """Clean ``raw`` into a canonical postcode or raise a ``PostcodeError``.

    ``uk_mode`` only changes the message attached to the error.
    """

    compact = _WHITESPACE_RE.sub("", raw or "")
    if not compact:
        raise EmptyPostcode(raw, uk_mode)

    if not (compact.isascii() and compact.isalnum()):
        raise InvalidCharacters(raw, uk_mode)

    match = UK_POSTCODE_RE.match(compact.upper())
    if match is None:
        raise MalformedPostcode(raw, uk_mode)

    return Postcode(outcode=match.group(1), incode=match.group(2))


def is_valid_postcode(raw: str) -> bool:
    try:
        normalize(raw)
    except (EmptyPostcode, InvalidCharacters, MalformedPostcode):
        return False
    return True
