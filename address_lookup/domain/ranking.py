from __future__ import annotations

import re
from typing import Iterable

from address_lookup.schemas.address import AddressCandidate


_DIGITS = re.compile(r"\d+")

# Sorts after any ``(0, n)`` entry so that a number beats "no number".
_NO_NUMBER = (1, 0)


def rank(candidates: Iterable[AddressCandidate]) -> list[AddressCandidate]:
    """Order candidates the way a person reads a list of house numbers.

    Digit runs in the first line are compared as integers, position by
    position, so ``"3b"`` comes before ``"10"``. Ties fall back to a plain
    comparison of all lines and then the candidate id.
    """

    return sorted(candidates, key=sort_key)


def sort_key(
    candidate: AddressCandidate,
) -> tuple[tuple[tuple[int, int], ...], str, str]:
    first_line = candidate.lines[0] if candidate.lines else ""
    return numeric_key(first_line), " ".join(candidate.lines), candidate.id


def numeric_key(text: str) -> tuple[tuple[int, int], ...]:
    numbers = tuple((0, int(run)) for run in _DIGITS.findall(text))
    return numbers + (_NO_NUMBER,)
