from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from address_lookup.domain.countries import canonical_code, country_name


class Country(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    name: str

    @classmethod
    def from_code(cls, code: str) -> "Country | None":
        name = country_name(code)
        if name is None:
            return None
        return cls(code=canonical_code(code), name=name)


UNITED_KINGDOM = Country(code="GB", name="United Kingdom")


class AddressCandidate(BaseModel):
    """Address record returned by the lookup provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    lines: tuple[str, ...] = Field(default=(), max_length=4)
    town: str | None = None
    county: str | None = None
    postcode: str = ""
    country: Country = UNITED_KINGDOM

    @field_validator("lines", mode="before")
    def _drop_blank_lines(cls, value):
        if isinstance(value, (list, tuple)):
            return tuple(str(line).strip() for line in value if str(line).strip())
        return value


class ConfirmedAddress(BaseModel):
    """Address staged or confirmed by the user."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    organisation: str | None = None
    lines: tuple[str, ...] = ()
    town: str | None = None
    postcode: str | None = None
    country: Country = UNITED_KINGDOM

    @classmethod
    def from_candidate(cls, candidate: AddressCandidate) -> "ConfirmedAddress":
        return cls(
            id=candidate.id,
            lines=candidate.lines,
            town=candidate.town,
            postcode=candidate.postcode or None,
            country=candidate.country,
        )

    def display_lines(self) -> list[str]:
        lines = list(self.lines)
        if self.town:
            lines.append(self.town)
        return lines
