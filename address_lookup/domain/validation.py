from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from address_lookup.core.errors import FieldError, FormValidationError, PostcodeError
from address_lookup.domain.messages import message
from address_lookup.domain.postcode import Postcode, is_valid_postcode, normalize
from address_lookup.schemas.address import (
    UNITED_KINGDOM,
    AddressCandidate,
    ConfirmedAddress,
    Country,
)


MAX_FIELD_LENGTH = 255
MAX_ADDRESS_ID_LENGTH = 255

_EDIT_FIELD_MESSAGES = {
    "organisation": "editPageOrganisationMaxErrorMessage",
    "line1": "editPageAddressLine1MaxErrorMessage",
    "line2": "editPageAddressLine2MaxErrorMessage",
    "line3": "editPageAddressLine3MaxErrorMessage",
    "town": "editPageTownMaxErrorMessage",
}
_LINE_FIELDS = ("line1", "line2", "line3", "town")


@dataclass(frozen=True, slots=True)
class LookupForm:
    postcode: Postcode
    filter: str | None = None


@dataclass(frozen=True, slots=True)
class BfpoForm:
    number: str | None
    postcode: Postcode | None


def validate_lookup(
    postcode: str | None,
    filter: str | None,
    *,
    uk_mode: bool = False,
    locale: str = "en",
) -> LookupForm:
    errors: list[FieldError] = []
    cleaned_filter = _clean(filter)

    if cleaned_filter is not None and len(cleaned_filter) > MAX_FIELD_LENGTH:
        errors.append(
            FieldError("filter", "filter_too_long", message("lookupFilterError", locale))
        )

    parsed: Postcode | None = None
    try:
        parsed = normalize(postcode or "", uk_mode)
    except PostcodeError as exc:
        errors.append(FieldError("postcode", exc.code, message(exc.message_id, locale)))

    if errors or parsed is None:
        raise FormValidationError(
            errors,
            step="lookup",
            values={"postcode": postcode or "", "filter": filter or ""},
        )
    return LookupForm(postcode=parsed, filter=cleaned_filter)


def validate_bfpo(
    number: str | None,
    postcode: str | None,
    *,
    locale: str = "en",
) -> BfpoForm:
    values = {"number": number or "", "postcode": postcode or ""}
    cleaned_number = normalize_bfpo_number(number)
    cleaned_postcode = _clean(postcode)

    if cleaned_number is None and cleaned_postcode is None:
        raise FormValidationError(
            [
                FieldError(
                    "postcode",
                    "bfpo_number_or_postcode_required",
                    message("bfpoNumberOrPostcodeRequired", locale),
                )
            ],
            step="lookup",
            values=values,
        )

    parsed: Postcode | None = None
    if cleaned_postcode is not None:
        try:
            parsed = normalize(cleaned_postcode)
        except PostcodeError as exc:
            raise FormValidationError(
                [FieldError("postcode", exc.code, message(exc.message_id, locale))],
                step="lookup",
                values=values,
            ) from exc

    return BfpoForm(number=cleaned_number, postcode=parsed)


def normalize_bfpo_number(number: str | None) -> str | None:
    cleaned = (number or "").strip()
    if not cleaned or cleaned == "-":
        return None
    if cleaned.upper().startswith("BFPO "):
        cleaned = cleaned[5:].strip()
    return cleaned or None


def validate_select(
    address_id: str | None,
    proposals: Sequence[AddressCandidate],
    *,
    locale: str = "en",
) -> AddressCandidate:
    value = address_id or ""
    error: FieldError | None = None

    if not value:
        error = FieldError("addressId", "required", message("errorRequired", locale))
    elif len(value) > MAX_ADDRESS_ID_LENGTH:
        error = FieldError("addressId", "too_long", message("errorMax", locale))
    else:
        for candidate in proposals:
            if candidate.id == value:
                return candidate
        error = FieldError(
            "addressId", "invalid_selection", message("invalidSelection", locale)
        )

    raise FormValidationError([error], step="select", values={"addressId": value})


def validate_country(code: str | None, *, locale: str = "en") -> Country:
    country = Country.from_code(code) if _clean(code) else None
    if country is None:
        raise FormValidationError(
            [FieldError("countryCode", "country_required", message("countryRequired", locale))],
            step="country-picker",
            values={"countryCode": code or ""},
        )
    return country


def validate_edit(
    data: Mapping[str, str | None],
    *,
    uk_mode: bool = False,
    default_country: Country | None = None,
    locale: str = "en",
) -> ConfirmedAddress:
    """Validate manually entered address fields.

    In uk mode the country is always GB. Otherwise a missing country code
    falls back to ``default_country`` and then to GB. A GB postcode is
    optional but must be a real postcode when given.
    """

    values = {
        key: data.get(key) or ""
        for key in (*_EDIT_FIELD_MESSAGES, "postcode", "countryCode")
    }
    fields = {key: _clean(data.get(key)) for key in _EDIT_FIELD_MESSAGES}
    errors: list[FieldError] = []

    if all(fields[key] is None for key in _LINE_FIELDS):
        errors.append(
            FieldError(
                "line1",
                "at_least_one_line_required",
                message("editPageAtLeastOneLineOrTown", locale),
            )
        )

    for key, message_key in _EDIT_FIELD_MESSAGES.items():
        value = fields[key]
        if value is not None and len(value) > MAX_FIELD_LENGTH:
            errors.append(FieldError(key, "field_too_long", message(message_key, locale)))

    country: Country | None
    if uk_mode:
        country = UNITED_KINGDOM
    elif _clean(data.get("countryCode")) is None:
        country = default_country or UNITED_KINGDOM
    else:
        country = Country.from_code(data["countryCode"] or "")
        if country is None:
            errors.append(
                FieldError(
                    "countryCode", "country_required", message("countryRequired", locale)
                )
            )

    postcode = _clean(data.get("postcode"))
    if postcode is not None and country is not None and country.code == "GB":
        if is_valid_postcode(postcode):
            postcode = str(normalize(postcode))
        else:
            errors.append(
                FieldError(
                    "postcode",
                    "invalid_postcode",
                    message("editPagePostcodeErrorMessage", locale),
                )
            )

    if errors or country is None:
        raise FormValidationError(errors, step="edit", values=values)

    return ConfirmedAddress(
        organisation=fields["organisation"],
        lines=tuple(
            fields[key] for key in ("line1", "line2", "line3") if fields[key] is not None
        ),
        town=fields["town"],
        postcode=postcode,
        country=country,
    )


def validate_confirmed_id(journey_id: str | None) -> str:
    value = (journey_id or "").strip()
    if not 1 <= len(value) <= MAX_ADDRESS_ID_LENGTH:
        raise FormValidationError(
            [FieldError("id", "invalid_id", "id must be between 1 and 255 characters")],
            values={"id": journey_id or ""},
        )
    return value


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None
