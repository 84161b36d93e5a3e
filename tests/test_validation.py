import pytest

from address_lookup.core.errors import FormValidationError
from address_lookup.domain.validation import (
    validate_bfpo,
    validate_confirmed_id,
    validate_country,
    validate_edit,
    validate_lookup,
    validate_select,
)
from address_lookup.schemas.address import AddressCandidate, Country


def test_lookup_normalises_postcode_and_filter():
    form = validate_lookup("zz11zz", "  The Mill ", uk_mode=True)

    assert str(form.postcode) == "ZZ1 1ZZ"
    assert form.filter == "The Mill"


def test_lookup_reports_uk_mode_message():
    with pytest.raises(FormValidationError) as excinfo:
        validate_lookup("", None, uk_mode=True)

    error = excinfo.value.for_field("postcode")[0]
    assert error.code == "empty_postcode"
    assert error.message == "Enter a UK postcode"
    assert excinfo.value.step == "lookup"


def test_lookup_rejects_long_filter_alongside_postcode_error():
    with pytest.raises(FormValidationError) as excinfo:
        validate_lookup("ZZ1-1ZZ", "x" * 256)

    assert excinfo.value.codes() == {"filter_too_long", "invalid_characters"}
    assert excinfo.value.values["postcode"] == "ZZ1-1ZZ"


def test_lookup_uses_welsh_messages():
    with pytest.raises(FormValidationError) as excinfo:
        validate_lookup("nope", None, locale="cy")

    assert excinfo.value.errors[0].message == "Nodwch god post go iawn"


def test_bfpo_requires_number_or_postcode():
    with pytest.raises(FormValidationError) as excinfo:
        validate_bfpo("  ", None)

    assert excinfo.value.codes() == {"bfpo_number_or_postcode_required"}


def test_bfpo_keeps_number_and_parses_postcode():
    form = validate_bfpo("BFPO 105", "bf1 3aa")

    assert form.number == "105"
    assert str(form.postcode) == "BF1 3AA"

    with pytest.raises(FormValidationError):
        validate_bfpo("105", "BF1")


def test_select_matches_stored_proposal():
    proposals = [AddressCandidate(id="GB100", lines=["1 High Street"], town="Anytown")]

    assert validate_select("GB100", proposals) is proposals[0]

    for address_id, code in (("", "required"), ("x" * 256, "too_long"), ("GB200", "invalid_selection")):
        with pytest.raises(FormValidationError) as excinfo:
            validate_select(address_id, proposals)
        assert excinfo.value.codes() == {code}


def test_country_must_be_known():
    assert validate_country(" uk ").code == "GB"
    assert validate_country("fr").name == "France"

    with pytest.raises(FormValidationError) as excinfo:
        validate_country("ZZ")
    assert excinfo.value.codes() == {"country_required"}


def test_edit_requires_one_line_or_town():
    with pytest.raises(FormValidationError) as excinfo:
        validate_edit({"line1": " ", "line2": "", "line3": None, "town": ""})

    assert excinfo.value.codes() == {"at_least_one_line_required"}

    for field in ("line1", "line2", "line3", "town"):
        address = validate_edit({field: "Somewhere"})
        assert address.country.code == "GB"


def test_edit_field_length_limit():
    address = validate_edit({"line1": "x" * 255, "organisation": "o" * 255})
    assert address.lines == ("x" * 255,)

    with pytest.raises(FormValidationError) as excinfo:
        validate_edit({"line1": "x" * 256, "town": "t" * 256})
    assert [error.field for error in excinfo.value.errors] == ["line1", "town"]
    assert excinfo.value.codes() == {"field_too_long"}


def test_edit_gb_postcode_must_be_valid_and_is_canonicalised():
    address = validate_edit({"line1": "1 High Street", "postcode": "zz11zz"})
    assert address.postcode == "ZZ1 1ZZ"

    assert validate_edit({"line1": "1 High Street", "postcode": ""}).postcode is None

    with pytest.raises(FormValidationError) as excinfo:
        validate_edit({"line1": "1 High Street", "postcode": "not valid"})
    assert excinfo.value.codes() == {"invalid_postcode"}


def test_edit_country_rules():
    france = Country(code="FR", name="France")

    address = validate_edit({"town": "Paris", "postcode": "75001"}, default_country=france)
    assert address.country == france
    assert address.postcode == "75001"

    forced = validate_edit({"town": "Leeds", "countryCode": "FR"}, uk_mode=True)
    assert forced.country.code == "GB"

    with pytest.raises(FormValidationError) as excinfo:
        validate_edit({"town": "Nowhere", "countryCode": "XX"})
    assert excinfo.value.codes() == {"country_required"}


def test_confirmed_id_length():
    assert validate_confirmed_id(" abc ") == "abc"

    for bad in (None, "", "x" * 256):
        with pytest.raises(FormValidationError):
            validate_confirmed_id(bad)
