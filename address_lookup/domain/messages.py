"""Built-in page labels and field error messages for English and Welsh."""

from __future__ import annotations

from typing import Any

DEFAULT_LOCALE = "en"
LOCALES = ("en", "cy")

DEFAULT_LABELS: dict[str, dict[str, dict[str, str]]] = {
    "en": {
        "appLevelLabels": {
            "navTitle": "Find your address",
            "phaseBannerHtml": "This is a new service. Help us improve it.",
        },
        "countryPickerLabels": {
            "title": "Select your country",
            "heading": "Select your country",
            "countryLabel": "Country",
            "submitLabel": "Continue",
        },
        "lookupPageLabels": {
            "title": "Find address",
            "titleUkMode": "Find UK address",
            "heading": "Find address",
            "headingUkMode": "Find UK address",
            "filterLabel": "Property name or number (optional)",
            "postcodeLabel": "Postcode",
            "postcodeLabelUkMode": "UK postcode",
            "submitLabel": "Find address",
            "noResultsFoundMessage": "We could not find a match with that property name or number.",
            "manualAddressLinkText": "Enter the address manually",
        },
        "selectPageLabels": {
            "title": "Choose address",
            "heading": "Choose address",
            "headingWithPostcode": "Choose address for",
            "proposalListLabel": "Select an address",
            "submitLabel": "Continue",
            "searchAgainLinkText": "Search again",
            "editAddressLinkText": "Enter address manually",
            "noResultsFoundMessage": "We could not find any addresses for that postcode.",
        },
        "editPageLabels": {
            "title": "Enter address",
            "heading": "Enter address",
            "organisationLabel": "Organisation (optional)",
            "line1Label": "Address line 1",
            "line2Label": "Address line 2 (optional)",
            "line3Label": "Address line 3 (optional)",
            "townLabel": "Town/city",
            "postcodeLabel": "Postcode (optional)",
            "postcodeLabelUkMode": "UK postcode (optional)",
            "countryLabel": "Country",
            "submitLabel": "Continue",
        },
        "confirmPageLabels": {
            "title": "Review and confirm",
            "heading": "Review and confirm",
            "infoSubheading": "Your selected address",
            "infoMessage": (
                "This is how your address will look. Please double-check it and, "
                "if accurate, click on the Confirm button."
            ),
            "submitLabel": "Confirm address",
            "searchAgainLinkText": "Search for your address again",
            "changeLinkText": "Edit address",
            "confirmChangeText": (
                "By confirming this change, you agree that the information you "
                "have given is complete and correct."
            ),
        },
    },
    "cy": {
        "appLevelLabels": {
            "navTitle": "Dod o hyd i’ch cyfeiriad",
            "phaseBannerHtml": "Gwasanaeth newydd yw hwn. Helpwch ni i’w wella.",
        },
        "countryPickerLabels": {
            "title": "Dewiswch eich gwlad",
            "heading": "Dewiswch eich gwlad",
            "countryLabel": "Gwlad",
            "submitLabel": "Yn eich blaen",
        },
        "lookupPageLabels": {
            "title": "Dod o hyd i gyfeiriad",
            "titleUkMode": "Dod o hyd i gyfeiriad yn y DU",
            "heading": "Dod o hyd i gyfeiriad",
            "headingUkMode": "Dod o hyd i gyfeiriad yn y DU",
            "filterLabel": "Enw neu rif yr eiddo (dewisol)",
            "postcodeLabel": "Cod post",
            "postcodeLabelUkMode": "Cod post yn y DU",
            "submitLabel": "Chwilio am y cyfeiriad",
            "noResultsFoundMessage": "Nid oeddem yn gallu dod o hyd i rywbeth sy’n cyd-fynd ag enw neu rif yr eiddo hwnnw.",
            "manualAddressLinkText": "Nodwch y cyfeiriad â llaw",
        },
        "selectPageLabels": {
            "title": "Dewiswch gyfeiriad",
            "heading": "Dewiswch gyfeiriad",
            "headingWithPostcode": "Dewiswch gyfeiriad ar gyfer",
            "proposalListLabel": "Dewiswch gyfeiriad",
            "submitLabel": "Yn eich blaen",
            "searchAgainLinkText": "Chwilio eto",
            "editAddressLinkText": "Nodwch y cyfeiriad â llaw",
            "noResultsFoundMessage": "Nid oeddem yn gallu dod o hyd i unrhyw gyfeiriadau ar gyfer y cod post hwnnw.",
        },
        "editPageLabels": {
            "title": "Nodwch y cyfeiriad",
            "heading": "Nodwch y cyfeiriad",
            "organisationLabel": "Sefydliad (dewisol)",
            "line1Label": "Cyfeiriad – llinell 1",
            "line2Label": "Cyfeiriad – llinell 2 (dewisol)",
            "line3Label": "Cyfeiriad – llinell 3 (dewisol)",
            "townLabel": "Tref/dinas",
            "postcodeLabel": "Cod post (dewisol)",
            "postcodeLabelUkMode": "Cod post yn y DU (dewisol)",
            "countryLabel": "Gwlad",
            "submitLabel": "Yn eich blaen",
        },
        "confirmPageLabels": {
            "title": "Adolygu a chadarnhau",
            "heading": "Adolygu a chadarnhau",
            "infoSubheading": "Eich cyfeiriad dewisol",
            "infoMessage": (
                "Dyma sut y bydd eich cyfeiriad yn edrych. Gwiriwch ef eto ac, "
                "os yw’n gywir, cliciwch ar y botwm Cadarnhau."
            ),
            "submitLabel": "Cadarnhau’r cyfeiriad",
            "searchAgainLinkText": "Chwilio am eich cyfeiriad eto",
            "changeLinkText": "Golygu’r cyfeiriad",
            "confirmChangeText": (
                "Drwy gadarnhau’r newid hwn, rydych yn cytuno bod yr wybodaeth "
                "a roesoch yn gyflawn ac yn gywir."
            ),
        },
    },
}

ERROR_MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "lookupPostcodeEmptyError": "Enter a postcode",
        "lookupPostcodeEmptyError.ukMode": "Enter a UK postcode",
        "lookupPostcodeInvalidError": "Enter a postcode using only letters and numbers",
        "lookupPostcodeInvalidError.ukMode": "Enter a UK postcode using only letters and numbers",
        "lookupPostcodeError": "Enter a real postcode",
        "lookupPostcodeError.ukMode": "Enter a real UK postcode",
        "lookupFilterError": "Enter a property name or number that is less than 256 characters",
        "bfpoNumberOrPostcodeRequired": "Enter a BFPO number or a postcode",
        "errorRequired": "Select an address",
        "errorMax": "Answer must be 255 characters or less",
        "invalidSelection": "Select an address from the list",
        "countryRequired": "Select a country",
        "editPageAtLeastOneLineOrTown": "Enter at least one address line or a town",
        "editPageOrganisationMaxErrorMessage": "Organisation must be less than 256 characters",
        "editPageAddressLine1MaxErrorMessage": "Address line 1 must be less than 256 characters",
        "editPageAddressLine2MaxErrorMessage": "Address line 2 must be less than 256 characters",
        "editPageAddressLine3MaxErrorMessage": "Address line 3 must be less than 256 characters",
        "editPageTownMaxErrorMessage": "Town or city must be less than 256 characters",
        "editPagePostcodeErrorMessage": "Enter a valid UK postcode",
    },
    "cy": {
        "lookupPostcodeEmptyError": "Nodwch god post",
        "lookupPostcodeEmptyError.ukMode": "Nodwch god post yn y DU",
        "lookupPostcodeInvalidError": "Nodwch god post gan ddefnyddio llythrennau a rhifau yn unig",
        "lookupPostcodeInvalidError.ukMode": "Nodwch god post yn y DU gan ddefnyddio llythrennau a rhifau yn unig",
        "lookupPostcodeError": "Nodwch god post go iawn",
        "lookupPostcodeError.ukMode": "Nodwch god post go iawn yn y DU",
        "lookupFilterError": "Nodwch enw neu rif eiddo sy’n llai na 256 o gymeriadau",
        "bfpoNumberOrPostcodeRequired": "Nodwch rif BFPO neu god post",
        "errorRequired": "Dewiswch gyfeiriad",
        "errorMax": "Mae’n rhaid i’r ateb fod yn 255 o gymeriadau neu lai",
        "invalidSelection": "Dewiswch gyfeiriad o’r rhestr",
        "countryRequired": "Dewiswch wlad",
        "editPageAtLeastOneLineOrTown": "Nodwch o leiaf un llinell cyfeiriad neu dref",
        "editPageOrganisationMaxErrorMessage": "Mae’n rhaid i’r sefydliad fod yn llai na 256 o gymeriadau",
        "editPageAddressLine1MaxErrorMessage": "Mae’n rhaid i linell 1 y cyfeiriad fod yn llai na 256 o gymeriadau",
        "editPageAddressLine2MaxErrorMessage": "Mae’n rhaid i linell 2 y cyfeiriad fod yn llai na 256 o gymeriadau",
        "editPageAddressLine3MaxErrorMessage": "Mae’n rhaid i linell 3 y cyfeiriad fod yn llai na 256 o gymeriadau",
        "editPageTownMaxErrorMessage": "Mae’n rhaid i’r dref neu’r ddinas fod yn llai na 256 o gymeriadau",
        "editPagePostcodeErrorMessage": "Nodwch god post dilys yn y DU",
    },
}


def message(key: str, locale: str = DEFAULT_LOCALE) -> str:
    bundle = ERROR_MESSAGES.get(locale, ERROR_MESSAGES[DEFAULT_LOCALE])
    return bundle.get(key) or ERROR_MESSAGES[DEFAULT_LOCALE].get(key, key)


def resolve_locale(value: str | None) -> str:
    if value and value.strip().lower() in LOCALES:
        return value.strip().lower()
    return DEFAULT_LOCALE


def merge_labels(defaults: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Overlay ``overrides`` on ``defaults`` one nesting level at a time.

    ``None`` override values keep the default.
    """

    merged: dict[str, Any] = dict(defaults)
    for key, value in overrides.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_labels(current, value)
        else:
            merged[key] = value
    return merged
