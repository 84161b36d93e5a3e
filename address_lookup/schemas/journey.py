from __future__ import annotations

from typing import Any, Callable, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from address_lookup.core.errors import (
    InvalidJourneyConfig,
    JourneyCompleted,
    StaleJourney,
    UnsupportedConfigVersion,
    UnsupportedRecordVersion,
)
from address_lookup.domain.journey import JourneyState
from address_lookup.domain.messages import DEFAULT_LABELS, LOCALES, merge_labels
from address_lookup.schemas.address import AddressCandidate, ConfirmedAddress, Country


SUPPORTED_CONFIG_VERSIONS = frozenset({2})
RECORD_SCHEMA_VERSION = 1

HeadingStyle = Literal[
    "govuk-heading-xl", "govuk-heading-l", "govuk-heading-m", "govuk-heading-s"
]


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class AppLevelLabels(_CamelModel):
    nav_title: str
    phase_banner_html: str


class CountryPickerLabels(_CamelModel):
    title: str
    heading: str
    country_label: str
    submit_label: str


class LookupPageLabels(_CamelModel):
    title: str
    title_uk_mode: str
    heading: str
    heading_uk_mode: str
    filter_label: str
    postcode_label: str
    postcode_label_uk_mode: str
    submit_label: str
    no_results_found_message: str
    manual_address_link_text: str


class SelectPageLabels(_CamelModel):
    title: str
    heading: str
    heading_with_postcode: str
    proposal_list_label: str
    submit_label: str
    search_again_link_text: str
    edit_address_link_text: str
    no_results_found_message: str


class EditPageLabels(_CamelModel):
    title: str
    heading: str
    organisation_label: str
    line1_label: str = Field(alias="line1Label")
    line2_label: str = Field(alias="line2Label")
    line3_label: str = Field(alias="line3Label")
    town_label: str
    postcode_label: str
    postcode_label_uk_mode: str
    country_label: str
    submit_label: str


class ConfirmPageLabels(_CamelModel):
    title: str
    heading: str
    info_subheading: str
    info_message: str
    submit_label: str
    search_again_link_text: str
    change_link_text: str
    confirm_change_text: str


class PageLabels(_CamelModel):
    """Every text a journey may show, fully populated for one locale."""

    app_level_labels: AppLevelLabels
    country_picker_labels: CountryPickerLabels
    lookup_page_labels: LookupPageLabels
    select_page_labels: SelectPageLabels
    edit_page_labels: EditPageLabels
    confirm_page_labels: ConfirmPageLabels


class JourneyLabels(_CamelModel):
    en: PageLabels
    cy: PageLabels

    def for_locale(self, locale: str) -> PageLabels:
        return self.cy if locale == "cy" else self.en


class JourneyOptions(_CamelModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    continue_url: str = Field(min_length=1, max_length=2048)
    uk_mode: bool = False
    allow_manual_entry: bool = True
    show_search_again_link: bool = False
    show_change_link: bool = True
    page_heading_style: HeadingStyle = "govuk-heading-xl"
    proposal_list_limit: int | None = Field(default=None, gt=0)

    @field_validator("continue_url", mode="before")
    def _clean_continue_url(cls, value: Any) -> Any:
        if isinstance(value, str):
            cleaned = value.strip()
            if any(ch.isspace() for ch in cleaned):
                raise ValueError("continueUrl must not contain whitespace")
            return cleaned
        return value

    @property
    def include_country_picker(self) -> bool:
        return not self.uk_mode


class JourneyConfig(_CamelModel):
    """Journey options and labels, fixed for the lifetime of a journey."""

    version: int
    options: JourneyOptions
    labels: JourneyLabels

    @classmethod
    def from_payload(cls, raw: Mapping[str, Any]) -> "JourneyConfig":
        if not isinstance(raw, Mapping):
            raise InvalidJourneyConfig("Journey config must be a JSON object")

        version = raw.get("version")
        if version not in SUPPORTED_CONFIG_VERSIONS:
            raise UnsupportedConfigVersion(
                f"Unsupported journey config version {version!r}",
                details={"supported": sorted(SUPPORTED_CONFIG_VERSIONS)},
            )

        overrides = raw.get("labels") or {}
        if not isinstance(overrides, Mapping):
            raise InvalidJourneyConfig("labels must be a JSON object")

        payload = {
            "version": version,
            "options": raw.get("options"),
            "labels": resolve_labels(overrides),
        }
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise InvalidJourneyConfig(
                "Invalid journey config", details=_describe_errors(exc)
            ) from exc


def validate_config(raw: Mapping[str, Any]) -> JourneyConfig:
    return JourneyConfig.from_payload(raw)


def resolve_labels(overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Merge per-locale overrides over the built-in defaults."""

    unknown = set(overrides) - set(LOCALES)
    if unknown:
        raise InvalidJourneyConfig(
            "Unsupported label locale", details={"locales": sorted(unknown)}
        )
    resolved: dict[str, Any] = {}
    for locale in LOCALES:
        locale_overrides = overrides.get(locale) or {}
        if not isinstance(locale_overrides, Mapping):
            raise InvalidJourneyConfig(f"labels.{locale} must be a JSON object")
        resolved[locale] = merge_labels(DEFAULT_LABELS[locale], dict(locale_overrides))
    return resolved


def _describe_errors(exc: ValidationError) -> list[dict[str, str]]:
    return [
        {"loc": ".".join(str(part) for part in error["loc"]), "msg": error["msg"]}
        for error in exc.errors()
    ]


class LookupQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    postcode: str = ""
    filter: str | None = None


class JourneyRecord(BaseModel):
    """Persisted state of one journey, keyed by its journey id."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    schema_version: int = RECORD_SCHEMA_VERSION
    journey_id: str
    config: JourneyConfig
    state: JourneyState = JourneyState.BEGIN
    lookup: LookupQuery | None = None
    proposals: list[AddressCandidate] | None = None
    country: Country | None = None
    selected_address: ConfirmedAddress | None = None
    confirmed_address: ConfirmedAddress | None = None

    @property
    def uk_mode(self) -> bool:
        return self.config.options.uk_mode

    def commit(self) -> ConfirmedAddress:
        """Move the staged address into ``confirmed_address`` exactly once."""

        if self.confirmed_address is not None:
            raise JourneyCompleted(self.journey_id)
        if self.selected_address is None:
            raise ValueError("No staged address to confirm")
        self.confirmed_address = self.selected_address
        return self.confirmed_address

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def _migrate_v0(payload: dict[str, Any]) -> dict[str, Any]:
    """Unversioned records carried no explicit state."""

    migrated = dict(payload)
    if migrated.get("confirmedAddress"):
        state = JourneyState.DONE
    elif migrated.get("selectedAddress"):
        state = JourneyState.CONFIRM
    elif migrated.get("proposals") is not None:
        state = JourneyState.SELECT
    else:
        state = JourneyState.BEGIN
    migrated["state"] = state.value
    migrated["schemaVersion"] = 1
    return migrated


MIGRATIONS: dict[int, Callable[[dict[str, Any]], dict[str, Any]]] = {0: _migrate_v0}


def load_record(journey_id: str, payload: Mapping[str, Any]) -> JourneyRecord:
    """Build a record from keystore JSON, migrating older schema versions."""

    data = dict(payload)
    version = data.get("schemaVersion", 0)
    if not isinstance(version, int) or version > RECORD_SCHEMA_VERSION:
        raise UnsupportedRecordVersion(journey_id, version)

    while version < RECORD_SCHEMA_VERSION:
        migrate = MIGRATIONS.get(version)
        if migrate is None:
            raise UnsupportedRecordVersion(journey_id, version)
        data = migrate(data)
        version = data["schemaVersion"]

    data.setdefault("journeyId", journey_id)
    try:
        return JourneyRecord.model_validate(data)
    except ValidationError as exc:
        raise StaleJourney(journey_id, reason="unreadable") from exc
