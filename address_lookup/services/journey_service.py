from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping
from uuid import uuid4

from address_lookup.core.config import Settings, get_settings
from address_lookup.core.errors import JourneyCompleted, JourneyNotFound, StaleJourney
from address_lookup.core.logging import bind_journey, get_logger
from address_lookup.domain.countries import COUNTRIES
from address_lookup.domain.journey import (
    AddressEdited,
    AddressSelected,
    Begin,
    ChangeRequested,
    Complete,
    ConfirmRequested,
    CountryPicked,
    Event,
    JourneyState,
    LookupCompleted,
    ManualEntryRequested,
    Reject,
    SearchAgainRequested,
    allows,
    transition,
)
from address_lookup.domain.validation import (
    validate_bfpo,
    validate_country,
    validate_edit,
    validate_lookup,
    validate_select,
)
from address_lookup.schemas.address import ConfirmedAddress
from address_lookup.schemas.journey import (
    JourneyRecord,
    LookupQuery,
    PageLabels,
    validate_config,
)
from address_lookup.services.keystore import Keystore, create_keystore
from address_lookup.services.matcher import AddressMatcher
from address_lookup.services.provider import AddressLookupClient


_logger = get_logger(__name__)

_PAGE_LABELS = {
    JourneyState.COUNTRY_PICKER: "country_picker_labels",
    JourneyState.LOOKUP: "lookup_page_labels",
    JourneyState.SELECT: "select_page_labels",
    JourneyState.EDIT: "edit_page_labels",
    JourneyState.CONFIRM: "confirm_page_labels",
}


@dataclass(frozen=True, slots=True)
class StepRedirect:
    url: str


@dataclass(frozen=True, slots=True)
class StepPage:
    journey_id: str
    step: JourneyState
    labels: dict[str, Any]
    data: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            "journeyId": self.journey_id,
            "step": self.step.value,
            "labels": self.labels,
            "data": self.data,
        }


StepOutcome = StepRedirect | StepPage


class JourneyService:
    """Runs each journey step against the keystore and the address matcher."""

    def __init__(
        self,
        keystore: Keystore,
        matcher: AddressMatcher,
        *,
        base_path: str = "/lookup-address",
        id_factory: Callable[[], str] = lambda: uuid4().hex,
    ) -> None:
        self._keystore = keystore
        self._matcher = matcher
        self._base_path = base_path.rstrip("/")
        self._id_factory = id_factory

    def step_url(self, journey_id: str, step: JourneyState) -> str:
        return f"{self._base_path}/{journey_id}/{step.value}"

    async def initialise(self, raw_config: Mapping[str, Any]) -> JourneyRecord:
        config = validate_config(raw_config)
        journey_id = self._id_factory()
        record = JourneyRecord(journey_id=journey_id, config=config)
        await self._keystore.put(journey_id, record)
        _logger.info(
            "Journey initialised",
            journey_id=journey_id,
            uk_mode=config.options.uk_mode,
            continue_url=config.options.continue_url,
        )
        return record

    async def begin(self, journey_id: str) -> StepRedirect:
        bind_journey(journey_id, JourneyState.BEGIN.value)
        record = await self._keystore.get(journey_id)
        if record is None:
            raise JourneyNotFound(journey_id)
        return await self._advance(record, Begin(uk_mode=record.uk_mode))

    async def show_country_picker(self, journey_id: str, locale: str = "en") -> StepOutcome:
        record = await self._load(journey_id, JourneyState.COUNTRY_PICKER)
        if not record.config.options.include_country_picker:
            return StepRedirect(self.step_url(journey_id, JourneyState.LOOKUP))
        return self._page(
            record,
            JourneyState.COUNTRY_PICKER,
            locale,
            countries=[{"code": code, "name": name} for code, name in COUNTRIES.items()],
            selected=record.country.code if record.country else None,
        )

    async def pick_country(
        self, journey_id: str, country_code: str | None, locale: str = "en"
    ) -> StepRedirect:
        record = await self._load(journey_id, JourneyState.COUNTRY_PICKER)
        if not record.config.options.include_country_picker:
            return await self._advance(record, CountryPicked(is_uk=True))

        country = validate_country(country_code, locale=locale)
        record.country = country
        record.selected_address = None
        _logger.info("Country picked", country=country.code)
        return await self._advance(record, CountryPicked(is_uk=country.code == "GB"))

    async def show_lookup(
        self,
        journey_id: str,
        postcode: str | None = None,
        filter: str | None = None,
        locale: str = "en",
    ) -> StepPage:
        record = await self._load(journey_id, JourneyState.LOOKUP)
        record.selected_address = None
        await self._navigate(record, SearchAgainRequested())
        return self._page(
            record,
            JourneyState.LOOKUP,
            locale,
            postcode=postcode or "",
            filter=filter or "",
            allowManualEntry=record.config.options.allow_manual_entry,
        )

    async def lookup(
        self,
        journey_id: str,
        postcode: str | None,
        filter: str | None = None,
        locale: str = "en",
    ) -> StepRedirect:
        record = await self._load(journey_id, JourneyState.LOOKUP)
        form = validate_lookup(postcode, filter, uk_mode=record.uk_mode, locale=locale)
        candidates = await self._matcher.find(form.postcode, form.filter, record.uk_mode)
        return await self._store_proposals(
            record, LookupQuery(postcode=str(form.postcode), filter=form.filter), candidates
        )

    async def lookup_bfpo(
        self,
        journey_id: str,
        number: str | None,
        postcode: str | None,
        locale: str = "en",
    ) -> StepRedirect:
        record = await self._load(journey_id, JourneyState.LOOKUP)
        form = validate_bfpo(number, postcode, locale=locale)
        if form.postcode is not None:
            candidates = await self._matcher.find(form.postcode, None, record.uk_mode)
        else:
            candidates = await self._matcher.find_bfpo(form.number or "")
        query = LookupQuery(
            postcode=str(form.postcode) if form.postcode else "",
            filter=form.number,
        )
        return await self._store_proposals(record, query, candidates)

    async def show_select(self, journey_id: str, locale: str = "en") -> StepOutcome:
        record = await self._load(journey_id, JourneyState.SELECT)
        if record.proposals is None:
            return StepRedirect(self.step_url(journey_id, JourneyState.LOOKUP))
        options = record.config.options
        return self._page(
            record,
            JourneyState.SELECT,
            locale,
            postcode=record.lookup.postcode if record.lookup else "",
            filter=(record.lookup.filter if record.lookup else None) or "",
            proposals=[candidate.model_dump(mode="json") for candidate in record.proposals],
            noResults=not record.proposals,
            allowManualEntry=options.allow_manual_entry,
            showSearchAgainLink=options.show_search_again_link,
        )

    async def select(
        self, journey_id: str, address_id: str | None, locale: str = "en"
    ) -> StepRedirect:
        record = await self._load(journey_id, JourneyState.SELECT)
        if record.proposals is None:
            return StepRedirect(self.step_url(journey_id, JourneyState.LOOKUP))
        event = AddressSelected()
        if not allows(record.state, event):
            return self._refuse(record, event)

        candidate = validate_select(address_id, record.proposals, locale=locale)
        current = await self._matcher.find_by_id(candidate.id)
        if current is None:
            _logger.warning(
                "Selected address no longer known upstream", address_id=candidate.id
            )
            current = candidate
        record.selected_address = ConfirmedAddress.from_candidate(current)
        _logger.info("Address selected", address_id=current.id)
        return await self._advance(record, event)

    async def show_edit(self, journey_id: str, locale: str = "en") -> StepPage:
        record = await self._load(journey_id, JourneyState.EDIT)
        if record.state in (JourneyState.CONFIRM, JourneyState.EDIT):
            await self._navigate(record, ChangeRequested())
        else:
            await self._navigate(record, ManualEntryRequested())

        staged = record.selected_address
        country = staged.country if staged else record.country
        data: dict[str, Any] = {
            "address": staged.model_dump(mode="json") if staged else None,
            "countryCode": "GB" if record.uk_mode else (country.code if country else None),
            "ukMode": record.uk_mode,
        }
        if not record.uk_mode:
            data["countries"] = [
                {"code": code, "name": name} for code, name in COUNTRIES.items()
            ]
        return self._page(record, JourneyState.EDIT, locale, **data)

    async def edit(
        self, journey_id: str, form: Mapping[str, str | None], locale: str = "en"
    ) -> StepRedirect:
        record = await self._load(journey_id, JourneyState.EDIT)
        address = validate_edit(
            form,
            uk_mode=record.uk_mode,
            default_country=record.country,
            locale=locale,
        )
        record.selected_address = address
        _logger.info("Address entered manually", country=address.country.code)
        return await self._advance(record, AddressEdited())

    async def show_confirm(self, journey_id: str, locale: str = "en") -> StepOutcome:
        record = await self._load(journey_id, JourneyState.CONFIRM)
        if record.selected_address is None:
            _logger.info("Nothing staged to confirm, returning to lookup")
            return StepRedirect(self.step_url(journey_id, JourneyState.LOOKUP))
        if record.state is not JourneyState.CONFIRM:
            return StepRedirect(self.step_url(journey_id, record.state))
        options = record.config.options
        return self._page(
            record,
            JourneyState.CONFIRM,
            locale,
            address=record.selected_address.model_dump(mode="json"),
            showChangeLink=options.show_change_link,
            showSearchAgainLink=options.show_search_again_link,
        )

    async def confirm(self, journey_id: str) -> StepRedirect:
        record = await self._load(journey_id, JourneyState.CONFIRM)
        staged = record.selected_address is not None
        if staged and record.state is not JourneyState.CONFIRM:
            # The address was staged by a step the user has since left.
            return self._refuse(record, ConfirmRequested(has_staged_address=True))
        return await self._advance(record, ConfirmRequested(has_staged_address=staged))

    async def confirmed_address(self, journey_id: str) -> ConfirmedAddress | None:
        record = await self._keystore.get(journey_id)
        if record is None:
            return None
        return record.confirmed_address

    async def _load(self, journey_id: str, step: JourneyState) -> JourneyRecord:
        bind_journey(journey_id, step.value)
        record = await self._keystore.get(journey_id)
        if record is None:
            raise StaleJourney(journey_id)
        if record.state.is_terminal:
            raise JourneyCompleted(journey_id)
        return record

    async def _store_proposals(
        self, record: JourneyRecord, query: LookupQuery, candidates: list
    ) -> StepRedirect:
        limit = record.config.options.proposal_list_limit
        if limit is not None and len(candidates) > limit:
            _logger.info("Proposals truncated", found=len(candidates), limit=limit)
            candidates = candidates[:limit]
        record.lookup = query
        record.proposals = candidates
        record.selected_address = None
        event = LookupCompleted(candidate_count=len(candidates))
        _logger.info("Proposals stored", proposals=event.candidate_count)
        return await self._advance(record, event)

    async def _advance(self, record: JourneyRecord, event: Event) -> StepRedirect:
        previous = record.state
        state, effect = transition(previous, event)
        if isinstance(effect, Reject):
            raise JourneyCompleted(record.journey_id)
        if not allows(previous, event):
            return self._refuse(record, event)

        if isinstance(effect, Complete):
            record.commit()
            record.state = state
            await self._keystore.put(record.journey_id, record)
            _logger.info("Journey completed", address_id=record.confirmed_address.id)
            return StepRedirect(self._continue_url(record))

        record.state = state
        await self._keystore.put(record.journey_id, record)
        _logger.info(
            "Journey step",
            trigger=type(event).__name__,
            from_state=previous.value,
            to_state=effect.step.value,
        )
        return StepRedirect(self.step_url(record.journey_id, effect.step))

    def _refuse(self, record: JourneyRecord, event: Event) -> StepRedirect:
        """Send the user back to their current step without saving anything."""

        _logger.info(
            "Journey step refused",
            trigger=type(event).__name__,
            state=record.state.value,
        )
        return StepRedirect(self.step_url(record.journey_id, record.state))

    async def _navigate(self, record: JourneyRecord, event: Event) -> None:
        state, _ = transition(record.state, event)
        record.state = state
        await self._keystore.put(record.journey_id, record)

    def _page(
        self, record: JourneyRecord, step: JourneyState, locale: str, **data: Any
    ) -> StepPage:
        return StepPage(
            journey_id=record.journey_id,
            step=step,
            labels=_labels_for(record.config.labels.for_locale(locale), step),
            data={
                "pageHeadingStyle": record.config.options.page_heading_style,
                **data,
            },
        )

    @staticmethod
    def _continue_url(record: JourneyRecord) -> str:
        url = record.config.options.continue_url
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}id={record.journey_id}"


def _labels_for(labels: PageLabels, step: JourneyState) -> dict[str, Any]:
    page = getattr(labels, _PAGE_LABELS[step])
    return {
        "app": labels.app_level_labels.model_dump(by_alias=True),
        "page": page.model_dump(by_alias=True),
    }


_journey_service: JourneyService | None = None


def get_journey_service(settings: Settings | None = None) -> JourneyService:
    global _journey_service
    if _journey_service is None:
        settings = settings or get_settings()
        _journey_service = JourneyService(
            create_keystore(settings),
            AddressMatcher(AddressLookupClient.from_settings(settings)),
            base_path=settings.base_path,
        )
    return _journey_service
