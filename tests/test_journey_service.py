import pytest

from address_lookup.core.errors import (
    FormValidationError,
    InvalidJourneyConfig,
    JourneyCompleted,
    JourneyNotFound,
    StaleJourney,
)
from address_lookup.domain.journey import JourneyState
from address_lookup.services.journey_service import JourneyService, StepPage, StepRedirect
from address_lookup.services.keystore import InMemoryKeystore
from address_lookup.services.matcher import AddressMatcher

from conftest import StubProvider


def _service(candidates=()):
    provider = StubProvider(candidates)
    keystore = InMemoryKeystore()
    service = JourneyService(
        keystore, AddressMatcher(provider), id_factory=lambda: "journey1"
    )
    return service, keystore, provider


async def _start(service, payload):
    record = await service.initialise(payload)
    return record.journey_id


@pytest.mark.asyncio
async def test_uk_journey_lookup_select_confirm(journey_payload, candidates):
    journey_payload["options"]["ukMode"] = True
    service, keystore, provider = _service(candidates)
    journey_id = await _start(service, journey_payload)

    assert await service.begin(journey_id) == StepRedirect("/lookup-address/journey1/lookup")

    redirect = await service.lookup(journey_id, "zz11zz", " High ")
    assert redirect == StepRedirect("/lookup-address/journey1/select")
    assert provider.calls == [("postcode", "ZZ1 1ZZ", "High")]

    page = await service.show_select(journey_id)
    assert isinstance(page, StepPage)
    assert [proposal["id"] for proposal in page.data["proposals"]] == ["GB100", "GB200"]
    assert page.data["postcode"] == "ZZ1 1ZZ"
    assert page.labels["page"]["submitLabel"] == "Continue"

    redirect = await service.select(journey_id, "GB200")
    assert redirect == StepRedirect("/lookup-address/journey1/confirm")

    page = await service.show_confirm(journey_id)
    assert page.data["address"]["id"] == "GB200"
    assert page.data["address"]["country"]["code"] == "GB"

    redirect = await service.confirm(journey_id)
    assert redirect == StepRedirect("https://service.example/done?id=journey1")

    confirmed = await service.confirmed_address(journey_id)
    assert confirmed.id == "GB200"
    assert (await keystore.get(journey_id)).state is JourneyState.DONE


@pytest.mark.asyncio
async def test_second_confirm_never_double_commits(journey_payload):
    service, keystore, _ = _service()
    journey_id = await _start(service, journey_payload)
    await service.begin(journey_id)
    await service.edit(journey_id, {"line1": "1 Test Road", "town": "Testford"})
    await service.confirm(journey_id)

    with pytest.raises(JourneyCompleted):
        await service.confirm(journey_id)
    with pytest.raises(JourneyCompleted):
        await service.show_lookup(journey_id)

    assert (await service.confirmed_address(journey_id)).lines == ("1 Test Road",)


@pytest.mark.asyncio
async def test_begin_without_record_is_not_found():
    service, _, _ = _service()

    with pytest.raises(JourneyNotFound):
        await service.begin("missing")


@pytest.mark.asyncio
async def test_other_steps_without_record_are_stale():
    service, _, _ = _service()

    with pytest.raises(StaleJourney):
        await service.show_select("missing")
    with pytest.raises(StaleJourney):
        await service.confirm("missing")


@pytest.mark.asyncio
async def test_initialise_rejects_bad_config():
    service, _, _ = _service()

    with pytest.raises(InvalidJourneyConfig):
        await service.initialise({"version": 2, "options": {}})


@pytest.mark.asyncio
async def test_international_journey_uses_country_picker(journey_payload):
    service, keystore, _ = _service()
    journey_id = await _start(service, journey_payload)

    assert await service.begin(journey_id) == StepRedirect(
        "/lookup-address/journey1/country-picker"
    )
    page = await service.show_country_picker(journey_id, "cy")
    assert page.labels["page"]["countryLabel"] == "Gwlad"
    assert {"code": "FR", "name": "France"} in page.data["countries"]

    with pytest.raises(FormValidationError):
        await service.pick_country(journey_id, "")

    assert await service.pick_country(journey_id, "FR") == StepRedirect(
        "/lookup-address/journey1/edit"
    )
    page = await service.show_edit(journey_id)
    assert page.data["countryCode"] == "FR"

    await service.edit(journey_id, {"line1": "1 Rue de Rivoli", "town": "Paris"})
    record = await keystore.get(journey_id)
    assert record.state is JourneyState.CONFIRM
    assert record.selected_address.country.code == "FR"


@pytest.mark.asyncio
async def test_country_picker_gb_goes_to_lookup(journey_payload):
    service, _, _ = _service()
    journey_id = await _start(service, journey_payload)
    await service.begin(journey_id)

    assert await service.pick_country(journey_id, "UK") == StepRedirect(
        "/lookup-address/journey1/lookup"
    )


@pytest.mark.asyncio
async def test_confirm_without_staged_address_returns_to_lookup(journey_payload):
    service, keystore, _ = _service()
    journey_id = await _start(service, journey_payload)

    assert await service.show_confirm(journey_id) == StepRedirect(
        "/lookup-address/journey1/lookup"
    )
    assert await service.confirm(journey_id) == StepRedirect(
        "/lookup-address/journey1/lookup"
    )
    assert (await keystore.get(journey_id)).confirmed_address is None


@pytest.mark.asyncio
async def test_empty_lookup_renders_no_results(journey_payload):
    service, _, _ = _service()
    journey_id = await _start(service, journey_payload)

    await service.lookup(journey_id, "ZZ1 1ZZ", None)
    page = await service.show_select(journey_id)

    assert page.data["proposals"] == []
    assert page.data["noResults"] is True
    assert page.data["allowManualEntry"] is True

    with pytest.raises(FormValidationError) as excinfo:
        await service.select(journey_id, "GB100")
    assert excinfo.value.codes() == {"invalid_selection"}


@pytest.mark.asyncio
async def test_lookup_truncates_to_proposal_limit(journey_payload, candidates):
    journey_payload["options"]["proposalListLimit"] = 1
    service, keystore, _ = _service(candidates)
    journey_id = await _start(service, journey_payload)

    await service.lookup(journey_id, "ZZ1 1ZZ", None)

    record = await keystore.get(journey_id)
    assert [candidate.id for candidate in record.proposals] == ["GB100"]


@pytest.mark.asyncio
async def test_bfpo_lookup_prefers_postcode(journey_payload):
    service, _, provider = _service()
    journey_id = await _start(service, journey_payload)

    await service.lookup_bfpo(journey_id, "105", "bf1 3aa")
    await service.lookup_bfpo(journey_id, "BFPO 105", None)

    assert provider.calls == [("postcode", "BF1 3AA", None), ("outcode", "BF1", "105")]


@pytest.mark.asyncio
async def test_show_lookup_prefills_and_clears_staged_address(journey_payload, candidates):
    service, keystore, _ = _service(candidates)
    journey_id = await _start(service, journey_payload)
    await service.lookup(journey_id, "ZZ1 1ZZ", None)
    await service.select(journey_id, "GB100")

    page = await service.show_lookup(journey_id, "ZZ1 1ZZ", "High")

    assert page.data["postcode"] == "ZZ1 1ZZ"
    assert page.data["filter"] == "High"
    record = await keystore.get(journey_id)
    assert record.selected_address is None
    assert record.state is JourneyState.LOOKUP


@pytest.mark.asyncio
async def test_change_link_from_confirm_prefills_edit(journey_payload, candidates):
    service, keystore, _ = _service(candidates)
    journey_id = await _start(service, journey_payload)
    await service.lookup(journey_id, "ZZ1 1ZZ", None)
    await service.select(journey_id, "GB100")

    page = await service.show_edit(journey_id)

    assert page.data["address"]["lines"] == ["1 High Street", "Line 2"]
    assert (await keystore.get(journey_id)).state is JourneyState.EDIT


@pytest.mark.asyncio
async def test_continue_url_with_query_string(journey_payload):
    journey_payload["options"]["continueUrl"] = "https://service.example/done?from=alf"
    service, _, _ = _service()
    journey_id = await _start(service, journey_payload)
    await service.edit(journey_id, {"town": "Testford"})

    assert await service.confirm(journey_id) == StepRedirect(
        "https://service.example/done?from=alf&id=journey1"
    )


@pytest.mark.asyncio
async def test_steps_are_logged_with_their_trigger(monkeypatch, journey_payload):
    logs = []

    class _RecordingLogger:
        def info(self, event, **fields):
            logs.append({"event": event, **fields})

        warning = info

    monkeypatch.setattr(
        "address_lookup.services.journey_service._logger", _RecordingLogger()
    )
    service, _, _ = _service()
    journey_id = await _start(service, journey_payload)

    await service.begin(journey_id)

    step = next(entry for entry in logs if entry["event"] == "Journey step")
    assert step["trigger"] == "Begin"
    assert step["from_state"] == "begin"
    assert step["to_state"] == "country-picker"


@pytest.mark.asyncio
async def test_select_after_search_again_is_refused(journey_payload, candidates):
    service, keystore, _ = _service(candidates)
    journey_id = await _start(service, journey_payload)
    await service.lookup(journey_id, "ZZ1 1ZZ", None)
    await service.show_lookup(journey_id)

    redirect = await service.select(journey_id, "GB100")

    assert redirect == StepRedirect("/lookup-address/journey1/lookup")
    record = await keystore.get(journey_id)
    assert record.state is JourneyState.LOOKUP
    assert record.selected_address is None

    assert await service.show_confirm(journey_id) == StepRedirect(
        "/lookup-address/journey1/lookup"
    )
    assert await service.confirm(journey_id) == StepRedirect(
        "/lookup-address/journey1/lookup"
    )
    assert await service.confirmed_address(journey_id) is None


@pytest.mark.asyncio
async def test_confirm_waits_until_user_is_back_on_confirm(journey_payload, candidates):
    service, keystore, _ = _service(candidates)
    journey_id = await _start(service, journey_payload)
    await service.lookup(journey_id, "ZZ1 1ZZ", None)
    await service.select(journey_id, "GB100")
    await service.show_edit(journey_id)

    assert await service.show_confirm(journey_id) == StepRedirect(
        "/lookup-address/journey1/edit"
    )
    assert await service.confirm(journey_id) == StepRedirect(
        "/lookup-address/journey1/edit"
    )
    record = await keystore.get(journey_id)
    assert record.state is JourneyState.EDIT
    assert record.confirmed_address is None


@pytest.mark.asyncio
async def test_select_uses_current_upstream_record(journey_payload, candidates):
    service, keystore, provider = _service(candidates)
    journey_id = await _start(service, journey_payload)
    await service.lookup(journey_id, "ZZ1 1ZZ", None)
    provider.candidates[0] = provider.candidates[0].model_copy(update={"town": "Newtown"})

    await service.select(journey_id, "GB200")

    assert provider.calls[-1] == ("id", "GB200")
    staged = (await keystore.get(journey_id)).selected_address
    assert staged.town == "Newtown"
    assert staged.country.code == "GB"


@pytest.mark.asyncio
async def test_select_falls_back_to_stored_proposal(journey_payload, candidates):
    service, keystore, provider = _service(candidates)
    journey_id = await _start(service, journey_payload)
    await service.lookup(journey_id, "ZZ1 1ZZ", None)
    provider.candidates.clear()

    await service.select(journey_id, "GB100")

    staged = (await keystore.get(journey_id)).selected_address
    assert staged.id == "GB100"
    assert staged.lines == ("1 High Street", "Line 2")
