from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette import status

from address_lookup.core.config import get_settings
from address_lookup.core.logging import get_logger


_logger = get_logger(__name__)


class JourneyError(Exception):
    """Base class for every error raised while driving a journey."""


@dataclass(frozen=True, slots=True)
class FieldError:
    field: str
    code: str
    message: str


class FormValidationError(JourneyError):
    """Raised when submitted step data fails validation."""

    def __init__(
        self,
        errors: list[FieldError],
        *,
        step: str | None = None,
        values: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(", ".join(f"{err.field}: {err.code}" for err in errors))
        self.errors = errors
        self.step = step
        self.values = dict(values or {})

    def codes(self) -> set[str]:
        return {err.code for err in self.errors}

    def for_field(self, field: str) -> list[FieldError]:
        return [err for err in self.errors if err.field == field]


class PostcodeError(JourneyError):
    code = "invalid_postcode"
    message_key = "lookupPostcodeError"

    def __init__(self, raw: str, uk_mode: bool = False) -> None:
        super().__init__(f"{self.code}: {raw!r}")
        self.raw = raw
        self.uk_mode = uk_mode

    @property
    def message_id(self) -> str:
        return f"{self.message_key}.ukMode" if self.uk_mode else self.message_key


class EmptyPostcode(PostcodeError):
    code = "empty_postcode"
    message_key = "lookupPostcodeEmptyError"


class InvalidCharacters(PostcodeError):
    code = "invalid_characters"
    message_key = "lookupPostcodeInvalidError"


class MalformedPostcode(PostcodeError):
    code = "malformed_postcode"
    message_key = "lookupPostcodeError"


class InvalidJourneyConfig(JourneyError):
    """Raised when a calling service supplies an unusable journey config."""

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(message)
        self.details = details


class UnsupportedConfigVersion(InvalidJourneyConfig):
    pass


class ServiceUnavailable(JourneyError):
    """An outbound dependency failed; the whole request may be retried."""


class LookupUnavailable(ServiceUnavailable):
    pass


class KeystoreUnavailable(ServiceUnavailable):
    pass


class StaleJourney(JourneyError):
    """No usable journey record exists for the requested id."""

    def __init__(self, journey_id: str, reason: str = "missing") -> None:
        super().__init__(f"Journey {journey_id} is {reason}")
        self.journey_id = journey_id
        self.reason = reason


class UnsupportedRecordVersion(StaleJourney):
    def __init__(self, journey_id: str, version: Any) -> None:
        super().__init__(journey_id, reason=f"stored with unknown schema version {version!r}")
        self.version = version


class JourneyNotFound(JourneyError):
    def __init__(self, journey_id: str) -> None:
        super().__init__(f"Journey {journey_id} not found")
        self.journey_id = journey_id


class JourneyCompleted(JourneyError):
    def __init__(self, journey_id: str) -> None:
        super().__init__(f"Journey {journey_id} has already been completed")
        self.journey_id = journey_id


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code)


async def form_validation_handler(request: Request, exc: FormValidationError):
    return ErrorEnvelope(
        status_code=status.HTTP_400_BAD_REQUEST,
        code="validation_error",
        message="Validation failed",
        details={
            "step": exc.step,
            "errors": [asdict(err) for err in exc.errors],
            "values": exc.values,
        },
    )


async def invalid_config_handler(request: Request, exc: InvalidJourneyConfig):
    return ErrorEnvelope(
        status_code=status.HTTP_400_BAD_REQUEST,
        code="invalid_journey_config",
        message=str(exc),
        details=exc.details,
    )


async def service_unavailable_handler(request: Request, exc: ServiceUnavailable):
    _logger.error(
        "Dependency unavailable",
        path=request.url.path,
        dependency=type(exc).__name__,
        error=str(exc),
    )
    return ErrorEnvelope(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        code="service_unavailable",
        message="Sorry, there is a problem with the service",
    )


async def stale_journey_handler(request: Request, exc: StaleJourney):
    settings = get_settings()
    _logger.info("Stale journey, restarting", journey_id=exc.journey_id, reason=exc.reason)
    return RedirectResponse(
        url=f"{settings.base_path}/{exc.journey_id}/begin",
        status_code=status.HTTP_303_SEE_OTHER,
    )


async def journey_not_found_handler(request: Request, exc: JourneyNotFound):
    return ErrorEnvelope(
        status_code=status.HTTP_404_NOT_FOUND,
        code="journey_not_found",
        message=str(exc),
    )


async def journey_completed_handler(request: Request, exc: JourneyCompleted):
    return ErrorEnvelope(
        status_code=status.HTTP_409_CONFLICT,
        code="journey_completed",
        message=str(exc),
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FormValidationError, form_validation_handler)
    app.add_exception_handler(InvalidJourneyConfig, invalid_config_handler)
    app.add_exception_handler(ServiceUnavailable, service_unavailable_handler)
    app.add_exception_handler(StaleJourney, stale_journey_handler)
    app.add_exception_handler(JourneyNotFound, journey_not_found_handler)
    app.add_exception_handler(JourneyCompleted, journey_completed_handler)
