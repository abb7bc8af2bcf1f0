"""Typed failures raised by the service layer.

The HTTP layer translates each of these into the JSON error envelope
using `code`, `status_code`, `message` and, when present, `details`.
"""

import re
from typing import Any

from pydantic import ValidationError


class ServiceError(Exception):
    """Base class for failures that map onto an API error response."""

    code: str = "SERVER_ERROR"
    status_code: int = 500
    message: str = "Something went wrong."

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        if code is not None:
            self.code = code
        self.details = details
        super().__init__(self.message)


class ValidationFailedError(ServiceError):
    """Malformed or out-of-range input."""

    code = "VALIDATION_ERROR"
    status_code = 422
    message = "The given data was invalid."

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailedError":
        return cls(details={field: [message]})


class NotFoundError(ServiceError):
    """A referenced entity does not exist (or is not visible to the caller)."""

    status_code = 404

    def __init__(self, entity: str, entity_id: Any = None, message: str | None = None) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            message or f"{entity.capitalize()} not found.",
            code=f"{entity.upper()}_NOT_FOUND",
        )


class InvalidArgumentError(ServiceError):
    """A malformed identifier, e.g. a non-numeric or non-positive id."""

    status_code = 400

    def __init__(self, entity: str, message: str | None = None) -> None:
        self.entity = entity
        super().__init__(
            message or f"Invalid {entity} ID provided.",
            code=f"INVALID_{entity.upper()}_ID",
        )


class TransientInfraError(ServiceError):
    """The store or the cache could not be reached."""

    code = "SERVER_ERROR"
    status_code = 500


class AuthenticationError(ServiceError):
    """Missing, invalid or expired bearer token."""

    code = "UNAUTHENTICATED"
    status_code = 401
    message = "Authentication required."


class InvalidCredentialsError(ServiceError):
    """Login with an unknown email or a wrong password."""

    code = "INVALID_CREDENTIALS"
    status_code = 422
    message = "Email or password is incorrect."


def parse_id(value: int | str, entity: str) -> int:
    """Return `value` as a positive int or raise InvalidArgumentError."""
    if isinstance(value, bool):
        raise InvalidArgumentError(entity)
    if isinstance(value, int):
        if value > 0:
            return value
        raise InvalidArgumentError(entity)
    text = str(value).strip()
    if not re.fullmatch(r"[0-9]+", text) or int(text) <= 0:
        raise InvalidArgumentError(entity)
    return int(text)


def validation_details(exc: Any) -> dict[str, list[str]]:
    """Group pydantic error entries by field name."""
    details: dict[str, list[str]] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location) or "__root__"
        message = error.get("msg", "Invalid value.")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.setdefault(field, []).append(message)
    return details


def validate_input(schema: type, data: Any) -> Any:
    """Build `schema` from raw input, raising ValidationFailedError on bad data."""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise ValidationFailedError(details=validation_details(e)) from e
