from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field, field_validator


class UserOut(BaseModel):
    """A stored user as the API returns it, `createTimestamp` in UTC."""

    id: int
    name: str
    email: str
    create_timestamp: Optional[datetime] = Field(
        default=None, serialization_alias="createTimestamp"
    )

    class Config:
        from_attributes = True

    @field_validator("create_timestamp")
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # The column is a zone-less TIMESTAMP holding the store's UTC clock.
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class ErrorResponse(BaseModel):
    detail: str


class FieldError(ValueError):
    """A request body field failed its type check."""


USER_FIELDS = ("name", "email")


def require_string(payload: Dict[str, Any], field: str) -> str:
    """Extract `field` from a decoded JSON object as a string.

    One branch per JSON shape: a string is returned as-is (possibly empty),
    null or an absent key is "required", anything else is a type error.
    """
    label = field.capitalize()
    value = payload.get(field)
    if isinstance(value, str):
        return value
    if value is None:
        raise FieldError(f"{label} is Required")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        raise FieldError(f"{label} must be a string, not a number")
    raise FieldError(f"{label} must be a string")


def parse_user_create(payload: Any) -> tuple[str, str]:
    """Validate a POST /users body and return `(name, email)`.

    Raises:
        FieldError: with the client-facing message.
    """
    if not isinstance(payload, dict):
        raise FieldError("invalid JSON: request body must be a JSON object")

    for key in payload:
        if key not in USER_FIELDS:
            raise FieldError(f'invalid JSON: unknown field "{key}"')

    name = require_string(payload, "name")
    email = require_string(payload, "email")
    if name == "" or email == "":
        raise FieldError("Name and Email are required")
    return name, email


def format_validation_error(exc: RequestValidationError) -> str:
    parts: List[str] = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ()))
        parts.append(f"{loc}: {error.get('msg')}" if loc else str(error.get("msg")))
    return "invalid JSON: " + "; ".join(parts)
