"""Request schemas for the sign-on endpoints and all-violations validation."""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    TypeAdapter,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_email_adapter: TypeAdapter[str] = TypeAdapter(EmailStr)
_url_adapter: TypeAdapter[AnyUrl] = TypeAdapter(AnyUrl)

_REQUIRED_ERROR_TYPES = {"missing", "string_too_short"}


class _RequestSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class SignupRequest(_RequestSchema):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    image_url: str = Field(..., alias="imageUrl", min_length=1)
    google_id: str = Field(..., alias="googleId", min_length=1)
    google_token: str = Field(..., alias="googleToken", min_length=1)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        try:
            _email_adapter.validate_python(value)
        except PydanticValidationError:
            raise PydanticCustomError("email", "email must be a valid email") from None
        return value

    @field_validator("image_url")
    @classmethod
    def _check_image_url(cls, value: str) -> str:
        try:
            _url_adapter.validate_python(value)
        except PydanticValidationError:
            raise PydanticCustomError("url", "imageUrl must be a valid URL") from None
        return value


class CodeExchangeSignupRequest(_RequestSchema):
    google_access_token: str = Field(..., alias="googleAccessToken", min_length=1)


class LoginRequest(_RequestSchema):
    google_id: str = Field(..., alias="googleId", min_length=1)
    google_token: str = Field(..., alias="googleToken", min_length=1)


def _describe(error: Mapping[str, Any]) -> str:
    loc = error.get("loc") or ("body",)
    field = str(loc[0])
    error_type = error.get("type")

    if error_type in _REQUIRED_ERROR_TYPES or error.get("input", "") is None:
        return f"{field} is a required field"
    if error_type == "string_type":
        return f"{field} must be a `string` type"
    return str(error.get("msg"))


def validate_payload(
    schema: Type[SchemaT],
    payload: Any,
) -> Tuple[Optional[SchemaT], List[str]]:
    """Validate ``payload`` against ``schema``.

    Returns the parsed request and an empty list, or ``None`` and one message per
    violated field in the order the schema declares them.
    """

    data = payload if isinstance(payload, Mapping) else {}
    try:
        return schema.model_validate(dict(data)), []
    except PydanticValidationError as exc:
        messages: List[str] = []
        seen = set()
        for error in exc.errors():
            loc = error.get("loc") or ("body",)
            if loc[0] in seen:
                continue
            seen.add(loc[0])
            messages.append(_describe(error))
        return None, messages


__all__ = [
    "CodeExchangeSignupRequest",
    "LoginRequest",
    "SignupRequest",
    "validate_payload",
]
