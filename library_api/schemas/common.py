"""
Shared schema building blocks.

- CamelModel: JSON bodies use camelCase (firstName), Python uses snake_case
- clean_text: trim + HTML-escape free text before length checks run
- check_url: http(s) URL check that keeps the string as entered

Sanitizing can be switched off with the validation context
{"sanitize": False}. The update pipeline uses this when it re-checks a
merged record whose stored values were already escaped once.
"""

import html
from typing import Any

from pydantic import BaseModel, ConfigDict, HttpUrl, TypeAdapter, ValidationError, ValidationInfo
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

_http_url = TypeAdapter(HttpUrl)


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases while accepting snake_case too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


def escape_text(value: str) -> str:
    """HTML-escape &, <, >, " and '."""
    return html.escape(value, quote=True)


def should_sanitize(info: ValidationInfo) -> bool:
    context = info.context or {}
    return context.get("sanitize", True)


def clean_text(value: Any, info: ValidationInfo, *, blank_as_none: bool = False) -> Any:
    """
    Trim and HTML-escape a string field.

    Non-string values pass through untouched so the field's own type check
    reports them.

    Args:
        value: Raw input value
        info: Pydantic validation info (carries the sanitize flag)
        blank_as_none: Treat an empty string as "not provided" (optional fields)
    """
    if not isinstance(value, str):
        return value

    value = value.strip()
    if blank_as_none and not value:
        return None
    if should_sanitize(info):
        value = escape_text(value)
    return value


def blank_to_none(value: Any) -> Any:
    """Map "" (and whitespace) to None for optional non-text fields."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def check_url(value: str | None) -> str | None:
    """
    Validate an absolute http(s) URL.

    Returns the original string rather than pydantic's normalized Url so
    what the client sent is what gets stored.
    """
    if value is None:
        return value
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise PydanticCustomError("url_format", "Must be a valid URL.") from None
    return value


def openapi_request_body(schema: type[BaseModel]) -> dict[str, Any]:
    """
    openapi_extra block documenting a JSON body.

    Write routes take the raw body so validation failures come back in the
    API's own envelope; this keeps the schema visible in the docs.
    """
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": schema.model_json_schema(by_alias=True)}},
        }
    }
