"""
Payload Validation Service

Runs a request body through the Pydantic schemas and flattens any
ValidationError into an ordered list of {field, message} violations.

Nothing here raises for bad input: callers get a ValidationResult and
decide what to do with it. Every field is checked, so a body with three
problems produces three violations.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from pydantic import BaseModel, ValidationError

from library_api.schemas.author import AuthorInput, AuthorPatch
from library_api.schemas.book import BookInput, BookPatch

NOT_AN_OBJECT = "Request body must be a JSON object."
MALFORMED_JSON = "Request body is not valid JSON."


@dataclass(frozen=True)
class Violation:
    """A single failed rule."""

    field: str
    message: str


@dataclass
class ValidationResult:
    """
    Sanitized values plus any violations.

    values uses snake_case keys. For partial validation it only holds the
    keys the client actually sent.
    """

    values: dict[str, Any] = field(default_factory=dict)
    violations: list[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations


def _field_name(loc: tuple[Any, ...]) -> str:
    """('genre', 1) -> 'genre[1]'; an empty location is the body itself."""
    if not loc:
        return "body"
    name = str(loc[0])
    for part in loc[1:]:
        if isinstance(part, int):
            name += f"[{part}]"
        else:
            name += f".{part}"
    return name


def _aliased_loc(loc: tuple[Any, ...], schema: type[BaseModel] | None) -> tuple[Any, ...]:
    """Report a field by its camelCase alias even when it was given by name."""
    if schema is None or not loc:
        return loc
    info = schema.model_fields.get(str(loc[0]))
    if info is None or not info.alias:
        return loc
    return (info.alias, *loc[1:])


def _message_for(
    loc: tuple[Any, ...],
    error: dict[str, Any],
    messages: dict[tuple[str, str], str],
) -> str:
    field_alias = str(loc[0]) if loc else "body"
    error_type = error["type"]

    # A null where a string is required reads as "missing" to the client
    if error_type == "string_type" and error.get("input") is None:
        error_type = "missing"

    return (
        messages.get((field_alias, error_type))
        or messages.get((field_alias, "*"))
        or error["msg"]
    )


def violations_from_error(
    exc: ValidationError,
    messages: dict[tuple[str, str], str] | None = None,
    schema: type[BaseModel] | None = None,
) -> list[Violation]:
    """
    Convert a Pydantic ValidationError into violations, in report order.

    With schema given, fields validated by their Python name are reported
    under their alias.
    """
    messages = messages or {}
    violations = []
    for err in exc.errors():
        loc = _aliased_loc(tuple(err["loc"]), schema)
        violations.append(Violation(field=_field_name(loc), message=_message_for(loc, err, messages)))
    return violations


def violations_from_request_errors(errors: Sequence[Any]) -> list[Violation]:
    """
    Convert FastAPI request parsing errors (RequestValidationError.errors()).

    Locations start with where the value came from ("body", "query", ...);
    that prefix is dropped. Unparseable JSON is reported against the body.
    """
    violations = []
    for err in errors:
        loc = tuple(err.get("loc", ()))
        if err.get("type") == "json_invalid":
            violations.append(Violation(field="body", message=MALFORMED_JSON))
            continue
        field_loc = loc[1:] if loc and loc[0] in ("body", "query", "path", "header", "cookie") else loc
        violations.append(Violation(field=_field_name(field_loc), message=err.get("msg", "Invalid value")))
    return violations


def run_schema(
    schema: type[BaseModel],
    payload: Any,
    *,
    partial: bool = False,
    context: dict[str, Any] | None = None,
) -> ValidationResult:
    """
    Validate payload against schema.

    Args:
        schema: Pydantic model carrying the field rules
        payload: Decoded JSON body (anything; non-objects are rejected)
        partial: Keep only the keys present in the payload
        context: Validation context (sanitize flag, reference date)
    """
    if not isinstance(payload, dict):
        return ValidationResult(violations=[Violation(field="body", message=NOT_AN_OBJECT)])

    messages = getattr(schema, "field_messages", {})
    try:
        model = schema.model_validate(payload, context=context)
    except ValidationError as exc:
        return ValidationResult(violations=violations_from_error(exc, messages, schema))

    return ValidationResult(values=model.model_dump(exclude_unset=partial))


def validate_author(payload: Any, partial: bool = False, sanitize: bool = True) -> ValidationResult:
    """Validate an author body. partial=True applies update (merge) semantics."""
    schema = AuthorPatch if partial else AuthorInput
    return run_schema(schema, payload, partial=partial, context={"sanitize": sanitize})


def validate_book(
    payload: Any,
    partial: bool = False,
    today: date | None = None,
    sanitize: bool = True,
) -> ValidationResult:
    """
    Validate a book body.

    today fixes the upper bound of publishedYear; it defaults to the
    current date.
    """
    schema = BookPatch if partial else BookInput
    context = {"sanitize": sanitize, "today": today or date.today()}
    return run_schema(schema, payload, partial=partial, context=context)
