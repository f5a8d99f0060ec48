"""
Pipeline Outcomes

Every catalog operation returns an Outcome instead of raising. The router
turns it into a JSON response with render().

Response envelope:
    success: {"success": true, "data": ..., <extra keys>}
    failure: {"success": false, "error": "...", "errors": [{field, message}]}
"""

import enum
from dataclasses import dataclass, field
from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse

from library_api.services.validation import Violation


class ErrorKind(str, enum.Enum):
    """Failure categories a pipeline run can end in."""

    MALFORMED_ID = "malformed_id"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    REFERENTIAL = "referential"
    UNAUTHORIZED = "unauthorized"
    UPSTREAM = "upstream"


ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.MALFORMED_ID: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.REFERENTIAL: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.UPSTREAM: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

UNAUTHORIZED_MESSAGE = "Authentication required. Please log in."


@dataclass
class Outcome:
    """Result of one pipeline run."""

    status_code: int
    data: Any = None
    message: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    error_kind: ErrorKind | None = None
    violations: list[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    @classmethod
    def success(
        cls,
        data: Any,
        status_code: int = status.HTTP_200_OK,
        message: str | None = None,
        **extra: Any,
    ) -> "Outcome":
        return cls(status_code=status_code, data=data, message=message, extra=extra)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        violations: list[Violation] | None = None,
    ) -> "Outcome":
        return cls(
            status_code=ERROR_STATUS[kind],
            message=message,
            error_kind=kind,
            violations=violations or [],
        )

    @classmethod
    def unauthorized(cls) -> "Outcome":
        return cls.failure(ErrorKind.UNAUTHORIZED, UNAUTHORIZED_MESSAGE)

    def to_body(self) -> dict[str, Any]:
        """Build the JSON envelope."""
        if self.ok:
            body: dict[str, Any] = {"success": True}
            if self.message is not None:
                body["message"] = self.message
            body.update(self.extra)
            body["data"] = self.data
            return body

        body = {"success": False, "error": self.message}
        if self.violations:
            body["errors"] = [
                {"field": v.field, "message": v.message} for v in self.violations
            ]
        return body


def render(outcome: Outcome) -> JSONResponse:
    """Convert an Outcome into the HTTP response."""
    return JSONResponse(status_code=outcome.status_code, content=outcome.to_body())
