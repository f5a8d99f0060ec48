"""
Pydantic Schemas Package

Request rules and response shapes for the API.

Schema Naming Convention:
- XxxInput: Field rules for creating a record
- XxxPatch: Same rules, every field optional (partial update)
- XxxResponse: Fields returned in API responses
- BookSummary: Compact list entry
- Principal: Identity attached to a login session
"""

from library_api.schemas.author import (
    AuthorInput,
    AuthorPatch,
    AuthorResponse,
)
from library_api.schemas.book import (
    BookBase,
    BookInput,
    BookPatch,
    BookResponse,
    BookSummary,
)
from library_api.schemas.principal import Principal, PrincipalResponse

__all__ = [
    # Author schemas
    "AuthorInput",
    "AuthorPatch",
    "AuthorResponse",
    # Book schemas
    "BookBase",
    "BookInput",
    "BookPatch",
    "BookResponse",
    "BookSummary",
    # Session identity
    "Principal",
    "PrincipalResponse",
]
