"""
Authors Router

CRUD endpoints for authors. Reads are public; create/update/delete need a
logged-in session. The work happens in services.catalog; handlers only
pass the request through and render the outcome.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from library_api.dependencies import DbSession, JsonBody
from library_api.schemas.author import AuthorInput, AuthorPatch
from library_api.schemas.common import openapi_request_body
from library_api.services import catalog
from library_api.services.outcomes import render
from library_api.services.rate_limiter import limiter, write_limit

router = APIRouter(
    prefix="/authors",
    tags=["Authors"],
)

ERROR_RESPONSES = {
    400: {"description": "Invalid author ID format or validation failed"},
    404: {"description": "Author not found"},
    500: {"description": "Server error"},
}
AUTH_REQUIRED = {401: {"description": "Authentication required"}}


@router.get(
    "",
    summary="List all authors",
    description="Get every author, sorted by last name.",
)
def list_authors(db: DbSession) -> JSONResponse:
    return render(catalog.list_authors(db))


@router.get(
    "/{author_id}",
    summary="Get an author by ID",
    responses=ERROR_RESPONSES,
)
def get_author(author_id: str, db: DbSession) -> JSONResponse:
    return render(catalog.get_author(db, author_id))


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a new author",
    description="Requires a logged-in session.",
    responses={**ERROR_RESPONSES, **AUTH_REQUIRED},
    openapi_extra=openapi_request_body(AuthorInput),
)
@limiter.limit(write_limit)
def create_author(request: Request, db: DbSession, payload: JsonBody = None) -> JSONResponse:
    return render(catalog.create_author(db, request.session, payload))


@router.put(
    "/{author_id}",
    summary="Update an author",
    description="""
    Partial update: only the fields in the body change. The merged record
    must still satisfy every author rule. Requires a logged-in session.
    """,
    responses={**ERROR_RESPONSES, **AUTH_REQUIRED},
    openapi_extra=openapi_request_body(AuthorPatch),
)
@limiter.limit(write_limit)
def update_author(
    request: Request,
    author_id: str,
    db: DbSession,
    payload: JsonBody = None,
) -> JSONResponse:
    return render(catalog.update_author(db, request.session, author_id, payload))


@router.delete(
    "/{author_id}",
    summary="Delete an author",
    description="Refused while any book references the author. Requires a logged-in session.",
    responses={**ERROR_RESPONSES, **AUTH_REQUIRED},
)
@limiter.limit(write_limit)
def delete_author(request: Request, author_id: str, db: DbSession) -> JSONResponse:
    return render(catalog.delete_author(db, request.session, author_id))
