"""
Books Router

CRUD endpoints for books. Same shape as the authors router; book writes
additionally check that authorId points at an existing author.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from library_api.dependencies import DbSession, JsonBody
from library_api.schemas.book import BookInput, BookPatch
from library_api.schemas.common import openapi_request_body
from library_api.services import catalog
from library_api.services.outcomes import render
from library_api.services.rate_limiter import limiter, write_limit

router = APIRouter(
    prefix="/books",
    tags=["Books"],
)

ERROR_RESPONSES = {
    400: {"description": "Invalid book ID, validation failed or unknown author"},
    404: {"description": "Book not found"},
    500: {"description": "Server error"},
}
AUTH_REQUIRED = {401: {"description": "Authentication required"}}


@router.get(
    "",
    summary="List all books",
    description="Each entry carries its author's display name (authorName).",
)
def list_books(db: DbSession) -> JSONResponse:
    return render(catalog.list_books(db))


@router.get(
    "/{book_id}",
    summary="Get a book by ID",
    description="The referenced author is inlined under `author`.",
    responses=ERROR_RESPONSES,
)
def get_book(book_id: str, db: DbSession) -> JSONResponse:
    return render(catalog.get_book(db, book_id))


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a new book",
    description="authorId must reference an existing author. Requires a logged-in session.",
    responses={**ERROR_RESPONSES, **AUTH_REQUIRED},
    openapi_extra=openapi_request_body(BookInput),
)
@limiter.limit(write_limit)
def create_book(request: Request, db: DbSession, payload: JsonBody = None) -> JSONResponse:
    return render(catalog.create_book(db, request.session, payload))


@router.put(
    "/{book_id}",
    summary="Update a book",
    description="""
    Partial update. When authorId is supplied the new author must exist.
    Requires a logged-in session.
    """,
    responses={**ERROR_RESPONSES, **AUTH_REQUIRED},
    openapi_extra=openapi_request_body(BookPatch),
)
@limiter.limit(write_limit)
def update_book(
    request: Request,
    book_id: str,
    db: DbSession,
    payload: JsonBody = None,
) -> JSONResponse:
    return render(catalog.update_book(db, request.session, book_id, payload))


@router.delete(
    "/{book_id}",
    summary="Delete a book",
    description="Requires a logged-in session.",
    responses={**ERROR_RESPONSES, **AUTH_REQUIRED},
)
@limiter.limit(write_limit)
def delete_book(request: Request, book_id: str, db: DbSession) -> JSONResponse:
    return render(catalog.delete_book(db, request.session, book_id))
