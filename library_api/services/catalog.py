"""
Catalog Service

The authors/books pipeline. Each public function is one endpoint's worth
of work and returns an Outcome; routers only translate HTTP in and out.

Write operations run these stages, stopping at the first failure:

    authorize -> check id -> validate -> check referenced author (books)
    -> persist -> shape response

Reads skip authorization and validation. Database errors roll back the
unit of work, are logged with a traceback and come back as an opaque
"Server Error" outcome.
"""

import functools
import logging
from collections.abc import Callable, Mapping
from datetime import date
from typing import Any

from fastapi import status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from library_api.models import Author, Book, parse_id
from library_api.schemas.author import AuthorInput, AuthorResponse
from library_api.schemas.book import BookInput, BookResponse, BookSummary
from library_api.services.authorization import authorize
from library_api.services.outcomes import ErrorKind, Outcome
from library_api.services.store import EntityStore
from library_api.services.validation import run_schema, validate_author, validate_book

logger = logging.getLogger(__name__)

SessionData = Mapping[str, Any] | None

VALIDATION_FAILED = "Validation failed"
AUTHOR_NOT_FOUND = "Author not found"
BOOK_NOT_FOUND = "Book not found"
INVALID_AUTHOR_ID = "Invalid author ID format"
INVALID_BOOK_ID = "Invalid book ID format"
UNKNOWN_AUTHOR = "The specified Author does not exist."
AUTHOR_HAS_BOOKS = "This author has books and cannot be deleted. Delete their books first."


def guard_upstream(action: str) -> Callable:
    """
    Turn a SQLAlchemyError escaping the wrapped operation into an opaque
    500 outcome. The first positional argument must be the db session.
    """

    def decorator(func: Callable[..., Outcome]) -> Callable[..., Outcome]:
        @functools.wraps(func)
        def wrapper(db: Session, *args: Any, **kwargs: Any) -> Outcome:
            try:
                return func(db, *args, **kwargs)
            except SQLAlchemyError:
                db.rollback()
                logger.exception(f"Database error while trying to {action}")
                return Outcome.failure(ErrorKind.UPSTREAM, f"Server Error: Could not {action}")

        return wrapper

    return decorator


# =============================================================================
# Response Shaping
# =============================================================================
def _dump(schema: Any, record: Any) -> dict[str, Any]:
    return schema.model_validate(record).model_dump(mode="json", by_alias=True)


def shape_author(author: Author) -> dict[str, Any]:
    return _dump(AuthorResponse, author)


def shape_book(book: Book) -> dict[str, Any]:
    """Detail shape: the whole author is inlined."""
    return _dump(BookResponse, book)


def shape_book_summary(book: Book) -> dict[str, Any]:
    """List shape: only the author's display name."""
    return _dump(BookSummary, book)


def _validation_failure(violations: list) -> Outcome:
    return Outcome.failure(ErrorKind.VALIDATION, VALIDATION_FAILED, violations)


def _current_values(record: Any, schema: type) -> dict[str, Any]:
    return {name: getattr(record, name) for name in schema.model_fields}


# =============================================================================
# Authors
# =============================================================================
@guard_upstream("retrieve authors")
def list_authors(db: Session) -> Outcome:
    """All authors, sorted by last name then first name."""
    authors = EntityStore(db, Author).find_all(Author.last_name, Author.first_name)
    return Outcome.success([shape_author(a) for a in authors], count=len(authors))


@guard_upstream("retrieve author")
def get_author(db: Session, author_id: str) -> Outcome:
    record_id = parse_id(author_id)
    if record_id is None:
        return Outcome.failure(ErrorKind.MALFORMED_ID, INVALID_AUTHOR_ID)

    author = EntityStore(db, Author).find_by_id(record_id)
    if author is None:
        return Outcome.failure(ErrorKind.NOT_FOUND, AUTHOR_NOT_FOUND)
    return Outcome.success(shape_author(author))


@guard_upstream("create author")
def create_author(db: Session, session: SessionData, payload: Any) -> Outcome:
    principal = authorize(session)
    if principal is None:
        return Outcome.unauthorized()

    result = validate_author(payload)
    if not result.ok:
        return _validation_failure(result.violations)

    author = EntityStore(db, Author).insert(result.values)
    db.commit()

    logger.info(f"Author {author.id} created by {principal.id}")
    return Outcome.success(shape_author(author), status_code=status.HTTP_201_CREATED)


@guard_upstream("update author")
def update_author(db: Session, session: SessionData, author_id: str, payload: Any) -> Outcome:
    """
    Partial update: only the supplied fields change. The merged record is
    re-checked against the full author rules before it is written.
    """
    principal = authorize(session)
    if principal is None:
        return Outcome.unauthorized()

    record_id = parse_id(author_id)
    if record_id is None:
        return Outcome.failure(ErrorKind.MALFORMED_ID, INVALID_AUTHOR_ID)

    patch = validate_author(payload, partial=True)
    if not patch.ok:
        return _validation_failure(patch.violations)

    store = EntityStore(db, Author)
    author = store.find_by_id(record_id)
    if author is None:
        return Outcome.failure(ErrorKind.NOT_FOUND, AUTHOR_NOT_FOUND)

    merged = {**_current_values(author, AuthorInput), **patch.values}
    checked = run_schema(AuthorInput, merged, context={"sanitize": False})
    if not checked.ok:
        return _validation_failure(checked.violations)

    store.update(author, checked.values)
    db.commit()

    logger.info(f"Author {author.id} updated by {principal.id}")
    return Outcome.success(shape_author(author))


@guard_upstream("delete author")
def delete_author(db: Session, session: SessionData, author_id: str) -> Outcome:
    """Delete an author, refusing while any book still references it."""
    principal = authorize(session)
    if principal is None:
        return Outcome.unauthorized()

    record_id = parse_id(author_id)
    if record_id is None:
        return Outcome.failure(ErrorKind.MALFORMED_ID, INVALID_AUTHOR_ID)

    store = EntityStore(db, Author)
    author = store.find_by_id(record_id)
    if author is None:
        return Outcome.failure(ErrorKind.NOT_FOUND, AUTHOR_NOT_FOUND)

    if EntityStore(db, Book).find_by_filter(Book.author_id == record_id, limit=1):
        return Outcome.failure(ErrorKind.REFERENTIAL, AUTHOR_HAS_BOOKS)

    name = author.name
    store.delete(author)
    db.commit()

    logger.info(f"Author {record_id} deleted by {principal.id}")
    return Outcome.success({}, message=f"Author '{name}' was deleted.")


# =============================================================================
# Books
# =============================================================================
_WITH_AUTHOR = (selectinload(Book.author),)


def _author_exists(db: Session, author_id: str) -> bool:
    return EntityStore(db, Author).exists(Author.id == author_id)


@guard_upstream("retrieve books")
def list_books(db: Session) -> Outcome:
    """All books in insertion order; each entry names its author."""
    books = EntityStore(db, Book).find_all(Book.created_at, Book.id, options=_WITH_AUTHOR)
    return Outcome.success([shape_book_summary(b) for b in books], count=len(books))


@guard_upstream("retrieve book")
def get_book(db: Session, book_id: str) -> Outcome:
    record_id = parse_id(book_id)
    if record_id is None:
        return Outcome.failure(ErrorKind.MALFORMED_ID, INVALID_BOOK_ID)

    book = EntityStore(db, Book).find_by_id(record_id, options=_WITH_AUTHOR)
    if book is None:
        return Outcome.failure(ErrorKind.NOT_FOUND, BOOK_NOT_FOUND)
    return Outcome.success(shape_book(book))


@guard_upstream("create book")
def create_book(
    db: Session,
    session: SessionData,
    payload: Any,
    today: date | None = None,
) -> Outcome:
    principal = authorize(session)
    if principal is None:
        return Outcome.unauthorized()

    result = validate_book(payload, today=today)
    if not result.ok:
        return _validation_failure(result.violations)

    if not _author_exists(db, result.values["author_id"]):
        return Outcome.failure(ErrorKind.REFERENTIAL, UNKNOWN_AUTHOR)

    store = EntityStore(db, Book)
    book = store.insert(result.values)
    db.commit()

    # Re-read with the author loaded for the response
    book = store.find_by_id(book.id, options=_WITH_AUTHOR)

    logger.info(f"Book {book.id} created by {principal.id}")
    return Outcome.success(shape_book(book), status_code=status.HTTP_201_CREATED)


@guard_upstream("update book")
def update_book(
    db: Session,
    session: SessionData,
    book_id: str,
    payload: Any,
    today: date | None = None,
) -> Outcome:
    """
    Partial update. A new authorId must point at an existing author; the
    merged record is re-checked against the full book rules.
    """
    principal = authorize(session)
    if principal is None:
        return Outcome.unauthorized()

    record_id = parse_id(book_id)
    if record_id is None:
        return Outcome.failure(ErrorKind.MALFORMED_ID, INVALID_BOOK_ID)

    patch = validate_book(payload, partial=True, today=today)
    if not patch.ok:
        return _validation_failure(patch.violations)

    new_author_id = patch.values.get("author_id")
    if new_author_id is not None and not _author_exists(db, new_author_id):
        return Outcome.failure(ErrorKind.REFERENTIAL, UNKNOWN_AUTHOR)

    store = EntityStore(db, Book)
    book = store.find_by_id(record_id, options=_WITH_AUTHOR)
    if book is None:
        return Outcome.failure(ErrorKind.NOT_FOUND, BOOK_NOT_FOUND)

    merged = {**_current_values(book, BookInput), **patch.values}
    checked = run_schema(
        BookInput,
        merged,
        context={"sanitize": False, "today": today or date.today()},
    )
    if not checked.ok:
        return _validation_failure(checked.violations)

    store.update(book, checked.values)
    db.commit()

    book = store.find_by_id(record_id, options=_WITH_AUTHOR)

    logger.info(f"Book {record_id} updated by {principal.id}")
    return Outcome.success(shape_book(book))


@guard_upstream("delete book")
def delete_book(db: Session, session: SessionData, book_id: str) -> Outcome:
    principal = authorize(session)
    if principal is None:
        return Outcome.unauthorized()

    record_id = parse_id(book_id)
    if record_id is None:
        return Outcome.failure(ErrorKind.MALFORMED_ID, INVALID_BOOK_ID)

    book = EntityStore(db, Book).delete_by_id(record_id)
    if book is None:
        return Outcome.failure(ErrorKind.NOT_FOUND, BOOK_NOT_FOUND)

    title = book.title
    db.commit()

    logger.info(f"Book {record_id} deleted by {principal.id}")
    return Outcome.success({}, message=f"Book '{title}' was deleted.")
