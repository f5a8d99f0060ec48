"""
SQLAlchemy Models Package

Model Relationships:
- Author <- Book: Many-to-One (a book references one author,
                  an author can have many books)

SessionRecord stores server-side login sessions.

Import all models here so Alembic discovers them and the application has a
single import point:
    from library_api.models import Author, Book
"""

from library_api.models.author import Author
from library_api.models.book import Book
from library_api.models.identifiers import new_id, parse_id
from library_api.models.session import SessionRecord

__all__ = [
    "Author",
    "Book",
    "SessionRecord",
    "new_id",
    "parse_id",
]
