"""
Book Model

Books reference exactly one Author through a foreign key. The reference is
not ownership: deleting a book never touches its author, and the database
refuses to delete an author that still has books (ON DELETE RESTRICT).
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from library_api.database import Base, utcnow
from library_api.models.identifiers import new_id

if TYPE_CHECKING:
    from library_api.models.author import Author


class Book(Base):
    """
    Book model representing books in the catalog.

    Table: books

    Fields:
    - title: Book title (required)
    - author_id: Referenced author (required, must exist)
    - summary: Short summary
    - isbn: ISBN as entered (not checksum-validated)
    - genre: Ordered list of genre names
    - published_year: Year of first publication
    - page_count: Number of pages

    Example:
        book = Book(title="The Hobbit", author_id=tolkien.id, genre=["Fantasy"])
    """

    __tablename__ = "books"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(200),
        index=True,
        nullable=False,
        comment="Book title"
    )

    author_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("authors.id", ondelete="RESTRICT"),
        index=True,
        nullable=False,
        comment="Referenced author"
    )

    summary: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    isbn: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        comment="International Standard Book Number"
    )

    # JSON keeps the list ordered and works on both SQLite and PostgreSQL
    genre: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    published_year: Mapped[int | None] = mapped_column(Integer, nullable=True)

    page_count: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Number of pages in the book"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    author: Mapped["Author"] = relationship("Author", back_populates="books")

    # -------------------------------------------------------------------------
    # Derived Values
    # -------------------------------------------------------------------------
    @property
    def author_name(self) -> str | None:
        """Display name of the referenced author (list entries carry only this)."""
        return self.author.name if self.author is not None else None

    @property
    def url(self) -> str:
        return f"/books/{self.id}"

    def __repr__(self) -> str:
        return f"Book(id={self.id!r}, title='{self.title}', author_id={self.author_id!r})"
