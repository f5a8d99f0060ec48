"""
Author Model

Represents an author in the library catalog.

SQLAlchemy 2.0 Features Used:
- mapped_column(): Column definitions with full type support
- Mapped[]: Type hint wrapper for SQLAlchemy columns
- relationship(): Python-side link to the author's books
"""

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, DateTime, String, func, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from library_api.database import Base, utcnow
from library_api.models.identifiers import new_id

# TYPE_CHECKING is True only during type checking (mypy, IDE)
if TYPE_CHECKING:
    from library_api.models.book import Book


class Author(Base):
    """
    Author model representing writers in the catalog.

    Table: authors

    Relationships:
    - books: One-to-Many (read only; books point at their author)

    Derived values (never stored):
    - name: "<first_name> <last_name>"
    - url: canonical resource path

    Example:
        author = Author(first_name="J.R.R.", last_name="Tolkien")
        db.add(author)
        db.commit()
    """

    __tablename__ = "authors"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    # Opaque 32-char hex id generated on insert
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Author's given name"
    )

    last_name: Mapped[str] = mapped_column(
        String(100),
        index=True,
        nullable=False,
        comment="Author's family name (list sort key)"
    )

    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    date_of_death: Mapped[date | None] = mapped_column(Date, nullable=True)

    nationality: Mapped[str | None] = mapped_column(String(100), nullable=True)

    biography: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
        comment="Short author biography"
    )

    website: Mapped[str | None] = mapped_column(String(200), nullable=True)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=true(),
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    # Set by the database, never taken from the request body
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        comment="When the author record was created"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
        comment="When the author record was last updated"
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    # passive_deletes: the database refuses the delete (RESTRICT) instead of
    # SQLAlchemy nulling out book.author_id
    books: Mapped[list["Book"]] = relationship(
        "Book",
        back_populates="author",
        passive_deletes="all",
    )

    # -------------------------------------------------------------------------
    # Derived Values
    # -------------------------------------------------------------------------
    @property
    def name(self) -> str:
        """Display name shown in responses and delete confirmations."""
        return f"{self.first_name} {self.last_name}"

    @property
    def url(self) -> str:
        return f"/authors/{self.id}"

    def __repr__(self) -> str:
        return f"Author(id={self.id!r}, name={self.name!r})"
