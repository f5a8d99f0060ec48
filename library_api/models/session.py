"""
Session Record Model

Server-side storage for login sessions. The browser only holds the record
id in a cookie; the principal and OAuth state live here, so destroying the
row logs the cookie out for good.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from library_api.database import Base


class SessionRecord(Base):
    """
    One row per live session.

    Table: sessions

    expires_at is stored as naive UTC so comparisons behave the same on
    SQLite and PostgreSQL.
    """

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Random token carried in the session cookie"
    )

    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(),
        index=True,
        nullable=False,
        comment="Naive UTC instant after which the session is void"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"SessionRecord(id='{self.id[:8]}...', expires_at={self.expires_at})"
