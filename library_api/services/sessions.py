"""
Server-Side Sessions

Login state lives in the `sessions` table; the browser only carries an
opaque random id in an httpOnly cookie. Clearing the session (logout)
destroys the row, so replaying the old cookie afterwards yields an empty,
anonymous session.

Pieces:
- SessionStore: what the middleware needs from storage
- DatabaseSessionStore: SQLAlchemy implementation on SessionRecord
- ServerSessionMiddleware: ASGI middleware exposing request.session

Expiry:
- rolling (default): every response pushes expires_at forward by max_age
- absolute: expires_at is fixed when the session is created and the row is
  only rewritten when its data changes
"""

import copy
import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from library_api.config import Settings
from library_api.models.session import SessionRecord

logger = logging.getLogger(__name__)

REGENERATE_KEY = "session.regenerate"


def _utcnow() -> datetime:
    # Stored expiries are naive UTC
    return datetime.now(UTC).replace(tzinfo=None)


@dataclass
class StoredSession:
    data: dict[str, Any]
    expires_at: datetime


class SessionStore(Protocol):
    def new_id(self) -> str: ...

    def load(self, session_id: str) -> StoredSession | None: ...

    def save(self, session_id: str, data: dict[str, Any], expires_at: datetime) -> None: ...

    def destroy(self, session_id: str) -> None: ...


class DatabaseSessionStore:
    """
    Session store backed by the `sessions` table.

    Each call opens and closes its own database session, independent of the
    request's unit of work.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def new_id(self) -> str:
        return secrets.token_urlsafe(32)

    def load(self, session_id: str) -> StoredSession | None:
        """Return the live session, or None. Expired rows are removed on sight."""
        with self.session_factory() as db:
            record = db.get(SessionRecord, session_id)
            if record is None:
                return None
            if record.expires_at <= _utcnow():
                db.delete(record)
                db.commit()
                logger.debug("Expired session discarded")
                return None
            return StoredSession(data=dict(record.data or {}), expires_at=record.expires_at)

    def save(self, session_id: str, data: dict[str, Any], expires_at: datetime) -> None:
        with self.session_factory() as db:
            record = db.get(SessionRecord, session_id)
            if record is None:
                record = SessionRecord(id=session_id, data=data, expires_at=expires_at)
                db.add(record)
            else:
                record.data = data
                record.expires_at = expires_at
            db.commit()

    def destroy(self, session_id: str) -> None:
        with self.session_factory() as db:
            db.execute(delete(SessionRecord).where(SessionRecord.id == session_id))
            db.commit()

    def purge_expired(self) -> int:
        """Delete every expired row. Returns how many were removed."""
        with self.session_factory() as db:
            expired = db.execute(
                select(SessionRecord.id).where(SessionRecord.expires_at <= _utcnow())
            ).scalars().all()
            if expired:
                db.execute(delete(SessionRecord).where(SessionRecord.id.in_(expired)))
                db.commit()
            return len(expired)


def regenerate_session(connection: HTTPConnection) -> None:
    """
    Ask the middleware to move the session to a fresh id when the response
    goes out. Used after login so a pre-login cookie never becomes
    authenticated.
    """
    connection.scope[REGENERATE_KEY] = True


class ServerSessionMiddleware:
    """
    ASGI middleware providing request.session backed by a SessionStore.

    The store is taken from app.state.session_store unless one is passed in,
    so tests can swap it without rebuilding the middleware stack.
    """

    def __init__(self, app: ASGIApp, settings: Settings, store: SessionStore | None = None) -> None:
        self.app = app
        self.store = store
        self.cookie_name = settings.session_cookie_name
        self.max_age = settings.session_max_age
        self.rolling = settings.session_rolling
        self.path = "/"
        self.security_flags = f"httponly; samesite={settings.session_same_site}"
        if settings.session_cookie_secure:
            self.security_flags += "; secure"

    def _store_for(self, scope: Scope) -> SessionStore:
        if self.store is not None:
            return self.store
        return scope["app"].state.session_store

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        store = self._store_for(scope)
        connection = HTTPConnection(scope)
        session_id = connection.cookies.get(self.cookie_name)
        had_cookie = session_id is not None

        stored = None
        if session_id:
            stored = await run_in_threadpool(store.load, session_id)
        if stored is None:
            session_id = None

        scope["session"] = dict(stored.data) if stored else {}
        initial_data = copy.deepcopy(scope["session"])

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                cookie = await self._commit(scope, store, session_id, stored, initial_data)
                if cookie is None and had_cookie and not scope["session"]:
                    cookie = self._expired_cookie()
                if cookie is not None:
                    headers.append("Set-Cookie", cookie)
            await send(message)

        await self.app(scope, receive, send_wrapper)

    async def _commit(
        self,
        scope: Scope,
        store: SessionStore,
        session_id: str | None,
        stored: StoredSession | None,
        initial_data: dict[str, Any],
    ) -> str | None:
        """Persist or destroy the session; return the Set-Cookie value, if any."""
        data = scope["session"]

        if not data:
            if session_id is not None:
                await run_in_threadpool(store.destroy, session_id)
                logger.debug("Session destroyed")
                return self._expired_cookie()
            return None

        if scope.get(REGENERATE_KEY) and session_id is not None:
            await run_in_threadpool(store.destroy, session_id)
            session_id = None
            stored = None

        now = _utcnow()
        if session_id is None:
            session_id = store.new_id()
            expires_at = now + timedelta(seconds=self.max_age)
        elif self.rolling:
            expires_at = now + timedelta(seconds=self.max_age)
        else:
            expires_at = stored.expires_at
            if data == initial_data:
                return None

        await run_in_threadpool(store.save, session_id, data, expires_at)
        max_age = max(int((expires_at - now).total_seconds()), 0)
        return self._cookie(session_id, max_age)

    def _cookie(self, value: str, max_age: int) -> str:
        return (
            f"{self.cookie_name}={value}; path={self.path}; "
            f"Max-Age={max_age}; {self.security_flags}"
        )

    def _expired_cookie(self) -> str:
        return (
            f"{self.cookie_name}=null; path={self.path}; "
            f"expires=Thu, 01 Jan 1970 00:00:00 GMT; {self.security_flags}"
        )
