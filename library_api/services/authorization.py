"""
Authorization Gate

Write operations require a logged-in session. The gate only answers one
question: does this session carry a valid principal?
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from library_api.schemas.principal import Principal

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user"


def authorize(session: Mapping[str, Any] | None) -> Principal | None:
    """
    Return the session's principal, or None for an anonymous session.

    A stored entry that no longer parses as a Principal is treated as
    anonymous.
    """
    if not session:
        return None

    raw = session.get(SESSION_USER_KEY)
    if raw is None:
        return None

    try:
        return Principal.model_validate(raw)
    except ValidationError:
        logger.warning("Ignoring malformed principal in session")
        return None


def store_principal(session: dict[str, Any], principal: Principal) -> None:
    """Attach a principal to a session, replacing whatever was there."""
    session.clear()
    session[SESSION_USER_KEY] = principal.model_dump()
