"""
Entity identifiers.

Records are keyed by an opaque 32-character lowercase hex string (a UUID4
without dashes). Ids arriving in URLs or payloads go through parse_id()
so a malformed id can be told apart from one that simply does not exist.
"""

import uuid


def new_id() -> str:
    """Generate a new record id."""
    return uuid.uuid4().hex


def parse_id(value: object) -> str | None:
    """
    Normalize a client-supplied id.

    Accepts the 32-char hex form and the dashed UUID form, in any case.

    Returns:
        Canonical 32-char lowercase hex id, or None if the value is not
        shaped like an id
    """
    if not isinstance(value, str):
        return None
    try:
        return uuid.UUID(value.strip()).hex
    except ValueError:
        return None
