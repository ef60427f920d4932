"""Entity ids are UUIDs rendered as lowercase strings everywhere above the store."""

import uuid


def normalize_id(value: object) -> str | None:
    """Canonical string form of a UUID, or None when `value` is not one."""
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        return None
