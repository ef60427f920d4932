"""Password hashing with bcrypt (>=4.0, used directly rather than via passlib).

bcrypt only looks at the first 72 bytes of its input and recent releases
refuse longer inputs outright, so over-long passwords are rejected before
hashing instead of being silently truncated.
"""

import bcrypt

MAX_PASSWORD_BYTES = 72


def _encode(plain: str) -> bytes:
    raw = plain.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return raw


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        raw = _encode(plain)
    except ValueError:
        return False
    return bcrypt.checkpw(raw, hashed.encode("utf-8"))
