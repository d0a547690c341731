from __future__ import annotations

import re

from passlib.context import CryptContext

from backend.app.core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

SPECIAL_CHARACTERS = "@$!%*?&"

# bcrypt only reads this many bytes of the secret
MAX_PASSWORD_BYTES = 72


def get_password_hash(password: str) -> str:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password exceeds {MAX_PASSWORD_BYTES} bytes")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Check *plain_password* against a stored hash.

    A missing, empty or unrecognised hash never matches; this function
    does not raise for bad stored data.
    """
    if not hashed_password:
        return False
    # Anything longer could only match on a truncated prefix
    if len(plain_password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def validate_password_strength(
    password: str, *, require_special: bool = True
) -> str | None:
    """Validate password complexity.

    Returns error message if invalid, None if valid.
    """
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        return (
            f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long"
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return f"Password must be at most {MAX_PASSWORD_BYTES} bytes long"
    if not re.search(r"[a-z]", password):
        return "Password must contain at least one lowercase letter"
    if not re.search(r"[A-Z]", password):
        return "Password must contain at least one uppercase letter"
    if not re.search(r"\d", password):
        return "Password must contain at least one number"
    if require_special and not re.search(f"[{re.escape(SPECIAL_CHARACTERS)}]", password):
        return (
            f"Password must contain at least one special character ({SPECIAL_CHARACTERS})"
        )
    return None
