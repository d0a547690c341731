from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]{2,}$")
PHONE_RE = re.compile(r"^(\+234|0)[789][01]\d{8}$")
MEMBERSHIP_ID_RE = re.compile(r"^ICAN/\d{4}/\d{3,6}$", re.IGNORECASE)


class CamelModel(BaseModel):
    """Snake-case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageOut(CamelModel):
    success: bool = True
    message: str


def normalize_email_field(v: str) -> str:
    v = v.strip().lower()
    if not EMAIL_RE.match(v):
        raise ValueError("Please provide a valid email")
    return v


def validate_phone_field(v: str) -> str:
    v = v.strip()
    if not PHONE_RE.match(v):
        raise ValueError(
            "Please provide a valid Nigerian phone number (e.g., 08012345678)"
        )
    return v
