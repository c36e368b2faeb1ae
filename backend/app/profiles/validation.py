"""Input normalization for usernames, contact numbers and templates."""
from __future__ import annotations

import re
from typing import Optional

from ..errors import ValidationError

USERNAME_PATTERN = re.compile(r"^[a-z0-9_-]{3,30}$")
_CONTACT_SEPARATORS = re.compile(r"[\s()+.\-]")
PRODUCT_NAME_PLACEHOLDER = "{{productName}}"


def normalize_username(raw: Optional[str]) -> str:
    username = (raw or "").strip().lower()
    if not username:
        raise ValidationError("Username is required.", field="username")
    if not USERNAME_PATTERN.match(username):
        raise ValidationError(
            "Username may only contain lowercase letters, numbers, '_' and '-' (3-30 characters).",
            field="username",
        )
    return username


def normalize_contact_number(raw: Optional[str]) -> Optional[str]:
    """Return the digits of a WhatsApp-style number, or ``None`` when blank."""

    if raw is None:
        return None
    stripped = _CONTACT_SEPARATORS.sub("", raw)
    if not stripped:
        return None
    if not stripped.isdigit():
        raise ValidationError("Contact number must contain only digits.", field="contact_number")
    if not 8 <= len(stripped) <= 15:
        raise ValidationError("Contact number must have between 8 and 15 digits.", field="contact_number")
    return stripped


def normalize_message_template(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    template = raw.strip()
    if not template:
        raise ValidationError("Message template cannot be empty.", field="message_template")
    if len(template) > 500:
        raise ValidationError("Message template is too long.", field="message_template")
    return template


def clean_optional_text(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    value = raw.strip()
    return value or None
