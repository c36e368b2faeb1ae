"""WhatsApp contact links rendered on public catalog pages."""
from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from ..profiles.validation import PRODUCT_NAME_PLACEHOLDER

WHATSAPP_BASE_URL = "https://wa.me"


def format_contact_number(number: str, country_code: str = "55") -> str:
    digits = "".join(ch for ch in number or "" if ch.isdigit())
    if country_code and not digits.startswith(country_code):
        digits = f"{country_code}{digits}"
    return digits


def render_message(template: str, product_name: str) -> str:
    return (template or "").replace(PRODUCT_NAME_PLACEHOLDER, product_name)


def build_whatsapp_link(
    number: Optional[str],
    template: str,
    product_name: str,
    *,
    country_code: str = "55",
) -> Optional[str]:
    """Return a ``wa.me`` link with the pre-filled message, or ``None`` without a number."""

    if not number:
        return None
    digits = format_contact_number(number, country_code)
    message = quote(render_message(template, product_name), safe="")
    return f"{WHATSAPP_BASE_URL}/{digits}?text={message}"


__all__ = ["build_whatsapp_link", "format_contact_number", "render_message"]
