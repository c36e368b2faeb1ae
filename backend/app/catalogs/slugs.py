"""URL slug helpers shared by catalogs and products."""
from __future__ import annotations

import re
import unicodedata
from typing import Optional

from ..errors import ValidationError

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
MAX_SLUG_LENGTH = 80
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def generate_slug(text: str) -> str:
    """``"Coleção Verão"`` -> ``"colecao-verao"``."""

    decomposed = unicodedata.normalize("NFD", (text or "").lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("-", stripped).strip("-")[:MAX_SLUG_LENGTH].rstrip("-")


def resolve_slug(explicit: Optional[str], name: Optional[str]) -> str:
    """Validate an explicit slug, or derive one from ``name`` when omitted."""

    if explicit is not None and explicit.strip():
        slug = explicit.strip().lower()
        if len(slug) > MAX_SLUG_LENGTH or not SLUG_PATTERN.match(slug):
            raise ValidationError(
                "Slug may only contain lowercase letters, numbers and single dashes.",
                field="slug",
            )
        return slug
    slug = generate_slug(name or "")
    if not slug:
        raise ValidationError("A slug could not be derived from the name.", field="slug")
    return slug


__all__ = ["SLUG_PATTERN", "generate_slug", "resolve_slug"]
