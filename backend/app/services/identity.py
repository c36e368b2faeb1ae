"""FastAPI dependencies resolving the caller's identity from a bearer token."""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header

from backend import app_context

from ..errors import InvalidCredential
from ..identity import Identity, IdentityVerifier


def get_identity_verifier() -> IdentityVerifier:
    return app_context.get_identity_verifier()


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_identity(
    authorization: Optional[str] = Header(None),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> Identity:
    token = bearer_token(authorization)
    if token is None:
        raise InvalidCredential("Not authenticated.")
    return verifier.verify(token)


def get_optional_identity(
    authorization: Optional[str] = Header(None),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> Optional[Identity]:
    """Like :func:`get_current_identity` but anonymous callers yield ``None``."""

    token = bearer_token(authorization)
    if token is None:
        return None
    try:
        return verifier.verify(token)
    except InvalidCredential:
        return None


__all__ = ["bearer_token", "get_current_identity", "get_identity_verifier", "get_optional_identity"]
