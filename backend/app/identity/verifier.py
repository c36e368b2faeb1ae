"""Bearer credential verification against the identity provider's signing key."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict

from ..config import IdentityConfig
from ..errors import InvalidCredential

USER_ID_CLAIMS = ("user_id", "sub", "uid")


class Identity(BaseModel):
    user_id: str
    email: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class IdentityVerifier(Protocol):
    def verify(self, token: str) -> Identity:
        """Return the identity behind ``token`` or raise :class:`InvalidCredential`."""


class JWTIdentityVerifier:
    """Verifies signed JWTs; holds no session state."""

    def __init__(self, config: IdentityConfig) -> None:
        self._config = config

    def verify(self, token: str) -> Identity:
        if not token or not token.strip():
            raise InvalidCredential("Missing credential.")
        try:
            claims = jwt.decode(
                token.strip(),
                self._config.key,
                algorithms=list(self._config.algorithms),
                audience=self._config.audience,
                issuer=self._config.issuer,
                options={"verify_aud": self._config.audience is not None},
            )
        except JWTError as exc:
            raise InvalidCredential() from exc

        user_id = next((str(claims[name]) for name in USER_ID_CLAIMS if claims.get(name)), None)
        if user_id is None:
            raise InvalidCredential("Credential does not identify a user.")
        email = claims.get("email")
        return Identity(user_id=user_id, email=str(email) if email else None)


def create_identity_token(
    config: IdentityConfig,
    user_id: str,
    *,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Sign a token the way the identity provider does; used by local tooling."""

    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + (expires_delta or timedelta(hours=1)),
    }
    if email:
        payload["email"] = email
    if config.audience:
        payload["aud"] = config.audience
    if config.issuer:
        payload["iss"] = config.issuer
    return jwt.encode(payload, config.key, algorithm=config.algorithms[0])


__all__ = ["Identity", "IdentityVerifier", "JWTIdentityVerifier", "create_identity_token"]
