"""Domain error taxonomy shared by every service and router."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException, status


@dataclass
class DomainError(Exception):
    """Represents an actionable failure surfaced to API callers."""

    code: str
    message: str
    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        base_detail: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.detail:
            base_detail.update(self.detail)
        object.__setattr__(self, "_payload", base_detail)
        super().__init__(self.message)

    @property
    def payload(self) -> Mapping[str, Any]:
        """Serialized representation suitable for JSON responses."""

        return self._payload

    def to_http_exception(self) -> HTTPException:
        """Convert the domain error into a FastAPI HTTPException."""

        return HTTPException(status_code=self.status_code, detail=dict(self.payload))


class InvalidCredential(DomainError):
    def __init__(self, message: str = "Invalid or expired credential.") -> None:
        super().__init__(
            code="invalid_credential",
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class NotFound(DomainError):
    """Missing entity, or an entity the caller may not see."""

    def __init__(self, resource: str, message: Optional[str] = None) -> None:
        super().__init__(
            code="not_found",
            message=message or f"{resource.capitalize()} not found.",
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"resource": resource},
        )


class AlreadyExists(DomainError):
    def __init__(self, resource: str, message: Optional[str] = None) -> None:
        super().__init__(
            code="already_exists",
            message=message or f"{resource.capitalize()} already exists.",
            status_code=status.HTTP_409_CONFLICT,
            detail={"resource": resource},
        )


class DuplicateSlug(DomainError):
    def __init__(self, resource: str, slug: str) -> None:
        super().__init__(
            code="duplicate_slug",
            message=f"A {resource} with slug '{slug}' already exists.",
            status_code=status.HTTP_409_CONFLICT,
            detail={"resource": resource, "slug": slug},
        )


class UsernameTaken(DomainError):
    def __init__(self, username: str) -> None:
        super().__init__(
            code="username_taken",
            message=f"Username '{username}' is already in use.",
            status_code=status.HTTP_409_CONFLICT,
            detail={"username": username},
        )


class QuotaExceeded(DomainError):
    """Entitlement denial; carries the numeric limit for upgrade prompts."""

    def __init__(self, resource: str, limit: int, plan: str) -> None:
        super().__init__(
            code="quota_exceeded",
            message=f"Your {resource} limit ({limit}) was reached. Upgrade to create more.",
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"resource": resource, "limit": limit, "plan": plan},
        )

    @property
    def limit(self) -> int:
        return int(self.payload["limit"])


class ValidationError(DomainError):
    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(
            code="validation_error",
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"field": field} if field else None,
        )


class ExternalProviderError(DomainError):
    def __init__(self, provider: str, message: str) -> None:
        super().__init__(
            code="external_provider_error",
            message=message,
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"provider": provider},
        )


__all__ = [
    "AlreadyExists",
    "DomainError",
    "DuplicateSlug",
    "ExternalProviderError",
    "InvalidCredential",
    "NotFound",
    "QuotaExceeded",
    "UsernameTaken",
    "ValidationError",
]
