"""Domain models for seller profiles."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..entitlements.models import PlanKey

DEFAULT_MESSAGE_TEMPLATE = "Hi! I saw {{productName}} in your catalog."


class UserProfile(BaseModel):
    """Seller profile keyed by the identity provider's user id."""

    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    custom_photo_url: Optional[str] = None
    username: Optional[str] = None
    store_name: Optional[str] = None
    contact_number: Optional[str] = None
    message_template: str = DEFAULT_MESSAGE_TEMPLATE
    plan: PlanKey = PlanKey.FREE
    billing_customer_id: Optional[str] = None
    billing_subscription_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_active_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

    @property
    def avatar_url(self) -> Optional[str]:
        return self.custom_photo_url or self.photo_url

    @property
    def is_onboarded(self) -> bool:
        return bool(self.username and self.store_name and self.contact_number)


class ProfileUpdate(BaseModel):
    """User-editable profile fields; unset fields are left untouched."""

    display_name: Optional[str] = None
    custom_photo_url: Optional[str] = None
    store_name: Optional[str] = None
    contact_number: Optional[str] = None
    message_template: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class LoginSync(BaseModel):
    """Identity attributes refreshed on every successful login."""

    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None

    model_config = ConfigDict(frozen=True)


# Columns the profile store accepts in ``update``.
UPDATABLE_FIELDS = frozenset(
    {
        "email",
        "display_name",
        "photo_url",
        "custom_photo_url",
        "store_name",
        "contact_number",
        "message_template",
        "plan",
        "billing_customer_id",
        "billing_subscription_id",
    }
)
