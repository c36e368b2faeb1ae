"""API schemas for profile endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..entitlements import PlanKey, get_plan_definition
from ..profiles import LoginSync, ProfileUpdate, UserProfile


class PlanLimits(BaseModel):
    catalogs: int
    products_per_catalog: int = Field(alias="productsPerCatalog")

    model_config = ConfigDict(populate_by_name=True)


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = Field(alias="displayName", default=None)
    photo_url: Optional[str] = Field(alias="photoUrl", default=None)
    custom_photo_url: Optional[str] = Field(alias="customPhotoUrl", default=None)
    avatar_url: Optional[str] = Field(alias="avatarUrl", default=None)
    username: Optional[str] = None
    store_name: Optional[str] = Field(alias="storeName", default=None)
    contact_number: Optional[str] = Field(alias="contactNumber", default=None)
    message_template: str = Field(alias="messageTemplate")
    plan: PlanKey
    limits: PlanLimits
    is_onboarded: bool = Field(alias="isOnboarded")
    has_subscription: bool = Field(alias="hasSubscription")
    created_at: datetime = Field(alias="createdAt")
    last_active_at: Optional[datetime] = Field(alias="lastActiveAt", default=None)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "ProfileResponse":
        definition = get_plan_definition(profile.plan)
        return cls(
            id=profile.id,
            email=profile.email,
            display_name=profile.display_name,
            photo_url=profile.photo_url,
            custom_photo_url=profile.custom_photo_url,
            avatar_url=profile.avatar_url,
            username=profile.username,
            store_name=profile.store_name,
            contact_number=profile.contact_number,
            message_template=profile.message_template,
            plan=profile.plan,
            limits=PlanLimits(
                catalogs=definition.catalogs_limit,
                products_per_catalog=definition.products_per_catalog_limit,
            ),
            is_onboarded=profile.is_onboarded,
            has_subscription=bool(profile.billing_subscription_id),
            created_at=profile.created_at,
            last_active_at=profile.last_active_at,
        )


class LoginSyncRequest(BaseModel):
    email: Optional[str] = None
    display_name: Optional[str] = Field(alias="displayName", default=None)
    photo_url: Optional[str] = Field(alias="photoUrl", default=None)

    model_config = ConfigDict(populate_by_name=True)

    def to_domain(self, *, token_email: Optional[str]) -> LoginSync:
        # The verified token's email wins over the client-supplied one.
        return LoginSync(
            email=token_email or self.email,
            display_name=self.display_name,
            photo_url=self.photo_url,
        )


class LoginSyncResponse(BaseModel):
    profile: ProfileResponse
    created: bool

    model_config = ConfigDict(populate_by_name=True)


class ProfileUpdateRequest(BaseModel):
    """Only user-editable fields; plan and billing ids are ignored if sent."""

    display_name: Optional[str] = Field(alias="displayName", default=None)
    custom_photo_url: Optional[str] = Field(alias="customPhotoUrl", default=None)
    store_name: Optional[str] = Field(alias="storeName", default=None)
    contact_number: Optional[str] = Field(alias="contactNumber", default=None)
    message_template: Optional[str] = Field(alias="messageTemplate", default=None)

    model_config = ConfigDict(populate_by_name=True)

    def to_domain(self) -> ProfileUpdate:
        return ProfileUpdate(**self.model_dump(exclude_unset=True))


class UsernameRequest(BaseModel):
    username: str


class UsernameAvailabilityResponse(BaseModel):
    username: str
    available: bool
