"""Profile use cases: login sync, self-service updates and username claims."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol, Tuple

from ..errors import AlreadyExists, NotFound, ValidationError
from ..storage.blob_store import BlobStore, release_blobs
from .models import LoginSync, ProfileUpdate, UserProfile
from .validation import (
    clean_optional_text,
    normalize_contact_number,
    normalize_message_template,
    normalize_username,
)

logger = logging.getLogger(__name__)


class ProfileStore(Protocol):
    def get(self, user_id: str) -> Optional[UserProfile]:
        ...

    def create(self, user_id: str, fields: Mapping[str, object]) -> UserProfile:
        ...

    def update(self, user_id: str, fields: Mapping[str, object]) -> UserProfile:
        ...

    def claim_username(self, user_id: str, username: str) -> UserProfile:
        ...

    def resolve_username(self, username: str) -> Optional[str]:
        ...

    def find_by_billing_customer(self, customer_id: str) -> Optional[UserProfile]:
        ...


@dataclass
class ProfileService:
    profiles: ProfileStore
    blob_store: BlobStore

    def get(self, user_id: str) -> UserProfile:
        profile = self.profiles.get(user_id)
        if profile is None:
            raise NotFound("profile")
        return profile

    def sync_on_login(self, user_id: str, sync: LoginSync) -> Tuple[UserProfile, bool]:
        """Create the profile on first login, otherwise refresh identity fields.

        Returns the profile and whether it was created by this call.
        """

        fields = {
            "email": sync.email,
            "display_name": clean_optional_text(sync.display_name),
            "photo_url": sync.photo_url,
        }
        if self.profiles.get(user_id) is None:
            try:
                return self.profiles.create(user_id, fields), True
            except AlreadyExists:
                # A concurrent login created it first.
                logger.info("Profile %s created concurrently; refreshing instead", user_id)
        # Attributes missing from this login keep their stored values.
        refreshed = {name: value for name, value in fields.items() if value}
        if not refreshed:
            return self.get(user_id), False
        return self.profiles.update(user_id, refreshed), False

    def update_profile(self, user_id: str, update: ProfileUpdate) -> UserProfile:
        current = self.get(user_id)
        changes = update.changes()
        fields = {}
        if "display_name" in changes:
            fields["display_name"] = clean_optional_text(changes["display_name"])
        if "store_name" in changes:
            fields["store_name"] = clean_optional_text(changes["store_name"])
        if "contact_number" in changes:
            fields["contact_number"] = normalize_contact_number(changes["contact_number"])
        if "message_template" in changes:
            template = normalize_message_template(changes["message_template"])
            if template is None:
                raise ValidationError("Message template cannot be empty.", field="message_template")
            fields["message_template"] = template
        if "custom_photo_url" in changes:
            fields["custom_photo_url"] = clean_optional_text(changes["custom_photo_url"])

        replaced_photo = None
        if "custom_photo_url" in fields and current.custom_photo_url != fields["custom_photo_url"]:
            replaced_photo = current.custom_photo_url

        updated = self.profiles.update(user_id, fields)
        if replaced_photo:
            release_blobs(self.blob_store, [replaced_photo])
        return updated

    def username_available(self, username: str, *, user_id: Optional[str] = None) -> bool:
        normalized = normalize_username(username)
        holder = self.profiles.resolve_username(normalized)
        return holder is None or holder == user_id

    def claim_username(self, user_id: str, username: str) -> UserProfile:
        # Uniqueness is enforced by the store; a same-user reclaim is a no-op.
        return self.profiles.claim_username(user_id, normalize_username(username))

    def resolve_username(self, username: str) -> str:
        user_id = self.profiles.resolve_username(username.strip())
        if user_id is None:
            raise NotFound("profile")
        return user_id


__all__ = ["ProfileService", "ProfileStore"]
