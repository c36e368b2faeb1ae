from __future__ import annotations

from typing import List

import pytest

from backend.app.errors import NotFound, UsernameTaken, ValidationError
from backend.app.profiles import (
    DEFAULT_MESSAGE_TEMPLATE,
    InMemoryProfileRepository,
    LoginSync,
    ProfileService,
    ProfileUpdate,
)
from backend.app.storage import StoredBlob


class RecordingBlobStore:
    def __init__(self, *, fail: bool = False) -> None:
        self.deleted: List[str] = []
        self.fail = fail

    def put(self, data: bytes, content_type: str, path_hint: str) -> StoredBlob:
        return StoredBlob(url=f"https://cdn.test/{path_hint}", path=path_hint)

    def delete(self, url_or_path: str) -> None:
        if self.fail:
            raise RuntimeError("storage offline")
        self.deleted.append(url_or_path)


@pytest.fixture
def blob_store() -> RecordingBlobStore:
    return RecordingBlobStore()


@pytest.fixture
def service(blob_store: RecordingBlobStore) -> ProfileService:
    return ProfileService(profiles=InMemoryProfileRepository(), blob_store=blob_store)


def test_sync_on_login_creates_then_refreshes(service: ProfileService) -> None:
    profile, created = service.sync_on_login(
        "u1", LoginSync(email="a@example.com", display_name=" Alice ", photo_url="https://img/a.png")
    )

    assert created is True
    assert profile.display_name == "Alice"
    assert profile.message_template == DEFAULT_MESSAGE_TEMPLATE
    assert profile.plan.value == "free"

    refreshed, created_again = service.sync_on_login("u1", LoginSync(email="new@example.com"))

    assert created_again is False
    assert refreshed.email == "new@example.com"
    assert refreshed.created_at == profile.created_at
    assert refreshed.display_name == "Alice"
    assert refreshed.photo_url == "https://img/a.png"


def test_sync_without_attributes_keeps_stored_identity(service: ProfileService) -> None:
    service.sync_on_login(
        "u1", LoginSync(email="a@example.com", display_name="Alice", photo_url="https://img/a.png")
    )

    profile, created = service.sync_on_login("u1", LoginSync())

    assert created is False
    assert profile.email == "a@example.com"
    assert profile.display_name == "Alice"
    assert profile.photo_url == "https://img/a.png"


def test_sync_with_blank_display_name_keeps_stored_one(service: ProfileService) -> None:
    service.sync_on_login("u1", LoginSync(display_name="Alice"))

    profile, _ = service.sync_on_login("u1", LoginSync(display_name="   ", photo_url="https://img/b.png"))

    assert profile.display_name == "Alice"
    assert profile.photo_url == "https://img/b.png"


def test_get_missing_profile_raises(service: ProfileService) -> None:
    with pytest.raises(NotFound) as exc:
        service.get("ghost")

    assert exc.value.payload["resource"] == "profile"


def test_claim_username_is_case_insensitive(service: ProfileService) -> None:
    service.sync_on_login("u1", LoginSync())
    service.sync_on_login("u2", LoginSync())

    claimed = service.claim_username("u1", "Alice")

    assert claimed.username == "alice"
    with pytest.raises(UsernameTaken):
        service.claim_username("u2", "ALICE")


def test_claim_username_reclaim_by_owner_is_noop(service: ProfileService) -> None:
    service.sync_on_login("u1", LoginSync())
    service.claim_username("u1", "alice")

    again = service.claim_username("u1", "alice")

    assert again.username == "alice"
    assert service.resolve_username("Alice") == "u1"


def test_claim_username_rejects_invalid_characters(service: ProfileService) -> None:
    service.sync_on_login("u1", LoginSync())

    with pytest.raises(ValidationError) as exc:
        service.claim_username("u1", "no spaces!")

    assert exc.value.payload["field"] == "username"


def test_username_availability_reports_holder(service: ProfileService) -> None:
    service.sync_on_login("u1", LoginSync())
    service.claim_username("u1", "alice")

    assert service.username_available("alice", user_id="u1") is True
    assert service.username_available("alice", user_id="u2") is False
    assert service.username_available("bob") is True


def test_resolve_unknown_username_raises(service: ProfileService) -> None:
    with pytest.raises(NotFound):
        service.resolve_username("nobody")


def test_update_profile_normalizes_contact_number(service: ProfileService) -> None:
    service.sync_on_login("u1", LoginSync())

    updated = service.update_profile(
        "u1", ProfileUpdate(contact_number="+55 (11) 99999-0000", store_name="  Loja  ")
    )

    assert updated.contact_number == "5511999990000"
    assert updated.store_name == "Loja"


def test_update_profile_rejects_letters_in_contact_number(service: ProfileService) -> None:
    service.sync_on_login("u1", LoginSync())

    with pytest.raises(ValidationError) as exc:
        service.update_profile("u1", ProfileUpdate(contact_number="call me"))

    assert exc.value.payload["field"] == "contact_number"


def test_update_profile_rejects_blank_template(service: ProfileService) -> None:
    service.sync_on_login("u1", LoginSync())

    with pytest.raises(ValidationError):
        service.update_profile("u1", ProfileUpdate(message_template="   "))


def test_replacing_custom_photo_releases_previous_blob(
    service: ProfileService, blob_store: RecordingBlobStore
) -> None:
    service.sync_on_login("u1", LoginSync())
    service.update_profile("u1", ProfileUpdate(custom_photo_url="https://cdn.test/old.png"))

    updated = service.update_profile("u1", ProfileUpdate(custom_photo_url="https://cdn.test/new.png"))

    assert updated.avatar_url == "https://cdn.test/new.png"
    assert blob_store.deleted == ["https://cdn.test/old.png"]


def test_blob_release_failure_does_not_fail_update() -> None:
    service = ProfileService(profiles=InMemoryProfileRepository(), blob_store=RecordingBlobStore(fail=True))
    service.sync_on_login("u1", LoginSync())
    service.update_profile("u1", ProfileUpdate(custom_photo_url="https://cdn.test/old.png"))

    updated = service.update_profile("u1", ProfileUpdate(custom_photo_url=None))

    assert updated.custom_photo_url is None


def test_update_ignores_unset_fields(service: ProfileService) -> None:
    service.sync_on_login("u1", LoginSync(display_name="Alice"))

    updated = service.update_profile("u1", ProfileUpdate(store_name="Loja"))

    assert updated.display_name == "Alice"
    assert updated.plan.value == "free"
