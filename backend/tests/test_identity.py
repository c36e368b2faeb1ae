from __future__ import annotations

from datetime import timedelta

import pytest
from jose import jwt

from backend.app.config import IdentityConfig
from backend.app.errors import InvalidCredential
from backend.app.identity import JWTIdentityVerifier, create_identity_token
from backend.app.services.identity import bearer_token, get_current_identity, get_optional_identity

CONFIG = IdentityConfig(key="unit-test-secret", algorithms=("HS256",))


@pytest.fixture
def verifier() -> JWTIdentityVerifier:
    return JWTIdentityVerifier(CONFIG)


def test_verify_returns_identity_for_valid_token(verifier: JWTIdentityVerifier) -> None:
    token = create_identity_token(CONFIG, "user-123", email="a@example.com")

    identity = verifier.verify(token)

    assert identity.user_id == "user-123"
    assert identity.email == "a@example.com"


def test_verify_accepts_user_id_claim(verifier: JWTIdentityVerifier) -> None:
    token = jwt.encode({"user_id": "firebase-uid"}, CONFIG.key, algorithm="HS256")

    assert verifier.verify(token).user_id == "firebase-uid"


def test_expired_token_is_rejected(verifier: JWTIdentityVerifier) -> None:
    token = create_identity_token(CONFIG, "user-123", expires_delta=timedelta(seconds=-30))

    with pytest.raises(InvalidCredential) as exc:
        verifier.verify(token)

    assert exc.value.status_code == 401


def test_token_signed_with_other_key_is_rejected(verifier: JWTIdentityVerifier) -> None:
    other = IdentityConfig(key="someone-else", algorithms=("HS256",))
    token = create_identity_token(other, "user-123")

    with pytest.raises(InvalidCredential):
        verifier.verify(token)


def test_token_without_user_claim_is_rejected(verifier: JWTIdentityVerifier) -> None:
    token = jwt.encode({"email": "a@example.com"}, CONFIG.key, algorithm="HS256")

    with pytest.raises(InvalidCredential):
        verifier.verify(token)


def test_audience_is_enforced_when_configured() -> None:
    config = IdentityConfig(key="unit-test-secret", algorithms=("HS256",), audience="storefront")
    verifier = JWTIdentityVerifier(config)

    other_audience = IdentityConfig(key="unit-test-secret", algorithms=("HS256",), audience="elsewhere")

    assert verifier.verify(create_identity_token(config, "u1")).user_id == "u1"
    with pytest.raises(InvalidCredential):
        verifier.verify(create_identity_token(other_audience, "u1"))


def test_garbage_token_is_rejected(verifier: JWTIdentityVerifier) -> None:
    with pytest.raises(InvalidCredential):
        verifier.verify("not-a-jwt")


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Bearer abc.def", "abc.def"),
        ("bearer   abc", "abc"),
        ("Basic abc", None),
        ("Bearer ", None),
        (None, None),
    ],
)
def test_bearer_token_parsing(header, expected) -> None:
    assert bearer_token(header) == expected


def test_current_identity_requires_header(verifier: JWTIdentityVerifier) -> None:
    with pytest.raises(InvalidCredential) as exc:
        get_current_identity(authorization=None, verifier=verifier)

    assert exc.value.message == "Not authenticated."


def test_current_identity_from_header(verifier: JWTIdentityVerifier) -> None:
    token = create_identity_token(CONFIG, "user-9")

    identity = get_current_identity(authorization=f"Bearer {token}", verifier=verifier)

    assert identity.user_id == "user-9"


def test_optional_identity_tolerates_bad_token(verifier: JWTIdentityVerifier) -> None:
    assert get_optional_identity(authorization="Bearer nope", verifier=verifier) is None
    assert get_optional_identity(authorization=None, verifier=verifier) is None
