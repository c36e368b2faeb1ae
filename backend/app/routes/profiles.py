"""API routes for the signed-in seller's profile."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..identity import Identity
from ..profiles import ProfileService
from ..schemas.profiles import (
    LoginSyncRequest,
    LoginSyncResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    UsernameAvailabilityResponse,
    UsernameRequest,
)
from ..services.identity import get_current_identity
from ..services.storefront import get_profile_service

router = APIRouter(prefix="/api/user", tags=["profiles"])


@router.post("/sync", response_model=LoginSyncResponse)
def sync_profile(
    payload: Optional[LoginSyncRequest] = None,
    *,
    identity: Identity = Depends(get_current_identity),
    service: ProfileService = Depends(get_profile_service),
) -> LoginSyncResponse:
    request = payload or LoginSyncRequest()
    profile, created = service.sync_on_login(identity.user_id, request.to_domain(token_email=identity.email))
    return LoginSyncResponse(profile=ProfileResponse.from_profile(profile), created=created)


@router.get("/profile", response_model=ProfileResponse)
def read_profile(
    *,
    identity: Identity = Depends(get_current_identity),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    return ProfileResponse.from_profile(service.get(identity.user_id))


@router.post("/update", response_model=ProfileResponse)
def update_profile(
    payload: ProfileUpdateRequest,
    *,
    identity: Identity = Depends(get_current_identity),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    profile = service.update_profile(identity.user_id, payload.to_domain())
    return ProfileResponse.from_profile(profile)


@router.get("/username", response_model=UsernameAvailabilityResponse)
def check_username(
    username: str = Query(..., min_length=1, max_length=64),
    *,
    identity: Identity = Depends(get_current_identity),
    service: ProfileService = Depends(get_profile_service),
) -> UsernameAvailabilityResponse:
    available = service.username_available(username, user_id=identity.user_id)
    return UsernameAvailabilityResponse(username=username.strip().lower(), available=available)


@router.post("/username", response_model=ProfileResponse)
def claim_username(
    payload: UsernameRequest,
    *,
    identity: Identity = Depends(get_current_identity),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    return ProfileResponse.from_profile(service.claim_username(identity.user_id, payload.username))
