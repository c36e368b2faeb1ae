"""Seller profiles."""
from .models import DEFAULT_MESSAGE_TEMPLATE, LoginSync, ProfileUpdate, UserProfile
from .repository import InMemoryProfileRepository, PostgresProfileRepository
from .service import ProfileService, ProfileStore

__all__ = [
    "DEFAULT_MESSAGE_TEMPLATE",
    "InMemoryProfileRepository",
    "LoginSync",
    "PostgresProfileRepository",
    "ProfileService",
    "ProfileStore",
    "ProfileUpdate",
    "UserProfile",
]
