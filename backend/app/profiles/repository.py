"""Persistence layer for seller profiles."""
from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Dict, Mapping, Optional

from psycopg2 import errors as pg_errors

from ..db import PostgresRepository
from ..entitlements.models import PlanKey
from ..errors import AlreadyExists, NotFound, UsernameTaken
from .models import DEFAULT_MESSAGE_TEMPLATE, UPDATABLE_FIELDS, UserProfile


def row_to_profile(row: dict) -> UserProfile:
    return UserProfile(
        id=row["id"],
        email=row.get("email"),
        display_name=row.get("display_name"),
        photo_url=row.get("photo_url"),
        custom_photo_url=row.get("custom_photo_url"),
        username=row.get("username"),
        store_name=row.get("store_name"),
        contact_number=row.get("contact_number"),
        message_template=row.get("message_template") or DEFAULT_MESSAGE_TEMPLATE,
        plan=PlanKey(row.get("plan") or PlanKey.FREE.value),
        billing_customer_id=row.get("billing_customer_id"),
        billing_subscription_id=row.get("billing_subscription_id"),
        created_at=row["created_at"],
        last_active_at=row.get("last_active_at"),
    )


def _filter_fields(fields: Mapping[str, object]) -> Dict[str, object]:
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unsupported profile fields: {sorted(unknown)}")
    return {
        key: value.value if isinstance(value, PlanKey) else value
        for key, value in fields.items()
    }


class PostgresProfileRepository(PostgresRepository):
    """Profile store backed by the ``users`` table."""

    def get(self, user_id: str) -> Optional[UserProfile]:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM users WHERE id = %s LIMIT 1", (user_id,))
            row = cursor.fetchone()
            return row_to_profile(row) if row else None

    def create(self, user_id: str, fields: Mapping[str, object]) -> UserProfile:
        values = _filter_fields(fields)
        values.setdefault("message_template", DEFAULT_MESSAGE_TEMPLATE)
        values.setdefault("plan", PlanKey.FREE.value)
        columns = ["id", *values.keys(), "last_active_at"]
        placeholders = ["%(id)s", *(f"%({key})s" for key in values), "NOW()"]
        try:
            with self._cursor() as cursor:
                cursor.execute(
                    f"INSERT INTO users ({', '.join(columns)}) "
                    f"VALUES ({', '.join(placeholders)}) RETURNING *",
                    {"id": user_id, **values},
                )
                row = cursor.fetchone()
        except pg_errors.UniqueViolation as exc:
            raise AlreadyExists("profile") from exc
        if not row:
            raise RuntimeError("Failed to persist profile")
        return row_to_profile(row)

    def update(self, user_id: str, fields: Mapping[str, object]) -> UserProfile:
        values = _filter_fields(fields)
        assignments = [f"{key} = %({key})s" for key in values]
        assignments.append("last_active_at = NOW()")
        with self._cursor() as cursor:
            cursor.execute(
                f"UPDATE users SET {', '.join(assignments)} WHERE id = %(user_id)s RETURNING *",
                {"user_id": user_id, **values},
            )
            row = cursor.fetchone()
        if not row:
            raise NotFound("profile")
        return row_to_profile(row)

    def claim_username(self, user_id: str, username: str) -> UserProfile:
        try:
            with self._cursor() as cursor:
                cursor.execute(
                    """
                    UPDATE users
                    SET username = %s, last_active_at = NOW()
                    WHERE id = %s
                    RETURNING *
                    """,
                    (username.lower(), user_id),
                )
                row = cursor.fetchone()
        except pg_errors.UniqueViolation as exc:
            raise UsernameTaken(username) from exc
        if not row:
            raise NotFound("profile")
        return row_to_profile(row)

    def resolve_username(self, username: str) -> Optional[str]:
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT id FROM users WHERE LOWER(username) = LOWER(%s) LIMIT 1",
                (username,),
            )
            row = cursor.fetchone()
            return row["id"] if row else None

    def find_by_billing_customer(self, customer_id: str) -> Optional[UserProfile]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT *
                FROM users
                WHERE billing_customer_id = %s
                ORDER BY last_active_at DESC NULLS LAST
                LIMIT 1
                """,
                (customer_id,),
            )
            row = cursor.fetchone()
            return row_to_profile(row) if row else None


class InMemoryProfileRepository:
    """Profile store suitable for tests and local development."""

    def __init__(self, *, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._profiles: Dict[str, UserProfile] = {}
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = Lock()

    def get(self, user_id: str) -> Optional[UserProfile]:
        return self._profiles.get(user_id)

    def create(self, user_id: str, fields: Mapping[str, object]) -> UserProfile:
        values = _filter_fields(fields)
        with self._lock:
            if user_id in self._profiles:
                raise AlreadyExists("profile")
            now = self._clock()
            profile = UserProfile(id=user_id, created_at=now, last_active_at=now, **values)
            self._profiles[user_id] = profile
            return profile

    def update(self, user_id: str, fields: Mapping[str, object]) -> UserProfile:
        values = _filter_fields(fields)
        with self._lock:
            current = self._profiles.get(user_id)
            if current is None:
                raise NotFound("profile")
            if "plan" in values:
                values["plan"] = PlanKey(values["plan"])
            updated = current.model_copy(update={**values, "last_active_at": self._clock()})
            self._profiles[user_id] = updated
            return updated

    def claim_username(self, user_id: str, username: str) -> UserProfile:
        wanted = username.lower()
        with self._lock:
            current = self._profiles.get(user_id)
            if current is None:
                raise NotFound("profile")
            for other in self._profiles.values():
                if other.id != user_id and other.username and other.username.lower() == wanted:
                    raise UsernameTaken(username)
            updated = current.model_copy(update={"username": wanted, "last_active_at": self._clock()})
            self._profiles[user_id] = updated
            return updated

    def resolve_username(self, username: str) -> Optional[str]:
        wanted = username.lower()
        for profile in self._profiles.values():
            if profile.username and profile.username.lower() == wanted:
                return profile.id
        return None

    def find_by_billing_customer(self, customer_id: str) -> Optional[UserProfile]:
        for profile in self._profiles.values():
            if profile.billing_customer_id == customer_id:
                return profile
        return None


__all__ = ["InMemoryProfileRepository", "PostgresProfileRepository", "row_to_profile"]
