"""Catalog and product persistence.

Two interfaces are exposed: :class:`CatalogRepository` for owner-scoped
CRUD from authenticated handlers, and :class:`PublicCatalogReader` for the
anonymous read path. Callers pick one by trust level.
"""
from __future__ import annotations

import itertools
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Protocol

import psycopg2.extras
from psycopg2 import errors as pg_errors
from psycopg2.extensions import cursor as PgCursor

from ..db import PostgresRepository, managed_connection
from ..errors import DuplicateSlug
from ..profiles.models import UserProfile
from ..profiles.repository import row_to_profile
from .models import CATALOG_FIELDS, PRODUCT_FIELDS, Catalog, Product, normalize_images


class CatalogRepository(Protocol):
    """Privileged, ownership-scoped catalog and product store."""

    def list_catalogs(self, owner_id: str) -> List[Catalog]:
        ...

    def get_catalog(self, owner_id: str, catalog_id: str) -> Optional[Catalog]:
        ...

    def create_catalog(self, owner_id: str, fields: Mapping[str, object]) -> Catalog:
        ...

    def update_catalog(self, owner_id: str, catalog_id: str, fields: Mapping[str, object]) -> Optional[Catalog]:
        ...

    def delete_catalog(self, owner_id: str, catalog_id: str) -> List[Product]:
        ...

    def count_catalogs(self, owner_id: str) -> int:
        ...

    def list_products(self, catalog_id: str) -> List[Product]:
        ...

    def get_product(self, catalog_id: str, product_id: str) -> Optional[Product]:
        ...

    def create_product(self, catalog_id: str, fields: Mapping[str, object]) -> Product:
        ...

    def update_product(self, catalog_id: str, product_id: str, fields: Mapping[str, object]) -> Optional[Product]:
        ...

    def delete_product(self, catalog_id: str, product_id: str) -> Optional[Product]:
        ...

    def count_products(self, catalog_id: str) -> int:
        ...

    def product_counts(self, owner_id: str, catalog_ids: Iterable[str]) -> Dict[str, int]:
        ...


class PublicCatalogReader(Protocol):
    """Read-only view used to serve anonymous visitors."""

    def resolve_username(self, username: str) -> Optional[str]:
        ...

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        ...

    def get_catalog_by_slug(self, owner_id: str, slug: str) -> Optional[Catalog]:
        ...

    def list_catalogs(self, owner_id: str) -> List[Catalog]:
        ...

    def list_products(self, catalog_id: str) -> List[Product]:
        ...


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except (TypeError, ValueError):
        return False
    return True


def _checked_fields(fields: Mapping[str, object], allowed: frozenset) -> Dict[str, object]:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unsupported fields: {sorted(unknown)}")
    return dict(fields)


def _product_fields(fields: Mapping[str, object]) -> Dict[str, object]:
    """Cap images at three and keep ``image_url`` equal to the first one."""

    values = _checked_fields(fields, PRODUCT_FIELDS)
    if "images" in values:
        images = normalize_images(values["images"])
    elif "image_url" in values:
        images = normalize_images([values["image_url"]])
    else:
        return values
    values["images"] = list(images)
    values["image_url"] = images[0] if images else None
    return values


def _row_to_catalog(row: dict) -> Catalog:
    return Catalog(
        id=str(row["id"]),
        owner_id=row["owner_id"],
        slug=row["slug"],
        name=row["name"],
        description=row.get("description"),
        is_public=row["is_public"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_product(row: dict) -> Product:
    return Product(
        id=str(row["id"]),
        catalog_id=str(row["catalog_id"]),
        slug=row["slug"],
        name=row["name"],
        description=row.get("description"),
        price=row.get("price"),
        images=tuple(row.get("images") or ()),
        image_url=row.get("image_url"),
        external_url=row.get("external_url"),
        visible=row["visible"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresCatalogRepository(PostgresRepository):
    """Owner-scoped CRUD over the ``catalogs`` and ``products`` tables."""

    def list_catalogs(self, owner_id: str) -> List[Catalog]:
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT * FROM catalogs WHERE owner_id = %s ORDER BY created_at DESC, id",
                (owner_id,),
            )
            return [_row_to_catalog(row) for row in cursor.fetchall()]

    def get_catalog(self, owner_id: str, catalog_id: str) -> Optional[Catalog]:
        if not _is_uuid(catalog_id):
            return None
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT * FROM catalogs WHERE id = %s AND owner_id = %s",
                (catalog_id, owner_id),
            )
            row = cursor.fetchone()
            return _row_to_catalog(row) if row else None

    def create_catalog(self, owner_id: str, fields: Mapping[str, object]) -> Catalog:
        values = _checked_fields(fields, CATALOG_FIELDS)
        columns = ["owner_id", *values.keys()]
        placeholders = [f"%({column})s" for column in columns]
        try:
            with self._cursor() as cursor:
                cursor.execute(
                    f"INSERT INTO catalogs ({', '.join(columns)}) "
                    f"VALUES ({', '.join(placeholders)}) RETURNING *",
                    {"owner_id": owner_id, **values},
                )
                row = cursor.fetchone()
        except pg_errors.UniqueViolation as exc:
            raise DuplicateSlug("catalog", str(values.get("slug"))) from exc
        return _row_to_catalog(row)

    def update_catalog(self, owner_id: str, catalog_id: str, fields: Mapping[str, object]) -> Optional[Catalog]:
        if not _is_uuid(catalog_id):
            return None
        values = _checked_fields(fields, CATALOG_FIELDS)
        assignments = [f"{key} = %({key})s" for key in values]
        assignments.append("updated_at = NOW()")
        try:
            with self._cursor() as cursor:
                cursor.execute(
                    f"UPDATE catalogs SET {', '.join(assignments)} "
                    "WHERE id = %(catalog_id)s AND owner_id = %(owner_id)s RETURNING *",
                    {"catalog_id": catalog_id, "owner_id": owner_id, **values},
                )
                row = cursor.fetchone()
        except pg_errors.UniqueViolation as exc:
            raise DuplicateSlug("catalog", str(values.get("slug"))) from exc
        return _row_to_catalog(row) if row else None

    def delete_catalog(self, owner_id: str, catalog_id: str) -> List[Product]:
        """Delete the catalog and return the products removed by the cascade."""

        if not _is_uuid(catalog_id):
            return []
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT p.*
                FROM products p
                JOIN catalogs c ON c.id = p.catalog_id
                WHERE c.id = %s AND c.owner_id = %s
                """,
                (catalog_id, owner_id),
            )
            removed = [_row_to_product(row) for row in cursor.fetchall()]
            cursor.execute(
                "DELETE FROM catalogs WHERE id = %s AND owner_id = %s",
                (catalog_id, owner_id),
            )
            return removed

    def count_catalogs(self, owner_id: str) -> int:
        with self._cursor() as cursor:
            cursor.execute("SELECT COUNT(*) AS total FROM catalogs WHERE owner_id = %s", (owner_id,))
            row = cursor.fetchone()
            return int(row["total"]) if row else 0

    def list_products(self, catalog_id: str) -> List[Product]:
        if not _is_uuid(catalog_id):
            return []
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT * FROM products WHERE catalog_id = %s ORDER BY created_at DESC, id",
                (catalog_id,),
            )
            return [_row_to_product(row) for row in cursor.fetchall()]

    def get_product(self, catalog_id: str, product_id: str) -> Optional[Product]:
        if not (_is_uuid(catalog_id) and _is_uuid(product_id)):
            return None
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT * FROM products WHERE id = %s AND catalog_id = %s",
                (product_id, catalog_id),
            )
            row = cursor.fetchone()
            return _row_to_product(row) if row else None

    def create_product(self, catalog_id: str, fields: Mapping[str, object]) -> Product:
        values = _product_fields({"images": [], **fields})
        columns = ["catalog_id", *values.keys()]
        placeholders = [f"%({column})s" for column in columns]
        try:
            with self._cursor() as cursor:
                cursor.execute(
                    f"INSERT INTO products ({', '.join(columns)}) "
                    f"VALUES ({', '.join(placeholders)}) RETURNING *",
                    {"catalog_id": catalog_id, **values},
                )
                row = cursor.fetchone()
        except pg_errors.UniqueViolation as exc:
            raise DuplicateSlug("product", str(values.get("slug"))) from exc
        return _row_to_product(row)

    def update_product(self, catalog_id: str, product_id: str, fields: Mapping[str, object]) -> Optional[Product]:
        if not (_is_uuid(catalog_id) and _is_uuid(product_id)):
            return None
        values = _product_fields(fields)
        assignments = [f"{key} = %({key})s" for key in values]
        assignments.append("updated_at = NOW()")
        try:
            with self._cursor() as cursor:
                cursor.execute(
                    f"UPDATE products SET {', '.join(assignments)} "
                    "WHERE id = %(product_id)s AND catalog_id = %(catalog_id)s RETURNING *",
                    {"product_id": product_id, "catalog_id": catalog_id, **values},
                )
                row = cursor.fetchone()
        except pg_errors.UniqueViolation as exc:
            raise DuplicateSlug("product", str(values.get("slug"))) from exc
        return _row_to_product(row) if row else None

    def delete_product(self, catalog_id: str, product_id: str) -> Optional[Product]:
        if not (_is_uuid(catalog_id) and _is_uuid(product_id)):
            return None
        with self._cursor() as cursor:
            cursor.execute(
                "DELETE FROM products WHERE id = %s AND catalog_id = %s RETURNING *",
                (product_id, catalog_id),
            )
            row = cursor.fetchone()
            return _row_to_product(row) if row else None

    def count_products(self, catalog_id: str) -> int:
        if not _is_uuid(catalog_id):
            return 0
        with self._cursor() as cursor:
            cursor.execute("SELECT COUNT(*) AS total FROM products WHERE catalog_id = %s", (catalog_id,))
            row = cursor.fetchone()
            return int(row["total"]) if row else 0

    def product_counts(self, owner_id: str, catalog_ids: Iterable[str]) -> Dict[str, int]:
        requested = [str(catalog_id) for catalog_id in catalog_ids]
        counts = {catalog_id: 0 for catalog_id in requested}
        valid = [catalog_id for catalog_id in requested if _is_uuid(catalog_id)]
        if not valid:
            return counts
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT p.catalog_id, COUNT(*) AS total
                FROM products p
                JOIN catalogs c ON c.id = p.catalog_id
                WHERE c.owner_id = %s AND p.catalog_id::text = ANY(%s)
                GROUP BY p.catalog_id
                """,
                (owner_id, valid),
            )
            for row in cursor.fetchall():
                counts[str(row["catalog_id"])] = int(row["total"])
        return counts


class PostgresPublicCatalogReader(PostgresRepository):
    """Read-only queries run inside ``READ ONLY`` transactions."""

    @contextmanager
    def _cursor(self) -> Iterator[PgCursor]:
        with managed_connection(self._conn) as (connection, managed):
            cursor = connection.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            try:
                if managed:
                    cursor.execute("SET TRANSACTION READ ONLY")
                yield cursor
            finally:
                cursor.close()

    def resolve_username(self, username: str) -> Optional[str]:
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT id FROM users WHERE LOWER(username) = LOWER(%s) LIMIT 1",
                (username,),
            )
            row = cursor.fetchone()
            return row["id"] if row else None

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM users WHERE id = %s LIMIT 1", (user_id,))
            row = cursor.fetchone()
            return row_to_profile(row) if row else None

    def get_catalog_by_slug(self, owner_id: str, slug: str) -> Optional[Catalog]:
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT * FROM catalogs WHERE owner_id = %s AND slug = %s LIMIT 1",
                (owner_id, slug),
            )
            row = cursor.fetchone()
            return _row_to_catalog(row) if row else None

    def list_catalogs(self, owner_id: str) -> List[Catalog]:
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT * FROM catalogs WHERE owner_id = %s ORDER BY created_at DESC, id",
                (owner_id,),
            )
            return [_row_to_catalog(row) for row in cursor.fetchall()]

    def list_products(self, catalog_id: str) -> List[Product]:
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT * FROM products WHERE catalog_id = %s ORDER BY created_at DESC, id",
                (catalog_id,),
            )
            return [_row_to_product(row) for row in cursor.fetchall()]


class InMemoryCatalogRepository:
    """Catalog store suitable for tests and local development."""

    def __init__(self, *, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._catalogs: Dict[str, Catalog] = {}
        self._products: Dict[str, Product] = {}
        self._order: Dict[str, int] = {}
        self._sequence = itertools.count()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = Lock()

    def _newest_first(self, items: Iterable) -> list:
        return sorted(items, key=lambda item: (item.created_at, self._order[item.id]), reverse=True)

    def _slug_taken(self, items: Iterable, slug: str, *, exclude: Optional[str] = None) -> bool:
        return any(item.slug == slug and item.id != exclude for item in items)

    def list_catalogs(self, owner_id: str) -> List[Catalog]:
        return self._newest_first(c for c in self._catalogs.values() if c.owner_id == owner_id)

    def get_catalog(self, owner_id: str, catalog_id: str) -> Optional[Catalog]:
        catalog = self._catalogs.get(catalog_id)
        if catalog is None or catalog.owner_id != owner_id:
            return None
        return catalog

    def create_catalog(self, owner_id: str, fields: Mapping[str, object]) -> Catalog:
        values = _checked_fields(fields, CATALOG_FIELDS)
        with self._lock:
            slug = str(values["slug"])
            if self._slug_taken(self.list_catalogs(owner_id), slug):
                raise DuplicateSlug("catalog", slug)
            now = self._clock()
            catalog = Catalog(id=str(uuid.uuid4()), owner_id=owner_id, created_at=now, updated_at=now, **values)
            self._catalogs[catalog.id] = catalog
            self._order[catalog.id] = next(self._sequence)
            return catalog

    def update_catalog(self, owner_id: str, catalog_id: str, fields: Mapping[str, object]) -> Optional[Catalog]:
        values = _checked_fields(fields, CATALOG_FIELDS)
        with self._lock:
            current = self.get_catalog(owner_id, catalog_id)
            if current is None:
                return None
            if "slug" in values and self._slug_taken(
                self.list_catalogs(owner_id), str(values["slug"]), exclude=catalog_id
            ):
                raise DuplicateSlug("catalog", str(values["slug"]))
            updated = current.model_copy(update={**values, "updated_at": self._clock()})
            self._catalogs[catalog_id] = updated
            return updated

    def delete_catalog(self, owner_id: str, catalog_id: str) -> List[Product]:
        with self._lock:
            if self.get_catalog(owner_id, catalog_id) is None:
                return []
            del self._catalogs[catalog_id]
            removed = [p for p in self._products.values() if p.catalog_id == catalog_id]
            for product in removed:
                del self._products[product.id]
            return removed

    def count_catalogs(self, owner_id: str) -> int:
        return sum(1 for c in self._catalogs.values() if c.owner_id == owner_id)

    def list_products(self, catalog_id: str) -> List[Product]:
        return self._newest_first(p for p in self._products.values() if p.catalog_id == catalog_id)

    def get_product(self, catalog_id: str, product_id: str) -> Optional[Product]:
        product = self._products.get(product_id)
        if product is None or product.catalog_id != catalog_id:
            return None
        return product

    def create_product(self, catalog_id: str, fields: Mapping[str, object]) -> Product:
        values = _product_fields({"images": [], **fields})
        values["images"] = tuple(values["images"])
        with self._lock:
            slug = str(values["slug"])
            if self._slug_taken(self.list_products(catalog_id), slug):
                raise DuplicateSlug("product", slug)
            now = self._clock()
            product = Product(id=str(uuid.uuid4()), catalog_id=catalog_id, created_at=now, updated_at=now, **values)
            self._products[product.id] = product
            self._order[product.id] = next(self._sequence)
            return product

    def update_product(self, catalog_id: str, product_id: str, fields: Mapping[str, object]) -> Optional[Product]:
        values = _product_fields(fields)
        if "images" in values:
            values["images"] = tuple(values["images"])
        with self._lock:
            current = self.get_product(catalog_id, product_id)
            if current is None:
                return None
            if "slug" in values and self._slug_taken(
                self.list_products(catalog_id), str(values["slug"]), exclude=product_id
            ):
                raise DuplicateSlug("product", str(values["slug"]))
            updated = current.model_copy(update={**values, "updated_at": self._clock()})
            self._products[product_id] = updated
            return updated

    def delete_product(self, catalog_id: str, product_id: str) -> Optional[Product]:
        with self._lock:
            product = self.get_product(catalog_id, product_id)
            if product is None:
                return None
            del self._products[product_id]
            return product

    def count_products(self, catalog_id: str) -> int:
        return sum(1 for p in self._products.values() if p.catalog_id == catalog_id)

    def product_counts(self, owner_id: str, catalog_ids: Iterable[str]) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for catalog_id in catalog_ids:
            owned = self.get_catalog(owner_id, catalog_id) is not None
            counts[catalog_id] = self.count_products(catalog_id) if owned else 0
        return counts


class InMemoryPublicCatalogReader:
    """Read-only facade over the in-memory profile and catalog stores."""

    def __init__(self, profiles, catalogs: InMemoryCatalogRepository) -> None:
        self._profiles = profiles
        self._catalogs = catalogs

    def resolve_username(self, username: str) -> Optional[str]:
        return self._profiles.resolve_username(username)

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return self._profiles.get(user_id)

    def get_catalog_by_slug(self, owner_id: str, slug: str) -> Optional[Catalog]:
        for catalog in self._catalogs.list_catalogs(owner_id):
            if catalog.slug == slug:
                return catalog
        return None

    def list_catalogs(self, owner_id: str) -> List[Catalog]:
        return self._catalogs.list_catalogs(owner_id)

    def list_products(self, catalog_id: str) -> List[Product]:
        return self._catalogs.list_products(catalog_id)


__all__ = [
    "CatalogRepository",
    "InMemoryCatalogRepository",
    "InMemoryPublicCatalogReader",
    "PostgresCatalogRepository",
    "PostgresPublicCatalogReader",
    "PublicCatalogReader",
]
