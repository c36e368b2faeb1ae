from __future__ import annotations

from decimal import Decimal
from typing import List
from urllib.parse import parse_qs, urlparse

import pytest

from backend.app.catalogs import (
    CatalogCreate,
    CatalogService,
    InMemoryCatalogRepository,
    InMemoryPublicCatalogReader,
    ProductCreate,
    ProductUpdate,
)
from backend.app.errors import NotFound, QuotaExceeded
from backend.app.profiles import InMemoryProfileRepository, LoginSync, ProfileService, ProfileUpdate
from backend.app.public import ProductSort, PublicResolver, build_whatsapp_link, format_contact_number
from backend.app.storage import StoredBlob


class NullBlobStore:
    def __init__(self) -> None:
        self.deleted: List[str] = []

    def put(self, data: bytes, content_type: str, path_hint: str) -> StoredBlob:
        return StoredBlob(url=path_hint, path=path_hint)

    def delete(self, url_or_path: str) -> None:
        self.deleted.append(url_or_path)


class Storefront:
    """Wires the in-memory stores the way the application does at startup."""

    def __init__(self) -> None:
        blob_store = NullBlobStore()
        self.profile_repo = InMemoryProfileRepository()
        self.catalog_repo = InMemoryCatalogRepository()
        self.profiles = ProfileService(profiles=self.profile_repo, blob_store=blob_store)
        self.catalogs = CatalogService(
            catalogs=self.catalog_repo, profiles=self.profile_repo, blob_store=blob_store
        )
        self.resolver = PublicResolver(
            reader=InMemoryPublicCatalogReader(self.profile_repo, self.catalog_repo)
        )

    def seller(self, user_id: str, username: str, **fields) -> None:
        self.profiles.sync_on_login(user_id, LoginSync(email=f"{username}@example.com"))
        self.profiles.claim_username(user_id, username)
        if fields:
            self.profiles.update_profile(user_id, ProfileUpdate(**fields))


@pytest.fixture
def store() -> Storefront:
    return Storefront()


def test_alice_publishes_a_catalog(store: Storefront) -> None:
    store.seller("u-alice", "alice", store_name="Alice Store", contact_number="11 99999-0000")
    catalog = store.catalogs.create_catalog("u-alice", CatalogCreate(name="Verão"))
    store.catalogs.create_product(
        "u-alice", catalog.id, ProductCreate(name="vestido", price=Decimal("49.90"))
    )
    store.catalogs.create_product("u-alice", catalog.id, ProductCreate(name="saia", visible=False))

    view = store.resolver.resolve_public_catalog("alice", "verao")

    assert view.catalog.slug == "verao"
    assert [p.name for p in view.products] == ["vestido"]
    assert view.products[0].price == Decimal("49.90")
    assert view.seller.username == "alice"
    assert view.seller.store_name == "Alice Store"

    link = urlparse(view.products[0].contact_url)
    assert link.netloc == "wa.me"
    assert link.path == "/5511999990000"
    assert "vestido" in parse_qs(link.query)["text"][0]

    with pytest.raises(QuotaExceeded) as exc:
        store.catalogs.create_catalog("u-alice", CatalogCreate(name="Inverno"))
    assert exc.value.limit == 1


def test_private_catalog_is_indistinguishable_from_missing(store: Storefront) -> None:
    store.seller("u-alice", "alice")
    catalog = store.catalogs.create_catalog("u-alice", CatalogCreate(name="Secret", is_public=False))

    with pytest.raises(NotFound) as private:
        store.resolver.resolve_public_catalog("alice", catalog.slug)
    with pytest.raises(NotFound) as missing:
        store.resolver.resolve_public_catalog("alice", "does-not-exist")
    with pytest.raises(NotFound) as unknown_user:
        store.resolver.resolve_public_catalog("nobody", catalog.slug)

    assert private.value.payload == missing.value.payload == unknown_user.value.payload


def test_hidden_products_are_filtered(store: Storefront) -> None:
    store.seller("u-alice", "alice")
    catalog = store.catalogs.create_catalog("u-alice", CatalogCreate(name="Shoes"))
    store.catalogs.create_product("u-alice", catalog.id, ProductCreate(name="Shown"))
    hidden = store.catalogs.create_product("u-alice", catalog.id, ProductCreate(name="Hidden"))
    store.catalogs.update_product("u-alice", catalog.id, hidden.id, ProductUpdate(visible=False))

    view = store.resolver.resolve_public_catalog("alice", "shoes")

    assert [p.name for p in view.products] == ["Shown"]


def test_price_sort_puts_unpriced_last(store: Storefront) -> None:
    store.seller("u-alice", "alice")
    catalog = store.catalogs.create_catalog("u-alice", CatalogCreate(name="Shoes"))
    for name, price in (("Mid", "20"), ("Free-form", None), ("Cheap", "5")):
        store.catalogs.create_product(
            "u-alice",
            catalog.id,
            ProductCreate(name=name, price=Decimal(price) if price else None),
        )

    ascending = store.resolver.resolve_public_catalog("alice", "shoes", sort=ProductSort.PRICE_ASC)
    descending = store.resolver.resolve_public_catalog("alice", "shoes", sort=ProductSort.PRICE_DESC)

    assert [p.name for p in ascending.products] == ["Cheap", "Mid", "Free-form"]
    assert [p.name for p in descending.products] == ["Mid", "Cheap", "Free-form"]


def test_username_lookup_is_case_insensitive(store: Storefront) -> None:
    store.seller("u-alice", "alice")
    store.catalogs.create_catalog("u-alice", CatalogCreate(name="Shoes"))

    view = store.resolver.resolve_public_catalog("ALICE", "Shoes")

    assert view.catalog.slug == "shoes"


def test_no_contact_link_without_number(store: Storefront) -> None:
    store.seller("u-alice", "alice")
    catalog = store.catalogs.create_catalog("u-alice", CatalogCreate(name="Shoes"))
    store.catalogs.create_product("u-alice", catalog.id, ProductCreate(name="Boot"))

    view = store.resolver.resolve_public_catalog("alice", "shoes")

    assert view.products[0].contact_url is None


def test_public_view_carries_no_billing_fields(store: Storefront) -> None:
    store.seller("u-alice", "alice")
    store.profile_repo.update("u-alice", {"billing_customer_id": "cus_1", "billing_subscription_id": "sub_1"})
    store.catalogs.create_catalog("u-alice", CatalogCreate(name="Shoes"))

    dumped = store.resolver.resolve_public_catalog("alice", "shoes").model_dump()

    assert "billing_customer_id" not in dumped["seller"]
    assert "plan" not in dumped["seller"]
    assert "email" not in dumped["seller"]


def test_public_profile_lists_all_catalogs_until_filtered(store: Storefront) -> None:
    store.seller("u-alice", "alice")
    store.profile_repo.update("u-alice", {"plan": "premium"})
    store.catalogs.create_catalog("u-alice", CatalogCreate(name="Open"))
    store.catalogs.create_catalog("u-alice", CatalogCreate(name="Closed", is_public=False))

    view = store.resolver.resolve_public_profile("alice")

    assert {c.slug for c in view.catalogs} == {"open", "closed"}
    assert [c.slug for c in view.only_public().catalogs] == ["open"]


def test_public_profile_unknown_user(store: Storefront) -> None:
    with pytest.raises(NotFound) as exc:
        store.resolver.resolve_public_profile("nobody")

    assert exc.value.payload["resource"] == "profile"


def test_whatsapp_link_encodes_message() -> None:
    link = build_whatsapp_link("(11) 98888-7777", "Olá! Quero {{productName}}", "Bota & Cia", country_code="55")

    assert link.startswith("https://wa.me/5511988887777?text=")
    assert "%26" in link
    assert " " not in link


def test_format_contact_number_keeps_existing_country_code() -> None:
    assert format_contact_number("5511988887777") == "5511988887777"
    assert format_contact_number("11 98888-7777", country_code="55") == "5511988887777"
