"""Shared application context for reusable dependencies.

``configure`` is called once by ``backend.main`` at startup; routers and
service factories read the registered collaborators back through the
accessors below. Domain services never import this module: they receive
their collaborators as constructor arguments.
"""
from __future__ import annotations

from typing import Any, Callable, Optional

_get_conn: Optional[Callable[[], Any]] = None
_config: Optional[Any] = None
_identity_verifier: Optional[Any] = None
_blob_store: Optional[Any] = None
_billing_gateway: Optional[Any] = None
_profile_repository: Optional[Any] = None
_catalog_repository: Optional[Any] = None
_public_reader: Optional[Any] = None


def configure(
    *,
    config: Any,
    identity_verifier: Any,
    blob_store: Any,
    billing_gateway: Any,
    profile_repository: Any,
    catalog_repository: Any,
    public_reader: Any,
    get_conn: Optional[Callable[[], Any]] = None,
) -> None:
    """Register application-wide dependencies required by modular routers."""

    global _get_conn
    global _config
    global _identity_verifier
    global _blob_store
    global _billing_gateway
    global _profile_repository
    global _catalog_repository
    global _public_reader

    _get_conn = get_conn
    _config = config
    _identity_verifier = identity_verifier
    _blob_store = blob_store
    _billing_gateway = billing_gateway
    _profile_repository = profile_repository
    _catalog_repository = catalog_repository
    _public_reader = public_reader


def _require(value: Optional[Any], name: str) -> Any:
    if value is None:
        raise RuntimeError(f"Application context has not been configured yet: {name}")
    return value


def get_conn() -> Any:
    conn_factory = _require(_get_conn, "get_conn")
    return conn_factory()


def get_config() -> Any:
    return _require(_config, "config")


def get_identity_verifier() -> Any:
    return _require(_identity_verifier, "identity_verifier")


def get_blob_store() -> Any:
    return _require(_blob_store, "blob_store")


def get_billing_gateway() -> Any:
    return _require(_billing_gateway, "billing_gateway")


def get_profile_repository() -> Any:
    return _require(_profile_repository, "profile_repository")


def get_catalog_repository() -> Any:
    return _require(_catalog_repository, "catalog_repository")


def get_public_reader() -> Any:
    return _require(_public_reader, "public_reader")
