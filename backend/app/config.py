"""Application configuration helpers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple
import math
import os


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings for the PostgreSQL store."""

    host: str
    port: int
    dbname: str
    user: str
    password: str
    connect_timeout: int

    def as_connect_kwargs(self) -> dict:
        return {
            "host": self.host,
            "port": self.port,
            "dbname": self.dbname,
            "user": self.user,
            "password": self.password,
            "connect_timeout": self.connect_timeout,
        }


@dataclass(frozen=True)
class IdentityConfig:
    """Settings used to verify identity-provider bearer tokens."""

    key: str
    algorithms: Tuple[str, ...]
    audience: Optional[str] = None
    issuer: Optional[str] = None


@dataclass(frozen=True)
class BillingConfig:
    """Stripe credentials and the price identifiers of each paid plan."""

    secret_key: str
    webhook_secret: str
    price_id_pro: str
    price_id_premium: str
    currency: str = "brl"


@dataclass(frozen=True)
class BlobStorageConfig:
    """Where uploaded images are stored."""

    base_url: Optional[str]
    service_key: Optional[str]
    bucket: str
    local_dir: str


@dataclass(frozen=True)
class AppConfig:
    """Top-level configuration assembled from the environment."""

    storage_backend: str
    database: DatabaseConfig
    identity: IdentityConfig
    billing: BillingConfig
    blob_storage: BlobStorageConfig
    app_base_url: str
    default_country_code: str
    log_level: str
    cors_origins: Tuple[str, ...] = field(default_factory=tuple)


def _to_bool(value: Optional[str], *, default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def _to_int(value: Optional[str], *, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected integer value, got {value!r}") from exc


def _parse_connect_timeout(raw_value: Optional[str]) -> int:
    if raw_value is None or raw_value == "":
        return 5
    try:
        timeout = float(raw_value)
    except ValueError as exc:
        raise ValueError("DB_CONNECT_TIMEOUT must be a number") from exc
    if timeout < 0:
        raise ValueError("DB_CONNECT_TIMEOUT must be non-negative")
    return int(math.ceil(timeout))


def _split_csv(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return tuple()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def load_app_config(env: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Load :class:`AppConfig` from environment variables."""

    env_mapping = os.environ if env is None else env

    storage_backend = (env_mapping.get("STORAGE_BACKEND") or "postgres").strip().lower()
    if storage_backend not in {"postgres", "memory"}:
        raise ValueError(f"Unsupported STORAGE_BACKEND {storage_backend!r}")

    database = DatabaseConfig(
        host=env_mapping.get("DB_HOST", "127.0.0.1"),
        port=_to_int(env_mapping.get("DB_PORT"), default=5432),
        dbname=env_mapping.get("DB_NAME", "storefront_db"),
        user=env_mapping.get("DB_USER", "storefront"),
        password=env_mapping.get("DB_PASSWORD", "storefront"),
        connect_timeout=_parse_connect_timeout(env_mapping.get("DB_CONNECT_TIMEOUT")),
    )

    # A public key takes precedence so RS256 tokens from the identity provider
    # can be verified without sharing a secret.
    identity_key = env_mapping.get("IDENTITY_JWT_PUBLIC_KEY") or env_mapping.get(
        "IDENTITY_JWT_SECRET", "dev-secret-change-me"
    )
    algorithms = _split_csv(env_mapping.get("IDENTITY_JWT_ALGORITHMS")) or ("HS256",)
    identity = IdentityConfig(
        key=identity_key,
        algorithms=algorithms,
        audience=env_mapping.get("IDENTITY_JWT_AUDIENCE") or None,
        issuer=env_mapping.get("IDENTITY_JWT_ISSUER") or None,
    )

    billing = BillingConfig(
        secret_key=env_mapping.get("STRIPE_SECRET_KEY", ""),
        webhook_secret=env_mapping.get("STRIPE_WEBHOOK_SECRET", ""),
        price_id_pro=env_mapping.get("STRIPE_PRICE_ID_PRO", ""),
        price_id_premium=env_mapping.get("STRIPE_PRICE_ID_PREMIUM", ""),
        currency=(env_mapping.get("STRIPE_CURRENCY") or "brl").lower(),
    )

    blob_storage = BlobStorageConfig(
        base_url=(env_mapping.get("BLOB_STORAGE_URL") or "").rstrip("/") or None,
        service_key=env_mapping.get("BLOB_STORAGE_KEY") or None,
        bucket=env_mapping.get("BLOB_BUCKET", "produtos"),
        local_dir=env_mapping.get("BLOB_LOCAL_DIR", "./uploads"),
    )

    country_code = "".join(ch for ch in env_mapping.get("DEFAULT_COUNTRY_CODE", "55") if ch.isdigit())

    return AppConfig(
        storage_backend=storage_backend,
        database=database,
        identity=identity,
        billing=billing,
        blob_storage=blob_storage,
        app_base_url=env_mapping.get("APP_BASE_URL", "http://localhost:3000").rstrip("/"),
        default_country_code=country_code,
        log_level=(env_mapping.get("LOG_LEVEL") or "INFO").upper(),
        cors_origins=_split_csv(env_mapping.get("CORS_ORIGINS")) or ("http://localhost:3000",),
    )


def cors_allow_credentials(env: Optional[Mapping[str, str]] = None) -> bool:
    env_mapping = os.environ if env is None else env
    return _to_bool(env_mapping.get("CORS_ALLOW_CREDENTIALS"), default=True)


__all__ = [
    "AppConfig",
    "BillingConfig",
    "BlobStorageConfig",
    "DatabaseConfig",
    "IdentityConfig",
    "cors_allow_credentials",
    "load_app_config",
]
