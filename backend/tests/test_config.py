from __future__ import annotations

import pytest

from backend.app.config import cors_allow_credentials, load_app_config


def test_defaults_without_environment() -> None:
    config = load_app_config({})

    assert config.storage_backend == "postgres"
    assert config.database.port == 5432
    assert config.database.connect_timeout == 5
    assert config.identity.algorithms == ("HS256",)
    assert config.identity.audience is None
    assert config.billing.currency == "brl"
    assert config.blob_storage.base_url is None
    assert config.blob_storage.bucket == "produtos"
    assert config.default_country_code == "55"
    assert config.cors_origins == ("http://localhost:3000",)


def test_values_are_read_from_environment() -> None:
    config = load_app_config(
        {
            "STORAGE_BACKEND": "Memory",
            "DB_PORT": "6543",
            "DB_CONNECT_TIMEOUT": "2.5",
            "IDENTITY_JWT_SECRET": "s3cret",
            "IDENTITY_JWT_ALGORITHMS": "HS256, HS512",
            "STRIPE_PRICE_ID_PRO": "price_pro",
            "STRIPE_CURRENCY": "USD",
            "BLOB_STORAGE_URL": "https://project.supabase.co/",
            "APP_BASE_URL": "https://shop.test/",
            "DEFAULT_COUNTRY_CODE": "+1",
            "CORS_ORIGINS": "https://a.test, https://b.test",
            "LOG_LEVEL": "debug",
        }
    )

    assert config.storage_backend == "memory"
    assert config.database.port == 6543
    assert config.database.connect_timeout == 3
    assert config.identity.key == "s3cret"
    assert config.identity.algorithms == ("HS256", "HS512")
    assert config.billing.price_id_pro == "price_pro"
    assert config.billing.currency == "usd"
    assert config.blob_storage.base_url == "https://project.supabase.co"
    assert config.app_base_url == "https://shop.test"
    assert config.default_country_code == "1"
    assert config.cors_origins == ("https://a.test", "https://b.test")
    assert config.log_level == "DEBUG"


def test_public_key_takes_precedence_over_secret() -> None:
    config = load_app_config({"IDENTITY_JWT_PUBLIC_KEY": "-----BEGIN KEY-----", "IDENTITY_JWT_SECRET": "s"})

    assert config.identity.key == "-----BEGIN KEY-----"


def test_invalid_port_raises() -> None:
    with pytest.raises(ValueError):
        load_app_config({"DB_PORT": "not-a-port"})


def test_negative_timeout_raises() -> None:
    with pytest.raises(ValueError):
        load_app_config({"DB_CONNECT_TIMEOUT": "-1"})


def test_unknown_storage_backend_raises() -> None:
    with pytest.raises(ValueError):
        load_app_config({"STORAGE_BACKEND": "sqlite"})


@pytest.mark.parametrize("raw, expected", [("false", False), ("1", True), ("maybe", True), (None, True)])
def test_cors_allow_credentials(raw, expected) -> None:
    env = {} if raw is None else {"CORS_ALLOW_CREDENTIALS": raw}

    assert cors_allow_credentials(env) is expected
