from __future__ import annotations

import logging

import pytest

from backend.app.entitlements import (
    PLAN_CATALOG,
    EntitledResource,
    PlanKey,
    build_price_plan_map,
    get_plan_definition,
    parse_plan,
)
from backend.app.errors import QuotaExceeded
from backend.app.feature_gates import (
    assert_quota,
    check_catalog_quota,
    check_product_quota,
    evaluate_quota,
)
from backend.app.profiles import UserProfile


@pytest.fixture
def free_profile() -> UserProfile:
    return UserProfile(id="u1", plan=PlanKey.FREE)


def test_plan_catalog_limits() -> None:
    assert PLAN_CATALOG[PlanKey.FREE].catalogs_limit == 1
    assert PLAN_CATALOG[PlanKey.FREE].products_per_catalog_limit == 3
    assert PLAN_CATALOG[PlanKey.PRO].catalogs_limit == 1
    assert PLAN_CATALOG[PlanKey.PRO].products_per_catalog_limit == 100
    assert PLAN_CATALOG[PlanKey.PREMIUM].catalogs_limit == 50
    assert get_plan_definition(PlanKey.PREMIUM).limit_for(EntitledResource.PRODUCT) == 100


def test_free_plan_allows_first_catalog_only(free_profile: UserProfile) -> None:
    assert check_catalog_quota(free_profile, 0).allowed is True

    decision = check_catalog_quota(free_profile, 1)

    assert decision.allowed is False
    assert decision.limit == 1
    assert decision.remaining == 0


def test_product_quota_is_per_catalog(free_profile: UserProfile) -> None:
    assert check_product_quota(free_profile, 2).allowed is True
    assert check_product_quota(free_profile, 3).allowed is False


def test_premium_allows_many_catalogs() -> None:
    decision = evaluate_quota(PlanKey.PREMIUM, EntitledResource.CATALOG, 49)

    assert decision.allowed is True
    assert decision.remaining == 1
    assert evaluate_quota(PlanKey.PREMIUM, EntitledResource.CATALOG, 50).allowed is False


def test_assert_quota_raises_with_limit(free_profile: UserProfile) -> None:
    with pytest.raises(QuotaExceeded) as exc:
        assert_quota(check_catalog_quota(free_profile, 1))

    assert exc.value.code == "quota_exceeded"
    assert exc.value.status_code == 403
    assert exc.value.limit == 1
    assert exc.value.payload["plan"] == "free"
    assert exc.value.payload["resource"] == "catalogs"
    assert exc.value.message == "Your catalogs limit (1) was reached. Upgrade to create more."


def test_product_quota_message_names_the_limit(free_profile: UserProfile) -> None:
    with pytest.raises(QuotaExceeded) as exc:
        assert_quota(check_product_quota(free_profile, 3))

    assert exc.value.message == "Your products per catalog limit (3) was reached. Upgrade to create more."


def test_assert_quota_passes_through_allowed_decision(free_profile: UserProfile) -> None:
    decision = check_product_quota(free_profile, 0)

    assert assert_quota(decision) is decision


def test_parse_plan_accepts_known_values_only() -> None:
    assert parse_plan(" PRO ") is PlanKey.PRO
    assert parse_plan(PlanKey.PREMIUM) is PlanKey.PREMIUM
    assert parse_plan("enterprise") is None
    assert parse_plan(None) is None


def test_price_plan_map_warns_on_missing_price(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        mapping = build_price_plan_map(price_id_pro="price_pro", price_id_premium="")

    assert mapping == {"price_pro": PlanKey.PRO}
    assert "premium" in caplog.text
