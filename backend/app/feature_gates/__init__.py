"""Feature gating utilities coordinating plan quota enforcement."""
from .quota import assert_quota, check_catalog_quota, check_product_quota, evaluate_quota

__all__ = [
    "assert_quota",
    "check_catalog_quota",
    "check_product_quota",
    "evaluate_quota",
]
