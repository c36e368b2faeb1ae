"""Public, anonymous catalog resolution."""
from .contact import build_whatsapp_link, format_contact_number
from .models import (
    ProductSort,
    PublicCatalog,
    PublicCatalogView,
    PublicProduct,
    PublicProfileView,
    PublicSeller,
)
from .resolver import PublicResolver, sort_products

__all__ = [
    "ProductSort",
    "PublicCatalog",
    "PublicCatalogView",
    "PublicProduct",
    "PublicProfileView",
    "PublicResolver",
    "PublicSeller",
    "build_whatsapp_link",
    "format_contact_number",
    "sort_products",
]
