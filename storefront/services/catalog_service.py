# storefront/services/catalog_service.py
import math
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from storefront.domain.errors import NotFoundError, ValidationError
from storefront.domain.schemas import VariantOut
from storefront.repos.catalog_repo import SORTABLE, CatalogRepo
from storefront.services.variant_resolver import Resolved, resolve
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100
MAX_SEARCH_RESULTS = 10
MAX_FEATURED = 50


class CatalogService:
    """
    Read-only product browsing.
    Every product is shown with the price of its display variant: the one the
    resolver picks when nothing is pinned, so a listing always has a price to show.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepo(db)

    def list_products(
        self,
        category_id: str | None = None,
        search: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        sort_by: str = "created_at",
        order: str = "desc",
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        if sort_by not in SORTABLE:
            raise ValidationError(f"Cannot sort by {sort_by!r}, use one of {sorted(SORTABLE)}")
        if order not in ("asc", "desc"):
            raise ValidationError("order must be asc or desc")
        if page < 1:
            raise ValidationError("page must be at least 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

        query = dict(category_id=category_id, search=search, sort_by=sort_by, descending=order == "desc")
        offset = (page - 1) * limit

        if min_price is None and max_price is None:
            products, total = self.repo.list_products(**query, offset=offset, limit=limit)
            items = [present_product(p) for p in products]
        else:
            # price lives on the variants, so the window is cut after filtering
            products, _ = self.repo.list_products(**query)
            matching = [
                item
                for item in (present_product(p) for p in products)
                if _in_price_range(item["price"], min_price, max_price)
            ]
            total = len(matching)
            items = matching[offset:offset + limit]

        return {
            "products": items,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit),
            },
        }

    def get_product(self, product_id: str) -> Dict[str, Any]:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")
        return present_product(product)

    def search_products(self, term: str | None, limit: int = MAX_SEARCH_RESULTS) -> List[Dict[str, Any]]:
        term = (term or "").strip()
        if not term:
            raise ValidationError("Search query required")
        limit = min(max(limit, 1), MAX_SEARCH_RESULTS)
        return [present_product(p) for p in self.repo.search_products(term, limit)]

    def featured_products(self, limit: int = 10) -> List[Dict[str, Any]]:
        limit = min(max(limit, 1), MAX_FEATURED)
        return [present_product(p) for p in self.repo.featured_products(limit)]


def _in_price_range(price, min_price, max_price) -> bool:
    if price is None:
        return False
    if min_price is not None and price < min_price:
        return False
    if max_price is not None and price > max_price:
        return False
    return True


def present_product(product) -> Dict[str, Any]:
    resolution = resolve(product, product.variants)
    variant = resolution.variant if isinstance(resolution, Resolved) else None
    if variant is None:
        logger.debug(f"Product {product.id} has no variants, listed without a price")

    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "category_id": product.category_id,
        "image_url": (variant.image_url if variant is not None else None) or product.image_url,
        "is_active": product.is_active,
        "is_featured": bool(product.is_featured),
        "created_at": product.created_at,
        "variants": [VariantOut.model_validate(v) for v in product.variants],
        "price": Decimal(str(variant.price)) if variant is not None else None,
        "original_price": (
            Decimal(str(variant.original_price))
            if variant is not None and variant.original_price is not None
            else None
        ),
        "weight": variant.weight if variant is not None else None,
        "unit": variant.unit if variant is not None else None,
        "display_variant_id": variant.id if variant is not None else None,
        "variant_inactive": variant is not None and not variant.is_active,
    }
