# storefront/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from storefront.data.database import transaction
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import NotFoundError, ValidationError, VariantUnavailable
from storefront.domain.schemas import VariantOut
from storefront.repos.cart_repo import CartRepo
from storefront.repos.catalog_repo import CatalogRepo
from storefront.services.variant_resolver import Unavailable, resolve
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Per-user cart.
    query (get_cart) is read only; commands (add, update, remove, clear) each commit once.
    Lines without a pinned variant follow the product's current default.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)
        self.catalog_repo = CatalogRepo(db)

    # query
    def get_cart(self, user_id: str) -> Dict[str, Any]:
        items = self.repo.get_cart_items(user_id)
        products = self.catalog_repo.get_products(i.product_id for i in items)

        lines = [self._present(item, products.get(item.product_id)) for item in items]

        item_total = Decimal("0.00")
        savings = Decimal("0.00")
        for line in lines:
            if line["price"] is None:
                continue
            item_total += line["price"] * line["quantity"]
            if line["original_price"] is not None:
                savings += (line["original_price"] - line["price"]) * line["quantity"]

        return {
            "items": lines,
            "summary": {
                "item_total": item_total,
                "savings": savings,
                # the delivery fee depends on the address, it is quoted at checkout
                "delivery_fee": Decimal("0.00"),
                "total": item_total,
            },
        }

    # commands
    def add_to_cart(self, user_id: str, product_id: str, quantity: int = 1, variant_id: str | None = None) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValidationError("Quantity must be at least 1")

        product = self.catalog_repo.get_product(product_id)
        if not product or not product.is_active:
            raise NotFoundError("Product not found")

        resolution = resolve(product, product.variants, variant_id)
        resolution.unwrap()
        if not resolution.is_active:
            raise VariantUnavailable("No active variant available for this product")

        with transaction(self.db):
            # different variants of one product are separate lines
            existing = self.repo.find_line(user_id, product_id, variant_id)
            if existing:
                logger.info(
                    f"Product {product_id} already in cart of {user_id}, quantity "
                    f"{existing.quantity} -> {existing.quantity + quantity}"
                )
                existing.quantity += quantity
                item = existing
            else:
                item = self.repo.add_cart_item(
                    CartItemModel(
                        user_id=user_id,
                        product_id=product_id,
                        variant_id=variant_id,
                        quantity=quantity,
                    )
                )

        return self._present(item, product)

    def update_quantity(self, user_id: str, item_id: str, quantity: int) -> Dict[str, Any]:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        with transaction(self.db):
            item = self.repo.get_cart_item(item_id, user_id)
            if not item:
                raise NotFoundError("Cart item not found")
            item.quantity = quantity

        return self._present(item, self.catalog_repo.get_product(item.product_id))

    def remove_item(self, user_id: str, item_id: str) -> None:
        with transaction(self.db):
            removed = self.repo.delete_cart_item(item_id, user_id)
        if not removed:
            raise NotFoundError("Cart item not found")

    def clear_cart(self, user_id: str) -> int:
        with transaction(self.db):
            removed = self.repo.clear_cart(user_id)
        logger.info(f"Cart of user {user_id} cleared ({removed} lines)")
        return removed

    @staticmethod
    def _present(item: CartItemModel, product) -> Dict[str, Any]:
        variant = None
        inactive = False
        if product is not None:
            resolution = resolve(product, product.variants, item.variant_id)
            if isinstance(resolution, Unavailable):
                # pinned variant went away: show the current default, flagged, checkout will refuse it
                resolution = resolve(product, product.variants)
                inactive = True
            if not isinstance(resolution, Unavailable):
                variant = resolution.variant
                inactive = inactive or not resolution.is_active

        return {
            "id": item.id,
            "product_id": item.product_id,
            "variant_id": item.variant_id,
            "quantity": item.quantity,
            "product_name": product.name if product is not None else None,
            "selected_variant": VariantOut.model_validate(variant) if variant is not None else None,
            "price": Decimal(str(variant.price)) if variant is not None else None,
            "original_price": (
                Decimal(str(variant.original_price))
                if variant is not None and variant.original_price is not None
                else None
            ),
            "variant_inactive": inactive,
        }
