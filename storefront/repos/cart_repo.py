# storefront/repos/cart_repo.py
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from storefront.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_items(self, user_id: str) -> List[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.user_id == user_id)
                .order_by(CartItemModel.created_at)
            ).scalars().all()
        )

    def get_cart_item(self, item_id: str, user_id: str) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.id == item_id,
                CartItemModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    def find_line(self, user_id: str, product_id: str, variant_id: str | None) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.user_id == user_id,
                CartItemModel.product_id == product_id,
                CartItemModel.variant_id.is_(None) if variant_id is None else CartItemModel.variant_id == variant_id,
            )
        ).scalars().first()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_item(self, item_id: str, user_id: str) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(
                CartItemModel.id == item_id,
                CartItemModel.user_id == user_id,
            )
        )
        return result.rowcount

    def clear_cart(self, user_id: str) -> int:
        result = self.db.execute(delete(CartItemModel).where(CartItemModel.user_id == user_id))
        return result.rowcount
