# storefront/repos/order_repo.py
from datetime import datetime
from typing import List, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from storefront.data.models._common import utcnow
from storefront.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: str) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_user_order(self, order_id: str, user_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.id == order_id, OrderModel.user_id == user_id)
        ).scalar_one_or_none()

    def get_by_idempotency_key(self, user_id: str, key: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.user_id == user_id, OrderModel.idempotency_key == key)
        ).scalars().first()

    def order_number_exists(self, order_number: str) -> bool:
        return self.db.execute(
            select(OrderModel.id).where(OrderModel.order_number == order_number)
        ).first() is not None

    def list_orders(
        self,
        user_id: str | None = None,
        status: str | None = None,
        created_after: datetime | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[OrderModel], int]:
        """Newest first. user_id=None lists every user's orders."""
        conditions = []
        if user_id is not None:
            conditions.append(OrderModel.user_id == user_id)
        if status:
            conditions.append(OrderModel.status == status)
        if created_after is not None:
            conditions.append(OrderModel.created_at >= created_after)

        total = self.db.execute(
            select(func.count()).select_from(OrderModel).where(*conditions)
        ).scalar_one()

        orders = self.db.execute(
            select(OrderModel)
            .where(*conditions)
            .order_by(OrderModel.created_at.desc(), OrderModel.order_number.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()

        return list(orders), total

    def update_order_status(self, order_id: str, expected_status: str, new_status: str) -> int:
        """Compare-and-set on status. Returns 0 when the row is no longer in expected_status."""
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == expected_status)
            .values(status=new_status, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount
