# storefront/services/order_lifecycle.py
"""
Order status state machine.

    pending -> confirmed -> processing -> out_for_delivery -> delivered
    any of the first four -> cancelled
    delivered -> return_initiated -> return_completed | return_cancelled

Admins drive forward moves, cancellation and return completion. The owning
customer may start a return (only from delivered) and withdraw it (only from
return_initiated). Rights are checked before the transition table, and a
status write only lands if the order is still in the status it was checked in.
"""
from sqlalchemy.orm import Session

from storefront.data.database import transaction
from storefront.data.models.order import OrderModel
from storefront.domain.errors import (
    AuthorizationError,
    IneligibleTransition,
    InvalidStatus,
    NotFoundError,
)
from storefront.domain.identity import Identity
from storefront.domain.order_status import (
    ADMIN_TRANSITIONS,
    CUSTOMER_RETURN_PRECONDITIONS,
    RETURN_STATUSES,
    OrderStatus,
)
from storefront.repos.address_repo import AddressRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.notification_service import EventFanout, serialize_order
from storefront.utils import settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_CUSTOMER_ACTIONS = {status.value for status in CUSTOMER_RETURN_PRECONDITIONS}

# cancel_order refuses these
_NOT_CANCELLABLE = {OrderStatus.DELIVERED, OrderStatus.CANCELLED} | RETURN_STATUSES


class OrderLifecycleService:
    def __init__(
        self,
        db: Session,
        fanout: EventFanout | None = None,
        strict_return_completion: bool | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.user_repo = UserRepo(db)
        self.address_repo = AddressRepo(db)
        self.fanout = fanout or EventFanout()
        self.strict_return_completion = (
            settings.STRICT_RETURN_COMPLETION if strict_return_completion is None else strict_return_completion
        )

    def update_status(self, order_id: str, new_status: str, actor: Identity) -> OrderModel:
        if not actor.is_admin and new_status not in _CUSTOMER_ACTIONS:
            raise AuthorizationError("Admin access required")

        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise InvalidStatus(f"Invalid status {new_status!r}")

        order = self._load(order_id, actor)
        current = OrderStatus(order.status)
        self._check_transition(current, target)
        return self._apply(order, current, target, actor)

    def cancel_order(self, order_id: str, actor: Identity) -> OrderModel:
        order = self._load(order_id, actor)
        current = OrderStatus(order.status)
        if current in _NOT_CANCELLABLE:
            raise IneligibleTransition(f"Cannot cancel this order: it is {current.value}")
        # stock is not restored on cancellation; stock tracking is disabled
        return self._apply(order, current, OrderStatus.CANCELLED, actor)

    def _load(self, order_id: str, actor: Identity) -> OrderModel:
        # a customer cannot tell someone else's order from a missing one
        if actor.is_admin:
            order = self.repo.get_order(order_id)
        else:
            order = self.repo.get_user_order(order_id, actor.user_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def _check_transition(self, current: OrderStatus, target: OrderStatus):
        if current == target:
            raise IneligibleTransition(f"Order is already {current.value}")

        required = CUSTOMER_RETURN_PRECONDITIONS.get(target)
        if required is not None:
            if current != required:
                raise IneligibleTransition(
                    f"Order is not eligible for {target.value}: it is {current.value}, must be {required.value}"
                )
            return

        if target == OrderStatus.RETURN_COMPLETED:
            if current != OrderStatus.RETURN_INITIATED:
                if self.strict_return_completion:
                    raise IneligibleTransition(
                        f"Return can only be completed from return_initiated, order is {current.value}"
                    )
                logger.warning(f"Completing a return for an order in {current.value}, expected return_initiated")
            return

        if target not in ADMIN_TRANSITIONS[current]:
            raise IneligibleTransition(f"Cannot move order from {current.value} to {target.value}")

    def _apply(self, order: OrderModel, current: OrderStatus, target: OrderStatus, actor: Identity) -> OrderModel:
        with transaction(self.db):
            if not self.repo.update_order_status(order.id, current.value, target.value):
                raise IneligibleTransition(
                    f"Order changed while processing, it is no longer {current.value}"
                )

        logger.info(
            f"Order {order.order_number}: {current.value} -> {target.value} "
            f"by {actor.role} {actor.user_id}"
        )
        self._announce(order, target)
        return order

    def _announce(self, order: OrderModel, target: OrderStatus):
        # the status change is committed; nothing here may undo or fail it
        try:
            if target in RETURN_STATUSES:
                user = self.user_repo.get_user(order.user_id)
                address = self.address_repo.get_any(order.address_id) if order.address_id else None
                payload = serialize_order(order, user=user, address=address, enriched=True)
            else:
                payload = serialize_order(order)
            self.fanout.publish(payload, target.value)
        except Exception:
            logger.exception(f"Fan-out for order {order.order_number} ({target.value}) failed")
