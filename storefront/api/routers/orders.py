# storefront/api/routers/orders.py
import json
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, get_fanout, get_lock_service, get_registry, require_admin
from storefront.data.database import get_db
from storefront.domain.errors import NotFoundError
from storefront.domain.identity import Identity
from storefront.domain.order_status import OrderStatus
from storefront.domain.schemas import (
    OrderCreate,
    OrderCreatedOut,
    OrderListOut,
    OrderOut,
    OrderStatusOut,
    StatusUpdate,
)
from storefront.services.live_registry import SubscriberRegistry
from storefront.services.lock_service import LockService
from storefront.services.notification_service import EventFanout
from storefront.services.order_lifecycle import OrderLifecycleService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])

KEEPALIVE_SECONDS = 15.0


def get_service(db: Session, fanout: EventFanout, lock_service: LockService | None = None):
    return OrderService(db, fanout=fanout, lock_service=lock_service)


def get_lifecycle(db: Session, fanout: EventFanout):
    return OrderLifecycleService(db, fanout=fanout)


@router.post("", response_model=OrderCreatedOut, status_code=201)
def create_order(
    payload: OrderCreate,
    idempotency_key: Optional[str] = Header(None, max_length=64),
    user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
    fanout: EventFanout = Depends(get_fanout),
    lock_service: LockService = Depends(get_lock_service),
):
    """
    Checkout: turns the caller's cart into an order.
    Fan-out happens after commit and never delays or fails this response.
    """
    result = get_service(db, fanout, lock_service).create_order(
        user_id=user.user_id,
        address_id=payload.address_id,
        payment_method=payload.payment_method,
        delivery_instructions=payload.delivery_instructions,
        delivery_fee=payload.delivery_fee,
        idempotency_key=idempotency_key,
    )
    return {"message": "Order placed successfully", "order": result["order"]}


@router.get("", response_model=OrderListOut)
def list_orders(
    status: Optional[str] = Query(None),
    days: Optional[int] = Query(None, gt=0),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
    fanout: EventFanout = Depends(get_fanout),
):
    return get_service(db, fanout).list_orders(user.user_id, status=status, days=days, page=page, limit=limit)


@router.get("/admin/all", response_model=OrderListOut)
def list_all_orders(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
    fanout: EventFanout = Depends(get_fanout),
):
    return get_service(db, fanout).list_all_orders(status=status, page=page, limit=limit)


@router.get("/events/stream")
def stream_order_events(
    admin: Identity = Depends(require_admin),
    registry: SubscriberRegistry | None = Depends(get_registry),
):
    """Server-Sent Events feed of order events for the live operations dashboard."""
    if registry is None:
        raise NotFoundError("Live order events are disabled")

    subscription = registry.subscribe()

    def event_source():
        try:
            yield ": connected\n\n"
            while not subscription.closed:
                message = subscription.get(timeout=KEEPALIVE_SECONDS)
                if message is None:
                    yield ": keepalive\n\n"
                    continue
                yield f"event: {message.get('event', 'order')}\ndata: {json.dumps(message)}\n\n"
        finally:
            registry.unsubscribe(subscription)

    return StreamingResponse(event_source(), media_type="text/event-stream")


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
    fanout: EventFanout = Depends(get_fanout),
):
    return get_service(db, fanout).get_order(order_id, user)


@router.post("/{order_id}/cancel", response_model=OrderStatusOut)
def cancel_order(
    order_id: str,
    user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
    fanout: EventFanout = Depends(get_fanout),
):
    order = get_lifecycle(db, fanout).cancel_order(order_id, user)
    return {"message": "Order cancelled successfully", "order": order}


@router.post("/{order_id}/return/initiate", response_model=OrderStatusOut)
def initiate_return(
    order_id: str,
    user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
    fanout: EventFanout = Depends(get_fanout),
):
    order = get_lifecycle(db, fanout).update_status(order_id, OrderStatus.RETURN_INITIATED.value, user)
    return {"message": "Return initiated", "order": order}


@router.post("/{order_id}/return/cancel", response_model=OrderStatusOut)
def cancel_return(
    order_id: str,
    user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
    fanout: EventFanout = Depends(get_fanout),
):
    order = get_lifecycle(db, fanout).update_status(order_id, OrderStatus.RETURN_CANCELLED.value, user)
    return {"message": "Return cancelled", "order": order}


@router.put("/{order_id}/status", response_model=OrderStatusOut)
def update_status(
    order_id: str,
    payload: StatusUpdate,
    user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
    fanout: EventFanout = Depends(get_fanout),
):
    # role checks live in the lifecycle service: customers may still send the two return actions
    order = get_lifecycle(db, fanout).update_status(order_id, payload.status, user)
    return {"message": "Order status updated", "order": order}
