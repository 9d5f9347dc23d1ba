# storefront/services/order_service.py
import math
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import Any, Dict, List

from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.database import transaction
from storefront.data.models.order import OrderModel, OrderLineModel
from storefront.domain.errors import (
    CartEmpty,
    CheckoutInProgress,
    ConflictError,
    InvalidCoordinates,
    InvalidStatus,
    NotFoundError,
    PricingUnresolved,
    ValidationError,
    VariantUnavailable,
)
from storefront.domain.identity import Identity
from storefront.domain.order_status import OrderStatus
from storefront.repos.address_repo import AddressRepo
from storefront.repos.cart_repo import CartRepo
from storefront.repos.catalog_repo import CatalogRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.delivery_pricing import DeliveryBands, default_bands, delivery_fee
from storefront.services.lock_service import LockService
from storefront.services.notification_service import EventFanout, serialize_order
from storefront.services.variant_resolver import resolve
from storefront.utils import settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_CREATED = "order_created"
MAX_PAGE_SIZE = 100


@dataclass
class PricedLine:
    product: Any
    variant: Any
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"))


class OrderService:
    """
    Checkout (cart -> priced order) and order queries.

    Checkout order of operations:
    1. read cart, resolve variants and prices, pick address and delivery fee
    2. one transaction: order row, its lines, cart clear
    3. fan-out (best effort, after commit)
    Nothing is written unless step 1 fully succeeds.
    """

    def __init__(
        self,
        db: Session,
        fanout: EventFanout | None = None,
        lock_service: LockService | None = None,
        bands: DeliveryBands | None = None,
        store_location: tuple | None = None,
        default_delivery_fee=None,
        small_cart_threshold=None,
        small_cart_surcharge=None,
        lock_ttl: int | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.catalog_repo = CatalogRepo(db)
        self.address_repo = AddressRepo(db)
        self.fanout = fanout or EventFanout()
        self.lock_service = lock_service

        self.bands = bands or default_bands()
        self.store_lat, self.store_lng = store_location or (settings.STORE_LAT, settings.STORE_LNG)
        self.default_delivery_fee = _money(
            settings.DEFAULT_DELIVERY_FEE if default_delivery_fee is None else default_delivery_fee
        )
        self.small_cart_threshold = _money(
            settings.SMALL_CART_THRESHOLD if small_cart_threshold is None else small_cart_threshold
        )
        self.small_cart_surcharge = _money(
            settings.SMALL_CART_SURCHARGE if small_cart_surcharge is None else small_cart_surcharge
        )
        self.lock_ttl = lock_ttl or settings.CHECKOUT_LOCK_TTL_SECONDS

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_order(
        self,
        user_id: str,
        address_id: str | None,
        payment_method: str,
        delivery_instructions: str | None = None,
        delivery_fee: Decimal | None = None,
        idempotency_key: str | None = None,
    ) -> Dict[str, Any]:
        if idempotency_key:
            existing = self.repo.get_by_idempotency_key(user_id, idempotency_key)
            if existing:
                logger.info(f"Checkout replay for key {idempotency_key}, returning order {existing.order_number}")
                return {"order": existing, "order_lines": existing.lines}

        token = self._acquire_lock(user_id)
        try:
            return self._create_order(
                user_id,
                address_id,
                payment_method,
                delivery_instructions,
                delivery_fee,
                idempotency_key,
            )
        finally:
            self._release_lock(user_id, token)

    def _create_order(
        self,
        user_id,
        address_id,
        payment_method,
        delivery_instructions,
        supplied_fee,
        idempotency_key,
    ) -> Dict[str, Any]:
        cart_items = self.cart_repo.get_cart_items(user_id)
        if not cart_items:
            raise CartEmpty("Cart is empty")

        priced = self._price_lines(cart_items)
        subtotal = sum((line.subtotal for line in priced), Decimal("0.00"))

        address = self._resolve_address(user_id, address_id)
        fee = self._delivery_fee(address, supplied_fee)
        small_cart_fee = self.small_cart_surcharge if subtotal < self.small_cart_threshold else Decimal("0.00")
        total = subtotal + fee + small_cart_fee

        order_number = self._new_order_number()

        order = OrderModel(
            order_number=order_number,
            user_id=user_id,
            address_id=address.id,
            subtotal=subtotal,
            delivery_fee=fee,
            small_cart_fee=small_cart_fee,
            total=total,
            status=OrderStatus.PENDING.value,
            payment_method=payment_method,
            payment_status="pending",
            delivery_instructions=delivery_instructions,
            idempotency_key=idempotency_key,
            lines=[
                OrderLineModel(
                    product_id=line.product.id,
                    variant_id=line.variant.id,
                    product_name=line.product.name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    subtotal=line.subtotal,
                )
                for line in priced
            ],
        )

        # the cart is cleared only in the same commit that makes the order durable
        try:
            with transaction(self.db):
                self.repo.create_order(order)
                cleared = self.cart_repo.clear_cart(user_id)
        except IntegrityError:
            # a concurrent request with the same key got there first
            existing = self.repo.get_by_idempotency_key(user_id, idempotency_key) if idempotency_key else None
            if existing is None:
                raise
            logger.info(f"Checkout key {idempotency_key} already used by order {existing.order_number}, returning it")
            return {"order": existing, "order_lines": existing.lines}

        logger.info(
            f"Order {order.order_number} created for user {user_id}: "
            f"subtotal={subtotal} delivery={fee} small_cart={small_cart_fee} total={total}, "
            f"{cleared} cart lines cleared"
        )

        try:
            self.fanout.publish(serialize_order(order), ORDER_CREATED)
        except Exception:
            logger.exception(f"Fan-out for order {order.order_number} failed")

        return {"order": order, "order_lines": order.lines}

    def _price_lines(self, cart_items) -> List[PricedLine]:
        products = self.catalog_repo.get_products(i.product_id for i in cart_items)

        priced = []
        for item in cart_items:
            product = products.get(item.product_id)
            if product is None or not product.is_active:
                raise VariantUnavailable(f"Product {item.product_id} is no longer available")

            resolution = resolve(product, product.variants, item.variant_id)
            variant = resolution.unwrap()
            if not resolution.is_active:
                raise VariantUnavailable(f"No active variant available for {product.name}")

            if variant.price is None or Decimal(str(variant.price)) <= 0:
                raise PricingUnresolved(f"Missing price for product {product.name}")

            unit_price = _money(variant.price)
            priced.append(
                PricedLine(
                    product=product,
                    variant=variant,
                    quantity=item.quantity,
                    unit_price=unit_price,
                    subtotal=unit_price * item.quantity,
                )
            )
        return priced

    def _resolve_address(self, user_id: str, address_id: str | None):
        if address_id:
            address = self.address_repo.get_address(address_id, user_id)
            if not address:
                raise NotFoundError("Address not found")
            return address

        address = self.address_repo.get_default_address(user_id)
        if not address:
            raise NotFoundError("No delivery address given and no default address on file")
        return address

    def _delivery_fee(self, address, supplied) -> Decimal:
        if supplied is not None:
            fee = _money(supplied)
            if fee < 0:
                raise ValidationError("Delivery fee cannot be negative")
            return fee

        if address.latitude is not None and address.longitude is not None:
            try:
                quote = delivery_fee(
                    self.store_lat,
                    self.store_lng,
                    address.latitude,
                    address.longitude,
                    bands=self.bands,
                )
                return _money(quote.fee)
            except InvalidCoordinates as e:
                logger.warning(f"Address {address.id}: {e.message}, using flat delivery fee")
                return self.default_delivery_fee

        if address.delivery_fee is not None:
            return _money(address.delivery_fee)

        return self.default_delivery_fee

    def _new_order_number(self) -> str:
        # date + random suffix; sequential numbers would expose order volume
        stamp = datetime.now(timezone.utc).strftime("%y%m%d")
        for _ in range(5):
            candidate = f"ORD-{stamp}-{secrets.token_hex(3).upper()}"
            if not self.repo.order_number_exists(candidate):
                return candidate
        raise ConflictError("Could not allocate an order number, try again")

    def _acquire_lock(self, user_id: str) -> str | None:
        if self.lock_service is None:
            return None
        try:
            token = self.lock_service.acquire_checkout_lock(user_id, ttl=self.lock_ttl)
        except RedisError as e:
            logger.warning(f"Checkout lock unavailable for user {user_id}, continuing without it: {e}")
            return None
        if token is None:
            raise CheckoutInProgress("A checkout is already in progress for this cart")
        return token

    def _release_lock(self, user_id: str, token: str | None):
        if token is None:
            return
        try:
            self.lock_service.release_checkout_lock(user_id, token)
        except RedisError as e:
            logger.warning(f"Could not release checkout lock for user {user_id}: {e}")

    # =====================================================
    # QUERIES
    # =====================================================
    def get_order(self, order_id: str, actor: Identity) -> OrderModel:
        if actor.is_admin:
            order = self.repo.get_order(order_id)
        else:
            order = self.repo.get_user_order(order_id, actor.user_id)

        if not order:
            raise NotFoundError("Order not found")
        return order

    def list_orders(
        self,
        user_id: str,
        status: str | None = None,
        days: int | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        created_after = None
        if days is not None and days > 0:
            created_after = datetime.now(timezone.utc) - timedelta(days=days)
        return self._page(user_id=user_id, status=status, created_after=created_after, page=page, limit=limit)

    def list_all_orders(self, status: str | None = None, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        return self._page(user_id=None, status=status, created_after=None, page=page, limit=limit)

    def _page(self, user_id, status, created_after, page, limit) -> Dict[str, Any]:
        if status:
            try:
                status = OrderStatus(status).value
            except ValueError:
                raise InvalidStatus(f"Invalid status {status!r}")
        if page < 1:
            raise ValidationError("page must be at least 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

        orders, total = self.repo.list_orders(
            user_id=user_id,
            status=status,
            created_after=created_after,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return {
            "orders": orders,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit),
            },
        }
