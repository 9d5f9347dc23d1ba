import os

# must be set before anything from storefront is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ORDER_WEBHOOK_URL"] = ""
os.environ["LOG_LEVEL"] = "DEBUG"

import uuid
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.data.database import Base
import storefront.data.models  # noqa: F401
from storefront.data.models.address import AddressModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel, OrderLineModel
from storefront.data.models.product import ProductModel, VariantModel
from storefront.data.models.user import UserModel

from helpers import NEAR, FakeLockService, RecordingFanout


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def fanout():
    return RecordingFanout()


@pytest.fixture
def locks():
    return FakeLockService()


@pytest.fixture
def make_product(db):
    def _make(name="Basmati Rice", variants=None, is_active=True, is_featured=False, category_id=None, image_url=None):
        product = ProductModel(
            name=name,
            is_active=is_active,
            is_featured=is_featured,
            category_id=category_id,
            image_url=image_url,
        )
        for position, fields in enumerate(variants or [{"price": "100", "is_default": True}]):
            product.variants.append(
                VariantModel(
                    price=Decimal(str(fields["price"])),
                    original_price=(
                        Decimal(str(fields["original_price"])) if fields.get("original_price") is not None else None
                    ),
                    unit=fields.get("unit", "kg"),
                    weight=fields.get("weight", "1"),
                    image_url=fields.get("image_url"),
                    is_default=fields.get("is_default", False),
                    is_active=fields.get("is_active", True),
                    position=position,
                )
            )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def make_address(db):
    def _make(user_id="user-1", coords=NEAR, is_default=True, delivery_fee=None):
        lat, lng = coords if coords is not None else (None, None)
        address = AddressModel(
            user_id=user_id,
            address_line1="12 Station Road",
            area="Maninagar",
            city="Ahmedabad",
            pincode="380008",
            latitude=lat,
            longitude=lng,
            is_default=is_default,
            delivery_fee=delivery_fee,
        )
        db.add(address)
        db.commit()
        return address

    return _make


@pytest.fixture
def add_to_cart(db):
    def _add(product, quantity=1, user_id="user-1", variant=None):
        item = CartItemModel(
            user_id=user_id,
            product_id=product.id,
            variant_id=variant.id if variant is not None else None,
            quantity=quantity,
        )
        db.add(item)
        db.commit()
        return item

    return _add


@pytest.fixture
def make_user(db):
    def _make(user_id="user-1", name="Asha", phone="9999900000", role="customer"):
        user = UserModel(id=user_id, name=name, phone=phone, role=role)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_order(db):
    """An order written directly, bypassing checkout, in whatever status a test needs."""

    def _make(status="pending", user_id="user-1", address=None, number=None, idempotency_key=None):
        order = OrderModel(
            order_number=number or f"ORD-T-{uuid.uuid4().hex[:10].upper()}",
            user_id=user_id,
            address_id=address.id if address is not None else None,
            subtotal=Decimal("200.00"),
            delivery_fee=Decimal("0.00"),
            small_cart_fee=Decimal("40.00"),
            total=Decimal("240.00"),
            status=status,
            payment_method="cod",
            payment_status="pending",
            idempotency_key=idempotency_key,
            lines=[
                OrderLineModel(
                    product_id="p-1",
                    variant_id="v-1",
                    product_name="Basmati Rice",
                    quantity=2,
                    unit_price=Decimal("100.00"),
                    subtotal=Decimal("200.00"),
                )
            ],
        )
        db.add(order)
        db.commit()
        return order

    return _make
