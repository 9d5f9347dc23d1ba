# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Literal, Optional
from decimal import Decimal
from datetime import datetime


class ErrorOut(BaseModel):
    """Body of every rejected request."""

    error: str
    message: str


# =====================================================
# CART
# =====================================================
class CartItemIn(BaseModel):
    """Add a product to the cart; variant_id pins a specific variant."""

    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, gt=0, description="Quantity (must be > 0)")
    variant_id: Optional[str] = None


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1, description="Quantity must be at least 1")


class VariantOut(BaseModel):
    id: str
    price: Decimal
    original_price: Optional[Decimal] = None
    weight: Optional[str] = None
    unit: Optional[str] = None
    image_url: Optional[str] = None
    is_default: bool
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class CartLineOut(BaseModel):
    id: str
    product_id: str
    variant_id: Optional[str] = None
    quantity: int
    product_name: Optional[str] = None
    selected_variant: Optional[VariantOut] = None
    price: Optional[Decimal] = None
    original_price: Optional[Decimal] = None
    variant_inactive: bool = False


class CartSummary(BaseModel):
    item_total: Decimal
    savings: Decimal
    delivery_fee: Decimal
    total: Decimal


class CartOut(BaseModel):
    items: List[CartLineOut]
    summary: CartSummary


# =====================================================
# ADDRESSES
# =====================================================
class AddressIn(BaseModel):
    address_line1: str = Field(..., min_length=1)
    area: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: Optional[str] = None
    pincode: str = Field(..., min_length=3, max_length=10)
    landmark: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    address_type: str = "home"
    is_default: bool = False


class AddressUpdate(BaseModel):
    address_line1: Optional[str] = None
    area: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = Field(None, min_length=3, max_length=10)
    landmark: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    address_type: Optional[str] = None
    is_default: Optional[bool] = None


class AddressOut(BaseModel):
    id: str
    user_id: str
    address_line1: str
    area: Optional[str] = None
    city: str
    state: Optional[str] = None
    pincode: str
    landmark: Optional[str] = None
    address_type: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_km: Optional[float] = None
    delivery_fee: Optional[Decimal] = None
    is_default: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# ORDERS
# =====================================================
class OrderCreate(BaseModel):
    """Checkout request. delivery_fee is the client-side geo quote, if it has one."""

    address_id: Optional[str] = None
    payment_method: Literal["cod", "online", "wallet"]
    delivery_instructions: Optional[str] = Field(None, max_length=500)
    delivery_fee: Optional[Decimal] = Field(None, ge=0)


class StatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)


class OrderLineOut(BaseModel):
    id: str
    product_id: str
    variant_id: Optional[str] = None
    product_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: str
    order_number: str
    user_id: str
    address_id: Optional[str] = None
    subtotal: Decimal
    delivery_fee: Decimal
    small_cart_fee: Decimal
    total: Decimal
    status: str
    payment_method: str
    payment_status: str
    delivery_instructions: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    lines: List[OrderLineOut] = []

    model_config = ConfigDict(from_attributes=True)


class OrderCreatedOut(BaseModel):
    message: str
    order: OrderOut


class OrderStatusOut(BaseModel):
    message: str
    order: OrderOut


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class OrderListOut(BaseModel):
    orders: List[OrderOut]
    pagination: Pagination


# =====================================================
# CATALOG
# =====================================================
class ProductOut(BaseModel):
    """A product as shown in listings; price fields come from its display variant."""

    id: str
    name: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool
    is_featured: bool
    created_at: datetime
    variants: List[VariantOut] = []

    price: Optional[Decimal] = None
    original_price: Optional[Decimal] = None
    weight: Optional[str] = None
    unit: Optional[str] = None
    display_variant_id: Optional[str] = None
    variant_inactive: bool = False


class ProductListOut(BaseModel):
    products: List[ProductOut]
    pagination: Pagination


class ProductsOut(BaseModel):
    products: List[ProductOut]


# =====================================================
# STORE
# =====================================================
class StoreStatusOut(BaseModel):
    serverTime: int
    isManualClosed: bool


class DeliveryQuoteOut(BaseModel):
    distance_km: float
    fee: Decimal
