from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from storefront.data.database import Base
from storefront.data.models._common import new_id, utcnow


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    # null means "whatever the product's default variant is when the cart is read"
    variant_id = Column(String(36), ForeignKey("product_variants.id"), nullable=True)

    quantity = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
