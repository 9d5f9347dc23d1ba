from sqlalchemy import Boolean, Column, DateTime, Float, Numeric, String

from storefront.data.database import Base
from storefront.data.models._common import new_id, utcnow


class AddressModel(Base):
    __tablename__ = "addresses"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)

    address_line1 = Column(String, nullable=False)
    area = Column(String, nullable=True)
    city = Column(String, nullable=False)
    state = Column(String, nullable=True)
    pincode = Column(String(10), nullable=False)
    landmark = Column(String, nullable=True)
    address_type = Column(String(20), nullable=False, default="home")

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    distance_km = Column(Float, nullable=True)
    delivery_fee = Column(Numeric(10, 2), nullable=True)

    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
