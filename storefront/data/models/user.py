from sqlalchemy import Column, String

from storefront.data.database import Base
from storefront.data.models._common import new_id


class UserModel(Base):
    """Read-only mirror of the identity service's users, used to enrich return events."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), nullable=False, default="customer")
