from sqlalchemy import Boolean, Column, Integer

from storefront.data.database import Base


class StoreSettingsModel(Base):
    __tablename__ = "store_settings"

    id = Column(Integer, primary_key=True, default=1)
    is_manual_closed = Column(Boolean, nullable=False, default=False)
