# storefront/data/seed.py
from storefront.data.database import SessionLocal
from storefront.data.models.store_settings import StoreSettingsModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def seed(session_factory=SessionLocal):
    """Ensure the store_settings singleton exists. Never overwrites an existing row."""
    db = session_factory()
    try:
        if db.get(StoreSettingsModel, 1):
            return
        db.add(StoreSettingsModel(id=1, is_manual_closed=False))
        db.commit()
        logger.info("Seeded store_settings singleton")
    finally:
        db.close()
