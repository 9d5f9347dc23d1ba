# storefront/repos/store_repo.py
from sqlalchemy.orm import Session

from storefront.data.models.store_settings import StoreSettingsModel


class StoreRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_settings(self) -> StoreSettingsModel | None:
        return self.db.get(StoreSettingsModel, 1)
