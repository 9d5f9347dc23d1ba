# storefront/services/address_service.py
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from storefront.data.database import transaction
from storefront.data.models.address import AddressModel
from storefront.domain.errors import InvalidCoordinates, NotFoundError
from storefront.repos.address_repo import AddressRepo
from storefront.services.delivery_pricing import DeliveryBands, default_bands, delivery_fee
from storefront.utils import settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class AddressService:
    """
    Delivery addresses. At most one default per user: switching the default and
    writing the address happen in one transaction.
    """

    def __init__(self, db: Session, bands: DeliveryBands | None = None, store_location: tuple | None = None):
        self.db = db
        self.repo = AddressRepo(db)
        self.bands = bands or default_bands()
        self.store_lat, self.store_lng = store_location or (settings.STORE_LAT, settings.STORE_LNG)

    def list_addresses(self, user_id: str) -> List[AddressModel]:
        return self.repo.list_addresses(user_id)

    def get_address(self, user_id: str, address_id: str) -> AddressModel:
        address = self.repo.get_address(address_id, user_id)
        if not address:
            raise NotFoundError("Address not found")
        return address

    def create_address(self, user_id: str, data: Dict[str, Any]) -> AddressModel:
        address = AddressModel(user_id=user_id, **data)
        address.is_default = bool(data.get("is_default"))
        self._quote(address)

        with transaction(self.db):
            if address.is_default:
                self.repo.unset_defaults(user_id)
            self.repo.add_address(address)

        logger.info(f"Address {address.id} added for user {user_id} (default={address.is_default})")
        return address

    def update_address(self, user_id: str, address_id: str, data: Dict[str, Any]) -> AddressModel:
        with transaction(self.db):
            address = self.repo.get_address(address_id, user_id)
            if not address:
                raise NotFoundError("Address not found")

            for field, value in data.items():
                if field == "is_default" and value is None:
                    continue
                setattr(address, field, value)
            if "latitude" in data or "longitude" in data:
                self._quote(address)

            if data.get("is_default"):
                switched = self.repo.unset_defaults(user_id, except_id=address.id)
                if switched:
                    logger.info(f"Default address of user {user_id} switched to {address.id}")
            self.db.flush()

        return address

    def delete_address(self, user_id: str, address_id: str) -> None:
        with transaction(self.db):
            address = self.repo.get_address(address_id, user_id)
            if not address:
                raise NotFoundError("Address not found")
            self.repo.delete_address(address)

    def _quote(self, address: AddressModel):
        if address.latitude is None or address.longitude is None:
            address.distance_km = None
            address.delivery_fee = None
            return
        try:
            quote = delivery_fee(
                self.store_lat,
                self.store_lng,
                address.latitude,
                address.longitude,
                bands=self.bands,
            )
        except InvalidCoordinates as e:
            logger.warning(f"Could not price address for user {address.user_id}: {e.message}")
            address.distance_km = None
            address.delivery_fee = None
            return
        address.distance_km = quote.distance_km
        address.delivery_fee = quote.fee
