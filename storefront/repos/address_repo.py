# storefront/repos/address_repo.py
from typing import List

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.data.models.address import AddressModel


class AddressRepo:
    def __init__(self, db: Session):
        self.db = db

    def list_addresses(self, user_id: str) -> List[AddressModel]:
        return list(
            self.db.execute(
                select(AddressModel)
                .where(AddressModel.user_id == user_id)
                .order_by(AddressModel.is_default.desc(), AddressModel.created_at.desc())
            ).scalars().all()
        )

    def get_address(self, address_id: str, user_id: str) -> AddressModel | None:
        return self.db.execute(
            select(AddressModel).where(
                AddressModel.id == address_id,
                AddressModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    def get_any(self, address_id: str) -> AddressModel | None:
        return self.db.get(AddressModel, address_id)

    def get_default_address(self, user_id: str) -> AddressModel | None:
        return self.db.execute(
            select(AddressModel)
            .where(AddressModel.user_id == user_id, AddressModel.is_default.is_(True))
            .limit(1)
        ).scalar_one_or_none()

    def unset_defaults(self, user_id: str, except_id: str | None = None) -> int:
        stmt = (
            update(AddressModel)
            .where(AddressModel.user_id == user_id, AddressModel.is_default.is_(True))
            .values(is_default=False)
        )
        if except_id is not None:
            stmt = stmt.where(AddressModel.id != except_id)
        return self.db.execute(stmt).rowcount

    def add_address(self, address: AddressModel) -> AddressModel:
        self.db.add(address)
        self.db.flush()
        return address

    def delete_address(self, address: AddressModel) -> None:
        self.db.delete(address)
        self.db.flush()
