# storefront/api/routers/addresses.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user
from storefront.data.database import get_db
from storefront.domain.identity import Identity
from storefront.domain.schemas import AddressIn, AddressOut, AddressUpdate
from storefront.services.address_service import AddressService

router = APIRouter(prefix="/api/addresses", tags=["addresses"])


def get_service(db: Session):
    return AddressService(db)


@router.get("", response_model=List[AddressOut])
def list_addresses(user: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    return get_service(db).list_addresses(user.user_id)


@router.get("/{address_id}", response_model=AddressOut)
def get_address(address_id: str, user: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    return get_service(db).get_address(user.user_id, address_id)


@router.post("", response_model=AddressOut, status_code=201)
def create_address(payload: AddressIn, user: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    return get_service(db).create_address(user.user_id, payload.model_dump())


@router.put("/{address_id}", response_model=AddressOut)
def update_address(
    address_id: str,
    payload: AddressUpdate,
    user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_service(db).update_address(user.user_id, address_id, payload.model_dump(exclude_unset=True))


@router.delete("/{address_id}")
def delete_address(address_id: str, user: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    get_service(db).delete_address(user.user_id, address_id)
    return {"message": "Address deleted successfully"}
