# storefront/api/routers/cart.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user
from storefront.data.database import get_db
from storefront.domain.identity import Identity
from storefront.domain.schemas import CartItemIn, CartItemUpdate, CartLineOut, CartOut
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/api/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("", response_model=CartOut)
def get_cart(user: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    return get_service(db).get_cart(user.user_id)


@router.post("/items", response_model=CartLineOut, status_code=201)
def add_item(
    payload: CartItemIn,
    user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_service(db).add_to_cart(
        user_id=user.user_id,
        product_id=payload.product_id,
        quantity=payload.quantity,
        variant_id=payload.variant_id,
    )


@router.put("/items/{item_id}", response_model=CartLineOut)
def update_item(
    item_id: str,
    payload: CartItemUpdate,
    user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_service(db).update_quantity(user.user_id, item_id, payload.quantity)


@router.delete("/items/{item_id}")
def remove_item(item_id: str, user: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    get_service(db).remove_item(user.user_id, item_id)
    return {"message": "Item removed from cart"}


@router.delete("")
def clear_cart(user: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    get_service(db).clear_cart(user.user_id)
    return {"message": "Cart cleared"}
