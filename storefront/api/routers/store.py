# storefront/api/routers/store.py
import time

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import NotFoundError
from storefront.domain.schemas import DeliveryQuoteOut, StoreStatusOut
from storefront.repos.store_repo import StoreRepo
from storefront.services.delivery_pricing import delivery_fee
from storefront.utils import settings

router = APIRouter(prefix="/api/store", tags=["store"])


def _now_ms() -> int:
    return int(time.time() * 1000)


@router.get("/time")
def server_time():
    return {"serverTime": _now_ms()}


@router.get("/status", response_model=StoreStatusOut)
def store_status(db: Session = Depends(get_db)):
    row = StoreRepo(db).get_settings()
    if row is None:
        raise NotFoundError("Store settings not initialised")
    return {"serverTime": _now_ms(), "isManualClosed": row.is_manual_closed}


@router.get("/delivery-fee", response_model=DeliveryQuoteOut)
def quote_delivery_fee(lat: float = Query(...), lng: float = Query(...)):
    quote = delivery_fee(settings.STORE_LAT, settings.STORE_LNG, lat, lng)
    return {"distance_km": quote.distance_km, "fee": quote.fee}
