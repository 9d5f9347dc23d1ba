# storefront/api/routers/products.py
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.schemas import ProductListOut, ProductOut, ProductsOut
from storefront.services.catalog_service import CatalogService

router = APIRouter(prefix="/api/products", tags=["products"])


def get_service(db: Session):
    return CatalogService(db)


@router.get("", response_model=ProductListOut)
def list_products(
    category_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    sort_by: str = Query("created_at"),
    order: str = Query("desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return get_service(db).list_products(
        category_id=category_id,
        search=search,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        order=order,
        page=page,
        limit=limit,
    )


# fixed paths before /{product_id}
@router.get("/featured", response_model=ProductsOut)
def featured_products(limit: int = Query(10, ge=1), db: Session = Depends(get_db)):
    return {"products": get_service(db).featured_products(limit)}


@router.get("/search", response_model=ProductsOut)
def search_products(q: Optional[str] = Query(None), limit: int = Query(10, ge=1), db: Session = Depends(get_db)):
    return {"products": get_service(db).search_products(q, limit)}


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, db: Session = Depends(get_db)):
    return get_service(db).get_product(product_id)
