# storefront/repos/catalog_repo.py
from typing import Dict, Iterable, List, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.product import ProductModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

SORTABLE = {
    "created_at": ProductModel.created_at,
    "name": ProductModel.name,
}


class CatalogRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: str) -> ProductModel | None:
        return self.db.execute(
            select(ProductModel)
            .options(selectinload(ProductModel.variants))
            .where(ProductModel.id == product_id)
        ).scalar_one_or_none()

    def get_products(self, product_ids: Iterable[str]) -> Dict[str, ProductModel]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        products = self.db.execute(
            select(ProductModel)
            .options(selectinload(ProductModel.variants))
            .where(ProductModel.id.in_(ids))
        ).scalars().all()
        return {p.id: p for p in products}

    def list_products(
        self,
        category_id: str | None = None,
        search: str | None = None,
        sort_by: str = "created_at",
        descending: bool = True,
        offset: int = 0,
        limit: int | None = None,
    ) -> Tuple[List[ProductModel], int]:
        """Active products only. limit=None returns every match."""
        conditions = [ProductModel.is_active.is_(True)]
        if category_id:
            conditions.append(ProductModel.category_id == category_id)
        if search:
            conditions.append(ProductModel.name.icontains(search, autoescape=True))

        total = self.db.execute(
            select(func.count()).select_from(ProductModel).where(*conditions)
        ).scalar_one()

        column = SORTABLE[sort_by]
        stmt = (
            select(ProductModel)
            .options(selectinload(ProductModel.variants))
            .where(*conditions)
            .order_by(column.desc() if descending else column.asc(), ProductModel.id)
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        return list(self.db.execute(stmt).scalars().all()), total

    def search_products(self, term: str, limit: int) -> List[ProductModel]:
        return list(
            self.db.execute(
                select(ProductModel)
                .options(selectinload(ProductModel.variants))
                .where(
                    ProductModel.is_active.is_(True),
                    ProductModel.name.icontains(term, autoescape=True),
                )
                .order_by(ProductModel.name)
                .limit(limit)
            ).scalars().all()
        )

    def featured_products(self, limit: int) -> List[ProductModel]:
        return list(
            self.db.execute(
                select(ProductModel)
                .options(selectinload(ProductModel.variants))
                .where(ProductModel.is_active.is_(True), ProductModel.is_featured.is_(True))
                .order_by(ProductModel.created_at.desc())
                .limit(limit)
            ).scalars().all()
        )

    def increment_stock(self, product_id: str, quantity: int) -> None:
        # stock adjustment is switched off in this version; kept as the seam for it
        logger.debug(f"increment_stock({product_id}, {quantity}) skipped, stock tracking disabled")
