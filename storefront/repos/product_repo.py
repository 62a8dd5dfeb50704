# storefront/repos/product_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel


class ProductRepo:
    """Read side of the catalog, the funnel never writes product rows itself."""

    def __init__(self, db: Session):
        self.db = db

    def exists(self, product_id: int) -> bool:
        row = self.db.execute(
            select(ProductModel.id).where(ProductModel.id == product_id)
        ).first()
        return row is not None
