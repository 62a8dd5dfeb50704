# storefront/repos/wishlist_repo.py
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from storefront.data.database import conflict_insert
from storefront.data.models.product import ProductModel
from storefront.data.models.wishlist import WishlistModel

_wishlists = WishlistModel.__table__


class WishlistRepo:
    def __init__(self, db: Session):
        self.db = db

    def insert_if_absent(self, user_id: int, product_id: int) -> bool:
        """
        INSERT ... ON CONFLICT DO NOTHING in one statement.
        True only for the call that actually created the row.
        """
        stmt = (
            conflict_insert(self.db, _wishlists)
            .values(user_id=user_id, product_id=product_id)
            .on_conflict_do_nothing(index_elements=["user_id", "product_id"])
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1

    def delete_entry(self, user_id: int, product_id: int) -> bool:
        result = self.db.execute(
            delete(_wishlists).where(
                _wishlists.c.user_id == user_id,
                _wishlists.c.product_id == product_id,
            )
        )
        return result.rowcount == 1

    def list_for_user(self, user_id: int, limit: int | None = None, offset: int = 0):
        stmt = (
            select(WishlistModel, ProductModel)
            .join(ProductModel, ProductModel.id == WishlistModel.product_id)
            .where(WishlistModel.user_id == user_id)
            .order_by(WishlistModel.created_at.desc(), WishlistModel.id.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return self.db.execute(stmt).all()
