# storefront/repos/cart_repo.py
from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from storefront.data.database import conflict_insert
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.product import ProductModel

_carts = CartModel.__table__
_cart_items = CartItemModel.__table__


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_user(self, user_id: int, lock: bool = False) -> CartModel | None:
        stmt = select(CartModel).where(CartModel.user_id == user_id)
        if lock:
            # FOR UPDATE, sqlite drops it and serializes writers anyway
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def insert_cart_if_absent(self, user_id: int) -> bool:
        stmt = (
            conflict_insert(self.db, _carts)
            .values(user_id=user_id)
            .on_conflict_do_nothing(index_elements=["user_id"])
        )
        return self.db.execute(stmt).rowcount == 1

    def touch_cart(self, cart_id: int) -> None:
        self.db.execute(
            update(_carts)
            .where(_carts.c.id == cart_id)
            .values(updated_at=datetime.now(timezone.utc))
        )

    def upsert_item(self, cart_id: int, product_id: int, quantity: int) -> None:
        # e.g. insert ... on conflict (cart_id, product_id) do update set quantity = quantity + 2
        now = datetime.now(timezone.utc)
        stmt = conflict_insert(self.db, _cart_items).values(
            cart_id=cart_id,
            product_id=product_id,
            quantity=quantity,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["cart_id", "product_id"],
            set_={
                "quantity": _cart_items.c.quantity + stmt.excluded.quantity,
                "updated_at": now,
            },
        )
        self.db.execute(stmt)

    def set_item_quantity(self, cart_id: int, product_id: int, quantity: int) -> bool:
        result = self.db.execute(
            update(_cart_items)
            .where(
                _cart_items.c.cart_id == cart_id,
                _cart_items.c.product_id == product_id,
            )
            .values(quantity=quantity, updated_at=datetime.now(timezone.utc))
        )
        return result.rowcount == 1

    def delete_cart_item(self, cart_id: int, product_id: int) -> bool:
        result = self.db.execute(
            delete(_cart_items).where(
                _cart_items.c.cart_id == cart_id,
                _cart_items.c.product_id == product_id,
            )
        )
        return result.rowcount == 1

    def get_cart_lines(self, cart_id: int):
        """(CartItemModel, ProductModel) pairs, current product row joined in."""
        return self.db.execute(
            select(CartItemModel, ProductModel)
            .join(ProductModel, ProductModel.id == CartItemModel.product_id)
            .where(CartItemModel.cart_id == cart_id)
            .order_by(CartItemModel.id)
            .execution_options(populate_existing=True)
        ).all()

    def clear_cart(self, cart_id: int) -> int:
        result = self.db.execute(delete(_cart_items).where(_cart_items.c.cart_id == cart_id))
        return result.rowcount
