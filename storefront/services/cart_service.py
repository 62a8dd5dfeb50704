# storefront/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.domain.errors import NotFound
from storefront.domain.events import EventKind
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.counter_ledger import CounterLedger
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    One mutable cart per user.
    commands (ensure, add, update, remove) are single conditional writes,
    query (snapshot) is read only and always priced at current product prices.
    Cart edits never move counters, the ledger only records them for audit.
    """

    def __init__(self, ledger: CounterLedger):
        self.ledger = ledger

    #query
    def find_cart(self, tx: Session, user_id: int, lock: bool = False) -> CartModel | None:
        return CartRepo(tx).get_cart_by_user(user_id, lock=lock)

    def snapshot(self, tx: Session, cart_id: int | None) -> Dict[str, Any]:
        if cart_id is None:
            return {"cart_id": None, "items": [], "total": Decimal("0.00")}

        lines = CartRepo(tx).get_cart_lines(cart_id)
        items = [
            {
                "product_id": product.id,
                "title": product.title,
                "image_url": product.main_image_url,
                "quantity": item.quantity,
                "unit_price": product.price,
                "line_total": product.price * item.quantity,
            }
            for item, product in lines
        ]
        total = sum((i["line_total"] for i in items), Decimal("0.00"))

        return {"cart_id": cart_id, "items": items, "total": total}

    #commands
    def ensure_cart(self, tx: Session, user_id: int) -> CartModel:
        repo = CartRepo(tx)
        if repo.insert_cart_if_absent(user_id):
            logger.info(f"Created cart for user {user_id}")

        # whoever won the insert, the unique user_id leaves exactly one row to read back
        return repo.get_cart_by_user(user_id)

    def add_item(self, tx: Session, cart_id: int, product_id: int, quantity: int, user_id: int) -> None:
        if not ProductRepo(tx).exists(product_id):
            raise NotFound(f"Product {product_id} not found")

        repo = CartRepo(tx)
        # cart row before its lines, the same lock order checkout takes
        repo.touch_cart(cart_id)
        repo.upsert_item(cart_id, product_id, quantity)

        self.ledger.record_event(
            tx, product_id, EventKind.CART_ADD, 0, {"user_id": user_id, "quantity": quantity}
        )
        logger.info(f"Added {quantity} x product {product_id} to cart {cart_id}")

    def update_item(self, tx: Session, cart_id: int, product_id: int, quantity: int, user_id: int) -> None:
        repo = CartRepo(tx)
        repo.touch_cart(cart_id)
        if not repo.set_item_quantity(cart_id, product_id, quantity):
            raise NotFound(f"Product {product_id} is not in the cart")

        self.ledger.record_event(
            tx, product_id, EventKind.CART_UPDATE, 0, {"user_id": user_id, "quantity": quantity}
        )
        logger.info(f"Set product {product_id} quantity in cart {cart_id} to {quantity}")

    def remove_item(self, tx: Session, cart_id: int, product_id: int, user_id: int) -> None:
        repo = CartRepo(tx)
        repo.touch_cart(cart_id)
        if not repo.delete_cart_item(cart_id, product_id):
            raise NotFound(f"Product {product_id} is not in the cart")

        self.ledger.record_event(tx, product_id, EventKind.CART_REMOVE, 0, {"user_id": user_id})
        logger.info(f"Removed product {product_id} from cart {cart_id}")
