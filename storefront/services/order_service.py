# storefront/services/order_service.py
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import EmptyCart, NotFound
from storefront.domain.events import EventKind, OrderStatus
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.counter_ledger import CounterLedger
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def order_to_dict(order: OrderModel, items: List[OrderItemModel] | None = None) -> Dict[str, Any]:
    data = {
        "id": order.id,
        "user_id": order.user_id,
        "status": order.status,
        "total": order.total,
        "metadata": order.order_metadata,
        "created_at": order.created_at,
    }
    if items is not None:
        data["items"] = [
            {
                "product_id": i.product_id,
                "unit_price": i.unit_price,
                "quantity": i.quantity,
                "line_total": i.total,
            }
            for i in items
        ]
    return data


class OrderService:
    """
    Converts carts into immutable orders.
    Orders and their lines are history: created once, never edited here.
    """

    def __init__(self, ledger: CounterLedger):
        self.ledger = ledger

    def checkout(self, tx: Session, user_id: int, metadata: Dict[str, Any] | None = None) -> OrderModel:
        """
        Use case: turn the user's cart into an order.

        1. Lock the cart row (concurrent checkouts and cart edits queue behind it)
        2. Read the lines with current prices, this is the only price snapshot used
        3. Insert the order and one frozen line per cart line, sold_count moves per line
        4. Drain the cart, the cart row itself stays

        Runs inside the caller's unit of work, any failure rolls all of it back.
        """
        cart_repo = CartRepo(tx)
        cart = cart_repo.get_cart_by_user(user_id, lock=True)
        if not cart:
            raise EmptyCart("Cart is empty")

        lines = cart_repo.get_cart_lines(cart.id)
        if not lines:
            raise EmptyCart("Cart is empty")

        priced = [(product.id, product.price, item.quantity) for item, product in lines]
        total = sum((price * qty for _, price, qty in priced), Decimal("0.00"))

        order_repo = OrderRepo(tx)
        order = order_repo.create_order(
            OrderModel(
                user_id=user_id,
                status=OrderStatus.PENDING.value,
                total=total,
                order_metadata=metadata,
            )
        )

        for product_id, unit_price, quantity in priced:
            order_repo.add_order_item(
                OrderItemModel(
                    order_id=order.id,
                    product_id=product_id,
                    unit_price=unit_price,
                    quantity=quantity,
                    total=unit_price * quantity,
                )
            )
            self.ledger.record_event(
                tx,
                product_id,
                EventKind.ORDER_ITEM,
                quantity,
                {"user_id": user_id, "order_id": order.id, "quantity": quantity},
            )

        drained = cart_repo.clear_cart(cart.id)
        cart_repo.touch_cart(cart.id)

        logger.info(
            f"Order {order.id} created from cart {cart.id} for user {user_id}: "
            f"{drained} lines, total {total}"
        )
        return order

    def list_orders(self, tx: Session, user_id: int, limit: int | None = None, offset: int = 0):
        orders = OrderRepo(tx).list_orders(user_id=user_id, limit=limit, offset=offset)
        return [order_to_dict(o) for o in orders]

    def list_all_orders(
        self, tx: Session, status: str | None = None, limit: int | None = None, offset: int = 0
    ):
        orders = OrderRepo(tx).list_orders(status=status, limit=limit, offset=offset)
        return [order_to_dict(o) for o in orders]

    def get_order(self, tx: Session, user_id: int, order_id: int) -> Dict[str, Any]:
        repo = OrderRepo(tx)
        order = repo.get_order(order_id)

        # someone else's order looks exactly like a missing one
        if not order or order.user_id != user_id:
            raise NotFound(f"Order {order_id} not found")

        return order_to_dict(order, repo.get_order_items(order_id))
