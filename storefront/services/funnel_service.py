# storefront/services/funnel_service.py
from contextlib import contextmanager
from dataclasses import asdict
from typing import Any, Dict, List

import redis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from storefront.data.database import SessionLocal
from storefront.data.unit_of_work import UnitOfWork
from storefront.domain.errors import InternalError, NotFound, ValidationError
from storefront.domain.events import EventKind, OrderStatus
from storefront.services.cart_service import CartService
from storefront.services.counter_ledger import CounterLedger
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService, order_to_dict
from storefront.services.view_throttle import ViewThrottle
from storefront.services.wishlist_service import WishlistService
from storefront.utils.logging import get_logger
from storefront.utils.retry import db_retry

logger = get_logger(__name__)


def _require_id(value, name: str) -> int:
    if value is None:
        raise ValidationError(f"{name} is required")
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{name} must be a positive integer")
    return value


def _require_quantity(value) -> int:
    if value is None:
        raise ValidationError("quantity is required")
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError("quantity must be a positive integer")
    return value


def _require_page(limit, offset) -> None:
    if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0):
        raise ValidationError("limit must be a positive integer")
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        raise ValidationError("offset must be zero or a positive integer")


class PurchaseFunnel:
    """
    Externally callable funnel operations: wishlist, cart, checkout, orders.

    Each call validates its input, then runs inside exactly one unit of work.
    Storage failures come out as InternalError after a full rollback; the
    transient ones (deadlock, serialization failure, locked database) are
    retried as a whole new unit of work.
    """

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        ledger: CounterLedger | None = None,
        notifier: NotificationService | None = None,
        view_throttle: ViewThrottle | None = None,
    ):
        self.session_factory = session_factory
        self.ledger = ledger or CounterLedger()
        self.wishlists = WishlistService(self.ledger)
        self.carts = CartService(self.ledger)
        self.orders = OrderService(self.ledger)
        self.notifier = notifier or NotificationService()
        self.view_throttle = view_throttle or ViewThrottle()

    @contextmanager
    def transaction(self):
        try:
            with UnitOfWork(self.session_factory) as tx:
                yield tx
        except SQLAlchemyError as e:
            logger.error(f"Storage failure, unit of work rolled back: {e}")
            raise InternalError("Storage failure, nothing was saved") from e

    # wishlist

    @db_retry()
    def add_to_wishlist(self, user_id: int, product_id) -> Dict[str, Any]:
        product_id = _require_id(product_id, "product_id")
        with self.transaction() as tx:
            added = self.wishlists.add(tx, user_id, product_id)
        return {"product_id": product_id, "added": added}

    @db_retry()
    def remove_from_wishlist(self, user_id: int, product_id) -> Dict[str, Any]:
        product_id = _require_id(product_id, "product_id")
        with self.transaction() as tx:
            self.wishlists.remove(tx, user_id, product_id)
        return {"product_id": product_id, "removed": True}

    @db_retry()
    def get_wishlist(self, user_id: int, limit: int | None = None, offset: int = 0) -> List[Dict[str, Any]]:
        _require_page(limit, offset)
        with self.transaction() as tx:
            return self.wishlists.list(tx, user_id, limit=limit, offset=offset)

    # cart

    @db_retry()
    def add_to_cart(self, user_id: int, product_id, quantity) -> Dict[str, Any]:
        product_id = _require_id(product_id, "product_id")
        quantity = _require_quantity(quantity)
        with self.transaction() as tx:
            cart = self.carts.ensure_cart(tx, user_id)
            self.carts.add_item(tx, cart.id, product_id, quantity, user_id)
            return self.carts.snapshot(tx, cart.id)

    @db_retry()
    def update_cart_item(self, user_id: int, product_id, quantity) -> Dict[str, Any]:
        product_id = _require_id(product_id, "product_id")
        quantity = _require_quantity(quantity)
        with self.transaction() as tx:
            cart = self.carts.find_cart(tx, user_id)
            if not cart:
                raise NotFound(f"Product {product_id} is not in the cart")
            self.carts.update_item(tx, cart.id, product_id, quantity, user_id)
            return self.carts.snapshot(tx, cart.id)

    @db_retry()
    def remove_cart_item(self, user_id: int, product_id) -> Dict[str, Any]:
        product_id = _require_id(product_id, "product_id")
        with self.transaction() as tx:
            cart = self.carts.find_cart(tx, user_id)
            if not cart:
                raise NotFound(f"Product {product_id} is not in the cart")
            self.carts.remove_item(tx, cart.id, product_id, user_id)
            return self.carts.snapshot(tx, cart.id)

    @db_retry()
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        with self.transaction() as tx:
            cart = self.carts.find_cart(tx, user_id)
            return self.carts.snapshot(tx, cart.id if cart else None)

    # orders

    @db_retry()
    def checkout(self, user_id: int, metadata: Dict[str, Any] | None = None) -> Dict[str, Any]:
        if metadata is not None and not isinstance(metadata, dict):
            raise ValidationError("metadata must be an object")

        with self.transaction() as tx:
            order = self.orders.checkout(tx, user_id, metadata)
            placed = order_to_dict(order)

        # only after commit, a rolled back order must never be announced
        self.notifier.send_order_notification(user_id, placed["id"])
        return placed

    @db_retry()
    def list_orders(self, user_id: int, limit: int | None = None, offset: int = 0) -> List[Dict[str, Any]]:
        _require_page(limit, offset)
        with self.transaction() as tx:
            return self.orders.list_orders(tx, user_id, limit=limit, offset=offset)

    @db_retry()
    def get_order(self, user_id: int, order_id) -> Dict[str, Any]:
        order_id = _require_id(order_id, "order_id")
        with self.transaction() as tx:
            return self.orders.get_order(tx, user_id, order_id)

    @db_retry()
    def list_all_orders(
        self, status: str | None = None, limit: int | None = None, offset: int = 0
    ) -> List[Dict[str, Any]]:
        _require_page(limit, offset)
        if status is not None and status not in {s.value for s in OrderStatus}:
            raise ValidationError(f"Unknown order status {status}")
        with self.transaction() as tx:
            return self.orders.list_all_orders(tx, status=status, limit=limit, offset=offset)

    # counters

    def record_view(self, product_id, viewer_key: str | None = None, user_id: int | None = None) -> Dict[str, Any]:
        product_id = _require_id(product_id, "product_id")

        try:
            counted = self.view_throttle.should_count(product_id, viewer_key)
        except redis.RedisError as e:
            logger.error(f"View throttle unavailable: {e}")
            raise InternalError("View tracking is unavailable") from e

        if not counted:
            return {"product_id": product_id, "counted": False}

        # the throttle key is already claimed, only the database write is retried
        try:
            self._count_view(product_id, user_id)
        except NotFound:
            # the product was deleted under the viewer, nothing to count
            logger.info(f"View of missing product {product_id} ignored")
            return {"product_id": product_id, "counted": False}

        return {"product_id": product_id, "counted": True}

    @db_retry()
    def _count_view(self, product_id: int, user_id: int | None) -> None:
        with self.transaction() as tx:
            self.ledger.record_event(tx, product_id, EventKind.VIEW, +1, {"user_id": user_id})

    @db_retry()
    def reconcile_counters(self) -> List[Dict[str, Any]]:
        with self.transaction() as tx:
            drifts = self.ledger.reconcile(tx)
        return [asdict(d) for d in drifts]
