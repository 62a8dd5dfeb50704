# storefront/services/wishlist_service.py
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from storefront.domain.errors import NotFound
from storefront.domain.events import EventKind
from storefront.repos.product_repo import ProductRepo
from storefront.repos.wishlist_repo import WishlistRepo
from storefront.services.counter_ledger import CounterLedger
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class WishlistService:
    """Per-user set of favorited products, every real change goes through the ledger."""

    def __init__(self, ledger: CounterLedger):
        self.ledger = ledger

    def add(self, tx: Session, user_id: int, product_id: int) -> bool:
        if not ProductRepo(tx).exists(product_id):
            raise NotFound(f"Product {product_id} not found")

        created = WishlistRepo(tx).insert_if_absent(user_id, product_id)
        if not created:
            logger.info(f"Product {product_id} already on wishlist of user {user_id}")
            return False

        self.ledger.record_event(
            tx, product_id, EventKind.WISHLIST_ADD, +1, {"user_id": user_id}
        )
        logger.info(f"User {user_id} added product {product_id} to wishlist")
        return True

    def remove(self, tx: Session, user_id: int, product_id: int) -> None:
        if not WishlistRepo(tx).delete_entry(user_id, product_id):
            raise NotFound(f"Product {product_id} is not on the wishlist")

        self.ledger.record_event(
            tx, product_id, EventKind.WISHLIST_REMOVE, -1, {"user_id": user_id}
        )
        logger.info(f"User {user_id} removed product {product_id} from wishlist")

    def list(
        self, tx: Session, user_id: int, limit: int | None = None, offset: int = 0
    ) -> List[Dict[str, Any]]:
        rows = WishlistRepo(tx).list_for_user(user_id, limit=limit, offset=offset)
        return [
            {
                "product_id": product.id,
                "title": product.title,
                "price": product.price,
                "image_url": product.main_image_url,
                "favorited_at": entry.created_at,
            }
            for entry, product in rows
        ]
