# storefront/services/counter_ledger.py
from dataclasses import dataclass
from typing import Any, Dict, List

from sqlalchemy import case, func, insert, select, update
from sqlalchemy.orm import Session

from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.product import ProductModel
from storefront.data.models.product_event import ProductEventModel
from storefront.data.models.wishlist import WishlistModel
from storefront.domain.errors import NotFound
from storefront.domain.events import COUNTER_FOR_KIND, EventKind
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_products = ProductModel.__table__
_events = ProductEventModel.__table__
_wishlists = WishlistModel.__table__
_order_items = OrderItemModel.__table__

# correlated to the products row being updated
_RECOUNT = {
    "views": select(func.count())
    .select_from(_events)
    .where(_events.c.product_id == _products.c.id, _events.c.event_type == EventKind.VIEW.value)
    .scalar_subquery(),
    "wishlist_count": select(func.count())
    .select_from(_wishlists)
    .where(_wishlists.c.product_id == _products.c.id)
    .scalar_subquery(),
    "sold_count": select(func.coalesce(func.sum(_order_items.c.quantity), 0))
    .where(_order_items.c.product_id == _products.c.id)
    .scalar_subquery(),
}


@dataclass
class CounterDrift:
    product_id: int
    counter: str
    recorded: int
    expected: int


class CounterLedger:
    """
    Only place that moves product counters (views, wishlist_count, sold_count).

    Every mutation is one in-database arithmetic UPDATE plus one product_events
    row, both inside the caller's transaction. Counters never go below zero.
    """

    def record_event(
        self,
        tx: Session,
        product_id: int,
        kind: EventKind | str,
        delta: int = 0,
        meta: Dict[str, Any] | None = None,
    ) -> None:
        kind = EventKind(kind)
        column_name = COUNTER_FOR_KIND.get(kind)

        if column_name is None:
            if delta:
                raise ValueError(f"{kind.value} events do not move any counter")
            # cart_* events are audit only, but the product still has to exist
            found = tx.execute(
                select(_products.c.id).where(_products.c.id == product_id)
            ).first()
            if found is None:
                raise NotFound(f"Product {product_id} not found")
        else:
            column = _products.c[column_name]
            shifted = column + delta
            result = tx.execute(
                update(_products)
                .where(_products.c.id == product_id)
                .values({column_name: case((shifted < 0, 0), else_=shifted)})
            )
            if result.rowcount == 0:
                raise NotFound(f"Product {product_id} not found")

        tx.execute(
            insert(_events).values(
                product_id=product_id,
                event_type=kind.value,
                meta=dict(meta or {}),
            )
        )
        logger.debug(f"Ledger {kind.value} product={product_id} delta={delta}")

    def reconcile(self, tx: Session) -> List[CounterDrift]:
        """
        Recompute every counter from the rows that justify it and overwrite
        the ones that drifted. Administrative repair, not part of the normal flow.

        Product rows are locked before anything is counted, so funnel writes
        that move a counter queue behind the repair. The repaired value is
        computed by the UPDATE itself from the rows visible at write time.
        """
        rows = tx.execute(
            select(
                _products.c.id,
                _products.c.views,
                _products.c.wishlist_count,
                _products.c.sold_count,
            )
            .order_by(_products.c.id)
            .with_for_update()
        ).all()

        wishlisted = dict(
            tx.execute(
                select(WishlistModel.product_id, func.count())
                .group_by(WishlistModel.product_id)
            ).all()
        )
        sold = dict(
            tx.execute(
                select(OrderItemModel.product_id, func.sum(OrderItemModel.quantity))
                .group_by(OrderItemModel.product_id)
            ).all()
        )
        viewed = dict(
            tx.execute(
                select(ProductEventModel.product_id, func.count())
                .where(ProductEventModel.event_type == EventKind.VIEW.value)
                .group_by(ProductEventModel.product_id)
            ).all()
        )

        drifts: List[CounterDrift] = []
        for row in rows:
            expected = {
                "views": int(viewed.get(row.id, 0)),
                "wishlist_count": int(wishlisted.get(row.id, 0)),
                "sold_count": int(sold.get(row.id, 0) or 0),
            }
            fixes = {}
            for counter, value in expected.items():
                recorded = int(getattr(row, counter))
                if recorded != value:
                    drifts.append(CounterDrift(row.id, counter, recorded, value))
                    fixes[counter] = _RECOUNT[counter]

            if fixes:
                tx.execute(update(_products).where(_products.c.id == row.id).values(fixes))

        for drift in drifts:
            logger.warning(
                f"Counter drift on product {drift.product_id}: {drift.counter} "
                f"was {drift.recorded}, recomputed {drift.expected}"
            )
        logger.info(f"Counter reconciliation checked {len(rows)} products, fixed {len(drifts)} counters")
        return drifts
