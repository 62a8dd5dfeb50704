"""
Tests for the counter ledger: counter movement, audit rows, floor at zero,
atomicity with the surrounding unit of work and reconciliation.
"""

import pytest
from sqlalchemy import update
from sqlalchemy.orm import Session

from storefront.data.models import ProductModel, WishlistModel
from storefront.data.unit_of_work import UnitOfWork
from storefront.domain.errors import NotFound
from storefront.domain.events import EventKind
from storefront.services.counter_ledger import CounterLedger


@pytest.fixture
def ledger():
    return CounterLedger()


class TestRecordEvent:
    def test_view_increments_views_and_appends_event(self, ledger, session_factory, make_product, read):
        product_id = make_product()

        with UnitOfWork(session_factory) as tx:
            ledger.record_event(tx, product_id, EventKind.VIEW, 1, {"user_id": 7})

        assert read.product(product_id).views == 1
        events = read.events(product_id)
        assert [e.event_type for e in events] == ["view"]
        assert events[0].meta == {"user_id": 7}

    def test_order_item_moves_sold_count_by_quantity(self, ledger, session_factory, make_product, read):
        product_id = make_product()

        with UnitOfWork(session_factory) as tx:
            ledger.record_event(tx, product_id, "order_item", 3, {"user_id": 1, "quantity": 3})

        product = read.product(product_id)
        assert product.sold_count == 3
        assert product.views == 0
        assert product.wishlist_count == 0

    def test_decrement_is_clamped_at_zero(self, ledger, session_factory, make_product, read):
        product_id = make_product()

        with UnitOfWork(session_factory) as tx:
            ledger.record_event(tx, product_id, EventKind.WISHLIST_REMOVE, -1, {"user_id": 1})

        assert read.product(product_id).wishlist_count == 0
        assert len(read.events(product_id, "wishlist_remove")) == 1

    def test_cart_events_are_audit_only(self, ledger, session_factory, make_product, read):
        product_id = make_product()

        with UnitOfWork(session_factory) as tx:
            ledger.record_event(tx, product_id, EventKind.CART_ADD, 0, {"user_id": 1, "quantity": 2})

        product = read.product(product_id)
        assert (product.views, product.wishlist_count, product.sold_count) == (0, 0, 0)
        assert read.events(product_id)[0].meta == {"user_id": 1, "quantity": 2}

    def test_cart_event_with_delta_is_rejected(self, ledger, session_factory, make_product):
        product_id = make_product()

        with pytest.raises(ValueError):
            with UnitOfWork(session_factory) as tx:
                ledger.record_event(tx, product_id, EventKind.CART_ADD, 2)

    def test_unknown_kind_is_rejected(self, ledger, session_factory, make_product):
        product_id = make_product()

        with pytest.raises(ValueError):
            with UnitOfWork(session_factory) as tx:
                ledger.record_event(tx, product_id, "purchase", 1)

    @pytest.mark.parametrize("kind", [EventKind.VIEW, EventKind.CART_REMOVE])
    def test_missing_product_raises_not_found(self, ledger, session_factory, read, kind):
        with pytest.raises(NotFound):
            with UnitOfWork(session_factory) as tx:
                ledger.record_event(tx, 999, kind, 1 if kind == EventKind.VIEW else 0)

        assert read.events(999) == []

    def test_rollback_discards_counter_and_event_together(self, ledger, session_factory, make_product, read):
        product_id = make_product()

        with pytest.raises(RuntimeError):
            with UnitOfWork(session_factory) as tx:
                ledger.record_event(tx, product_id, EventKind.VIEW, 1)
                raise RuntimeError("request aborted")

        assert read.product(product_id).views == 0
        assert read.events(product_id) == []


class TestReconcile:
    def test_consistent_counters_report_no_drift(self, ledger, session_factory, funnel, make_product, user_id):
        product_id = make_product()
        funnel.add_to_wishlist(user_id, product_id)
        funnel.record_view(product_id)

        with UnitOfWork(session_factory) as tx:
            assert ledger.reconcile(tx) == []

    def test_drifted_counters_are_recomputed_from_rows(
        self, ledger, session_factory, funnel, make_product, user_id, read
    ):
        product_id = make_product()
        funnel.add_to_wishlist(user_id, product_id)
        funnel.add_to_cart(user_id, product_id, 2)
        funnel.checkout(user_id)
        funnel.record_view(product_id)

        with session_factory() as db:
            db.execute(
                update(ProductModel)
                .where(ProductModel.id == product_id)
                .values(wishlist_count=9, sold_count=0, views=4)
            )
            db.commit()

        with UnitOfWork(session_factory) as tx:
            drifts = ledger.reconcile(tx)

        assert {(d.counter, d.recorded, d.expected) for d in drifts} == {
            ("wishlist_count", 9, 1),
            ("sold_count", 0, 2),
            ("views", 4, 1),
        }
        product = read.product(product_id)
        assert (product.wishlist_count, product.sold_count, product.views) == (1, 2, 1)
        assert read.count(WishlistModel, product_id=product_id) == product.wishlist_count

    @pytest.mark.parametrize("statement", [1, 2, 3, 4])
    def test_wishlist_add_committed_mid_reconcile_is_kept(
        self, ledger, session_factory, funnel, make_product, make_user, read, monkeypatch, statement
    ):
        product_id = make_product()
        funnel.add_to_wishlist(make_user(), product_id)
        late_user = make_user()
        original = Session.execute
        issued = {"n": 0}

        with UnitOfWork(session_factory) as tx:

            def execute(self, *args, **kwargs):
                if self is tx:
                    issued["n"] += 1
                    if issued["n"] == statement:
                        # another request commits between reconcile's statements
                        funnel.add_to_wishlist(late_user, product_id)
                return original(self, *args, **kwargs)

            monkeypatch.setattr(Session, "execute", execute)
            ledger.reconcile(tx)

        assert read.count(WishlistModel, product_id=product_id) == 2
        assert read.product(product_id).wishlist_count == 2
