from unittest.mock import MagicMock

import pytest
import redis
from sqlalchemy.exc import OperationalError

from storefront.domain.errors import InternalError, ValidationError
from storefront.services.counter_ledger import CounterLedger
from storefront.services.funnel_service import PurchaseFunnel
from storefront.services.view_throttle import ViewThrottle


class TestViewThrottle:
    def test_disabled_window_never_touches_redis(self):
        client = MagicMock()
        throttle = ViewThrottle(window=0, client=client)

        assert throttle.should_count(1, "user:1") is True
        client.set.assert_not_called()

    def test_anonymous_viewer_without_key_always_counts(self):
        client = MagicMock()
        throttle = ViewThrottle(window=60, client=client)

        assert throttle.should_count(1, None) is True
        client.set.assert_not_called()

    def test_first_view_in_window_counts_then_repeats_do_not(self):
        client = MagicMock()
        client.set.side_effect = [True, None]
        throttle = ViewThrottle(window=60, client=client)

        assert throttle.should_count(5, "user:9") is True
        assert throttle.should_count(5, "user:9") is False
        client.set.assert_called_with(name="product:5:viewed:user:9", value="1", nx=True, ex=60)

    def test_transient_redis_error_is_retried(self):
        client = MagicMock()
        client.set.side_effect = [redis.ConnectionError("reset"), True]
        throttle = ViewThrottle(window=60, client=client)

        assert throttle.should_count(5, "user:9") is True
        assert client.set.call_count == 2


def test_every_view_counts_without_dedup(funnel, make_product, read):
    product_id = make_product()

    for _ in range(3):
        assert funnel.record_view(product_id)["counted"] is True

    assert read.product(product_id).views == 3
    assert len(read.events(product_id, "view")) == 3


def test_view_of_deleted_product_is_a_quiet_no_op(funnel, read):
    result = funnel.record_view(777)

    assert result == {"product_id": 777, "counted": False}
    assert read.events(777) == []


def test_view_rejects_missing_id(funnel):
    with pytest.raises(ValidationError):
        funnel.record_view(None)


def test_throttled_view_does_not_move_counter(session_factory, notifier, make_product, read):
    client = MagicMock()
    client.set.side_effect = [True, None]
    funnel = PurchaseFunnel(
        session_factory=session_factory,
        notifier=notifier,
        view_throttle=ViewThrottle(window=60, client=client),
    )
    product_id = make_product()

    funnel.record_view(product_id, viewer_key="user:1", user_id=1)
    second = funnel.record_view(product_id, viewer_key="user:1", user_id=1)

    assert second["counted"] is False
    assert read.product(product_id).views == 1


def test_redis_outage_surfaces_as_internal_error(session_factory, notifier, make_product, read):
    client = MagicMock()
    client.set.side_effect = redis.ConnectionError("down")
    throttle = ViewThrottle(window=60, client=client)
    funnel = PurchaseFunnel(session_factory=session_factory, notifier=notifier, view_throttle=throttle)
    product_id = make_product()

    with pytest.raises(InternalError):
        funnel.record_view(product_id, viewer_key="user:1")

    assert read.product(product_id).views == 0


def test_view_survives_transient_database_failure(session_factory, notifier, make_product, read, monkeypatch):
    client = MagicMock()
    client.set.side_effect = [True, None]
    funnel = PurchaseFunnel(
        session_factory=session_factory,
        notifier=notifier,
        view_throttle=ViewThrottle(window=60, client=client),
    )
    product_id = make_product()
    original = CounterLedger.record_event
    attempts = {"n": 0}

    def locked_once(self, *args, **kwargs):
        attempts["n"] += 1
        if attempts["n"] == 1:
            raise OperationalError("UPDATE products", {}, Exception("database is locked"))
        return original(self, *args, **kwargs)

    monkeypatch.setattr(CounterLedger, "record_event", locked_once)

    result = funnel.record_view(product_id, viewer_key="user:1", user_id=1)

    assert result == {"product_id": product_id, "counted": True}
    assert attempts["n"] == 2
    assert client.set.call_count == 1
    assert read.product(product_id).views == 1
