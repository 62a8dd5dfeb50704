"""Pytest configuration and fixtures for the storefront funnel tests."""

import os

# settings are read at import time, so the environment is prepared first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"
os.environ["VIEW_DEDUP_SECONDS"] = "0"

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from storefront.api.dependencies import get_funnel
from storefront.data.database import build_engine, get_db, init_db
from storefront.data.models import CartItemModel, CartModel, ProductEventModel, ProductModel, UserModel
from storefront.main import create_app
from storefront.services.funnel_service import PurchaseFunnel
from storefront.services.notification_service import NotificationService
from storefront.services.view_throttle import ViewThrottle
from storefront.utils.security import create_access_token


@pytest.fixture
def engine(tmp_path):
    """File backed SQLite so concurrent tests get real separate connections."""
    engine = build_engine(f"sqlite:///{tmp_path / 'funnel.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def notifier():
    mock = MagicMock(spec=NotificationService)
    mock.send_order_notification.return_value = True
    return mock


@pytest.fixture
def funnel(session_factory, notifier):
    return PurchaseFunnel(
        session_factory=session_factory,
        notifier=notifier,
        view_throttle=ViewThrottle(window=0),
    )


@pytest.fixture
def make_user(session_factory):
    counter = {"n": 0}

    def _make(full_name="Test User", role="customer"):
        counter["n"] += 1
        with session_factory() as db:
            user = UserModel(
                full_name=full_name,
                email=f"user{counter['n']}.{role}@example.com",
                role=role,
            )
            db.add(user)
            db.commit()
            return user.id

    return _make


@pytest.fixture
def make_product(session_factory):
    counter = {"n": 0}

    def _make(price="10.00", title=None):
        counter["n"] += 1
        n = counter["n"]
        with session_factory() as db:
            product = ProductModel(
                title=title or f"Ring {n}",
                slug=f"ring-{n}",
                price=Decimal(price),
                main_image_url=f"https://cdn.example.com/ring-{n}.jpg",
            )
            db.add(product)
            db.commit()
            return product.id

    return _make


@pytest.fixture
def user_id(make_user):
    return make_user()


@pytest.fixture
def read(session_factory):
    """Fresh-session readers for asserting on committed state."""

    class Reader:
        def product(self, product_id):
            with session_factory() as db:
                return db.get(ProductModel, product_id)

        def set_price(self, product_id, price):
            with session_factory() as db:
                db.get(ProductModel, product_id).price = Decimal(price)
                db.commit()

        def count(self, model, **filters):
            with session_factory() as db:
                stmt = select(func.count()).select_from(model)
                for column, value in filters.items():
                    stmt = stmt.where(getattr(model, column) == value)
                return db.execute(stmt).scalar_one()

        def events(self, product_id, event_type=None):
            with session_factory() as db:
                stmt = select(ProductEventModel).where(ProductEventModel.product_id == product_id)
                if event_type:
                    stmt = stmt.where(ProductEventModel.event_type == event_type)
                return list(db.execute(stmt.order_by(ProductEventModel.id)).scalars())

        def cart_lines(self, user_id):
            with session_factory() as db:
                return list(
                    db.execute(
                        select(CartItemModel)
                        .join(CartModel, CartModel.id == CartItemModel.cart_id)
                        .where(CartModel.user_id == user_id)
                    ).scalars()
                )

    return Reader()


@pytest.fixture
def client(session_factory, funnel):
    app = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_funnel] = lambda: funnel

    # no context manager, the lifespan would create tables on the default engine
    yield TestClient(app)


@pytest.fixture
def auth_headers():
    def _headers(user_id):
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers
