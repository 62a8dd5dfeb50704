# storefront/data/models/product.py
from datetime import datetime, timezone

from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, Integer, Numeric, String

from storefront.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class ProductModel(Base):
    """
    Catalog row. The catalog owns everything except the three counters,
    which only the counter ledger moves.
    """

    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    price = Column(Numeric(12, 2), nullable=False)
    main_image_url = Column(String, nullable=True)

    views = Column(BigInteger, nullable=False, default=0)
    wishlist_count = Column(BigInteger, nullable=False, default=0)
    sold_count = Column(BigInteger, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    __table_args__ = (
        CheckConstraint("views >= 0", name="ck_products_views"),
        CheckConstraint("wishlist_count >= 0", name="ck_products_wishlist_count"),
        CheckConstraint("sold_count >= 0", name="ck_products_sold_count"),
    )
