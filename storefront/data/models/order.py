from sqlalchemy import JSON, Column, Integer, ForeignKey, String, DateTime, Numeric
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from storefront.data.database import Base

class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    status = Column(String(30), nullable=False, default="pending")  # pending, paid, shipped, cancelled
    total = Column(Numeric(12, 2), nullable=False)
    # "metadata" is reserved on declarative classes
    order_metadata = Column("metadata", JSON().with_variant(JSONB, "postgresql"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship("OrderItemModel", back_populates="order", order_by="OrderItemModel.id")
