# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Dict, List
from decimal import Decimal
from datetime import datetime


class ProductRefIn(BaseModel):
    """Body carrying only a product reference (wishlist, cart removal, view)."""

    product_id: int | None = Field(None, description="Product ID")


class CartItemIn(BaseModel):
    """Body for adding to / setting a cart line."""

    product_id: int | None = Field(None, description="Product ID")
    quantity: int | None = Field(None, description="Quantity, must be > 0")


class CheckoutIn(BaseModel):
    metadata: Dict[str, Any] | None = None


class WishlistChangeOut(BaseModel):
    product_id: int
    added: bool | None = None
    removed: bool | None = None


class WishlistItemOut(BaseModel):
    product_id: int
    title: str
    price: Decimal
    image_url: str | None = None
    favorited_at: datetime


class CartItemOut(BaseModel):
    """Cart line priced at the current product price."""

    product_id: int
    title: str
    image_url: str | None = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class CartOut(BaseModel):
    cart_id: int | None = None
    items: List[CartItemOut]
    total: Decimal = Field(
        ..., description="Sum of line totals at live prices, a decimal string (\"0.00\" when empty)"
    )


class OrderItemOut(BaseModel):
    """Frozen order line."""

    product_id: int
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class OrderOut(BaseModel):
    id: int
    user_id: int | None
    status: str
    total: Decimal
    metadata: Dict[str, Any] | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderDetailOut(OrderOut):
    items: List[OrderItemOut]


class OrderCreatedOut(BaseModel):
    order_id: int
    status: str
    total: Decimal


class ViewOut(BaseModel):
    product_id: int
    counted: bool


class CounterDriftOut(BaseModel):
    product_id: int
    counter: str
    recorded: int
    expected: int


class ReconcileOut(BaseModel):
    fixed: int
    drifts: List[CounterDriftOut]
