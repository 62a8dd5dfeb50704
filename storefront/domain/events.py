# storefront/domain/events.py
from enum import Enum


class EventKind(str, Enum):
    VIEW = "view"
    WISHLIST_ADD = "wishlist_add"
    WISHLIST_REMOVE = "wishlist_remove"
    CART_ADD = "cart_add"
    CART_UPDATE = "cart_update"
    CART_REMOVE = "cart_remove"
    ORDER_ITEM = "order_item"


# product column moved by each kind, cart_* kinds are audit only
COUNTER_FOR_KIND = {
    EventKind.VIEW: "views",
    EventKind.WISHLIST_ADD: "wishlist_count",
    EventKind.WISHLIST_REMOVE: "wishlist_count",
    EventKind.ORDER_ITEM: "sold_count",
}


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    CANCELLED = "cancelled"
