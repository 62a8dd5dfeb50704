# every model imported here so SQLAlchemy registers it in Base.metadata

from storefront.data.models.user import UserModel
from storefront.data.models.product import ProductModel
from storefront.data.models.product_event import ProductEventModel
from storefront.data.models.wishlist import WishlistModel
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel

__all__ = [
    "UserModel",
    "ProductModel",
    "ProductEventModel",
    "WishlistModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
]
