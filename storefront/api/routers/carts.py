#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends

from storefront.api.dependencies import CurrentUser, get_current_user, get_funnel
from storefront.domain.schemas import CartItemIn, CartOut, ProductRefIn
from storefront.services.funnel_service import PurchaseFunnel

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(
    user: CurrentUser = Depends(get_current_user),
    funnel: PurchaseFunnel = Depends(get_funnel),
):
    return funnel.get_cart(user.id)


@router.post("", response_model=CartOut)
def add_item(
    payload: CartItemIn,
    user: CurrentUser = Depends(get_current_user),
    funnel: PurchaseFunnel = Depends(get_funnel),
):
    """Adds quantity on top of whatever the line already holds."""
    return funnel.add_to_cart(user.id, payload.product_id, payload.quantity)


@router.put("", response_model=CartOut)
def update_item(
    payload: CartItemIn,
    user: CurrentUser = Depends(get_current_user),
    funnel: PurchaseFunnel = Depends(get_funnel),
):
    """Sets the absolute quantity of an existing line."""
    return funnel.update_cart_item(user.id, payload.product_id, payload.quantity)


@router.delete("", response_model=CartOut)
def remove_item(
    payload: ProductRefIn,
    user: CurrentUser = Depends(get_current_user),
    funnel: PurchaseFunnel = Depends(get_funnel),
):
    return funnel.remove_cart_item(user.id, payload.product_id)
