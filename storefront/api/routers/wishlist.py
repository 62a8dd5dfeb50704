# storefront/api/routers/wishlist.py
from typing import List

from fastapi import APIRouter, Depends, Query

from storefront.api.dependencies import CurrentUser, get_current_user, get_funnel
from storefront.domain.schemas import ProductRefIn, WishlistChangeOut, WishlistItemOut
from storefront.services.funnel_service import PurchaseFunnel

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@router.post("", response_model=WishlistChangeOut, response_model_exclude_none=True)
def add_to_wishlist(
    payload: ProductRefIn,
    user: CurrentUser = Depends(get_current_user),
    funnel: PurchaseFunnel = Depends(get_funnel),
):
    """Idempotent, adding an already favorited product answers added=false."""
    return funnel.add_to_wishlist(user.id, payload.product_id)


@router.delete("", response_model=WishlistChangeOut, response_model_exclude_none=True)
def remove_from_wishlist(
    payload: ProductRefIn,
    user: CurrentUser = Depends(get_current_user),
    funnel: PurchaseFunnel = Depends(get_funnel),
):
    return funnel.remove_from_wishlist(user.id, payload.product_id)


@router.get("", response_model=List[WishlistItemOut])
def get_wishlist(
    limit: int | None = Query(None, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    funnel: PurchaseFunnel = Depends(get_funnel),
):
    return funnel.get_wishlist(user.id, limit=limit, offset=offset)
