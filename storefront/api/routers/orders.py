# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Query

from storefront.api.dependencies import CurrentUser, get_current_user, get_funnel
from storefront.domain.schemas import CheckoutIn, OrderCreatedOut, OrderDetailOut, OrderOut
from storefront.services.funnel_service import PurchaseFunnel

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderCreatedOut, status_code=201)
def create_order(
    payload: CheckoutIn | None = None,
    user: CurrentUser = Depends(get_current_user),
    funnel: PurchaseFunnel = Depends(get_funnel),
):
    """
    Converts the caller's cart into a pending order and empties the cart.
    """
    order = funnel.checkout(user.id, payload.metadata if payload else None)
    return {"order_id": order["id"], "status": order["status"], "total": order["total"]}


@router.get("", response_model=List[OrderOut])
def list_orders(
    limit: int | None = Query(None, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    funnel: PurchaseFunnel = Depends(get_funnel),
):
    return funnel.list_orders(user.id, limit=limit, offset=offset)


@router.get("/{order_id}", response_model=OrderDetailOut)
def get_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    funnel: PurchaseFunnel = Depends(get_funnel),
):
    """
    Order with its frozen lines, 404 for orders of other users.
    """
    return funnel.get_order(user.id, order_id)
