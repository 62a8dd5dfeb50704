# storefront/api/routers/products.py
from fastapi import APIRouter, Depends, Request

from storefront.api.dependencies import CurrentUser, get_funnel, get_optional_user
from storefront.domain.schemas import ProductRefIn, ViewOut
from storefront.services.funnel_service import PurchaseFunnel

router = APIRouter(prefix="/product", tags=["products"])


@router.post("/view", response_model=ViewOut)
def record_product_view(
    payload: ProductRefIn,
    request: Request,
    user: CurrentUser | None = Depends(get_optional_user),
    funnel: PurchaseFunnel = Depends(get_funnel),
):
    # signed in viewers are deduplicated per user, anonymous ones per client address
    if user is not None:
        viewer_key = f"user:{user.id}"
    elif request.client is not None:
        viewer_key = f"ip:{request.client.host}"
    else:
        viewer_key = None

    return funnel.record_view(
        payload.product_id,
        viewer_key=viewer_key,
        user_id=user.id if user else None,
    )
