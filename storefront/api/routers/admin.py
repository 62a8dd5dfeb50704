# storefront/api/routers/admin.py
from typing import List

from fastapi import APIRouter, Depends, Query

from storefront.api.dependencies import ADMIN_ROLES, CurrentUser, get_funnel, require_roles
from storefront.domain.schemas import OrderOut, ReconcileOut
from storefront.services.funnel_service import PurchaseFunnel

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/orders", response_model=List[OrderOut])
def list_all_orders(
    status: str | None = Query(None),
    limit: int | None = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin: CurrentUser = Depends(require_roles(*ADMIN_ROLES)),
    funnel: PurchaseFunnel = Depends(get_funnel),
):
    return funnel.list_all_orders(status=status, limit=limit, offset=offset)


@router.post("/counters/reconcile", response_model=ReconcileOut)
def reconcile_counters(
    admin: CurrentUser = Depends(require_roles(*ADMIN_ROLES)),
    funnel: PurchaseFunnel = Depends(get_funnel),
):
    """Recomputes product counters from wishlist, order and view rows."""
    drifts = funnel.reconcile_counters()
    return {"fixed": len(drifts), "drifts": drifts}
