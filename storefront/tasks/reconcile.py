# storefront/tasks/reconcile.py
from storefront.celery_worker import celery_app
from storefront.services.funnel_service import PurchaseFunnel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.reconcile.reconcile_counters_task")
def reconcile_counters_task():
    logger.info("Counter reconciliation task started")

    drifts = PurchaseFunnel().reconcile_counters()

    logger.info(f"Counter reconciliation task fixed {len(drifts)} counters")
    return {"fixed": len(drifts)}
