# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_ALWAYS_EAGER,
    COUNTER_RECONCILE_SECONDS,
)

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks have to be imported explicitly so the worker registers them
celery_app.conf.imports = (
    "storefront.tasks.reconcile",
    "storefront.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "reconcile-product-counters": {
        "task": "storefront.tasks.reconcile.reconcile_counters_task",
        "schedule": COUNTER_RECONCILE_SECONDS,
    },
}

celery_app.conf.timezone = "UTC"
celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
