# storefront/services/notification_service.py
from kombu.exceptions import OperationalError as BrokerError

from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Order notifications.
    Uses Celery so the request never waits on mail delivery.
    """

    @staticmethod
    def send_order_notification(user_id: int, order_id: int) -> bool:
        """
        Called after the order committed. A broker outage must not look like a
        failed checkout, so it is logged and reported as False.
        """
        try:
            send_order_notification_task.delay(user_id, order_id)
        except BrokerError as e:
            logger.warning(f"Could not queue notification for order {order_id}: {e}")
            return False
        return True


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_id: int):
    """
    Celery task, the mail transport lives outside this service.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} placed, status pending")
    return {"user_id": user_id, "order_id": order_id, "status": "sent"}
