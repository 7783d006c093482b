# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.domain.schemas import Order
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Out-of-band customer notifications.
    Uses Celery for asynchronous processing; a broker outage is logged, never
    raised into checkout or the lifecycle driver.
    """

    @staticmethod
    def order_placed(order: Order):
        try:
            send_order_notification_task.apply_async(
                args=(order.user_id, order.id, order.restaurant_name), retry=False
            )
        except Exception as e:
            logger.warning(f"Could not queue placed-notification for order {order.id}: {e}")

    @staticmethod
    def status_changed(order: Order):
        try:
            # runs on the driver thread, no publish retries
            send_status_notification_task.apply_async(args=(order.user_id, order.id, order.status.value), retry=False)
        except Exception as e:
            logger.warning(f"Could not queue status-notification for order {order.id}: {e}")


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_id: int, restaurant_name: str):
    """
    In a real deployment this would send email/SMS/push.
    For now it only logs.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} from {restaurant_name} confirmed")
    return {"user_id": user_id, "order_id": order_id, "status": "sent"}


STATUS_MESSAGES = {
    "preparing": "is being prepared",
    "picked_up": "was picked up by the driver",
    "on_the_way": "is on the way",
    "delivered": "was delivered, enjoy your meal",
    "cancelled": "was cancelled",
}


@celery_app.task(name="storefront.services.notification_service.send_status_notification_task")
def send_status_notification_task(user_id: int, order_id: int, status: str):
    message = STATUS_MESSAGES.get(status, f"is now {status}")
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} {message}")
    return {"user_id": user_id, "order_id": order_id, "status": status}
