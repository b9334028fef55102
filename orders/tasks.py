"""
Order Celery tasks.

Background sweeps for the approval window and suspicious order flags.
"""
from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task
def mark_delayed_orders():
    """
    Move pending orders past the approval window to delayed.

    Scheduled via Celery Beat to run every 15 minutes.
    """
    from orders.services import OrderWorkflowService

    logger.info("Checking for orders past the approval window...")
    delayed = OrderWorkflowService().delay_stale_orders()
    logger.info(f"Marked {delayed} orders as delayed")

    return {'delayed_count': delayed}


@shared_task
def clear_expired_suspicious_flags():
    """
    Clear suspicious flags whose detection window has passed.

    Scheduled via Celery Beat to run every 5 minutes.
    """
    from orders.services import SuspiciousOrderDetectionService

    cleared = SuspiciousOrderDetectionService().clear_expired_suspicious_orders()
    return {'cleared_count': cleared}
