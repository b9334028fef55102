"""
System lockout Celery tasks.
"""
from celery import shared_task
from django.conf import settings
from django.utils import timezone
import logging

logger = logging.getLogger(__name__)


@shared_task
def execute_scheduled_lockouts():
    """
    Execute scheduled lockouts whose time has come.

    Scheduled via Celery Beat to run every minute.
    """
    from system_lockout.services import LockoutService

    executed = LockoutService.execute_due_lockouts()
    if executed:
        logger.info(f"Executed {executed} scheduled lockouts")

    return {'executed_count': executed}


@shared_task
def schedule_daily_lockout():
    """
    Schedule today's price-lock.

    Scheduled via Celery Beat at DAILY_LOCKOUT_HOUR:DAILY_LOCKOUT_MINUTE.
    Nothing is scheduled when the daily lockout is disabled, when today is
    already locked, or when a lockout for today is already pending.
    """
    from system_lockout.models import SystemSchedule, SystemTracking

    if not settings.DAILY_LOCKOUT_ENABLED:
        logger.info("Daily lockout is disabled, skipping")
        return {'scheduled': False, 'reason': 'disabled'}

    if SystemSchedule.is_customer_lockout_active():
        logger.info("System is already locked today, skipping daily lockout")
        return {'scheduled': False, 'reason': 'already_locked'}

    today = timezone.localdate()
    pending = SystemTracking.get_all_scheduled_lockouts().filter(
        scheduled_at__date=today
    ).exists()
    if pending:
        logger.info("A lockout is already pending for today, skipping daily lockout")
        return {'scheduled': False, 'reason': 'already_pending'}

    lockout = SystemTracking.schedule_lockout(
        timezone.now(),
        'Daily price review lockout',
        {'source': 'daily'},
    )
    logger.info(f"Scheduled daily lockout {lockout.id} at {lockout.scheduled_at}")

    return {'scheduled': True, 'tracking_id': lockout.id}
