"""
Celery configuration for the Agricart Co-op backend.

Background work handled here:
- Approval window sweeps (pending orders turning delayed)
- Expiring suspicious order flags
- Executing scheduled system-down lockouts
- Scheduling the daily price-lock
- Member earnings summaries
"""
import os
from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'core.settings')

app = Celery('core')

# Load config from Django settings with CELERY_ prefix
app.config_from_object('django.conf:settings', namespace='CELERY')

# Auto-discover tasks in all installed apps
app.autodiscover_tasks()


# =============================================================================
# CELERY BEAT SCHEDULE - Periodic Tasks
# =============================================================================
app.conf.beat_schedule = {
    # Pending orders past the approval window become delayed (every 15 minutes)
    'mark-delayed-orders': {
        'task': 'orders.tasks.mark_delayed_orders',
        'schedule': crontab(minute='*/15'),
    },

    # Expire suspicious flags older than the detection window (every 5 minutes)
    'clear-expired-suspicious-flags': {
        'task': 'orders.tasks.clear_expired_suspicious_flags',
        'schedule': crontab(minute='*/5'),
    },

    # Execute due scheduled lockouts (every minute)
    'execute-scheduled-lockouts': {
        'task': 'system_lockout.tasks.execute_scheduled_lockouts',
        'schedule': crontab(),
    },

    # Daily price-lock (DAILY_LOCKOUT_HOUR:DAILY_LOCKOUT_MINUTE)
    'schedule-daily-lockout': {
        'task': 'system_lockout.tasks.schedule_daily_lockout',
        'schedule': crontab(
            hour=os.getenv('DAILY_LOCKOUT_HOUR', '0'),
            minute=os.getenv('DAILY_LOCKOUT_MINUTE', '0'),
        ),
    },

    # Monthly member earnings summary (1st of month, 6 AM)
    'summarize-member-earnings': {
        'task': 'inventory.tasks.summarize_member_earnings',
        'schedule': crontab(hour=6, minute=0, day_of_month=1),
        'kwargs': {'period': 'monthly'},
    },
}

# Celery configuration
app.conf.update(
    # Task result expiry
    result_expires=3600,  # 1 hour

    # Task time limits
    task_time_limit=300,  # 5 minutes hard limit
    task_soft_time_limit=240,  # 4 minutes soft limit

    # Retry policy
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Prefetch multiplier (1 = fair distribution)
    worker_prefetch_multiplier=1,

    # Serialization
    task_serializer='json',
    result_serializer='json',
    accept_content=['json'],

    timezone=os.getenv('TIME_ZONE', 'Asia/Manila'),
    enable_utc=True,
)
