"""
System Lockout Service

Runs scheduled lockouts, answers "is the system locked?" for the gates and
applies admin decisions on the daily price-lock.
"""

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken

from core import system_logger
from system_lockout.models import SystemSchedule, SystemTracking

logger = logging.getLogger(__name__)

SCHEDULED_LOCKOUT_MESSAGE = (
    'System is temporarily unavailable due to scheduled maintenance. '
    'Please check back later.'
)
UNKNOWN_LOCKOUT_MESSAGE = 'System is temporarily unavailable. Please check back later.'


class LockoutActionUnavailable(ValueError):
    """The daily schedule is not in a state that allows the requested decision."""

    def __init__(self, message='Action not available at this time.'):
        super().__init__(message)


class LockoutService:
    """Service for system-down lockouts and daily price-lock decisions"""

    # ===== Execution =====

    @classmethod
    def execute_due_lockouts(cls):
        """
        Execute every scheduled lockout whose time has come.

        Each lockout runs in its own transaction: the tracking record becomes
        active, today's schedule is locked and customer sessions are revoked.

        Returns:
            Number of lockouts executed
        """
        executed = 0
        for lockout in list(SystemTracking.get_active_scheduled_lockouts()):
            with transaction.atomic():
                lockout = SystemTracking.objects.select_for_update().get(pk=lockout.pk)
                if not lockout.execute():
                    continue

                schedule = SystemSchedule.get_or_create_today_record()
                schedule.initiate_lockout()
                revoked = cls.logout_all_customers()

            executed += 1
            logger.info(f"Executed scheduled lockout {lockout.id}, revoked {revoked} customer tokens")
            system_logger.log_lockout_event('executed', {
                'tracking_id': lockout.id,
                'scheduled_at': lockout.scheduled_at.isoformat(),
                'system_date': schedule.system_date.isoformat(),
                'revoked_tokens': revoked,
            })

        return executed

    @staticmethod
    def logout_all_customers():
        """Blacklist every outstanding, unexpired customer refresh token."""
        User = get_user_model()
        tokens = OutstandingToken.objects.filter(
            user__type=User.UserType.CUSTOMER,
            expires_at__gt=timezone.now(),
            blacklistedtoken__isnull=True,
        )
        blacklisted = [BlacklistedToken(token=token) for token in tokens]
        BlacklistedToken.objects.bulk_create(blacklisted, ignore_conflicts=True)
        return len(blacklisted)

    # ===== Queries =====

    @staticmethod
    def is_locked_from_tracking():
        return SystemTracking.objects.due().exists()

    @classmethod
    def is_customer_access_blocked(cls):
        return SystemSchedule.is_customer_lockout_active() or cls.is_locked_from_tracking()

    @staticmethod
    def _daily_info(schedule):
        return {
            'type': 'daily',
            'date': schedule.system_date.isoformat(),
            'lockout_time': schedule.lockout_time.isoformat() if schedule.lockout_time else None,
            'admin_action': schedule.admin_action,
            'price_change_status': schedule.price_change_status,
            'message': schedule.lockout_message(),
        }

    @classmethod
    def get_lockout_info(cls):
        """Describe the lockout that currently blocks customers."""
        lockout = SystemTracking.objects.due().order_by('-scheduled_at').first()
        if lockout:
            lockout_time = lockout.executed_at or lockout.scheduled_at
            return {
                'type': 'scheduled',
                'date': timezone.localdate(lockout.scheduled_at).isoformat(),
                'lockout_time': lockout_time.isoformat(),
                'description': lockout.description,
                'message': lockout.description or SCHEDULED_LOCKOUT_MESSAGE,
                'status': lockout.status,
            }

        schedule = SystemSchedule.get_today_record()
        if schedule and not schedule.is_system_ready_for_customers:
            return cls._daily_info(schedule)

        return {'type': 'unknown', 'message': UNKNOWN_LOCKOUT_MESSAGE}

    @classmethod
    def get_mandatory_action_info(cls):
        """
        Describe the decision an admin must make before using the admin API.

        Returns:
            dict, or None when nothing is pending
        """
        for lockout in SystemTracking.objects.due():
            if lockout.requires_admin_action():
                return lockout.get_admin_modal_info()

        schedule = SystemSchedule.get_today_record()
        if schedule is None:
            return None

        if schedule.is_locked and schedule.is_admin_action_pending:
            info = cls._daily_info(schedule)
            info['status'] = schedule.admin_action
            info['admin_action_required'] = True
            return info

        if schedule.is_price_change_action_pending:
            info = cls._daily_info(schedule)
            info['price_change_confirmation_required'] = True
            return info

        return None

    # ===== Admin decisions =====

    @staticmethod
    def _lock_today():
        return SystemSchedule.objects.select_for_update().filter(
            system_date=timezone.localdate()
        ).first()

    @staticmethod
    def resolve_tracking(action, admin):
        """
        Record the admin decision on due tracking records.

        The records are completed once today's schedule lets customers back
        in; while a price change is still pending they stay active.

        Returns:
            Number of tracking records completed
        """
        schedule = SystemSchedule.get_today_record()
        ready = schedule is None or schedule.is_system_ready_for_customers

        completed = 0
        for lockout in SystemTracking.objects.select_for_update().due():
            lockout.record_admin_action(action, admin)
            if ready and lockout.complete():
                completed += 1
        return completed

    @classmethod
    def _finish_decision(cls, schedule, decision, tracking_action, admin):
        completed = cls.resolve_tracking(tracking_action, admin)
        logger.info(f"Admin {admin.id} chose {decision} for {schedule.system_date}")
        system_logger.log_lockout_event(decision, {
            'system_date': schedule.system_date.isoformat(),
            'admin_user_id': admin.id,
            'completed_tracking': completed,
            'customer_access': schedule.is_system_ready_for_customers,
        })
        system_logger.log_admin_activity(f'system_lockout.{decision}', admin.id, {
            'system_date': schedule.system_date.isoformat(),
        })
        return schedule

    @classmethod
    @transaction.atomic
    def keep_prices(cls, admin, tracking_action='keep_prices'):
        """Keep today's prices and restore customer access."""
        schedule = cls._lock_today()
        if schedule is None or not schedule.can_take_action:
            raise LockoutActionUnavailable()

        schedule.keep_prices_as_is(admin)
        return cls._finish_decision(schedule, 'keep_prices', tracking_action, admin)

    @classmethod
    @transaction.atomic
    def apply_price_changes(cls, admin, tracking_action='price_change'):
        """Start a price change. Customers stay locked out until it is finalized."""
        schedule = cls._lock_today()
        if schedule is None or not schedule.can_take_action:
            raise LockoutActionUnavailable()

        schedule.apply_price_changes(admin)
        return cls._finish_decision(schedule, 'apply_price_changes', tracking_action, admin)

    @classmethod
    @transaction.atomic
    def cancel_price_changes(cls, admin):
        schedule = cls._lock_today()
        if schedule is None or not schedule.is_price_change_action_pending:
            raise LockoutActionUnavailable()

        schedule.cancel_price_changes(admin)
        return cls._finish_decision(schedule, 'cancel_price_changes', 'price_change_cancelled', admin)

    @classmethod
    @transaction.atomic
    def approve_price_changes(cls, admin):
        schedule = cls._lock_today()
        if schedule is None or not schedule.is_price_change_action_pending:
            raise LockoutActionUnavailable()

        schedule.approve_price_changes(admin)
        return cls._finish_decision(schedule, 'approve_price_changes', 'price_change_approved', admin)
