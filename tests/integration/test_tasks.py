"""
Tests for the Celery beat tasks.

Tasks are called directly; each returns a small summary dict.
"""

import pytest
from datetime import timedelta
from decimal import Decimal
from django.test import override_settings
from django.utils import timezone

from inventory.tasks import summarize_member_earnings
from orders.models import Order
from orders.tasks import clear_expired_suspicious_flags, mark_delayed_orders
from system_lockout.models import SystemSchedule, SystemTracking
from system_lockout.tasks import execute_scheduled_lockouts, schedule_daily_lockout


# ==============================================================================
# ORDER SWEEPS
# ==============================================================================

@pytest.mark.django_db
class TestOrderTasks:

    @override_settings(ORDER_DELAY_HOURS=24)
    def test_mark_delayed_orders(self, make_order, stock):
        make_order([(stock, 1)], created_at=timezone.now() - timedelta(hours=30))
        make_order([(stock, 1)])

        result = mark_delayed_orders()

        assert result == {'delayed_count': 1}
        assert Order.objects.filter(status=Order.Status.DELAYED).count() == 1

    @override_settings(SUSPICIOUS_ORDER_WINDOW_MINUTES=10)
    def test_clear_expired_suspicious_flags(self, make_order, stock):
        old = make_order([(stock, 1)], created_at=timezone.now() - timedelta(hours=1))
        Order.objects.filter(pk=old.pk).update(is_suspicious=True, suspicious_reason='burst')

        result = clear_expired_suspicious_flags()

        assert result == {'cleared_count': 1}
        old.refresh_from_db()
        assert not old.is_suspicious


# ==============================================================================
# MEMBER EARNINGS
# ==============================================================================

@pytest.mark.django_db
class TestMemberEarnings:

    @override_settings(COOP_SHARE_RATE=0.10)
    def test_summarize_sold_stock(self, make_stock, member_user, other_member):
        sold = make_stock('10')
        sold.sold_quantity = Decimal('3')
        sold.save()
        make_stock('5', member=other_member)

        result = summarize_member_earnings('monthly')

        assert result['period'] == 'monthly'
        assert result['members'] == 1
        assert result['earnings'] == [{
            'member_id': member_user.id,
            'total_earnings': '150.0000',
            'coop_share': '15.00',
        }]

    def test_unknown_period(self):
        with pytest.raises(ValueError, match="Unknown earnings period: hourly"):
            summarize_member_earnings('hourly')


# ==============================================================================
# LOCKOUT TASKS
# ==============================================================================

@pytest.mark.django_db
class TestLockoutTasks:

    def test_execute_scheduled_lockouts(self):
        SystemTracking.schedule_lockout(timezone.now() - timedelta(minutes=1))

        assert execute_scheduled_lockouts() == {'executed_count': 1}
        assert SystemSchedule.is_customer_lockout_active()

    @override_settings(DAILY_LOCKOUT_ENABLED=True)
    def test_schedule_daily_lockout(self):
        result = schedule_daily_lockout()

        assert result['scheduled'] is True
        lockout = SystemTracking.objects.get(pk=result['tracking_id'])
        assert lockout.description == 'Daily price review lockout'
        assert lockout.metadata == {'source': 'daily'}

        # The lockout is due at once and runs on the next sweep
        assert execute_scheduled_lockouts() == {'executed_count': 1}

    @override_settings(DAILY_LOCKOUT_ENABLED=False)
    def test_disabled(self):
        assert schedule_daily_lockout() == {'scheduled': False, 'reason': 'disabled'}
        assert not SystemTracking.objects.exists()

    @override_settings(DAILY_LOCKOUT_ENABLED=True)
    def test_already_locked(self):
        SystemSchedule.get_or_create_today_record().initiate_lockout()

        assert schedule_daily_lockout() == {'scheduled': False, 'reason': 'already_locked'}

    @override_settings(DAILY_LOCKOUT_ENABLED=True)
    def test_already_pending(self):
        SystemTracking.schedule_lockout(timezone.now())

        assert schedule_daily_lockout() == {'scheduled': False, 'reason': 'already_pending'}
        assert SystemTracking.objects.count() == 1
