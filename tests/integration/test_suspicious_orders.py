"""
Tests for suspicious order detection.

A customer placing several orders inside the detection window gets the
whole burst flagged for group review; orders placed right after a merged
order are flagged on their own and linked to it.
"""

import pytest
from datetime import timedelta
from django.test import override_settings
from django.utils import timezone
from rest_framework import status

from orders.models import Order
from orders.services import SuspiciousOrderDetectionService


@pytest.fixture
def detector():
    return SuspiciousOrderDetectionService(window_minutes=10, min_orders=2)


# ==============================================================================
# DETECTION
# ==============================================================================

@pytest.mark.django_db
class TestBurstDetection:

    def test_single_order_is_not_suspicious(self, detector, make_order, stock):
        order = make_order([(stock, 2)])

        assert detector.detect_and_mark(order) is None
        order.refresh_from_db()
        assert not order.is_suspicious

    def test_two_orders_in_window_are_flagged(self, detector, make_order, stock):
        now = timezone.now()
        first = make_order([(stock, 2)], created_at=now - timedelta(minutes=4))
        second = make_order([(stock, 1)], created_at=now)

        result = detector.detect_and_mark(second)

        assert result['order_ids'] == [first.id, second.id]
        assert result['reason'].startswith('2 orders placed within 10 minutes')
        first.refresh_from_db()
        second.refresh_from_db()
        assert first.is_suspicious and second.is_suspicious
        assert first.suspicious_reason == second.suspicious_reason

    def test_orders_outside_window_are_ignored(self, detector, make_order, stock):
        now = timezone.now()
        make_order([(stock, 2)], created_at=now - timedelta(minutes=30))
        latest = make_order([(stock, 1)], created_at=now)

        assert detector.detect_and_mark(latest) is None

    @override_settings(SUSPICIOUS_ORDER_WINDOW_MINUTES=10)
    def test_zero_window_is_kept(self, make_order, stock):
        zero = SuspiciousOrderDetectionService(window_minutes=0, min_orders=2)
        assert zero.window == timedelta(0)

        now = timezone.now()
        make_order([(stock, 2)], created_at=now - timedelta(minutes=1))
        latest = make_order([(stock, 1)], created_at=now)

        assert zero.detect_and_mark(latest) is None
        latest.refresh_from_db()
        assert not latest.is_suspicious

    def test_other_customers_do_not_count(self, detector, make_order, stock, other_customer):
        now = timezone.now()
        make_order([(stock, 2)], customer=other_customer, created_at=now - timedelta(minutes=1))
        latest = make_order([(stock, 1)], created_at=now)

        assert detector.detect_and_mark(latest) is None

    def test_closed_orders_do_not_count(self, detector, make_order, stock):
        now = timezone.now()
        make_order([(stock, 2)], status=Order.Status.CANCELLED, created_at=now - timedelta(minutes=2))
        latest = make_order([(stock, 1)], created_at=now)

        assert detector.detect_and_mark(latest) is None

    def test_order_after_merged_order_is_linked(self, detector, make_order, stock):
        now = timezone.now()
        merged = make_order([(stock, 3)], created_at=now - timedelta(minutes=5))
        merged.admin_notes = 'Merged from orders: 1, 2'
        merged.save()
        follow_up = make_order([(stock, 1)], created_at=now)

        result = detector.detect_and_mark(follow_up)

        assert result['order_ids'] == [follow_up.id]
        assert result['linked_merged_order_id'] == merged.id
        follow_up.refresh_from_db()
        assert follow_up.is_suspicious
        assert follow_up.linked_merged_order_id == merged.id
        assert f'merged order #{merged.id}' in follow_up.suspicious_reason

    def test_stale_suspicious_order_starts_fresh_window(self, detector, make_order, stock):
        now = timezone.now()
        old = make_order([(stock, 1)], created_at=now - timedelta(minutes=15))
        Order.objects.filter(pk=old.pk).update(is_suspicious=True, suspicious_reason='earlier burst')
        latest = make_order([(stock, 1)], created_at=now)

        assert detector.detect_and_mark(latest) is None

    @override_settings(SUSPICIOUS_ORDER_WINDOW_MINUTES=10, SUSPICIOUS_ORDER_MIN_COUNT=2)
    def test_checkout_runs_detection(self, customer_user, make_order, stock, product):
        from orders.models import Cart, CartItem
        from orders.services import CheckoutService

        make_order([(stock, 2)], created_at=timezone.now() - timedelta(minutes=3))
        CartItem.objects.create(cart=Cart.for_customer(customer_user), product=product, category='Kilo', quantity=2)

        order = CheckoutService().checkout(customer_user, 'Purok 3')

        assert order.is_suspicious


# ==============================================================================
# CLEARING
# ==============================================================================

@pytest.mark.django_db
class TestClearing:

    def test_clear_expired_flags(self, detector, make_order, stock):
        now = timezone.now()
        old = make_order([(stock, 1)], created_at=now - timedelta(minutes=20))
        fresh = make_order([(stock, 1)], created_at=now - timedelta(minutes=2))
        Order.objects.filter(pk__in=[old.pk, fresh.pk]).update(is_suspicious=True, suspicious_reason='burst')

        cleared = detector.clear_expired_suspicious_orders()

        assert cleared == 1
        old.refresh_from_db()
        fresh.refresh_from_db()
        assert not old.is_suspicious
        assert fresh.is_suspicious

    def test_auto_clear_waits_for_whole_group(self, detector, make_order, stock):
        now = timezone.now()
        first = make_order([(stock, 1)], created_at=now - timedelta(minutes=2))
        second = make_order([(stock, 1)], created_at=now)
        Order.objects.filter(pk__in=[first.pk, second.pk]).update(is_suspicious=True, suspicious_reason='burst')

        Order.objects.filter(pk=first.pk).update(status=Order.Status.REJECTED)
        first.refresh_from_db()
        assert detector.auto_clear_suspicious_orders(first) == 0

        Order.objects.filter(pk=second.pk).update(status=Order.Status.REJECTED)
        assert detector.auto_clear_suspicious_orders(first) == 2

    def test_suspicious_list_endpoint(self, admin_client, make_order, stock):
        now = timezone.now()
        flagged = make_order([(stock, 1)], created_at=now - timedelta(minutes=1))
        make_order([(stock, 1)], created_at=now)
        Order.objects.filter(pk=flagged.pk).update(is_suspicious=True, suspicious_reason='burst')

        response = admin_client.get('/api/admin/orders/suspicious/')

        assert response.status_code == status.HTTP_200_OK
        assert [row['id'] for row in response.data['results']] == [flagged.id]
