"""
Tests for the admin order review workflow.

Approval converts each item's reservation into a sale and writes the stock
trail; rejection releases reservations (or reverses sales of approved
orders); customers may cancel while the order is still open.
"""

import pytest
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch
from django.test import override_settings
from django.utils import timezone
from rest_framework import status

from inventory.models import StockTrail
from orders.models import Order
from orders.services import InsufficientStockError, OrderWorkflowService


# ==============================================================================
# APPROVAL
# ==============================================================================

@pytest.mark.django_db
class TestApprove:

    def test_approve_converts_reservations_into_sales(self, make_order, make_stock, other_member, admin_user, customer_user):
        first = make_stock('3')
        second = make_stock('10', member=other_member)
        order = make_order([(first, 3), (second, 2)])

        OrderWorkflowService().approve(order, admin_user, 'Verified')

        order.refresh_from_db()
        assert order.status == Order.Status.APPROVED
        assert order.delivery_status == Order.DeliveryStatus.PENDING
        assert order.admin == admin_user
        assert order.admin_notes == 'Verified'

        first.refresh_from_db()
        second.refresh_from_db()
        assert (first.quantity, first.sold_quantity, first.pending_order_qty) == (Decimal('0'), Decimal('3'), Decimal('0'))
        assert (second.quantity, second.sold_quantity, second.pending_order_qty) == (Decimal('8'), Decimal('2'), Decimal('0'))
        assert first.status == 'sold'
        assert second.status == 'partial'
        assert second.last_customer == customer_user

    def test_approve_fills_item_audit_columns(self, make_order, stock, admin_user, member_user):
        order = make_order([(stock, 4)])

        OrderWorkflowService().approve(order, admin_user)

        item = order.items.get()
        assert item.member == member_user
        assert item.product_name == 'Tomato'
        assert item.available_stock_after_sale == Decimal('6')

    def test_approve_writes_sale_and_completed_trails(self, make_order, make_stock, admin_user):
        partial = make_stock('10')
        emptied = make_stock('2')
        order = make_order([(partial, 1), (emptied, 2)])

        OrderWorkflowService().approve(order, admin_user)

        assert list(
            StockTrail.objects.filter(stock=partial).values_list('action_type', flat=True)
        ) == [StockTrail.ActionType.SALE]
        assert set(
            StockTrail.objects.filter(stock=emptied).values_list('action_type', flat=True)
        ) == {StockTrail.ActionType.SALE, StockTrail.ActionType.COMPLETED}

    def test_insufficient_stock_blocks_whole_order(self, make_order, make_stock, admin_user):
        ok = make_stock('10')
        short = make_stock('5')
        order = make_order([(ok, 2), (short, 4)])
        # Admin edits the stock down after checkout
        short.quantity = Decimal('3')
        short.save()

        with pytest.raises(InsufficientStockError) as exc:
            OrderWorkflowService().approve(order, admin_user)

        assert exc.value.items[0]['shortage'] == Decimal('1')
        assert 'Requested 4.00, Available 3.00, Shortage 1.00' in str(exc.value)

        ok.refresh_from_db()
        order.refresh_from_db()
        assert ok.quantity == Decimal('10')
        assert order.status == Order.Status.PENDING

    def test_unlinked_items_block_approval(self, make_order, stock, admin_user):
        order = make_order([(stock, 2)])
        order.items.update(stock=None)

        with pytest.raises(ValueError, match="not properly linked to stock"):
            OrderWorkflowService().approve(order, admin_user)

    @pytest.mark.parametrize('order_status,message', [
        (Order.Status.CANCELLED, "Cannot approve a cancelled order."),
        (Order.Status.REJECTED, "Only pending or delayed orders can be approved."),
    ])
    def test_closed_orders_cannot_be_approved(self, make_order, stock, admin_user, order_status, message):
        order = make_order([(stock, 1)], status=order_status)

        with pytest.raises(ValueError, match=message):
            OrderWorkflowService().approve(order, admin_user)

    def test_delayed_orders_can_be_approved(self, make_order, stock, admin_user):
        order = make_order([(stock, 1)], status=Order.Status.DELAYED)

        OrderWorkflowService().approve(order, admin_user)

        order.refresh_from_db()
        assert order.status == Order.Status.APPROVED

    def test_approval_notifies_customer_and_members(self, make_order, stock, admin_user, customer_user, member_user):
        order = make_order([(stock, 1)])

        with patch('orders.services.order_workflow.system_logger.log_notification') as notify:
            OrderWorkflowService().approve(order, admin_user)

        recipients = {call.args[0]: call.args[1] for call in notify.call_args_list}
        assert recipients[customer_user.id] == 'order_approved'
        assert recipients[member_user.id] == 'product_sale'


# ==============================================================================
# REJECTION & CANCELLATION
# ==============================================================================

@pytest.mark.django_db
class TestRejectAndCancel:

    def test_reject_pending_releases_reservation(self, make_order, stock, admin_user):
        order = make_order([(stock, 4)])

        OrderWorkflowService().reject(order, admin_user, 'Customer unreachable')

        stock.refresh_from_db()
        order.refresh_from_db()
        assert stock.pending_order_qty == Decimal('0')
        assert stock.quantity == Decimal('10')
        assert order.status == Order.Status.REJECTED
        assert order.admin_notes == 'Customer unreachable'

    def test_reject_approved_reverses_sale(self, make_order, stock, admin_user):
        order = make_order([(stock, 4)])
        service = OrderWorkflowService()
        service.approve(order, admin_user)

        service.reject(order, admin_user, 'Payment issue')

        stock.refresh_from_db()
        assert stock.quantity == Decimal('10')
        assert stock.sold_quantity == Decimal('0')
        assert StockTrail.objects.filter(stock=stock, action_type=StockTrail.ActionType.REVERSAL).exists()

    def test_reject_requires_notes(self, make_order, stock, admin_user):
        order = make_order([(stock, 1)])

        with pytest.raises(ValueError, match="Admin notes are required"):
            OrderWorkflowService().reject(order, admin_user, '  ')

    def test_delivered_order_cannot_be_rejected(self, make_order, stock, admin_user):
        order = make_order([(stock, 1)], status=Order.Status.APPROVED)
        Order.objects.filter(pk=order.pk).update(delivery_status=Order.DeliveryStatus.DELIVERED)

        with pytest.raises(ValueError, match="Cannot reject a delivered order."):
            OrderWorkflowService().reject(order, admin_user, 'Too late')

    def test_customer_cancel_releases_reservation(self, customer_client, make_order, stock):
        order = make_order([(stock, 3)])

        response = customer_client.post(f'/api/customer/orders/{order.id}/cancel/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['order']['status'] == 'cancelled'
        stock.refresh_from_db()
        assert stock.pending_order_qty == Decimal('0')

    def test_customer_cannot_cancel_approved_order(self, customer_client, make_order, stock, admin_user):
        order = make_order([(stock, 3)])
        OrderWorkflowService().approve(order, admin_user)

        response = customer_client.post(f'/api/customer/orders/{order.id}/cancel/')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'Cannot cancel order with status: approved'

    def test_customer_cannot_cancel_someone_elses_order(self, make_order, stock, other_customer):
        order = make_order([(stock, 1)])

        with pytest.raises(ValueError, match="You can only cancel your own orders."):
            OrderWorkflowService().cancel_by_customer(order, other_customer)


# ==============================================================================
# APPROVAL WINDOW
# ==============================================================================

@pytest.mark.django_db
class TestApprovalWindow:

    @override_settings(ORDER_URGENT_HOURS=16, ORDER_DELAY_HOURS=24)
    def test_urgency_by_age(self, make_order, stock):
        fresh = make_order([(stock, 1)])
        aging = make_order([(stock, 1)], created_at=timezone.now() - timedelta(hours=17))

        assert not fresh.is_urgent_now
        assert aging.is_urgent_now

    @override_settings(ORDER_DELAY_HOURS=24)
    def test_delay_stale_orders(self, make_order, stock):
        stale = make_order([(stock, 1)], created_at=timezone.now() - timedelta(hours=25))
        fresh = make_order([(stock, 1)], created_at=timezone.now() - timedelta(hours=2))

        assert OrderWorkflowService().delay_stale_orders() == 1

        stale.refresh_from_db()
        fresh.refresh_from_db()
        assert stale.status == Order.Status.DELAYED
        assert fresh.status == Order.Status.PENDING

    @override_settings(ORDER_DELAY_HOURS=24)
    def test_sweep_does_not_reopen_order_approved_meanwhile(self, make_order, stock, admin_user):
        order = make_order([(stock, 4)], created_at=timezone.now() - timedelta(hours=30))
        listed = list(Order.objects.filter(status=Order.Status.PENDING))

        OrderWorkflowService().approve(order, admin_user, 'Verified')

        assert listed[0].refresh_approval_window() is False
        assert listed[0].status == Order.Status.APPROVED

        order.refresh_from_db()
        assert order.status == Order.Status.APPROVED
        with pytest.raises(ValueError, match="Only pending or delayed orders can be approved."):
            OrderWorkflowService().approve(order, admin_user, 'Again')

        stock.refresh_from_db()
        assert stock.sold_quantity == Decimal('4')
        assert stock.quantity == Decimal('6')

    @override_settings(ORDER_DELAY_HOURS=24)
    def test_detail_endpoint_refreshes_window(self, admin_client, make_order, stock):
        order = make_order([(stock, 1)], created_at=timezone.now() - timedelta(hours=30))

        response = admin_client.get(f'/api/admin/orders/{order.id}/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['order']['status'] == 'delayed'
        assert response.data['can_approve'] is True
        assert response.data['has_sufficient_stock'] is True
        assert response.data['member_summary']['total_members_involved'] == 1

    def test_mark_urgent_endpoint(self, admin_client, make_order, stock):
        order = make_order([(stock, 1)])

        response = admin_client.post(f'/api/admin/orders/{order.id}/mark-urgent/')

        assert response.status_code == status.HTTP_200_OK
        order.refresh_from_db()
        assert order.is_urgent


# ==============================================================================
# ADMIN API
# ==============================================================================

@pytest.mark.django_db
class TestReviewEndpoints:

    def test_approve_endpoint(self, admin_client, make_order, stock):
        order = make_order([(stock, 2)])

        response = admin_client.post(f'/api/admin/orders/{order.id}/approve/', {}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['order']['status'] == 'approved'

    def test_approve_endpoint_reports_shortages(self, admin_client, make_order, stock):
        order = make_order([(stock, 6)])
        stock.quantity = Decimal('5')
        stock.save()

        response = admin_client.post(f'/api/admin/orders/{order.id}/approve/', {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'].startswith('Cannot approve order due to insufficient stock')
        assert response.data['insufficient_items'][0]['product_name'] == 'Tomato'

    def test_reject_endpoint_requires_notes(self, admin_client, make_order, stock):
        order = make_order([(stock, 2)])

        response = admin_client.post(f'/api/admin/orders/{order.id}/reject/', {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'admin_notes' in response.data

    def test_order_list_filters_by_status(self, admin_client, make_order, stock):
        pending = make_order([(stock, 1)])
        make_order([(stock, 1)], status=Order.Status.REJECTED)

        response = admin_client.get('/api/admin/orders/?status=pending')

        assert response.status_code == status.HTTP_200_OK
        assert [row['id'] for row in response.data['results']] == [pending.id]
