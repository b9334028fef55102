"""
Tests for suspicious order groups: verdicts, rejection and merging.

A group verdict is all or nothing: if any order fails, no order in the
group changes. Merging moves every item into the oldest order, which then
goes through normal approval.
"""

import pytest
from datetime import timedelta
from decimal import Decimal
from django.utils import timezone
from rest_framework import status

from orders.models import Order
from orders.services import (
    AuditTrailService,
    GroupOrderService,
    GroupVerdictError,
    OrderWorkflowService,
)


@pytest.fixture
def burst(make_order, stock):
    """Two suspicious orders placed three minutes apart."""
    now = timezone.now()
    first = make_order([(stock, 2)], created_at=now - timedelta(minutes=3))
    second = make_order([(stock, 1)], created_at=now)
    Order.objects.filter(pk__in=[first.pk, second.pk]).update(
        is_suspicious=True, suspicious_reason='2 orders placed within 10 minutes'
    )
    first.refresh_from_db()
    second.refresh_from_db()
    return first, second


# ==============================================================================
# GROUP VERDICT
# ==============================================================================

@pytest.mark.django_db
class TestGroupVerdict:

    def test_approve_all(self, burst, admin_user, stock):
        first, second = burst

        count = GroupOrderService().apply_group_verdict([first.id, second.id], 'approve', admin_user)

        assert count == 2
        assert set(Order.objects.values_list('status', flat=True)) == {Order.Status.APPROVED}
        assert not Order.objects.filter(is_suspicious=True).exists()
        stock.refresh_from_db()
        assert stock.sold_quantity == Decimal('3')

    def test_reject_all_uses_default_note(self, burst, admin_user, stock):
        first, second = burst

        GroupOrderService().apply_group_verdict([first.id, second.id], 'reject', admin_user)

        first.refresh_from_db()
        assert first.status == Order.Status.REJECTED
        assert first.admin_notes == 'Rejected as part of group verdict'
        stock.refresh_from_db()
        assert stock.pending_order_qty == Decimal('0')

    def test_failure_rolls_back_whole_group(self, burst, admin_user, stock):
        first, second = burst
        # The first order is unlinked from stock, so approving it fails
        first.items.update(stock=None)

        with pytest.raises(GroupVerdictError) as exc:
            GroupOrderService().apply_group_verdict([first.id, second.id], 'approve', admin_user)

        assert [f['order_id'] for f in exc.value.failures] == [first.id]
        second.refresh_from_db()
        assert second.status == Order.Status.PENDING
        stock.refresh_from_db()
        assert stock.sold_quantity == Decimal('0')

    def test_orders_from_different_customers(self, make_order, stock, other_customer, admin_user):
        mine = make_order([(stock, 1)])
        theirs = make_order([(stock, 1)], customer=other_customer)

        with pytest.raises(ValueError, match="different customers"):
            GroupOrderService().apply_group_verdict([mine.id, theirs.id], 'approve', admin_user)

    def test_closed_orders_in_group(self, burst, admin_user):
        first, second = burst
        Order.objects.filter(pk=first.pk).update(status=Order.Status.CANCELLED)

        with pytest.raises(ValueError, match="Only pending or delayed orders can be approved/rejected"):
            GroupOrderService().apply_group_verdict([first.id, second.id], 'approve', admin_user)

    def test_missing_orders(self, burst, admin_user):
        first, _ = burst

        with pytest.raises(ValueError, match="Orders not found: 999999"):
            GroupOrderService().apply_group_verdict([first.id, 999999], 'approve', admin_user)

    def test_verdict_endpoint_reports_failures(self, admin_client, burst):
        first, second = burst
        first.items.update(stock=None)

        response = admin_client.post('/api/admin/orders/group-verdict/', {
            'order_ids': [first.id, second.id],
            'verdict': 'approve',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['failures'][0]['order_id'] == first.id

    def test_verdict_endpoint_success(self, admin_client, burst):
        first, second = burst

        response = admin_client.post('/api/admin/orders/group-verdict/', {
            'order_ids': [first.id, second.id],
            'verdict': 'reject',
            'admin_notes': 'Duplicate orders',
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['processed_count'] == 2


# ==============================================================================
# GROUP REJECT & MERGE
# ==============================================================================

@pytest.mark.django_db
class TestGroupRejectAndMerge:

    def test_reject_group(self, admin_client, burst):
        first, second = burst

        response = admin_client.post('/api/admin/orders/group/reject/', {
            'order_ids': [first.id, second.id],
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['rejected_count'] == 2
        first.refresh_from_db()
        assert first.admin_notes == 'Rejected as part of suspicious order group'

    def test_merge_into_oldest_order(self, burst, admin_user, stock):
        first, second = burst

        primary = GroupOrderService().merge_group([second.id, first.id], admin_user, 'Same address')

        assert primary.id == first.id
        assert primary.status == Order.Status.PENDING
        assert primary.is_merged_order
        assert primary.admin_notes == f'Merged from orders: {first.id}, {second.id} | Admin notes: Same address'
        assert primary.items.count() == 2
        assert primary.subtotal == Decimal('150.00')
        assert primary.total_amount == Decimal('165.00')
        assert not primary.is_suspicious

        second.refresh_from_db()
        assert second.status == Order.Status.MERGED
        assert second.admin_notes == f'Merged into order #{first.id}'

        # Reservations moved with the items
        stock.refresh_from_db()
        assert stock.pending_order_qty == Decimal('3')

    def test_merged_order_approves_items_on_same_stock(self, burst, admin_user, stock):
        first, second = burst
        primary = GroupOrderService().merge_group([first.id, second.id], admin_user)

        OrderWorkflowService().approve(primary, admin_user, 'Checked')

        primary.refresh_from_db()
        assert primary.status == Order.Status.APPROVED
        assert primary.admin_notes.endswith('| Checked')
        stock.refresh_from_db()
        assert stock.quantity == Decimal('7')
        assert stock.pending_order_qty == Decimal('0')

        audit = AuditTrailService().validate_multi_member_audit_trails(primary)
        assert audit['is_complete'] is True
        assert audit['total_entries'] == 2

    def test_merge_requires_two_orders(self, admin_client, burst):
        first, _ = burst

        response = admin_client.post('/api/admin/orders/group/merge/', {
            'order_ids': [first.id],
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_merge_rejects_repeated_id(self, admin_client, burst, admin_user):
        first, _ = burst

        with pytest.raises(ValueError, match="At least 2 orders are required to merge."):
            GroupOrderService().merge_group([first.id, first.id], admin_user)

        first.refresh_from_db()
        assert first.admin_notes is None
        assert first.status == Order.Status.PENDING

        response = admin_client.post('/api/admin/orders/group/merge/', {
            'order_ids': [first.id, first.id],
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        first.refresh_from_db()
        assert not first.is_merged_order

    def test_group_summary_endpoint(self, admin_client, burst, customer_user):
        first, second = burst

        response = admin_client.get(f'/api/admin/orders/group/?orders={first.id},{second.id}')

        assert response.status_code == status.HTTP_200_OK
        summary = response.data['summary']
        assert summary['total_orders'] == 2
        assert summary['customer']['id'] == customer_user.id
        assert summary['time_span_minutes'] == 3


# ==============================================================================
# AUDIT TRAIL
# ==============================================================================

@pytest.mark.django_db
class TestAuditTrail:

    def test_multi_member_summary(self, make_order, make_stock, other_member, admin_user):
        first = make_stock('5')
        second = make_stock('5', member=other_member)
        order = make_order([(first, 2), (second, 1)])
        OrderWorkflowService().approve(order, admin_user)

        summary = AuditTrailService().get_multi_member_order_summary(order)

        assert summary['total_members_involved'] == 2
        revenue = {m['member_id']: m['total_revenue'] for m in summary['members']}
        assert revenue[first.member_id] == Decimal('100.00')
        assert revenue[second.member_id] == Decimal('50.00')

    def test_duplicate_stock_in_plain_order_is_flagged(self, make_order, stock):
        order = make_order([(stock, 1), (stock, 1)])

        audit = AuditTrailService().validate_multi_member_audit_trails(order)

        assert audit['is_complete'] is False
        assert audit['duplicate_member_stocks'][0]['count'] == 2
