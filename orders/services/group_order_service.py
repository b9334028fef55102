"""
Group Order Service

Bulk handling of a customer's suspicious order group:
- Group verdict (approve or reject every order, all or nothing)
- Group rejection
- Merging the group into its oldest order
"""

from decimal import Decimal
import logging

from django.db import transaction

from core import system_logger
from orders.models import Order, OrderItem, MERGED_NOTE_PREFIX
from orders.services.exceptions import GroupVerdictError
from orders.services.order_workflow import OrderWorkflowService

logger = logging.getLogger(__name__)

MAX_NOTES_LENGTH = 1000
DEFAULT_VERDICT_REJECT_NOTE = 'Rejected as part of group verdict'
DEFAULT_GROUP_REJECT_NOTE = 'Rejected as part of suspicious order group'


class GroupOrderService:
    """Service for applying admin decisions to order groups"""

    VERDICTS = ('approve', 'reject')

    def __init__(self):
        self.workflow = OrderWorkflowService()

    def _load(self, order_ids):
        order_ids = list(dict.fromkeys(order_ids or []))
        if not order_ids:
            raise ValueError("At least one order is required.")

        orders = list(
            Order.objects.select_for_update()
            .filter(id__in=order_ids)
            .order_by('created_at', 'id')
        )
        missing = set(order_ids) - {order.id for order in orders}
        if missing:
            raise ValueError(f"Orders not found: {', '.join(str(i) for i in sorted(missing))}")
        return orders

    @transaction.atomic
    def apply_group_verdict(self, order_ids, verdict, admin, admin_notes=None):
        """
        Approve or reject every order in a group.

        Each order goes through the normal approve/reject path. If any order
        fails, nothing is committed.

        Raises:
            GroupVerdictError: one or more orders failed
            ValueError: invalid request
        """
        if verdict not in self.VERDICTS:
            raise ValueError(f"Invalid verdict: {verdict}")
        if admin_notes and len(admin_notes) > MAX_NOTES_LENGTH:
            raise ValueError(f"Admin notes cannot exceed {MAX_NOTES_LENGTH} characters.")

        orders = self._load(order_ids)

        if len({order.customer_id for order in orders}) > 1:
            raise ValueError("Cannot apply group verdict to orders from different customers.")
        if any(order.status not in Order.OPEN_STATUSES for order in orders):
            raise ValueError(
                "Some orders cannot be processed. Only pending or delayed orders "
                "can be approved/rejected."
            )

        failures = []
        for order in orders:
            try:
                with transaction.atomic():
                    if verdict == 'approve':
                        self.workflow.approve(order, admin, admin_notes or None)
                    else:
                        self.workflow.reject(order, admin, admin_notes or DEFAULT_VERDICT_REJECT_NOTE)
            except ValueError as e:
                failures.append({'order_id': order.id, 'message': str(e)})

        if failures:
            lines = [f"Order #{f['order_id']}: {f['message']}" for f in failures]
            logger.warning(f"Group verdict '{verdict}' failed for orders {[f['order_id'] for f in failures]}")
            raise GroupVerdictError("Failed to process some orders:\n" + "\n".join(lines), failures)

        system_logger.log_admin_activity(
            f'group_{verdict}',
            admin.id,
            context={'order_ids': [order.id for order in orders]},
        )
        logger.info(f"Group verdict '{verdict}' applied to {len(orders)} orders")
        return len(orders)

    @transaction.atomic
    def reject_group(self, order_ids, admin, admin_notes=None):
        """
        Reject every order in a suspicious group.

        Returns:
            Number of rejected orders
        """
        orders = self._load(order_ids)

        if any(order.status not in Order.OPEN_STATUSES for order in orders):
            raise ValueError(
                "Can only reject orders with pending or delayed status."
            )

        reason = admin_notes or DEFAULT_GROUP_REJECT_NOTE
        for order in orders:
            self.workflow.reject(order, admin, reason)

        system_logger.log_admin_activity(
            'group_reject',
            admin.id,
            context={'order_ids': [order.id for order in orders], 'reason': reason},
        )
        return len(orders)

    @transaction.atomic
    def merge_group(self, order_ids, admin, admin_notes=None):
        """
        Merge a group into its oldest order.

        Items move to the primary order with their reservations untouched.
        The primary order stays pending for approval; the rest become merged.

        Returns:
            Primary Order
        """
        orders = self._load(order_ids)
        if len(orders) < 2:
            raise ValueError("At least 2 orders are required to merge.")

        if len({order.customer_id for order in orders}) > 1:
            raise ValueError("Cannot merge orders from different customers.")
        if any(order.status not in Order.OPEN_STATUSES for order in orders):
            raise ValueError("Can only merge orders with pending or delayed status.")

        primary, secondaries = orders[0], orders[1:]
        merged_ids = [order.id for order in orders]

        OrderItem.objects.filter(order__in=secondaries).update(order=primary)

        note = f"{MERGED_NOTE_PREFIX} {', '.join(str(i) for i in merged_ids)}"
        if admin_notes:
            note += f" | Admin notes: {admin_notes}"

        primary.subtotal = sum((order.subtotal for order in orders), Decimal('0'))
        primary.update_shares()
        primary.admin_notes = note
        primary.admin = admin
        primary.status = Order.Status.PENDING
        primary.is_suspicious = False
        primary.suspicious_reason = None
        primary.save()

        for order in secondaries:
            order.status = Order.Status.MERGED
            order.admin_notes = f"Merged into order #{primary.id}"
            order.admin = admin
            order.is_suspicious = False
            order.suspicious_reason = None
            order.save()

        system_logger.log_order_status_change(
            order_id=primary.id,
            old_status='suspicious',
            new_status=primary.status,
            user_id=admin.id,
            user_type=admin.type,
            context={
                'action': 'order_merge',
                'merged_order_ids': merged_ids,
                'new_total_amount': str(primary.total_amount),
            },
        )
        logger.info(f"Merged orders {merged_ids} into order #{primary.id}")
        return primary

    def group_summary(self, order_ids):
        orders = list(
            Order.objects.filter(id__in=order_ids)
            .select_related('customer')
            .order_by('created_at', 'id')
        )
        if not orders:
            raise ValueError("No orders found.")

        first, last = orders[0], orders[-1]
        customer = first.customer
        return {
            'customer': {
                'id': customer.id,
                'name': customer.display_name,
                'email': customer.email,
            },
            'total_orders': len(orders),
            'total_amount': sum((order.total_amount for order in orders), Decimal('0')),
            'time_span_minutes': int((last.created_at - first.created_at).total_seconds() // 60),
            'first_order_time': first.created_at,
            'last_order_time': last.created_at,
        }
