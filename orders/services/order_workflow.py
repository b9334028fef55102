"""
Order Workflow Service

Manages the admin review and delivery track of customer orders:
- Approval (reservation becomes a sale on each member stock)
- Rejection (reservation released, or sale reversed if already approved)
- Customer cancellation
- Urgency flags
- Logistic assignment and delivery milestones
"""

from datetime import timedelta
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from core import system_logger
from inventory.models import Stock, StockTrail
from orders.models import Order, Sale
from orders.services.exceptions import InsufficientStockError
from orders.services.suspicious_order_service import SuspiciousOrderDetectionService

logger = logging.getLogger(__name__)

User = get_user_model()

PICKUP_CONFIRMATION = 'Confirm Pick Up'
DELIVERY_CONFIRMATION = 'I Confirm'


class OrderWorkflowService:
    """Service for moving orders through review and delivery"""

    def __init__(self):
        self.suspicious = SuspiciousOrderDetectionService()

    def _lock(self, order):
        return Order.objects.select_for_update().get(pk=order.pk)

    def _locked_stocks(self, items):
        stock_ids = {item.stock_id for item in items if item.stock_id}
        return {
            stock.id: stock
            for stock in Stock.objects.select_for_update().filter(id__in=stock_ids)
        }

    # =========================================================================
    # REVIEW
    # =========================================================================

    @transaction.atomic
    def approve(self, order, admin, admin_notes=None):
        """
        Approve a pending or delayed order.

        Each item's reservation is converted into a sale on its stock.
        Nothing is written if any item cannot be covered.

        Args:
            order: Order to approve
            admin: Admin/staff user
            admin_notes: Optional notes (appended for merged orders)

        Returns:
            Updated Order

        Raises:
            InsufficientStockError: some stock cannot cover its item
            ValueError: invalid status or unlinked items
        """
        order = self._lock(order)

        if order.status == Order.Status.CANCELLED:
            raise ValueError("Cannot approve a cancelled order.")
        if not order.can_approve:
            raise ValueError("Only pending or delayed orders can be approved.")

        items = list(order.items.select_related('product').order_by('id'))
        stocks = self._locked_stocks(items)

        shortages = order.get_insufficient_stock_items()
        if shortages:
            lines = [
                f"• {s['product_name']} ({s['category']}): Requested {s['requested_quantity']}, "
                f"Available {s['available_stock']}, Shortage {s['shortage']}"
                for s in shortages
            ]
            logger.warning(f"Order #{order.id} approval blocked: insufficient stock")
            raise InsufficientStockError(
                "Cannot approve order due to insufficient stock:\n" + "\n".join(lines),
                shortages,
            )

        if any(item.stock_id not in stocks for item in items):
            logger.error(f"Order #{order.id} approval blocked: items without stock")
            raise ValueError("Cannot approve order: Some items are not properly linked to stock.")

        is_merged = order.is_merged_order
        processed = set()
        members = set()

        for item in items:
            stock = stocks[item.stock_id]
            key = (stock.member_id, stock.id)

            # Merged orders can legitimately hold several items on one stock
            if not is_merged and key in processed:
                logger.error(
                    f"Duplicate stock processing skipped for order #{order.id}: "
                    f"member {stock.member_id}, stock #{stock.id}"
                )
                continue
            processed.add(key)
            members.add(stock.member_id)

            old_quantity = stock.quantity
            stock.process_pending_order_approval(item.quantity, customer=order.customer)

            StockTrail.record(
                stock,
                StockTrail.ActionType.SALE,
                old_quantity=old_quantity,
                new_quantity=stock.quantity,
                notes=f"Stock sold to customer (Order #{order.id}, Customer ID: {order.customer_id})",
                performed_by=admin,
            )

            item.member_id = stock.member_id
            item.product_name = item.product.name
            item.available_stock_after_sale = stock.quantity
            item.save(update_fields=[
                'member', 'product_name', 'available_stock_after_sale', 'updated_at'
            ])

            if stock.quantity == 0:
                system_logger.log_stock_update(
                    stock_id=stock.id,
                    product_id=stock.product_id,
                    old_quantity=old_quantity,
                    new_quantity=0,
                    user_id=admin.id,
                    user_type=admin.type,
                    action='stock_sold',
                    context={'order_id': order.id, 'member_id': stock.member_id},
                )
                StockTrail.record(
                    stock,
                    StockTrail.ActionType.COMPLETED,
                    old_quantity=old_quantity,
                    new_quantity=0,
                    notes=f"Stock fully sold (Order #{order.id})",
                    performed_by=admin,
                )
            else:
                system_logger.log_stock_update(
                    stock_id=stock.id,
                    product_id=stock.product_id,
                    old_quantity=old_quantity,
                    new_quantity=stock.quantity,
                    user_id=admin.id,
                    user_type=admin.type,
                    action='stock_partial_sale',
                    context={'order_id': order.id, 'member_id': stock.member_id},
                )

        if is_merged:
            if admin_notes:
                order.admin_notes = f"{order.admin_notes} | {admin_notes}"
        elif admin_notes:
            order.admin_notes = admin_notes

        old_status = order.status
        order.status = Order.Status.APPROVED
        order.delivery_status = Order.DeliveryStatus.PENDING
        order.admin = admin
        order.is_suspicious = False
        order.suspicious_reason = None
        order.save()

        self.suspicious.auto_clear_suspicious_orders(order)

        system_logger.log_order_status_change(
            order_id=order.id,
            old_status=old_status,
            new_status=order.status,
            user_id=admin.id,
            user_type=admin.type,
            context={'members_involved': sorted(members), 'is_merged_order': is_merged},
        )
        system_logger.log_notification(order.customer_id, 'order_approved', context={'order_id': order.id})
        for member_id in members:
            system_logger.log_notification(member_id, 'product_sale', context={'order_id': order.id})

        logger.info(f"Order #{order.id} approved by {admin.id}")
        return order

    @transaction.atomic
    def reject(self, order, admin, admin_notes):
        """
        Reject an order.

        Open orders release their reservations. Approved orders reverse the
        sale on each stock.
        """
        if not admin_notes or not admin_notes.strip():
            raise ValueError("Admin notes are required to reject an order.")

        order = self._lock(order)

        if order.status == Order.Status.CANCELLED:
            raise ValueError("Cannot reject a cancelled order.")
        if order.status in (Order.Status.REJECTED, Order.Status.MERGED):
            raise ValueError(f"Cannot reject order with status: {order.status}")
        if order.delivery_status == Order.DeliveryStatus.DELIVERED:
            raise ValueError("Cannot reject a delivered order.")

        was_approved = order.status == Order.Status.APPROVED
        items = list(order.items.order_by('id'))
        stocks = self._locked_stocks(items)

        for item in items:
            stock = stocks.get(item.stock_id)
            if stock is None:
                continue

            if was_approved:
                old_quantity = stock.quantity
                stock.reverse_sale(item.quantity)
                StockTrail.record(
                    stock,
                    StockTrail.ActionType.REVERSAL,
                    old_quantity=old_quantity,
                    new_quantity=stock.quantity,
                    notes=f"Sale reversed (Order #{order.id} rejected)",
                    performed_by=admin,
                )
                system_logger.log_stock_update(
                    stock_id=stock.id,
                    product_id=stock.product_id,
                    old_quantity=old_quantity,
                    new_quantity=stock.quantity,
                    user_id=admin.id,
                    user_type=admin.type,
                    action='stock_reversal',
                    context={'order_id': order.id},
                )
            else:
                stock.release_reservation(item.quantity)

        old_status = order.status
        order.status = Order.Status.REJECTED
        order.delivery_status = None
        order.admin = admin
        order.admin_notes = admin_notes.strip()
        order.is_suspicious = False
        order.suspicious_reason = None
        order.save()

        self.suspicious.auto_clear_suspicious_orders(order)

        system_logger.log_order_status_change(
            order_id=order.id,
            old_status=old_status,
            new_status=order.status,
            user_id=admin.id,
            user_type=admin.type,
            context={'admin_notes': order.admin_notes},
        )
        system_logger.log_notification(order.customer_id, 'order_rejected', context={'order_id': order.id})

        logger.info(f"Order #{order.id} rejected by {admin.id}")
        return order

    @transaction.atomic
    def cancel_by_customer(self, order, customer):
        order = self._lock(order)

        if order.customer_id != customer.id:
            raise ValueError("You can only cancel your own orders.")
        if order.status not in Order.OPEN_STATUSES:
            raise ValueError(f"Cannot cancel order with status: {order.status}")

        items = list(order.items.order_by('id'))
        stocks = self._locked_stocks(items)
        for item in items:
            stock = stocks.get(item.stock_id)
            if stock is not None:
                stock.release_reservation(item.quantity)

        old_status = order.status
        order.status = Order.Status.CANCELLED
        order.is_suspicious = False
        order.suspicious_reason = None
        order.save()

        self.suspicious.auto_clear_suspicious_orders(order)

        system_logger.log_order_status_change(
            order_id=order.id,
            old_status=old_status,
            new_status=order.status,
            user_id=customer.id,
            user_type=customer.type,
        )
        logger.info(f"Order #{order.id} cancelled by customer {customer.id}")
        return order

    # =========================================================================
    # URGENCY & APPROVAL WINDOW
    # =========================================================================

    def mark_urgent(self, order):
        if order.status != Order.Status.PENDING:
            raise ValueError("Only pending orders can be marked as urgent.")
        order.is_urgent = True
        order.save(update_fields=['is_urgent', 'updated_at'])
        logger.info(f"Order #{order.id} marked as urgent")
        return order

    def unmark_urgent(self, order):
        order.is_urgent = False
        order.save(update_fields=['is_urgent', 'updated_at'])
        return order

    def delay_stale_orders(self):
        """
        Move every pending order past the approval window to delayed.

        Returns:
            Number of orders delayed
        """
        cutoff = timezone.now() - timedelta(hours=settings.ORDER_DELAY_HOURS)
        count = 0
        for order in Order.objects.filter(status=Order.Status.PENDING, created_at__lte=cutoff):
            if order.refresh_approval_window():
                count += 1
        return count

    # =========================================================================
    # DELIVERY
    # =========================================================================

    @transaction.atomic
    def assign_logistic(self, order, logistic_id, admin):
        order = self._lock(order)

        logistic = User.objects.filter(
            id=logistic_id,
            type=User.UserType.LOGISTIC,
            active=True,
        ).first()
        if logistic is None:
            raise ValueError("Logistic not found or inactive.")

        if order.status != Order.Status.APPROVED:
            raise ValueError("Only approved orders can be assigned to a logistic.")
        if order.delivery_status == Order.DeliveryStatus.DELIVERED:
            raise ValueError("Cannot reassign a delivered order.")

        order.logistic = logistic
        order.save(update_fields=['logistic', 'updated_at'])

        system_logger.log_admin_activity(
            'logistic_assigned',
            admin.id,
            context={'order_id': order.id, 'logistic_id': logistic.id},
        )
        system_logger.log_notification(logistic.id, 'delivery_task', context={'order_id': order.id})
        logger.info(f"Order #{order.id} assigned to logistic {logistic.id}")
        return order

    @transaction.atomic
    def mark_ready(self, order, admin):
        order = self._lock(order)

        if (order.status != Order.Status.APPROVED
                or order.delivery_status != Order.DeliveryStatus.PENDING):
            raise ValueError("Order is not ready to be marked as ready for pickup.")

        old_status = order.delivery_status
        order.delivery_status = Order.DeliveryStatus.READY_TO_PICKUP
        order.delivery_ready_time = timezone.now()
        order.save(update_fields=['delivery_status', 'delivery_ready_time', 'updated_at'])

        system_logger.log_delivery_status_change(order.id, old_status, order.delivery_status, admin.id)
        return order

    @transaction.atomic
    def mark_picked_up(self, order, admin, confirmation_text):
        if confirmation_text != PICKUP_CONFIRMATION:
            raise ValueError(f'Please type "{PICKUP_CONFIRMATION}" to confirm.')

        order = self._lock(order)

        if (order.status != Order.Status.APPROVED
                or order.delivery_status != Order.DeliveryStatus.READY_TO_PICKUP):
            raise ValueError("Order is not ready for pickup.")

        old_status = order.delivery_status
        order.delivery_status = Order.DeliveryStatus.OUT_FOR_DELIVERY
        order.delivery_packed_time = timezone.now()
        order.save(update_fields=['delivery_status', 'delivery_packed_time', 'updated_at'])

        system_logger.log_delivery_status_change(order.id, old_status, order.delivery_status, admin.id)
        system_logger.log_notification(order.customer_id, 'order_out_for_delivery', context={'order_id': order.id})
        return order

    @transaction.atomic
    def mark_delivered(self, order, logistic, confirmation_text):
        order = self._lock(order)

        if order.logistic_id != logistic.id:
            raise ValueError("This order is not assigned to you.")
        if order.delivery_status == Order.DeliveryStatus.DELIVERED:
            raise ValueError("Order is already delivered.")
        if (order.status != Order.Status.APPROVED
                or order.delivery_status != Order.DeliveryStatus.OUT_FOR_DELIVERY):
            raise ValueError("Order must be out for delivery before it can be marked as delivered.")
        if confirmation_text != DELIVERY_CONFIRMATION:
            raise ValueError(f'Please type "{DELIVERY_CONFIRMATION}" to confirm delivery.')

        old_status = order.delivery_status
        order.delivery_status = Order.DeliveryStatus.DELIVERED
        order.delivered_time = timezone.now()
        order.save(update_fields=['delivery_status', 'delivered_time', 'updated_at'])

        sale = Sale.from_order(order)

        system_logger.log_delivery_status_change(
            order.id, old_status, order.delivery_status, logistic.id,
            context={'sale_id': sale.id},
        )
        system_logger.log_notification(order.customer_id, 'delivery_status_update', context={'order_id': order.id})

        logger.info(f"Order #{order.id} delivered by logistic {logistic.id}")
        return order
