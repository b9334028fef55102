"""
Suspicious Order Detection Service

Flags bursts of orders from one customer so an admin can review them as a
group (approve/reject together, or merge into one order).

Detection rules, in order:
1. A new order placed shortly after one of the customer's merged orders is
   flagged on its own and linked to the merged order
2. If the customer's latest suspicious order is older than the window, a
   fresh window starts and nothing is flagged
3. Otherwise the customer's open orders inside the window form a burst once
   there are at least SUSPICIOUS_ORDER_MIN_COUNT of them
"""

from datetime import timedelta
from decimal import Decimal
import logging

from django.conf import settings
from django.utils import timezone

from core import system_logger
from orders.models import Order, MERGED_NOTE_PREFIX

logger = logging.getLogger(__name__)


class SuspiciousOrderDetectionService:
    """Detects and clears suspicious order bursts."""

    def __init__(self, window_minutes=None, min_orders=None):
        if window_minutes is None:
            window_minutes = settings.SUSPICIOUS_ORDER_WINDOW_MINUTES
        if min_orders is None:
            min_orders = settings.SUSPICIOUS_ORDER_MIN_COUNT
        self.window_minutes = window_minutes
        self.min_orders = min_orders

    @property
    def window(self):
        return timedelta(minutes=self.window_minutes)

    def check_for_suspicious_pattern(self, order):
        """
        Check whether a new order is part of a suspicious pattern.

        Returns:
            dict with order_ids, reason, total_amount and (for merged
            follow-ups) linked_merged_order_id, or None
        """
        if order.status != Order.Status.PENDING:
            return None

        order_time = order.created_at
        window_start = order_time - self.window

        merged_order = (
            Order.objects.filter(
                customer_id=order.customer_id,
                status__in=[Order.Status.PENDING, Order.Status.APPROVED],
                created_at__gte=window_start,
                created_at__lte=order_time,
                admin_notes__contains=MERGED_NOTE_PREFIX,
            )
            .exclude(id=order.id)
            .order_by('-created_at')
            .first()
        )

        if merged_order:
            minutes = int((order_time - merged_order.created_at).total_seconds() // 60)
            label = 'merged & approved' if merged_order.status == Order.Status.APPROVED else 'merged'
            reason = f"New order placed {minutes} minutes after {label} order #{merged_order.id}"

            logger.info(
                f"Order #{order.id} placed {minutes} minutes after merged order "
                f"#{merged_order.id} for customer {order.customer_id}"
            )
            return {
                'order_ids': [order.id],
                'related_orders': [],
                'reason': reason,
                'total_amount': order.total_amount,
                'is_single_suspicious': True,
                'linked_merged_order_id': merged_order.id,
            }

        latest_suspicious = (
            Order.objects.filter(
                customer_id=order.customer_id,
                is_suspicious=True,
                status__in=Order.OPEN_STATUSES,
            )
            .exclude(id=order.id)
            .order_by('-created_at')
            .first()
        )

        if latest_suspicious:
            minutes = int((order_time - latest_suspicious.created_at).total_seconds() // 60)
            if minutes > self.window_minutes:
                logger.info(
                    f"Suspicious window expired for customer {order.customer_id} "
                    f"(last suspicious order #{latest_suspicious.id}, {minutes} minutes ago)"
                )
                return None

        related = list(
            Order.objects.filter(
                customer_id=order.customer_id,
                created_at__gte=window_start,
                created_at__lte=order_time,
                status__in=Order.OPEN_STATUSES,
            )
            .exclude(id=order.id)
            .order_by('created_at')
        )

        if len(related) + 1 < self.min_orders:
            return None

        all_orders = sorted(related + [order], key=lambda o: (o.created_at, o.id))
        total = sum((o.total_amount for o in all_orders), Decimal('0'))
        reason = (
            f"{len(all_orders)} orders placed within {self.window_minutes} minutes "
            f"(Total: ₱{total:.2f})"
        )

        logger.info(
            f"Suspicious order pattern detected for customer {order.customer_id}: "
            f"{[o.id for o in all_orders]}"
        )
        return {
            'order_ids': [o.id for o in all_orders],
            'related_orders': [
                {
                    'id': o.id,
                    'total_amount': o.total_amount,
                    'created_at': o.created_at.isoformat(),
                }
                for o in related
            ],
            'reason': reason,
            'total_amount': total,
        }

    def mark_as_suspicious(self, order_ids, reason, linked_merged_order_id=None):
        update = {'is_suspicious': True, 'suspicious_reason': reason}
        if linked_merged_order_id:
            update['linked_merged_order_id'] = linked_merged_order_id

        count = Order.objects.filter(id__in=order_ids).update(**update)

        logger.info(f"Orders marked as suspicious: {list(order_ids)} ({reason})")
        system_logger.log_notification(
            None,
            'suspicious_order',
            context={'order_ids': list(order_ids), 'reason': reason},
        )
        return count

    def detect_and_mark(self, order):
        """Run detection for a new order and flag the result."""
        result = self.check_for_suspicious_pattern(order)
        if result:
            self.mark_as_suspicious(
                result['order_ids'],
                result['reason'],
                linked_merged_order_id=result.get('linked_merged_order_id'),
            )
        return result

    def clear_suspicious_flag(self, order):
        order.is_suspicious = False
        order.suspicious_reason = None
        order.save(update_fields=['is_suspicious', 'suspicious_reason', 'updated_at'])
        logger.info(f"Suspicious flag cleared for order #{order.id}")

    def clear_expired_suspicious_orders(self, now=None):
        """
        Clear flags on open orders that are older than the window.

        Returns:
            Number of orders cleared
        """
        cutoff = (now or timezone.now()) - self.window
        count = Order.objects.filter(
            is_suspicious=True,
            status__in=Order.OPEN_STATUSES,
            created_at__lt=cutoff,
        ).update(is_suspicious=False, suspicious_reason=None)

        if count:
            logger.info(f"Cleared {count} expired suspicious order flags")
        return count

    def auto_clear_suspicious_orders(self, order):
        """
        Clear the flags of an order's burst once none of it is still open.

        Looks at the customer's suspicious orders within +/- window of the
        given order. Returns the number of orders cleared.
        """
        window_orders = Order.objects.filter(
            customer_id=order.customer_id,
            is_suspicious=True,
            created_at__gte=order.created_at - self.window,
            created_at__lte=order.created_at + self.window,
        )

        if window_orders.filter(status__in=Order.OPEN_STATUSES).exists():
            return 0

        count = window_orders.update(is_suspicious=False, suspicious_reason=None)
        if count:
            logger.info(
                f"Auto-cleared {count} suspicious orders around order #{order.id}"
            )
        return count

    def get_suspicious_orders(self):
        return (
            Order.objects.filter(is_suspicious=True, status__in=Order.OPEN_STATUSES)
            .select_related('customer')
            .order_by('-created_at')
        )
