"""
Audit Trail Service

Per-member breakdown of an order. One order can draw stock from several
members; each OrderItem is one member's portion.
"""

from collections import Counter, OrderedDict
from decimal import Decimal
import logging

logger = logging.getLogger(__name__)


class AuditTrailService:

    @staticmethod
    def get_unit_price(product, category):
        return product.get_price(category) or Decimal('0')

    @staticmethod
    def _member_id(item):
        if item.member_id:
            return item.member_id
        return item.stock.member_id if item.stock_id else None

    def get_multi_member_order_summary(self, order):
        """
        Group an order's items by supplying member.

        Returns:
            dict with members (id, name, item count, quantity, revenue),
            total_members_involved and total_items
        """
        items = list(
            order.items.select_related('product', 'member', 'stock__member').order_by('id')
        )

        members = OrderedDict()
        for item in items:
            member_id = self._member_id(item)
            if member_id not in members:
                member = item.member or (item.stock.member if item.stock_id else None)
                members[member_id] = {
                    'member_id': member_id,
                    'member_name': member.display_name if member else 'Unknown',
                    'item_count': 0,
                    'total_quantity': Decimal('0'),
                    'total_revenue': Decimal('0'),
                    'products': [],
                }
            entry = members[member_id]
            entry['item_count'] += 1
            entry['total_quantity'] += item.quantity
            entry['total_revenue'] += item.total_amount
            entry['products'].append({
                'product_name': item.product_name or item.product.name,
                'stock_id': item.stock_id,
                'quantity': item.quantity,
                'available_after_sale': item.available_stock_after_sale,
            })

        return {
            'order_id': order.id,
            'members': list(members.values()),
            'total_members_involved': len([m for m in members if m is not None]),
            'total_items': len(items),
        }

    def validate_multi_member_audit_trails(self, order):
        """
        Check that every item is attributed to a member and that no
        member/stock pair appears twice (merged orders excepted).
        """
        items = list(order.items.select_related('stock').order_by('id'))

        missing_members = [item.id for item in items if self._member_id(item) is None]

        pairs = Counter((self._member_id(item), item.stock_id) for item in items if item.stock_id)
        duplicates = []
        if not order.is_merged_order:
            duplicates = [
                {'member_id': member_id, 'stock_id': stock_id, 'count': count}
                for (member_id, stock_id), count in pairs.items()
                if count > 1
            ]

        is_complete = not missing_members and not duplicates
        if not is_complete:
            logger.warning(
                f"Order #{order.id} audit trail incomplete: "
                f"{len(missing_members)} items without member, {len(duplicates)} duplicates"
            )

        return {
            'is_complete': is_complete,
            'missing_members': missing_members,
            'duplicate_member_stocks': duplicates,
            'total_entries': len(items),
        }
