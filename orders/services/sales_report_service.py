"""
Sales Report Service

Figures for delivered orders: the overall sales summary, revenue per
supplying member and the item-level audit trail summary.
"""

from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db.models import Count, DecimalField, F, Sum

CENTS = Decimal('0.01')
ZERO = Decimal('0.00')


def _money(value):
    return (value or Decimal('0')).quantize(CENTS, rounding=ROUND_HALF_UP)


def _line_revenue():
    return Sum(
        F('quantity') * F('unit_price'),
        output_field=DecimalField(max_digits=14, decimal_places=2),
    )


class SalesReportService:

    @staticmethod
    def summarize_sales(sales):
        """
        Totals over a Sale queryset.

        Returns:
            dict with revenue, subtotal, co-op and member shares, order and
            customer counts, and per-order averages
        """
        totals = sales.aggregate(
            total_revenue=Sum('total_amount'),
            total_subtotal=Sum('subtotal'),
            total_coop_share=Sum('coop_share'),
            total_member_share=Sum('member_share'),
            total_orders=Count('id'),
            total_customers=Count('customer', distinct=True),
        )

        count = totals['total_orders']
        revenue = _money(totals['total_revenue'])
        coop_share = _money(totals['total_coop_share'])

        return {
            'total_revenue': revenue,
            'total_subtotal': _money(totals['total_subtotal']),
            'total_coop_share': coop_share,
            'total_member_share': _money(totals['total_member_share']),
            'total_orders': count,
            'total_customers': totals['total_customers'],
            'average_order_value': _money(revenue / count) if count else ZERO,
            'average_coop_share': _money(coop_share / count) if count else ZERO,
        }

    @staticmethod
    def member_sales(items):
        """
        Revenue per supplying member over delivered OrderItems.

        The co-op share is charged on top of the member's revenue, so the
        member keeps the full revenue.

        Returns:
            list of dicts, highest revenue first
        """
        rate = Decimal(str(settings.COOP_SHARE_RATE))
        rows = (
            items.filter(member__isnull=False)
            .values('member_id', 'member__username', 'member__first_name',
                    'member__last_name', 'member__email')
            .annotate(
                total_orders=Count('order', distinct=True),
                total_quantity_sold=Sum('quantity'),
                total_revenue=_line_revenue(),
            )
            .order_by('-total_revenue', 'member_id')
        )

        report = []
        for row in rows:
            revenue = _money(row['total_revenue'])
            full_name = f"{row['member__first_name']} {row['member__last_name']}".strip()
            report.append({
                'member_id': row['member_id'],
                'member_name': full_name or row['member__username'],
                'member_email': row['member__email'],
                'total_orders': row['total_orders'],
                'total_quantity_sold': row['total_quantity_sold'],
                'total_revenue': revenue,
                'total_coop_share': _money(revenue * rate),
                'total_member_share': revenue,
            })
        return report

    @staticmethod
    def summarize_members(members):
        return {
            'total_members': len(members),
            'total_revenue': sum((m['total_revenue'] for m in members), ZERO),
            'total_coop_share': sum((m['total_coop_share'] for m in members), ZERO),
        }

    @staticmethod
    def summarize_audit_trail(items):
        totals = items.aggregate(
            total_entries=Count('id'),
            total_quantity_sold=Sum('quantity'),
            unique_members=Count('member', distinct=True),
            unique_orders=Count('order', distinct=True),
            total_revenue=_line_revenue(),
        )
        return {
            'total_entries': totals['total_entries'],
            'total_quantity_sold': totals['total_quantity_sold'] or Decimal('0'),
            'unique_members': totals['unique_members'],
            'unique_orders': totals['unique_orders'],
            'total_revenue': _money(totals['total_revenue']),
        }
