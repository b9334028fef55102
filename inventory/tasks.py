"""
Inventory Celery tasks.

Periodic member earnings summaries.
"""
from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils import timezone
from datetime import timedelta
from decimal import Decimal
import logging

logger = logging.getLogger(__name__)

PERIOD_DAYS = {
    'daily': 1,
    'weekly': 7,
    'monthly': 30,
    'yearly': 365,
}


@shared_task
def summarize_member_earnings(period='monthly'):
    """
    Sum each member's sales for the period and log the earnings.

    Scheduled via Celery Beat on the 1st of every month at 6 AM.

    Earnings are sold_quantity * unit price over stocks touched in the
    period. The co-op share rate is reported alongside each total.
    """
    from inventory.models import Stock

    if period not in PERIOD_DAYS:
        raise ValueError(f"Unknown earnings period: {period}")

    User = get_user_model()
    since = timezone.now() - timedelta(days=PERIOD_DAYS[period])
    rate = Decimal(str(settings.COOP_SHARE_RATE))

    logger.info(f"Summarizing {period} member earnings since {since.isoformat()}")

    summary = []
    members = User.objects.filter(type=User.UserType.MEMBER, active=True)
    for member in members:
        stocks = Stock.objects.filter(
            member=member,
            sold_quantity__gt=0,
            updated_at__gte=since,
        ).select_related('product')

        total = Decimal('0')
        for stock in stocks:
            price = stock.product.get_price(stock.category) or Decimal('0')
            total += stock.sold_quantity * price

        if total == 0:
            continue

        coop_share = (total * rate).quantize(Decimal('0.01'))
        logger.info(
            f"Member {member.id} ({member.display_name}) {period} earnings: "
            f"{total} (co-op share {coop_share})"
        )
        summary.append({
            'member_id': member.id,
            'total_earnings': str(total),
            'coop_share': str(coop_share),
        })

    logger.info(f"Earnings summary complete: {len(summary)} members with sales")

    return {
        'period': period,
        'members': len(summary),
        'earnings': summary,
    }
