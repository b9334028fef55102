"""
Stock Service

Admin-side stock management:
- Adding member stock to a product
- Editing quantity / unit of unlocked stock
- Soft removal and restore
"""

from decimal import Decimal
import logging

from django.db import transaction

from core import system_logger
from inventory.models import Stock, StockTrail

logger = logging.getLogger(__name__)

MIN_STOCK_QUANTITY = Decimal('0.01')


class StockService:
    """Service for managing member stock"""

    @transaction.atomic
    def add_stock(self, product, member, category, quantity, performed_by=None):
        """
        Add a member's stock to a product.

        Args:
            product: Product receiving the stock
            member: User of type member supplying it
            category: Selling unit (Kilo, Pc, Tali)
            quantity: Initial quantity
            performed_by: Admin/staff user

        Returns:
            Stock instance
        """
        quantity = Decimal(str(quantity))
        if quantity < MIN_STOCK_QUANTITY:
            raise ValueError(f"Quantity must be at least {MIN_STOCK_QUANTITY}")

        if category not in product.available_categories():
            raise ValueError(
                f"{product.name} has no price set for category: {category}"
            )

        if getattr(member, 'type', None) != 'member':
            raise ValueError("Stock can only be assigned to a member")

        stock = Stock.objects.create(
            product=product,
            member=member,
            category=category,
            quantity=quantity,
            initial_quantity=quantity,
        )

        StockTrail.record(
            stock,
            StockTrail.ActionType.CREATED,
            old_quantity=Decimal('0'),
            new_quantity=quantity,
            notes='Stock added',
            performed_by=performed_by,
        )
        system_logger.log_stock_update(
            stock_id=stock.id,
            product_id=product.id,
            old_quantity=0,
            new_quantity=quantity,
            user_id=getattr(performed_by, 'id', None),
            user_type=getattr(performed_by, 'type', 'system'),
            action='created',
        )

        logger.info(f"Stock #{stock.id} added for {product.name}: {quantity} {category}")
        return stock

    @transaction.atomic
    def update_stock(self, stock, quantity=None, category=None, performed_by=None):
        """
        Edit stock quantity and/or unit.

        Fully sold (locked) and removed stocks cannot be edited. Quantity
        cannot drop below what pending orders have reserved.
        """
        stock = Stock.objects.select_for_update().get(pk=stock.pk)

        if stock.is_removed:
            raise ValueError("Cannot edit removed stock")
        if stock.is_locked:
            raise ValueError("Cannot edit stock that has been fully sold")

        old_quantity = stock.quantity

        if quantity is not None:
            quantity = Decimal(str(quantity))
            if quantity < 0:
                raise ValueError("Quantity cannot be negative")
            if quantity < stock.pending_order_qty:
                raise ValueError(
                    f"Quantity cannot be less than reserved quantity: "
                    f"{stock.pending_order_qty}"
                )
            stock.quantity = quantity

        if category is not None and category != stock.category:
            if category not in stock.product.available_categories():
                raise ValueError(
                    f"{stock.product.name} has no price set for category: {category}"
                )
            if stock.pending_order_qty > 0:
                raise ValueError("Cannot change category of stock with pending orders")
            stock.category = category

        stock._refresh_status()
        stock.save()

        StockTrail.record(
            stock,
            StockTrail.ActionType.UPDATED,
            old_quantity=old_quantity,
            new_quantity=stock.quantity,
            notes='Stock updated',
            performed_by=performed_by,
        )
        system_logger.log_stock_update(
            stock_id=stock.id,
            product_id=stock.product_id,
            old_quantity=old_quantity,
            new_quantity=stock.quantity,
            user_id=getattr(performed_by, 'id', None),
            user_type=getattr(performed_by, 'type', 'system'),
            action='updated',
        )
        return stock

    @transaction.atomic
    def remove_stock(self, stock, notes=None, performed_by=None):
        """Soft-remove stock. Stocks with pending reservations stay."""
        stock = Stock.objects.select_for_update().get(pk=stock.pk)

        if stock.is_removed:
            raise ValueError("Stock is already removed")
        if stock.pending_order_qty > 0:
            raise ValueError(
                f"Cannot remove stock with pending orders "
                f"(reserved: {stock.pending_order_qty})"
            )

        stock.remove(notes)

        StockTrail.record(
            stock,
            StockTrail.ActionType.REMOVED,
            old_quantity=stock.quantity,
            new_quantity=stock.quantity,
            notes=notes or 'Stock removed',
            performed_by=performed_by,
        )
        system_logger.log_stock_update(
            stock_id=stock.id,
            product_id=stock.product_id,
            old_quantity=stock.quantity,
            new_quantity=stock.quantity,
            user_id=getattr(performed_by, 'id', None),
            user_type=getattr(performed_by, 'type', 'system'),
            action='removed',
            context={'notes': notes},
        )
        logger.info(f"Stock #{stock.id} removed")
        return stock

    @transaction.atomic
    def restore_stock(self, stock, performed_by=None):
        stock = Stock.objects.select_for_update().get(pk=stock.pk)

        if not stock.is_removed:
            raise ValueError("Only removed stock can be restored")

        stock.restore()

        StockTrail.record(
            stock,
            StockTrail.ActionType.RESTORED,
            old_quantity=stock.quantity,
            new_quantity=stock.quantity,
            notes='Stock restored',
            performed_by=performed_by,
        )
        system_logger.log_stock_update(
            stock_id=stock.id,
            product_id=stock.product_id,
            old_quantity=stock.quantity,
            new_quantity=stock.quantity,
            user_id=getattr(performed_by, 'id', None),
            user_type=getattr(performed_by, 'type', 'system'),
            action='restored',
        )
        logger.info(f"Stock #{stock.id} restored")
        return stock
