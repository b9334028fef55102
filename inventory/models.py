"""
Inventory Models

Products are priced per selling unit (kilo, piece or tali bundle). Each stock
row is one member's supply of a product in one unit. Customers reserve stock
at checkout (``pending_order_qty``); the reservation turns into a sale when an
admin approves the order.

Every quantity change is written to StockTrail.
"""

from decimal import Decimal
from django.conf import settings
from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone


class StockCategory(models.TextChoices):
    """Selling unit of a stock row."""
    KILO = 'Kilo', 'Kilo'
    PC = 'Pc', 'Piece'
    TALI = 'Tali', 'Tali'


class Product(models.Model):
    """
    Catalogue entry. A product can be sold in any unit it has a price for.
    """

    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True)
    produce_type = models.CharField(
        max_length=50,
        blank=True,
        help_text="e.g. fruit, vegetable"
    )

    price_kilo = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(Decimal('0'))]
    )
    price_pc = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(Decimal('0'))]
    )
    price_tali = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(Decimal('0'))]
    )

    archived = models.BooleanField(default=False, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        ordering = ['name']

    def __str__(self):
        return self.name

    def get_price(self, category):
        """Unit price for a selling unit, or None when the unit is not priced."""
        return {
            StockCategory.KILO: self.price_kilo,
            StockCategory.PC: self.price_pc,
            StockCategory.TALI: self.price_tali,
        }.get(category)

    def available_categories(self):
        return [
            category for category in StockCategory.values
            if self.get_price(category) is not None
        ]


class StockQuerySet(models.QuerySet):

    def active(self):
        return self.filter(removed_at__isnull=True)

    def removed(self):
        return self.filter(removed_at__isnull=False)

    def available(self):
        """Untouched stock: has quantity and was never sold to anyone."""
        return self.active().filter(quantity__gt=0, last_customer__isnull=True)

    def customer_visible(self):
        """Available plus partially sold stock."""
        return self.active().filter(quantity__gt=0)

    def partial(self):
        return self.active().filter(quantity__gt=0, last_customer__isnull=False)

    def sold(self):
        return self.active().filter(quantity=0, last_customer__isnull=False)


class Stock(models.Model):
    """
    A member's supply of one product in one selling unit.

    ATOMICITY: the quantity mutators below only update this row. Callers must
    run them inside ``transaction.atomic`` on a row fetched with
    ``select_for_update()``.
    """

    STATUS_CHOICES = [
        ('partial', 'Partially Sold'),
        ('sold', 'Sold'),
        ('removed', 'Removed'),
    ]

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='stocks'
    )
    member = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='stocks',
        limit_choices_to={'type': 'member'}
    )
    category = models.CharField(max_length=10, choices=StockCategory.choices)

    quantity = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0'),
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Quantity remaining (not yet sold)"
    )
    sold_quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    pending_order_qty = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0'),
        help_text="Quantity reserved by orders awaiting approval"
    )
    initial_quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, null=True, blank=True)
    last_customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='purchased_stocks'
    )

    removed_at = models.DateTimeField(null=True, blank=True, db_index=True)
    notes = models.TextField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StockQuerySet.as_manager()

    class Meta:
        db_table = 'stocks'
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['product', 'category'], name='stocks_product_category_idx'),
            models.Index(fields=['member', 'status'], name='stocks_member_status_idx'),
        ]

    def __str__(self):
        return f"{self.product.name} ({self.category}) - {self.quantity} left"

    @property
    def available_quantity(self):
        """Quantity a new checkout can still reserve."""
        return max(self.quantity - self.pending_order_qty, Decimal('0'))

    @property
    def is_removed(self):
        return self.removed_at is not None

    @property
    def is_locked(self):
        """Fully sold stock is frozen for edits."""
        return self.quantity == 0 and self.sold_quantity > 0

    def _refresh_status(self):
        if self.is_removed:
            self.status = 'removed'
        elif self.last_customer_id is None:
            self.status = None
        elif self.quantity == 0:
            self.status = 'sold'
        else:
            self.status = 'partial'

    def reserve(self, quantity):
        quantity = Decimal(str(quantity))
        if quantity <= 0:
            raise ValueError("Quantity must be positive")
        if quantity > self.available_quantity:
            raise ValueError(
                f"Insufficient stock. Available: {self.available_quantity}, "
                f"Requested: {quantity}"
            )
        self.pending_order_qty += quantity
        self.save(update_fields=['pending_order_qty', 'updated_at'])

    def release_reservation(self, quantity):
        quantity = Decimal(str(quantity))
        self.pending_order_qty = max(self.pending_order_qty - quantity, Decimal('0'))
        self.save(update_fields=['pending_order_qty', 'updated_at'])

    def process_pending_order_approval(self, quantity, customer=None):
        """
        Turn a reservation into a sale: quantity goes down, sold goes up and
        the reservation is consumed.
        """
        quantity = Decimal(str(quantity))
        if quantity > self.quantity:
            raise ValueError(
                f"Insufficient stock. Available: {self.quantity}, "
                f"Requested: {quantity}"
            )
        self.quantity -= quantity
        self.sold_quantity += quantity
        self.pending_order_qty = max(self.pending_order_qty - quantity, Decimal('0'))
        if customer is not None:
            self.last_customer = customer
        self._refresh_status()
        self.save()

    def reverse_sale(self, quantity):
        """Undo an approved sale (order rejected after approval)."""
        quantity = Decimal(str(quantity))
        self.quantity += quantity
        self.sold_quantity = max(self.sold_quantity - quantity, Decimal('0'))
        self._refresh_status()
        self.save()

    def remove(self, notes=None):
        """Soft delete."""
        self.removed_at = timezone.now()
        self.notes = notes
        self.status = 'removed'
        self.save(update_fields=['removed_at', 'notes', 'status', 'updated_at'])

    def restore(self):
        self.removed_at = None
        self.notes = None
        self._refresh_status()
        self.save(update_fields=['removed_at', 'notes', 'status', 'updated_at'])


class StockTrail(models.Model):
    """
    Append-only record of stock movements (creation, sales, reversals,
    removals).
    """

    class ActionType(models.TextChoices):
        CREATED = 'created', 'Created'
        UPDATED = 'updated', 'Updated'
        SALE = 'sale', 'Sale'
        COMPLETED = 'completed', 'Completed'
        REVERSAL = 'reversal', 'Reversal'
        REMOVED = 'removed', 'Removed'
        RESTORED = 'restored', 'Restored'
        STATUS_CHANGE = 'status_change', 'Status Change'

    stock = models.ForeignKey(
        Stock,
        on_delete=models.SET_NULL,
        null=True,
        related_name='trails'
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='stock_trails'
    )
    member = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='stock_trails'
    )
    category = models.CharField(max_length=10, choices=StockCategory.choices)
    action_type = models.CharField(max_length=20, choices=ActionType.choices, db_index=True)
    old_quantity = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    new_quantity = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    notes = models.TextField(blank=True)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='performed_stock_trails'
    )
    performed_by_type = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'stock_trails'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['stock', 'action_type'], name='stock_trails_stock_action_idx'),
            models.Index(fields=['product', 'created_at'], name='stock_trails_product_idx'),
        ]

    def __str__(self):
        return f"{self.get_action_type_display()} - stock #{self.stock_id}"

    @classmethod
    def record(cls, stock, action_type, old_quantity=None, new_quantity=None,
               notes='', performed_by=None):
        return cls.objects.create(
            stock=stock,
            product_id=stock.product_id,
            member_id=stock.member_id,
            category=stock.category,
            action_type=action_type,
            old_quantity=old_quantity,
            new_quantity=new_quantity,
            notes=notes,
            performed_by=performed_by,
            performed_by_type=getattr(performed_by, 'type', '') if performed_by else 'system',
        )
