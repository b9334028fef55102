"""
Order Models

Customer orders move through an approval workflow:
pending -> approved / rejected / cancelled, with pending orders escalating to
urgent and then delayed as they age. Approved orders follow a delivery track
(pending -> ready_to_pickup -> out_for_delivery -> delivered) and become a
Sale once delivered.

OrderItem rows keep a price snapshot and point at the member stock reserved
for them.
"""

from collections import OrderedDict
from datetime import timedelta
from decimal import Decimal
import logging

from django.conf import settings
from django.db import models
from django.utils import timezone

from core import system_logger

logger = logging.getLogger(__name__)

MERGED_NOTE_PREFIX = 'Merged from orders:'


class Order(models.Model):
    """A customer's checkout awaiting (or past) admin review."""

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        APPROVED = 'approved', 'Approved'
        REJECTED = 'rejected', 'Rejected'
        DELAYED = 'delayed', 'Delayed'
        CANCELLED = 'cancelled', 'Cancelled'
        MERGED = 'merged', 'Merged'

    class DeliveryStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        READY_TO_PICKUP = 'ready_to_pickup', 'Ready to Pick Up'
        OUT_FOR_DELIVERY = 'out_for_delivery', 'Out for Delivery'
        DELIVERED = 'delivered', 'Delivered'

    OPEN_STATUSES = (Status.PENDING, Status.DELAYED)

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='orders'
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True
    )
    delivery_status = models.CharField(
        max_length=20,
        choices=DeliveryStatus.choices,
        null=True,
        blank=True,
        db_index=True
    )

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    coop_share = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    member_share = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))

    delivery_address = models.TextField()

    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_orders'
    )
    admin_notes = models.TextField(null=True, blank=True)
    logistic = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_orders'
    )

    is_urgent = models.BooleanField(default=False)
    is_suspicious = models.BooleanField(default=False, db_index=True)
    suspicious_reason = models.TextField(null=True, blank=True)
    linked_merged_order_id = models.BigIntegerField(null=True, blank=True)

    delivery_ready_time = models.DateTimeField(null=True, blank=True)
    delivery_packed_time = models.DateTimeField(null=True, blank=True)
    delivered_time = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['customer', 'status', 'created_at'], name='orders_customer_status_idx'),
            models.Index(fields=['status', 'delivery_status'], name='orders_status_delivery_idx'),
        ]

    def __str__(self):
        return f"Order #{self.id} - {self.get_status_display()}"

    def update_shares(self):
        """Co-op share is added on top of the subtotal; members get the subtotal."""
        rate = Decimal(str(settings.COOP_SHARE_RATE))
        self.coop_share = (self.subtotal * rate).quantize(Decimal('0.01'))
        self.member_share = self.subtotal
        self.total_amount = self.subtotal + self.coop_share

    @property
    def is_merged_order(self):
        return MERGED_NOTE_PREFIX in (self.admin_notes or '')

    @property
    def age_hours(self):
        return (timezone.now() - self.created_at).total_seconds() / 3600

    @property
    def is_urgent_now(self):
        if self.status != self.Status.PENDING:
            return False
        return self.is_urgent or self.age_hours >= settings.ORDER_URGENT_HOURS

    @property
    def can_approve(self):
        return self.status in self.OPEN_STATUSES

    def get_insufficient_stock_items(self):
        """
        Items whose linked stock cannot cover the requested quantity.

        Items without a stock are not listed here; approval rejects them
        separately.
        """
        shortages = []
        for item in self.items.select_related('stock', 'product'):
            if item.stock_id is None:
                continue
            stock = item.stock
            available = Decimal('0') if stock.is_removed else stock.quantity
            if available < item.quantity:
                shortages.append({
                    'item_id': item.id,
                    'product_name': item.product.name,
                    'category': item.category,
                    'requested_quantity': item.quantity,
                    'available_stock': available,
                    'shortage': item.quantity - available,
                })
        return shortages

    def has_sufficient_stock(self):
        return not self.get_insufficient_stock_items()

    def get_aggregated_items(self):
        """Items grouped by product and unit with summed quantity and amount."""
        grouped = OrderedDict()
        for item in self.items.select_related('product').order_by('id'):
            key = (item.product_id, item.category)
            if key not in grouped:
                grouped[key] = {
                    'product_id': item.product_id,
                    'product_name': item.product.name,
                    'category': item.category,
                    'unit_price': item.unit_price,
                    'quantity': Decimal('0'),
                    'total_amount': Decimal('0'),
                }
            grouped[key]['quantity'] += item.quantity
            grouped[key]['total_amount'] += item.total_amount
        return list(grouped.values())

    def refresh_approval_window(self):
        """
        Move a pending order past the approval window to delayed.

        The transition is applied as a conditional update, so an instance
        that went stale (approved or cancelled elsewhere) is never overwritten.

        Returns True when the order was delayed.
        """
        if self.status != self.Status.PENDING:
            return False
        if self.age_hours < settings.ORDER_DELAY_HOURS:
            return False

        now = timezone.now()
        updated = Order.objects.filter(
            pk=self.pk,
            status=self.Status.PENDING,
            created_at__lte=now - timedelta(hours=settings.ORDER_DELAY_HOURS),
        ).update(status=self.Status.DELAYED, updated_at=now)
        if not updated:
            self.refresh_from_db(fields=['status', 'updated_at'])
            return False

        old_status = self.status
        self.status = self.Status.DELAYED
        self.updated_at = now

        system_logger.log_order_status_change(
            order_id=self.id,
            old_status=old_status,
            new_status=self.status,
            user_id=None,
            user_type='system',
            context={'reason': f'Pending for more than {settings.ORDER_DELAY_HOURS} hours'},
        )
        system_logger.log_notification(
            self.customer_id,
            'order_delayed',
            context={'order_id': self.id},
        )
        logger.info(f"Order #{self.id} marked as delayed")
        return True


class OrderItem(models.Model):
    """
    One stock portion of an order, priced at checkout.

    The member/product_name/available_stock_after_sale columns are filled in
    when the order is approved.
    """

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    stock = models.ForeignKey(
        'inventory.Stock',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_items'
    )
    product = models.ForeignKey(
        'inventory.Product',
        on_delete=models.PROTECT,
        related_name='order_items'
    )
    category = models.CharField(max_length=10)
    quantity = models.DecimalField(max_digits=10, decimal_places=2)

    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    price_kilo = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_pc = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_tali = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    member = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_items'
    )
    product_name = models.CharField(max_length=200, blank=True)
    available_stock_after_sale = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'order_items'
        ordering = ['id']

    def __str__(self):
        return f"{self.quantity} {self.category} x product #{self.product_id}"

    @property
    def total_amount(self):
        return self.quantity * self.unit_price


class Cart(models.Model):
    customer = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='cart'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'carts'

    def __str__(self):
        return f"Cart of user #{self.customer_id}"

    @classmethod
    def for_customer(cls, customer):
        cart, _ = cls.objects.get_or_create(customer=customer)
        return cart


class CartItem(models.Model):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(
        'inventory.Product',
        on_delete=models.CASCADE,
        related_name='cart_items'
    )
    category = models.CharField(max_length=10)
    quantity = models.DecimalField(max_digits=10, decimal_places=2)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'cart_items'
        ordering = ['id']
        unique_together = [['cart', 'product', 'category']]

    def __str__(self):
        return f"{self.quantity} {self.category} x {self.product_id}"

    @property
    def unit_price(self):
        return self.product.get_price(self.category)

    @property
    def line_total(self):
        price = self.unit_price
        return self.quantity * price if price is not None else Decimal('0')


class Sale(models.Model):
    """A delivered order."""

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='sales'
    )
    order = models.OneToOneField(Order, on_delete=models.PROTECT, related_name='sale')

    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    coop_share = models.DecimalField(max_digits=12, decimal_places=2)
    member_share = models.DecimalField(max_digits=12, decimal_places=2)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)

    delivery_address = models.TextField()
    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='approved_sales'
    )
    admin_notes = models.TextField(null=True, blank=True)
    logistic = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='delivered_sales'
    )
    delivered_at = models.DateTimeField()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'sales'
        ordering = ['-delivered_at']

    def __str__(self):
        return f"Sale for order #{self.order_id}"

    @classmethod
    def from_order(cls, order):
        return cls.objects.create(
            customer_id=order.customer_id,
            order=order,
            subtotal=order.subtotal,
            coop_share=order.coop_share,
            member_share=order.member_share,
            total_amount=order.total_amount,
            delivery_address=order.delivery_address,
            admin_id=order.admin_id,
            admin_notes=order.admin_notes,
            logistic_id=order.logistic_id,
            delivered_at=order.delivered_time or timezone.now(),
        )
