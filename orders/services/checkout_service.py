"""
Checkout Service

Turns a customer's cart into a pending order:
- Allocates each cart line across member stocks, oldest first
- Reserves the allocated quantity on each stock
- Enforces the minimum order total
- Runs suspicious order detection once the order is committed
"""

from decimal import Decimal
import logging

from django.conf import settings
from django.db import transaction

from core import system_logger
from inventory.models import Stock
from orders.models import Cart, Order, OrderItem
from orders.services.suspicious_order_service import SuspiciousOrderDetectionService
from system_lockout.services import LockoutService

logger = logging.getLogger(__name__)


class CheckoutService:
    """Service for placing customer orders"""

    def checkout(self, customer, delivery_address):
        """
        Place an order from the customer's cart.

        Args:
            customer: User of type customer
            delivery_address: Address text for the delivery

        Returns:
            Order instance (refreshed, including any suspicious flag)

        Raises:
            ValueError: lockout active, empty cart, missing address, not
                enough stock, or subtotal under the minimum
        """
        if LockoutService.is_customer_access_blocked():
            raise ValueError("Checkout is unavailable while the system is locked. Please try again later.")

        cart = Cart.for_customer(customer)
        if not cart.items.exists():
            raise ValueError("Your cart is empty.")

        delivery_address = (delivery_address or '').strip()
        if not delivery_address:
            raise ValueError("A delivery address is required.")

        order = self._place_order(customer, cart, delivery_address)

        SuspiciousOrderDetectionService().detect_and_mark(order)

        order.refresh_from_db()
        return order

    @transaction.atomic
    def _place_order(self, customer, cart, delivery_address):
        order = Order.objects.create(
            customer=customer,
            status=Order.Status.PENDING,
            delivery_address=delivery_address,
        )

        subtotal = Decimal('0')
        for cart_item in cart.items.select_related('product').order_by('id'):
            subtotal += self._allocate(order, cart_item)

        minimum = Decimal(str(settings.ORDER_MINIMUM_TOTAL))
        if subtotal < minimum:
            system_logger.log_checkout(
                user_id=customer.id,
                order_id=None,
                total_amount=subtotal,
                status='failed',
                context={'reason': 'minimum_order_total'},
            )
            raise ValueError(
                f"Minimum order requirement is Php{minimum.normalize():f}. "
                f"Your current total is Php{subtotal:.2f}. "
                f"Please add more items to your cart."
            )

        order.subtotal = subtotal
        order.update_shares()
        order.save()

        cart.items.all().delete()

        system_logger.log_checkout(
            user_id=customer.id,
            order_id=order.id,
            total_amount=order.total_amount,
            status='success',
            context={'item_count': order.items.count()},
        )
        system_logger.log_notification(
            customer.id,
            'order_confirmation',
            context={'order_id': order.id},
        )
        logger.info(f"Order #{order.id} placed by customer {customer.id}: {order.total_amount}")
        return order

    def _allocate(self, order, cart_item):
        """
        Spread one cart line across the product's stocks, oldest first.

        Returns:
            Line subtotal
        """
        product = cart_item.product
        category = cart_item.category
        price = product.get_price(category)

        if product.archived or price is None:
            raise ValueError(f"{product.name} ({category}) is no longer available")

        stocks = list(
            Stock.objects.customer_visible()
            .select_for_update()
            .filter(product=product, category=category)
            .order_by('created_at', 'id')
        )

        available = sum((stock.available_quantity for stock in stocks), Decimal('0'))
        if available < cart_item.quantity:
            system_logger.log_checkout(
                user_id=order.customer_id,
                order_id=None,
                total_amount=0,
                status='failed',
                context={
                    'reason': 'insufficient_stock',
                    'product_id': product.id,
                    'category': category,
                    'requested': str(cart_item.quantity),
                    'available': str(available),
                },
            )
            raise ValueError(f"Not enough stock for {product.name} ({category})")

        remaining = cart_item.quantity
        line_total = Decimal('0')
        for stock in stocks:
            if remaining <= 0:
                break
            portion = min(stock.available_quantity, remaining)
            if portion <= 0:
                continue

            stock.reserve(portion)
            OrderItem.objects.create(
                order=order,
                stock=stock,
                product=product,
                category=category,
                quantity=portion,
                unit_price=price,
                price_kilo=product.price_kilo,
                price_pc=product.price_pc,
                price_tali=product.price_tali,
            )
            line_total += portion * price
            remaining -= portion

        return line_total
