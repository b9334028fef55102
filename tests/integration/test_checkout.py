"""
Tests for the customer cart and checkout.

Checkout spreads each cart line across member stocks (oldest first),
reserves the allocated quantity, enforces the minimum order total and is
refused while the system is locked.
"""

import pytest
from decimal import Decimal
from unittest.mock import patch
from django.test import override_settings
from rest_framework import status

from orders.models import Cart, CartItem, Order
from orders.services import CheckoutService


def _fill_cart(customer, product, quantity, category='Kilo'):
    cart = Cart.for_customer(customer)
    return CartItem.objects.create(
        cart=cart, product=product, category=category, quantity=Decimal(str(quantity))
    )


# ==============================================================================
# CART API
# ==============================================================================

@pytest.mark.django_db
class TestCart:

    def test_add_then_increment_cart_item(self, customer_client, product):
        payload = {'product_id': product.id, 'category': 'Kilo', 'quantity': '1.5'}

        first = customer_client.post('/api/customer/cart/items/', payload, format='json')
        second = customer_client.post('/api/customer/cart/items/', payload, format='json')

        assert first.status_code == status.HTTP_201_CREATED
        assert second.status_code == status.HTTP_200_OK
        assert CartItem.objects.get().quantity == Decimal('3.0')

    def test_cannot_add_unpriced_unit(self, customer_client, product):
        response = customer_client.post('/api/customer/cart/items/', {
            'product_id': product.id, 'category': 'Tali', 'quantity': '1',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'category' in response.data

    def test_cart_subtotal(self, customer_client, customer_user, product):
        _fill_cart(customer_user, product, 2)
        _fill_cart(customer_user, product, 3, category='Pc')

        response = customer_client.get('/api/customer/cart/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['subtotal'] == '130.00'
        assert len(response.data['items']) == 2

    def test_update_and_delete_own_item_only(self, customer_client, other_customer, product):
        other_item = _fill_cart(other_customer, product, 1)

        response = customer_client.put(
            f'/api/customer/cart/items/{other_item.id}/', {'quantity': '9'}, format='json'
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

        response = customer_client.delete(f'/api/customer/cart/items/{other_item.id}/')
        assert response.status_code == status.HTTP_404_NOT_FOUND


# ==============================================================================
# CHECKOUT SERVICE
# ==============================================================================

@pytest.mark.django_db
class TestCheckoutAllocation:

    def test_allocates_oldest_stock_first(self, customer_user, product, make_stock, other_member):
        older = make_stock('3')
        newer = make_stock('10', member=other_member)
        _fill_cart(customer_user, product, 5)

        order = CheckoutService().checkout(customer_user, 'Purok 3, Brgy. San Isidro')

        items = list(order.items.order_by('id'))
        assert [(item.stock_id, item.quantity) for item in items] == [
            (older.id, Decimal('3')),
            (newer.id, Decimal('2')),
        ]

        older.refresh_from_db()
        newer.refresh_from_db()
        assert older.pending_order_qty == Decimal('3')
        assert newer.pending_order_qty == Decimal('2')
        # Quantity only drops at approval
        assert older.quantity == Decimal('3')

    def test_totals_include_coop_share(self, customer_user, product, make_stock):
        make_stock('10')
        _fill_cart(customer_user, product, 2)

        order = CheckoutService().checkout(customer_user, 'Purok 3')

        assert order.status == Order.Status.PENDING
        assert order.subtotal == Decimal('100.00')
        assert order.coop_share == Decimal('10.00')
        assert order.member_share == Decimal('100.00')
        assert order.total_amount == Decimal('110.00')

    def test_cart_is_cleared_after_checkout(self, customer_user, product, make_stock):
        make_stock('10')
        _fill_cart(customer_user, product, 2)

        CheckoutService().checkout(customer_user, 'Purok 3')

        assert not CartItem.objects.filter(cart__customer=customer_user).exists()

    def test_reserved_stock_is_not_offered_again(self, customer_user, other_customer, product, make_stock):
        make_stock('4')
        _fill_cart(customer_user, product, 4)
        CheckoutService().checkout(customer_user, 'Purok 3')

        _fill_cart(other_customer, product, 2)
        with pytest.raises(ValueError, match="Not enough stock for Tomato"):
            CheckoutService().checkout(other_customer, 'Purok 5')


@pytest.mark.django_db
class TestCheckoutValidation:

    def test_empty_cart(self, customer_user):
        with pytest.raises(ValueError, match="Your cart is empty."):
            CheckoutService().checkout(customer_user, 'Purok 3')

    def test_missing_address(self, customer_user, product, make_stock):
        make_stock('10')
        _fill_cart(customer_user, product, 2)

        with pytest.raises(ValueError, match="A delivery address is required."):
            CheckoutService().checkout(customer_user, '   ')

    @override_settings(ORDER_MINIMUM_TOTAL=75)
    def test_minimum_order_total(self, customer_user, product, make_stock):
        stock = make_stock('10')
        _fill_cart(customer_user, product, 1)

        with pytest.raises(ValueError) as exc:
            CheckoutService().checkout(customer_user, 'Purok 3')

        assert str(exc.value) == (
            "Minimum order requirement is Php75. Your current total is Php50.00. "
            "Please add more items to your cart."
        )
        # Nothing was reserved or created
        stock.refresh_from_db()
        assert stock.pending_order_qty == Decimal('0')
        assert not Order.objects.exists()
        assert CartItem.objects.filter(cart__customer=customer_user).exists()

    def test_checkout_refused_during_lockout(self, customer_user, product, make_stock):
        make_stock('10')
        _fill_cart(customer_user, product, 2)

        with patch('orders.services.checkout_service.LockoutService.is_customer_access_blocked', return_value=True):
            with pytest.raises(ValueError, match="unavailable while the system is locked"):
                CheckoutService().checkout(customer_user, 'Purok 3')

    def test_archived_product_in_cart(self, customer_user, product, make_stock):
        make_stock('10')
        _fill_cart(customer_user, product, 2)
        product.archived = True
        product.save()

        with pytest.raises(ValueError, match="no longer available"):
            CheckoutService().checkout(customer_user, 'Purok 3')


# ==============================================================================
# CHECKOUT API
# ==============================================================================

@pytest.mark.django_db
class TestCheckoutEndpoint:

    def test_checkout_returns_customer_order(self, customer_client, customer_user, product, make_stock):
        make_stock('10')
        _fill_cart(customer_user, product, 2)

        response = customer_client.post('/api/customer/cart/checkout/', {
            'delivery_address': 'Purok 3, Brgy. San Isidro',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        order = response.data['order']
        assert order['status'] == 'pending'
        assert order['items'][0]['quantity'] == '2.00'
        assert 'is_suspicious' not in order

    def test_checkout_error_is_400(self, customer_client):
        response = customer_client.post('/api/customer/cart/checkout/', {
            'delivery_address': 'Purok 3',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'Your cart is empty.'

    def test_order_history_hides_merged_orders(self, customer_client, make_order, stock):
        visible = make_order([(stock, 2)])
        make_order([(stock, 2)], status=Order.Status.MERGED)

        response = customer_client.get('/api/customer/orders/')

        assert response.status_code == status.HTTP_200_OK
        assert [row['id'] for row in response.data['results']] == [visible.id]
