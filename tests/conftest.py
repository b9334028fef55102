"""
Shared pytest fixtures for the integration suite.
"""
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

User = get_user_model()


@pytest.fixture(autouse=True)
def clear_cache():
    """Clear cache before and after each test to prevent pollution."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """API client for making requests."""
    return APIClient()


def _create_user(username, user_type, **extra):
    return User.objects.create_user(
        username=username,
        email=f'{username}@example.com',
        password='testpass123',
        first_name=username.split('_')[0].title(),
        last_name='Tester',
        type=user_type,
        **extra
    )


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


# =============================================================================
# USERS
# =============================================================================

@pytest.fixture
def admin_user(db):
    return _create_user('coop_admin', User.UserType.ADMIN, is_staff=True)


@pytest.fixture
def staff_user(db):
    return _create_user('coop_staff', User.UserType.STAFF)


@pytest.fixture
def customer_user(db):
    return _create_user('juan_customer', User.UserType.CUSTOMER, contact_number='09171234567')


@pytest.fixture
def other_customer(db):
    return _create_user('maria_customer', User.UserType.CUSTOMER)


@pytest.fixture
def member_user(db):
    return _create_user('pedro_member', User.UserType.MEMBER)


@pytest.fixture
def other_member(db):
    return _create_user('rosa_member', User.UserType.MEMBER)


@pytest.fixture
def logistic_user(db):
    return _create_user('ben_logistic', User.UserType.LOGISTIC, assigned_area='San Isidro')


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def customer_client(customer_user):
    return _client_for(customer_user)


@pytest.fixture
def member_client(member_user):
    return _client_for(member_user)


@pytest.fixture
def logistic_client(logistic_user):
    return _client_for(logistic_user)


# =============================================================================
# INVENTORY
# =============================================================================

@pytest.fixture
def product(db):
    """Tomatoes sold by kilo (Php 50) and by piece (Php 10)."""
    from inventory.models import Product

    return Product.objects.create(
        name='Tomato',
        description='Fresh red tomatoes',
        produce_type='vegetable',
        price_kilo=Decimal('50.00'),
        price_pc=Decimal('10.00'),
    )


@pytest.fixture
def make_stock(db, product, member_user):
    """Factory for member stock rows."""
    from inventory.models import Stock

    def _make(quantity='10', category='Kilo', member=None, stock_product=None):
        quantity = Decimal(str(quantity))
        return Stock.objects.create(
            product=stock_product or product,
            member=member or member_user,
            category=category,
            quantity=quantity,
            initial_quantity=quantity,
        )

    return _make


@pytest.fixture
def stock(make_stock):
    return make_stock('10')


# =============================================================================
# ORDERS
# =============================================================================

@pytest.fixture
def make_order(db, customer_user):
    """
    Factory for orders placed directly against stock.

    ``items`` is a list of (stock, quantity) pairs. Each portion is reserved
    on its stock the way checkout does.
    """
    from orders.models import Order, OrderItem

    def _make(items, customer=None, status=None, created_at=None, reserve=True):
        order = Order.objects.create(
            customer=customer or customer_user,
            status=status or Order.Status.PENDING,
            delivery_address='Purok 3, Brgy. San Isidro',
            created_at=created_at or timezone.now(),
        )
        subtotal = Decimal('0')
        for item_stock, quantity in items:
            quantity = Decimal(str(quantity))
            item_product = item_stock.product
            price = item_product.get_price(item_stock.category)
            if reserve:
                item_stock.reserve(quantity)
            OrderItem.objects.create(
                order=order,
                stock=item_stock,
                product=item_product,
                category=item_stock.category,
                quantity=quantity,
                unit_price=price,
                price_kilo=item_product.price_kilo,
                price_pc=item_product.price_pc,
                price_tali=item_product.price_tali,
            )
            subtotal += quantity * price

        order.subtotal = subtotal
        order.update_shares()
        order.save()
        return order

    return _make
