"""
Tests for member stock management and the stock trail.

Every quantity change must leave a StockTrail record, reserved stock must be
protected from edits that would strand pending orders, and customers only see
what is actually available.
"""

import pytest
from decimal import Decimal
from unittest.mock import patch
from rest_framework import status

from inventory.models import Product, Stock, StockTrail
from inventory.services.stock_service import StockService


# ==============================================================================
# STOCK SERVICE
# ==============================================================================

@pytest.mark.django_db
class TestAddStock:

    def test_add_stock_records_created_trail(self, product, member_user, admin_user):
        stock = StockService().add_stock(product, member_user, 'Kilo', '12.5', performed_by=admin_user)

        assert stock.quantity == Decimal('12.5')
        assert stock.initial_quantity == Decimal('12.5')
        assert stock.status is None

        trail = StockTrail.objects.get(stock=stock)
        assert trail.action_type == StockTrail.ActionType.CREATED
        assert trail.new_quantity == Decimal('12.5')
        assert trail.performed_by == admin_user
        assert trail.performed_by_type == 'admin'

    def test_add_stock_logs_stock_update(self, product, member_user, admin_user):
        with patch('inventory.services.stock_service.system_logger.log_stock_update') as log:
            StockService().add_stock(product, member_user, 'Kilo', '5', performed_by=admin_user)

        log.assert_called_once()
        assert log.call_args.kwargs['action'] == 'created'

    def test_quantity_below_minimum_is_rejected(self, product, member_user):
        with pytest.raises(ValueError, match="Quantity must be at least 0.01"):
            StockService().add_stock(product, member_user, 'Kilo', '0')

    def test_unpriced_category_is_rejected(self, product, member_user):
        with pytest.raises(ValueError, match="no price set for category: Tali"):
            StockService().add_stock(product, member_user, 'Tali', '5')

    def test_stock_must_belong_to_member(self, product, customer_user):
        with pytest.raises(ValueError, match="Stock can only be assigned to a member"):
            StockService().add_stock(product, customer_user, 'Kilo', '5')


@pytest.mark.django_db
class TestUpdateStock:

    def test_update_quantity_records_trail(self, stock, admin_user):
        StockService().update_stock(stock, quantity='15', performed_by=admin_user)

        stock.refresh_from_db()
        assert stock.quantity == Decimal('15')
        trail = StockTrail.objects.get(stock=stock, action_type=StockTrail.ActionType.UPDATED)
        assert trail.old_quantity == Decimal('10')
        assert trail.new_quantity == Decimal('15')

    def test_cannot_drop_below_reserved_quantity(self, stock):
        stock.reserve('6')

        with pytest.raises(ValueError, match="less than reserved quantity"):
            StockService().update_stock(stock, quantity='5')

    def test_fully_sold_stock_is_locked(self, stock, customer_user):
        stock.reserve('10')
        stock.process_pending_order_approval('10', customer=customer_user)

        assert stock.is_locked
        with pytest.raises(ValueError, match="fully sold"):
            StockService().update_stock(stock, quantity='20')

    def test_edit_to_zero_marks_partially_sold_stock_sold(self, stock, customer_user, admin_user):
        stock.reserve('4')
        stock.process_pending_order_approval('4', customer=customer_user)
        assert stock.status == 'partial'

        StockService().update_stock(stock, quantity='0', performed_by=admin_user)

        stock.refresh_from_db()
        assert stock.quantity == Decimal('0')
        assert stock.status == 'sold'
        assert stock.is_locked

    def test_removed_stock_cannot_be_edited(self, stock):
        StockService().remove_stock(stock, notes='Spoiled')

        with pytest.raises(ValueError, match="Cannot edit removed stock"):
            StockService().update_stock(stock, quantity='4')


@pytest.mark.django_db
class TestRemoveAndRestore:

    def test_remove_then_restore(self, stock, admin_user):
        StockService().remove_stock(stock, notes='Spoiled', performed_by=admin_user)
        stock.refresh_from_db()
        assert stock.is_removed
        assert stock.status == 'removed'
        assert stock.notes == 'Spoiled'

        StockService().restore_stock(stock, performed_by=admin_user)
        stock.refresh_from_db()
        assert not stock.is_removed
        assert stock.status is None

        actions = list(
            StockTrail.objects.filter(stock=stock).order_by('id').values_list('action_type', flat=True)
        )
        assert actions == [StockTrail.ActionType.REMOVED, StockTrail.ActionType.RESTORED]

    def test_reserved_stock_cannot_be_removed(self, stock):
        stock.reserve('2')

        with pytest.raises(ValueError, match="Cannot remove stock with pending orders"):
            StockService().remove_stock(stock)

    def test_only_removed_stock_can_be_restored(self, stock):
        with pytest.raises(ValueError, match="Only removed stock can be restored"):
            StockService().restore_stock(stock)


# ==============================================================================
# STOCK MODEL
# ==============================================================================

@pytest.mark.django_db
class TestStockReservation:

    def test_reserve_beyond_available_fails(self, stock):
        stock.reserve('8')

        with pytest.raises(ValueError, match="Insufficient stock. Available: 2"):
            stock.reserve('3')

    def test_approval_moves_quantity_to_sold(self, stock, customer_user):
        stock.reserve('4')
        stock.process_pending_order_approval('4', customer=customer_user)

        stock.refresh_from_db()
        assert stock.quantity == Decimal('6')
        assert stock.sold_quantity == Decimal('4')
        assert stock.pending_order_qty == Decimal('0')
        assert stock.status == 'partial'
        assert stock.last_customer == customer_user

    def test_querysets_split_by_sale_state(self, make_stock, customer_user):
        untouched = make_stock('5')
        partial = make_stock('5')
        sold = make_stock('5')
        removed = make_stock('5')

        partial.process_pending_order_approval('2', customer=customer_user)
        sold.process_pending_order_approval('5', customer=customer_user)
        removed.remove('gone')

        assert list(Stock.objects.available()) == [untouched]
        assert list(Stock.objects.partial()) == [partial]
        assert list(Stock.objects.sold()) == [sold]
        assert list(Stock.objects.removed()) == [removed]


# ==============================================================================
# ADMIN API
# ==============================================================================

@pytest.mark.django_db
class TestInventoryEndpoints:

    def test_create_product_requires_a_price(self, admin_client):
        response = admin_client.post('/api/admin/inventory/products/', {
            'name': 'Mango',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_create_product(self, admin_client):
        response = admin_client.post('/api/admin/inventory/products/', {
            'name': 'Mango',
            'price_kilo': '120.00',
            'produce_type': 'fruit',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['available_categories'] == ['Kilo']

    def test_add_stock_via_api(self, admin_client, product, member_user):
        response = admin_client.post(f'/api/admin/inventory/products/{product.id}/stocks/', {
            'member_id': member_user.id,
            'category': 'Pc',
            'quantity': '40',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['stock']['category'] == 'Pc'
        assert Stock.objects.filter(product=product, member=member_user).count() == 1

    def test_add_stock_for_unknown_member(self, admin_client, product, customer_user):
        response = admin_client.post(f'/api/admin/inventory/products/{product.id}/stocks/', {
            'member_id': customer_user.id,
            'category': 'Kilo',
            'quantity': '4',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'member_id' in response.data

    def test_update_reserved_stock_returns_error(self, admin_client, stock):
        stock.reserve('7')

        response = admin_client.put(
            f'/api/admin/inventory/products/{stock.product_id}/stocks/{stock.id}/',
            {'quantity': '3'},
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'reserved quantity' in response.data['error']

    def test_remove_and_list_removed(self, admin_client, stock):
        response = admin_client.post(
            f'/api/admin/inventory/products/{stock.product_id}/stocks/{stock.id}/remove/',
            {'notes': 'Damaged in transport'},
            format='json'
        )
        assert response.status_code == status.HTTP_200_OK

        response = admin_client.get('/api/admin/inventory/removed-stocks/')
        assert response.status_code == status.HTTP_200_OK
        assert [row['id'] for row in response.data['results']] == [stock.id]

    def test_stock_trail_filters_by_stock(self, admin_client, stock, make_stock, admin_user):
        other = make_stock('3')
        StockService().update_stock(stock, quantity='11', performed_by=admin_user)
        StockService().update_stock(other, quantity='4', performed_by=admin_user)

        response = admin_client.get(f'/api/admin/inventory/stock-trail/?stock={stock.id}')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['results'][0]['performed_by_name'] == admin_user.display_name


# ==============================================================================
# MEMBER & CUSTOMER API
# ==============================================================================

@pytest.mark.django_db
class TestMemberAndCatalogue:

    def test_member_sees_only_own_stock(self, member_client, make_stock, other_member):
        mine = make_stock('5')
        make_stock('5', member=other_member)

        response = member_client.get('/api/member/stocks/')

        assert response.status_code == status.HTTP_200_OK
        assert [row['id'] for row in response.data['results']] == [mine.id]

    def test_member_sold_scope(self, member_client, make_stock, customer_user):
        sold = make_stock('2')
        make_stock('2')
        sold.process_pending_order_approval('2', customer=customer_user)

        response = member_client.get('/api/member/stocks/?scope=sold')

        assert [row['id'] for row in response.data['results']] == [sold.id]

    def test_catalogue_reports_unreserved_quantity(self, customer_client, make_stock, product):
        first = make_stock('10')
        make_stock('5')
        first.reserve('4')
        Product.objects.create(name='Old stock', price_kilo=Decimal('1'), archived=True)

        response = customer_client.get('/api/customer/products/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        units = {unit['category']: unit for unit in response.data['results'][0]['units']}
        assert Decimal(str(units['Kilo']['available_quantity'])) == Decimal('11')
        assert Decimal(str(units['Pc']['available_quantity'])) == Decimal('0')
