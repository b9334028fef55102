"""
Customer Cart and Order Views

Customers fill a cart, check out into a pending order, follow their order
history and cancel orders that are still awaiting review.
"""

import logging

from django.db import IntegrityError, transaction
from django.shortcuts import get_object_or_404
from rest_framework import generics, status
from rest_framework.views import APIView
from rest_framework.response import Response

from accounts.permissions import IsCustomer
from .models import Cart, CartItem, Order
from .serializers import (
    CartSerializer,
    CartItemSerializer,
    AddCartItemSerializer,
    UpdateCartItemSerializer,
    CheckoutSerializer,
    CustomerOrderSerializer,
)
from .services import CheckoutService, OrderWorkflowService

logger = logging.getLogger(__name__)


# =============================================================================
# CART
# =============================================================================

class CartView(APIView):
    """
    GET /api/customer/cart/
    """
    permission_classes = [IsCustomer]

    def get(self, request):
        cart = Cart.for_customer(request.user)
        return Response(CartSerializer(cart).data)


class CartItemAddView(APIView):
    """
    Add a product to the cart. Adding the same product and unit again
    increases the quantity.

    POST /api/customer/cart/items/
    {
        "product_id": 3,
        "category": "Kilo",
        "quantity": "2.5"
    }
    """
    permission_classes = [IsCustomer]

    def post(self, request):
        serializer = AddCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        cart = Cart.for_customer(request.user)
        try:
            with transaction.atomic():
                item, created = CartItem.objects.select_for_update().get_or_create(
                    cart=cart,
                    product=data['product'],
                    category=data['category'],
                    defaults={'quantity': data['quantity']},
                )
                if not created:
                    item.quantity += data['quantity']
                    item.save(update_fields=['quantity', 'updated_at'])
        except IntegrityError:
            # Concurrent add created the row first
            item = CartItem.objects.get(cart=cart, product=data['product'], category=data['category'])
            item.quantity += data['quantity']
            item.save(update_fields=['quantity', 'updated_at'])
            created = False

        return Response({
            'message': 'Item added to cart',
            'item': CartItemSerializer(item).data,
        }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


class CartItemDetailView(APIView):
    """
    PUT /api/customer/cart/items/<id>/
    {
        "quantity": "3"
    }

    DELETE /api/customer/cart/items/<id>/
    """
    permission_classes = [IsCustomer]

    def _get_item(self, request, pk):
        return get_object_or_404(CartItem, pk=pk, cart__customer=request.user)

    def put(self, request, pk):
        item = self._get_item(request, pk)
        serializer = UpdateCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        item.quantity = serializer.validated_data['quantity']
        item.save(update_fields=['quantity', 'updated_at'])

        return Response({
            'message': 'Cart item updated',
            'item': CartItemSerializer(item).data,
        })

    def delete(self, request, pk):
        item = self._get_item(request, pk)
        item.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class CheckoutView(APIView):
    """
    Check out the cart.

    POST /api/customer/cart/checkout/
    {
        "delivery_address": "Purok 3, Brgy. San Isidro"
    }
    """
    permission_classes = [IsCustomer]

    def post(self, request):
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = CheckoutService().checkout(
                request.user, serializer.validated_data['delivery_address']
            )
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'message': 'Order placed successfully',
            'order': CustomerOrderSerializer(order).data,
        }, status=status.HTTP_201_CREATED)


# =============================================================================
# ORDER HISTORY
# =============================================================================

class CustomerOrderListView(generics.ListAPIView):
    """
    GET /api/customer/orders/?status=pending
    """
    permission_classes = [IsCustomer]
    serializer_class = CustomerOrderSerializer
    filterset_fields = ['status', 'delivery_status']
    ordering = ['-created_at']

    def get_queryset(self):
        return Order.objects.filter(customer=self.request.user).exclude(
            status=Order.Status.MERGED
        )


class CustomerOrderCancelView(APIView):
    """
    POST /api/customer/orders/<id>/cancel/
    """
    permission_classes = [IsCustomer]

    def post(self, request, pk):
        order = get_object_or_404(Order, pk=pk, customer=request.user)

        try:
            order = OrderWorkflowService().cancel_by_customer(order, request.user)
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'message': 'Order cancelled successfully',
            'order': CustomerOrderSerializer(order).data,
        })
