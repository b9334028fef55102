"""
Inventory Views and API Endpoints

Provides:
1. Admin/staff views - products, member stock, removals and the stock trail
2. Member views - own stock by sale state
3. Customer views - product catalogue with availability
"""

import logging

from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, status, filters
from rest_framework.views import APIView
from rest_framework.response import Response

from accounts.permissions import IsAdminOrStaff, IsMember, IsCustomer
from .models import Product, Stock, StockTrail
from .serializers import (
    ProductSerializer,
    StockSerializer,
    StockCreateSerializer,
    StockUpdateSerializer,
    StockRemoveSerializer,
    StockTrailSerializer,
    CatalogueProductSerializer,
)
from .services.stock_service import StockService

logger = logging.getLogger(__name__)


# =============================================================================
# ADMIN PRODUCT VIEWS
# =============================================================================

class ProductListCreateView(generics.ListCreateAPIView):
    """
    List or create products.

    GET /api/admin/inventory/products/?archived=false&search=tomato
    POST /api/admin/inventory/products/
    {
        "name": "Tomato",
        "price_kilo": "80.00",
        "produce_type": "vegetable"
    }
    """
    permission_classes = [IsAdminOrStaff]
    serializer_class = ProductSerializer
    queryset = Product.objects.all()
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['archived', 'produce_type']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'created_at']
    ordering = ['name']


class ProductDetailView(generics.RetrieveUpdateAPIView):
    """
    GET/PATCH /api/admin/inventory/products/<id>/
    """
    permission_classes = [IsAdminOrStaff]
    serializer_class = ProductSerializer
    queryset = Product.objects.all()
    http_method_names = ['get', 'patch', 'head', 'options']


# =============================================================================
# ADMIN STOCK VIEWS
# =============================================================================

class ProductStockListView(APIView):
    """
    List active stock for a product, or add member stock.

    POST /api/admin/inventory/products/<id>/stocks/
    {
        "member_id": 7,
        "category": "Kilo",
        "quantity": "25.00"
    }
    """
    permission_classes = [IsAdminOrStaff]

    def get(self, request, pk):
        product = get_object_or_404(Product, pk=pk)
        stocks = Stock.objects.active().filter(product=product).select_related('member', 'product')
        return Response({
            'product': ProductSerializer(product).data,
            'stocks': StockSerializer(stocks, many=True).data,
        })

    def post(self, request, pk):
        product = get_object_or_404(Product, pk=pk)
        serializer = StockCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            stock = StockService().add_stock(
                product=product,
                member=serializer.validated_data['member_id'],
                category=serializer.validated_data['category'],
                quantity=serializer.validated_data['quantity'],
                performed_by=request.user,
            )
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'message': 'Stock added successfully',
            'stock': StockSerializer(stock).data,
        }, status=status.HTTP_201_CREATED)


class StockUpdateView(APIView):
    """
    Edit a stock's quantity or unit.

    PUT /api/admin/inventory/products/<id>/stocks/<stock_id>/
    {
        "quantity": "30.00"
    }
    """
    permission_classes = [IsAdminOrStaff]

    def put(self, request, pk, stock_id):
        stock = get_object_or_404(Stock, pk=stock_id, product_id=pk)
        serializer = StockUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            stock = StockService().update_stock(
                stock,
                quantity=serializer.validated_data.get('quantity'),
                category=serializer.validated_data.get('category'),
                performed_by=request.user,
            )
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'message': 'Stock updated successfully',
            'stock': StockSerializer(stock).data,
        })


class StockRemoveView(APIView):
    """
    POST /api/admin/inventory/products/<id>/stocks/<stock_id>/remove/
    {
        "notes": "Spoiled"
    }
    """
    permission_classes = [IsAdminOrStaff]

    def post(self, request, pk, stock_id):
        stock = get_object_or_404(Stock, pk=stock_id, product_id=pk)
        serializer = StockRemoveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            stock = StockService().remove_stock(
                stock,
                notes=serializer.validated_data.get('notes') or None,
                performed_by=request.user,
            )
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'message': 'Stock removed successfully',
            'stock': StockSerializer(stock).data,
        })


class RemovedStockListView(generics.ListAPIView):
    permission_classes = [IsAdminOrStaff]
    serializer_class = StockSerializer
    ordering = ['-removed_at']

    def get_queryset(self):
        return Stock.objects.removed().select_related('product', 'member')


class StockRestoreView(APIView):
    """
    POST /api/admin/inventory/removed-stocks/<stock_id>/restore/
    """
    permission_classes = [IsAdminOrStaff]

    def post(self, request, stock_id):
        stock = get_object_or_404(Stock, pk=stock_id)

        try:
            stock = StockService().restore_stock(stock, performed_by=request.user)
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'message': 'Stock restored successfully',
            'stock': StockSerializer(stock).data,
        })


class SoldStockListView(generics.ListAPIView):
    permission_classes = [IsAdminOrStaff]
    serializer_class = StockSerializer
    ordering = ['-updated_at']

    def get_queryset(self):
        return Stock.objects.sold().select_related('product', 'member')


class StockTrailListView(generics.ListAPIView):
    """
    Stock movement history.

    GET /api/admin/inventory/stock-trail/

    Query Parameters:
    - stock: Stock id
    - product: Product id
    - member: Member id
    - action_type: created, sale, completed, reversal, removed, restored, updated
    """
    permission_classes = [IsAdminOrStaff]
    serializer_class = StockTrailSerializer
    queryset = StockTrail.objects.select_related('product', 'member', 'performed_by')
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['stock', 'product', 'member', 'action_type', 'category']
    ordering_fields = ['created_at']
    ordering = ['-created_at']


# =============================================================================
# MEMBER VIEWS
# =============================================================================

class MemberStockListView(generics.ListAPIView):
    """
    The authenticated member's stock.

    GET /api/member/stocks/?scope=available|partial|sold|all
    """
    permission_classes = [IsMember]
    serializer_class = StockSerializer

    def get_queryset(self):
        scope = self.request.query_params.get('scope', 'all')
        queryset = Stock.objects.filter(member=self.request.user)

        if scope == 'available':
            queryset = queryset.available()
        elif scope == 'partial':
            queryset = queryset.partial()
        elif scope == 'sold':
            queryset = queryset.sold()
        else:
            queryset = queryset.active()

        return queryset.select_related('product', 'member').order_by('-updated_at')


# =============================================================================
# CUSTOMER CATALOGUE
# =============================================================================

class CatalogueListView(generics.ListAPIView):
    """
    GET /api/customer/products/?search=mango
    """
    permission_classes = [IsCustomer]
    serializer_class = CatalogueProductSerializer
    queryset = Product.objects.filter(archived=False)
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name', 'produce_type']
    ordering = ['name']
