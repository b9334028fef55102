"""
Sales Report Views

Admin/staff reporting over delivered orders:
- Sales list with a revenue summary
- Revenue per supplying member
- Item-level audit trail
"""

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, filters
from rest_framework.views import APIView
from rest_framework.response import Response

from accounts.permissions import IsAdminOrStaff
from .filters import SaleFilter, SalesAuditTrailFilter
from .models import OrderItem, Sale
from .serializers import MemberSalesQuerySerializer, SaleSerializer, SalesAuditItemSerializer
from .services import SalesReportService


class SaleListView(generics.ListAPIView):
    """
    List delivered sales.

    GET /api/admin/sales/

    Query Parameters:
    - start_date / end_date: delivery date range (YYYY-MM-DD)
    - min_amount / max_amount: sale total
    - customer / logistic: user id
    - search: customer name, username or email

    The page carries a `summary` of the whole filtered set.
    """
    permission_classes = [IsAdminOrStaff]
    serializer_class = SaleSerializer
    queryset = Sale.objects.select_related('customer', 'logistic')
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = SaleFilter
    search_fields = ['customer__username', 'customer__first_name', 'customer__last_name', 'customer__email']
    ordering_fields = ['delivered_at', 'total_amount']
    ordering = ['-delivered_at']

    def list(self, request, *args, **kwargs):
        response = super().list(request, *args, **kwargs)
        sales = self.filter_queryset(self.get_queryset())
        response.data['summary'] = SalesReportService.summarize_sales(sales)
        return response


class MemberSalesView(APIView):
    """
    GET /api/admin/sales/members/?start_date=&end_date=&member_id=
    """
    permission_classes = [IsAdminOrStaff]

    def get(self, request):
        serializer = MemberSalesQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data

        items = OrderItem.objects.filter(order__sale__isnull=False)
        if 'start_date' in params:
            items = items.filter(order__sale__delivered_at__date__gte=params['start_date'])
        if 'end_date' in params:
            items = items.filter(order__sale__delivered_at__date__lte=params['end_date'])
        if 'member_id' in params:
            items = items.filter(member_id=params['member_id'])

        members = SalesReportService.member_sales(items)
        return Response({
            'members': members,
            'summary': SalesReportService.summarize_members(members),
        })


class SalesAuditTrailView(generics.ListAPIView):
    """
    GET /api/admin/sales/audit-trail/?start_date=&end_date=&member=&order=
    """
    permission_classes = [IsAdminOrStaff]
    serializer_class = SalesAuditItemSerializer
    queryset = OrderItem.objects.filter(order__sale__isnull=False).select_related('product', 'stock', 'order__sale')
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = SalesAuditTrailFilter
    ordering = ['-order__sale__delivered_at', 'id']

    def list(self, request, *args, **kwargs):
        response = super().list(request, *args, **kwargs)
        items = self.filter_queryset(self.get_queryset())
        response.data['summary'] = SalesReportService.summarize_audit_trail(items)
        return response
