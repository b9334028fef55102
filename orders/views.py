"""
Admin Order Views

Review workflow for admin/staff:
- Order list/detail
- Approve / reject / urgency
- Logistic assignment and pickup milestones
- Suspicious order groups (verdict, reject, merge)
"""

import logging

from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, status, filters
from rest_framework.views import APIView
from rest_framework.response import Response

from accounts.permissions import IsAdminOrStaff
from .filters import OrderFilter
from .models import Order
from .serializers import (
    OrderListSerializer,
    OrderDetailSerializer,
    ApproveOrderSerializer,
    RejectOrderSerializer,
    AssignLogisticSerializer,
    ConfirmationSerializer,
    GroupActionSerializer,
    GroupMergeSerializer,
    GroupVerdictSerializer,
)
from .services import (
    AuditTrailService,
    GroupOrderService,
    GroupVerdictError,
    InsufficientStockError,
    OrderWorkflowService,
    SuspiciousOrderDetectionService,
)

logger = logging.getLogger(__name__)


def _error(message, **extra):
    return Response({'error': message, **extra}, status=status.HTTP_400_BAD_REQUEST)


class AdminOrderListView(generics.ListAPIView):
    """
    List orders.

    GET /api/admin/orders/

    Query Parameters:
    - status: pending, approved, rejected, delayed, cancelled, merged
    - delivery_status: pending, ready_to_pickup, out_for_delivery, delivered
    - is_urgent / is_suspicious: true|false
    - search: customer name, username or email
    """
    permission_classes = [IsAdminOrStaff]
    serializer_class = OrderListSerializer
    queryset = Order.objects.select_related('customer')
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = OrderFilter
    search_fields = ['customer__username', 'customer__first_name', 'customer__last_name', 'customer__email']
    ordering_fields = ['created_at', 'total_amount', 'status']
    ordering = ['-created_at']


class AdminOrderDetailView(APIView):
    """
    GET /api/admin/orders/<id>/

    Moves the order to delayed first if it has outlived the approval window.
    """
    permission_classes = [IsAdminOrStaff]

    def get(self, request, pk):
        order = get_object_or_404(Order.objects.select_related('customer', 'admin', 'logistic'), pk=pk)
        order.refresh_approval_window()

        return Response({
            'order': OrderDetailSerializer(order).data,
            'is_urgent': order.is_urgent_now,
            'can_approve': order.can_approve,
            'order_age_hours': round(order.age_hours, 2),
            'has_sufficient_stock': order.has_sufficient_stock(),
            'insufficient_stock_items': order.get_insufficient_stock_items(),
            'member_summary': AuditTrailService().get_multi_member_order_summary(order),
        })


class ApproveOrderView(APIView):
    """
    POST /api/admin/orders/<id>/approve/
    {
        "admin_notes": "Looks good"
    }
    """
    permission_classes = [IsAdminOrStaff]

    def post(self, request, pk):
        order = get_object_or_404(Order, pk=pk)
        serializer = ApproveOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = OrderWorkflowService().approve(
                order,
                request.user,
                serializer.validated_data.get('admin_notes') or None,
            )
        except InsufficientStockError as e:
            return _error(str(e), insufficient_items=e.items)
        except ValueError as e:
            return _error(str(e))

        return Response({
            'message': 'Order approved successfully',
            'order': OrderDetailSerializer(order).data,
        })


class RejectOrderView(APIView):
    """
    POST /api/admin/orders/<id>/reject/
    {
        "admin_notes": "Customer unreachable"
    }
    """
    permission_classes = [IsAdminOrStaff]

    def post(self, request, pk):
        order = get_object_or_404(Order, pk=pk)
        serializer = RejectOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = OrderWorkflowService().reject(
                order, request.user, serializer.validated_data['admin_notes']
            )
        except ValueError as e:
            return _error(str(e))

        return Response({
            'message': 'Order rejected successfully',
            'order': OrderDetailSerializer(order).data,
        })


class MarkUrgentView(APIView):
    permission_classes = [IsAdminOrStaff]

    def post(self, request, pk):
        order = get_object_or_404(Order, pk=pk)
        try:
            OrderWorkflowService().mark_urgent(order)
        except ValueError as e:
            return _error(str(e))
        return Response({'message': 'Order marked as urgent', 'is_urgent': True})


class UnmarkUrgentView(APIView):
    permission_classes = [IsAdminOrStaff]

    def post(self, request, pk):
        order = get_object_or_404(Order, pk=pk)
        OrderWorkflowService().unmark_urgent(order)
        return Response({'message': 'Order urgency removed', 'is_urgent': False})


class AssignLogisticView(APIView):
    """
    POST /api/admin/orders/<id>/assign-logistic/
    {
        "logistic_id": 12
    }
    """
    permission_classes = [IsAdminOrStaff]

    def post(self, request, pk):
        order = get_object_or_404(Order, pk=pk)
        serializer = AssignLogisticSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = OrderWorkflowService().assign_logistic(
                order, serializer.validated_data['logistic_id'], request.user
            )
        except ValueError as e:
            return _error(str(e))

        return Response({
            'message': 'Logistic assigned successfully',
            'order': OrderDetailSerializer(order).data,
        })


class MarkReadyView(APIView):
    permission_classes = [IsAdminOrStaff]

    def post(self, request, pk):
        order = get_object_or_404(Order, pk=pk)
        try:
            order = OrderWorkflowService().mark_ready(order, request.user)
        except ValueError as e:
            return _error(str(e))
        return Response({
            'message': 'Order marked as ready for pickup',
            'delivery_status': order.delivery_status,
        })


class MarkPickedUpView(APIView):
    """
    POST /api/admin/orders/<id>/mark-picked-up/
    {
        "confirmation_text": "Confirm Pick Up"
    }
    """
    permission_classes = [IsAdminOrStaff]

    def post(self, request, pk):
        order = get_object_or_404(Order, pk=pk)
        serializer = ConfirmationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = OrderWorkflowService().mark_picked_up(
                order, request.user, serializer.validated_data['confirmation_text']
            )
        except ValueError as e:
            return _error(str(e))

        return Response({
            'message': 'Order marked as picked up',
            'delivery_status': order.delivery_status,
        })


# =============================================================================
# SUSPICIOUS ORDER GROUPS
# =============================================================================

class SuspiciousOrderListView(generics.ListAPIView):
    """
    GET /api/admin/orders/suspicious/

    Expired flags are cleared before listing.
    """
    permission_classes = [IsAdminOrStaff]
    serializer_class = OrderListSerializer
    filter_backends = []

    def get_queryset(self):
        service = SuspiciousOrderDetectionService()
        service.clear_expired_suspicious_orders()
        return service.get_suspicious_orders()


class OrderGroupView(APIView):
    """
    GET /api/admin/orders/group/?orders=1,2,3
    """
    permission_classes = [IsAdminOrStaff]

    def get(self, request):
        raw = request.query_params.get('orders', '')
        try:
            order_ids = [int(part) for part in raw.split(',') if part.strip()]
        except ValueError:
            return _error('orders must be a comma-separated list of ids')
        if not order_ids:
            return _error('orders is required')

        orders = Order.objects.filter(id__in=order_ids).select_related('customer').order_by('created_at')
        try:
            summary = GroupOrderService().group_summary(order_ids)
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response({
            'orders': OrderDetailSerializer(orders, many=True).data,
            'summary': summary,
        })


class GroupRejectView(APIView):
    """
    POST /api/admin/orders/group/reject/
    {
        "order_ids": [1, 2, 3],
        "admin_notes": "Duplicate orders"
    }
    """
    permission_classes = [IsAdminOrStaff]

    def post(self, request):
        serializer = GroupActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            count = GroupOrderService().reject_group(
                serializer.validated_data['order_ids'],
                request.user,
                serializer.validated_data.get('admin_notes') or None,
            )
        except ValueError as e:
            return _error(str(e))

        return Response({
            'message': f'Successfully rejected {count} order(s) from the suspicious group.',
            'rejected_count': count,
        })


class GroupMergeView(APIView):
    """
    POST /api/admin/orders/group/merge/
    {
        "order_ids": [1, 2, 3],
        "admin_notes": "Same delivery"
    }
    """
    permission_classes = [IsAdminOrStaff]

    def post(self, request):
        serializer = GroupMergeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order_ids = serializer.validated_data['order_ids']
        try:
            primary = GroupOrderService().merge_group(
                order_ids,
                request.user,
                serializer.validated_data.get('admin_notes') or None,
            )
        except ValueError as e:
            return _error(str(e))

        return Response({
            'message': (
                f'Successfully merged {len(order_ids)} orders into Order #{primary.id}. '
                f'Order is ready for approval.'
            ),
            'order': OrderDetailSerializer(primary).data,
        })


class GroupVerdictView(APIView):
    """
    POST /api/admin/orders/group-verdict/
    {
        "order_ids": [1, 2],
        "verdict": "approve",
        "admin_notes": "Verified with customer"
    }
    """
    permission_classes = [IsAdminOrStaff]

    def post(self, request):
        serializer = GroupVerdictSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        verdict = serializer.validated_data['verdict']
        try:
            count = GroupOrderService().apply_group_verdict(
                serializer.validated_data['order_ids'],
                verdict,
                request.user,
                serializer.validated_data.get('admin_notes') or None,
            )
        except GroupVerdictError as e:
            return _error(str(e), failures=e.failures)
        except ValueError as e:
            return _error(str(e))

        action = 'approved' if verdict == 'approve' else 'rejected'
        return Response({
            'message': f'Successfully {action} {count} orders in the group.',
            'processed_count': count,
        })
