"""
Logistic Order Views

Logistic users see the approved orders assigned to them and confirm
delivery.
"""

from django.shortcuts import get_object_or_404
from rest_framework import generics, status
from rest_framework.views import APIView
from rest_framework.response import Response

from accounts.permissions import IsLogistic
from .models import Order
from .serializers import OrderDetailSerializer, OrderListSerializer, ConfirmationSerializer
from .services import OrderWorkflowService


class LogisticOrderListView(generics.ListAPIView):
    """
    GET /api/logistic/orders/?delivery_status=out_for_delivery
    """
    permission_classes = [IsLogistic]
    serializer_class = OrderListSerializer
    filterset_fields = ['delivery_status']
    ordering = ['-created_at']

    def get_queryset(self):
        return Order.objects.filter(
            logistic=self.request.user,
            status=Order.Status.APPROVED,
        ).select_related('customer')


class LogisticOrderDetailView(generics.RetrieveAPIView):
    permission_classes = [IsLogistic]
    serializer_class = OrderDetailSerializer

    def get_queryset(self):
        return Order.objects.filter(logistic=self.request.user).select_related(
            'customer', 'admin', 'logistic'
        )


class MarkDeliveredView(APIView):
    """
    POST /api/logistic/orders/<id>/mark-delivered/
    {
        "confirmation_text": "I Confirm"
    }
    """
    permission_classes = [IsLogistic]

    def post(self, request, pk):
        order = get_object_or_404(Order, pk=pk, logistic=request.user)
        self.check_object_permissions(request, order)

        serializer = ConfirmationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = OrderWorkflowService().mark_delivered(
                order, request.user, serializer.validated_data['confirmation_text']
            )
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'message': 'Order marked as delivered',
            'order': OrderDetailSerializer(order).data,
        })
