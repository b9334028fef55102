"""
System Lockout Views

Admin/staff endpoints for the daily price-lock decision:
- /api/admin/system-lockout/     status, decisions, scheduled lockouts, history
- /api/admin/mandatory-action/   the blocking decision flow shown to admins
"""

import logging

from django.shortcuts import get_object_or_404
from rest_framework import generics, status
from rest_framework.views import APIView
from rest_framework.response import Response

from accounts.permissions import IsAdminOrStaff
from core import system_logger
from .models import SystemSchedule, SystemTracking
from .serializers import (
    ConfirmActionSerializer,
    ScheduleLockoutSerializer,
    SystemScheduleSerializer,
    SystemTrackingSerializer,
)
from .services import LockoutActionUnavailable, LockoutService

logger = logging.getLogger(__name__)

ACCESS_RESTORED = 'Customer access has been restored.'
NO_PENDING_ADMIN_ACTION = 'No pending admin action found.'
NO_PENDING_PRICE_CHANGE = 'No pending price change action found.'


def _error(message):
    return Response({'error': message}, status=status.HTTP_400_BAD_REQUEST)


def _confirmed(request):
    serializer = ConfirmActionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)


def _decision_response(schedule, message, **extra):
    return Response({
        'success': True,
        'message': message,
        'schedule': SystemScheduleSerializer(schedule).data,
        **extra,
    })


# ===== System lockout =====

class LockoutStatusView(APIView):
    """
    GET /api/admin/system-lockout/status/
    """
    permission_classes = [IsAdminOrStaff]

    def get(self, request):
        schedule = SystemSchedule.get_or_create_today_record()
        return Response({
            'schedule': SystemScheduleSerializer(schedule).data,
            'can_take_action': schedule.can_take_action,
            'next_action': schedule.next_action,
        })


class KeepPricesView(APIView):
    """
    POST /api/admin/system-lockout/keep-prices/
    {
        "confirm": true
    }
    """
    permission_classes = [IsAdminOrStaff]

    def post(self, request):
        _confirmed(request)
        try:
            schedule = LockoutService.keep_prices(request.user)
        except LockoutActionUnavailable as e:
            return _error(str(e))
        return _decision_response(schedule, f'Prices kept as is. {ACCESS_RESTORED}')


class ApplyPriceChangesView(APIView):
    permission_classes = [IsAdminOrStaff]

    def post(self, request):
        _confirmed(request)
        try:
            schedule = LockoutService.apply_price_changes(request.user)
        except LockoutActionUnavailable as e:
            return _error(str(e))
        return _decision_response(
            schedule,
            'Price changes will be applied. Please click "Cancel" or "Good to go" to proceed.'
        )


class CancelPriceChangesView(APIView):
    permission_classes = [IsAdminOrStaff]

    def post(self, request):
        _confirmed(request)
        try:
            schedule = LockoutService.cancel_price_changes(request.user)
        except LockoutActionUnavailable as e:
            return _error(str(e))
        return _decision_response(schedule, f'Price changes cancelled. {ACCESS_RESTORED}')


class ApprovePriceChangesView(APIView):
    permission_classes = [IsAdminOrStaff]

    def post(self, request):
        _confirmed(request)
        try:
            schedule = LockoutService.approve_price_changes(request.user)
        except LockoutActionUnavailable as e:
            return _error(str(e))
        return _decision_response(schedule, f'Price changes approved. {ACCESS_RESTORED}')


class ScheduledLockoutListCreateView(generics.ListCreateAPIView):
    """
    GET  /api/admin/system-lockout/scheduled/
    POST /api/admin/system-lockout/scheduled/
    {
        "scheduled_at": "2025-01-15T00:00:00+08:00",
        "description": "Weekly price review"
    }
    or
    {
        "in_one_minute": true
    }
    """
    permission_classes = [IsAdminOrStaff]
    serializer_class = SystemTrackingSerializer
    pagination_class = None

    def get_queryset(self):
        return SystemTracking.get_all_scheduled_lockouts()

    def create(self, request, *args, **kwargs):
        serializer = ScheduleLockoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        metadata = {'scheduled_by': request.user.id}
        if data.get('in_one_minute'):
            lockout = SystemTracking.schedule_lockout_in_one_minute(data.get('description'), metadata)
        else:
            lockout = SystemTracking.schedule_lockout(data['scheduled_at'], data.get('description'), metadata)

        system_logger.log_lockout_event('scheduled', {
            'tracking_id': lockout.id,
            'scheduled_at': lockout.scheduled_at.isoformat(),
            'admin_user_id': request.user.id,
        })
        return Response(SystemTrackingSerializer(lockout).data, status=status.HTTP_201_CREATED)


class CancelScheduledLockoutView(APIView):
    permission_classes = [IsAdminOrStaff]

    def post(self, request, pk):
        lockout = get_object_or_404(SystemTracking, pk=pk)
        if not lockout.cancel():
            return _error('Only scheduled lockouts can be cancelled.')

        system_logger.log_lockout_event('cancelled', {
            'tracking_id': lockout.id,
            'admin_user_id': request.user.id,
        })
        return Response({
            'message': 'Scheduled lockout cancelled',
            'lockout': SystemTrackingSerializer(lockout).data,
        })


class LockoutHistoryView(APIView):
    """
    GET /api/admin/system-lockout/history/?limit=10
    """
    permission_classes = [IsAdminOrStaff]

    def get(self, request):
        try:
            limit = int(request.query_params.get('limit', 10))
        except ValueError:
            return _error('limit must be an integer')

        history = SystemTracking.get_lockout_history(limit=max(limit, 1))
        next_lockout = SystemTracking.get_next_scheduled_lockout()
        return Response({
            'history': SystemTrackingSerializer(history, many=True).data,
            'next_scheduled': SystemTrackingSerializer(next_lockout).data if next_lockout else None,
        })


# ===== Mandatory action =====

class MandatoryActionStatusView(APIView):
    """
    GET /api/admin/mandatory-action/status/
    """
    permission_classes = [IsAdminOrStaff]

    def get(self, request):
        info = LockoutService.get_mandatory_action_info()
        return Response({
            'mandatory_action_required': info is not None,
            'lockout_info': info,
        })


class StayAsIsView(APIView):
    permission_classes = [IsAdminOrStaff]

    def post(self, request):
        _confirmed(request)
        try:
            schedule = LockoutService.keep_prices(request.user, tracking_action='stay_as_is')
        except LockoutActionUnavailable:
            return _error(NO_PENDING_ADMIN_ACTION)
        return _decision_response(schedule, f'Prices kept as is. {ACCESS_RESTORED}')


class PriceChangeView(APIView):
    permission_classes = [IsAdminOrStaff]

    def post(self, request):
        _confirmed(request)
        try:
            schedule = LockoutService.apply_price_changes(request.user, tracking_action='price_change')
        except LockoutActionUnavailable:
            return _error(NO_PENDING_ADMIN_ACTION)
        return _decision_response(
            schedule,
            'Price changes approved. Please confirm to proceed.',
            requires_confirmation=True,
        )


class CancelPriceChangeView(APIView):
    permission_classes = [IsAdminOrStaff]

    def post(self, request):
        _confirmed(request)
        try:
            schedule = LockoutService.cancel_price_changes(request.user)
        except LockoutActionUnavailable:
            return _error(NO_PENDING_PRICE_CHANGE)
        return _decision_response(schedule, f'Price changes cancelled. {ACCESS_RESTORED}')


class ApprovePriceChangeView(APIView):
    permission_classes = [IsAdminOrStaff]

    def post(self, request):
        _confirmed(request)
        try:
            schedule = LockoutService.approve_price_changes(request.user)
        except LockoutActionUnavailable:
            return _error(NO_PENDING_PRICE_CHANGE)
        return _decision_response(schedule, f'Price changes approved and applied. {ACCESS_RESTORED}')
