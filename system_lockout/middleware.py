"""
Lockout gates.

CheckSystemLockoutMiddleware answers customer-facing API calls with 423 while
the system is locked. CheckMandatoryAdminActionMiddleware answers admin API
calls with 423 until the pending lockout decision has been made.
"""

import logging

from django.http import JsonResponse
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication

from system_lockout.services import LockoutService

logger = logging.getLogger(__name__)

HTTP_423_LOCKED = 423


class CheckSystemLockoutMiddleware:
    """
    Block customer-facing API requests while the system is locked.

    Due scheduled lockouts are executed first, so a lockout takes effect on
    the first request after its time even if the beat worker is behind.
    """

    EXEMPT_PATHS = [
        '/api/admin/',
        '/api/auth/',
    ]

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if not request.path.startswith('/api/'):
            return self.get_response(request)

        if any(request.path.startswith(path) for path in self.EXEMPT_PATHS):
            return self.get_response(request)

        LockoutService.execute_due_lockouts()

        if LockoutService.is_customer_access_blocked():
            info = LockoutService.get_lockout_info()
            logger.info(f"Blocked {request.method} {request.path}: {info['type']} lockout")
            return JsonResponse(
                {
                    'message': 'System is currently locked out. Please try again later.',
                    'lockout_status': 'active',
                    'lockout_type': info['type'],
                    'lockout_details': info,
                },
                status=HTTP_423_LOCKED
            )

        return self.get_response(request)


class CheckMandatoryAdminActionMiddleware:
    """
    Hold admin API requests until the pending lockout decision is made.

    The lockout endpoints themselves stay reachable so the decision can be
    taken. The user comes from the session, or from the JWT when the request
    is a token-authenticated API call.
    """

    EXEMPT_PATHS = [
        '/api/admin/system-lockout/',
        '/api/admin/mandatory-action/',
    ]

    def __init__(self, get_response):
        self.get_response = get_response
        self.authenticator = JWTAuthentication()

    def __call__(self, request):
        if not request.path.startswith('/api/admin/'):
            return self.get_response(request)

        if any(request.path.startswith(path) for path in self.EXEMPT_PATHS):
            return self.get_response(request)

        user = self._resolve_user(request)
        if user is None or not user.is_admin_or_staff:
            return self.get_response(request)

        info = LockoutService.get_mandatory_action_info()
        if info is not None:
            return JsonResponse(
                {
                    'mandatory_action_required': True,
                    'lockout_info': info,
                    'message': 'Admin action is required before proceeding.',
                },
                status=HTTP_423_LOCKED
            )

        return self.get_response(request)

    def _resolve_user(self, request):
        user = getattr(request, 'user', None)
        if user is not None and user.is_authenticated:
            return user

        # Invalid tokens are left for the view's own authentication to reject
        try:
            result = self.authenticator.authenticate(request)
        except AuthenticationFailed:
            return None
        return result[0] if result else None
