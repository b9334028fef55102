"""
Account type permissions.

Each class admits authenticated users of one co-op account type.
"""
from rest_framework import permissions


class IsAdminOrStaff(permissions.BasePermission):
    """
    Back-office users (admin/staff) only.
    """
    message = 'Only admin or staff users can perform this action.'

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.type in ['admin', 'staff']
        )


class IsCustomer(permissions.BasePermission):
    message = 'Only customers can perform this action.'

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.type == 'customer'
        )


class IsMember(permissions.BasePermission):
    message = 'Only members can perform this action.'

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.type == 'member'
        )


class IsLogistic(permissions.BasePermission):
    """
    Logistic users only. Object access is limited to orders assigned to them.
    """
    message = 'Only logistic users can perform this action.'

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.type == 'logistic'
        )

    def has_object_permission(self, request, view, obj):
        return getattr(obj, 'logistic_id', None) == request.user.id
