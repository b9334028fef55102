"""
Order Services

Service layer for checkout, the admin review workflow, suspicious order
groups, per-member audit summaries and sales reporting.
"""

from .exceptions import InsufficientStockError, GroupVerdictError
from .suspicious_order_service import SuspiciousOrderDetectionService
from .order_workflow import OrderWorkflowService
from .group_order_service import GroupOrderService
from .checkout_service import CheckoutService
from .audit_trail_service import AuditTrailService
from .sales_report_service import SalesReportService

__all__ = [
    'InsufficientStockError',
    'GroupVerdictError',
    'SuspiciousOrderDetectionService',
    'OrderWorkflowService',
    'GroupOrderService',
    'CheckoutService',
    'AuditTrailService',
    'SalesReportService',
]
