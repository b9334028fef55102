"""
System Lockout URL Routes

Lockout endpoints: /api/admin/system-lockout/
Mandatory action endpoints: /api/admin/mandatory-action/
"""

from django.urls import path
from .views import (
    LockoutStatusView,
    KeepPricesView,
    ApplyPriceChangesView,
    CancelPriceChangesView,
    ApprovePriceChangesView,
    ScheduledLockoutListCreateView,
    CancelScheduledLockoutView,
    LockoutHistoryView,
    MandatoryActionStatusView,
    StayAsIsView,
    PriceChangeView,
    CancelPriceChangeView,
    ApprovePriceChangeView,
)

app_name = 'system_lockout'

urlpatterns = [
    path('status/', LockoutStatusView.as_view(), name='lockout-status'),
    path('keep-prices/', KeepPricesView.as_view(), name='keep-prices'),
    path('apply-price-changes/', ApplyPriceChangesView.as_view(), name='apply-price-changes'),
    path('cancel-price-changes/', CancelPriceChangesView.as_view(), name='cancel-price-changes'),
    path('approve-price-changes/', ApprovePriceChangesView.as_view(), name='approve-price-changes'),
    path('scheduled/', ScheduledLockoutListCreateView.as_view(), name='scheduled-lockouts'),
    path('scheduled/<int:pk>/cancel/', CancelScheduledLockoutView.as_view(), name='scheduled-lockout-cancel'),
    path('history/', LockoutHistoryView.as_view(), name='lockout-history'),
]

# Included under /api/admin/mandatory-action/
mandatory_action_urlpatterns = [
    path('status/', MandatoryActionStatusView.as_view(), name='mandatory-action-status'),
    path('stay-as-is/', StayAsIsView.as_view(), name='stay-as-is'),
    path('price-change/', PriceChangeView.as_view(), name='price-change'),
    path('cancel-price-change/', CancelPriceChangeView.as_view(), name='cancel-price-change'),
    path('approve-price-change/', ApprovePriceChangeView.as_view(), name='approve-price-change'),
]
