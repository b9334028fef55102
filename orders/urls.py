"""
Order URL Routes

Admin endpoints: /api/admin/orders/
Customer endpoints: /api/customer/
Logistic endpoints: /api/logistic/
Sales reports: /api/admin/sales/
"""

from django.urls import path
from .views import (
    AdminOrderListView,
    AdminOrderDetailView,
    ApproveOrderView,
    RejectOrderView,
    MarkUrgentView,
    UnmarkUrgentView,
    AssignLogisticView,
    MarkReadyView,
    MarkPickedUpView,
    SuspiciousOrderListView,
    OrderGroupView,
    GroupRejectView,
    GroupMergeView,
    GroupVerdictView,
)
from .cart_views import (
    CartView,
    CartItemAddView,
    CartItemDetailView,
    CheckoutView,
    CustomerOrderListView,
    CustomerOrderCancelView,
)
from .sales_views import (
    SaleListView,
    MemberSalesView,
    SalesAuditTrailView,
)
from .logistic_views import (
    LogisticOrderListView,
    LogisticOrderDetailView,
    MarkDeliveredView,
)

app_name = 'orders'

# Admin/staff endpoints
urlpatterns = [
    path('', AdminOrderListView.as_view(), name='order-list'),
    path('suspicious/', SuspiciousOrderListView.as_view(), name='suspicious-orders'),
    path('group/', OrderGroupView.as_view(), name='order-group'),
    path('group/reject/', GroupRejectView.as_view(), name='group-reject'),
    path('group/merge/', GroupMergeView.as_view(), name='group-merge'),
    path('group-verdict/', GroupVerdictView.as_view(), name='group-verdict'),

    path('<int:pk>/', AdminOrderDetailView.as_view(), name='order-detail'),
    path('<int:pk>/approve/', ApproveOrderView.as_view(), name='order-approve'),
    path('<int:pk>/reject/', RejectOrderView.as_view(), name='order-reject'),
    path('<int:pk>/mark-urgent/', MarkUrgentView.as_view(), name='order-mark-urgent'),
    path('<int:pk>/unmark-urgent/', UnmarkUrgentView.as_view(), name='order-unmark-urgent'),
    path('<int:pk>/assign-logistic/', AssignLogisticView.as_view(), name='order-assign-logistic'),
    path('<int:pk>/mark-ready/', MarkReadyView.as_view(), name='order-mark-ready'),
    path('<int:pk>/mark-picked-up/', MarkPickedUpView.as_view(), name='order-mark-picked-up'),
]

# Customer endpoints (included under /api/customer/)
customer_urlpatterns = [
    path('cart/', CartView.as_view(), name='cart'),
    path('cart/items/', CartItemAddView.as_view(), name='cart-item-add'),
    path('cart/items/<int:pk>/', CartItemDetailView.as_view(), name='cart-item-detail'),
    path('cart/checkout/', CheckoutView.as_view(), name='checkout'),
    path('orders/', CustomerOrderListView.as_view(), name='customer-orders'),
    path('orders/<int:pk>/cancel/', CustomerOrderCancelView.as_view(), name='customer-order-cancel'),
]

# Logistic endpoints (included under /api/logistic/)
logistic_urlpatterns = [
    path('orders/', LogisticOrderListView.as_view(), name='logistic-orders'),
    path('orders/<int:pk>/', LogisticOrderDetailView.as_view(), name='logistic-order-detail'),
    path('orders/<int:pk>/mark-delivered/', MarkDeliveredView.as_view(), name='logistic-mark-delivered'),
]

# Sales reports (included under /api/admin/sales/)
sales_urlpatterns = [
    path('', SaleListView.as_view(), name='sale-list'),
    path('members/', MemberSalesView.as_view(), name='member-sales'),
    path('audit-trail/', SalesAuditTrailView.as_view(), name='sales-audit-trail'),
]
