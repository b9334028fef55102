"""
URL configuration for core project.

API surfaces:
    /api/auth/          login, logout, token refresh, profile
    /api/admin/...      admin/staff back office
    /api/admin/sales/   delivered sales reports
    /api/customer/      catalogue, cart, checkout, own orders
    /api/member/        own stock
    /api/logistic/      assigned deliveries
"""
from django.contrib import admin
from django.urls import path, include
from django.views.generic import RedirectView

from inventory.urls import customer_urlpatterns as inventory_customer_urls
from inventory.urls import member_urlpatterns as inventory_member_urls
from orders.urls import customer_urlpatterns as order_customer_urls
from orders.urls import logistic_urlpatterns as order_logistic_urls
from orders.urls import sales_urlpatterns
from system_lockout.urls import mandatory_action_urlpatterns

urlpatterns = [
    path('', RedirectView.as_view(url='/admin/', permanent=False)),
    path('admin/', admin.site.urls),
    path('api/auth/', include('accounts.urls')),
    path('api/admin/inventory/', include('inventory.urls')),  # Products, stock, trails
    path('api/admin/orders/', include('orders.urls')),  # Order review and delivery assignment
    path('api/admin/sales/', include((sales_urlpatterns, 'sales'))),  # Delivered sales reporting
    path('api/admin/system-lockout/', include('system_lockout.urls')),  # Daily price-lock
    path('api/admin/mandatory-action/', include((mandatory_action_urlpatterns, 'mandatory_action'))),
    path('api/customer/', include((inventory_customer_urls + order_customer_urls, 'customer'))),
    path('api/member/', include((inventory_member_urls, 'member'))),
    path('api/logistic/', include((order_logistic_urls, 'logistic'))),
]
