"""
Inventory URL Routes

Admin endpoints: /api/admin/inventory/
Member endpoints: /api/member/
Customer endpoints: /api/customer/
"""

from django.urls import path
from .views import (
    ProductListCreateView,
    ProductDetailView,
    ProductStockListView,
    StockUpdateView,
    StockRemoveView,
    RemovedStockListView,
    StockRestoreView,
    SoldStockListView,
    StockTrailListView,
    MemberStockListView,
    CatalogueListView,
)

app_name = 'inventory'

# Admin/staff endpoints
urlpatterns = [
    path('products/', ProductListCreateView.as_view(), name='product-list'),
    path('products/<int:pk>/', ProductDetailView.as_view(), name='product-detail'),
    path('products/<int:pk>/stocks/', ProductStockListView.as_view(), name='product-stocks'),
    path('products/<int:pk>/stocks/<int:stock_id>/', StockUpdateView.as_view(), name='stock-update'),
    path('products/<int:pk>/stocks/<int:stock_id>/remove/', StockRemoveView.as_view(), name='stock-remove'),

    path('removed-stocks/', RemovedStockListView.as_view(), name='removed-stocks'),
    path('removed-stocks/<int:stock_id>/restore/', StockRestoreView.as_view(), name='stock-restore'),
    path('sold-stocks/', SoldStockListView.as_view(), name='sold-stocks'),
    path('stock-trail/', StockTrailListView.as_view(), name='stock-trail'),
]

# Member endpoints (included under /api/member/)
member_urlpatterns = [
    path('stocks/', MemberStockListView.as_view(), name='member-stocks'),
]

# Customer endpoints (included under /api/customer/)
customer_urlpatterns = [
    path('products/', CatalogueListView.as_view(), name='catalogue'),
]
