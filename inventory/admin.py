from django.contrib import admin
from .models import Product, Stock, StockTrail


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'produce_type', 'price_kilo', 'price_pc', 'price_tali', 'archived', 'updated_at']
    list_filter = ['archived', 'produce_type']
    search_fields = ['name', 'description']


@admin.register(Stock)
class StockAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'product', 'member', 'category', 'quantity',
        'sold_quantity', 'pending_order_qty', 'status', 'removed_at'
    ]
    list_filter = ['category', 'status']
    search_fields = ['product__name', 'member__username', 'member__email']
    raw_id_fields = ['product', 'member', 'last_customer']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(StockTrail)
class StockTrailAdmin(admin.ModelAdmin):
    """Stock trail is append-only."""
    list_display = ['stock', 'product', 'action_type', 'old_quantity', 'new_quantity', 'performed_by_type', 'created_at']
    list_filter = ['action_type', 'category']
    search_fields = ['product__name', 'notes']
    readonly_fields = [f.name for f in StockTrail._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
