from django.contrib import admin
from .models import Order, OrderItem, Cart, CartItem, Sale


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    raw_id_fields = ['stock', 'product', 'member']
    readonly_fields = ['unit_price', 'price_kilo', 'price_pc', 'price_tali', 'available_stock_after_sale']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'customer', 'status', 'delivery_status', 'total_amount',
        'is_urgent', 'is_suspicious', 'logistic', 'created_at'
    ]
    list_filter = ['status', 'delivery_status', 'is_urgent', 'is_suspicious']
    search_fields = ['id', 'customer__username', 'customer__email']
    raw_id_fields = ['customer', 'admin', 'logistic']
    readonly_fields = ['subtotal', 'coop_share', 'member_share', 'total_amount', 'created_at', 'updated_at']
    inlines = [OrderItemInline]
    date_hierarchy = 'created_at'


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    raw_id_fields = ['product']


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ['id', 'customer', 'updated_at']
    raw_id_fields = ['customer']
    inlines = [CartItemInline]


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ['id', 'order', 'customer', 'total_amount', 'logistic', 'delivered_at']
    search_fields = ['order__id', 'customer__username']
    raw_id_fields = ['customer', 'order', 'admin', 'logistic']
    date_hierarchy = 'delivered_at'
