from decimal import Decimal

from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from inventory.models import Product, StockCategory
from .models import Order, OrderItem, Cart, CartItem, Sale


class OrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.SerializerMethodField()
    member_id = serializers.SerializerMethodField()
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'product', 'product_name', 'stock', 'member_id', 'category',
            'quantity', 'unit_price', 'price_kilo', 'price_pc', 'price_tali',
            'total_amount', 'available_stock_after_sale',
        ]
        read_only_fields = fields

    def get_product_name(self, obj):
        return obj.product_name or obj.product.name

    def get_member_id(self, obj):
        if obj.member_id:
            return obj.member_id
        return obj.stock.member_id if obj.stock_id else None


class OrderListSerializer(serializers.ModelSerializer):
    customer = UserSummarySerializer(read_only=True)
    is_urgent_now = serializers.BooleanField(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'customer', 'status', 'delivery_status',
            'subtotal', 'coop_share', 'total_amount',
            'is_urgent', 'is_urgent_now', 'is_suspicious', 'suspicious_reason',
            'created_at',
        ]
        read_only_fields = fields


class OrderDetailSerializer(serializers.ModelSerializer):
    customer = UserSummarySerializer(read_only=True)
    admin = UserSummarySerializer(read_only=True)
    logistic = UserSummarySerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    aggregated_items = serializers.SerializerMethodField()
    is_merged_order = serializers.BooleanField(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'customer', 'status', 'delivery_status',
            'subtotal', 'coop_share', 'member_share', 'total_amount',
            'delivery_address', 'admin', 'admin_notes', 'logistic',
            'is_urgent', 'is_suspicious', 'suspicious_reason',
            'linked_merged_order_id', 'is_merged_order',
            'delivery_ready_time', 'delivery_packed_time', 'delivered_time',
            'items', 'aggregated_items', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_aggregated_items(self, obj):
        return [
            {
                **row,
                'quantity': str(row['quantity']),
                'unit_price': str(row['unit_price']),
                'total_amount': str(row['total_amount']),
            }
            for row in obj.get_aggregated_items()
        ]


class CustomerOrderSerializer(serializers.ModelSerializer):
    """Order as the customer sees it (no admin or suspicious details)."""
    items = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'status', 'delivery_status', 'subtotal', 'coop_share',
            'total_amount', 'delivery_address', 'items',
            'delivered_time', 'created_at',
        ]
        read_only_fields = fields

    def get_items(self, obj):
        return [
            {
                **row,
                'quantity': str(row['quantity']),
                'unit_price': str(row['unit_price']),
                'total_amount': str(row['total_amount']),
            }
            for row in obj.get_aggregated_items()
        ]


# =============================================================================
# ADMIN ACTION SERIALIZERS
# =============================================================================

class ApproveOrderSerializer(serializers.Serializer):
    admin_notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class RejectOrderSerializer(serializers.Serializer):
    admin_notes = serializers.CharField(max_length=500)


class AssignLogisticSerializer(serializers.Serializer):
    logistic_id = serializers.IntegerField()


class ConfirmationSerializer(serializers.Serializer):
    confirmation_text = serializers.CharField(max_length=50)


class GroupActionSerializer(serializers.Serializer):
    order_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    admin_notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class GroupMergeSerializer(GroupActionSerializer):

    def validate_order_ids(self, value):
        value = list(dict.fromkeys(value))
        if len(value) < 2:
            raise serializers.ValidationError("At least 2 orders are required to merge.")
        return value


class GroupVerdictSerializer(GroupActionSerializer):
    verdict = serializers.ChoiceField(choices=['approve', 'reject'])


# =============================================================================
# CART SERIALIZERS
# =============================================================================

class CartItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = CartItem
        fields = ['id', 'product', 'product_name', 'category', 'quantity', 'unit_price', 'line_total']
        read_only_fields = ['id', 'product', 'product_name', 'category', 'unit_price', 'line_total']


class CartSerializer(serializers.ModelSerializer):
    items = CartItemSerializer(many=True, read_only=True)
    subtotal = serializers.SerializerMethodField()

    class Meta:
        model = Cart
        fields = ['id', 'items', 'subtotal', 'updated_at']
        read_only_fields = fields

    def get_subtotal(self, obj):
        total = sum((item.line_total for item in obj.items.select_related('product')), Decimal('0'))
        return str(total.quantize(Decimal('0.01')))


class AddCartItemSerializer(serializers.Serializer):
    """
    Validates an add-to-cart request.

    The product must be on sale and priced in the requested unit.
    """
    product_id = serializers.IntegerField()
    category = serializers.ChoiceField(choices=StockCategory.choices)
    quantity = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0.01')
    )

    def validate(self, data):
        try:
            product = Product.objects.get(id=data['product_id'], archived=False)
        except Product.DoesNotExist:
            raise serializers.ValidationError({'product_id': 'Product not found'})

        if product.get_price(data['category']) is None:
            raise serializers.ValidationError({
                'category': f"{product.name} is not sold by {data['category']}"
            })

        data['product'] = product
        return data


class UpdateCartItemSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0.01')
    )


class CheckoutSerializer(serializers.Serializer):
    delivery_address = serializers.CharField(max_length=500)


class SaleSerializer(serializers.ModelSerializer):
    customer = UserSummarySerializer(read_only=True)
    logistic = UserSummarySerializer(read_only=True)

    class Meta:
        model = Sale
        fields = [
            'id', 'order', 'customer', 'subtotal', 'coop_share', 'member_share',
            'total_amount', 'delivery_address', 'logistic', 'delivered_at',
        ]
        read_only_fields = fields


class SalesAuditItemSerializer(OrderItemSerializer):
    """Delivered line item with its order and delivery time."""
    order_id = serializers.IntegerField(read_only=True)
    delivered_at = serializers.DateTimeField(source='order.sale.delivered_at', read_only=True)

    class Meta(OrderItemSerializer.Meta):
        fields = ['order_id', 'delivered_at'] + OrderItemSerializer.Meta.fields
        read_only_fields = fields


class MemberSalesQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    member_id = serializers.IntegerField(required=False)

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end and start > end:
            raise serializers.ValidationError("start_date must be on or before end_date.")
        return attrs
