from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db.models import Sum, F
from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from .models import Product, Stock, StockTrail, StockCategory

User = get_user_model()


class ProductSerializer(serializers.ModelSerializer):
    available_categories = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'description', 'produce_type',
            'price_kilo', 'price_pc', 'price_tali',
            'available_categories', 'archived',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_available_categories(self, obj):
        return obj.available_categories()

    def validate(self, data):
        prices = [
            data.get(field, getattr(self.instance, field, None))
            for field in ('price_kilo', 'price_pc', 'price_tali')
        ]
        if all(price is None for price in prices):
            raise serializers.ValidationError(
                "At least one of price_kilo, price_pc or price_tali is required"
            )
        return data


class StockSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    member = UserSummarySerializer(read_only=True)
    available_quantity = serializers.DecimalField(
        max_digits=10, decimal_places=2, read_only=True
    )
    is_locked = serializers.BooleanField(read_only=True)

    class Meta:
        model = Stock
        fields = [
            'id', 'product', 'product_name', 'member', 'category',
            'quantity', 'sold_quantity', 'pending_order_qty', 'initial_quantity',
            'available_quantity', 'status', 'is_locked', 'last_customer',
            'removed_at', 'notes', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class StockCreateSerializer(serializers.Serializer):
    """Validates an admin 'add stock' request."""
    member_id = serializers.IntegerField()
    category = serializers.ChoiceField(choices=StockCategory.choices)
    quantity = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0.01')
    )

    def validate_member_id(self, value):
        try:
            return User.objects.get(id=value, type=User.UserType.MEMBER)
        except User.DoesNotExist:
            raise serializers.ValidationError("Member not found")


class StockUpdateSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False
    )
    category = serializers.ChoiceField(choices=StockCategory.choices, required=False)

    def validate(self, data):
        if not data:
            raise serializers.ValidationError("Provide quantity and/or category")
        return data


class StockRemoveSerializer(serializers.Serializer):
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class StockTrailSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    member_name = serializers.SerializerMethodField()
    performed_by_name = serializers.SerializerMethodField()

    class Meta:
        model = StockTrail
        fields = [
            'id', 'stock', 'product', 'product_name', 'member', 'member_name',
            'category', 'action_type', 'old_quantity', 'new_quantity', 'notes',
            'performed_by', 'performed_by_name', 'performed_by_type', 'created_at',
        ]
        read_only_fields = fields

    def get_member_name(self, obj):
        return obj.member.display_name if obj.member else None

    def get_performed_by_name(self, obj):
        return obj.performed_by.display_name if obj.performed_by else 'System'


class CatalogueProductSerializer(serializers.ModelSerializer):
    """Customer-facing product with per-unit price and availability."""
    units = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = ['id', 'name', 'description', 'produce_type', 'units']

    def get_units(self, obj):
        available = {
            row['category']: row['total']
            for row in Stock.objects.customer_visible()
            .filter(product=obj)
            .values('category')
            .annotate(total=Sum(F('quantity') - F('pending_order_qty')))
        }
        return [
            {
                'category': category,
                'price': obj.get_price(category),
                'available_quantity': max(available.get(category) or Decimal('0'), Decimal('0')),
            }
            for category in obj.available_categories()
        ]
