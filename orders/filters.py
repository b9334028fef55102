import django_filters

from .models import Order, OrderItem, Sale


class OrderFilter(django_filters.FilterSet):
    """Admin order list filters."""
    created_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    created_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')
    min_total = django_filters.NumberFilter(field_name='total_amount', lookup_expr='gte')
    max_total = django_filters.NumberFilter(field_name='total_amount', lookup_expr='lte')

    class Meta:
        model = Order
        fields = ['status', 'delivery_status', 'is_urgent', 'is_suspicious', 'logistic', 'customer']


class SaleFilter(django_filters.FilterSet):
    """Delivered sales, filtered by delivery date and amount."""
    start_date = django_filters.DateFilter(field_name='delivered_at', lookup_expr='date__gte')
    end_date = django_filters.DateFilter(field_name='delivered_at', lookup_expr='date__lte')
    min_amount = django_filters.NumberFilter(field_name='total_amount', lookup_expr='gte')
    max_amount = django_filters.NumberFilter(field_name='total_amount', lookup_expr='lte')

    class Meta:
        model = Sale
        fields = ['customer', 'logistic']


class SalesAuditTrailFilter(django_filters.FilterSet):
    start_date = django_filters.DateFilter(field_name='order__sale__delivered_at', lookup_expr='date__gte')
    end_date = django_filters.DateFilter(field_name='order__sale__delivered_at', lookup_expr='date__lte')

    class Meta:
        model = OrderItem
        fields = ['member', 'order']
