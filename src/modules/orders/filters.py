import django_filters

from modules.orders.constants import OrderStatus
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    user_id = django_filters.UUIDFilter(field_name="user_id")
    product_id = django_filters.UUIDFilter(field_name="product_id")
    date_from = django_filters.IsoDateTimeFilter(
        field_name="order_date", lookup_expr="gte"
    )
    date_to = django_filters.IsoDateTimeFilter(
        field_name="order_date", lookup_expr="lte"
    )
    min_total = django_filters.NumberFilter(
        field_name="total_price", lookup_expr="gte"
    )
    max_total = django_filters.NumberFilter(
        field_name="total_price", lookup_expr="lte"
    )

    class Meta:
        model = Order
        fields = [
            "status",
            "user_id",
            "product_id",
            "date_from",
            "date_to",
            "min_total",
            "max_total",
        ]
