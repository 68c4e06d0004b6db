"""Order DRF serializers for API input.

The serializers operate at the Interface layer (API Views) and only
check request shape.  Business rules (quantity bounds, transitions,
stock) live in the Service Layer, which receives Pydantic DTOs from
``dtos.py``; responses are rendered from output DTOs.
"""

from __future__ import annotations

from rest_framework import serializers


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    user_id = serializers.UUIDField()
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField()
    notes = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, max_length=200
    )


class UpdateOrderStatusSerializer(serializers.Serializer):
    """``status`` is checked against the state machine by the service."""

    status = serializers.CharField()
    notes = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, max_length=200
    )


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, max_length=200
    )


class OrderAnalyticsQuerySerializer(serializers.Serializer):
    """Validates ``?date_from=&date_to=&user_id=`` for the analytics report."""

    date_from = serializers.DateTimeField(required=False)
    date_to = serializers.DateTimeField(required=False)
    user_id = serializers.UUIDField(required=False)

    def validate(self, attrs):
        date_from = attrs.get("date_from")
        date_to = attrs.get("date_to")
        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError("date_from cannot be after date_to.")
        return attrs
