from datetime import datetime, time, timezone as dt_timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.utils.dateparse import parse_date
from rest_framework import serializers

from . import lifecycle
from .models import Shipment


class DateOrDateTimeField(serializers.DateTimeField):
    """Accepts '2024-06-10' (UTC midnight) as well as full ISO datetimes."""

    def to_internal_value(self, value):
        if isinstance(value, str) and len(value.strip()) == 10:
            parsed = parse_date(value.strip())
            if parsed is not None:
                return datetime.combine(parsed, time.min, tzinfo=dt_timezone.utc)
        return super().to_internal_value(value)


class WeightField(serializers.DecimalField):
    """Kilograms. Extra decimal places are rounded half up instead of rejected."""

    def __init__(self, **kwargs):
        kwargs.setdefault('max_digits', 8)
        kwargs.setdefault('decimal_places', 2)
        kwargs.setdefault('rounding', ROUND_HALF_UP)
        super().__init__(**kwargs)

    def validate_precision(self, value):
        step = Decimal(1).scaleb(-self.decimal_places)
        try:
            value = value.quantize(step, rounding=self.rounding)
        except InvalidOperation:
            self.fail('max_digits', max_digits=self.max_digits)
        return super().validate_precision(value)


class TimelineEntrySerializer(serializers.Serializer):
    id = serializers.CharField()
    status = serializers.CharField()
    location = serializers.CharField(allow_blank=True)
    completed = serializers.BooleanField()
    timestamp = serializers.CharField()
    description = serializers.CharField(allow_blank=True)


class ShipmentSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    category_display = serializers.CharField(source='get_category_display', read_only=True)
    progress = serializers.ReadOnlyField()
    route_progress = serializers.ReadOnlyField()
    current_location_short = serializers.ReadOnlyField()
    is_on_time = serializers.ReadOnlyField()

    class Meta:
        model = Shipment
        fields = ('id', 'tracking_id', 'sender_name', 'sender_phone', 'receiver_name', 'receiver_phone',
                  'pickup_location', 'delivery_location', 'current_location', 'current_location_short',
                  'package_description', 'weight', 'category', 'category_display',
                  'status', 'status_display', 'progress', 'route_progress', 'is_on_time',
                  'estimated_delivery', 'timeline', 'created_at', 'updated_at')
        read_only_fields = fields


class ShipmentRequestSerializer(serializers.ModelSerializer):
    """Public request-tracking form. Every field is required."""

    weight = WeightField()

    class Meta:
        model = Shipment
        fields = ('sender_name', 'sender_phone', 'receiver_name', 'receiver_phone',
                  'pickup_location', 'delivery_location', 'package_description', 'weight', 'category')

    def validate_weight(self, value):
        if value <= Decimal('0'):
            raise serializers.ValidationError("Weight must be a positive number")
        return value

    def validate(self, attrs):
        for field, value in attrs.items():
            if isinstance(value, str):
                value = value.strip()
                if not value:
                    raise serializers.ValidationError({field: "This field may not be blank."})
                attrs[field] = value
        return attrs


class ShipmentUpdateSerializer(serializers.ModelSerializer):
    """Admin edit form."""

    estimated_delivery = DateOrDateTimeField(required=False)
    weight = WeightField(required=False)
    timeline = TimelineEntrySerializer(many=True, required=False)

    class Meta:
        model = Shipment
        fields = ('status', 'current_location', 'estimated_delivery', 'weight', 'category', 'timeline')

    def validate_weight(self, value):
        if value is not None and value <= Decimal('0'):
            raise serializers.ValidationError("Weight must be a positive number")
        return value

    def validate_status(self, value):
        if value not in lifecycle.STATUS_ORDER:
            raise serializers.ValidationError(f"Unknown status '{value}'")
        return value

    def update(self, instance, validated_data):
        from .services import ShipmentService

        if 'timeline' in validated_data:
            validated_data['timeline'] = [dict(entry) for entry in validated_data['timeline']]
        ShipmentService.update_shipment(instance, validated_data)
        return instance

    def to_representation(self, instance):
        return ShipmentSerializer(instance, context=self.context).data


class TimelineEventSerializer(serializers.Serializer):
    description = serializers.CharField(required=False, allow_blank=True, max_length=500)
    location = serializers.CharField(required=False, allow_blank=True, max_length=255)
