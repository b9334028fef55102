from django.utils import timezone
from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from .models import SystemSchedule, SystemTracking


class SystemScheduleSerializer(serializers.ModelSerializer):
    admin_user = UserSummarySerializer(read_only=True)

    class Meta:
        model = SystemSchedule
        fields = [
            'id', 'system_date', 'is_locked', 'admin_action', 'price_change_status',
            'lockout_time', 'admin_action_time', 'price_change_action_time',
            'admin_user', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class SystemTrackingSerializer(serializers.ModelSerializer):
    class Meta:
        model = SystemTracking
        fields = [
            'id', 'status', 'action', 'scheduled_at', 'executed_at',
            'description', 'metadata', 'created_at',
        ]
        read_only_fields = fields


class ConfirmActionSerializer(serializers.Serializer):
    """Every lockout decision must be explicitly confirmed."""
    confirm = serializers.BooleanField()

    def validate_confirm(self, value):
        if not value:
            raise serializers.ValidationError("You must confirm this action.")
        return value


class ScheduleLockoutSerializer(serializers.Serializer):
    scheduled_at = serializers.DateTimeField(required=False)
    in_one_minute = serializers.BooleanField(required=False, default=False)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def validate(self, attrs):
        if attrs.get('in_one_minute'):
            return attrs

        scheduled_at = attrs.get('scheduled_at')
        if scheduled_at is None:
            raise serializers.ValidationError({
                'scheduled_at': "Provide scheduled_at or set in_one_minute."
            })
        if scheduled_at <= timezone.now():
            raise serializers.ValidationError({
                'scheduled_at': "Lockout time must be in the future."
            })
        return attrs
