# registry_core/audit/api/serializers.py
from rest_framework import serializers

from registry_core.audit.models import SERVER_ACTIONS, ActivityLog


class ActivityLogSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True, allow_null=True)
    user_email = serializers.EmailField(source="user.email", read_only=True, default=None)
    timestamp = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = ActivityLog
        fields = [
            "id",
            "user_id",
            "user_email",
            "action",
            "entity_type",
            "entity_id",
            "details",
            "ip_address",
            "user_agent",
            "page_path",
            "session_duration_seconds",
            "timestamp",
        ]
        read_only_fields = fields


class ActivityLogCreateSerializer(serializers.Serializer):
    """Client-side events (page views, session end, exports)."""
    action = serializers.CharField(max_length=64)
    entity_type = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    entity_id = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    details = serializers.DictField(required=False, default=dict)
    page_path = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    session_duration_seconds = serializers.IntegerField(required=False, allow_null=True, min_value=0)

    def validate_action(self, value):
        if value in SERVER_ACTIONS or value.startswith("system_"):
            raise serializers.ValidationError("Reserved action.")
        return value
