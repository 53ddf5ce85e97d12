from rest_framework import serializers

from registry_core.notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            "id",
            "title",
            "message",
            "notification_type",
            "related_entity_type",
            "related_entity_id",
            "is_read",
            "read_at",
            "created_at",
        ]
        read_only_fields = fields
