# registry_core/system/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from registry_core.system.models import SystemBackup, SystemSettings, Theme


class SystemSettingsSerializer(serializers.ModelSerializer):
    updated_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = SystemSettings
        fields = ["site_name", "logo_url", "theme", "enabled_modules", "updated_by_id", "updated_at"]
        read_only_fields = fields


class SystemSettingsUpdateSerializer(serializers.Serializer):
    site_name = serializers.CharField(max_length=128, required=False)
    logo_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
    theme = serializers.ChoiceField(choices=Theme.choices, required=False)
    enabled_modules = serializers.DictField(child=serializers.JSONField(), required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class SystemBackupSerializer(serializers.ModelSerializer):
    """Backup metadata; the payload itself is served by the download action."""
    created_by_id = serializers.IntegerField(read_only=True, allow_null=True)
    restored_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = SystemBackup
        fields = [
            "id",
            "backup_type",
            "status",
            "record_counts",
            "created_by_id",
            "created_at",
            "restored_at",
            "restored_by_id",
        ]
        read_only_fields = fields
