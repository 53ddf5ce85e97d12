# registry_core/reports/api/serializers.py
from __future__ import annotations

from rest_framework import serializers


class DashboardSerializer(serializers.Serializer):
    total_patients = serializers.IntegerField()
    todays_appointments = serializers.IntegerField()
    pending_lab_tests = serializers.IntegerField()
    pending_prescriptions = serializers.IntegerField()
    todays_surgeries = serializers.IntegerField()
    icu_patients = serializers.IntegerField()
    ward_patients = serializers.IntegerField()
    unread_notifications = serializers.IntegerField()


class ReportSerializer(serializers.Serializer):
    type = serializers.CharField()
    title = serializers.CharField()
    start = serializers.DateField()
    end = serializers.DateField()
    columns = serializers.ListField(child=serializers.CharField())
    rows = serializers.ListField(child=serializers.ListField())
