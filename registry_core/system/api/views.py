# registry_core/system/api/views.py
from __future__ import annotations

import json

from django.core.serializers.json import DjangoJSONEncoder
from django.http import HttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from registry_core.common.api.exceptions import service_errors
from registry_core.common.api.pagination import paginate
from registry_core.common.idempotency import idempotent
from registry_core.common.permissions import AdminOnlyPermission, SystemSettingsPermission
from registry_core.system.api.serializers import (
    SystemBackupSerializer,
    SystemSettingsSerializer,
    SystemSettingsUpdateSerializer,
)
from registry_core.system.models import SystemBackup, SystemSettings
from registry_core.system.services import BackupService, SettingsService


class SystemSettingsView(APIView):
    permission_classes = [SystemSettingsPermission]

    @extend_schema(tags=["System"], responses={200: SystemSettingsSerializer})
    def get(self, request):
        return Response(SystemSettingsSerializer(SystemSettings.load()).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["System"], request=SystemSettingsUpdateSerializer, responses={200: SystemSettingsSerializer})
    def patch(self, request):
        ser = SystemSettingsUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            obj = SettingsService.update_settings(actor_user_id=request.user.id, data=ser.validated_data)
        return Response(SystemSettingsSerializer(obj).data, status=status.HTTP_200_OK)


class SystemBackupViewSet(viewsets.ViewSet):
    """
    Admin-only backup management.
    restore and flush replace or remove ALL clinical data.
    """
    permission_classes = [AdminOnlyPermission]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    serializer_class = SystemBackupSerializer
    queryset = SystemBackup.objects.none()

    @extend_schema(tags=["System"], responses={200: SystemBackupSerializer(many=True)})
    def list(self, request):
        qs = SystemBackup.objects.defer("backup_data").order_by("-created_at")
        return paginate(request, qs, SystemBackupSerializer)

    @extend_schema(tags=["System"], responses={200: SystemBackupSerializer})
    def retrieve(self, request, pk=None):
        obj = SystemBackup.objects.defer("backup_data").get(id=pk)
        return Response(SystemBackupSerializer(obj).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["System"], request=None, responses={201: SystemBackupSerializer})
    @idempotent
    def create(self, request):
        obj = BackupService.create_backup(actor_user_id=request.user.id)
        return Response(SystemBackupSerializer(obj).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["System"], responses={204: None})
    def destroy(self, request, pk=None):
        BackupService.delete_backup(backup_id=pk, actor_user_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["System"], request=None, responses={200: SystemBackupSerializer})
    @action(detail=True, methods=["post"], url_path="restore")
    def restore(self, request, pk=None):
        with service_errors():
            obj = BackupService.restore_backup(backup_id=pk, actor_user_id=request.user.id)
        return Response(SystemBackupSerializer(obj).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["System"], responses={(200, "application/json"): OpenApiTypes.BINARY})
    @action(detail=True, methods=["get"], url_path="download")
    def download(self, request, pk=None):
        obj = SystemBackup.objects.get(id=pk)
        body = json.dumps(obj.backup_data, cls=DjangoJSONEncoder, indent=2)
        resp = HttpResponse(body, content_type="application/json")
        resp["Content-Disposition"] = f'attachment; filename="backup-{obj.created_at:%Y%m%d-%H%M%S}.json"'
        return resp

    @extend_schema(tags=["System"], request=None, responses={200: SystemBackupSerializer})
    @action(detail=False, methods=["post"], url_path="flush")
    def flush(self, request):
        safety = BackupService.flush_all(actor_user_id=request.user.id)
        return Response(SystemBackupSerializer(safety).data, status=status.HTTP_200_OK)
