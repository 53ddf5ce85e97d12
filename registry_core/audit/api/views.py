# registry_core/audit/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from registry_core.audit.api.serializers import ActivityLogCreateSerializer, ActivityLogSerializer
from registry_core.audit.models import ActivityLog
from registry_core.audit.selectors import action_counts, list_activity
from registry_core.audit.services import AuditService
from registry_core.common.api.pagination import paginate
from registry_core.common.permissions import ActivityLogPermission


class ActivityFilterSerializer(serializers.Serializer):
    action = serializers.CharField(required=False)
    entity_type = serializers.CharField(required=False)
    entity_id = serializers.CharField(required=False)
    user_id = serializers.IntegerField(required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)


def _filtered(request):
    f = ActivityFilterSerializer(data=request.query_params)
    f.is_valid(raise_exception=True)
    return list_activity(**f.validated_data)


class ActivityLogViewSet(viewsets.ViewSet):
    """
    Activity log: admins read, everyone appends client events.
    """
    permission_classes = [ActivityLogPermission]

    serializer_class = ActivityLogSerializer
    queryset = ActivityLog.objects.none()

    @extend_schema(
        tags=["Audit"],
        responses={200: ActivityLogSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="action", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="entity_type", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="entity_id", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="user_id", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="date_from", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="date_to", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        return paginate(request, _filtered(request), ActivityLogSerializer)

    @extend_schema(tags=["Audit"], request=ActivityLogCreateSerializer, responses={201: ActivityLogSerializer})
    def create(self, request):
        ser = ActivityLogCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        entry = AuditService.log(actor_user_id=request.user.id, request=request, **ser.validated_data)
        return Response(ActivityLogSerializer(entry).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Audit"], responses={200: OpenApiTypes.OBJECT})
    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request):
        qs = _filtered(request)
        return Response(
            {"total": qs.count(), "by_action": action_counts(qs)},
            status=status.HTTP_200_OK,
        )
