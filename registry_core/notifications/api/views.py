# registry_core/notifications/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from registry_core.common.api.pagination import paginate
from registry_core.common.api.params import bool_param
from registry_core.common.permissions import NotificationPermission
from registry_core.notifications.api.serializers import NotificationSerializer
from registry_core.notifications.models import Notification
from registry_core.notifications.selectors import notifications_for, unread_count
from registry_core.notifications.services import NotificationService


class NotificationViewSet(viewsets.ViewSet):
    """
    The caller's own inbox. Other users' notifications are invisible (404).
    """
    permission_classes = [NotificationPermission]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    serializer_class = NotificationSerializer
    queryset = Notification.objects.none()

    @extend_schema(
        tags=["Notifications"],
        parameters=[
            OpenApiParameter(name="is_read", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: NotificationSerializer(many=True)},
    )
    def list(self, request):
        qs = notifications_for(user_id=request.user.id, is_read=bool_param(request, "is_read"))
        return paginate(request, qs, NotificationSerializer)

    @extend_schema(tags=["Notifications"], responses={200: NotificationSerializer})
    def retrieve(self, request, pk=None):
        notif = Notification.objects.get(id=pk, user_id=request.user.id)
        return Response(NotificationSerializer(notif).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Notifications"], responses={204: None})
    def destroy(self, request, pk=None):
        NotificationService.delete(user_id=request.user.id, notification_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Notifications"], request=None, responses={200: NotificationSerializer})
    @action(detail=True, methods=["post"], url_path="mark-read")
    def mark_read(self, request, pk=None):
        notif = NotificationService.mark_read(user_id=request.user.id, notification_id=pk)
        return Response(NotificationSerializer(notif).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Notifications"], request=None, responses={200: OpenApiTypes.OBJECT})
    @action(detail=False, methods=["post"], url_path="mark-all-read")
    def mark_all_read(self, request):
        updated = NotificationService.mark_all_read(user_id=request.user.id)
        return Response({"updated": updated}, status=status.HTTP_200_OK)

    @extend_schema(tags=["Notifications"], responses={200: OpenApiTypes.OBJECT})
    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        return Response({"unread": unread_count(user_id=request.user.id)}, status=status.HTTP_200_OK)
