# registry_core/iam/api/views.py
from __future__ import annotations

from django.contrib.auth import get_user_model
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from registry_core.common.api.pagination import paginate
from registry_core.common.permissions import AdminOnlyPermission
from registry_core.iam.api.serializers import ActiveToggleSerializer, RoleAssignSerializer, StaffUserSerializer
from registry_core.iam.selectors import list_users
from registry_core.iam.services import StaffService


class StaffUserViewSet(viewsets.ViewSet):
    """
    User management (admin only): list staff, assign roles, (de)activate, delete.
    """
    permission_classes = [AdminOnlyPermission]
    lookup_value_regex = r"\d+"

    serializer_class = StaffUserSerializer
    queryset = get_user_model().objects.none()

    @extend_schema(tags=["IAM"], responses={200: StaffUserSerializer(many=True)})
    def list(self, request):
        qs = list_users(q=request.query_params.get("q"), role=request.query_params.get("role"))
        return paginate(request, qs, StaffUserSerializer)

    @extend_schema(tags=["IAM"], responses={200: StaffUserSerializer})
    def retrieve(self, request, pk=None):
        user = list_users().get(pk=pk)
        return Response(StaffUserSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["IAM"], responses={204: None})
    def destroy(self, request, pk=None):
        try:
            StaffService.delete_user(user_id=int(pk), actor_user_id=request.user.id)
        except ValueError as e:
            raise DRFValidationError({"detail": str(e)})
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["IAM"], request=RoleAssignSerializer, responses={200: StaffUserSerializer})
    @action(detail=True, methods=["post"], url_path="role")
    def role(self, request, pk=None):
        ser = RoleAssignSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            StaffService.assign_role(user_id=int(pk), role=ser.validated_data["role"], actor_user_id=request.user.id)
        except ValueError as e:
            raise DRFValidationError({"detail": str(e)})

        return Response(StaffUserSerializer(list_users().get(pk=pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["IAM"], request=ActiveToggleSerializer, responses={200: StaffUserSerializer})
    @action(detail=True, methods=["post"], url_path="active")
    def active(self, request, pk=None):
        ser = ActiveToggleSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            StaffService.set_active(
                user_id=int(pk),
                is_active=ser.validated_data["is_active"],
                actor_user_id=request.user.id,
            )
        except ValueError as e:
            raise DRFValidationError({"detail": str(e)})

        return Response(StaffUserSerializer(list_users().get(pk=pk)).data, status=status.HTTP_200_OK)
