# registry_core/iam/api/me.py

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from registry_core.common.permissions import primary_role
from registry_core.iam.api.serializers import ProfileSerializer, ProfileUpdateSerializer
from registry_core.iam.models import Profile
from registry_core.iam.services import StaffService


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def _payload(self, user):
        profile, _ = Profile.objects.get_or_create(user=user, defaults={"email": user.email or ""})
        role = primary_role(user)
        return {
            "user": {
                "id": user.id,
                "username": user.get_username(),
                "email": user.email,
                "is_superuser": bool(user.is_superuser),
            },
            "profile": ProfileSerializer(profile).data,
            "role": role,
            # Clients show "Awaiting Role Assignment" until an admin grants a role
            "awaiting_role": role is None,
        }

    @extend_schema(responses={200: OpenApiTypes.OBJECT}, tags=["IAM"])
    def get(self, request):
        return Response(self._payload(request.user), status=status.HTTP_200_OK)

    @extend_schema(request=ProfileUpdateSerializer, responses={200: OpenApiTypes.OBJECT}, tags=["IAM"])
    def patch(self, request):
        ser = ProfileUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        StaffService.update_profile(user=request.user, data=ser.validated_data)
        return Response(self._payload(request.user), status=status.HTTP_200_OK)
