# registry_core/vitals/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from registry_core.common.api.pagination import paginate
from registry_core.common.api.params import uuid_param
from registry_core.common.idempotency import idempotent
from registry_core.common.permissions import VitalsPermission
from registry_core.vitals.api.serializers import VitalsCreateSerializer, VitalsSerializer
from registry_core.vitals.models import Vitals
from registry_core.vitals.selectors import latest_vitals, list_vitals
from registry_core.vitals.services import VitalsService

PATIENT_PARAM = OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False)


class VitalsViewSet(viewsets.ViewSet):
    permission_classes = [VitalsPermission]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    serializer_class = VitalsSerializer
    queryset = Vitals.objects.none()

    @extend_schema(tags=["Vitals"], parameters=[PATIENT_PARAM], responses={200: VitalsSerializer(many=True)})
    def list(self, request):
        qs = list_vitals(patient_id=uuid_param(request, "patient"))
        return paginate(request, qs, VitalsSerializer)

    @extend_schema(tags=["Vitals"], responses={200: VitalsSerializer})
    def retrieve(self, request, pk=None):
        return Response(VitalsSerializer(Vitals.objects.get(id=pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Vitals"], request=VitalsCreateSerializer, responses={201: VitalsSerializer})
    @idempotent
    def create(self, request):
        ser = VitalsCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            vitals = VitalsService.record_vitals(actor_user_id=request.user.id, **ser.validated_data)
        except ValueError as e:
            raise DRFValidationError({"detail": str(e)})

        return Response(VitalsSerializer(vitals).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Vitals"], responses={204: None})
    def destroy(self, request, pk=None):
        VitalsService.delete_vitals(vitals_id=pk, actor_user_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Vitals"], parameters=[PATIENT_PARAM], responses={200: VitalsSerializer})
    @action(detail=False, methods=["get"], url_path="latest")
    def latest(self, request):
        vitals = latest_vitals(patient_id=uuid_param(request, "patient", required=True))
        if vitals is None:
            raise NotFound("No vitals recorded for this patient.")
        return Response(VitalsSerializer(vitals).data, status=status.HTTP_200_OK)
