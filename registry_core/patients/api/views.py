# registry_core/patients/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from registry_core.common.api.pagination import paginate
from registry_core.common.idempotency import idempotent
from registry_core.common.permissions import PatientPermission
from registry_core.patients.api.serializers import PatientSerializer, PatientWriteSerializer
from registry_core.patients.api.summary import PatientSummarySerializer
from registry_core.patients.models import Patient
from registry_core.patients.selectors import get_patient, patient_summary, search_patients
from registry_core.patients.services import PatientService


class PatientViewSet(viewsets.ViewSet):
    permission_classes = [PatientPermission]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    serializer_class = PatientSerializer
    queryset = Patient.objects.none()

    @extend_schema(
        tags=["Patients"],
        parameters=[
            OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: PatientSerializer(many=True)},
    )
    def list(self, request):
        qs = search_patients(q=request.query_params.get("q"), status=request.query_params.get("status"))
        return paginate(request, qs, PatientSerializer)

    @extend_schema(tags=["Patients"], responses={200: PatientSerializer})
    def retrieve(self, request, pk=None):
        return Response(PatientSerializer(get_patient(patient_id=pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Patients"], request=PatientWriteSerializer, responses={201: PatientSerializer})
    @idempotent
    def create(self, request):
        ser = PatientWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            patient = PatientService.register_patient(actor_user_id=request.user.id, data=ser.validated_data)
        except ValueError as e:
            raise DRFValidationError({"detail": str(e)})

        return Response(PatientSerializer(patient).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Patients"], request=PatientWriteSerializer, responses={200: PatientSerializer})
    def partial_update(self, request, pk=None):
        patient = get_patient(patient_id=pk)
        ser = PatientWriteSerializer(instance=patient, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        patient = PatientService.update_patient(
            actor_user_id=request.user.id,
            patient_id=patient.id,
            data=ser.validated_data,
        )
        return Response(PatientSerializer(patient).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Patients"], responses={204: None})
    def destroy(self, request, pk=None):
        PatientService.delete_patient(actor_user_id=request.user.id, patient_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Patients"], responses={200: PatientSummarySerializer})
    @action(detail=True, methods=["get"], url_path="summary")
    def summary(self, request, pk=None):
        data = patient_summary(patient_id=pk)
        return Response(PatientSummarySerializer(data).data, status=status.HTTP_200_OK)
