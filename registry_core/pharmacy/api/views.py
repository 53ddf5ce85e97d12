# registry_core/pharmacy/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from registry_core.common.api.exceptions import service_errors
from registry_core.common.api.pagination import paginate
from registry_core.common.api.params import uuid_param
from registry_core.common.idempotency import idempotent
from registry_core.common.permissions import PharmacyPermission
from registry_core.pharmacy.api.serializers import PrescriptionCreateSerializer, PrescriptionSerializer
from registry_core.pharmacy.models import Prescription
from registry_core.pharmacy.selectors import dispensing_history, list_prescriptions
from registry_core.pharmacy.services import PrescriptionService


class PrescriptionViewSet(viewsets.ViewSet):
    permission_classes = [PharmacyPermission]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    serializer_class = PrescriptionSerializer
    queryset = Prescription.objects.none()

    def _out(self, prescription_id, code=status.HTTP_200_OK) -> Response:
        rx = list_prescriptions().get(id=prescription_id)
        return Response(PrescriptionSerializer(rx).data, status=code)

    @extend_schema(
        tags=["Pharmacy"],
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: PrescriptionSerializer(many=True)},
    )
    def list(self, request):
        qs = list_prescriptions(status=request.query_params.get("status"), patient_id=uuid_param(request, "patient"))
        return paginate(request, qs, PrescriptionSerializer)

    @extend_schema(tags=["Pharmacy"], responses={200: PrescriptionSerializer})
    def retrieve(self, request, pk=None):
        return self._out(pk)

    @extend_schema(tags=["Pharmacy"], request=PrescriptionCreateSerializer, responses={201: PrescriptionSerializer})
    @idempotent
    def create(self, request):
        ser = PrescriptionCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            rx = PrescriptionService.create_prescription(actor_user_id=request.user.id, **ser.validated_data)

        return self._out(rx.id, status.HTTP_201_CREATED)

    @extend_schema(tags=["Pharmacy"], request=None, responses={200: PrescriptionSerializer})
    @action(detail=True, methods=["post"], url_path="dispense")
    def dispense(self, request, pk=None):
        with service_errors():
            PrescriptionService.dispense(prescription_id=pk, actor_user_id=request.user.id)
        return self._out(pk)

    @extend_schema(tags=["Pharmacy"], request=None, responses={200: PrescriptionSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        with service_errors():
            PrescriptionService.cancel(prescription_id=pk, actor_user_id=request.user.id)
        return self._out(pk)

    @extend_schema(tags=["Pharmacy"], responses={200: PrescriptionSerializer(many=True)})
    @action(detail=False, methods=["get"], url_path="history")
    def history(self, request):
        return paginate(request, dispensing_history(), PrescriptionSerializer)
