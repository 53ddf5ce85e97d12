# registry_core/consultations/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from registry_core.common.api.exceptions import service_errors
from registry_core.common.api.pagination import paginate
from registry_core.common.api.params import int_param, uuid_param
from registry_core.common.permissions import ConsultationPermission
from registry_core.consultations.api.serializers import (
    ConsultationNotesSerializer,
    ConsultationSerializer,
    ConsultationStartSerializer,
    OrderLabsSerializer,
    ReferSurgerySerializer,
    ReviewLabsSerializer,
)
from registry_core.consultations.models import Consultation
from registry_core.consultations.selectors import list_consultations, surgery_referrals
from registry_core.consultations.services import ConsultationService
from registry_core.lab.api.serializers import LabTestSerializer


class ConsultationViewSet(viewsets.ViewSet):
    """
    Doctor consultations. Each workflow step is its own action;
    out-of-order steps return 409.
    """
    permission_classes = [ConsultationPermission]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    serializer_class = ConsultationSerializer
    queryset = Consultation.objects.none()

    def _out(self, consultation_id, code=status.HTTP_200_OK) -> Response:
        obj = list_consultations().get(id=consultation_id)
        return Response(ConsultationSerializer(obj).data, status=code)

    @extend_schema(
        tags=["Consultations"],
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="doctor", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: ConsultationSerializer(many=True)},
    )
    def list(self, request):
        qs = list_consultations(
            status=request.query_params.get("status"),
            patient_id=uuid_param(request, "patient"),
            doctor_id=int_param(request, "doctor"),
        )
        return paginate(request, qs, ConsultationSerializer)

    @extend_schema(tags=["Consultations"], responses={200: ConsultationSerializer})
    def retrieve(self, request, pk=None):
        return self._out(pk)

    @extend_schema(tags=["Consultations"], request=ConsultationStartSerializer, responses={201: ConsultationSerializer})
    def create(self, request):
        ser = ConsultationStartSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            consultation = ConsultationService.start_consultation(actor_user_id=request.user.id, **ser.validated_data)
        return self._out(consultation.id, status.HTTP_201_CREATED)

    @extend_schema(tags=["Consultations"], request=ConsultationNotesSerializer, responses={200: ConsultationSerializer})
    def partial_update(self, request, pk=None):
        ser = ConsultationNotesSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            ConsultationService.update_notes(consultation_id=pk, actor_user_id=request.user.id, data=ser.validated_data)
        return self._out(pk)

    @extend_schema(tags=["Consultations"], request=OrderLabsSerializer, responses={201: LabTestSerializer(many=True)})
    @action(detail=True, methods=["post"], url_path="order-labs")
    def order_labs(self, request, pk=None):
        ser = OrderLabsSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            tests = ConsultationService.order_lab_tests(
                consultation_id=pk,
                tests=ser.validated_data["tests"],
                priority=ser.validated_data["priority"],
                actor_user_id=request.user.id,
            )
        return Response(LabTestSerializer(tests, many=True).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Consultations"], request=ReviewLabsSerializer, responses={200: ConsultationSerializer})
    @action(detail=True, methods=["post"], url_path="review-labs")
    def review_labs(self, request, pk=None):
        ser = ReviewLabsSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            ConsultationService.review_lab_results(
                consultation_id=pk, actor_user_id=request.user.id, notes=ser.validated_data["notes"]
            )
        return self._out(pk)

    @extend_schema(tags=["Consultations"], request=ReferSurgerySerializer, responses={200: ConsultationSerializer})
    @action(detail=True, methods=["post"], url_path="refer-surgery")
    def refer_surgery(self, request, pk=None):
        ser = ReferSurgerySerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            ConsultationService.refer_to_surgery(
                consultation_id=pk, actor_user_id=request.user.id, notes=ser.validated_data["notes"]
            )
        return self._out(pk)

    @extend_schema(tags=["Consultations"], request=None, responses={200: ConsultationSerializer})
    @action(detail=True, methods=["post"], url_path="refer-prescription")
    def refer_prescription(self, request, pk=None):
        with service_errors():
            ConsultationService.refer_to_prescription(consultation_id=pk, actor_user_id=request.user.id)
        return self._out(pk)

    @extend_schema(tags=["Consultations"], request=None, responses={200: ConsultationSerializer})
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None):
        with service_errors():
            ConsultationService.complete(consultation_id=pk, actor_user_id=request.user.id)
        return self._out(pk)

    @extend_schema(tags=["Consultations"], responses={200: ConsultationSerializer(many=True)})
    @action(detail=False, methods=["get"], url_path="surgery-referrals")
    def surgery_referrals(self, request):
        return paginate(request, surgery_referrals(), ConsultationSerializer)
