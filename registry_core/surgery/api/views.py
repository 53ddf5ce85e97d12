# registry_core/surgery/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from registry_core.common.api.exceptions import service_errors
from registry_core.common.api.pagination import paginate
from registry_core.common.api.params import date_param, uuid_param
from registry_core.common.permissions import SurgeryPermission
from registry_core.inpatient.api.serializers import (
    BedAssignmentSerializer,
    IcuAdmissionSerializer,
    IcuBedAssignmentSerializer,
    WardAdmissionSerializer,
)
from registry_core.inpatient.services import IcuService, WardService
from registry_core.surgery.api.serializers import (
    CompleteSurgerySerializer,
    ConsentCreateSerializer,
    PreOpSerializer,
    SignOutSerializer,
    SurgeryNotesSerializer,
    SurgeryScheduleSerializer,
    SurgerySerializer,
    SurgicalConsentSerializer,
)
from registry_core.surgery.checklists import CHECKLISTS
from registry_core.surgery.models import Surgery
from registry_core.surgery.selectors import list_surgeries, preop_verification
from registry_core.surgery.services import SurgeryService


class SurgeryViewSet(viewsets.ViewSet):
    """
    Pre-op, intra-op and post-op workflow:
    scheduled -> pre_op_complete -> in_progress -> surgery_complete -> post_op_care -> completed
    """
    permission_classes = [SurgeryPermission]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    serializer_class = SurgerySerializer
    queryset = Surgery.objects.none()

    def _out(self, surgery_id, code=status.HTTP_200_OK) -> Response:
        return Response(SurgerySerializer(list_surgeries().get(id=surgery_id)).data, status=code)

    @extend_schema(
        tags=["Surgery"],
        parameters=[
            OpenApiParameter(
                name="status",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Comma-separated statuses, e.g. surgery_complete,post_op_care",
            ),
            OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="date", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: SurgerySerializer(many=True)},
    )
    def list(self, request):
        qs = list_surgeries(
            status=request.query_params.get("status"),
            patient_id=uuid_param(request, "patient"),
            on_date=date_param(request, "date"),
        )
        return paginate(request, qs, SurgerySerializer)

    @extend_schema(tags=["Surgery"], responses={200: SurgerySerializer})
    def retrieve(self, request, pk=None):
        return self._out(pk)

    @extend_schema(tags=["Surgery"], request=SurgeryScheduleSerializer, responses={201: SurgerySerializer})
    def create(self, request):
        ser = SurgeryScheduleSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            surgery = SurgeryService.schedule_surgery(actor_user_id=request.user.id, **ser.validated_data)
        return self._out(surgery.id, status.HTTP_201_CREATED)

    @extend_schema(tags=["Surgery"], request=SurgeryNotesSerializer, responses={200: SurgerySerializer})
    def partial_update(self, request, pk=None):
        ser = SurgeryNotesSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            SurgeryService.update_notes(surgery_id=pk, actor_user_id=request.user.id, data=ser.validated_data)
        return self._out(pk)

    @extend_schema(tags=["Surgery"], responses={204: None})
    def destroy(self, request, pk=None):
        SurgeryService.delete(surgery_id=pk, actor_user_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Surgery"], responses={200: OpenApiTypes.OBJECT})
    @action(detail=False, methods=["get"], url_path="checklists")
    def checklists(self, request):
        return Response({phase: list(items) for phase, items in CHECKLISTS.items()}, status=status.HTTP_200_OK)

    @extend_schema(tags=["Surgery"], responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["get"], url_path="verification")
    def verification(self, request, pk=None):
        surgery = Surgery.objects.select_related("patient").get(id=pk)
        return Response(preop_verification(surgery=surgery), status=status.HTTP_200_OK)

    @extend_schema(tags=["Surgery"], request=ConsentCreateSerializer, responses={201: SurgicalConsentSerializer})
    @action(detail=True, methods=["post"], url_path="consent")
    def consent(self, request, pk=None):
        ser = ConsentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            consent = SurgeryService.record_consent(surgery_id=pk, actor_user_id=request.user.id, **ser.validated_data)
        return Response(SurgicalConsentSerializer(consent).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Surgery"], request=PreOpSerializer, responses={200: SurgerySerializer})
    @action(detail=True, methods=["post"], url_path="pre-op")
    def pre_op(self, request, pk=None):
        ser = PreOpSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            SurgeryService.complete_pre_op(surgery_id=pk, actor_user_id=request.user.id, **ser.validated_data)
        return self._out(pk)

    @extend_schema(tags=["Surgery"], request=None, responses={200: SurgerySerializer})
    @action(detail=True, methods=["post"], url_path="start")
    def start(self, request, pk=None):
        with service_errors():
            SurgeryService.start(surgery_id=pk, actor_user_id=request.user.id)
        return self._out(pk)

    @extend_schema(tags=["Surgery"], request=CompleteSurgerySerializer, responses={200: SurgerySerializer})
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None):
        ser = CompleteSurgerySerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            SurgeryService.complete_surgery(surgery_id=pk, actor_user_id=request.user.id, **ser.validated_data)
        return self._out(pk)

    @extend_schema(tags=["Surgery"], request=SignOutSerializer, responses={200: SurgerySerializer})
    @action(detail=True, methods=["post"], url_path="sign-out")
    def sign_out(self, request, pk=None):
        ser = SignOutSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            SurgeryService.sign_out(surgery_id=pk, actor_user_id=request.user.id, **ser.validated_data)
        return self._out(pk)

    @extend_schema(tags=["Surgery"], request=None, responses={200: SurgerySerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        with service_errors():
            SurgeryService.cancel(surgery_id=pk, actor_user_id=request.user.id)
        return self._out(pk)

    @extend_schema(tags=["Surgery"], request=IcuBedAssignmentSerializer, responses={201: IcuAdmissionSerializer})
    @action(detail=True, methods=["post"], url_path="admit-icu")
    def admit_icu(self, request, pk=None):
        ser = IcuBedAssignmentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            admission = IcuService.admit(
                surgery_id=pk, bed_number=ser.validated_data["bed_number"], actor_user_id=request.user.id
            )
        return Response(IcuAdmissionSerializer(admission).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Surgery"], request=BedAssignmentSerializer, responses={201: WardAdmissionSerializer})
    @action(detail=True, methods=["post"], url_path="admit-ward")
    def admit_ward(self, request, pk=None):
        ser = BedAssignmentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            admission = WardService.admit(
                surgery_id=pk, bed_number=ser.validated_data["bed_number"], actor_user_id=request.user.id
            )
        return Response(WardAdmissionSerializer(admission).data, status=status.HTTP_201_CREATED)
