# registry_core/inpatient/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from registry_core.common.api.exceptions import service_errors
from registry_core.common.api.pagination import paginate
from registry_core.common.api.params import uuid_param
from registry_core.common.permissions import IcuPermission, WardPermission
from registry_core.inpatient.api.serializers import (
    AdmitSerializer,
    BedBoardSerializer,
    IcuAdmissionSerializer,
    IcuAdmitSerializer,
    IcuDischargeSerializer,
    ProgressNoteCreateSerializer,
    ProgressNoteSerializer,
    WardAdmissionSerializer,
    WardDischargeSerializer,
)
from registry_core.inpatient.beds import BEDS, ICU, WARD
from registry_core.inpatient.models import IcuAdmission, WardAdmission
from registry_core.inpatient.selectors import list_icu_admissions, list_ward_admissions, progress_notes
from registry_core.inpatient.services import IcuService, WardService, available_beds

LIST_PARAMS = [
    OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
    OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
]


def _bed_board(unit: str) -> dict:
    return BedBoardSerializer({"unit": unit, "beds": list(BEDS[unit]), "available": available_beds(unit)}).data


class IcuAdmissionViewSet(viewsets.ViewSet):
    permission_classes = [IcuPermission]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    serializer_class = IcuAdmissionSerializer
    queryset = IcuAdmission.objects.none()

    @extend_schema(tags=["ICU"], parameters=LIST_PARAMS, responses={200: IcuAdmissionSerializer(many=True)})
    def list(self, request):
        qs = list_icu_admissions(status=request.query_params.get("status"), patient_id=uuid_param(request, "patient"))
        return paginate(request, qs, IcuAdmissionSerializer)

    @extend_schema(tags=["ICU"], responses={200: IcuAdmissionSerializer})
    def retrieve(self, request, pk=None):
        return Response(IcuAdmissionSerializer(list_icu_admissions().get(id=pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["ICU"], request=IcuAdmitSerializer, responses={201: IcuAdmissionSerializer})
    def create(self, request):
        ser = IcuAdmitSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            admission = IcuService.admit(actor_user_id=request.user.id, **ser.validated_data)
        return Response(IcuAdmissionSerializer(admission).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["ICU"], responses={200: BedBoardSerializer})
    @action(detail=False, methods=["get"], url_path="beds")
    def beds(self, request):
        return Response(_bed_board(ICU), status=status.HTTP_200_OK)

    @extend_schema(tags=["ICU"], responses={200: ProgressNoteSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="notes")
    def notes(self, request, pk=None):
        admission = IcuAdmission.objects.get(id=pk)
        return paginate(request, progress_notes(icu_admission_id=admission.id), ProgressNoteSerializer)

    @extend_schema(tags=["ICU"], request=ProgressNoteCreateSerializer, responses={201: ProgressNoteSerializer})
    @notes.mapping.post
    def add_note(self, request, pk=None):
        ser = ProgressNoteCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            note = IcuService.add_progress_note(icu_admission_id=pk, actor_user_id=request.user.id, **ser.validated_data)
        return Response(ProgressNoteSerializer(note).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["ICU"], request=IcuDischargeSerializer, responses={200: WardAdmissionSerializer})
    @action(detail=True, methods=["post"], url_path="discharge")
    def discharge(self, request, pk=None):
        ser = IcuDischargeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            _, step_down = IcuService.discharge(
                icu_admission_id=pk,
                actor_user_id=request.user.id,
                ward_bed_number=ser.validated_data["ward_bed_number"],
            )
        return Response(WardAdmissionSerializer(step_down).data, status=status.HTTP_200_OK)


class WardAdmissionViewSet(viewsets.ViewSet):
    permission_classes = [WardPermission]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    serializer_class = WardAdmissionSerializer
    queryset = WardAdmission.objects.none()

    @extend_schema(tags=["Ward"], parameters=LIST_PARAMS, responses={200: WardAdmissionSerializer(many=True)})
    def list(self, request):
        qs = list_ward_admissions(status=request.query_params.get("status"), patient_id=uuid_param(request, "patient"))
        return paginate(request, qs, WardAdmissionSerializer)

    @extend_schema(tags=["Ward"], responses={200: WardAdmissionSerializer})
    def retrieve(self, request, pk=None):
        return Response(WardAdmissionSerializer(list_ward_admissions().get(id=pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Ward"], request=AdmitSerializer, responses={201: WardAdmissionSerializer})
    def create(self, request):
        ser = AdmitSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            admission = WardService.admit(actor_user_id=request.user.id, **ser.validated_data)
        return Response(WardAdmissionSerializer(admission).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Ward"], responses={200: BedBoardSerializer})
    @action(detail=False, methods=["get"], url_path="beds")
    def beds(self, request):
        return Response(_bed_board(WARD), status=status.HTTP_200_OK)

    @extend_schema(tags=["Ward"], request=WardDischargeSerializer, responses={200: WardAdmissionSerializer})
    @action(detail=True, methods=["post"], url_path="discharge")
    def discharge(self, request, pk=None):
        ser = WardDischargeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            admission = WardService.discharge(
                ward_admission_id=pk,
                actor_user_id=request.user.id,
                discharge_notes=ser.validated_data["discharge_notes"],
            )
        return Response(WardAdmissionSerializer(admission).data, status=status.HTTP_200_OK)
