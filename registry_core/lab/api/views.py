# registry_core/lab/api/views.py
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
from registry_core.common.permissions import LabPermission
from registry_core.lab.api.serializers import (
    LabCancelSerializer,
    LabOrderSerializer,
    LabResultsEntrySerializer,
    LabTestSerializer,
)
from registry_core.lab.models import LabTest
from registry_core.lab.selectors import get_test, list_tests
from registry_core.lab.services import LabService

LIST_PARAMS = [
    OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
    OpenApiParameter(name="priority", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
    OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
]


class LabTestViewSet(viewsets.ViewSet):
    """
    Lab orders and results. The queue is sorted stat > urgent > routine.
    """
    permission_classes = [LabPermission]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    serializer_class = LabTestSerializer
    queryset = LabTest.objects.none()

    @extend_schema(tags=["Lab"], parameters=LIST_PARAMS, responses={200: LabTestSerializer(many=True)})
    def list(self, request):
        qs = list_tests(
            status=request.query_params.get("status"),
            priority=request.query_params.get("priority"),
            patient_id=uuid_param(request, "patient"),
        )
        return paginate(request, qs, LabTestSerializer)

    @extend_schema(tags=["Lab"], responses={200: LabTestSerializer})
    def retrieve(self, request, pk=None):
        return Response(LabTestSerializer(get_test(lab_test_id=pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab"], request=LabOrderSerializer, responses={201: LabTestSerializer})
    @idempotent
    def create(self, request):
        ser = LabOrderSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            test = LabService.order_test(actor_user_id=request.user.id, **ser.validated_data)

        return Response(LabTestSerializer(get_test(lab_test_id=test.id)).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Lab"], request=None, responses={200: LabTestSerializer})
    @action(detail=True, methods=["post"], url_path="start")
    def start(self, request, pk=None):
        with service_errors():
            LabService.start_processing(lab_test_id=pk, actor_user_id=request.user.id)
        return Response(LabTestSerializer(get_test(lab_test_id=pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab"], request=LabResultsEntrySerializer, responses={200: LabTestSerializer})
    @action(detail=True, methods=["post"], url_path="results")
    def results(self, request, pk=None):
        ser = LabResultsEntrySerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            LabService.enter_results(
                lab_test_id=pk,
                results=ser.validated_data["results"],
                actor_user_id=request.user.id,
            )
        return Response(LabTestSerializer(get_test(lab_test_id=pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab"], request=LabCancelSerializer, responses={200: LabTestSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        ser = LabCancelSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            LabService.cancel_test(lab_test_id=pk, actor_user_id=request.user.id, reason=ser.validated_data["reason"])
        return Response(LabTestSerializer(get_test(lab_test_id=pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab"], parameters=LIST_PARAMS[:2], responses={200: LabTestSerializer(many=True)})
    @action(detail=False, methods=["get"], url_path="mine")
    def mine(self, request):
        qs = list_tests(
            status=request.query_params.get("status"),
            priority=request.query_params.get("priority"),
            ordered_by_id=request.user.id,
        )
        return paginate(request, qs, LabTestSerializer)
