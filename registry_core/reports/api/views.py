# registry_core/reports/api/views.py
from __future__ import annotations

from django.http import HttpResponse
from django.utils import timezone
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from registry_core.common.api.exceptions import service_errors
from registry_core.common.api.params import date_param
from registry_core.common.permissions import ROLE_ADMIN, ReportPermission, has_role
from registry_core.reports.api.serializers import DashboardSerializer, ReportSerializer
from registry_core.reports.selectors import dashboard_stats
from registry_core.reports.services import ReportService

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

PERIOD_PARAMS = [
    OpenApiParameter(name="start", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
    OpenApiParameter(name="end", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
]


class ReportViewSet(viewsets.ViewSet):
    """
    Read-only aggregate views.
    `output=pdf` is used instead of `format=pdf`, which DRF reserves for
    renderer selection.
    """
    permission_classes = [ReportPermission]
    serializer_class = DashboardSerializer

    @extend_schema(tags=["Reports"], responses={200: DashboardSerializer})
    @action(detail=False, methods=["get"], url_path="dashboard")
    def dashboard(self, request):
        return Response(DashboardSerializer(dashboard_stats(user_id=request.user.id)).data)

    @extend_schema(
        tags=["Reports"],
        parameters=[
            OpenApiParameter(name="type", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=True),
            *PERIOD_PARAMS,
            OpenApiParameter(name="output", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: ReportSerializer},
    )
    @action(detail=False, methods=["get"], url_path="report")
    def report(self, request):
        with service_errors():
            report = ReportService.build_report(
                report_type=request.query_params.get("type") or "summary",
                start=date_param(request, "start"),
                end=date_param(request, "end"),
            )

        if (request.query_params.get("output") or "").lower() == "pdf":
            content = ReportService.report_pdf(report=report, actor_user_id=request.user.id)
            resp = HttpResponse(content, content_type="application/pdf")
            resp["Content-Disposition"] = (
                f'attachment; filename="{report["type"]}-report-{timezone.localdate():%Y-%m-%d}.pdf"'
            )
            return resp

        return Response(ReportSerializer(report).data)

    @extend_schema(
        tags=["Reports"],
        parameters=[
            OpenApiParameter(name="groups", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            *PERIOD_PARAMS,
        ],
        responses={(200, XLSX_CONTENT_TYPE): OpenApiTypes.BINARY},
    )
    @action(detail=False, methods=["get"], url_path="patient-export")
    def patient_export(self, request):
        raw_groups = request.query_params.get("groups") or ""
        with service_errors():
            content, _count = ReportService.export_patients(
                actor_user_id=request.user.id,
                groups=[g.strip() for g in raw_groups.split(",")],
                identifiable=has_role(request.user, ROLE_ADMIN),
                start=date_param(request, "start"),
                end=date_param(request, "end"),
                status=request.query_params.get("status") or None,
            )

        resp = HttpResponse(content, content_type=XLSX_CONTENT_TYPE)
        resp["Content-Disposition"] = f'attachment; filename="patient-export-{timezone.localtime():%Y-%m-%d-%H%M}.xlsx"'
        return resp
