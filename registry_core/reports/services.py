# registry_core/reports/services.py
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Tuple

from registry_core.audit.models import ActivityAction
from registry_core.audit.services import AuditService
from registry_core.reports import excel
from registry_core.reports.pdf import render_report_pdf
from registry_core.reports.selectors import report_period, report_rows
from registry_core.system.models import SystemSettings

logger = logging.getLogger(__name__)


class ReportService:
    @staticmethod
    def build_report(*, report_type: str, start: date | None, end: date | None) -> dict:
        start, end = report_period(start, end)
        report = report_rows(report_type=report_type, start=start, end=end)
        logger.info("report built type=%s start=%s end=%s rows=%s", report_type, start, end, len(report["rows"]))
        return report

    @staticmethod
    def report_pdf(*, report: dict, actor_user_id: int | None) -> bytes:
        content = render_report_pdf(report, site_name=SystemSettings.load().site_name)
        AuditService.log(
            action=ActivityAction.EXPORT,
            actor_user_id=actor_user_id,
            entity_type="report",
            entity_id=report["type"],
            details={"format": "pdf", "start": report["start"], "end": report["end"], "rows": len(report["rows"])},
        )
        return content

    @staticmethod
    def export_patients(
        *,
        actor_user_id: int | None,
        groups: Iterable[str] | None,
        identifiable: bool,
        start: date | None = None,
        end: date | None = None,
        status: str | None = None,
    ) -> Tuple[bytes, int]:
        if start and end and start > end:
            raise ValueError("start must be on or before end.")

        chosen = excel.resolve_groups(groups)
        columns = excel.export_columns(chosen, identifiable=identifiable)
        rows = excel.export_rows(excel.export_queryset(start=start, end=end, status=status), columns)
        content = excel.build_workbook(columns, rows)

        AuditService.log(
            action=ActivityAction.EXPORT,
            actor_user_id=actor_user_id,
            entity_type="patient_export",
            details={
                "format": "xlsx",
                "patient_count": len(rows),
                "field_groups": chosen,
                "identifiable": identifiable,
                "status": status or "",
                "start": start,
                "end": end,
            },
        )
        logger.info("patient export rows=%s groups=%s identifiable=%s", len(rows), ",".join(chosen), identifiable)
        return content, len(rows)
