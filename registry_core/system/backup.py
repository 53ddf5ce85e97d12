# registry_core/system/backup.py
"""
Full-table dump and reload of clinical data.

Payload shape: {"backup_timestamp": iso8601, "<table>": [row, ...], ...}
where each row is the model's concrete fields keyed by attname
(foreign keys as "<field>_id").
"""
from __future__ import annotations

import json
import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import IntegrityError
from django.db.models import Model
from django.utils import timezone

from registry_core.appointments.models import Appointment, DoctorSchedule, FollowUp
from registry_core.consultations.models import Consultation
from registry_core.inpatient.models import IcuAdmission, IcuProgressNote, WardAdmission
from registry_core.lab.models import LabResult, LabTest
from registry_core.notifications.models import Notification
from registry_core.patients.models import Patient
from registry_core.pharmacy.models import Prescription, PrescriptionItem
from registry_core.surgery.models import Surgery, SurgicalConsent
from registry_core.vitals.models import Vitals

logger = logging.getLogger(__name__)

TABLES: dict[str, type[Model]] = {
    "patients": Patient,
    "vitals": Vitals,
    "appointments": Appointment,
    "doctor_schedules": DoctorSchedule,
    "lab_tests": LabTest,
    "lab_results": LabResult,
    "prescriptions": Prescription,
    "prescription_items": PrescriptionItem,
    "surgeries": Surgery,
    "surgical_consents": SurgicalConsent,
    "icu_admissions": IcuAdmission,
    "icu_progress_notes": IcuProgressNote,
    "follow_ups": FollowUp,
    "notifications": Notification,
    "doctor_consultations": Consultation,
    "ward_admissions": WardAdmission,
}

# Every backup must carry these; ward_admissions is optional for older payloads.
REQUIRED_TABLES = tuple(t for t in TABLES if t != "ward_admissions")

# Children before parents. Consultations go after the rows that only
# point at them through SET_NULL links (surgeries, prescriptions, lab tests)
# have been unlinked by the collector.
DELETE_ORDER = (
    "icu_progress_notes",
    "ward_admissions",
    "icu_admissions",
    "surgical_consents",
    "follow_ups",
    "doctor_consultations",
    "surgeries",
    "lab_results",
    "lab_tests",
    "prescription_items",
    "prescriptions",
    "vitals",
    "appointments",
    "notifications",
    "doctor_schedules",
    "patients",
)

INSERT_ORDER = (
    "patients",
    "doctor_schedules",
    "appointments",
    "doctor_consultations",
    "vitals",
    "lab_tests",
    "lab_results",
    "prescriptions",
    "prescription_items",
    "surgeries",
    "surgical_consents",
    "icu_admissions",
    "icu_progress_notes",
    "ward_admissions",
    "follow_ups",
    "notifications",
)


def dump_tables() -> tuple[dict, dict]:
    """Return (payload, record_counts)."""
    payload: dict = {"backup_timestamp": timezone.now().isoformat()}
    counts: dict = {}
    for name, model in TABLES.items():
        rows = list(model.objects.order_by("created_at").values())
        payload[name] = json.loads(json.dumps(rows, cls=DjangoJSONEncoder))
        counts[name] = len(rows)
    return payload, counts


def validate_manifest(payload) -> None:
    if not isinstance(payload, dict):
        raise ValueError("Backup payload must be an object.")
    missing = [t for t in REQUIRED_TABLES if t not in payload]
    if missing:
        raise ValueError(f"Backup is missing tables: {', '.join(missing)}")
    bad = [t for t in TABLES if t in payload and not isinstance(payload[t], list)]
    if bad:
        raise ValueError(f"Backup tables must be lists: {', '.join(bad)}")


def delete_clinical_data() -> dict:
    deleted = {}
    for name in DELETE_ORDER:
        count, _ = TABLES[name].objects.all().delete()
        deleted[name] = count
    return deleted


def _user_fk_fields(model: type[Model]) -> list:
    User = get_user_model()
    return [f for f in model._meta.concrete_fields if f.is_relation and f.related_model is User]


def _build(model: type[Model], row: dict, user_ids: set) -> Model | None:
    """
    Rebuild an instance from a dumped row. References to users that no
    longer exist are nulled, or the row is skipped when the link is required.
    """
    values = {}
    user_fks = {f.attname: f for f in _user_fk_fields(model)}
    for field in model._meta.concrete_fields:
        if field.attname not in row:
            continue
        raw = row[field.attname]
        if field.attname in user_fks and raw is not None and raw not in user_ids:
            if not field.null:
                return None
            raw = None
        target = field.target_field if field.is_relation else field
        values[field.attname] = None if raw is None else target.to_python(raw)
    return model(**values)


def _load_table(name: str, rows: list, user_ids: set) -> int:
    model = TABLES[name]
    objs = [o for o in (_build(model, row, user_ids) for row in rows) if o is not None]
    stamps = [(o.created_at, o.updated_at) for o in objs]
    model.objects.bulk_create(objs)
    # bulk_create re-stamps auto_now(_add) fields; put the dumped values back.
    for o, (created, updated) in zip(objs, stamps):
        o.created_at = created or o.created_at
        o.updated_at = updated or o.updated_at
    if objs:
        model.objects.bulk_update(objs, ["created_at", "updated_at"], batch_size=500)
    skipped = len(rows) - len(objs)
    if skipped:
        logger.warning("restore table=%s skipped=%s (missing users)", name, skipped)
    return len(objs)


def load_tables(payload: dict) -> dict:
    """
    Insert every table in dependency order. A row that cannot be rebuilt
    or inserted aborts the load with ValueError naming the table; the
    caller's transaction then rolls the whole restore back.
    """
    user_ids = set(get_user_model().objects.values_list("id", flat=True))
    restored = {}
    for name in INSERT_ORDER:
        try:
            restored[name] = _load_table(name, payload.get(name) or [], user_ids)
        except (IntegrityError, ValidationError) as exc:
            logger.error("restore failed table=%s error=%s", name, exc)
            raise ValueError(f"Backup table {name} could not be restored: {exc}") from exc
    return restored
