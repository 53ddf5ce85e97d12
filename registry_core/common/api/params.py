# registry_core/common/api/params.py
from __future__ import annotations

from datetime import date
from uuid import UUID

from django.utils.dateparse import parse_date
from rest_framework.exceptions import ValidationError as DRFValidationError


def uuid_param(request, name: str, *, required: bool = False) -> UUID | None:
    raw = request.query_params.get(name)
    if not raw:
        if required:
            raise DRFValidationError({name: "This query parameter is required."})
        return None
    try:
        return UUID(raw)
    except ValueError:
        raise DRFValidationError({name: "Must be a valid UUID."})


def date_param(request, name: str, *, required: bool = False) -> date | None:
    raw = request.query_params.get(name)
    if not raw:
        if required:
            raise DRFValidationError({name: "This query parameter is required."})
        return None
    try:
        value = parse_date(raw)
    except ValueError:
        value = None
    if value is None:
        raise DRFValidationError({name: "Must be a date in YYYY-MM-DD format."})
    return value


def bool_param(request, name: str) -> bool | None:
    raw = (request.query_params.get(name) or "").lower()
    if raw in ("true", "1"):
        return True
    if raw in ("false", "0"):
        return False
    return None


def int_param(request, name: str, *, required: bool = False) -> int | None:
    raw = request.query_params.get(name)
    if not raw:
        if required:
            raise DRFValidationError({name: "This query parameter is required."})
        return None
    if not raw.isdigit():
        raise DRFValidationError({name: "Must be an integer."})
    return int(raw)
