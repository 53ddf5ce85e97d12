# registry_core/audit/services.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError
from django.core.validators import validate_ipv46_address
from django.db import transaction

from registry_core.audit.models import ActivityLog

logger = logging.getLogger(__name__)


def _valid_ip(value: str) -> str | None:
    try:
        validate_ipv46_address(value)
    except ValidationError:
        return None
    return value


def client_ip(request) -> str | None:
    """First hop of X-Forwarded-For if it parses as an address, else REMOTE_ADDR."""
    if request is None:
        return None
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        first = _valid_ip(forwarded.split(",")[0].strip())
        if first:
            return first
        logger.warning("ignoring malformed X-Forwarded-For=%r", forwarded[:100])
    return _valid_ip(request.META.get("REMOTE_ADDR") or "")


class AuditService:
    """
    Central activity writer. Rows are never updated after insert.
    """

    @staticmethod
    @transaction.atomic
    def log(
        *,
        action: str,
        actor_user_id: int | None,
        entity_type: str = "",
        entity_id: Any = None,
        details: Optional[Dict[str, Any]] = None,
        request=None,
        page_path: str = "",
        session_duration_seconds: int | None = None,
    ) -> ActivityLog:
        details = details or {}
        user_agent = ""
        if request is not None:
            user_agent = request.META.get("HTTP_USER_AGENT", "")[:1000]

        entry = ActivityLog.objects.create(
            user_id=actor_user_id,
            action=action,
            entity_type=entity_type or "",
            entity_id="" if entity_id is None else str(entity_id),
            details=details,
            ip_address=client_ip(request),
            user_agent=user_agent,
            page_path=(page_path or "")[:255],
            session_duration_seconds=session_duration_seconds,
        )
        logger.debug("activity action=%s entity=%s:%s user=%s", action, entity_type, entity_id, actor_user_id)
        return entry
