# registry_core/common/idempotency.py
"""
Replay of create responses keyed by the Idempotency-Key header.

A retried POST with the same key, user and path gets the first
response body back instead of creating a second record.
"""
from __future__ import annotations

import functools
import logging
import threading

from django.conf import settings
from django.db import IntegrityError, transaction
from rest_framework.response import Response

from registry_core.common.models import IdempotencyRecord

logger = logging.getLogger(__name__)

HEADER = "HTTP_IDEMPOTENCY_KEY"

_lock = threading.Lock()
_memory: dict[tuple, tuple[int, object]] = {}


def _durable() -> bool:
    # COMMON_IDEMPOTENCY_USE_DB=False keeps replays in process memory only
    return bool(getattr(settings, "COMMON_IDEMPOTENCY_USE_DB", False))


def lookup(*, user_id, method: str, path: str, key: str) -> tuple[int, object] | None:
    """Return (status_code, body) of a stored response, or None."""
    ident = (str(user_id), method.upper(), path, str(key))
    if not _durable():
        with _lock:
            return _memory.get(ident)

    rec = (
        IdempotencyRecord.objects.filter(
            user_id=int(user_id), method=ident[1], path=path, idempotency_key=ident[3]
        )
        .order_by("-created_at")
        .first()
    )
    return None if rec is None else (rec.status_code, rec.response_data)


def remember(*, user_id, method: str, path: str, key: str, status_code: int, body) -> None:
    ident = (str(user_id), method.upper(), path, str(key))
    if not _durable():
        with _lock:
            _memory.setdefault(ident, (status_code, body))
        return

    try:
        with transaction.atomic():
            IdempotencyRecord.objects.create(
                user_id=int(user_id),
                method=ident[1],
                path=path,
                idempotency_key=ident[3],
                status_code=status_code,
                response_data=body,
            )
    except IntegrityError:
        # a concurrent retry stored it first
        pass


def idempotent(view_method):
    """
    Wrap a ViewSet/APIView handler. Only successful responses are stored,
    so a request that failed validation can be retried with the same key.
    """

    @functools.wraps(view_method)
    def wrapper(self, request, *args, **kwargs):
        key = request.META.get(HEADER)
        if not key:
            return view_method(self, request, *args, **kwargs)

        ident = {"user_id": request.user.id, "method": request.method, "path": request.path, "key": key}
        stored = lookup(**ident)
        if stored is not None:
            logger.info("idempotent replay method=%s path=%s key=%s", request.method, request.path, key)
            status_code, body = stored
            return Response(body, status=status_code)

        response = view_method(self, request, *args, **kwargs)
        if 200 <= response.status_code < 300:
            remember(**ident, status_code=response.status_code, body=response.data)
        return response

    return wrapper
