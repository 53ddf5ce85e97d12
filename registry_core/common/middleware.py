# registry_core/common/middleware.py
from __future__ import annotations

import logging
import re
import time

from django.utils.deprecation import MiddlewareMixin

from registry_core.common.api.exceptions import ensure_request_id

logger = logging.getLogger(__name__)

_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9\-_.]{1,64}$")


class RequestIdMiddleware(MiddlewareMixin):
    """
    Attaches request.request_id (honouring a sane incoming X-Request-Id),
    echoes it on the response and writes one access line per API request.
    """

    HEADER = "X-Request-Id"
    LOGGED_PREFIXES = ("/api/",)

    def process_request(self, request):
        incoming = request.META.get("HTTP_X_REQUEST_ID", "")
        if incoming and _REQUEST_ID_RE.match(incoming):
            request.request_id = incoming
        else:
            ensure_request_id(request)
        request._started_at = time.monotonic()
        return None

    def process_response(self, request, response):
        rid = ensure_request_id(request)
        response[self.HEADER] = rid

        if request.path.startswith(self.LOGGED_PREFIXES):
            started = getattr(request, "_started_at", None)
            elapsed_ms = int((time.monotonic() - started) * 1000) if started else -1
            user = getattr(request, "user", None)
            logger.info(
                "request method=%s path=%s status=%s user=%s ms=%s request_id=%s",
                request.method,
                request.path,
                response.status_code,
                getattr(user, "pk", None),
                elapsed_ms,
                rid,
            )
        return response
