"""Request correlation and access logging middleware."""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("backend.app.access")

_HEADER = "X-Request-ID"
_MAX_LEN = 128


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Expose ``request.state.request_id`` and echo it as ``X-Request-ID``.

    A client-supplied id is reused when it is short and printable, otherwise
    a new one is generated. One access log line is written per request.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        incoming = request.headers.get(_HEADER, "")
        request_id = incoming if _is_usable(incoming) else uuid.uuid4().hex
        request.state.request_id = request_id

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers[_HEADER] = request_id
        logger.info(
            "%s %s %d %.1fms rid=%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        return response


def _is_usable(value: str) -> bool:
    return 0 < len(value) <= _MAX_LEN and value.isprintable() and " " not in value
