"""Request context middleware: request ids, timing, and one summary log line.

The request id lives in a ContextVar (perleap.core.logging.request_id_var)
so every log line emitted while handling the request carries it, whichever
module logs. Async requests share a thread, which rules out thread-locals.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from perleap.core.logging import request_id_var

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request id, time the request, and log its completion.

    1. Reuse the caller's X-Request-ID header or generate a UUID
    2. Publish it through request_id_var
    3. Log method, path, status, duration and the authenticated user
       (set on request.state.user_id by the identity dependency)
    4. Echo it back in the X-Request-ID response header
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        token = request_id_var.set(req_id)

        try:
            start = time.monotonic()
            response = await call_next(request)
            duration_ms = round((time.monotonic() - start) * 1000, 1)

            user_id = getattr(request.state, "user_id", None)
            logger.info(
                "%s %s → %d (%.1fms)",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                extra={
                    "request_id": req_id,
                    "method": request.method,
                    "path": request.url.path,
                    "user_id": str(user_id) if user_id is not None else None,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = req_id
        return response
