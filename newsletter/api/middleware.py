"""
Request id middleware.

Every request gets an ``x-request-id``: the incoming header when present,
otherwise a fresh UUID. The id is echoed on the response and included in
the request log lines.
"""

from __future__ import annotations

import logging
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"http_request method={request.method} uri={request.url.path} "
            f"status={response.status_code} request_id={request_id} "
            f"latency_ms={elapsed_ms:.1f}"
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
