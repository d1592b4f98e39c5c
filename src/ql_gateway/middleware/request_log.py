"""Request logging middleware.

Assigns each request the id that ApiResponse echoes back, returns it in the
X-Request-ID header, and logs method, path, status, latency and the calling
agent (when a valid Bearer token was presented).

Log format:
    INFO [POST] /api/v1/markets/0/buy → 200 (4ms) agent=alice req_a1b2c3d4e5f6
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.ql_common.response import new_request_id

logger = logging.getLogger("ql.request")


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or new_request_id()
        request.state.request_id = request_id

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "[%s] %s → %d (%.0fms) agent=%s %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            getattr(request.state, "agent_id", "-"),
            request_id,
        )
        return response
