"""
Request lifecycle middleware for TaskHub Backend.
Generates request IDs, populates context variables, and turns unhandled
errors into a generic 500 response.
"""

import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse
from logging_config import get_logger, request_id_var, user_id_var
from routes.deps import decode_access_token

logger = get_logger("middleware")


def _extract_user_from_request(request: Request) -> str:
    """Best-effort user id from the jwt cookie or bearer header, for log context only."""
    token = request.cookies.get("jwt")
    auth_header = request.headers.get("authorization", "")
    if not token and auth_header.startswith("Bearer "):
        token = auth_header[7:]
    if not token:
        return "-"
    return decode_access_token(token) or "-"


class RequestLifecycleMiddleware(BaseHTTPMiddleware):
    """Middleware that adds request tracing and lifecycle logging."""

    async def dispatch(self, request: Request, call_next) -> Response:
        req_id = uuid.uuid4().hex[:8]
        request_id_var.set(req_id)
        user_id_var.set(_extract_user_from_request(request))

        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        logger.info(
            f"→ {method} {path}",
            extra={"data": {"query": str(request.query_params) if request.query_params else None}}
        )

        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start_time) * 1000, 1)

            log_fn = logger.info if response.status_code < 400 else logger.warning
            log_fn(
                f"← {method} {path} {response.status_code} ({duration_ms}ms)",
                extra={"data": {"status": response.status_code, "duration_ms": duration_ms}}
            )

            # Add request ID to response headers for client-side debugging
            response.headers["X-Request-ID"] = req_id
            return response

        except Exception as exc:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 1)
            logger.error(
                f"✖ {method} {path} UNHANDLED ERROR ({duration_ms}ms): {exc}",
                exc_info=True,
                extra={"data": {"duration_ms": duration_ms, "error": str(exc)}}
            )
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error", "request_id": req_id},
                headers={"X-Request-ID": req_id}
            )
