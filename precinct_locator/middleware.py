"""Custom middleware for the Precinct Locator API"""

import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger()


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for structured request/response logging"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Reuse a caller-supplied run ID so traces join up across services
        run_id = request.headers.get("X-Run-ID") or str(uuid.uuid4())
        request.state.run_id = run_id

        start_time = time.time()
        logger.info(
            "Request started",
            run_id=run_id,
            method=request.method,
            path=request.url.path,
            query_params=dict(request.query_params),
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(
                "Request failed",
                run_id=run_id,
                exception=str(exc),
                duration_ms=duration_ms,
                exc_info=True
            )
            raise

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            "Request completed",
            run_id=run_id,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

        response.headers["X-Run-ID"] = run_id
        return response
