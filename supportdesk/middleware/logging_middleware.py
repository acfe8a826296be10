"""
Logging Middleware - Request/Response logging
"""
import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from supportdesk.utils.logger import get_logger

logger = get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all requests and responses

    Logs:
    - Request method and path
    - Response status code and duration
    - Unhandled errors
    """

    async def dispatch(self, request: Request, call_next: Callable):
        # Skip logging for health checks (too noisy)
        if request.url.path == "/api/health":
            return await call_next(request)

        start_time = time.time()
        method = request.method
        path = request.url.path
        client_host = request.client.host if request.client else "unknown"

        logger.info(
            f"→ {method} {path}",
            extra={"method": method, "path": path, "client": client_host}
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(
                f"✗ {method} {path} ERROR ({duration_ms}ms): {e}",
                extra={"method": method, "path": path, "duration_ms": duration_ms},
                exc_info=True
            )
            raise

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"← {method} {path} {response.status_code} ({duration_ms}ms)",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms
            }
        )

        response.headers["X-Process-Time"] = str(duration_ms)
        return response
