"""
Org Middleware - Extract and validate org_id
"""
from typing import Callable

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from supportdesk.config import get_settings
from supportdesk.utils.logger import get_logger
from supportdesk.utils.validators import validate_org_id

logger = get_logger(__name__)
settings = get_settings()

EXEMPT_PATHS = ("/", "/api/health", "/docs", "/openapi.json", "/redoc")
EXEMPT_PREFIXES = ("/api/worker",)


class OrgMiddleware(BaseHTTPMiddleware):
    """
    Middleware to extract and validate org_id from requests

    Extracts org_id from:
    1. Header: X-Org-Id
    2. Query parameter: org_id

    Sets org_id in request.state for downstream use. Worker endpoints are
    exempt (they act on run ids and are guarded by the worker key).
    """

    async def dispatch(self, request: Request, call_next: Callable):
        path = request.url.path
        if path in EXEMPT_PATHS or path.startswith(EXEMPT_PREFIXES):
            return await call_next(request)

        org_id = request.headers.get("X-Org-Id") or request.query_params.get("org_id")

        if not org_id:
            if settings.is_development and settings.default_org_id:
                org_id = settings.default_org_id
                logger.warning(f"Missing org_id for {path}, falling back to default org in development mode")
            else:
                logger.error(f"Missing org_id for {path}")
                return JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={"detail": "Missing org_id. Provide X-Org-Id header or org_id query parameter."}
                )

        if not validate_org_id(org_id):
            logger.error(f"Invalid org_id format: {org_id}")
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"detail": "Invalid org_id format. Use alphanumeric characters, hyphens, or underscores only."}
            )

        request.state.org_id = org_id
        logger.debug(f"Org: {org_id} | Path: {path}")

        response = await call_next(request)
        response.headers["X-Org-Id"] = org_id
        return response
