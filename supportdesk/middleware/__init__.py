"""
Middleware modules
"""
from .org_middleware import OrgMiddleware
from .logging_middleware import LoggingMiddleware

__all__ = ["OrgMiddleware", "LoggingMiddleware"]
