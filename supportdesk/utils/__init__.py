"""
Utility functions
"""
from supportdesk.utils.logger import get_logger
from supportdesk.utils.validators import (
    validate_org_id,
    validate_email,
    normalize_email,
    sanitize_input,
)

__all__ = [
    "get_logger",
    "validate_org_id",
    "validate_email",
    "normalize_email",
    "sanitize_input",
]
