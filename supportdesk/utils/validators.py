"""
Input validation utilities
"""
import re

_EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def validate_org_id(org_id: str) -> bool:
    """
    Validate organization ID format

    Org IDs are UUIDs in production, but any alphanumeric slug with
    hyphens or underscores is accepted (seeded/dev orgs).
    """
    return bool(org_id) and all(c.isalnum() or c in "-_" for c in org_id)


def validate_email(email: str) -> bool:
    """
    Validate email format

    Args:
        email: Email address to validate

    Returns:
        True if valid email format
    """
    return _EMAIL_PATTERN.match(email) is not None


def normalize_email(email: str) -> str:
    """Lowercase and trim an email address for lookups"""
    return email.strip().lower()


def sanitize_input(text: str, max_length: int = 20000) -> str:
    """
    Sanitize user input

    Args:
        text: Input text to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    # Remove null bytes
    text = text.replace('\x00', '')

    if len(text) > max_length:
        text = text[:max_length]

    return text.strip()
