"""
Base Repository

Shared Supabase client handling and payload helpers for the
repositories behind the ticket store.

All repositories take an injected supabase client (tests pass a
MagicMock); when omitted a service-role client is created from settings.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from supportdesk.config import get_settings
from supportdesk.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()


class RecordNotFoundError(LookupError):
    """A required row does not exist (or is outside the caller's org)."""


class TicketVersionConflictError(RuntimeError):
    """Compare-and-swap retries on a ticket were exhausted."""


def create_supabase_client():
    """Create a Supabase client using the service role key when available."""
    from supabase import create_client  # Lazy import for tests

    return create_client(
        settings.supabase_url,
        settings.supabase_admin_key
    )


class BaseRepository:
    """
    Base repository class for table-scoped Supabase operations.

    Subclasses set `table_name` and use `_table()` to start queries.
    """

    table_name: str = ""

    def __init__(self, supabase_client=None) -> None:
        self.client = supabase_client if supabase_client is not None else create_supabase_client()
        logger.info(f"{type(self).__name__} initialized for table: {self.table_name}")

    def _table(self):
        return self.client.table(self.table_name)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _serialize_payload(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Prepare payload for Supabase (convert enums and datetimes).

        None values are kept: clearing a column (e.g. ai_status) is a
        meaningful write.
        """
        serialized: Dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, Enum):
                serialized[key] = value.value
            elif isinstance(value, datetime):
                serialized[key] = value.isoformat()
            else:
                serialized[key] = value
        return serialized

    @staticmethod
    def _first_row(response) -> Optional[Dict[str, Any]]:
        rows = response.data or []
        return rows[0] if rows else None

    def _handle_error(self, operation: str, error: Exception) -> None:
        """
        Centralized error logging for repository operations.

        Callers re-raise after logging.
        """
        logger.error(f"Repository error during {operation} on {self.table_name}: {error}")
