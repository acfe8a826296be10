"""
AI Settings Repository

Per-organization `ai_settings` rows, exposed as immutable AISettings
value objects.
"""
from typing import Any, Dict, Optional

from supportdesk.models.schemas import AISettings
from supportdesk.repositories.base_repository import BaseRepository
from supportdesk.utils.logger import get_logger

logger = get_logger(__name__)


class AISettingsRepository(BaseRepository):
    """Repository for ai_settings table operations"""

    table_name = "ai_settings"

    def _get_row(self, org_id: str) -> Optional[Dict[str, Any]]:
        response = self._table() \
            .select("*") \
            .eq("org_id", org_id) \
            .limit(1) \
            .execute()
        return self._first_row(response)

    def get_org_settings(self, org_id: str) -> AISettings:
        """
        Read settings for an org. A missing row means AI is disabled.
        """
        try:
            return AISettings.from_row(self._get_row(org_id))

        except Exception as exc:
            self._handle_error(f"get_org_settings({org_id})", exc)
            raise

    def get_or_create_settings(self, org_id: str) -> AISettings:
        """Read settings, inserting a row with database defaults if missing."""
        try:
            row = self._get_row(org_id)
            if row is None:
                row = self._first_row(self._table().insert({"org_id": org_id}).execute())
                if not row:
                    raise ValueError("Supabase insert returned no data")
                logger.info(f"Created default AI settings for org {org_id}")

            return AISettings.from_row(row)

        except Exception as exc:
            self._handle_error(f"get_or_create_settings({org_id})", exc)
            raise

    def update_settings(self, org_id: str, updates: Dict[str, Any]) -> AISettings:
        """Apply validated column updates and return the fresh settings."""
        if not updates:
            raise ValueError("No updates provided")

        try:
            self.get_or_create_settings(org_id)
            self._table() \
                .update(self._serialize_payload(updates)) \
                .eq("org_id", org_id) \
                .execute()

            return AISettings.from_row(self._get_row(org_id))

        except Exception as exc:
            self._handle_error(f"update_settings({org_id})", exc)
            raise
