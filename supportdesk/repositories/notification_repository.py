"""
Notification Repository

Insert-only: delivery and read tracking live outside this service.
"""
from supportdesk.models.schemas import Notification, NotificationCreate
from supportdesk.repositories.base_repository import BaseRepository
from supportdesk.utils.logger import get_logger

logger = get_logger(__name__)


class NotificationRepository(BaseRepository):
    """Repository for notifications table operations"""

    table_name = "notifications"

    def insert_notification(self, notification: NotificationCreate) -> Notification:
        try:
            payload = self._serialize_payload(notification.model_dump())
            row = self._first_row(self._table().insert(payload).execute())
            if not row:
                raise ValueError("Supabase insert returned no data")

            created = Notification(**row)
            logger.info(
                f"Notification {created.id} ({created.type.value}/{created.priority.value}) "
                f"raised for ticket {created.ticket_id}"
            )
            return created

        except Exception as exc:
            self._handle_error("insert_notification", exc)
            raise
