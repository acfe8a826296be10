"""
Repositories package for database operations

Provides repository classes for:
- tickets table (TicketRepository)
- customers table (CustomerRepository)
- ai_runs table (RunRepository)
- ai_settings table (AISettingsRepository)
- notifications table (NotificationRepository)
and the async TicketStore facade over all of them.
"""
from supportdesk.repositories.base_repository import (
    RecordNotFoundError,
    TicketVersionConflictError,
)
from supportdesk.repositories.ticket_repository import TicketRepository
from supportdesk.repositories.customer_repository import CustomerRepository
from supportdesk.repositories.run_repository import RunRepository
from supportdesk.repositories.settings_repository import AISettingsRepository
from supportdesk.repositories.notification_repository import NotificationRepository
from supportdesk.repositories.store import TicketStore

__all__ = [
    "RecordNotFoundError",
    "TicketVersionConflictError",
    "TicketRepository",
    "CustomerRepository",
    "RunRepository",
    "AISettingsRepository",
    "NotificationRepository",
    "TicketStore",
]
