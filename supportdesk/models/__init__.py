"""
Pydantic models for Support Desk AI
"""

from supportdesk.models.schemas import (
    # Enums
    TicketCategory,
    TicketPriority,
    TicketStatus,
    TicketAIStatus,
    AIRunStatus,
    Urgency,
    Persona,
    NotificationType,
    NotificationPriority,
    DraftSource,

    # Database Models
    Customer,
    Ticket,
    TicketCreate,
    AIRun,
    AISettings,
    Notification,
    NotificationCreate,

    # Pipeline Models
    DraftResult,
    RunError,
    RunResult,

    utc_now,
)

__all__ = [
    # Enums
    "TicketCategory",
    "TicketPriority",
    "TicketStatus",
    "TicketAIStatus",
    "AIRunStatus",
    "Urgency",
    "Persona",
    "NotificationType",
    "NotificationPriority",
    "DraftSource",

    # Database Models
    "Customer",
    "Ticket",
    "TicketCreate",
    "AIRun",
    "AISettings",
    "Notification",
    "NotificationCreate",

    # Pipeline Models
    "DraftResult",
    "RunError",
    "RunResult",

    "utc_now",
]
