"""
Pydantic models for Support Desk AI

Mirrors the Supabase tables touched by the AI run pipeline
(tickets, customers, ai_runs, ai_settings, notifications) plus the
value objects passed between pipeline stages.

Field names are snake_case (Supabase columns); every model also
serializes to camelCase aliases for the HTTP API.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from supportdesk.utils.parsing import clamp_int


def utc_now() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


# ============================================================================
# Enums
# ============================================================================

class TicketCategory(str, Enum):
    """Ticket categories"""
    REFUND = "refund"
    SHIPPING = "shipping"
    PRODUCT = "product"
    BILLING = "billing"
    GENERAL = "general"


class TicketPriority(str, Enum):
    """Ticket priorities"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TicketStatus(str, Enum):
    """Ticket workflow status"""
    OPEN = "open"
    RESOLVED = "resolved"


class TicketAIStatus(str, Enum):
    """AI involvement status shown on a ticket"""
    PENDING = "pending"
    DRAFT_READY = "draft_ready"
    HUMAN_NEEDED = "human_needed"


class AIRunStatus(str, Enum):
    """AI run lifecycle: queued -> running -> done | error"""
    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"


class Urgency(str, Enum):
    """Urgency inferred for a ticket"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Persona(str, Enum):
    """Tone/phrasing profile for drafted replies"""
    PROFESSIONAL = "professional"
    FRIENDLY = "friendly"
    CONCISE = "concise"


class NotificationType(str, Enum):
    TICKET = "ticket"
    AI = "ai"
    SYSTEM = "system"
    TEAM = "team"


class NotificationPriority(str, Enum):
    NORMAL = "normal"
    HIGH = "high"


class DraftSource(str, Enum):
    """Which stage produced a draft"""
    GENERATIVE = "generative"
    HEURISTIC = "heuristic"


TERMINAL_RUN_STATUSES = frozenset({AIRunStatus.DONE, AIRunStatus.ERROR})
IN_FLIGHT_RUN_STATUSES = frozenset({AIRunStatus.QUEUED, AIRunStatus.RUNNING})


class ApiModel(BaseModel):
    """Base model: snake_case fields, camelCase JSON aliases"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================================================
# Database Models (matching Supabase tables)
# ============================================================================

class Customer(ApiModel):
    """Customer contact attached to a ticket"""
    id: str
    org_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class Ticket(ApiModel):
    """
    Customer support ticket.

    `latest_run_id` is the only run allowed to write draft/confidence/
    sentiment onto the ticket. `version` is bumped on every write made
    through the store and is used for compare-and-swap updates.
    """
    id: str
    org_id: str
    customer_id: Optional[str] = None
    ticket_number: Optional[str] = None

    subject: str = ""
    content: str = ""
    category: TicketCategory = TicketCategory.GENERAL
    priority: TicketPriority = TicketPriority.MEDIUM
    status: TicketStatus = TicketStatus.OPEN

    ai_status: Optional[TicketAIStatus] = None
    latest_run_id: Optional[str] = None
    draft_response: Optional[str] = None
    draft_updated_at: Optional[datetime] = None
    confidence: Optional[int] = Field(None, ge=0, le=100)
    sentiment: Optional[int] = Field(None, ge=1, le=10)

    version: int = Field(0, ge=0)

    archived_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("ticket_number", mode="before")
    @classmethod
    def stringify_ticket_number(cls, v: Union[int, str, None]) -> Optional[str]:
        return None if v is None else str(v)

    @field_validator("confidence", "sentiment", mode="before")
    @classmethod
    def round_numeric(cls, v: Any) -> Any:
        # numeric columns may come back as floats
        if isinstance(v, float):
            return int(round(v))
        return v


class TicketCreate(BaseModel):
    """Schema for inserting a new ticket (without generated fields)"""
    org_id: str
    customer_id: str
    subject: str = Field(..., min_length=3, max_length=200)
    content: str = Field(..., min_length=1, max_length=20000)
    category: TicketCategory
    priority: TicketPriority = TicketPriority.MEDIUM
    status: TicketStatus = TicketStatus.OPEN
    ai_status: Optional[TicketAIStatus] = None


class AIRun(ApiModel):
    """One attempt to produce an AI draft for a ticket (append-only)"""
    id: str
    org_id: Optional[str] = None
    ticket_id: str
    status: AIRunStatus = AIRunStatus.QUEUED

    intent: Optional[str] = None
    urgency: Optional[Urgency] = None
    confidence: Optional[int] = Field(None, ge=0, le=100)
    sentiment: Optional[int] = Field(None, ge=1, le=10)
    draft_response: Optional[str] = None
    error: Optional[str] = None

    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_RUN_STATUSES

    @property
    def is_in_flight(self) -> bool:
        return self.status in IN_FLIGHT_RUN_STATUSES


class AISettings(ApiModel):
    """
    Per-organization AI configuration.

    Immutable: built once per run invocation and passed by value through
    the pipeline. `confidence_threshold`, `auto_reply` and `learning_mode`
    are advisory (used by UI/automation), never enforced by the pipeline.
    """
    model_config = ConfigDict(frozen=True)

    org_id: Optional[str] = None
    ai_enabled: bool = True
    auto_reply: bool = False
    learning_mode: bool = False
    selected_persona: Persona = Persona.PROFESSIONAL
    max_response_length: int = Field(250, ge=50, le=2000)
    tone_value: int = Field(50, ge=0, le=100)
    confidence_threshold: int = Field(85, ge=0, le=100)

    @classmethod
    def from_row(cls, row: Optional[Dict[str, Any]]) -> "AISettings":
        """
        Build settings from an `ai_settings` row, clamping numeric ranges.

        A missing row means AI is disabled for the organization.
        """
        if not row:
            return cls(ai_enabled=False)

        try:
            persona = Persona(row.get("selected_persona") or Persona.PROFESSIONAL.value)
        except ValueError:
            persona = Persona.PROFESSIONAL

        def number(key: str, default: int) -> float:
            value = row.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return default
            return value

        return cls(
            org_id=row.get("org_id"),
            ai_enabled=bool(row.get("ai_enabled")),
            auto_reply=bool(row.get("auto_reply")),
            learning_mode=bool(row.get("learning_mode")),
            selected_persona=persona,
            max_response_length=clamp_int(number("max_response_length", 250), 50, 2000),
            tone_value=clamp_int(number("tone_value", 50), 0, 100),
            confidence_threshold=clamp_int(number("confidence_threshold", 85), 0, 100),
        )


class NotificationCreate(ApiModel):
    """Operator-facing notification to insert"""
    org_id: str
    type: NotificationType = NotificationType.SYSTEM
    priority: NotificationPriority = NotificationPriority.NORMAL
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    ticket_id: Optional[str] = None


class Notification(NotificationCreate):
    """Notification row"""
    id: str
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


# ============================================================================
# Pipeline value objects
# ============================================================================

class DraftResult(ApiModel):
    """Structured output of one run (generative or heuristic)"""
    model_config = ConfigDict(frozen=True)

    intent: str = Field(..., min_length=1, max_length=200)
    urgency: Urgency
    confidence: int = Field(..., ge=0, le=100)
    sentiment: int = Field(..., ge=1, le=10)
    draft_response: str = Field(..., min_length=1, max_length=20000)
    source: DraftSource = DraftSource.HEURISTIC

    def as_run_fields(self) -> Dict[str, Any]:
        """Output columns written onto the ai_runs row"""
        return {
            "intent": self.intent,
            "urgency": self.urgency.value,
            "confidence": self.confidence,
            "sentiment": self.sentiment,
            "draft_response": self.draft_response,
        }


class RunError(ApiModel):
    """Structured error returned by a run invocation"""
    code: str
    message: str


class RunResult(ApiModel):
    """Response of one Run Lifecycle Manager invocation"""
    ok: bool
    run_id: str
    status: Optional[AIRunStatus] = None
    note: Optional[str] = None
    error: Optional[RunError] = None

    @classmethod
    def failure(
        cls,
        run_id: str,
        code: str,
        message: str,
        status: Optional[AIRunStatus] = None
    ) -> "RunResult":
        return cls(
            ok=False,
            run_id=run_id,
            status=status,
            error=RunError(code=code, message=message),
        )
