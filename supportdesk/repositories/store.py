"""
Ticket Store

Async facade over the Supabase repositories used by the AI run pipeline
and the HTTP routes. supabase-py is synchronous, so every call runs in a
worker thread (asyncio.to_thread) to keep the event loop free.
"""
import asyncio
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from supportdesk.models.schemas import (
    AIRun,
    AIRunStatus,
    AISettings,
    Customer,
    Notification,
    NotificationCreate,
    Ticket,
    TicketCreate,
)
from supportdesk.repositories.base_repository import create_supabase_client
from supportdesk.repositories.customer_repository import CustomerRepository
from supportdesk.repositories.notification_repository import NotificationRepository
from supportdesk.repositories.run_repository import RunRepository
from supportdesk.repositories.settings_repository import AISettingsRepository
from supportdesk.repositories.ticket_repository import TicketRepository


class TicketStore:
    """Read/write contract the pipeline uses against durable storage."""

    def __init__(self, supabase_client=None) -> None:
        client = supabase_client if supabase_client is not None else create_supabase_client()
        self.tickets = TicketRepository(client)
        self.customers = CustomerRepository(client)
        self.runs = RunRepository(client)
        self.ai_settings = AISettingsRepository(client)
        self.notifications = NotificationRepository(client)

    # Tickets
    async def get_ticket(self, ticket_id: str, org_id: Optional[str] = None) -> Optional[Ticket]:
        return await asyncio.to_thread(self.tickets.get_ticket, ticket_id, org_id)

    async def create_ticket(self, ticket: TicketCreate) -> Ticket:
        return await asyncio.to_thread(self.tickets.create_ticket, ticket)

    async def update_ticket(
        self,
        ticket_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None
    ) -> Optional[Ticket]:
        return await asyncio.to_thread(self.tickets.update_ticket, ticket_id, fields, expected_version)

    # Customers
    async def get_customer(self, customer_id: str) -> Optional[Customer]:
        return await asyncio.to_thread(self.customers.get_customer, customer_id)

    async def find_or_create_customer(self, org_id: str, name: str, email: str) -> Customer:
        return await asyncio.to_thread(self.customers.find_or_create_customer, org_id, name, email)

    # Settings
    async def get_org_settings(self, org_id: str) -> AISettings:
        return await asyncio.to_thread(self.ai_settings.get_org_settings, org_id)

    async def get_or_create_settings(self, org_id: str) -> AISettings:
        return await asyncio.to_thread(self.ai_settings.get_or_create_settings, org_id)

    async def update_settings(self, org_id: str, updates: Dict[str, Any]) -> AISettings:
        return await asyncio.to_thread(self.ai_settings.update_settings, org_id, updates)

    # Runs
    async def insert_run(self, ticket_id: str, org_id: Optional[str] = None) -> AIRun:
        return await asyncio.to_thread(self.runs.insert_run, ticket_id, org_id)

    async def get_run(self, run_id: str) -> Optional[AIRun]:
        return await asyncio.to_thread(self.runs.get_run, run_id)

    async def update_run(
        self,
        run_id: str,
        fields: Dict[str, Any],
        expected_statuses: Optional[Iterable[AIRunStatus]] = None
    ) -> Optional[AIRun]:
        return await asyncio.to_thread(self.runs.update_run, run_id, fields, expected_statuses)

    async def list_runs(self, ticket_id: str, limit: int = 50) -> List[AIRun]:
        return await asyncio.to_thread(self.runs.list_runs, ticket_id, limit)

    async def list_stale_queued_runs(self, older_than: datetime, limit: int = 50) -> List[AIRun]:
        return await asyncio.to_thread(self.runs.list_stale_queued_runs, older_than, limit)

    # Notifications
    async def insert_notification(self, notification: NotificationCreate) -> Notification:
        return await asyncio.to_thread(self.notifications.insert_notification, notification)
