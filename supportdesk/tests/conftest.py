"""
pytest fixtures for the AI run pipeline
"""
import os
from datetime import datetime, timedelta, timezone
from typing import Callable

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("WORKER_API_KEY", "test-worker-key")
os.environ.setdefault("GOOGLE_API_KEY", "")

import pytest

from supportdesk.models.schemas import Ticket

from pipeline_fakes import ORG_ID, InMemoryStore, RecordingDispatcher


@pytest.fixture
def store() -> InMemoryStore:
    store = InMemoryStore()
    store.set_settings(ORG_ID)
    return store


@pytest.fixture
def ticket(store) -> Ticket:
    customer = store.add_customer()
    return store.add_ticket(customer_id=customer.id)


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def minutes_ago(fixed_now) -> Callable[[int], datetime]:
    return lambda minutes: fixed_now - timedelta(minutes=minutes)
