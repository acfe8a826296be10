"""
Pytest configuration and fixtures
"""
import os
from typing import Any, Dict

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("GOOGLE_API_KEY", "")

import pytest


@pytest.fixture
def sample_ticket_row() -> Dict[str, Any]:
    """Sample `tickets` row as returned by Supabase"""
    return {
        "id": "0b6f7c2e-1f0a-4c59-9d7e-4f1f7c1c2a10",
        "org_id": "org-demo",
        "customer_id": "customer-1",
        "ticket_number": 1042,
        "subject": "Charged twice for order #5531",
        "content": "I was billed twice this morning. Please refund the duplicate charge.",
        "category": "billing",
        "priority": "high",
        "status": "open",
        "ai_status": "draft_ready",
        "latest_run_id": "run-7",
        "draft_response": "Hello Jane,\n\nThanks for flagging this.",
        "draft_updated_at": None,
        "confidence": 71.6,
        "sentiment": 2.0,
        "version": 4,
        "created_at": "2025-01-15T09:30:00+00:00",
    }


@pytest.fixture
def sample_settings_row() -> Dict[str, Any]:
    """Sample `ai_settings` row"""
    return {
        "org_id": "org-demo",
        "ai_enabled": True,
        "auto_reply": False,
        "learning_mode": True,
        "selected_persona": "friendly",
        "max_response_length": 400,
        "tone_value": 70,
        "confidence_threshold": 80,
    }
