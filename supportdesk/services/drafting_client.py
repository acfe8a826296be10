"""
Generative Drafting Client - Gemini-backed ticket drafting

Wraps a single Gemini generate_content call:
- builds a system instruction describing the exact JSON output shape,
  persona, word budget and tone strength
- bounds the call with a hard timeout
- extracts JSON from the free-form reply and validates it against the
  output schema

Every failure (missing key, timeout, provider error, blocked response,
malformed JSON, schema violation) surfaces as a single DraftingError.
Callers always have the heuristic analyzer as a fallback.
"""
import asyncio
import math
from typing import Any, Optional

import google.generativeai as genai
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from supportdesk.config import get_settings
from supportdesk.models.schemas import (
    AISettings,
    Customer,
    DraftResult,
    DraftSource,
    Ticket,
    Urgency,
)
from supportdesk.utils.logger import get_logger
from supportdesk.utils.parsing import extract_json_object

logger = get_logger(__name__)
settings = get_settings()

MAX_DRAFT_CHARS = 20000


class DraftingError(Exception):
    """
    Generative drafting failed.

    Attributes:
        reason: unavailable | timeout | provider | blocked | parse | schema
    """

    def __init__(self, message: str, reason: str = "provider"):
        super().__init__(message)
        self.reason = reason


class GeneratedDraft(BaseModel):
    """Exact JSON object the model must return"""
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    intent: str = Field(..., min_length=1, max_length=200)
    urgency: Urgency
    confidence: int = Field(..., ge=0, le=100)
    sentiment: int = Field(..., ge=1, le=10)
    draft_response: str = Field(..., alias="draftResponse", min_length=1, max_length=MAX_DRAFT_CHARS)

    @field_validator("confidence", "sentiment", mode="before")
    @classmethod
    def round_to_int(cls, v: Any) -> int:
        """Accept JSON numbers only; floats are rounded, never clamped."""
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("must be a number")
        if not math.isfinite(v):
            raise ValueError("must be finite")
        return int(round(v))


def build_system_instruction(ai_settings: AISettings) -> str:
    """System instruction: output contract plus persona/length/tone."""
    return "\n".join([
        "You are a customer support agent.",
        "Return ONLY a single JSON object (no markdown, no extra text).",
        "The JSON schema must be:",
        '{ "intent": string, "urgency": "low"|"medium"|"high", '
        '"confidence": integer 0..100, "sentiment": integer 1..10, "draftResponse": string }',
        f"Persona: {ai_settings.selected_persona.value}.",
        f"Max response length: {ai_settings.max_response_length} words.",
        f"Tone strength (0..100): {ai_settings.tone_value}.",
        "Write a helpful, realistic email response. "
        "Do not mention internal policies you are unsure about.",
    ])


def build_ticket_prompt(ticket: Ticket, customer: Optional[Customer]) -> str:
    """User content block describing the customer and the ticket."""
    name = customer.name if customer and customer.name else "Unknown"
    email = customer.email if customer and customer.email else "Unknown"

    return "\n".join([
        f"Customer name: {name}",
        f"Customer email: {email}",
        f"Category: {ticket.category.value}",
        f"Priority: {ticket.priority.value}",
        f"Subject: {ticket.subject}",
        "Content:",
        ticket.content,
    ])


def parse_model_output(text: str) -> DraftResult:
    """
    Parse and validate raw model text into a DraftResult.

    Raises:
        DraftingError: reason "parse" or "schema"
    """
    try:
        payload = extract_json_object(text)
    except ValueError as exc:
        raise DraftingError(f"Model output is not valid JSON: {exc}", reason="parse") from exc

    if not isinstance(payload, dict):
        raise DraftingError("Model output is not a JSON object", reason="schema")

    try:
        draft = GeneratedDraft.model_validate(payload)
    except ValidationError as exc:
        raise DraftingError(
            f"Model output failed schema validation ({exc.error_count()} error(s))",
            reason="schema"
        ) from exc

    return DraftResult(
        intent=draft.intent,
        urgency=draft.urgency,
        confidence=draft.confidence,
        sentiment=draft.sentiment,
        draft_response=draft.draft_response,
        source=DraftSource.GENERATIVE,
    )


class GenerativeDraftingClient:
    """
    Gemini drafting client

    Not configured (no API key) means every call fails with
    reason="unavailable".
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        temperature: Optional[float] = None
    ):
        self.api_key = settings.google_api_key if api_key is None else api_key
        self.model_name = model_name or settings.gemini_model
        self.timeout_seconds = timeout_seconds or settings.ai_draft_timeout_seconds
        self.temperature = settings.ai_draft_temperature if temperature is None else temperature

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def generate(
        self,
        ticket: Ticket,
        customer: Optional[Customer],
        ai_settings: AISettings
    ) -> DraftResult:
        """
        Draft a reply for a ticket.

        Args:
            ticket: Ticket to answer
            customer: Ticket's customer (name/email), if known
            ai_settings: Org settings snapshot for this run

        Returns:
            Validated DraftResult with source=generative

        Raises:
            DraftingError: On any failure
        """
        if not self.is_configured:
            raise DraftingError("Gemini API key not configured", reason="unavailable")

        system_instruction = build_system_instruction(ai_settings)
        prompt = build_ticket_prompt(ticket, customer)

        try:
            text = await asyncio.wait_for(
                self._generate_text(system_instruction, prompt),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            raise DraftingError(
                f"Gemini request timed out after {self.timeout_seconds}s",
                reason="timeout"
            ) from exc
        except DraftingError:
            raise
        except Exception as exc:
            raise DraftingError(f"Gemini request failed: {exc}", reason="provider") from exc

        result = parse_model_output(text)
        logger.info(
            f"Gemini draft for ticket {ticket.id}: intent={result.intent} "
            f"urgency={result.urgency.value} confidence={result.confidence}"
        )
        return result

    async def _generate_text(self, system_instruction: str, prompt: str) -> str:
        genai.configure(api_key=self.api_key)
        model = genai.GenerativeModel(self.model_name, system_instruction=system_instruction)

        response = await asyncio.to_thread(
            model.generate_content,
            prompt,
            generation_config=genai.GenerationConfig(temperature=self.temperature),
            request_options={"timeout": self.timeout_seconds},
        )

        # Check if response was blocked
        if not response.candidates or not response.candidates[0].content.parts:
            candidate = response.candidates[0] if response.candidates else None
            finish_reason = candidate.finish_reason if candidate else "unknown"
            raise DraftingError(f"Response blocked. Finish reason: {finish_reason}", reason="blocked")

        return response.text
