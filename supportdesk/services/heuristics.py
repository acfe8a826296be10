"""
Heuristic Analyzer - deterministic fallback drafting

Derives urgency, sentiment, confidence, intent and a templated draft
from ticket fields alone. Pure and side-effect free; every public
function tolerates missing/unknown inputs and never raises, so the
pipeline always has a structured result to fall back on.
"""
import re
from typing import Optional

from supportdesk.models.schemas import DraftResult, DraftSource, Persona, Urgency
from supportdesk.utils.parsing import clamp_int

URGENT_PATTERN = re.compile(r"\b(urgent|asap|immediately|now|today)\b")
NEAR_TERM_PATTERN = re.compile(r"\b(soon|tomorrow|this week)\b")

POSITIVE_PATTERN = re.compile(r"\b(thank\w*|love|great|amazing|awesome)\b")
FRUSTRATION_PATTERN = re.compile(r"\b(frustrat\w*|angry|unacceptable|terrible|worst|hate)\b")
REFUND_FRAUD_PATTERN = re.compile(r"\b(refund\w*|chargeback\w*|fraud\w*|scam\w*)\b")
POLITE_HELP_PATTERN = re.compile(r"\b(please|help)\b")

NEUTRAL_SENTIMENT = 6

INTENT_BY_CATEGORY = {
    "refund": "Refund Request",
    "shipping": "Shipping Issue",
    "product": "Product Issue",
    "billing": "Billing Issue",
}

BODY_BY_CATEGORY = {
    "refund": (
        "Thanks for reaching out. I'm sorry the item didn't arrive in the expected condition.\n\n"
        "Could you please confirm your order number and attach any photos of the issue? "
        "Once confirmed, we can proceed with a refund or a replacement, whichever you prefer."
    ),
    "shipping": (
        "Thanks for reaching out. I'm sorry for the delay.\n\n"
        "Please share your order number, and I'll check the latest carrier scan and provide "
        "an updated delivery estimate. If the shipment is stuck, we can arrange a replacement "
        "or alternative delivery option."
    ),
    "product": (
        "Thanks for reaching out.\n\n"
        "Could you share your order number and a quick description (or photo) of the issue? "
        "We'll help troubleshoot and, if needed, arrange a repair or replacement under warranty."
    ),
    "billing": (
        "Thanks for flagging this.\n\n"
        "Please confirm the order number and the last 4 digits of the card used. If there's a "
        "duplicate charge, we'll void the extra authorization or process a refund right away."
    ),
    "general": (
        "Thanks for reaching out.\n\n"
        "Can you share a bit more detail about what you need help with so we can assist quickly?"
    ),
}

OPENER_BY_PERSONA = {
    Persona.PROFESSIONAL: "Hello {name},",
    Persona.FRIENDLY: "Hi {name}!",
    Persona.CONCISE: "Hi {name},",
}

CLOSER_BY_PERSONA = {
    Persona.PROFESSIONAL: "Best regards,\nSupport Team",
    Persona.FRIENDLY: "Thanks again,\nSupport Team",
    Persona.CONCISE: "Regards,\nSupport Team",
}


def _text(value: object) -> str:
    # Enum members and None both normalize to plain lowercase text
    if value is None:
        return ""
    return str(getattr(value, "value", value)).strip()


def infer_urgency(priority: object, content: object) -> Urgency:
    """High/medium/low from priority plus time-pressure keywords."""
    level = _text(priority).lower()
    text = _text(content).lower()

    if level == "high" or URGENT_PATTERN.search(text):
        return Urgency.HIGH
    if level == "medium" or NEAR_TERM_PATTERN.search(text):
        return Urgency.MEDIUM
    return Urgency.LOW


def infer_sentiment(content: object) -> int:
    """
    Sentiment on a 1-10 scale, starting from a neutral 6.

    Polite/help markers lower the score slightly: in support mail they
    tend to come from frustrated-but-polite customers.
    """
    text = _text(content).lower()
    score = NEUTRAL_SENTIMENT

    if POSITIVE_PATTERN.search(text):
        score += 2
    if FRUSTRATION_PATTERN.search(text):
        score -= 3
    if REFUND_FRAUD_PATTERN.search(text):
        score -= 2
    if POLITE_HELP_PATTERN.search(text):
        score -= 1

    return clamp_int(score, 1, 10)


def infer_confidence(sentiment: int) -> int:
    """
    Placeholder confidence proxy: 65 + 3 per sentiment point, in [0, 100].

    Not a calibrated probability.
    """
    return clamp_int(65 + sentiment * 3, 0, 100)


def infer_intent(category: object, subject: object) -> str:
    label = INTENT_BY_CATEGORY.get(_text(category).lower())
    if label:
        return label

    topic = _text(subject)
    intent = f"General Inquiry: {topic}" if topic else "General Inquiry"
    return intent[:200]


def _persona(value: object) -> Persona:
    try:
        return Persona(_text(value).lower())
    except ValueError:
        return Persona.PROFESSIONAL


def build_draft(
    category: object,
    persona: object = Persona.PROFESSIONAL,
    customer_name: Optional[str] = None
) -> str:
    """
    Persona opener + category body + persona sign-off.

    Persona only changes greeting and sign-off; the body depends on the
    category alone.
    """
    tone = _persona(persona)
    name_parts = _text(customer_name).split()
    first_name = name_parts[0] if name_parts else "there"

    opener = OPENER_BY_PERSONA[tone].format(name=first_name)
    body = BODY_BY_CATEGORY.get(_text(category).lower(), BODY_BY_CATEGORY["general"])
    closer = CLOSER_BY_PERSONA[tone]

    return f"{opener}\n\n{body}\n\n{closer}"


def analyze_ticket(
    priority: object,
    content: object,
    category: object,
    subject: object,
    *,
    persona: object = Persona.PROFESSIONAL,
    customer_name: Optional[str] = None
) -> DraftResult:
    """
    Full heuristic analysis of a ticket.

    Args:
        priority: Ticket priority (low/medium/high)
        content: Ticket body
        category: Ticket category (refund/shipping/product/billing/general)
        subject: Ticket subject
        persona: Reply persona for the draft greeting/sign-off
        customer_name: Customer display name (first word is used)

    Returns:
        DraftResult with source=heuristic
    """
    sentiment = infer_sentiment(content)

    return DraftResult(
        intent=infer_intent(category, subject),
        urgency=infer_urgency(priority, content),
        confidence=infer_confidence(sentiment),
        sentiment=sentiment,
        draft_response=build_draft(category, persona, customer_name),
        source=DraftSource.HEURISTIC,
    )
