"""
Parsing helpers for free-form model output and loosely typed rows
"""
import json
import re
from typing import Any

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


def clamp_int(value: float, minimum: int, maximum: int) -> int:
    """Round to the nearest integer and clamp into [minimum, maximum]"""
    return max(minimum, min(maximum, int(round(value))))


def extract_json_object(text: str) -> Any:
    """
    Extract a JSON object from free-form LLM output

    Prefers a fenced code block (```json ... ```); otherwise parses the
    slice from the first "{" to the last "}".

    Raises:
        ValueError: If no JSON object can be located or parsed
            (json.JSONDecodeError is a ValueError subclass)
    """
    trimmed = (text or "").strip()

    fence = _FENCE_PATTERN.search(trimmed)
    if fence and fence.group(1):
        return json.loads(fence.group(1))

    first = trimmed.find("{")
    last = trimmed.rfind("}")
    if first == -1 or last == -1 or last <= first:
        raise ValueError("Model did not return JSON.")

    return json.loads(trimmed[first:last + 1])
