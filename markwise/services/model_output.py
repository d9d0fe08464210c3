"""
Helpers for turning model replies into JSON objects.
"""
import json
import logging
import math

from markwise.errors import ParseError

logger = logging.getLogger(__name__)


def strip_code_fences(response_text: str) -> str:
    """Remove markdown code fences (```json ... ```) around a model reply."""
    text = (response_text or "").strip()
    if text.startswith("```"):
        lines = text.split('\n')
        lines = [l for l in lines if not l.strip().startswith('```')]
        text = '\n'.join(lines)
    elif "```" in text:
        text = text.replace("```json", "").replace("```", "")
    return text.strip()


def parse_json_object(response_text: str, error_message: str) -> dict:
    """
    Parse a model reply that must be a single JSON object.

    Raises ParseError(error_message) otherwise. The raw reply is logged
    but never put into the error, so it does not reach the caller.
    """
    try:
        parsed = json.loads(strip_code_fences(response_text))
    except (TypeError, ValueError):
        logger.error("Model returned non-JSON response: %s", (response_text or "")[:2000])
        raise ParseError(error_message)

    if not isinstance(parsed, dict):
        logger.error("Model returned JSON that is not an object: %s", (response_text or "")[:2000])
        raise ParseError(error_message)
    return parsed


def to_unit_interval(value):
    """Coerce a score to a float in [0, 1]; None stays None."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return min(max(number, 0.0), 1.0)


def clamp_marks(marks, max_marks):
    """Clamp awarded marks to [0, max_marks]."""
    return min(max(float(marks), 0.0), float(max_marks))
