"""Extract one JSON object from raw LLM text."""

from __future__ import annotations

import json


class JsonTextError(ValueError):
    """Raised when no JSON object can be extracted."""


def strip_markdown_fence(text: str) -> str:
    """Remove an outer ``` fence only when it wraps the whole text."""
    trimmed = text.strip()
    if not trimmed.startswith("```"):
        return trimmed
    lines = trimmed.split("\n")
    if len(lines) < 2:
        return trimmed
    if not lines[0].strip().startswith("```") or lines[-1].strip() != "```":
        return trimmed
    return "\n".join(lines[1:-1]).strip()


def parse_json_from_text(raw: object) -> object:
    """Parse raw model output into JSON.

    Tries a direct parse, then strips an outer markdown fence, then extracts
    the substring between the first ``{`` and the last ``}``. Never guesses
    structure.

    Args:
        raw: Raw content returned by the provider.

    Returns:
        Parsed JSON value.

    Raises:
        JsonTextError: If no valid JSON can be extracted.
    """
    if not isinstance(raw, str):
        raise JsonTextError("LLM returned non-JSON: input is not a string.")
    text = raw.strip()
    if not text:
        raise JsonTextError("LLM returned non-JSON: empty response.")

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    text = strip_markdown_fence(text)
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(text[start : end + 1])
        except json.JSONDecodeError:
            pass

    raise JsonTextError(
        "LLM returned non-JSON: no valid {...} object could be parsed."
    )
