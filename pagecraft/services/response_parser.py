"""
Turn raw model output into a GeneratedCode.

Models are asked for a bare JSON object but regularly wrap it in a code
fence, add prose around it, or emit strings that are not valid JSON. Parsing
goes from strict to lenient:

1. the object inside a leading ```json fence
2. the widest {...} span of the reply
3. per-field regex extraction when the span does not parse
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

from pagecraft.schemas import GeneratedCode

logger = logging.getLogger(__name__)

CODE_FIELDS = ("html", "css", "js")

FORMAT_ISSUE_EXPLANATION = "I generated code for you, but there was an issue with the response format."
DEFAULT_EXPLANATION = "I updated your app."
EMPTY_RESPONSE_EXPLANATION = "The assistant returned an empty response. Please try again."

_CODE_BLOCK = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def _decode_string_literal(raw: str) -> str:
    try:
        return json.loads(f'"{raw}"', strict=False)
    except ValueError:
        return raw


def extract_field(text: str, field_name: str) -> Optional[str]:
    """Pull one string field out of malformed JSON.

    Tries a regular ``"field": "..."`` literal first, then a backtick-quoted
    value directly after ``"field":``. An empty literal counts as a match.
    """
    key = r'"' + re.escape(field_name) + r'"\s*:\s*'
    match = re.search(key + r'"((?:[^"\\]|\\.)*)"', text)
    if match is not None:
        return _decode_string_literal(match.group(1))

    backtick_match = re.search(key + r"`([^`]*)`", text)
    if backtick_match is not None:
        return backtick_match.group(1)

    return None


def _from_payload(payload: Dict[str, Any]) -> GeneratedCode:
    fields = {name: payload[name] for name in CODE_FIELDS if isinstance(payload.get(name), str)}
    explanation = payload.get("explanation")
    if not isinstance(explanation, str) or not explanation.strip():
        explanation = DEFAULT_EXPLANATION
    return GeneratedCode(explanation=explanation, **fields)


def _from_fragments(text: str) -> GeneratedCode:
    fields = {name: extract_field(text, name) for name in CODE_FIELDS}
    explanation = extract_field(text, "explanation") or FORMAT_ISSUE_EXPLANATION
    return GeneratedCode(explanation=explanation, **fields)


def parse_model_response(text: str) -> GeneratedCode:
    if not text or not text.strip():
        return GeneratedCode(explanation=EMPTY_RESPONSE_EXPLANATION)

    candidate = text.strip()
    if candidate.startswith("```"):
        block = _CODE_BLOCK.search(candidate)
        if block:
            candidate = block.group(1)

    match = _JSON_OBJECT.search(candidate)
    if not match:
        return GeneratedCode(explanation=text)

    try:
        payload = json.loads(match.group(0), strict=False)
    except ValueError as exc:
        logger.warning("JSON parsing failed (%s); attempted to parse: %s...", exc, match.group(0)[:200])
        return _from_fragments(text)

    if not isinstance(payload, dict):
        return _from_fragments(text)
    return _from_payload(payload)
