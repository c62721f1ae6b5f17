"""Locate and validate JSON payloads in model output."""

import json
import re
from typing import Any

from pydantic import TypeAdapter, ValidationError

from knowledge_capture.core.errors import InvalidResponseError, MalformedResponseError

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")


def fix_json(text: str) -> str:
    """Try to fix common JSON issues."""
    # Remove trailing commas before } or ]
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def extract_json(text: str) -> str:
    """Extract JSON from a markdown code block or surrounding prose."""
    text = text.strip()

    # Strategy 1: fenced code block
    match = _FENCE_RE.search(text)
    if match:
        return fix_json(match.group(1).strip())

    # Strategy 2: first object or array that decodes, earliest position wins
    text = fix_json(text)
    decoder = json.JSONDecoder()
    for index, char in enumerate(text):
        if char not in "{[":
            continue
        try:
            _, end = decoder.raw_decode(text, index)
        except json.JSONDecodeError:
            continue
        return text[index:end]

    # Strategy 3: return as is (last resort)
    return text


def parse_payload(text: str, schema: Any) -> Any:
    """Parse model output into ``schema``.

    Raises:
        MalformedResponseError: the text holds no decodable JSON.
        InvalidResponseError: the JSON does not validate against ``schema``.
    """
    json_text = extract_json(text or "")
    try:
        data = json.loads(json_text)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Model returned invalid JSON: {e}") from e

    try:
        return TypeAdapter(schema).validate_python(data)
    except ValidationError as e:
        raise InvalidResponseError(
            f"Model response failed validation: {e.error_count()} error(s)"
        ) from e
