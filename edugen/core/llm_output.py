"""
Lenient JSON parsing for model output.

Local models often wrap JSON in prose or markdown fences and leave
trailing commas. Parsing tries strict JSON first and applies narrow
repairs only when that fails.

Dependencies: json, re (stdlib)
System role: Structured output extraction for job handlers
"""

import json
import re
from typing import Any

from edugen.core.exceptions import OutputParsingError

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def parse_json_output(raw: str) -> Any:
    """
    Parse JSON from model output with minimal recovery.

    Args:
        raw: Generated text

    Returns:
        Parsed JSON value

    Raises:
        OutputParsingError: When no JSON value can be recovered
    """
    candidates = [raw.strip()]
    fenced = _FENCE_RE.search(raw)
    if fenced:
        candidates.append(fenced.group(1).strip())
    block = _extract_json_block(raw)
    if block:
        candidates.append(block)

    last_error: json.JSONDecodeError | None = None
    for candidate in candidates:
        for text in (candidate, _TRAILING_COMMA_RE.sub(r"\1", candidate)):
            try:
                return json.loads(text)
            except json.JSONDecodeError as e:
                last_error = e

    raise OutputParsingError(
        "Model output is not valid JSON",
        {"error": str(last_error) if last_error else "empty output", "preview": raw[:200]},
    )


def parse_json_list(raw: str, key: str | None = None) -> list[Any]:
    """
    Parse a JSON array, also accepting an object that wraps one.

    Args:
        raw: Generated text
        key: Wrapper key to look under when the top level is an object

    Returns:
        list: Parsed items

    Raises:
        OutputParsingError: When no list can be recovered
    """
    value = parse_json_output(raw)
    if isinstance(value, dict) and key and isinstance(value.get(key), list):
        value = value[key]
    if not isinstance(value, list):
        raise OutputParsingError(
            "Model output is not a JSON list",
            {"type": type(value).__name__, "preview": raw[:200]},
        )
    return value


def _extract_json_block(raw: str) -> str | None:
    """Locate the first balanced JSON object/array, honouring string escapes."""
    start_index: int | None = None
    depth = 0
    in_string = False
    escape = False

    for index, char in enumerate(raw):
        if start_index is None:
            if char in "{[":
                start_index = index
                depth = 1
            continue

        if in_string:
            if escape:
                escape = False
            elif char == "\\":
                escape = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in "{[":
            depth += 1
        elif char in "}]":
            depth -= 1
            if depth == 0:
                return raw[start_index : index + 1]

    return None
