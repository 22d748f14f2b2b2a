"""
Locate JSON inside free-form model output.

Models wrap JSON in markdown fences, prefix it with prose, or trail it with
commentary. These helpers try a fenced block first and then scan for the
first balanced bracket span, ignoring brackets inside string literals.
"""

import json
import re
from typing import Any, Optional

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def _balanced_spans(text: str, opener: str, closer: str):
    """Yield every balanced opener..closer span, outermost first."""
    start = text.find(opener)
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == opener:
                depth += 1
            elif char == closer:
                depth -= 1
                if depth == 0:
                    yield text[start:index + 1]
                    break
        start = text.find(opener, start + 1)


def _extract(text: str, expected: type, opener: str, closer: str) -> Optional[Any]:
    if not text:
        return None

    for block in _FENCE_PATTERN.findall(text):
        try:
            value = json.loads(block.strip())
        except ValueError:
            continue
        if isinstance(value, expected):
            return value

    for span in _balanced_spans(text, opener, closer):
        try:
            value = json.loads(span)
        except ValueError:
            continue
        if isinstance(value, expected):
            return value
    return None


def extract_json_array(text: str) -> Optional[list]:
    """First JSON array found in text, or None."""
    return _extract(text, list, "[", "]")


def extract_json_object(text: str) -> Optional[dict]:
    """First JSON object found in text, or None."""
    return _extract(text, dict, "{", "}")
