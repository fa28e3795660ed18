"""
Risk Analysis - Verdict Extraction.

Models wrap their JSON in prose or markdown fences. The first
balanced ``{...}`` that decodes to an object is taken as the
verdict.
"""

import json
import logging
import re
from typing import Any, Dict, Iterator, Optional

from pydantic import ValidationError

from core.exceptions import MalformedResponseError

from .models import RiskVerdict


logger = logging.getLogger(__name__)


_BARE_KEY = re.compile(r'([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)\s*:')


def iter_json_objects(text: str) -> Iterator[str]:
    """Yield balanced ``{...}`` substrings in order of their opening brace."""
    start = text.find("{")
    while start != -1:
        end = _matching_brace(text, start)
        if end is not None:
            yield text[start:end + 1]
        start = text.find("{", start + 1)


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """First balanced object in ``text`` that decodes to a dict."""
    for candidate in iter_json_objects(text or ""):
        data = _loads_lenient(candidate)
        if isinstance(data, dict):
            return data
    return None


def parse_verdict(raw: str, source_name: str = "") -> RiskVerdict:
    """
    Parse the model's free text into a RiskVerdict.

    Raises:
        MalformedResponseError: no object found, or it fails validation
    """
    data = extract_json_object(raw)
    if data is None:
        raise MalformedResponseError(
            "No JSON object in model response",
            source_name=source_name,
            raw_data=raw,
        )

    try:
        return RiskVerdict.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise MalformedResponseError(
            f"Model verdict failed validation ({fields})",
            source_name=source_name,
            raw_data=raw,
        )


def _matching_brace(text: str, start: int) -> Optional[int]:
    """Index of the brace closing ``text[start]``; string-aware."""
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return None


def _loads_lenient(candidate: str) -> Any:
    """Strict JSON first, then once more with bare keys quoted."""
    try:
        return json.loads(candidate)
    except ValueError:
        pass
    try:
        return json.loads(quote_bare_keys(candidate))
    except ValueError:
        logger.debug(f"Unparseable object candidate: {candidate[:80]!r}")
        return None


def quote_bare_keys(text: str) -> str:
    """Quote ``key:`` names outside string literals; strings are copied as-is."""
    out = []
    segment_start = 0
    i = 0

    while i < len(text):
        if text[i] != '"':
            i += 1
            continue

        out.append(_BARE_KEY.sub(r'\1"\2":', text[segment_start:i]))
        end = _string_end(text, i)
        out.append(text[i:end])
        segment_start = i = end

    out.append(_BARE_KEY.sub(r'\1"\2":', text[segment_start:]))
    return "".join(out)


def _string_end(text: str, start: int) -> int:
    """Index just past the string literal opening at ``text[start]``."""
    escaped = False
    for i in range(start + 1, len(text)):
        ch = text[i]
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == '"':
            return i + 1
    return len(text)
