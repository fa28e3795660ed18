"""
Sentiment Normalization Pipeline - Turns a raw provider payload into a snapshot.

The provider's payload shape is not contractually fixed. It may be:
- a list of records at the root
- a dict with the records under ``data``/``result``/``records``/``list``/``items``
- any of the above, JSON-encoded once or twice as a string

This pipeline:
1. Unwraps the payload with an ordered chain of shape strategies
2. Matches records against the requested token and metric code
3. Reduces the matching values into the three metric groups
"""

import json
import logging
import math
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from core.exceptions import MalformedResponseError

from .models import (
    COMMUNITY_METRICS,
    SENTIMENT_METRICS,
    SIGNAL_METRICS,
    CommunityActivity,
    EnhancedSentiment,
    SentimentScores,
    SentimentSignals,
    SentimentWindow,
)


logger = logging.getLogger(__name__)


# Keys probed, in order, when the records sit inside a dict
CONTAINER_KEYS: Tuple[str, ...] = ("data", "result", "results", "payload")
RECORD_LIST_KEYS: Tuple[str, ...] = ("records", "list", "items")

# Record field aliases
CODE_KEYS: Tuple[str, ...] = ("endpoint", "endpointCode", "endpoint_code", "code", "metric")
TOKEN_KEYS: Tuple[str, ...] = ("token", "symbol", "coin", "asset")
VALUE_KEYS: Tuple[str, ...] = ("value", "val", "metricValue", "metric_value", "data")

# Provider reports these on a 0-100 scale
PERCENT_CODES = frozenset(SENTIMENT_METRICS)

Strategy = Callable[[Any, int], Optional[List[Any]]]


class SentimentPipeline:
    """
    Pipeline for unwrapping and normalizing provider payloads.

    Stateless; one instance can serve concurrent requests.
    """

    # Bound on string decodes plus dict nesting levels
    MAX_DEPTH = 4

    def __init__(self, max_depth: Optional[int] = None) -> None:
        self.max_depth = max_depth or self.MAX_DEPTH
        self._strategies: List[Tuple[str, Strategy]] = [
            ("decode_json_string", self._decode_json_string),
            ("array_at_root", self._array_at_root),
            ("nested_records", self._nested_records),
            ("first_array_field", self._first_array_field),
        ]

    # ─────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────

    def unwrap(self, body: Any, source_name: str = "") -> List[Dict[str, Any]]:
        """
        Locate the record list inside a payload.

        Raises:
            MalformedResponseError: no strategy matched
        """
        records = self._apply(body, 0)
        if records is None:
            raise MalformedResponseError(
                "No record list found in provider payload",
                source_name=source_name,
                raw_data=_preview(body),
            )
        return [r for r in records if isinstance(r, dict)]

    def reduce(
        self,
        records: Sequence[Dict[str, Any]],
        token: str,
    ) -> Tuple[CommunityActivity, SentimentScores, SentimentSignals]:
        """
        Reduce records for ``token`` into the three metric groups.

        Last write wins per metric code. Missing codes stay 0.
        """
        values = self.collect_values(records, token)

        community = CommunityActivity(**{
            name: values.get(code, 0.0) for code, name in COMMUNITY_METRICS.items()
        })
        sentiment = SentimentScores(**{
            name: values.get(code, 0.0) for code, name in SENTIMENT_METRICS.items()
        })
        signals = SentimentSignals(**{
            name: values.get(code, 0.0) for code, name in SIGNAL_METRICS.items()
        })
        return community, sentiment, signals

    def collect_values(
        self,
        records: Sequence[Dict[str, Any]],
        token: str,
    ) -> Dict[str, float]:
        """Map metric code to value for the records that match ``token``."""
        wanted = token.strip().upper()
        values: Dict[str, float] = {}

        for record in records:
            code = _first_present(record, CODE_KEYS)
            if not isinstance(code, str):
                continue
            code = code.strip().upper()
            if code not in COMMUNITY_METRICS and code not in PERCENT_CODES and code not in SIGNAL_METRICS:
                continue
            if not _token_matches(record, wanted):
                continue

            value = _numeric(_first_present(record, VALUE_KEYS))
            if value is None:
                continue
            if code in PERCENT_CODES:
                value = value / 100.0
            values[code] = value

        return values

    def build_snapshot(
        self,
        body: Any,
        token: str,
        window: SentimentWindow,
        timestamp: int,
        source_name: str = "",
    ) -> EnhancedSentiment:
        """Unwrap, reduce and assemble. Emptiness is left to the caller."""
        records = self.unwrap(body, source_name=source_name)
        community, sentiment, signals = self.reduce(records, token)
        return EnhancedSentiment(
            token=token.strip().upper(),
            window=window,
            community=community,
            sentiment=sentiment,
            signals=signals,
            timestamp=timestamp,
        )

    # ─────────────────────────────────────────────────────────────
    # Shape strategies
    # ─────────────────────────────────────────────────────────────

    def _apply(self, body: Any, depth: int) -> Optional[List[Any]]:
        if depth > self.max_depth:
            return None
        for name, strategy in self._strategies:
            result = strategy(body, depth)
            if result is not None:
                logger.debug(f"Payload matched strategy '{name}' at depth {depth}")
                return result
        return None

    def _decode_json_string(self, body: Any, depth: int) -> Optional[List[Any]]:
        if not isinstance(body, (str, bytes)):
            return None
        try:
            decoded = json.loads(body)
        except (ValueError, TypeError):
            return None
        return self._apply(decoded, depth + 1)

    def _array_at_root(self, body: Any, depth: int) -> Optional[List[Any]]:
        return body if isinstance(body, list) else None

    def _nested_records(self, body: Any, depth: int) -> Optional[List[Any]]:
        if not isinstance(body, dict):
            return None
        for key in CONTAINER_KEYS + RECORD_LIST_KEYS:
            if key not in body:
                continue
            value = body[key]
            if isinstance(value, list):
                return value
            if isinstance(value, (str, dict)):
                found = self._apply(value, depth + 1)
                if found is not None:
                    return found
        return None

    def _first_array_field(self, body: Any, depth: int) -> Optional[List[Any]]:
        if not isinstance(body, dict):
            return None
        for value in body.values():
            if isinstance(value, list):
                return value
        return None


# ─────────────────────────────────────────────────────────────
# Record helpers
# ─────────────────────────────────────────────────────────────

def _first_present(record: Dict[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


def _token_matches(record: Dict[str, Any], wanted: str) -> bool:
    """Records without a token field are accepted."""
    value = _first_present(record, TOKEN_KEYS)
    if value is None:
        return True
    if isinstance(value, (list, tuple)):
        return any(str(v).strip().upper() == wanted for v in value)
    return str(value).strip().upper() == wanted


def _numeric(value: Any) -> Optional[float]:
    """Float value of a scalar or of the latest point of a series."""
    if isinstance(value, list):
        if not value:
            return None
        last = value[-1]
        if isinstance(last, dict):
            last = _first_present(last, VALUE_KEYS)
        return _numeric(last)
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _preview(body: Any) -> str:
    if isinstance(body, str):
        return body
    try:
        return json.dumps(body, default=str)
    except (TypeError, ValueError):
        return repr(body)
