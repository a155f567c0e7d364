"""
Parser for the model's free-text reply.

The reply is untrusted, semi-structured text that is expected to contain
lines like ``PAIR: "EUR/USD"``. Extraction is deliberately flat: one
key/value per line, split on the first colon. Anything that does not fit
is skipped, and every field falls back independently.
"""

import logging
from typing import Dict, Optional

from .models import NOT_VISIBLE, ChartAnalysis, ParsedReply

logger = logging.getLogger(__name__)

FIELDS = ("PAIR", "TIMEFRAME", "TREND", "SIGNAL")

FALLBACKS = {
    "PAIR": NOT_VISIBLE,
    "TIMEFRAME": NOT_VISIBLE,
    "TREND": "Sideways",
    "SIGNAL": "NEUTRAL",
}

# Values the model uses to say "I could not tell"
PLACEHOLDERS = {"", "UNKNOWN", "N/A", "NA", "NONE", "NULL", "NOT VISIBLE"}

KEY_NOISE = " \t*_#->`"
VALUE_NOISE = " \t*_`'"


def extract_fields(text: Optional[str]) -> Dict[str, str]:
    """Extract ``KEY: value`` pairs from ``text``; the first occurrence of a key wins."""
    fields: Dict[str, str] = {}
    if not text:
        return fields

    for line in text.strip().splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip(KEY_NOISE).upper()
        value = value.replace('"', "").strip(VALUE_NOISE)
        if key and value and key not in fields:
            fields[key] = value
    return fields


def normalize_signal(value: str) -> str:
    signal = value.upper()
    if "UP" in signal or "BUY" in signal or "BULL" in signal:
        return "UP"
    if "DOWN" in signal or "SELL" in signal or "BEAR" in signal:
        return "DOWN"
    return "NEUTRAL"


def normalize_trend(value: str) -> str:
    trend = value.upper()
    if "BULL" in trend or "UP" in trend or "RISING" in trend:
        return "Bullish"
    if "BEAR" in trend or "DOWN" in trend or "FALLING" in trend:
        return "Bearish"
    return "Sideways"


def _is_placeholder(value: Optional[str]) -> bool:
    return value is None or value.strip().upper() in PLACEHOLDERS


def parse_analysis(text: Optional[str]) -> ParsedReply:
    """Turn a model reply into the four-field analysis plus parse diagnostics."""
    fields = extract_fields(text)
    resolved: Dict[str, str] = {}
    fallback_fields = []

    for field in FIELDS:
        value = fields.get(field)
        if _is_placeholder(value):
            resolved[field] = FALLBACKS[field]
            fallback_fields.append(field)
        elif field == "SIGNAL":
            resolved[field] = normalize_signal(value)
        elif field == "TREND":
            resolved[field] = normalize_trend(value)
        else:
            resolved[field] = value

    if fallback_fields:
        logger.info("Fields not found in model reply, using fallbacks: %s", ", ".join(fallback_fields))

    return ParsedReply(
        analysis=ChartAnalysis(**resolved),
        fields=fields,
        fallback_fields=fallback_fields,
    )
