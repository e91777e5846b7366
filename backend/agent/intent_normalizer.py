from __future__ import annotations

import re
from typing import Any, Iterable

from agent.intent_keywords import (
    FILLER_WORDS,
    PLATFORM_KEYWORDS,
    TIMEFRAME_KEYWORDS,
    TONE_KEYWORDS,
    contains_any,
)


_TOPIC_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("topic", re.compile(r"\babout\s+(\w+(?:\s+\w+){0,3})", re.IGNORECASE)),
    ("target", re.compile(r"\bfor\s+(\w+(?:\s+\w+){0,2})", re.IGNORECASE)),
)


def _filler_pattern(filler: str) -> re.Pattern[str]:
    words = [re.escape(part) for part in filler.split()]
    return re.compile(r"\b" + r"\s+".join(words) + r"\b", re.IGNORECASE)


def normalize_message(message: str, filler_words: Iterable[str] = FILLER_WORDS) -> str:
    """Lower-case the message and strip filler words.

    Removal runs to a fixed point so that dropping one filler can never expose
    another one on a second pass (``"can um you"`` -> ``""``).
    """
    patterns = [_filler_pattern(filler) for filler in filler_words if filler.strip()]
    normalized = " ".join((message or "").lower().split())
    while True:
        current = normalized
        for pattern in patterns:
            current = pattern.sub(" ", current)
        current = " ".join(current.split())
        if current == normalized:
            return current
        normalized = current


def _mentions(text: str, keyword: str) -> bool:
    # Short aliases ("ig", "fb") only count as whole words.
    if len(keyword) <= 3:
        return re.search(r"\b" + re.escape(keyword) + r"\b", text) is not None
    return keyword in text


def extract_platforms(message: str) -> list[str]:
    lower = (message or "").lower()
    return [
        name
        for name, keywords in PLATFORM_KEYWORDS
        if any(_mentions(lower, keyword) for keyword in keywords)
    ]


def extract_context(message: str) -> dict[str, Any]:
    lower = (message or "").lower()
    context: dict[str, Any] = {}

    platforms = extract_platforms(lower)
    if platforms:
        context["platforms"] = platforms

    for tone, keywords in TONE_KEYWORDS:
        if contains_any(lower, keywords):
            context["tone"] = tone
            break

    for keyword, timeframe in TIMEFRAME_KEYWORDS:
        if keyword in lower:
            context["timeframe"] = timeframe
            break
    else:
        if "daily" in lower:
            context["frequency"] = "daily"

    for key, pattern in _TOPIC_PATTERNS:
        matched = pattern.search(lower)
        if matched:
            context[key] = matched.group(1)
    return context
