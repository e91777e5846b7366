from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from agent.intent_normalizer import extract_platforms as _extract_platform_names
from agent.types import OutputType, parse_output_type


logger = logging.getLogger("dialogue-backend.prompt_expander")

PHRASE_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    ("make it pop", "enhance the visual design and color contrast"),
    ("make it sound better", "refine the wording and improve tone"),
    ("do that again", "repeat the previous action with the same settings"),
    ("start over", "restart the current task or campaign from scratch"),
    ("fix it", "review and correct any errors or inconsistencies"),
    ("help me out", "provide guidance and next steps"),
    ("post it", "publish the generated content to connected platforms"),
    ("send it", "send the generated email or message"),
    ("change the tone", "adjust the tone of voice for this content"),
    ("make it more luxury", "rewrite using luxury-style language and visuals"),
    ("make it more casual", "rewrite using conversational language"),
    ("keep going", "continue generating additional ideas or items"),
    ("what's next", "suggest the next best action based on my data"),
    ("show me again", "retrieve the last generated result or preview"),
    ("do it for linkedin", "repurpose for LinkedIn format and caption style"),
    ("do it for facebook", "repurpose for Facebook format and caption style"),
    ("do it for instagram", "repurpose for Instagram format and caption style"),
    ("do it for gmb", "repurpose for Google My Business format and caption style"),
    ("make it younger", "rewrite targeting a younger demographic"),
    ("make it professional", "rewrite in a professional, polished tone"),
    ("add energy", "make the content more energetic and engaging"),
    ("tone it down", "make the content more subtle and understated"),
    ("clean it up", "refine and polish the content"),
    ("polish it", "refine and improve the overall quality"),
    ("tighten it", "make it more concise and focused"),
)

OUTPUT_TYPE_PHRASES: dict[OutputType, str] = {
    OutputType.POST: "the last generated social post",
    OutputType.EMAIL: "the last generated email draft",
    OutputType.DOCUMENT: "the last generated document",
    OutputType.IMAGE: "the last generated image",
    OutputType.MEETING: "the last scheduled meeting",
    OutputType.REMINDER: "the last created reminder",
}

CLARIFY_SUFFIX = ". If unclear, suggest related actions based on context."

_PRONOUN_PATTERN = re.compile(r"\b(it|that|those|this)\b", re.IGNORECASE)
_REPEAT_PATTERN = re.compile(r"repeat|again")
_FOLLOW_UP_PATTERNS = (
    re.compile(r"\b(again|repeat|more|another|continue|keep going)\b", re.IGNORECASE),
    re.compile(r"\b(that|it|this|those)\b", re.IGNORECASE),
    re.compile(r"\b(also|and|too)\b", re.IGNORECASE),
    re.compile(r"^(yes|yep|yeah|sure|ok|okay|sounds good)", re.IGNORECASE),
)


@dataclass
class ExpansionContext:
    intent: str | None = None
    context: dict[str, Any] = field(default_factory=dict)
    last_output_type: OutputType | str | None = None


def expand_prompt(
    raw_input: str,
    last_context: ExpansionContext | None = None,
    *,
    replacements: tuple[tuple[str, str], ...] = PHRASE_REPLACEMENTS,
) -> str:
    raw = raw_input or ""
    lower = raw.lower().strip()
    expanded = lower

    for phrase, replacement in replacements:
        if phrase in expanded:
            expanded = expanded.replace(phrase, replacement, 1)

    if last_context is not None and last_context.intent and _REPEAT_PATTERN.search(expanded):
        try:
            serialized = json.dumps(last_context.context or {}, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            serialized = "{}"
        expanded += f" using the same intent: {last_context.intent} and context: {serialized}"

    output_type = parse_output_type(last_context.last_output_type) if last_context is not None else None
    if output_type is not None and _PRONOUN_PATTERN.search(expanded):
        expanded = _PRONOUN_PATTERN.sub(OUTPUT_TYPE_PHRASES[output_type], expanded)

    if expanded == lower and len(expanded.split()) <= 3:
        return f"{raw}{CLARIFY_SUFFIX}"

    if expanded != lower:
        logger.debug("prompt_expanded raw=%r expanded=%r", raw, expanded)
    return expanded[:1].upper() + expanded[1:]


def is_follow_up_message(text: str) -> bool:
    return any(pattern.search(text or "") for pattern in _FOLLOW_UP_PATTERNS)


def extract_platforms(text: str) -> list[str]:
    platforms = [name.lower() for name in _extract_platform_names(text)]
    lower = (text or "").lower()
    if re.search(r"\b(twitter|x)\b", lower):
        platforms.append("twitter")
    return platforms
