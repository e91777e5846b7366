from __future__ import annotations

import json
import logging
import math
from typing import Any

from agent.llm_client import LLMRequest, invoke_llm, provider_attempts
from agent.types import AgentDomain, IntentResult, resolve_agent
from app.core.config import get_settings


logger = logging.getLogger("dialogue-backend.intent_classifier_llm")

FALLBACK_CONFIDENCE = 0.3

CLASSIFIER_SYSTEM_PROMPT = """You are an intent classifier for a real estate AI assistant platform.

Classify the user's message into one of these agents:
- executive_assistant (NOVA): scheduling, emails, reminders, organization
- content_agent (SIRIUS): social posts, content creation, marketing
- transaction_coordinator (VEGA): deals, documents, compliance, transactions
- leads_agent (PHOENIX): lead follow-up, calls, pipeline management

Return JSON with this structure:
{
  "intent": "specific_action_name",
  "agent": "agent_key",
  "confidence": 0.0-1.0,
  "context": {
    "topic": "optional_topic",
    "tone": "optional_tone",
    "platforms": ["optional_platforms"],
    "timeframe": "optional_timeframe"
  }
}"""

INTENT_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "intent": {"type": "string"},
        "agent": {"type": "string"},
        "confidence": {"type": "number"},
        "context": {
            "type": "object",
            "properties": {
                "topic": {"type": "string"},
                "tone": {"type": "string"},
                "platforms": {"type": "array", "items": {"type": "string"}},
                "timeframe": {"type": "string"},
            },
        },
    },
    "required": ["intent", "agent", "confidence"],
}


def default_classification(current_agent: AgentDomain | str | None) -> IntentResult:
    return IntentResult(
        intent="general_query",
        agent=resolve_agent(current_agent),
        confidence=FALLBACK_CONFIDENCE,
        context={},
        source="default",
    )


def coerce_classification(payload: object, current_agent: AgentDomain | str | None) -> IntentResult:
    """Map a model answer onto ``IntentResult`` field by field.

    A partially valid answer keeps its valid fields; only the broken ones fall
    back to the defaults.
    """
    data = payload if isinstance(payload, dict) else {}
    intent = str(data.get("intent") or "").strip() or "general_query"
    agent = resolve_agent(data.get("agent"), default=resolve_agent(current_agent))

    confidence = FALLBACK_CONFIDENCE
    raw_confidence = data.get("confidence")
    if raw_confidence is not None and not isinstance(raw_confidence, bool):
        try:
            parsed = float(raw_confidence)
        except (TypeError, ValueError):
            parsed = None
        if parsed is not None and not math.isnan(parsed):
            confidence = max(0.0, min(1.0, parsed))

    context = data.get("context")
    return IntentResult(
        intent=intent,
        agent=agent,
        confidence=confidence,
        context=dict(context) if isinstance(context, dict) else {},
        source="llm",
    )


async def classify_with_llm(
    user_message: str,
    *,
    current_agent: AgentDomain | str | None = None,
    session_summary: dict[str, Any] | None = None,
    invoke=None,
) -> IntentResult:
    settings = get_settings()
    if not settings.llm_classifier_enabled:
        return default_classification(current_agent)

    request = LLMRequest(
        prompt=f'User message: "{user_message}"\n\nClassify this intent.',
        schema=INTENT_RESPONSE_SCHEMA,
        system_prompt=(
            CLASSIFIER_SYSTEM_PROMPT
            + "\n\nCurrent session context: "
            + json.dumps(session_summary or {}, ensure_ascii=False, default=str)
        ),
    )
    try:
        if invoke is not None:
            response = await invoke(request, None)
        else:
            response = await invoke_llm(
                request,
                attempts=provider_attempts(
                    settings.llm_classifier_provider,
                    settings.llm_classifier_model,
                    settings.llm_classifier_fallback_provider,
                    settings.llm_classifier_fallback_model,
                ),
            )
        payload = response.structured_result
        if payload is None:
            raise ValueError("classifier_response_not_structured")
    except Exception as exc:
        logger.warning("intent_classification_failed err=%s:%s", exc.__class__.__name__, exc)
        return default_classification(current_agent)
    return coerce_classification(payload, current_agent)
