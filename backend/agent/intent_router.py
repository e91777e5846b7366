from __future__ import annotations

import logging
from typing import Any

from agent.intent_classifier_llm import classify_with_llm
from agent.intent_keywords import DEFAULT_TAXONOMY, IntentTaxonomy, count_matches
from agent.intent_normalizer import extract_context, normalize_message
from agent.types import AgentDomain, ClarificationDirective, IntentResult, resolve_agent
from app.core.config import get_settings


logger = logging.getLogger("dialogue-backend.intent_router")

DIRECT_ROUTE_THRESHOLD = 0.85
SOFT_CLARIFY_THRESHOLD = 0.65
MAX_RULE_CONFIDENCE = 0.95
GENERIC_DOMAIN_CONFIDENCE = 0.7


def _direct_route_threshold() -> float:
    try:
        return float(get_settings().intent_direct_route_threshold)
    except Exception:
        return DIRECT_ROUTE_THRESHOLD


def match_rule_based_intent(
    normalized: str,
    current_agent: AgentDomain | str | None = None,
    *,
    taxonomy: IntentTaxonomy = DEFAULT_TAXONOMY,
) -> IntentResult:
    """Score ``normalized`` against the keyword taxonomy.

    Candidates replace the best match only on strictly higher confidence, so
    ties go to the domain (then intent) declared first. A domain whose
    keywords match at least twice without any intent match yields a generic
    ``general_query`` only while nothing earlier has scored.
    """
    best = IntentResult(
        intent="general_query",
        agent=resolve_agent(current_agent),
        confidence=0.0,
        source="default",
    )
    try:
        for rules in taxonomy.domains:
            keyword_matches = count_matches(normalized, rules.keywords)
            if keyword_matches <= 0:
                continue
            for intent_name, intent_keywords in rules.intents:
                intent_matches = count_matches(normalized, intent_keywords)
                if intent_matches <= 0:
                    continue
                confidence = min(MAX_RULE_CONFIDENCE, (keyword_matches + intent_matches) / 10)
                if confidence > best.confidence:
                    best = IntentResult(intent=intent_name, agent=rules.agent, confidence=confidence)
            if best.confidence == 0 and keyword_matches >= 2:
                best = IntentResult(
                    intent="general_query",
                    agent=rules.agent,
                    confidence=GENERIC_DOMAIN_CONFIDENCE,
                )
        best.context = extract_context(normalized)
    except Exception as exc:
        logger.warning("rule_match_failed err=%s", exc)
        return IntentResult(
            intent="general_query",
            agent=resolve_agent(current_agent),
            confidence=0.0,
            source="default",
        )
    return best


async def route_intent(
    user_message: str,
    *,
    current_agent: AgentDomain | str | None = None,
    session_summary: dict[str, Any] | None = None,
    taxonomy: IntentTaxonomy = DEFAULT_TAXONOMY,
    invoke=None,
) -> IntentResult:
    normalized = normalize_message(user_message)
    rule_result = match_rule_based_intent(normalized, current_agent, taxonomy=taxonomy)
    if rule_result.confidence >= _direct_route_threshold():
        logger.info(
            "intent_routed agent=%s intent=%s confidence=%.2f source=rule",
            rule_result.agent,
            rule_result.intent,
            rule_result.confidence,
        )
        return rule_result

    llm_result = await classify_with_llm(
        user_message,
        current_agent=current_agent,
        session_summary=session_summary,
        invoke=invoke,
    )
    logger.info(
        "intent_routed agent=%s intent=%s confidence=%.2f source=%s rule_confidence=%.2f",
        llm_result.agent,
        llm_result.intent,
        llm_result.confidence,
        llm_result.source,
        rule_result.confidence,
    )
    return llm_result


def needs_clarification(confidence: float) -> ClarificationDirective:
    if confidence >= DIRECT_ROUTE_THRESHOLD:
        return ClarificationDirective.NONE
    if confidence >= SOFT_CLARIFY_THRESHOLD:
        return ClarificationDirective.SOFT
    return ClarificationDirective.HARD
