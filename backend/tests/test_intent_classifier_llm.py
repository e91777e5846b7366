import asyncio
from types import SimpleNamespace

from agent.intent_classifier_llm import FALLBACK_CONFIDENCE, classify_with_llm, coerce_classification
from agent.llm_client import LLMResponse
from agent.pipeline_error_codes import ToolInvocationError
from agent.types import AgentDomain


def _settings(enabled: bool = True):
    return SimpleNamespace(
        llm_classifier_enabled=enabled,
        llm_classifier_provider="openai",
        llm_classifier_model="gpt-4o-mini",
        llm_classifier_fallback_provider=None,
        llm_classifier_fallback_model=None,
    )


def test_coerce_classification_keeps_valid_fields_of_partial_answer():
    result = coerce_classification({"intent": "send_email", "agent": "not_a_domain", "confidence": "high"}, "leads_agent")
    assert result.intent == "send_email"
    assert result.agent == AgentDomain.LEADS_AGENT
    assert result.confidence == FALLBACK_CONFIDENCE
    assert result.context == {}
    assert result.source == "llm"


def test_coerce_classification_clamps_confidence_and_resolves_alias():
    result = coerce_classification({"intent": "create_social_post", "agent": "sirius", "confidence": 3}, None)
    assert result.agent == AgentDomain.CONTENT_AGENT
    assert result.confidence == 1.0
    assert coerce_classification({"confidence": -1}, None).confidence == 0.0
    assert coerce_classification({"confidence": True}, None).confidence == FALLBACK_CONFIDENCE
    assert coerce_classification({"confidence": float("nan")}, None).confidence == FALLBACK_CONFIDENCE


def test_coerce_classification_non_dict_payload():
    result = coerce_classification(["nope"], "vega")
    assert result.intent == "general_query"
    assert result.agent == AgentDomain.TRANSACTION_COORDINATOR


def test_classify_with_llm_returns_default_on_failure(monkeypatch):
    monkeypatch.setattr("agent.intent_classifier_llm.get_settings", lambda: _settings())

    async def _broken(request, token):
        raise ToolInvocationError("openai:http_500")

    result = asyncio.run(classify_with_llm("whatever", current_agent="content_agent", invoke=_broken))
    assert result.intent == "general_query"
    assert result.agent == AgentDomain.CONTENT_AGENT
    assert result.confidence == FALLBACK_CONFIDENCE
    assert result.source == "default"


def test_classify_with_llm_treats_unstructured_answer_as_failure(monkeypatch):
    monkeypatch.setattr("agent.intent_classifier_llm.get_settings", lambda: _settings())

    async def _plain(request, token):
        return LLMResponse(text="I think it is a meeting", structured_result=None)

    result = asyncio.run(classify_with_llm("meet up", invoke=_plain))
    assert result.source == "default"
    assert result.agent == AgentDomain.EXECUTIVE_ASSISTANT


def test_classify_with_llm_disabled_skips_model(monkeypatch):
    monkeypatch.setattr("agent.intent_classifier_llm.get_settings", lambda: _settings(enabled=False))

    async def _fail(request, token):
        raise AssertionError("must not be called")

    result = asyncio.run(classify_with_llm("anything", invoke=_fail))
    assert result.confidence == FALLBACK_CONFIDENCE


def test_classify_with_llm_sends_schema_and_session_summary(monkeypatch):
    monkeypatch.setattr("agent.intent_classifier_llm.get_settings", lambda: _settings())
    captured = {}

    async def _fake(request, token):
        captured["request"] = request
        return LLMResponse(
            text="{}",
            structured_result={"intent": "call_leads", "agent": "leads_agent", "confidence": 0.8, "context": {"tone": "casual"}},
        )

    result = asyncio.run(
        classify_with_llm("ring them", current_agent="copilot", session_summary={"last_intent": "add_lead"}, invoke=_fake)
    )
    request = captured["request"]
    assert request.schema["required"] == ["intent", "agent", "confidence"]
    assert '"last_intent": "add_lead"' in request.system_prompt
    assert result.intent == "call_leads"
    assert result.context == {"tone": "casual"}
