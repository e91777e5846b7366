from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import httpx

from agent.cancellation import CancellationToken, run_cancellable
from agent.pipeline_error_codes import ConfigurationError, ToolInvocationError
from app.core.config import get_settings


OPENAI_CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"
GEMINI_GENERATE_CONTENT_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent?key={api_key}"

logger = logging.getLogger("dialogue-backend.llm_client")


@dataclass
class LLMRequest:
    prompt: str | None = None
    messages: list[dict[str, str]] | None = None
    schema: dict[str, Any] | None = None
    prior_context: dict[str, Any] = field(default_factory=dict)
    system_prompt: str | None = None


@dataclass
class LLMResponse:
    text: str
    structured_result: dict[str, Any] | None = None
    provider: str | None = None
    model: str | None = None


InvokeFn = Callable[[LLMRequest, CancellationToken | None], Awaitable[LLMResponse]]


def provider_attempts(
    primary_provider: str | None,
    primary_model: str | None,
    fallback_provider: str | None = None,
    fallback_model: str | None = None,
) -> list[tuple[str, str]]:
    attempts: list[tuple[str, str]] = []
    provider = _normalize_provider(primary_provider or "openai")
    if primary_model:
        attempts.append((provider, primary_model))
    fb_provider = _normalize_provider(fallback_provider or "")
    fb_model = (fallback_model or "").strip()
    if fb_provider and fb_model and (fb_provider, fb_model) not in attempts:
        attempts.append((fb_provider, fb_model))
    return attempts


def _normalize_provider(value: str) -> str:
    token = (value or "").strip().lower()
    if token == "google":
        return "gemini"
    return token


def _chat_attempts() -> list[tuple[str, str]]:
    settings = get_settings()
    return provider_attempts(
        settings.llm_chat_provider,
        settings.llm_chat_model,
        settings.llm_chat_fallback_provider,
        settings.llm_chat_fallback_model,
    )


def _system_prompt(request: LLMRequest) -> str:
    parts: list[str] = []
    if request.system_prompt:
        parts.append(request.system_prompt.strip())
    if request.schema:
        parts.append(
            "Respond with a single JSON object matching this JSON schema:\n"
            + json.dumps(request.schema, ensure_ascii=False)
        )
    if request.prior_context:
        parts.append("Current session context: " + json.dumps(request.prior_context, ensure_ascii=False, default=str))
    return "\n\n".join(parts)


def _conversation(request: LLMRequest) -> list[dict[str, str]]:
    messages = [
        {"role": str(item.get("role") or "user"), "content": str(item.get("content") or "")}
        for item in (request.messages or [])
        if isinstance(item, dict)
    ]
    if request.prompt:
        messages.append({"role": "user", "content": request.prompt})
    return messages


def extract_json_object(text: str) -> dict | None:
    candidate = (text or "").strip()
    try:
        parsed = json.loads(candidate)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass
    match = re.search(r"\{.*\}", candidate, flags=re.DOTALL)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        return None
    return None


async def invoke_llm(
    request: LLMRequest,
    cancel_token: CancellationToken | None = None,
    *,
    attempts: list[tuple[str, str]] | None = None,
) -> LLMResponse:
    """Call the configured providers in order and return the first usable answer.

    Raises ``TurnCancelledError`` when ``cancel_token`` fires, ``ConfigurationError``
    when no provider has credentials and ``ToolInvocationError`` otherwise.
    """
    if not request.prompt and not request.messages:
        raise ConfigurationError("llm_request_requires_prompt_or_messages")
    settings = get_settings()
    plan = attempts if attempts is not None else _chat_attempts()
    if not plan:
        raise ConfigurationError("llm_provider_not_configured")

    system_prompt = _system_prompt(request)
    messages = _conversation(request)
    errors: list[str] = []
    missing_keys = 0
    for provider, model in plan:
        if provider == "openai" and not settings.openai_api_key:
            errors.append("openai_api_key_missing")
            missing_keys += 1
            continue
        if provider == "gemini" and not settings.google_api_key:
            errors.append("google_api_key_missing")
            missing_keys += 1
            continue

        content, err = await run_cancellable(
            _request_with_provider(
                provider=provider,
                model=model,
                system_prompt=system_prompt,
                messages=messages,
                json_mode=bool(request.schema),
                openai_api_key=settings.openai_api_key,
                google_api_key=settings.google_api_key,
                timeout=settings.llm_request_timeout_seconds,
            ),
            cancel_token,
        )
        if err:
            logger.warning("llm_attempt_failed provider=%s model=%s err=%s", provider, model, err)
            errors.append(f"{provider}:{err}")
            continue
        structured = None
        if request.schema:
            structured = extract_json_object(content or "")
            if structured is None:
                errors.append(f"{provider}:invalid_json")
                continue
        return LLMResponse(text=content or "", structured_result=structured, provider=provider, model=model)

    if missing_keys == len(plan):
        raise ConfigurationError("|".join(errors))
    raise ToolInvocationError("|".join(errors) if errors else "llm_unknown_error")


async def _request_with_provider(
    *,
    provider: str,
    model: str,
    system_prompt: str,
    messages: list[dict[str, str]],
    json_mode: bool,
    openai_api_key: str | None,
    google_api_key: str | None,
    timeout: float = 30.0,
) -> tuple[str | None, str | None]:
    if provider == "openai":
        request_payload: dict[str, Any] = {
            "model": model,
            "temperature": 0 if json_mode else 0.7,
            "messages": ([{"role": "system", "content": system_prompt}] if system_prompt else []) + messages,
        }
        if json_mode:
            request_payload["response_format"] = {"type": "json_object"}
        headers = {"Authorization": f"Bearer {openai_api_key}", "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(OPENAI_CHAT_COMPLETIONS_URL, headers=headers, json=request_payload)
            if response.status_code >= 400:
                return None, f"http_{response.status_code}"
            data = response.json()
            content = data.get("choices", [{}])[0].get("message", {}).get("content", "").strip()
            if not content:
                return None, "empty_content"
            return content, None
        except Exception as exc:  # pragma: no cover
            return None, f"error:{exc.__class__.__name__}"

    if provider == "gemini":
        url = GEMINI_GENERATE_CONTENT_URL.format(model=model, api_key=google_api_key)
        contents = [
            {
                "role": "model" if item["role"] == "assistant" else "user",
                "parts": [{"text": item["content"]}],
            }
            for item in messages
        ]
        request_payload = {"contents": contents, "generationConfig": {"temperature": 0 if json_mode else 0.7}}
        if system_prompt:
            request_payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        if json_mode:
            request_payload["generationConfig"]["responseMimeType"] = "application/json"
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(url, json=request_payload, headers={"Content-Type": "application/json"})
            if response.status_code >= 400:
                return None, f"http_{response.status_code}"
            data = response.json()
            parts = (
                data.get("candidates", [{}])[0]
                .get("content", {})
                .get("parts", [])
            )
            content = "".join(part.get("text", "") for part in parts if isinstance(part, dict)).strip()
            if not content:
                return None, "empty_content"
            return content, None
        except Exception as exc:  # pragma: no cover
            return None, f"error:{exc.__class__.__name__}"

    return None, "unsupported_provider"
