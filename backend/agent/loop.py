from __future__ import annotations

import asyncio
import logging
import random
from typing import Callable, Iterable, Mapping

from agent.action_mapper import consolidate_actions, extract_executable_actions
from agent.cancellation import CancellationToken, TurnCancelledError, run_cancellable
from agent.content_preview import parse_content_preview
from agent.integrations import load_user_integrations
from agent.intent_keywords import DEFAULT_TAXONOMY, IntentTaxonomy
from agent.intent_router import needs_clarification, route_intent
from agent.llm_client import InvokeFn, LLMRequest, LLMResponse, invoke_llm
from agent.pipeline_error_codes import (
    APOLOGY_MESSAGE,
    STOPPED_MESSAGE,
    ConfigurationError,
    PipelineErrorCode,
    ToolInvocationError,
    is_retryable_pipeline_error,
    user_message_for_error,
)
from agent.prompt_expander import ExpansionContext, expand_prompt
from agent.prompt_registry import AGENT_PROMPTS, AgentPrompt, build_system_prompt
from agent.response_composer import Chooser, compose_response, detect_user_tone, format_response
from agent.session_store import (
    SessionContext,
    SessionStore,
    build_session_store,
    new_session,
    output_type_for_intent,
    session_key,
)
from agent.types import (
    Action,
    AgentDomain,
    ClarificationDirective,
    IntentResult,
    OutputType,
    TurnResult,
    TurnStatus,
    resolve_agent,
)


logger = logging.getLogger("dialogue-backend.loop")

CLARIFY_QUESTION = "Can you tell me a bit more about what you'd like me to help with?"
BUSY_MESSAGE = "I'm still working on your last message. Stop it or wait for it to finish first."
HISTORY_WINDOW = 20
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_BACKOFF_MS = 1000

_PREVIEW_OUTPUT_TYPES = {
    "content_post": OutputType.POST,
    "email": OutputType.EMAIL,
    "document": OutputType.DOCUMENT,
}


def _soft_hedge(intent: IntentResult) -> str:
    label = intent.intent.replace("_", " ") if intent.intent != "general_query" else "a general question"
    return f"Just to confirm, I read this as {label}. Let me know if you meant something else."


class ConversationOrchestrator:
    """Runs one conversation turn per session.

    A session (``agent_key`` + ``user_id``) holds at most one in-flight turn;
    its context is read when the turn starts and written once when it ends.
    """

    def __init__(
        self,
        *,
        store: SessionStore | None = None,
        invoke: InvokeFn | None = invoke_llm,
        classifier_invoke: InvokeFn | None = None,
        load_integrations: Callable[[str], Iterable[object]] = load_user_integrations,
        taxonomy: IntentTaxonomy = DEFAULT_TAXONOMY,
        chooser: Chooser = random.choice,
        prompts: Mapping[AgentDomain, AgentPrompt] = AGENT_PROMPTS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_backoff_ms: int = DEFAULT_RETRY_BACKOFF_MS,
    ) -> None:
        self.store = store if store is not None else build_session_store()
        self.invoke = invoke
        self.classifier_invoke = classifier_invoke
        self.load_integrations = load_integrations
        self.taxonomy = taxonomy
        self.chooser = chooser
        self.prompts = prompts
        self.max_attempts = max(1, max_attempts)
        self.retry_backoff_ms = max(0, retry_backoff_ms)
        self._in_flight: dict[str, CancellationToken] = {}
        self._cleared: set[str] = set()

    def is_busy(self, user_id: str, agent_key: str) -> bool:
        return session_key(agent_key, user_id) in self._in_flight

    def stop(self, user_id: str, agent_key: str) -> bool:
        token = self._in_flight.get(session_key(agent_key, user_id))
        if token is None:
            return False
        token.cancel()
        return True

    def clear(self, user_id: str, agent_key: str) -> None:
        key = session_key(agent_key, user_id)
        token = self._in_flight.get(key)
        if token is not None:
            self._cleared.add(key)
            token.cancel("session_cleared")
        self.store.clear(agent_key, user_id)

    def load_session(self, user_id: str, agent_key: str) -> SessionContext:
        return self.store.load(agent_key, user_id) or new_session(user_id, agent_key)

    async def run_turn(self, user_id: str, agent_key: str, message: str) -> TurnResult:
        key = session_key(agent_key, user_id)
        if key in self._in_flight:
            logger.info("turn_rejected_busy session=%s", key)
            return TurnResult(status=TurnStatus.BUSY, message=BUSY_MESSAGE)

        session = self.load_session(user_id, agent_key)
        token = CancellationToken()
        self._in_flight[key] = token
        session.active_cancel_handle = token
        text = (message or "").strip()
        intent: IntentResult | None = None
        directive: ClarificationDirective | None = None
        try:
            session.append_history("user", text)
            intent = await route_intent(
                text,
                current_agent=resolve_agent(agent_key),
                session_summary=session.summary(),
                taxonomy=self.taxonomy,
                invoke=self.classifier_invoke,
            )
            token.raise_if_cancelled()
            directive = needs_clarification(intent.confidence)
            if directive == ClarificationDirective.HARD:
                session.append_history("assistant", CLARIFY_QUESTION)
                return TurnResult(
                    status=TurnStatus.CLARIFY,
                    message=CLARIFY_QUESTION,
                    intent=intent,
                    clarification=directive,
                )
            return await self._complete_turn(session, text, intent, directive, token)
        except TurnCancelledError:
            logger.info("turn_cancelled session=%s", key)
            session.append_history("assistant", STOPPED_MESSAGE)
            return TurnResult(
                status=TurnStatus.CANCELLED,
                message=STOPPED_MESSAGE,
                intent=intent,
                clarification=directive,
                error_code=PipelineErrorCode.TURN_CANCELLED,
            )
        except ConfigurationError as exc:
            logger.error("turn_blocked_configuration session=%s err=%s", key, exc)
            return self._failed(session, intent, directive, PipelineErrorCode.CONFIGURATION_MISSING)
        except ToolInvocationError as exc:
            logger.warning("turn_failed session=%s code=%s err=%s", key, exc.code, exc)
            return self._failed(session, intent, directive, exc.code)
        except Exception:
            logger.exception("turn_failed_unexpected session=%s", key)
            return self._failed(session, intent, directive, PipelineErrorCode.TOOL_INVOCATION_FAILED)
        finally:
            session.active_cancel_handle = None
            self._in_flight.pop(key, None)
            if key in self._cleared:
                self._cleared.discard(key)
            else:
                self.store.save(session)

    async def _complete_turn(
        self,
        session: SessionContext,
        text: str,
        intent: IntentResult,
        directive: ClarificationDirective,
        token: CancellationToken,
    ) -> TurnResult:
        expanded = expand_prompt(
            text,
            ExpansionContext(
                intent=session.last_intent,
                context=session.last_context,
                last_output_type=session.last_output_type,
            ),
        )
        if self.invoke is None:
            raise ConfigurationError("invoke_function_missing")

        tone = detect_user_tone(text)
        prior = [
            {"role": entry.role, "content": entry.content}
            for entry in session.history[:-1][-HISTORY_WINDOW:]
        ]
        request = LLMRequest(
            prompt=expanded,
            messages=prior,
            prior_context={**session.summary(), "intent": intent.to_dict(), "user_tone": tone},
            system_prompt=build_system_prompt(intent.agent, self.prompts),
        )
        response = await self._invoke_with_retry(request, token)
        token.raise_if_cancelled()

        reply_text = format_response(response.text)
        connections = list(self.load_integrations(session.user_id) or [])
        preview = parse_content_preview(reply_text, connections)
        extracted = extract_executable_actions(reply_text, connections, intent.agent)
        actions: list[Action] = consolidate_actions(extracted + (preview.actions if preview else []))

        message = compose_response(
            user_prompt=text,
            agent_type=intent.agent,
            content=reply_text,
            chooser=self.chooser,
        )
        if directive == ClarificationDirective.SOFT:
            message = f"{_soft_hedge(intent)}\n\n{message}"

        session.append_history("assistant", message)
        session.set_last_intent(intent.intent, intent.context)
        output_type = _PREVIEW_OUTPUT_TYPES.get(preview.type) if preview else None
        session.set_last_output_type(output_type or output_type_for_intent(intent.intent))

        logger.info(
            "turn_completed session=%s intent=%s agent=%s actions=%s preview=%s",
            session_key(session.agent_key, session.user_id),
            intent.intent,
            intent.agent,
            len(actions),
            preview.type if preview else None,
        )
        return TurnResult(
            status=TurnStatus.COMPLETED,
            message=message,
            intent=intent,
            clarification=directive,
            expanded_prompt=expanded,
            actions=actions,
            content_preview=preview,
        )

    async def _invoke_with_retry(self, request: LLMRequest, token: CancellationToken) -> LLMResponse:
        """Retry transient provider failures with exponential backoff; others raise at once."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self.invoke(request, token)
            except ToolInvocationError as exc:
                if attempt >= self.max_attempts or not is_retryable_pipeline_error(exc.code):
                    raise
                delay_ms = self.retry_backoff_ms * (2 ** (attempt - 1))
                logger.warning(
                    "llm_invoke_retry attempt=%s/%s code=%s delay_ms=%s",
                    attempt,
                    self.max_attempts,
                    exc.code,
                    delay_ms,
                )
                if delay_ms:
                    await run_cancellable(asyncio.sleep(delay_ms / 1000), token)
                token.raise_if_cancelled()
        raise ToolInvocationError("llm_invoke_exhausted")

    @staticmethod
    def _failed(
        session: SessionContext,
        intent: IntentResult | None,
        directive: ClarificationDirective | None,
        code: str | PipelineErrorCode,
    ) -> TurnResult:
        message = user_message_for_error(code) or APOLOGY_MESSAGE
        session.append_history("assistant", message)
        return TurnResult(
            status=TurnStatus.FAILED,
            message=message,
            intent=intent,
            clarification=directive,
            error_code=str(code),
        )
