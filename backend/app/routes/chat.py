from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, HTTPException, Request

from agent.loop import ConversationOrchestrator
from agent.types import TurnStatus, parse_agent
from app.core.auth import get_authenticated_user_id
from app.core.config import get_settings

router = APIRouter(prefix="/api/chat", tags=["chat"])
logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4000


@lru_cache
def get_orchestrator() -> ConversationOrchestrator:
    settings = get_settings()
    return ConversationOrchestrator(
        max_attempts=settings.llm_max_attempts,
        retry_backoff_ms=settings.llm_retry_backoff_ms,
    )


def _require_agent_key(agent_key: str) -> str:
    agent = parse_agent(agent_key)
    if agent is None:
        raise HTTPException(status_code=404, detail=f"unknown agent: {agent_key}")
    return str(agent)


@router.post("/{agent_key}/messages")
async def post_message(agent_key: str, request: Request):
    user_id = await get_authenticated_user_id(request)
    agent = _require_agent_key(agent_key)
    try:
        payload = await request.json()
    except Exception as exc:
        raise HTTPException(status_code=400, detail="invalid_json_body") from exc
    message = str(payload.get("message") or "").strip() if isinstance(payload, dict) else ""
    if not message:
        raise HTTPException(status_code=400, detail="message is required")
    if len(message) > MAX_MESSAGE_LENGTH:
        raise HTTPException(status_code=400, detail="message is too long")

    result = await get_orchestrator().run_turn(user_id, agent, message)
    if result.status == TurnStatus.BUSY:
        raise HTTPException(status_code=409, detail=result.message)
    return result.to_dict()


@router.post("/{agent_key}/stop")
async def stop_generation(agent_key: str, request: Request):
    user_id = await get_authenticated_user_id(request)
    agent = _require_agent_key(agent_key)
    stopped = get_orchestrator().stop(user_id, agent)
    logger.info("chat_stop_requested user_id=%s agent=%s stopped=%s", user_id, agent, stopped)
    return {"ok": True, "stopped": stopped}


@router.delete("/{agent_key}/session")
async def clear_session(agent_key: str, request: Request):
    user_id = await get_authenticated_user_id(request)
    agent = _require_agent_key(agent_key)
    get_orchestrator().clear(user_id, agent)
    return {"ok": True}


@router.get("/{agent_key}/session")
async def get_session(agent_key: str, request: Request):
    user_id = await get_authenticated_user_id(request)
    agent = _require_agent_key(agent_key)
    orchestrator = get_orchestrator()
    session = orchestrator.load_session(user_id, agent)
    return {
        "session_id": session.session_id,
        "busy": orchestrator.is_busy(user_id, agent),
        "last_intent": session.last_intent,
        "last_output_type": str(session.last_output_type) if session.last_output_type else None,
        "history": [
            {"role": entry.role, "content": entry.content, "timestamp": entry.timestamp}
            for entry in session.history
        ],
    }
