from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from agent.cancellation import CancellationToken
from agent.types import HistoryEntry, OutputType, parse_output_type
from app.core.config import get_settings

try:
    from supabase import create_client
except Exception:  # pragma: no cover - import error is handled by memory fallback
    create_client = None  # type: ignore[assignment]


logger = logging.getLogger("dialogue-backend.session_store")


@dataclass
class SessionContext:
    session_id: str
    user_id: str
    agent_key: str
    last_intent: str | None = None
    last_context: dict[str, Any] = field(default_factory=dict)
    last_output_type: OutputType | None = None
    history: list[HistoryEntry] = field(default_factory=list)
    active_cancel_handle: CancellationToken | None = None
    updated_at: float = 0.0

    def set_last_intent(self, intent: str | None, context: dict[str, Any] | None = None) -> None:
        self.last_intent = intent
        self.last_context = dict(context or {})

    def set_last_output_type(self, output_type: object) -> bool:
        parsed = parse_output_type(output_type)
        if parsed is None:
            return False
        self.last_output_type = parsed
        return True

    def append_history(self, role: str, content: str) -> HistoryEntry:
        entry = HistoryEntry(role=role, content=content, timestamp=_now_iso())
        self.history.append(entry)
        return entry

    def summary(self) -> dict[str, Any]:
        return {
            "current_agent": self.agent_key,
            "last_intent": self.last_intent,
            "last_context": dict(self.last_context),
            "last_output_type": str(self.last_output_type) if self.last_output_type else None,
        }


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def session_key(agent_key: str, user_id: str) -> str:
    return f"{agent_key}:{user_id}"


def new_session(user_id: str, agent_key: str) -> SessionContext:
    return SessionContext(
        session_id=f"{user_id}_{agent_key}_{int(time.time() * 1000)}",
        user_id=user_id,
        agent_key=agent_key,
        updated_at=time.time(),
    )


def output_type_for_intent(intent: str | None) -> OutputType | None:
    token = (intent or "").lower()
    if "post" in token or "content" in token:
        return OutputType.POST
    if "email" in token:
        return OutputType.EMAIL
    if "meeting" in token:
        return OutputType.MEETING
    if "reminder" in token:
        return OutputType.REMINDER
    if "image" in token:
        return OutputType.IMAGE
    if "document" in token:
        return OutputType.DOCUMENT
    return None


def session_to_dict(item: SessionContext) -> dict[str, Any]:
    return {
        "session_id": item.session_id,
        "user_id": item.user_id,
        "agent_key": item.agent_key,
        "last_intent": item.last_intent,
        "last_context": dict(item.last_context),
        "last_output_type": str(item.last_output_type) if item.last_output_type else None,
        "history": [
            {"role": entry.role, "content": entry.content, "timestamp": entry.timestamp}
            for entry in item.history
        ],
        "updated_at": item.updated_at,
    }


def session_from_dict(payload: dict[str, Any]) -> SessionContext | None:
    if not isinstance(payload, dict):
        return None
    try:
        updated_at = float(payload.get("updated_at", 0.0))
    except (TypeError, ValueError):
        updated_at = 0.0
    history = [
        HistoryEntry(
            role=str(item.get("role", "")),
            content=str(item.get("content", "")),
            timestamp=str(item.get("timestamp", "")),
        )
        for item in (payload.get("history") or [])
        if isinstance(item, dict)
    ]
    last_context = payload.get("last_context")
    return SessionContext(
        session_id=str(payload.get("session_id", "")),
        user_id=str(payload.get("user_id", "")),
        agent_key=str(payload.get("agent_key", "")),
        last_intent=payload.get("last_intent") or None,
        last_context=dict(last_context) if isinstance(last_context, dict) else {},
        last_output_type=parse_output_type(payload.get("last_output_type")),
        history=history,
        updated_at=updated_at,
    )


class SessionStore:
    """load/save/clear boundary for per-conversation context."""

    def load(self, agent_key: str, user_id: str) -> SessionContext | None:
        raise NotImplementedError

    def save(self, item: SessionContext) -> SessionContext:
        raise NotImplementedError

    def clear(self, agent_key: str, user_id: str) -> None:
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    def __init__(self, ttl_seconds: int = 3600) -> None:
        self.ttl_seconds = ttl_seconds
        self._items: dict[str, dict[str, Any]] = {}

    def load(self, agent_key: str, user_id: str) -> SessionContext | None:
        key = session_key(agent_key, user_id)
        payload = self._items.get(key)
        if not payload:
            return None
        item = session_from_dict(payload)
        if item is None or _expired(item, self.ttl_seconds):
            self._items.pop(key, None)
            return None
        return item

    def save(self, item: SessionContext) -> SessionContext:
        self._sweep()
        self._items[session_key(item.agent_key, item.user_id)] = session_to_dict(item)
        return item

    def _sweep(self) -> None:
        for key, payload in list(self._items.items()):
            item = session_from_dict(payload)
            if item is None or _expired(item, self.ttl_seconds):
                self._items.pop(key, None)

    def clear(self, agent_key: str, user_id: str) -> None:
        self._items.pop(session_key(agent_key, user_id), None)


class SupabaseSessionStore(SessionStore):
    def __init__(self, client, table: str = "chat_session_contexts", ttl_seconds: int = 3600) -> None:
        self.client = client
        self.table = table
        self.ttl_seconds = ttl_seconds

    def load(self, agent_key: str, user_id: str) -> SessionContext | None:
        response = (
            self.client.table(self.table)
            .select("*")
            .eq("session_key", session_key(agent_key, user_id))
            .limit(1)
            .execute()
        )
        rows = response.data or []
        if not rows:
            return None
        item = session_from_dict(rows[0].get("context_json") or {})
        if item is None:
            return None
        if _expired(item, self.ttl_seconds):
            self.clear(agent_key, user_id)
            return None
        return item

    def save(self, item: SessionContext) -> SessionContext:
        payload = {
            "session_key": session_key(item.agent_key, item.user_id),
            "user_id": item.user_id,
            "agent_key": item.agent_key,
            "context_json": session_to_dict(item),
            "updated_at": item.updated_at,
        }
        self.client.table(self.table).upsert(payload, on_conflict="session_key").execute()
        return item

    def clear(self, agent_key: str, user_id: str) -> None:
        self.client.table(self.table).delete().eq("session_key", session_key(agent_key, user_id)).execute()


def _expired(item: SessionContext, ttl_seconds: int) -> bool:
    return bool(ttl_seconds) and bool(item.updated_at) and (time.time() - item.updated_at) > ttl_seconds


class FallbackSessionStore(SessionStore):
    """Database store with memory fallback, selected by ``session_context_storage``.

    ``memory`` never touches the database, ``db`` never falls back and ``auto``
    keeps a memory copy and uses it whenever the database call fails.
    """

    def __init__(
        self,
        *,
        mode: str = "auto",
        memory: MemorySessionStore | None = None,
        db: SessionStore | None = None,
        history_limit: int = 50,
    ) -> None:
        self.mode = mode if mode in {"auto", "db", "memory"} else "auto"
        self.memory = memory or MemorySessionStore()
        self.db = db
        self.history_limit = max(1, history_limit)

    def load(self, agent_key: str, user_id: str) -> SessionContext | None:
        if self.mode == "memory" or self.db is None:
            return self.memory.load(agent_key, user_id)
        try:
            result = self.db.load(agent_key, user_id)
            if result or self.mode == "db":
                return result
        except Exception as exc:
            if self.mode == "db":
                logger.warning("session_context db read failed (db mode): %s", exc)
                return None
            logger.warning("session_context db read failed, fallback to memory: %s", exc)
        return self.memory.load(agent_key, user_id)

    def save(self, item: SessionContext) -> SessionContext:
        item.updated_at = time.time()
        if len(item.history) > self.history_limit:
            item.history = item.history[-self.history_limit :]
        self.memory.save(item)
        if self.mode == "memory" or self.db is None:
            return item
        try:
            return self.db.save(item)
        except Exception as exc:
            if self.mode == "db":
                logger.warning("session_context db write failed (db mode): %s", exc)
            else:
                logger.warning("session_context db write failed, fallback to memory: %s", exc)
        return item

    def clear(self, agent_key: str, user_id: str) -> None:
        self.memory.clear(agent_key, user_id)
        if self.mode == "memory" or self.db is None:
            return
        try:
            self.db.clear(agent_key, user_id)
        except Exception as exc:
            if self.mode == "db":
                logger.warning("session_context db clear failed (db mode): %s", exc)
            else:
                logger.warning("session_context db clear failed, fallback to memory: %s", exc)


def build_session_store() -> FallbackSessionStore:
    settings = get_settings()
    ttl = max(60, int(settings.session_context_ttl_seconds))
    mode = (settings.session_context_storage or "auto").strip().lower()
    db: SessionStore | None = None
    if mode != "memory" and create_client is not None and settings.supabase_url and settings.supabase_service_role_key:
        try:
            client = create_client(settings.supabase_url, settings.supabase_service_role_key)
            db = SupabaseSessionStore(client, table=settings.session_context_table, ttl_seconds=ttl)
        except Exception as exc:
            logger.warning("session_context db client init failed, using memory: %s", exc)
    return FallbackSessionStore(
        mode=mode,
        memory=MemorySessionStore(ttl_seconds=ttl),
        db=db,
        history_limit=settings.session_history_limit,
    )
