import time
from types import SimpleNamespace

from agent import session_store
from agent.session_store import (
    FallbackSessionStore,
    MemorySessionStore,
    SessionStore,
    SupabaseSessionStore,
    new_session,
    output_type_for_intent,
)
from agent.types import OutputType


class _BrokenStore(SessionStore):
    def load(self, agent_key, user_id):
        raise RuntimeError("db down")

    def save(self, item):
        raise RuntimeError("db down")

    def clear(self, agent_key, user_id):
        raise RuntimeError("db down")


class _FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = {}

    def select(self, *_args):
        self.op = "select"
        return self

    def upsert(self, payload, on_conflict=None):
        self.op = "upsert"
        self.payload = payload
        self.client.calls.append(("upsert", self.table, on_conflict))
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters[column] = value
        return self

    def limit(self, _count):
        return self

    def execute(self):
        rows = self.client.rows
        if self.op == "upsert":
            rows[self.payload["session_key"]] = self.payload
            return SimpleNamespace(data=[self.payload])
        if self.op == "delete":
            rows.pop(self.filters.get("session_key"), None)
            return SimpleNamespace(data=[])
        row = rows.get(self.filters.get("session_key"))
        return SimpleNamespace(data=[row] if row else [])


class _FakeSupabase:
    def __init__(self):
        self.rows = {}
        self.calls = []

    def table(self, name):
        return _FakeQuery(self, name)


def test_memory_mode_roundtrip_keeps_history_and_output_type():
    store = FallbackSessionStore(mode="memory")
    item = new_session("user-1", "content_agent")
    item.append_history("user", "create a post")
    item.set_last_intent("create_social_post", {"tone": "casual"})
    assert item.set_last_output_type("post") is True
    store.save(item)

    loaded = store.load("content_agent", "user-1")
    assert loaded is not None
    assert loaded.session_id == item.session_id
    assert loaded.last_intent == "create_social_post"
    assert loaded.last_context == {"tone": "casual"}
    assert loaded.last_output_type == OutputType.POST
    assert [entry.content for entry in loaded.history] == ["create a post"]

    store.clear("content_agent", "user-1")
    assert store.load("content_agent", "user-1") is None


def test_unknown_output_type_is_ignored():
    item = new_session("user-1", "copilot")
    item.set_last_output_type("email")
    assert item.set_last_output_type("spreadsheet") is False
    assert item.last_output_type == OutputType.EMAIL


def test_memory_store_expires_after_ttl():
    memory = MemorySessionStore(ttl_seconds=60)
    item = new_session("user-2", "advisor")
    item.updated_at = time.time() - 120
    memory.save(item)
    assert memory.load("advisor", "user-2") is None


def test_memory_store_sweeps_expired_sessions_on_save():
    memory = MemorySessionStore(ttl_seconds=60)
    stale = new_session("user-old", "advisor")
    stale.updated_at = time.time() - 120
    memory.save(stale)
    assert len(memory._items) == 1

    fresh = new_session("user-new", "advisor")
    fresh.updated_at = time.time()
    memory.save(fresh)
    assert len(memory._items) == 1
    assert memory.load("advisor", "user-new") is not None


def test_sessions_are_keyed_per_agent_and_user():
    store = FallbackSessionStore(mode="memory")
    store.save(new_session("user-3", "leads_agent"))
    assert store.load("leads_agent", "user-3") is not None
    assert store.load("advisor", "user-3") is None
    assert store.load("leads_agent", "user-4") is None


def test_auto_mode_falls_back_to_memory_when_db_fails():
    store = FallbackSessionStore(mode="auto", db=_BrokenStore())
    item = new_session("user-5", "executive_assistant")
    item.append_history("user", "schedule a meeting")
    store.save(item)

    loaded = store.load("executive_assistant", "user-5")
    assert loaded is not None
    assert loaded.history[0].content == "schedule a meeting"
    store.clear("executive_assistant", "user-5")
    assert store.load("executive_assistant", "user-5") is None


def test_db_mode_does_not_fall_back():
    store = FallbackSessionStore(mode="db", db=_BrokenStore())
    store.save(new_session("user-6", "advisor"))
    assert store.load("advisor", "user-6") is None


def test_save_trims_history_to_limit():
    store = FallbackSessionStore(mode="memory", history_limit=3)
    item = new_session("user-7", "copilot")
    for index in range(5):
        item.append_history("user", f"message {index}")
    store.save(item)
    loaded = store.load("copilot", "user-7")
    assert [entry.content for entry in loaded.history] == ["message 2", "message 3", "message 4"]


def test_supabase_store_upserts_on_session_key():
    client = _FakeSupabase()
    store = SupabaseSessionStore(client, table="chat_session_contexts", ttl_seconds=3600)
    item = new_session("user-8", "content_agent")
    item.updated_at = time.time()
    item.set_last_output_type(OutputType.IMAGE)
    store.save(item)

    assert client.calls == [("upsert", "chat_session_contexts", "session_key")]
    assert "content_agent:user-8" in client.rows
    loaded = store.load("content_agent", "user-8")
    assert loaded.last_output_type == OutputType.IMAGE
    store.clear("content_agent", "user-8")
    assert client.rows == {}


def test_output_type_for_intent():
    assert output_type_for_intent("create_social_post") == OutputType.POST
    assert output_type_for_intent("send_email") == OutputType.EMAIL
    assert output_type_for_intent("schedule_meeting") == OutputType.MEETING
    assert output_type_for_intent("create_reminder") == OutputType.REMINDER
    assert output_type_for_intent("generate_image") == OutputType.IMAGE
    assert output_type_for_intent("upload_document") == OutputType.DOCUMENT
    assert output_type_for_intent("call_leads") is None


def test_build_session_store_memory_mode(monkeypatch):
    monkeypatch.setattr(
        session_store,
        "get_settings",
        lambda: SimpleNamespace(
            session_context_ttl_seconds=3600,
            session_context_storage="memory",
            session_context_table="chat_session_contexts",
            session_history_limit=10,
            supabase_url="https://example.supabase.co",
            supabase_service_role_key="service-role",
        ),
    )
    store = session_store.build_session_store()
    assert store.mode == "memory"
    assert store.db is None
    assert store.history_limit == 10
