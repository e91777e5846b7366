from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class AgentDomain(StrEnum):
    EXECUTIVE_ASSISTANT = "executive_assistant"
    CONTENT_AGENT = "content_agent"
    TRANSACTION_COORDINATOR = "transaction_coordinator"
    LEADS_AGENT = "leads_agent"
    ADVISOR = "advisor"
    COPILOT = "copilot"


DEFAULT_AGENT = AgentDomain.EXECUTIVE_ASSISTANT

# Persona names used by the chat front-end.
AGENT_ALIASES: dict[str, AgentDomain] = {
    "nova": AgentDomain.EXECUTIVE_ASSISTANT,
    "sirius": AgentDomain.CONTENT_AGENT,
    "vega": AgentDomain.TRANSACTION_COORDINATOR,
    "phoenix": AgentDomain.LEADS_AGENT,
}


def parse_agent(value: object) -> AgentDomain | None:
    if isinstance(value, AgentDomain):
        return value
    token = str(value or "").strip().lower()
    if not token:
        return None
    try:
        return AgentDomain(token)
    except ValueError:
        return AGENT_ALIASES.get(token)


def resolve_agent(value: object, default: AgentDomain = DEFAULT_AGENT) -> AgentDomain:
    return parse_agent(value) or default


class OutputType(StrEnum):
    POST = "post"
    EMAIL = "email"
    DOCUMENT = "document"
    IMAGE = "image"
    MEETING = "meeting"
    REMINDER = "reminder"


def parse_output_type(value: object) -> OutputType | None:
    if isinstance(value, OutputType):
        return value
    try:
        return OutputType(str(value or "").strip().lower())
    except ValueError:
        return None


class ClarificationDirective(StrEnum):
    NONE = "none"
    SOFT = "soft"
    HARD = "hard"


class TurnStatus(StrEnum):
    COMPLETED = "completed"
    CLARIFY = "clarify"
    CANCELLED = "cancelled"
    FAILED = "failed"
    BUSY = "busy"


@dataclass
class IntentResult:
    intent: str
    agent: AgentDomain
    confidence: float
    context: dict[str, Any] = field(default_factory=dict)
    source: str = "rule"  # rule | llm | default

    def to_dict(self) -> dict[str, Any]:
        return {
            "intent": self.intent,
            "agent": str(self.agent),
            "confidence": float(self.confidence),
            "context": dict(self.context),
            "source": self.source,
        }


@dataclass
class Action:
    key: str
    label: str
    tool: str | None = None
    args: dict[str, Any] = field(default_factory=dict)
    suggested: bool = False
    kind: str | None = None  # e.g. "edit" for client-side actions without a tool

    def identity(self) -> str:
        return self.tool or self.label

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "key": self.key,
            "label": self.label,
            "tool": self.tool,
            "args": dict(self.args),
            "suggested": self.suggested,
        }
        if self.kind:
            payload["type"] = self.kind
        return payload


@dataclass
class ContentPreview:
    type: str  # content_post | email | document
    fields: dict[str, Any] = field(default_factory=dict)
    actions: list[Action] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            **self.fields,
            "actions": [action.to_dict() for action in self.actions],
        }


@dataclass
class HistoryEntry:
    role: str  # user | assistant
    content: str
    timestamp: str


@dataclass
class TurnResult:
    status: TurnStatus
    message: str
    intent: IntentResult | None = None
    clarification: ClarificationDirective | None = None
    expanded_prompt: str | None = None
    actions: list[Action] = field(default_factory=list)
    content_preview: ContentPreview | None = None
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": str(self.status),
            "message": self.message,
            "intent": self.intent.to_dict() if self.intent else None,
            "clarification": str(self.clarification) if self.clarification else None,
            "expanded_prompt": self.expanded_prompt,
            "actions": [action.to_dict() for action in self.actions],
            "content_preview": self.content_preview.to_dict() if self.content_preview else None,
            "error_code": self.error_code,
        }
