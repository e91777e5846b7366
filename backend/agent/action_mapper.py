from __future__ import annotations

from typing import Callable, Iterable, Sequence

from agent.integrations import connected_service_names
from agent.types import Action, AgentDomain, parse_agent


PRIORITY_WORDS: tuple[str, ...] = ("Publish", "Send", "Schedule", "Create", "Save", "Edit")

CONTENT_PREVIEW_MARKERS: tuple[str, ...] = ("Caption:", "here's your draft", "check out this")
EMAIL_PREVIEW_MARKERS: tuple[str, ...] = ("Subject:", "To:")


class ActionSet:
    """Insertion-ordered actions keyed for deduplication; the first write wins."""

    def __init__(self) -> None:
        self._items: dict[str, Action] = {}

    def add(self, key: str, action: Action) -> bool:
        if key in self._items:
            return False
        self._items[key] = action
        return True

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def values(self) -> list[Action]:
        return list(self._items.values())


# (service_name, action key, label, tool)
PUBLISH_TARGETS: tuple[tuple[str, str, str, str], ...] = (
    ("instagram", "publish_instagram", "Publish to Instagram", "publishInstagramPostTool"),
    ("facebook", "publish_facebook", "Publish to Facebook", "publishFacebookPostTool"),
    ("linkedin", "publish_linkedin", "Publish to LinkedIn", "publishLinkedInPostTool"),
)


def _action(key: str, label: str, tool: str, *, suggested: bool = False) -> Action:
    return Action(key=key, label=label, tool=tool, args={}, suggested=suggested)


def publish_actions(connected: set[str]) -> list[Action]:
    """Publish actions for the connected social platforms, then Save Draft."""
    actions = [
        _action(key, label, tool)
        for service_name, key, label, tool in PUBLISH_TARGETS
        if service_name in connected
    ]
    actions.append(_action("save_draft", "Save Draft", "saveContentDraft"))
    return actions


def email_tool(connected: set[str]) -> str | None:
    if "google_workspace" in connected:
        return "sendGoogleEmailTool"
    if "microsoft_365" in connected:
        return "sendMicrosoftEmailTool"
    return None


def _content_actions(reply: str, lower: str, connected: set[str], actions: ActionSet) -> None:
    has_preview = any(marker in reply for marker in CONTENT_PREVIEW_MARKERS)
    if not has_preview:
        if any(token in lower for token in ("post", "caption", "draft")):
            actions.add("generate_post", _action("generate_post", "Generate Post", "generateSocialPostTool", suggested=True))
        if any(token in lower for token in ("image", "graphic", "visual")):
            actions.add("generate_image", _action("generate_image", "Generate Image", "generateImageTool", suggested=True))
        return

    for action in publish_actions(connected):
        actions.add(action.key, action)


def _scheduling_actions(reply: str, lower: str, connected: set[str], actions: ActionSet) -> None:
    has_zoom = "zoom" in connected

    if any(token in lower for token in ("meeting", "schedule", "calendar")):
        if "google_workspace" in connected:
            actions.add(
                "schedule_meeting",
                _action("schedule_meeting", "Schedule Meeting", "scheduleGoogleCalendarEventTool", suggested=True),
            )
        if has_zoom:
            actions.add("create_zoom", _action("create_zoom", "Create Zoom Meeting", "scheduleZoomMeetingTool", suggested=True))

    if any(token in lower for token in ("email", "send", "draft")):
        tool = email_tool(connected)
        if tool:
            if any(marker in reply for marker in EMAIL_PREVIEW_MARKERS):
                actions.add("send_email", _action("send_email", "Send Email", tool))
            else:
                actions.add("draft_email", _action("draft_email", "Draft Email", tool, suggested=True))

    if "reminder" in lower or "remind" in lower:
        actions.add("create_reminder", _action("create_reminder", "Create Reminder", "createTaskTool", suggested=True))


def _transaction_actions(reply: str, lower: str, connected: set[str], actions: ActionSet) -> None:
    if "upload" in lower or "document" in lower:
        actions.add("upload_document", _action("upload_document", "Upload Document", "uploadSkySlopeDocumentTool", suggested=True))
    if "transaction" in lower or "deal" in lower:
        actions.add("update_transaction", _action("update_transaction", "Update Transaction", "updateTransactionTool", suggested=True))
        actions.add("view_details", _action("view_details", "View Details", "getTransactionsTool", suggested=True))
    if "milestone" in lower or "checklist" in lower:
        actions.add(
            "update_milestone",
            _action("update_milestone", "Update Milestone", "updateTransactionMilestoneTool", suggested=True),
        )


def _copilot_actions(reply: str, lower: str, connected: set[str], actions: ActionSet) -> None:
    if any(token in lower for token in ("research", "find out", "look up")):
        actions.add("research", _action("research", "Research Topic", "researchTopicTool", suggested=True))
    if "analyze" in lower or "review" in lower:
        actions.add("analyze", _action("analyze", "Analyze Performance", "analyzeBusinessPerformanceTool", suggested=True))
    if "task" in lower or "to-do" in lower:
        actions.add("create_task", _action("create_task", "Create Task", "createTaskTool", suggested=True))


def _no_actions(reply: str, lower: str, connected: set[str], actions: ActionSet) -> None:
    return None


DomainActionRule = Callable[[str, str, set[str], ActionSet], None]

DOMAIN_ACTION_RULES: dict[AgentDomain, DomainActionRule] = {
    AgentDomain.EXECUTIVE_ASSISTANT: _scheduling_actions,
    AgentDomain.CONTENT_AGENT: _content_actions,
    AgentDomain.TRANSACTION_COORDINATOR: _transaction_actions,
    AgentDomain.LEADS_AGENT: _no_actions,
    AgentDomain.ADVISOR: _no_actions,
    AgentDomain.COPILOT: _copilot_actions,
}

if set(DOMAIN_ACTION_RULES) != set(AgentDomain):  # pragma: no cover - import-time guard
    raise RuntimeError("action rules must cover every AgentDomain")


def extract_executable_actions(
    reply_text: str,
    connections: Iterable[object] | None = None,
    agent_type: AgentDomain | str | None = None,
    *,
    actions: ActionSet | None = None,
) -> list[Action]:
    agent = parse_agent(agent_type)
    target = actions if actions is not None else ActionSet()
    if agent is None:
        return target.values()
    reply = reply_text or ""
    DOMAIN_ACTION_RULES[agent](reply, reply.lower(), connected_service_names(connections), target)
    return target.values()


def _priority_rank(action: Action, priority_words: Sequence[str]) -> int:
    label = action.label or ""
    for index, word in enumerate(priority_words):
        if word in label:
            return index
    return len(priority_words)


def consolidate_actions(
    actions: Iterable[Action],
    priority_words: Sequence[str] = PRIORITY_WORDS,
) -> list[Action]:
    unique: list[Action] = []
    seen_identities: set[str] = set()
    seen_keys: set[str] = set()
    for action in actions:
        identity = action.identity()
        if identity in seen_identities or action.key in seen_keys:
            continue
        seen_identities.add(identity)
        seen_keys.add(action.key)
        unique.append(action)
    # sorted() is stable: equal ranks keep their input order.
    return sorted(unique, key=lambda action: _priority_rank(action, priority_words))
