from __future__ import annotations

import random
import re
from typing import Any, Callable, Mapping, Sequence

from agent.types import AgentDomain, parse_agent


Chooser = Callable[[Sequence[str]], str]

URGENT_MARKERS = ("asap", "urgent", "!!")
CASUAL_MARKERS = ("hey", "thanks", "😊")
POLITE_MARKERS = ("please", "kindly", "would you")

# Ordered: the first category whose markers appear in the prompt wins.
ACK_CATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("schedule", ("schedule", "meeting", "calendar")),
    ("email", ("email", "send", "message")),
    ("reminder", ("remind", "reminder")),
    ("post", ("post", "content", "caption")),
    ("image", ("image", "graphic", "visual")),
    ("campaign", ("campaign",)),
    ("upload", ("upload", "document")),
    ("update", ("update", "change")),
    ("status", ("status", "how is", "where are")),
    ("analyze", ("analyze", "review")),
    ("suggest", ("suggest", "recommend", "what should")),
)

_COPILOT_ACKS: dict[str, tuple[str, ...]] = {
    "analyze": ("Let me analyze that for you 👇", "Got it, here's my analysis 👇", "Perfect, I've reviewed everything 👇"),
    "suggest": ("Here's what I recommend 👇", "Got it, here are some suggestions 👇", "Perfect, I have some ideas for you 👇"),
    "default": ("Got it, here's what I found 👇", "Perfect, I can help with that 👇", "On it, here's the info 👇"),
}

ACKNOWLEDGMENTS: dict[AgentDomain, dict[str, tuple[str, ...]]] = {
    AgentDomain.EXECUTIVE_ASSISTANT: {
        "schedule": ("Got it, I'll set that up for you.", "Perfect, scheduling that now.", "On it, I'll get that on your calendar."),
        "email": ("Sure thing, I'll draft that email.", "Got it, composing that message now.", "Perfect, I'll send that for you."),
        "reminder": ("Noted, I'll remind you about that.", "Got it, reminder set.", "Perfect, I'll make sure you don't forget."),
        "default": ("Got it, I'll help with that.", "Perfect, I can handle that.", "On it, let me take care of that."),
    },
    AgentDomain.CONTENT_AGENT: {
        "post": ("Love it, here's your draft 👇", "Got it, here's what I created for you 👇", "Perfect, check out this draft 👇"),
        "image": ("Nice, generating that visual now.", "On it, creating your image.", "Got it, I'll design that for you."),
        "campaign": ("Exciting! Here's your campaign setup 👇", "Got it, here's your campaign plan 👇", "Perfect, I've outlined everything below 👇"),
        "default": ("Got it, here's what I came up with 👇", "Perfect, check this out 👇", "Here's what I created for you 👇"),
    },
    AgentDomain.TRANSACTION_COORDINATOR: {
        "upload": ("Got it, I'll upload that document.", "Perfect, adding that to SkySlope now.", "On it, uploading to your transaction file."),
        "update": ("Got it, I'll update that transaction.", "Perfect, syncing those changes now.", "On it, updating the file."),
        "status": ("Here's the status update you requested 👇", "Got it, here's where things stand 👇", "Perfect, here's the rundown 👇"),
        "default": ("Got it, here's the information 👇", "Perfect, I've checked that for you 👇", "On it, here's what I found 👇"),
    },
    AgentDomain.LEADS_AGENT: _COPILOT_ACKS,
    AgentDomain.ADVISOR: _COPILOT_ACKS,
    AgentDomain.COPILOT: _COPILOT_ACKS,
}

NEXT_STEP_SUGGESTIONS: dict[AgentDomain, dict[str, str]] = {
    AgentDomain.EXECUTIVE_ASSISTANT: {
        "email_sent": "Want me to set a follow-up reminder?",
        "meeting_scheduled": "Should I send a confirmation email to the attendees?",
        "reminder_created": "Need anything else scheduled?",
    },
    AgentDomain.CONTENT_AGENT: {
        "post_created": "Want to schedule it or post now?",
        "post_published": "Should I create another post for a different platform?",
        "image_generated": "Ready to use this in a post?",
    },
    AgentDomain.TRANSACTION_COORDINATOR: {
        "document_uploaded": "Need me to check off any compliance items?",
        "transaction_updated": "Want a summary email sent to all parties?",
        "milestone_completed": "Should I notify the client?",
    },
    AgentDomain.LEADS_AGENT: {},
    AgentDomain.ADVISOR: {},
    AgentDomain.COPILOT: {},
}

TOOL_CONFIRMATIONS: dict[str, str] = {
    "sendGoogleEmailTool": "Email sent! I've logged it in your Gmail.",
    "sendMicrosoftEmailTool": "Email sent! It's in your Outlook sent folder.",
    "sendEmailTool": "Email sent successfully!",
    "scheduleGoogleCalendarEventTool": "Meeting scheduled! Invite sent to all attendees.",
    "scheduleZoomMeetingTool": "Zoom meeting created! Link sent to participants.",
    "scheduleCompleteMeeting": "Meeting confirmed and invites sent!",
    "publishInstagramPostTool": "Posted to Instagram! Your content is live.",
    "publishFacebookPostTool": "Posted to Facebook! Check your page to see it.",
    "publishLinkedInPostTool": "Posted to LinkedIn! Your network can now see it.",
    "generateSocialPostTool": "Here's your social post, ready to publish or edit!",
    "generateImageTool": "Image generated! You can download or use it in a post.",
    "generateMarketReportTool": "Market report ready! Review it below.",
    "uploadSkySlopeDocumentTool": "Document uploaded to SkySlope and logged!",
    "updateTransactionTool": "Transaction updated, all changes synced!",
    "createTransactionTool": "New transaction created successfully!",
    "updateTransactionMilestoneTool": "Milestone updated, everyone's been notified!",
    "createTaskTool": "Task created! I've added it to your to-do list.",
    "createLoftyTaskTool": "Task created in Lofty and synced!",
    "researchTopicTool": "Research complete! Here's what I found:",
    "createDocumentTool": "Document created and saved!",
    "createGoogleDocTool": "Google Doc created, link is ready to share!",
}
DEFAULT_CONFIRMATION = "All set, that's been completed!"

# Completed-action type per tool, used to look up the follow-up suggestion.
TOOL_ACTION_TYPES: dict[str, str] = {
    "sendGoogleEmailTool": "email_sent",
    "sendMicrosoftEmailTool": "email_sent",
    "sendEmailTool": "email_sent",
    "scheduleGoogleCalendarEventTool": "meeting_scheduled",
    "scheduleZoomMeetingTool": "meeting_scheduled",
    "scheduleCompleteMeeting": "meeting_scheduled",
    "createTaskTool": "reminder_created",
    "generateSocialPostTool": "post_created",
    "publishInstagramPostTool": "post_published",
    "publishFacebookPostTool": "post_published",
    "publishLinkedInPostTool": "post_published",
    "generateImageTool": "image_generated",
    "uploadSkySlopeDocumentTool": "document_uploaded",
    "updateTransactionTool": "transaction_updated",
    "updateTransactionMilestoneTool": "milestone_completed",
}


def detect_user_tone(message: str) -> str:
    raw = message or ""
    lower = raw.lower()
    if any(marker in lower for marker in URGENT_MARKERS):
        return "urgent"
    if any(marker in lower for marker in CASUAL_MARKERS):
        return "casual"
    if any(marker in lower for marker in POLITE_MARKERS):
        return "professional"
    if len(raw) < 20 and "?" not in raw:
        return "brief"
    return "friendly"


def acknowledgment_category(user_prompt: str) -> str:
    lower = (user_prompt or "").lower()
    for category, markers in ACK_CATEGORIES:
        if any(marker in lower for marker in markers):
            return category
    return "default"


def generate_acknowledgment(
    user_prompt: str,
    agent_type: AgentDomain | str | None,
    *,
    chooser: Chooser = random.choice,
) -> str:
    agent = parse_agent(agent_type) or AgentDomain.COPILOT
    table = ACKNOWLEDGMENTS[agent]
    options = table.get(acknowledgment_category(user_prompt)) or table["default"]
    return chooser(options)


def generate_next_step_suggestion(action_type: str | None, agent_type: AgentDomain | str | None) -> str | None:
    agent = parse_agent(agent_type)
    if agent is None or not action_type:
        return None
    return NEXT_STEP_SUGGESTIONS[agent].get(action_type)


def compose_response(
    *,
    user_prompt: str,
    agent_type: AgentDomain | str | None,
    content: str,
    add_acknowledgment: bool = True,
    add_suggestion: bool = False,
    action_type: str | None = None,
    chooser: Chooser = random.choice,
) -> str:
    parts: list[str] = []
    if add_acknowledgment:
        parts.append(generate_acknowledgment(user_prompt, agent_type, chooser=chooser))
    parts.append(content or "")
    if add_suggestion and action_type:
        suggestion = generate_next_step_suggestion(action_type, agent_type)
        if suggestion:
            parts.append(suggestion)
    return "\n\n".join(part for part in parts if part)


def humanize_tool_result(
    tool_name: str,
    result: Mapping[str, Any] | None,
    agent_type: AgentDomain | str | None,
) -> str:
    name = tool_name or ""
    message = TOOL_CONFIRMATIONS.get(name, DEFAULT_CONFIRMATION)

    if isinstance(result, Mapping):
        if result.get("subject") and "Email" in name:
            message += f' (Subject: "{result["subject"]}")'
        if result.get("title") and ("Meeting" in name or "Event" in name):
            message += f" ({result['title']})"
        if result.get("platform") and "Post" in name:
            message += " Your engagement should start rolling in soon."

    action_type = TOOL_ACTION_TYPES.get(name) or name.replace("Tool", "").lower()
    suggestion = generate_next_step_suggestion(action_type, agent_type)
    if suggestion:
        message += "\n\n" + suggestion
    return message


def format_response(text: str) -> str:
    formatted = re.sub(r"\n{3,}", "\n\n", text or "")
    formatted = re.sub(r"(?m)^([ \t]*[•\-*])[ \t]+(?=\S)", r"\1 ", formatted)
    formatted = re.sub(r"(?m)^([ \t]*•)(?=\S)", r"\1 ", formatted)
    return formatted.strip()
