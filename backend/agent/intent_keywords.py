from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from agent.types import AgentDomain


FILLER_WORDS = (
    "hey",
    "please",
    "can you",
    "could you",
    "would you",
    "um",
    "uh",
    "like",
    "just",
    "maybe",
)


@dataclass(frozen=True)
class DomainRules:
    agent: AgentDomain
    keywords: tuple[str, ...]
    intents: tuple[tuple[str, tuple[str, ...]], ...]


@dataclass(frozen=True)
class IntentTaxonomy:
    domains: tuple[DomainRules, ...]


EXECUTIVE_ASSISTANT_RULES = DomainRules(
    agent=AgentDomain.EXECUTIVE_ASSISTANT,
    keywords=(
        "schedule",
        "book",
        "reminder",
        "remind",
        "add to calendar",
        "reschedule",
        "meeting",
        "meet",
        "appointment",
        "calendar",
        "tomorrow",
        "email",
        "send email",
        "draft email",
        "inbox",
    ),
    intents=(
        ("schedule_meeting", ("schedule", "book", "meeting", "meet", "meeting with", "appointment", "zoom", "calendar", "tomorrow")),
        ("create_reminder", ("remind", "reminder", "follow up")),
        ("send_email", ("email", "send", "draft", "message")),
        ("reschedule_event", ("reschedule", "move", "change time")),
    ),
)

CONTENT_AGENT_RULES = DomainRules(
    agent=AgentDomain.CONTENT_AGENT,
    keywords=(
        "post",
        "caption",
        "content",
        "video",
        "reel",
        "design",
        "hashtag",
        "image",
        "social",
        "instagram",
        "facebook",
        "linkedin",
        "gmb",
    ),
    intents=(
        ("create_social_post", ("post", "caption", "social", "content", "create")),
        ("generate_image", ("image", "graphic", "design", "visual")),
        ("generate_video_script", ("video", "reel", "script")),
        ("optimize_caption", ("hashtag", "optimize", "improve caption")),
        ("expand_posting_channels", ("add", "include", "also post to")),
        ("retrieve_content_draft", ("show", "draft", "preview", "earlier")),
    ),
)

TRANSACTION_COORDINATOR_RULES = DomainRules(
    agent=AgentDomain.TRANSACTION_COORDINATOR,
    keywords=(
        "contract",
        "disclosure",
        "offer",
        "checklist",
        "upload",
        "skyslope",
        "file",
        "transaction",
        "docs",
        "document",
        "deal",
    ),
    intents=(
        ("upload_document", ("upload", "file", "document", "form")),
        ("get_transaction_status", ("status", "update", "progress", "checklist")),
        ("add_contact_to_transaction", ("add", "contact", "party")),
        ("send_deadline_reminder", ("reminder", "deadline", "due")),
        ("generate_transaction_summary", ("summarize", "summary", "overview")),
    ),
)

LEADS_AGENT_RULES = DomainRules(
    agent=AgentDomain.LEADS_AGENT,
    keywords=(
        "call",
        "text",
        "follow up",
        "nurture",
        "prospect",
        "new lead",
        "crm",
        "conversation",
        "leads",
        "pipeline",
        "contact",
    ),
    intents=(
        ("call_leads", ("call", "phone", "reach out")),
        ("text_followup", ("text", "sms", "message")),
        ("analyze_followup_needs", ("who", "which leads", "priority")),
        ("add_lead", ("add", "new lead", "create contact")),
        ("initiate_call_sequence", ("campaign", "sequence", "calling")),
    ),
)

ADVISOR_RULES = DomainRules(
    agent=AgentDomain.ADVISOR,
    keywords=(
        "market",
        "pricing",
        "performance",
        "goal",
        "analytics",
        "insight",
        "analyze",
        "advise",
        "strategy",
        "how am i doing",
    ),
    intents=(
        ("analyze_performance", ("performance", "doing", "progress", "stats")),
        ("generate_focus_plan", ("focus", "plan", "next week", "priorities")),
        ("analyze_goal_progress", ("goal", "target", "on track")),
        ("generate_weekly_report", ("weekly", "summary", "report")),
        ("analyze_market_trends", ("market", "trends", "pricing", "inventory")),
    ),
)

DEFAULT_TAXONOMY = IntentTaxonomy(
    domains=(
        EXECUTIVE_ASSISTANT_RULES,
        CONTENT_AGENT_RULES,
        TRANSACTION_COORDINATOR_RULES,
        LEADS_AGENT_RULES,
        ADVISOR_RULES,
    )
)

PLATFORM_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("LinkedIn", ("linkedin",)),
    ("Facebook", ("facebook", "fb")),
    ("Instagram", ("instagram", "ig")),
    ("GMB", ("gmb", "google my business")),
)

TONE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("casual", ("casual", "chill", "relaxed")),
    ("professional", ("professional", "formal", "polished")),
    ("luxury", ("luxury", "high-end", "upscale")),
    ("inspirational", ("inspirational", "motivational")),
)

TIMEFRAME_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("tomorrow", "tomorrow"),
    ("today", "today"),
    ("this week", "this_week"),
    ("next week", "next_week"),
)


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    lower = (text or "").lower()
    return any(keyword.lower() in lower for keyword in keywords)


def count_matches(text: str, keywords: Iterable[str]) -> int:
    lower = (text or "").lower()
    return sum(1 for keyword in keywords if keyword.lower() in lower)
