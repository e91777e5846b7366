from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from agent.action_mapper import email_tool, publish_actions
from agent.integrations import connected_service_names
from agent.types import Action, ContentPreview


CAPTION_PATTERNS = (
    re.compile(r"\bCaption:\s*[\"']?([^\"'\n]+)[\"']?", re.IGNORECASE),
    re.compile(r"here's your (?:draft|caption):?\s*[\"']?([^\"'\n]+)[\"']?", re.IGNORECASE),
    re.compile(r"[\"']([^\"']{30,})[\"']"),
)
HASHTAG_RUN_PATTERN = re.compile(r"(#\w+(?:\s+#\w+)*)")
IMAGE_URL_PATTERN = re.compile(r"https?://\S+?\.(?:png|jpg|jpeg|gif|webp)\b", re.IGNORECASE)

SUBJECT_PATTERN = re.compile(r"\bSubject:\s*[\"']?([^\"'\n]+)[\"']?", re.IGNORECASE)
RECIPIENT_PATTERN = re.compile(r"\bTo:\s*[\"']?([^\"'\n]+)[\"']?", re.IGNORECASE)
BODY_PATTERN = re.compile(r"\b(?:Body|Message):\s*[\"']?([^\"']+)[\"']?", re.IGNORECASE | re.DOTALL)

DOCUMENT_PATTERN = re.compile(r"(?:document|file|report).*?(?:ready|created|generated)", re.IGNORECASE)


@dataclass(frozen=True)
class PreviewDetector:
    name: str
    matches: Callable[[str], bool]
    extract: Callable[[str, set[str]], ContentPreview]


def _first_caption(text: str) -> str | None:
    for pattern in CAPTION_PATTERNS:
        matched = pattern.search(text)
        if matched:
            return matched.group(1).strip()
    return None


def _matches_post(text: str) -> bool:
    return bool(
        _first_caption(text)
        or HASHTAG_RUN_PATTERN.search(text)
        or IMAGE_URL_PATTERN.search(text)
    )


def _extract_post(text: str, connected: set[str]) -> ContentPreview:
    image = IMAGE_URL_PATTERN.search(text)
    hashtags = HASHTAG_RUN_PATTERN.findall(text)
    return ContentPreview(
        type="content_post",
        fields={
            "image_url": image.group(0) if image else None,
            "caption": _first_caption(text),
            "hashtags": " ".join(hashtags) if hashtags else None,
        },
        actions=publish_actions(connected),
    )


def _matches_email(text: str) -> bool:
    return bool(SUBJECT_PATTERN.search(text)) and bool(
        RECIPIENT_PATTERN.search(text) or BODY_PATTERN.search(text)
    )


def _email_actions(connected: set[str]) -> list[Action]:
    actions: list[Action] = []
    tool = email_tool(connected)
    if tool:
        actions.append(Action(key="send_email", label="Send Email", tool=tool))
    actions.append(Action(key="edit_email", label="Edit Email", kind="edit"))
    return actions


def _extract_email(text: str, connected: set[str]) -> ContentPreview:
    subject = SUBJECT_PATTERN.search(text)
    recipients = RECIPIENT_PATTERN.search(text)
    body = BODY_PATTERN.search(text)
    return ContentPreview(
        type="email",
        fields={
            "subject": subject.group(1).strip() if subject else "",
            "recipients": [part.strip() for part in recipients.group(1).split(",") if part.strip()] if recipients else [],
            "body": body.group(1).strip() if body else "",
        },
        actions=_email_actions(connected),
    )


def _matches_document(text: str) -> bool:
    return bool(DOCUMENT_PATTERN.search(text))


def _extract_document(text: str, connected: set[str]) -> ContentPreview:
    return ContentPreview(
        type="document",
        fields={"file_name": "Generated Document"},
        actions=[
            Action(key="download_document", label="Download", tool="downloadDocument"),
            Action(key="share_document", label="Share", tool="shareDocument"),
        ],
    )


SOCIAL_POST_DETECTOR = PreviewDetector("content_post", _matches_post, _extract_post)
EMAIL_DETECTOR = PreviewDetector("email", _matches_email, _extract_email)
DOCUMENT_DETECTOR = PreviewDetector("document", _matches_document, _extract_document)

# Order is the priority: a reply that looks like both a post and an email is a post.
DEFAULT_DETECTORS: tuple[PreviewDetector, ...] = (
    SOCIAL_POST_DETECTOR,
    EMAIL_DETECTOR,
    DOCUMENT_DETECTOR,
)


def parse_content_preview(
    reply_text: str,
    connections: Iterable[object] | None = None,
    detectors: Sequence[PreviewDetector] = DEFAULT_DETECTORS,
) -> ContentPreview | None:
    """Detect a structured preview in the reply.

    Preview actions are gated on ``connections`` the same way the action
    extractor gates them, so a preview never offers an unconnected platform.
    """
    text = reply_text or ""
    for detector in detectors:
        if detector.matches(text):
            return detector.extract(text, connected_service_names(connections))
    return None
