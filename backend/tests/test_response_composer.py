from agent.response_composer import (
    ACKNOWLEDGMENTS,
    DEFAULT_CONFIRMATION,
    acknowledgment_category,
    compose_response,
    detect_user_tone,
    format_response,
    generate_acknowledgment,
    generate_next_step_suggestion,
    humanize_tool_result,
)
from agent.types import AgentDomain


def _first(options):
    return options[0]


def test_detect_user_tone_checks_in_order():
    assert detect_user_tone("hey, need this ASAP") == "urgent"
    assert detect_user_tone("hey thanks for the help with that") == "casual"
    assert detect_user_tone("Please prepare the listing packet for me") == "professional"
    assert detect_user_tone("ok do it") == "brief"
    assert detect_user_tone("Can you review my listing description?") == "friendly"


def test_acknowledgment_category_first_match_wins():
    assert acknowledgment_category("schedule a meeting and send an email") == "schedule"
    assert acknowledgment_category("write a caption") == "post"
    assert acknowledgment_category("hello") == "default"


def test_generate_acknowledgment_uses_domain_table():
    ack = generate_acknowledgment("schedule a meeting", "executive_assistant", chooser=_first)
    assert ack == "Got it, I'll set that up for you."
    ack = generate_acknowledgment("create a post", AgentDomain.CONTENT_AGENT, chooser=_first)
    assert ack == "Love it, here's your draft 👇"
    # Categories a domain has no entry for use its default options.
    ack = generate_acknowledgment("upload the contract", "content_agent", chooser=_first)
    assert ack == ACKNOWLEDGMENTS[AgentDomain.CONTENT_AGENT]["default"][0]
    ack = generate_acknowledgment("hmm", "unknown", chooser=_first)
    assert ack == ACKNOWLEDGMENTS[AgentDomain.COPILOT]["default"][0]


def test_next_step_suggestion_lookup():
    assert generate_next_step_suggestion("post_created", "content_agent") == "Want to schedule it or post now?"
    assert generate_next_step_suggestion("post_created", "leads_agent") is None
    assert generate_next_step_suggestion(None, "content_agent") is None


def test_compose_response_joins_parts():
    text = compose_response(
        user_prompt="schedule a meeting",
        agent_type="executive_assistant",
        content="Tuesday at 3pm works.",
        add_suggestion=True,
        action_type="meeting_scheduled",
        chooser=_first,
    )
    assert text == (
        "Got it, I'll set that up for you.\n\n"
        "Tuesday at 3pm works.\n\n"
        "Should I send a confirmation email to the attendees?"
    )
    plain = compose_response(
        user_prompt="x",
        agent_type="copilot",
        content="Just the content.",
        add_acknowledgment=False,
    )
    assert plain == "Just the content."


def test_humanize_tool_result():
    message = humanize_tool_result("sendGoogleEmailTool", {"subject": "Offer update"}, "executive_assistant")
    assert message == (
        'Email sent! I\'ve logged it in your Gmail. (Subject: "Offer update")\n\n'
        "Want me to set a follow-up reminder?"
    )
    message = humanize_tool_result("publishInstagramPostTool", {"platform": "instagram"}, "content_agent")
    assert message.startswith("Posted to Instagram! Your content is live. Your engagement should start rolling in soon.")
    assert message.endswith("Should I create another post for a different platform?")
    assert humanize_tool_result("mysteryTool", None, "copilot") == DEFAULT_CONFIRMATION


def test_format_response_normalizes_spacing():
    raw = "\n\nHere you go:\n\n\n\n-   first\n•second\n* **bold** item\n\n"
    assert format_response(raw) == "Here you go:\n\n- first\n• second\n* **bold** item"
