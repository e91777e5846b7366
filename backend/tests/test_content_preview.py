from agent.content_preview import DEFAULT_DETECTORS, EMAIL_DETECTOR, parse_content_preview


def test_caption_with_hashtag_is_a_post_preview():
    preview = parse_content_preview('Caption: "Check out this home!" #dreamhome', ["instagram", "facebook"])
    assert preview is not None
    assert preview.type == "content_post"
    assert preview.fields["caption"] == "Check out this home!"
    assert preview.fields["hashtags"] == "#dreamhome"
    assert preview.fields["image_url"] is None
    assert [action.key for action in preview.actions] == ["publish_instagram", "publish_facebook", "save_draft"]


def test_post_preview_picks_up_image_url():
    preview = parse_content_preview("Here's the graphic https://cdn.example.com/listing/123.png #justlisted #lakeview")
    assert preview.type == "content_post"
    assert preview.fields["image_url"] == "https://cdn.example.com/listing/123.png"
    assert preview.fields["hashtags"] == "#justlisted #lakeview"


def test_email_preview_fields():
    reply = "Subject: Showing tomorrow\nTo: jane@example.com, bob@example.com\nBody: Hi Jane, see you at 5."
    preview = parse_content_preview(reply, ["google_workspace"])
    assert preview.type == "email"
    assert preview.fields == {
        "subject": "Showing tomorrow",
        "recipients": ["jane@example.com", "bob@example.com"],
        "body": "Hi Jane, see you at 5.",
    }
    payload = preview.to_dict()
    assert payload["type"] == "email"
    assert payload["actions"][0]["tool"] == "sendGoogleEmailTool"
    assert payload["actions"][1] == {
        "key": "edit_email",
        "label": "Edit Email",
        "tool": None,
        "args": {},
        "suggested": False,
        "type": "edit",
    }


def test_post_wins_over_email():
    reply = "Subject: Open house\nTo: a@b.com\nCaption: Come see it #openhouse"
    assert parse_content_preview(reply).type == "content_post"
    assert parse_content_preview(reply, detectors=(EMAIL_DETECTOR,)).type == "email"


def test_document_preview():
    preview = parse_content_preview("Your market report is ready to download.")
    assert preview.type == "document"
    assert preview.fields == {"file_name": "Generated Document"}
    assert [action.key for action in preview.actions] == ["download_document", "share_document"]


def test_plain_reply_has_no_preview():
    assert parse_content_preview("Sounds good, talk soon.") is None
    assert parse_content_preview("Please send it to the buyer today.") is None
    assert parse_content_preview("") is None
    assert len(DEFAULT_DETECTORS) == 3


def test_post_preview_only_offers_connected_platforms():
    reply = 'Caption: "Sunset views from the deck" #lakehouse'
    assert [action.key for action in parse_content_preview(reply).actions] == ["save_draft"]
    connections = [{"service_name": "linkedin", "status": "connected"}, {"service_name": "instagram", "status": "expired"}]
    assert [action.key for action in parse_content_preview(reply, connections).actions] == [
        "publish_linkedin",
        "save_draft",
    ]


def test_email_preview_send_tool_follows_connected_provider():
    reply = "Subject: Showing\nTo: jane@example.com"
    preview = parse_content_preview(reply, ["microsoft_365"])
    assert [(action.key, action.tool) for action in preview.actions] == [
        ("send_email", "sendMicrosoftEmailTool"),
        ("edit_email", None),
    ]
    assert [action.key for action in parse_content_preview(reply).actions] == ["edit_email"]
