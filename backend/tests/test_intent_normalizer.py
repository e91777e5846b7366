from agent import intent_normalizer


def test_normalize_message_strips_fillers_and_whitespace():
    normalized = intent_normalizer.normalize_message("Hey  can you PLEASE schedule a meeting with John tomorrow")
    assert normalized == "schedule a meeting with john tomorrow"


def test_normalize_message_uses_whole_words_only():
    # "likely" and "justify" keep their filler prefixes.
    assert intent_normalizer.normalize_message("Likely justify this") == "likely justify this"


def test_normalize_message_is_idempotent():
    samples = [
        "Hey can um you just post it",
        "can um you",
        "   ",
        "Could you maybe like, schedule a call?",
        "",
    ]
    for sample in samples:
        once = intent_normalizer.normalize_message(sample)
        assert intent_normalizer.normalize_message(once) == once


def test_normalize_message_empty():
    assert intent_normalizer.normalize_message("") == ""


def test_extract_context_platforms_tone_timeframe_topic():
    context = intent_normalizer.extract_context(
        "create a casual instagram and linkedin post about spring open house for first time buyers this week"
    )
    assert context["platforms"] == ["LinkedIn", "Instagram"]
    assert context["tone"] == "casual"
    assert context["timeframe"] == "this_week"
    assert context["topic"] == "spring open house for"
    assert context["target"] == "first time buyers"


def test_extract_context_short_platform_alias_needs_whole_word():
    assert "platforms" not in intent_normalizer.extract_context("a big night out")
    assert intent_normalizer.extract_context("post to ig")["platforms"] == ["Instagram"]


def test_extract_context_daily_frequency():
    assert intent_normalizer.extract_context("send me a daily digest") == {"frequency": "daily"}
