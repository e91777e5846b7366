from agent.intent_keywords import DEFAULT_TAXONOMY, contains_any, count_matches
from agent.types import AgentDomain


def test_count_matches_counts_each_keyword_once_as_substring():
    assert count_matches("schedule a meeting", ("schedule", "meet", "meeting", "zoom")) == 3
    assert count_matches("", ("schedule",)) == 0


def test_contains_any_is_case_insensitive():
    assert contains_any("Add To Calendar", ("add to calendar",))
    assert not contains_any("nothing here", ("calendar",))


def test_default_taxonomy_covers_rule_domains_in_declaration_order():
    agents = [rules.agent for rules in DEFAULT_TAXONOMY.domains]
    assert agents == [
        AgentDomain.EXECUTIVE_ASSISTANT,
        AgentDomain.CONTENT_AGENT,
        AgentDomain.TRANSACTION_COORDINATOR,
        AgentDomain.LEADS_AGENT,
        AgentDomain.ADVISOR,
    ]
    assert DEFAULT_TAXONOMY.domains[-1].intents[0][0] == "analyze_performance"
