"""Tests for response rule ordering and selection."""

import pytest

from stepgate.core.errors import RuleOrderError
from stepgate.integration.responses import (
    CLIENT_ERROR_PATTERN,
    DEFAULT_RULES,
    SERVER_ERROR_PATTERN,
    SUCCESS_RULE,
    ResponseMappingRule,
    ResponseRuleSet,
    default_rules,
    server_error_rules,
)
from stepgate.integration.templates import SERVER_ERROR_TEMPLATE_STRICT, SUCCESS_TEMPLATE_STRICT


class TestDefaultRules:
    def test_success_rule_first(self):
        assert DEFAULT_RULES[0].is_default
        assert DEFAULT_RULES[0].status_code == "200"
        assert [r.status_code for r in DEFAULT_RULES] == ["200", "400", "500"]

    def test_patterns(self):
        assert [r.selection_pattern for r in DEFAULT_RULES] == [None, r"4\d{2}", r"5\d{2}"]

    @pytest.mark.parametrize("code", range(400, 500))
    def test_client_pattern_matches_4xx(self, code):
        assert DEFAULT_RULES[1].matches(str(code))

    @pytest.mark.parametrize("signal", ["399", "500", "40", "4000", "1404", "abc"])
    def test_client_pattern_rejects(self, signal):
        assert not DEFAULT_RULES[1].matches(signal)

    @pytest.mark.parametrize("signal,expected", [
        ("200", "200"),
        ("302", "200"),
        ("404", "400"),
        ("429", "400"),
        ("500", "500"),
        ("502", "500"),
        ("600", "200"),
    ])
    def test_select(self, signal, expected):
        assert DEFAULT_RULES.select(signal).status_code == expected

    def test_default_rule_never_matches_itself(self):
        assert not SUCCESS_RULE.matches("200")

    def test_to_list(self):
        entries = DEFAULT_RULES.to_list()
        assert "selectionPattern" not in entries[0]
        assert entries[1]["selectionPattern"] == CLIENT_ERROR_PATTERN
        assert entries[2]["selectionPattern"] == SERVER_ERROR_PATTERN
        assert entries[1]["responseTemplates"] == {"application/json": '{"error": "Bad input!"}'}

    def test_strict_variant(self):
        rules = default_rules(strict=True)
        assert rules[0].response_templates["application/json"] == SUCCESS_TEMPLATE_STRICT
        assert rules[0].is_default
        assert rules[2].response_templates["application/json"] == SERVER_ERROR_TEMPLATE_STRICT
        assert rules != DEFAULT_RULES


class TestRuleSetValidation:
    def test_default_must_be_first(self):
        with pytest.raises(RuleOrderError):
            ResponseRuleSet((*server_error_rules(), SUCCESS_RULE))

    def test_single_default(self):
        with pytest.raises(RuleOrderError):
            ResponseRuleSet((SUCCESS_RULE, SUCCESS_RULE))

    def test_default_required(self):
        with pytest.raises(RuleOrderError):
            ResponseRuleSet(server_error_rules())

    def test_first_match_wins(self):
        rules = ResponseRuleSet((
            SUCCESS_RULE,
            ResponseMappingRule("418", {}, selection_pattern=r"4\d{2}"),
            ResponseMappingRule("400", {}, selection_pattern=r"40\d"),
        ))
        assert rules.select("404").status_code == "418"


class TestRuleImmutability:
    def test_templates_read_only(self):
        with pytest.raises(TypeError):
            SUCCESS_RULE.response_templates["text/plain"] = "x"

    def test_rule_set_is_hashable_and_comparable(self):
        assert default_rules() == DEFAULT_RULES
        assert hash(default_rules()) == hash(DEFAULT_RULES)
