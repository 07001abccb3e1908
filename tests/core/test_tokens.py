"""Tests for placeholder detection."""

import pytest

from stepgate.core.tokens import Token, is_unresolved


class TestPlaceholder:
    def test_placeholder_is_unresolved(self):
        assert is_unresolved(Token.placeholder("StateMachine.Name"))

    def test_placeholders_are_unique(self):
        assert Token.placeholder("X") != Token.placeholder("X")

    def test_embedded_placeholder(self):
        arn = "arn:" + Token.placeholder("AWS.Partition") + ":states:us-east-1:1:stateMachine:A"
        assert is_unresolved(arn)

    def test_truncated_placeholder(self):
        assert is_unresolved("StateMachine-" + Token.placeholder("Addr")[:8])

    @pytest.mark.parametrize("value", ["OrderFlow", "", None, 42, "$5 {Token}"])
    def test_literals_are_resolved(self, value):
        assert not is_unresolved(value)

    def test_static_alias(self):
        assert Token.is_unresolved(Token.placeholder("A"))
