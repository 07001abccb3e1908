"""Response mapping rules: backend status → HTTP status.

A rule set is an ordered, immutable sequence. The default rule (no
selection pattern) must come first; the pattern rules follow in declaration
order and the first full match wins. When nothing matches, the default rule
applies. Patterns are anchored at both ends, as Java's ``String.matches``
does, so ``4\\d{2}`` matches ``404`` but not ``1404``.

Example::

    >>> DEFAULT_RULES.select("502").status_code
    '500'
    >>> DEFAULT_RULES.select("200").selection_pattern is None
    True
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from stepgate.core.errors import RuleOrderError
from stepgate.integration.templates import (
    CLIENT_ERROR_TEMPLATE,
    JSON_CONTENT_TYPE,
    SERVER_ERROR_TEMPLATE,
    SERVER_ERROR_TEMPLATE_STRICT,
    SUCCESS_TEMPLATE,
    SUCCESS_TEMPLATE_STRICT,
)

CLIENT_ERROR_PATTERN = r"4\d{2}"
SERVER_ERROR_PATTERN = r"5\d{2}"


@dataclass(frozen=True)
class ResponseMappingRule:
    """One integration response."""

    status_code: str
    """HTTP status code emitted when the rule is selected."""

    response_templates: Mapping[str, str] = field(default_factory=dict, hash=False)
    """Body template per content type."""

    selection_pattern: str | None = None
    """Regex over the backend's status signal; None marks the default rule."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "response_templates", MappingProxyType(dict(self.response_templates)))

    @property
    def is_default(self) -> bool:
        return self.selection_pattern is None

    def matches(self, signal: str) -> bool:
        """True when the pattern matches the entire ``signal``."""
        if self.selection_pattern is None:
            return False
        return re.fullmatch(self.selection_pattern, signal) is not None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "statusCode": self.status_code,
            "responseTemplates": dict(self.response_templates),
        }
        if self.selection_pattern is not None:
            result["selectionPattern"] = self.selection_pattern
        return result


class ResponseRuleSet:
    """Ordered, validated collection of ``ResponseMappingRule``."""

    def __init__(self, rules: Iterable[ResponseMappingRule]):
        self._rules = tuple(rules)
        defaults = [i for i, rule in enumerate(self._rules) if rule.is_default]
        if defaults != [0]:
            raise RuleOrderError(
                "Exactly one default rule is required and it must be declared first"
            ).with_context(default_positions=defaults, rule_count=len(self._rules))

    @property
    def default(self) -> ResponseMappingRule:
        return self._rules[0]

    @property
    def pattern_rules(self) -> tuple[ResponseMappingRule, ...]:
        return self._rules[1:]

    def select(self, signal: str) -> ResponseMappingRule:
        """Pick the rule for a backend status signal."""
        for rule in self.pattern_rules:
            if rule.matches(signal):
                return rule
        return self.default

    def to_list(self) -> list[dict[str, Any]]:
        return [rule.to_dict() for rule in self._rules]

    def __iter__(self) -> Iterator[ResponseMappingRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __getitem__(self, index: int) -> ResponseMappingRule:
        return self._rules[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResponseRuleSet):
            return NotImplemented
        return self._rules == other._rules

    def __hash__(self) -> int:
        return hash(self._rules)

    def __repr__(self) -> str:
        return f"ResponseRuleSet({[r.status_code for r in self._rules]!r})"


def success_rule(strict: bool = False) -> ResponseMappingRule:
    """The default rule; ``strict`` emits a failed run's error and cause as JSON values."""
    template = SUCCESS_TEMPLATE_STRICT if strict else SUCCESS_TEMPLATE
    return ResponseMappingRule(status_code="200", response_templates={JSON_CONTENT_TYPE: template})


SUCCESS_RULE = success_rule()


def server_error_rules(strict: bool = False) -> tuple[ResponseMappingRule, ...]:
    """The two pattern rules, 4xx then 5xx.

    ``strict`` swaps the 5xx body fragment for a well-formed JSON object.
    """
    server_template = SERVER_ERROR_TEMPLATE_STRICT if strict else SERVER_ERROR_TEMPLATE
    return (
        ResponseMappingRule(
            status_code="400",
            response_templates={JSON_CONTENT_TYPE: CLIENT_ERROR_TEMPLATE},
            selection_pattern=CLIENT_ERROR_PATTERN,
        ),
        ResponseMappingRule(
            status_code="500",
            response_templates={JSON_CONTENT_TYPE: server_template},
            selection_pattern=SERVER_ERROR_PATTERN,
        ),
    )


def default_rules(strict: bool = False) -> ResponseRuleSet:
    """Success rule followed by the 4xx/5xx rules.

    ``strict`` makes every error body well-formed JSON.
    """
    return ResponseRuleSet((success_rule(strict), *server_error_rules(strict)))


DEFAULT_RULES = default_rules()
