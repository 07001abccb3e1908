"""Unresolved placeholder values.

At configuration time some identities (ARNs, names, regions) are not known
yet. They travel as placeholder strings that the surrounding deployment
system substitutes later. A placeholder looks like ``${Token[label.N]}``
and may be embedded in a larger string (``arn:${Token[AWS.Partition.3]}:...``).

Placeholders are never comparable across builds, so anything that derives
a change-detection value must skip them.

Examples:
    >>> arn = Token.placeholder("StateMachine.Arn")
    >>> is_unresolved(arn)
    True
    >>> is_unresolved("arn:aws:states:us-east-1:123456789012:stateMachine:OrderFlow")
    False
"""

from __future__ import annotations

import itertools
import re
from typing import Any

_TOKEN_RE = re.compile(r"\$\{Token\[")
_counter = itertools.count(1)


class Token:
    """Factory for placeholder strings."""

    @staticmethod
    def placeholder(label: str) -> str:
        """Return a new placeholder string tagged with ``label``."""
        return "${Token[%s.%d]}" % (label, next(_counter))

    @staticmethod
    def is_unresolved(value: Any) -> bool:
        return is_unresolved(value)


def is_unresolved(value: Any) -> bool:
    """True when ``value`` is a string carrying a placeholder marker.

    A marker cut short (a prefix slice such as ``"${Token["``) still counts:
    the value is not a literal. ``None`` and non-string values count as
    resolved.
    """
    if not isinstance(value, str):
        return False
    return _TOKEN_RE.search(value) is not None
