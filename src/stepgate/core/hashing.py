"""
Deterministic hashing utilities.

Two helpers:

- ``compute_hash()`` - SHA-256 over ``|``-joined values, truncated.
- ``construct_address()`` - the stable address of a deployment unit derived
  from its construct path. Imported backends have no literal name of their
  own, so their fallback name is seeded from the owning unit's address.

Address Scheme:
    ┌────────────────────────────────────────────────────────────┐
    │ path = ("OrdersApp", "OrdersStack")                        │
    │                                                            │
    │ sha1("OrdersApp\\nOrdersStack\\n")  ("Default" skipped)     │
    │ address = "c8" + hexdigest          (42 chars)             │
    └────────────────────────────────────────────────────────────┘

Examples:
    >>> len(construct_address(["OrdersApp", "OrdersStack"]))
    42
    >>> construct_address(["App", "Default", "Stack"]) == construct_address(["App", "Stack"])
    True

Tags:
    hashing, addressing, fingerprint, stepgate
"""

import hashlib
from collections.abc import Iterable
from typing import Any

ADDRESS_PREFIX = "c8"


def compute_hash(*values: Any, length: int = 32) -> str:
    """
    Compute deterministic hash from values.

    Examples:
        >>> compute_hash("a", "b") != compute_hash("b", "a")
        True
        >>> len(compute_hash("test", length=16))
        16

    Args:
        *values: Values to hash (converted to strings)
        length: Hex digest length (default 32 = 128 bits)

    Returns:
        Hex string of specified length
    """
    content = "|".join(str(v) for v in values)
    return hashlib.sha256(content.encode()).hexdigest()[:length]


def construct_address(path: Iterable[str] | str) -> str:
    """
    Compute the address of a deployment unit from its construct path.

    ``path`` is either a sequence of path components or a ``/``-separated
    string. Components named ``Default`` do not contribute, so wrapping a
    construct in a ``Default`` child keeps its address.

    Args:
        path: Construct path components

    Returns:
        42-char address string (``c8`` + SHA-1 hex digest)
    """
    if isinstance(path, str):
        path = [part for part in path.split("/") if part]

    digest = hashlib.sha1()
    for component in path:
        if component == "Default":
            continue
        digest.update(component.encode())
        digest.update(b"\n")
    return ADDRESS_PREFIX + digest.hexdigest()
