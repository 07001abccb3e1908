"""Backend handle: the synchronous execution target an API invokes.

A handle is supplied by the caller, referenced (never owned) by an adapter,
and never mutated. Where the handle came from is carried as an explicit
tagged variant, chosen once by the factory that built it:

- ``DirectOrigin(name)`` - the state machine is defined in this deployment,
  so its declared name (possibly a placeholder, possibly ``None``) is known.
- ``ImportedOrigin(fallback_seed)`` - the state machine is referenced from
  outside. Only the owning deployment unit's address is available to seed
  a fallback name.

Example::

    handle = BackendHandle.direct(
        invocation_arn="arn:aws:states:us-east-1:123456789012:stateMachine:OrderFlow",
        name="OrderFlow",
    )

    imported = BackendHandle.imported(
        invocation_arn=Token.placeholder("ImportedArn"),
        stack_path=["OrdersApp", "OrdersStack"],
    )
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Union

from stepgate.core.hashing import construct_address


@dataclass(frozen=True)
class DirectOrigin:
    """Backend defined in the current deployment."""

    name: str | None
    """Declared name; a placeholder or None when not given literally."""


@dataclass(frozen=True)
class ImportedOrigin:
    """Backend referenced from an existing resource."""

    fallback_seed: str
    """Address of the owning deployment unit."""


BackendOrigin = Union[DirectOrigin, ImportedOrigin]


@dataclass(frozen=True)
class BackendHandle:
    """Identity of the backend execution target."""

    invocation_arn: str
    """ARN used to start executions; may be a placeholder."""

    display_name: str
    """Human-facing name; may be a placeholder."""

    stack_address: str
    """Address of the owning deployment unit (fallback naming only)."""

    origin: BackendOrigin

    @property
    def is_imported(self) -> bool:
        return isinstance(self.origin, ImportedOrigin)

    @classmethod
    def direct(
        cls,
        invocation_arn: str,
        name: str | None = None,
        *,
        display_name: str | None = None,
        stack_path: Iterable[str] | str = ("Stack",),
    ) -> BackendHandle:
        """Build a handle for a state machine defined in this deployment."""
        return cls(
            invocation_arn=invocation_arn,
            display_name=display_name or name or invocation_arn,
            stack_address=construct_address(stack_path),
            origin=DirectOrigin(name=name),
        )

    @classmethod
    def imported(
        cls,
        invocation_arn: str,
        *,
        stack_path: Iterable[str] | str | None = None,
        stack_address: str | None = None,
        display_name: str | None = None,
    ) -> BackendHandle:
        """Build a handle for a state machine referenced from elsewhere.

        Exactly one of ``stack_path`` or ``stack_address`` identifies the
        owning deployment unit.
        """
        if (stack_path is None) == (stack_address is None):
            raise ValueError("Provide exactly one of stack_path or stack_address")
        address = stack_address if stack_address is not None else construct_address(stack_path)
        return cls(
            invocation_arn=invocation_arn,
            display_name=display_name or invocation_arn,
            stack_address=address,
            origin=ImportedOrigin(fallback_seed=address),
        )
