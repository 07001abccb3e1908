"""Execution grants for the API-serving principal.

The front end needs permission to start synchronous executions of exactly one
state machine. The grant is always one literal action on one literal (or
placeholder) resource identity. Wildcards are rejected before anything
reaches the registry.

Key Concepts:
    ExecutionGrant: Frozen (principal, action, resource) triple.
    GrantRegistry: Protocol for the external authorization store. It must
        be additive and idempotent, because every ``bind`` registers again.
    InMemoryGrantRegistry: Set-backed registry used by default and in tests.
    ExecutionRole: Role the API assumes, carrying a single inline
        ``AllowStartSyncExecution`` policy statement.

Tags:
    iam, grants, least-privilege, permissions
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from stepgate.core.errors import PermissionScopeError
from stepgate.core.hashing import compute_hash
from stepgate.core.logging import get_logger
from stepgate.integration.backend import BackendHandle

logger = get_logger(__name__)

START_SYNC_EXECUTION = "states:StartSyncExecution"
POLICY_NAME = "AllowStartSyncExecution"

_WILDCARDS = ("*", "?")


@dataclass(frozen=True)
class ExecutionGrant:
    """One principal allowed one action on one resource."""

    principal: str
    action: str
    resource: str

    @property
    def grant_id(self) -> str:
        """Stable identifier for logs and deduplication."""
        return compute_hash(self.principal, self.action, self.resource, length=12)


@runtime_checkable
class GrantRegistry(Protocol):
    """External authorization store.

    Implementations must treat repeated identical grants as a no-op.
    """

    def grant(self, principal: str, action: str, resource: str) -> ExecutionGrant: ...


class InMemoryGrantRegistry:
    """Additive, idempotent grant store backed by a set."""

    def __init__(self) -> None:
        self._grants: set[ExecutionGrant] = set()

    def grant(self, principal: str, action: str, resource: str) -> ExecutionGrant:
        entry = ExecutionGrant(principal=principal, action=action, resource=resource)
        self._grants.add(entry)
        return entry

    def is_granted(self, principal: str, action: str, resource: str) -> bool:
        return ExecutionGrant(principal, action, resource) in self._grants

    @property
    def grants(self) -> frozenset[ExecutionGrant]:
        return frozenset(self._grants)

    def __len__(self) -> int:
        return len(self._grants)


def _require_literal(field_name: str, value: str) -> None:
    if not value or any(w in value for w in _WILDCARDS):
        raise PermissionScopeError(field_name, value)


def grant_execution(
    registry: GrantRegistry,
    handle: BackendHandle,
    principal: str,
    action: str = START_SYNC_EXECUTION,
) -> ExecutionGrant:
    """Grant ``principal`` the right to run ``action`` on ``handle``.

    Raises:
        PermissionScopeError: principal, action or resource is empty or wildcarded
    """
    try:
        _require_literal("principal", principal)
        _require_literal("action", action)
        _require_literal("resource", handle.invocation_arn)
    except PermissionScopeError as e:
        e.with_context(state_machine_arn=handle.invocation_arn)
        logger.error("grant.rejected", **e.to_dict())
        raise

    entry = registry.grant(principal, action, handle.invocation_arn)
    logger.debug(
        "grant.registered",
        grant_id=entry.grant_id,
        principal=principal,
        action=action,
        resource=handle.invocation_arn,
    )
    return entry


# ---------------------------------------------------------------------------
# Role assumed by the API
# ---------------------------------------------------------------------------


ALLOW = "Allow"


@dataclass(frozen=True)
class PolicyStatement:
    actions: tuple[str, ...]
    resources: tuple[str, ...]
    effect: str = ALLOW

    def to_dict(self) -> dict:
        return {
            "Effect": self.effect,
            "Action": list(self.actions),
            "Resource": list(self.resources),
        }


@dataclass(frozen=True)
class ExecutionRole:
    """Role the API assumes when calling the backend."""

    name: str
    assumed_by: str
    policy_name: str = POLICY_NAME
    statements: tuple[PolicyStatement, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "RoleName": self.name,
            "AssumeRolePolicyDocument": {
                "Statement": [
                    {
                        "Effect": ALLOW,
                        "Principal": {"Service": self.assumed_by},
                        "Action": "sts:AssumeRole",
                    }
                ],
            },
            "Policies": [
                {
                    "PolicyName": self.policy_name,
                    "PolicyDocument": {"Statement": [s.to_dict() for s in self.statements]},
                }
            ],
        }


def execution_role_for(handle: BackendHandle, principal: str) -> ExecutionRole:
    """Build the role the API assumes, scoped to ``handle``'s ARN only."""
    _require_literal("principal", principal)
    _require_literal("resource", handle.invocation_arn)
    statement = PolicyStatement(
        actions=(START_SYNC_EXECUTION,),
        resources=(handle.invocation_arn,),
    )
    return ExecutionRole(
        name=f"{handle.display_name}-apiRole",
        assumed_by=principal,
        statements=(statement,),
    )
