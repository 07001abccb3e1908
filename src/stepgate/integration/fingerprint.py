"""Deployment fingerprint for the bound backend.

The deployment system redeploys the API whenever the fingerprint changes
between builds. It is derived from the backend's name:

1. direct handles use their declared name;
2. imported handles use ``"StateMachine-"`` + the first 8 characters of the
   owning deployment unit's address;
3. an unresolved placeholder name yields no fingerprint at all;
4. otherwise the fingerprint is ``json.dumps({"name": name})``.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from stepgate.core.logging import get_logger
from stepgate.core.tokens import is_unresolved as default_is_unresolved
from stepgate.integration.backend import BackendHandle, DirectOrigin, ImportedOrigin

logger = get_logger(__name__)

FALLBACK_NAME_PREFIX = "StateMachine-"
FALLBACK_SEED_LENGTH = 8


def resolve_backend_name(handle: BackendHandle) -> str | None:
    """Name that identifies ``handle`` for redeploy detection."""
    match handle.origin:
        case DirectOrigin(name=name):
            return name
        case ImportedOrigin(fallback_seed=seed):
            return FALLBACK_NAME_PREFIX + seed[:FALLBACK_SEED_LENGTH]


def deployment_fingerprint(
    handle: BackendHandle,
    is_unresolved: Callable[[Any], bool] = default_is_unresolved,
) -> str | None:
    """Fingerprint string for ``handle``, or None when it is not comparable."""
    name = resolve_backend_name(handle)
    if is_unresolved(name):
        logger.debug("fingerprint.omitted", reason="unresolved_name")
        return None

    # an undeclared name is left out, mirroring JSON serialization of undefined
    payload = {} if name is None else {"name": name}
    return json.dumps(payload)
