# Copyright (c) Key-Service Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Service Key Gate

Only the Hooks service and the Orchestrator may invoke privileged
operations. Keys for the other services are configured but are not
members of the allow-list.
"""

import hmac
import logging

from keyservice.config import KeyServiceConfig, ServiceName

logger = logging.getLogger(__name__)

ALLOWED_SERVICES: tuple[ServiceName, ...] = (ServiceName.HOOKS, ServiceName.ORCHESTRATOR)


class ServiceKeyGate:
    """Authorizes callers by exact match against the allow-listed keys.

    The gate only answers yes or no. Callers distinguish a missing key
    from an invalid one by checking for emptiness first. Every allowed
    key is compared in constant time, with no early exit.

    Args:
        config: Configuration supplying the service keys.
    """

    def __init__(self, config: KeyServiceConfig) -> None:
        # Unset keys never match, otherwise "" would authorize.
        self._allowed: tuple[bytes, ...] = tuple(
            key.encode("utf-8")
            for key in (config.service_key(name) for name in ALLOWED_SERVICES)
            if key
        )

    def authorize(self, presented_key: str) -> bool:
        """Return True iff *presented_key* is non-empty and allow-listed."""
        if not presented_key:
            return False
        presented = presented_key.encode("utf-8")
        allowed = False
        for key in self._allowed:
            allowed |= hmac.compare_digest(presented, key)
        if not allowed:
            logger.info("Rejected service key not on the allow-list")
        return allowed
