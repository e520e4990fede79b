"""
Storage providers for the key service.

Provides the principal store interface and its backends.
"""

from typing import Callable
import time

from keyservice.config import KeyServiceConfig

from .provider import AbstractPrincipalStore
from .memory_provider import MemoryPrincipalStore
from .redis_provider import RedisPrincipalStore
from .sql_provider import SQLPrincipalStore


def create_store(
    config: KeyServiceConfig,
    clock: Callable[[], float] = time.time,
) -> AbstractPrincipalStore:
    """Build the principal store selected by ``config.store.backend``."""
    backend = config.store.backend
    if backend == "redis":
        return RedisPrincipalStore(config.store.redis_url, locations=config.locations, clock=clock)
    if backend == "sql":
        return SQLPrincipalStore(config.store.sql_url, locations=config.locations, clock=clock)
    return MemoryPrincipalStore(locations=config.locations, clock=clock)


__all__ = [
    "AbstractPrincipalStore",
    "MemoryPrincipalStore",
    "RedisPrincipalStore",
    "SQLPrincipalStore",
    "create_store",
]
