# Copyright (c) Key-Service Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Abstract Principal Store.

Defines the contract every storage backend implements. Each operation
acquires a connection, performs one atomic action and releases the
connection on every exit path. There is no pooling and no retry.

Writes are keyed by the normalized principal identifier. Single-pair
reads and ``count_matching`` use the identifier exactly as supplied.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

from keyservice.config import StoreLocation, StoreLocations
from keyservice.constants import PrincipalType
from keyservice.identity.freshness import is_fresh
from keyservice.identity.models import (
    BundleRecord,
    CredentialBundle,
    PrincipalRecord,
    normalize_principal_id,
)

logger = logging.getLogger(__name__)


class AbstractPrincipalStore(ABC):
    """
    Abstract principal store.

    Backends implement the raw document operations; bundle freshness and
    identifier normalization live here so every backend applies them the
    same way.

    Args:
        locations: Partition (database + collection) per principal type.
        clock: Returns the current unix time; injectable for tests.
    """

    def __init__(
        self,
        locations: Optional[StoreLocations] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.locations = locations or StoreLocations()
        self._clock = clock

    def now(self) -> int:
        """Current unix time in whole seconds."""
        return int(self._clock())

    # Bundle operations

    async def upsert_bundle(self, principal_id: str, bundle: CredentialBundle) -> BundleRecord:
        """Replace or insert the bundle for a user, stamping ``generated = now``."""
        record = BundleRecord(
            user_id=normalize_principal_id(principal_id),
            generated=self.now(),
            keys=bundle,
        )
        await self._put_bundle(self.locations.bundle, record)
        return record

    async def fetch_bundle(self, principal_id: str) -> Optional[CredentialBundle]:
        """Return the user's bundle, or None if it is missing or stale."""
        record = await self._get_bundle(
            self.locations.bundle, normalize_principal_id(principal_id)
        )
        if record is None:
            return None
        if not is_fresh(record.generated, self.now()):
            logger.debug("Bundle for %s is outside the freshness window", record.user_id)
            return None
        return record.keys

    # Single key/secret pair operations

    async def upsert_principal_key(
        self,
        principal_type: PrincipalType,
        principal_id: str,
        key: str,
        secret: str,
    ) -> PrincipalRecord:
        """Replace or insert the key/secret pair for a principal."""
        record = PrincipalRecord(
            principal_id=normalize_principal_id(principal_id),
            principal_type=principal_type,
            key=key,
            secret=secret,
            generated=self.now(),
        )
        await self._put_record(self.locations.for_type(principal_type), record)
        return record

    async def fetch_principal_key(
        self,
        principal_type: PrincipalType,
        principal_id: str,
    ) -> Optional[PrincipalRecord]:
        """Return the stored pair for an exact identifier, ignoring freshness."""
        return await self._get_record(
            self.locations.for_type(principal_type), principal_type, principal_id
        )

    async def count_matching(
        self,
        principal_type: PrincipalType,
        principal_id: str,
        key: str,
        secret: str,
    ) -> int:
        """Count records whose id, key and secret all equal the given values."""
        return await self._count(
            self.locations.for_type(principal_type), principal_id, key, secret
        )

    # Backend hooks

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the storage backend is reachable."""

    async def close(self) -> None:
        """Release backend-wide resources, if any."""

    @abstractmethod
    async def _put_bundle(self, location: StoreLocation, record: BundleRecord) -> None:
        """Atomically replace or insert a bundle document."""

    @abstractmethod
    async def _get_bundle(self, location: StoreLocation, user_id: str) -> Optional[BundleRecord]:
        """Load a bundle document by stored user id."""

    @abstractmethod
    async def _put_record(self, location: StoreLocation, record: PrincipalRecord) -> None:
        """Atomically replace or insert a key/secret document."""

    @abstractmethod
    async def _get_record(
        self,
        location: StoreLocation,
        principal_type: PrincipalType,
        principal_id: str,
    ) -> Optional[PrincipalRecord]:
        """Load a key/secret document by stored principal id."""

    @abstractmethod
    async def _count(self, location: StoreLocation, principal_id: str, key: str, secret: str) -> int:
        """Count exact matches on principal id, key and secret."""
