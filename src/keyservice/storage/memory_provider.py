# Copyright (c) Key-Service Contributors. All rights reserved.
# Licensed under the MIT License.
"""
In-Memory Principal Store.

Simple in-memory implementation for development and testing.
"""

from collections import defaultdict
from typing import Any, Optional

from keyservice.config import StoreLocation
from keyservice.constants import PrincipalType
from keyservice.identity.models import BundleRecord, PrincipalRecord

from .provider import AbstractPrincipalStore


class MemoryPrincipalStore(AbstractPrincipalStore):
    """
    In-memory principal store.

    Documents live in per-partition dictionaries. Each write replaces the
    whole document in a single assignment, so readers never observe a
    half-written record. Data is lost on restart.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._partitions: dict[tuple[str, str], dict[str, dict[str, Any]]] = defaultdict(dict)

    def _partition(self, location: StoreLocation) -> dict[str, dict[str, Any]]:
        return self._partitions[(location.database, location.collection)]

    async def health_check(self) -> bool:
        return True

    async def _put_bundle(self, location: StoreLocation, record: BundleRecord) -> None:
        self._partition(location)[record.user_id] = record.to_document()

    async def _get_bundle(self, location: StoreLocation, user_id: str) -> Optional[BundleRecord]:
        doc = self._partition(location).get(user_id)
        if doc is None:
            return None
        return BundleRecord.from_document(doc)

    async def _put_record(self, location: StoreLocation, record: PrincipalRecord) -> None:
        self._partition(location)[record.principal_id] = record.to_document()

    async def _get_record(
        self,
        location: StoreLocation,
        principal_type: PrincipalType,
        principal_id: str,
    ) -> Optional[PrincipalRecord]:
        doc = self._partition(location).get(principal_id)
        if doc is None:
            return None
        return PrincipalRecord.from_document(principal_type, doc)

    async def _count(self, location: StoreLocation, principal_id: str, key: str, secret: str) -> int:
        return sum(
            1
            for doc in self._partition(location).values()
            if doc["principal_id"] == principal_id
            and doc["key"] == key
            and doc["secret"] == secret
        )
