# Copyright (c) Key-Service Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Credential Service

Create, get and validate credentials per principal type. Every privileged
operation runs the same checks in the same order, which fixes the status
a caller observes:

1. service key empty          -> ``missing service key``
2. service key not allowed    -> ``invalid service key``
3. principal identifier empty -> ``missing user id`` / ``missing company id``

Only then does the operation generate material or touch the store, and it
makes at most one store round trip. Store and generation failures are
logged and reported as ``system error``.
"""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from keyservice.config import KeyServiceConfig
from keyservice.constants import PrincipalType, Status
from keyservice.exceptions import (
    AuthorizationError,
    GenerationError,
    InputError,
    KeyServiceError,
    NotFoundError,
    StoreError,
)
from keyservice.identity.gate import ServiceKeyGate
from keyservice.identity.generator import generate_bundle, generate_pair
from keyservice.identity.models import CredentialBundle
from keyservice.observability.metrics import KeyServiceMetrics
from keyservice.storage.provider import AbstractPrincipalStore

logger = logging.getLogger(__name__)


class KeyResult(BaseModel):
    """Outcome of a single key/secret operation."""

    status: Status = Status.OK
    key: str = ""
    secret: str = ""

    @property
    def ok(self) -> bool:
        return self.status == Status.OK


class BundleResult(BaseModel):
    """Outcome of a bundle operation."""

    status: Status = Status.OK
    bundle: Optional[CredentialBundle] = None

    @property
    def ok(self) -> bool:
        return self.status == Status.OK


class ValidationResult(BaseModel):
    """Outcome of a validation. Never carries stored credentials."""

    status: Status = Status.OK
    valid: bool = Field(default=False)

    @property
    def ok(self) -> bool:
        return self.status == Status.OK


def _missing_id_status(principal_type: PrincipalType) -> Status:
    if principal_type == PrincipalType.USER:
        return Status.MISSING_USER_ID
    return Status.MISSING_COMPANY_ID


class CredentialService:
    """Orchestrates the gate, generator and store for every operation.

    Args:
        config: Read-only configuration, injected once.
        store: Principal store backend.
        metrics: Optional metrics facade.
    """

    def __init__(
        self,
        config: KeyServiceConfig,
        store: AbstractPrincipalStore,
        metrics: Optional[KeyServiceMetrics] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.gate = ServiceKeyGate(config)
        self.metrics = metrics

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _check_access(
        self,
        principal_type: PrincipalType,
        principal_id: str,
        service_key: str,
    ) -> None:
        """Raise the first failing check, in the fixed order."""
        if not service_key:
            raise InputError(Status.MISSING_SERVICE_KEY)
        if not self.gate.authorize(service_key):
            raise AuthorizationError("service key is not allow-listed")
        if not principal_id:
            raise InputError(_missing_id_status(principal_type))

    def _failure_status(self, operation: str, exc: KeyServiceError) -> Status:
        if isinstance(exc, (StoreError, GenerationError)):
            logger.error("%s failed: %s", operation, exc, exc_info=True)
        else:
            logger.info("%s rejected: %s", operation, exc.status.value)
        return exc.status

    def _record(self, operation: str, principal_type: PrincipalType, status: Status) -> None:
        if self.metrics is not None:
            self.metrics.record_operation(operation, principal_type.value, status.value)

    # ------------------------------------------------------------------
    # Key/secret pairs
    # ------------------------------------------------------------------

    async def create_keys(
        self,
        principal_type: PrincipalType,
        principal_id: str,
        service_key: str,
    ) -> KeyResult:
        """Issue a fresh key/secret pair, replacing any existing one."""
        try:
            self._check_access(principal_type, principal_id, service_key)
            key, secret = generate_pair()
            await self.store.upsert_principal_key(principal_type, principal_id, key, secret)
            result = KeyResult(key=key, secret=secret)
        except KeyServiceError as exc:
            result = KeyResult(status=self._failure_status("create_keys", exc))
        self._record("create", principal_type, result.status)
        return result

    async def get_keys(
        self,
        principal_type: PrincipalType,
        principal_id: str,
        service_key: str,
    ) -> KeyResult:
        """Return the stored key for a principal; the secret is withheld."""
        try:
            self._check_access(principal_type, principal_id, service_key)
            record = await self.store.fetch_principal_key(principal_type, principal_id)
            if record is None:
                raise NotFoundError(f"no {principal_type.value} keys for {principal_id}")
            result = KeyResult(key=record.key)
        except KeyServiceError as exc:
            result = KeyResult(status=self._failure_status("get_keys", exc))
        self._record("get", principal_type, result.status)
        return result

    async def validate_keys(
        self,
        principal_type: PrincipalType,
        principal_id: str,
        service_key: str,
        key: str,
        secret: str,
    ) -> ValidationResult:
        """Check a candidate key/secret pair against the stored record."""
        try:
            self._check_access(principal_type, principal_id, service_key)
            count = await self.store.count_matching(principal_type, principal_id, key, secret)
            result = ValidationResult(valid=count >= 1)
        except KeyServiceError as exc:
            result = ValidationResult(status=self._failure_status("validate_keys", exc))
        self._record("validate", principal_type, result.status)
        return result

    # ------------------------------------------------------------------
    # User bundles
    # ------------------------------------------------------------------

    async def create_bundle(self, user_id: str, service_key: str) -> BundleResult:
        """Issue all five sub-service credentials for a user as one unit."""
        try:
            self._check_access(PrincipalType.USER, user_id, service_key)
            bundle = generate_bundle()
            await self.store.upsert_bundle(user_id, bundle)
            result = BundleResult(bundle=bundle)
        except KeyServiceError as exc:
            result = BundleResult(status=self._failure_status("create_bundle", exc))
        self._record("create_bundle", PrincipalType.USER, result.status)
        return result

    async def get_bundle(self, user_id: str, service_key: str) -> BundleResult:
        """Return the user's bundle if one exists within the freshness window."""
        try:
            self._check_access(PrincipalType.USER, user_id, service_key)
            bundle = await self.store.fetch_bundle(user_id)
            if bundle is None:
                raise NotFoundError(f"no fresh bundle for {user_id}")
            result = BundleResult(bundle=bundle)
        except KeyServiceError as exc:
            result = BundleResult(status=self._failure_status("get_bundle", exc))
        self._record("get_bundle", PrincipalType.USER, result.status)
        return result

    async def validate_bundle_key(self, user_id: str, candidate: str) -> ValidationResult:
        """Check whether *candidate* is one of the user's fresh bundle credentials.

        No service key is involved; a missing or stale bundle and a
        non-matching candidate both report ``not allowed``.
        """
        try:
            if not user_id:
                raise InputError(Status.MISSING_USER_ID)
            if not candidate:
                raise InputError(Status.MISSING_KEY)
            bundle = await self.store.fetch_bundle(user_id)
            if bundle is not None and bundle.contains(candidate):
                result = ValidationResult(valid=True)
            else:
                result = ValidationResult(status=Status.NOT_ALLOWED)
        except KeyServiceError as exc:
            result = ValidationResult(status=self._failure_status("validate_bundle_key", exc))
        self._record("validate_bundle", PrincipalType.USER, result.status)
        return result
