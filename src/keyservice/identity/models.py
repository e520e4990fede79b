# Copyright (c) Key-Service Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Credential records.

A principal holds either a single key/secret pair (hooks integrations,
agents, users on the RPC surface) or, for users, a bundle of five
sub-service credentials issued together.
"""

import re
from typing import Any

from pydantic import BaseModel, Field

from keyservice.constants import PrincipalType

_NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]")


def normalize_principal_id(principal_id: str) -> str:
    """Strip every character outside ``[A-Za-z0-9]``."""
    return _NON_ALPHANUMERIC.sub("", principal_id)


class PrincipalRecord(BaseModel):
    """A single key/secret pair issued to one principal."""

    principal_id: str = Field(..., description="Stored (normalized) principal identifier")
    principal_type: PrincipalType
    key: str
    secret: str
    generated: int = Field(..., description="Unix seconds at generation time")

    def to_document(self) -> dict[str, Any]:
        """Persisted form: ``{principal_id, generated, key, secret}``."""
        return {
            "principal_id": self.principal_id,
            "generated": self.generated,
            "key": self.key,
            "secret": self.secret,
        }

    @classmethod
    def from_document(cls, principal_type: PrincipalType, doc: dict[str, Any]) -> "PrincipalRecord":
        return cls(principal_type=principal_type, **doc)


class CredentialBundle(BaseModel):
    """Five sub-service credentials issued to a user as one unit."""

    user_service: str
    hooks_service: str
    company_service: str
    billing_service: str
    permissions_service: str

    def values(self) -> tuple[str, ...]:
        return (
            self.user_service,
            self.hooks_service,
            self.company_service,
            self.billing_service,
            self.permissions_service,
        )

    def contains(self, candidate: str) -> bool:
        """True if *candidate* equals any of the five credentials."""
        return bool(candidate) and candidate in self.values()


class BundleRecord(BaseModel):
    """A stored bundle together with its owner and generation time."""

    user_id: str
    generated: int
    keys: CredentialBundle

    def to_document(self) -> dict[str, Any]:
        """Persisted form: ``{user_id, generated, keys: {...}}``."""
        keys = self.keys.model_dump()
        # Stored for schema compatibility; bundles never carry one.
        keys["orchestrator"] = ""
        return {"user_id": self.user_id, "generated": self.generated, "keys": keys}

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "BundleRecord":
        keys = {k: v for k, v in doc["keys"].items() if k in CredentialBundle.model_fields}
        return cls(user_id=doc["user_id"], generated=doc["generated"], keys=CredentialBundle(**keys))
