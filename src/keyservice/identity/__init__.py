"""
Credential identity primitives.

- Secure credential generation
- Freshness window for bundle reads
- Service key allow-list gate
- Principal and bundle records
"""

from .models import (
    BundleRecord,
    CredentialBundle,
    PrincipalRecord,
    normalize_principal_id,
)
from .generator import generate_bundle, generate_pair, generate_random_string
from .freshness import is_fresh
from .gate import ALLOWED_SERVICES, ServiceKeyGate

__all__ = [
    "BundleRecord",
    "CredentialBundle",
    "PrincipalRecord",
    "normalize_principal_id",
    "generate_bundle",
    "generate_pair",
    "generate_random_string",
    "is_fresh",
    "ALLOWED_SERVICES",
    "ServiceKeyGate",
]
