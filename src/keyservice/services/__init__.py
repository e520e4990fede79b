"""
Key service orchestration.
"""

from .credential_service import (
    BundleResult,
    CredentialService,
    KeyResult,
    ValidationResult,
)

__all__ = [
    "BundleResult",
    "CredentialService",
    "KeyResult",
    "ValidationResult",
]
