"""
keyservice - Credential issuance and validation for internal services

Issues opaque key/secret credentials to users, hooks integrations and
agents, keeps one active record per principal, and authorizes privileged
callers with a small allow-list of static service keys.

Version: 1.0.0
"""

__version__ = "1.0.0"

from .constants import PrincipalType, Status
from .config import KeyServiceConfig, ServiceEndpoint, ServiceName, load_config
from .identity import (
    CredentialBundle,
    PrincipalRecord,
    ServiceKeyGate,
    generate_random_string,
    is_fresh,
    normalize_principal_id,
)
from .storage import AbstractPrincipalStore, MemoryPrincipalStore, create_store
from .services import CredentialService, KeyResult, BundleResult, ValidationResult

from .exceptions import (
    KeyServiceError,
    ConfigurationError,
    InputError,
    AuthorizationError,
    NotFoundError,
    StoreError,
    GenerationError,
)

__all__ = [
    "__version__",
    "PrincipalType",
    "Status",
    "KeyServiceConfig",
    "ServiceEndpoint",
    "ServiceName",
    "load_config",
    "CredentialBundle",
    "PrincipalRecord",
    "ServiceKeyGate",
    "generate_random_string",
    "is_fresh",
    "normalize_principal_id",
    "AbstractPrincipalStore",
    "MemoryPrincipalStore",
    "create_store",
    "CredentialService",
    "KeyResult",
    "BundleResult",
    "ValidationResult",
    "KeyServiceError",
    "ConfigurationError",
    "InputError",
    "AuthorizationError",
    "NotFoundError",
    "StoreError",
    "GenerationError",
]
