# Copyright (c) Key-Service Contributors. All rights reserved.
# Licensed under the MIT License.
"""Centralized exception hierarchy for the key service.

All exceptions inherit from KeyServiceError and carry the ``Status`` an
operation reports when it ends with that error. Input, authorization and
not-found errors are expected per-request outcomes; store and generation
errors are internal failures.
"""

from keyservice.constants import Status


class KeyServiceError(Exception):
    """Base exception for all key service errors."""

    status: Status = Status.SYSTEM_ERROR


class ConfigurationError(KeyServiceError):
    """Configuration could not be loaded or failed validation."""


class InputError(KeyServiceError):
    """A required identifier or service key was not supplied."""

    def __init__(self, status: Status, message: str = "") -> None:
        super().__init__(message or status.value)
        self.status = status


class AuthorizationError(KeyServiceError):
    """A service key was presented but is not on the allow-list."""

    status = Status.INVALID_SERVICE_KEY


class NotFoundError(KeyServiceError):
    """No record exists for the principal, or the record is stale."""

    status = Status.NOT_FOUND


class StoreError(KeyServiceError):
    """The storage backend failed (connection or I/O)."""


class GenerationError(KeyServiceError):
    """The secure random source was unavailable."""


__all__ = [
    "KeyServiceError",
    "ConfigurationError",
    "InputError",
    "AuthorizationError",
    "NotFoundError",
    "StoreError",
    "GenerationError",
]
