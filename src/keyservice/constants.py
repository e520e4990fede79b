# Copyright (c) Key-Service Contributors. All rights reserved.
# Licensed under the MIT License.
"""Shared constants and the status taxonomy for the key service."""

from enum import Enum


# Credential material
CREDENTIAL_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
PAIR_KEY_LENGTH = 32
BUNDLE_KEY_LENGTH = 25

# Bundle reads accept records generated within this many seconds of now,
# in either direction.
FRESHNESS_WINDOW_SECONDS = 2 * 60 * 60

# HTTP headers
HEADER_USER_ID = "X-User-ID"
HEADER_SERVICE_KEY = "X-Service-Key"


class PrincipalType(str, Enum):
    """Kind of principal a credential is issued to."""

    USER = "user"
    HOOKS = "hooks"
    AGENT = "agent"


class Status(str, Enum):
    """Status string returned by every credential operation."""

    OK = "ok"
    MISSING_SERVICE_KEY = "missing service key"
    INVALID_SERVICE_KEY = "invalid service key"
    MISSING_USER_ID = "missing user id"
    MISSING_COMPANY_ID = "missing company id"
    MISSING_KEY = "missing key"
    NOT_FOUND = "not found"
    NOT_ALLOWED = "not allowed"
    SYSTEM_ERROR = "system error"


__all__ = [
    "CREDENTIAL_ALPHABET",
    "PAIR_KEY_LENGTH",
    "BUNDLE_KEY_LENGTH",
    "FRESHNESS_WINDOW_SECONDS",
    "HEADER_USER_ID",
    "HEADER_SERVICE_KEY",
    "PrincipalType",
    "Status",
]
