# Copyright (c) Key-Service Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Credential Generator

Opaque key material drawn uniformly from the 52 ASCII letters using the
operating system's secure random source.
"""

import logging
import secrets

from keyservice.constants import BUNDLE_KEY_LENGTH, CREDENTIAL_ALPHABET, PAIR_KEY_LENGTH
from keyservice.exceptions import GenerationError
from keyservice.identity.models import CredentialBundle

logger = logging.getLogger(__name__)


def generate_random_string(n: int) -> str:
    """Return a string of exactly *n* letters from the credential alphabet.

    Args:
        n: Number of characters, at least 1.

    Raises:
        ValueError: If *n* is less than 1.
        GenerationError: If the secure random source is unavailable.
    """
    if n < 1:
        raise ValueError(f"Credential length must be at least 1, got {n}")
    try:
        return "".join(secrets.choice(CREDENTIAL_ALPHABET) for _ in range(n))
    except (OSError, NotImplementedError) as exc:
        raise GenerationError(f"Secure random source unavailable: {exc}") from exc


def generate_pair(n: int = PAIR_KEY_LENGTH) -> tuple[str, str]:
    """Generate a key and a secret of length *n*."""
    return generate_random_string(n), generate_random_string(n)


def generate_bundle(n: int = BUNDLE_KEY_LENGTH) -> CredentialBundle:
    """Generate all five bundle credentials or fail as a whole.

    The first ``GenerationError`` aborts the batch; no partially filled
    bundle is ever returned.
    """
    fields = list(CredentialBundle.model_fields)
    values = {name: generate_random_string(n) for name in fields}
    logger.debug("Generated credential bundle (%d fields)", len(values))
    return CredentialBundle(**values)
