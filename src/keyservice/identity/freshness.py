# Copyright (c) Key-Service Contributors. All rights reserved.
# Licensed under the MIT License.
"""Freshness window for bundle reads."""

from keyservice.constants import FRESHNESS_WINDOW_SECONDS


def is_fresh(
    generated: int,
    now: int,
    window_seconds: int = FRESHNESS_WINDOW_SECONDS,
) -> bool:
    """Return True if *generated* lies within ``[now - window, now + window]``.

    The window is inclusive on both ends and symmetric, so records stamped
    slightly in the future by a skewed clock are still accepted.
    """
    return now - window_seconds <= generated <= now + window_seconds
