"""
Observability components for the key service.
"""

from .metrics import KeyServiceMetrics

__all__ = ["KeyServiceMetrics"]
