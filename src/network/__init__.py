"""
Network

Rejeu des appels backend avec backoff exponentiel.
"""

from .interfaces import (
    # Data classes
    RetryConfig,
    RetryResult,
    # Interfaces
    IRetryHandler,
)
from .retry_handler import RetryHandler

__all__ = [
    # Data classes
    "RetryConfig",
    "RetryResult",
    # Interfaces
    "IRetryHandler",
    # Implementations
    "RetryHandler",
]
