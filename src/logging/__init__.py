"""
Logging

Logging structuré JSON des opérations sur les jetons:
- Champs obligatoires: timestamp, level, correlation_id, message
- Timestamp ISO 8601 UTC
- Niveaux: DEBUG, INFO, WARN, ERROR, CRITICAL
- Jetons et secrets masqués
"""

from .interfaces import (
    # Enums
    LogLevel,
    # Dataclasses
    LogEntry,
    LogConfig,
    # Interfaces
    IStructuredLogger,
    ISensitiveMasker,
)
from .sensitive_masker import (
    SensitiveMasker,
)
from .structured_logger import (
    StructuredLogger,
    ContextualLogger,
    # Exceptions
    MissingRequiredFieldError,
    InvalidLogLevelError,
)

__all__ = [
    # Enums
    "LogLevel",
    # Dataclasses
    "LogEntry",
    "LogConfig",
    # Interfaces
    "IStructuredLogger",
    "ISensitiveMasker",
    # Implementations
    "SensitiveMasker",
    "StructuredLogger",
    "ContextualLogger",
    # Exceptions
    "MissingRequiredFieldError",
    "InvalidLogLevelError",
]
