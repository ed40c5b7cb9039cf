"""
Tokens

Cycle de vie des jetons signés:
- Encodage d'un ClaimSet en jeton
- Décodage et validation
- Refresh avec révocation du prédécesseur
- Révocation via blacklist (grâce ou définitive)
"""

from .interfaces import (
    # Enums
    ValidationMode,
    # Data classes
    ClaimSet,
    Token,
    # Interfaces
    ISigner,
    IStorage,
    # Constants
    FOREVER,
    REGISTERED_CLAIMS,
)
from .errors import (
    TokenError,
    InvalidTokenError,
    TokenExpiredError,
    TokenBlacklistedError,
    InvalidClaimError,
    BlacklistDisabledError,
    ConfigurationError,
    EncodingError,
    BackendUnavailableError,
)
from .signer import JWTSigner
from .storage import InMemoryStorage, RetryingStorage
from .blacklist import Blacklist
from .payload_factory import PayloadFactory, DEFAULT_REQUIRED_CLAIMS, PROTECTED_CLAIMS
from .manager import TokenManager

__all__ = [
    # Enums
    "ValidationMode",
    # Data classes
    "ClaimSet",
    "Token",
    # Interfaces
    "ISigner",
    "IStorage",
    # Implementations
    "JWTSigner",
    "InMemoryStorage",
    "RetryingStorage",
    "Blacklist",
    "PayloadFactory",
    "TokenManager",
    # Constants
    "FOREVER",
    "REGISTERED_CLAIMS",
    "DEFAULT_REQUIRED_CLAIMS",
    "PROTECTED_CLAIMS",
    # Exceptions
    "TokenError",
    "InvalidTokenError",
    "TokenExpiredError",
    "TokenBlacklistedError",
    "InvalidClaimError",
    "BlacklistDisabledError",
    "ConfigurationError",
    "EncodingError",
    "BackendUnavailableError",
]
