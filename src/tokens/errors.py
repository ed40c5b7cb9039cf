"""
Tokens: Erreurs

Taxonomie des erreurs du cycle de vie des jetons.

Seule BackendUnavailableError est retryable: toutes les autres indiquent
un jeton invalide ou une opération interdite par la politique.
"""

from typing import Dict, Optional


class TokenError(Exception):
    """Erreur de base du cycle de vie des jetons."""

    retryable: bool = False

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidTokenError(TokenError):
    """Jeton malformé ou signature invalide."""

    def __init__(self, message: str = "Token is invalid") -> None:
        super().__init__(message)


class TokenExpiredError(InvalidTokenError):
    """Jeton expiré (ou fenêtre de refresh dépassée)."""

    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message)


class TokenBlacklistedError(InvalidTokenError):
    """Jeton révoqué via la blacklist."""

    def __init__(self, message: str = "The token has been blacklisted") -> None:
        super().__init__(message)


class InvalidClaimError(TokenError):
    """
    Un ou plusieurs claims invalides.

    Attributes:
        violations: claim -> motif, toutes les violations détectées
    """

    def __init__(self, violations: Dict[str, str]) -> None:
        self.violations = dict(violations)
        details = "; ".join(f"{name}: {reason}" for name, reason in self.violations.items())
        super().__init__(f"Invalid claims ({details})")


class BlacklistDisabledError(TokenError):
    """Invalidation demandée alors que la blacklist est désactivée."""

    def __init__(self, message: str = "You must have the blacklist enabled to invalidate a token.") -> None:
        super().__init__(message)


class ConfigurationError(TokenError):
    """Configuration invalide (clé blacklist absente, réglages incohérents)."""

    def __init__(self, message: str, setting: Optional[str] = None) -> None:
        self.setting = setting
        super().__init__(message)


class EncodingError(TokenError):
    """Le signer n'a pas pu encoder les claims."""

    pass


class BackendUnavailableError(TokenError):
    """Échec transport Storage/Signer, peut être rejoué."""

    retryable = True

    def __init__(self, message: str, backend: str = "storage", cause: Optional[BaseException] = None) -> None:
        self.backend = backend
        self.cause = cause
        super().__init__(message)
