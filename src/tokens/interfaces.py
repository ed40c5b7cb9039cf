"""
Tokens: Interfaces

Définit les contrats du cycle de vie des jetons (Signer, Storage)
et les objets valeur partagés (ClaimSet, Token, ValidationMode).
Toute implémentation DOIT respecter ces interfaces.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from .errors import InvalidClaimError, InvalidTokenError


# ══════════════════════════════════════════════════════════════════════════════
# TYPES
# ══════════════════════════════════════════════════════════════════════════════


REGISTERED_CLAIMS = ("sub", "iss", "iat", "nbf", "exp", "jti")
TIMESTAMP_CLAIMS = ("iat", "nbf", "exp")

# Valeur stockée pour une révocation définitive
FOREVER = "forever"


class ValidationMode(Enum):
    """
    Mode de validation passé explicitement à chaque decode/validate.

    STRICT: expiration appliquée (défaut)
    REFRESH_EXEMPT: jeton expiré accepté, seule la fenêtre de refresh compte
    """

    STRICT = "strict"
    REFRESH_EXEMPT = "refresh_exempt"


def _to_timestamp(value: Any) -> Optional[int]:
    """Normalise un timestamp (int ou float en secondes), None si invalide."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return None


@dataclass(frozen=True)
class ClaimSet:
    """
    Ensemble de claims typé et immuable.

    Attributes:
        jti: Identifiant unique du jeton (clé blacklist par défaut)
        sub: Sujet (valeur opaque)
        iss: Émetteur
        iat: Émis à (secondes)
        nbf: Pas avant (secondes)
        exp: Expiration (secondes), None = n'expire jamais
        custom: Claims additionnels (lecture seule)

    Raises:
        InvalidClaimError: Toutes les violations détectées à la construction
    """

    jti: str
    sub: Any = None
    iss: Optional[str] = None
    iat: Optional[int] = None
    nbf: Optional[int] = None
    exp: Optional[int] = None
    custom: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        violations: Dict[str, str] = {}

        if not isinstance(self.jti, str) or not self.jti:
            violations["jti"] = "must be a non-empty string"

        if self.iss is not None and not isinstance(self.iss, str):
            violations["iss"] = "must be a string"

        for name in TIMESTAMP_CLAIMS:
            value = getattr(self, name)
            if value is None:
                continue
            timestamp = _to_timestamp(value)
            if timestamp is None:
                violations[name] = "must be an integer timestamp"
            else:
                object.__setattr__(self, name, timestamp)

        for name in self.custom:
            if name in REGISTERED_CLAIMS:
                violations[name] = "registered claim cannot be passed as a custom claim"

        if not violations:
            violations.update(self._check_ordering())

        if violations:
            raise InvalidClaimError(violations)

        object.__setattr__(self, "custom", MappingProxyType(dict(self.custom)))

    def _check_ordering(self) -> Dict[str, str]:
        """Vérifie exp > nbf >= iat sur les claims présents."""
        violations: Dict[str, str] = {}
        if self.nbf is not None and self.iat is not None and self.nbf < self.iat:
            violations["nbf"] = "Not Before (nbf) cannot precede Issued At (iat)"
        if self.exp is not None:
            lower = self.nbf if self.nbf is not None else self.iat
            if lower is not None and self.exp <= lower:
                violations["exp"] = "Expiration (exp) must be after Not Before (nbf)"
        return violations

    @classmethod
    def from_dict(cls, claims: Mapping[str, Any]) -> "ClaimSet":
        """Construit depuis un mapping plat (sortie du signer)."""
        custom = {name: value for name, value in claims.items() if name not in REGISTERED_CLAIMS}
        return cls(
            jti=claims.get("jti"),
            sub=claims.get("sub"),
            iss=claims.get("iss"),
            iat=claims.get("iat"),
            nbf=claims.get("nbf"),
            exp=claims.get("exp"),
            custom=custom,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Mapping plat transmis au signer (claims absents omis)."""
        result: Dict[str, Any] = {}
        for name in REGISTERED_CLAIMS:
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        result.update(self.custom)
        return result

    def has(self, name: str) -> bool:
        """True si le claim est présent."""
        if name in REGISTERED_CLAIMS:
            return getattr(self, name) is not None
        return name in self.custom

    def get(self, name: str, default: Any = None) -> Any:
        """Valeur d'un claim par nom, default si absent."""
        if not self.has(name):
            return default
        if name in REGISTERED_CLAIMS:
            return getattr(self, name)
        return self.custom[name]

    def __getitem__(self, name: str) -> Any:
        if not self.has(name):
            raise KeyError(name)
        return self.get(name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)


@dataclass(frozen=True)
class Token:
    """Jeton signé opaque, immuable."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise InvalidTokenError("Token must be a non-empty string")
        object.__setattr__(self, "value", self.value.strip())

    @classmethod
    def from_header(cls, header: str) -> "Token":
        """Extrait le jeton d'un header Authorization (préfixe Bearer optionnel)."""
        if not isinstance(header, str):
            raise InvalidTokenError("Authorization header must be a string")
        parts = header.split(None, 1)
        if parts and parts[0].lower() == "bearer":
            return cls(parts[1] if len(parts) > 1 else "")
        return cls(header)

    def __str__(self) -> str:
        return self.value


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class ISigner(ABC):
    """Signature/vérification de jetons (primitive opaque)."""

    @abstractmethod
    def encode(self, claims: Dict[str, Any]) -> str:
        """
        Signe un mapping de claims.

        Raises:
            EncodingError: Encodage impossible
        """
        pass

    @abstractmethod
    def decode(self, token: str, verify_exp: bool = True) -> Dict[str, Any]:
        """
        Vérifie et décode un jeton.

        Args:
            token: Jeton brut
            verify_exp: False pendant un refresh (jeton expiré accepté)

        Raises:
            InvalidTokenError: Signature ou structure invalide
            TokenExpiredError: exp dépassé (si verify_exp)
        """
        pass


class IStorage(ABC):
    """
    Stockage clé-valeur avec TTL par clé.

    Les valeurs sont opaques pour le stockage. Chaque opération est
    atomique au niveau de la clé.
    """

    @abstractmethod
    def add(self, key: Any, value: Any, minutes: int) -> None:
        """Stocke value sous key pendant minutes."""
        pass

    @abstractmethod
    def forever(self, key: Any, value: Any) -> None:
        """Stocke value sous key sans expiration."""
        pass

    @abstractmethod
    def get(self, key: Any) -> Optional[Any]:
        """Valeur stockée, None si absente ou expirée."""
        pass

    @abstractmethod
    def destroy(self, key: Any) -> bool:
        """Supprime key, True si une entrée existait."""
        pass

    @abstractmethod
    def flush(self) -> None:
        """Supprime toutes les entrées."""
        pass
