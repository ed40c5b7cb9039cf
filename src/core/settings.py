"""
Core: Settings

Configuration validée du cycle de vie des jetons.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ..tokens.payload_factory import DEFAULT_REQUIRED_CLAIMS
from ..tokens.interfaces import REGISTERED_CLAIMS
from ..tokens.signer import ASYMMETRIC_ALGORITHMS, SUPPORTED_ALGORITHMS


class TokenSettings(BaseModel):
    """
    Réglages des jetons.

    Attributes:
        issuer: Valeur de iss
        secret: Secret partagé (HS*)
        algorithm: Algorithme JWT
        private_key_path: Clé privée PEM (RS*/ES*)
        public_key_path: Clé publique PEM, dérivée de la privée si absente
        ttl: Durée de vie en minutes, None = jetons sans exp
        refresh_ttl: Fenêtre de refresh en minutes (14 jours)
        grace_period: Grâce blacklist en secondes
        leeway: Tolérance horloge en secondes
        blacklist_enabled: Consultation de la blacklist
        blacklist_key: Claim clé de la blacklist
        required_claims: Claims obligatoires
        storage_retry_attempts: Tentatives par appel stockage (1 = pas de retry)
    """

    model_config = ConfigDict(extra="forbid")

    issuer: Optional[str] = None
    secret: Optional[str] = None
    algorithm: str = "HS256"
    private_key_path: Optional[str] = None
    public_key_path: Optional[str] = None
    ttl: Optional[int] = 60
    refresh_ttl: int = 20160
    grace_period: int = 0
    leeway: int = 0
    blacklist_enabled: bool = True
    blacklist_key: str = "jti"
    required_claims: List[str] = list(DEFAULT_REQUIRED_CLAIMS)
    storage_retry_attempts: int = 1

    @field_validator("algorithm")
    @classmethod
    def _check_algorithm(cls, value: str) -> str:
        value = value.upper()
        if value not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"unsupported algorithm {value}, expected one of {', '.join(SUPPORTED_ALGORITHMS)}")
        return value

    @field_validator("ttl")
    @classmethod
    def _check_ttl(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("ttl must be positive (or null for non-expiring tokens)")
        return value

    @field_validator("refresh_ttl", "grace_period", "leeway")
    @classmethod
    def _check_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @field_validator("storage_retry_attempts")
    @classmethod
    def _check_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @field_validator("blacklist_key")
    @classmethod
    def _check_blacklist_key(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must be a non-empty claim name")
        return value.strip()

    @field_validator("required_claims")
    @classmethod
    def _check_required_claims(cls, value: List[str]) -> List[str]:
        unknown = [claim for claim in value if claim not in REGISTERED_CLAIMS]
        if unknown:
            raise ValueError(f"unknown claims: {', '.join(unknown)}")
        return value

    @model_validator(mode="after")
    def _check_consistency(self) -> "TokenSettings":
        if self.ttl is None and "exp" in self.required_claims:
            if "required_claims" in self.model_fields_set:
                raise ValueError("exp cannot be a required claim when ttl is null")
            self.required_claims = [c for c in self.required_claims if c != "exp"]

        if self.algorithm in ASYMMETRIC_ALGORITHMS:
            if not self.private_key_path:
                raise ValueError(f"private_key_path is required for {self.algorithm}")
        elif not self.secret:
            raise ValueError(f"secret is required for {self.algorithm}")
        return self

    @property
    def is_asymmetric(self) -> bool:
        return self.algorithm in ASYMMETRIC_ALGORITHMS
