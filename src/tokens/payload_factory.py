"""
Tokens: Payload Factory

Construction et validation des ClaimSet.

Le mode de validation (STRICT / REFRESH_EXEMPT) est un argument de
chaque appel: la factory est partagée entre requêtes concurrentes et ne
porte aucun état de flux.
"""

import uuid
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence

from .clock import Clock, now_timestamp
from .errors import ConfigurationError, InvalidClaimError, TokenExpiredError
from .interfaces import REGISTERED_CLAIMS, ClaimSet, ValidationMode

DEFAULT_REQUIRED_CLAIMS = ("iss", "iat", "exp", "nbf", "sub", "jti")

# Claims calculés par la factory, non surchargeables sans permission
PROTECTED_CLAIMS = frozenset({"jti", "iat", "nbf", "exp"})


def generate_jti() -> str:
    """Identifiant unique de jeton (32 caractères hex)."""
    return uuid.uuid4().hex


class PayloadFactory:
    """
    Fabrique de ClaimSet.

    Defaults: iss configuré, iat = nbf = maintenant, exp = maintenant + ttl,
    jti aléatoire. Les claims personnalisés surchargent les defaults.

    Claims obligatoires effectifs: ceux configurés, sans iss tant
    qu'aucun émetteur n'est défini et sans exp tant que ttl est None.

    Example:
        factory = PayloadFactory(issuer="https://auth.example.com", ttl=60)
        claims = factory.make({"sub": "user-1", "role": "admin"})
        factory.validate(claims, ValidationMode.REFRESH_EXEMPT)
    """

    DEFAULT_TTL: int = 60  # minutes
    DEFAULT_REFRESH_TTL: int = 20160  # minutes (14 jours)

    def __init__(
        self,
        issuer: Optional[str] = None,
        ttl: Optional[int] = DEFAULT_TTL,
        refresh_ttl: int = DEFAULT_REFRESH_TTL,
        required_claims: Optional[Sequence[str]] = None,
        leeway: int = 0,
        clock: Optional[Clock] = None,
        id_generator: Optional[Callable[[], str]] = None,
    ):
        """
        Args:
            issuer: Valeur par défaut de iss (None: iss non obligatoire)
            ttl: Durée de vie en minutes, None = pas d'exp
            refresh_ttl: Fenêtre de refresh en minutes depuis iat
            required_claims: Claims obligatoires en mode strict
                (défaut: DEFAULT_REQUIRED_CLAIMS)
            leeway: Tolérance horloge en secondes
            clock: Source de temps (secondes)
            id_generator: Générateur de jti

        Raises:
            ConfigurationError: Réglages incohérents (ex: exp exigé sans ttl)
        """
        self.issuer = issuer
        self._clock = clock or now_timestamp
        self._id_generator = id_generator or generate_jti
        self._ttl: Optional[int] = self.DEFAULT_TTL
        if required_claims is None:
            self._configured_required = DEFAULT_REQUIRED_CLAIMS
            self._explicit_required = False
        else:
            self._configured_required = self._check_required_claims(required_claims, ttl)
            self._explicit_required = True
        self.set_refresh_ttl(refresh_ttl)
        self.set_leeway(leeway)
        self.set_ttl(ttl)

    # ──────────────────────────────────────────────────────────────────────
    # Configuration
    # ──────────────────────────────────────────────────────────────────────

    @property
    def ttl(self) -> Optional[int]:
        return self._ttl

    @property
    def refresh_ttl(self) -> int:
        return self._refresh_ttl

    @property
    def leeway(self) -> int:
        return self._leeway

    @property
    def required_claims(self) -> tuple:
        """Claims obligatoires effectifs (selon issuer et ttl courants)."""
        dropped = set()
        if self.issuer is None:
            dropped.add("iss")
        if self._ttl is None:
            dropped.add("exp")
        return tuple(c for c in self._configured_required if c not in dropped)

    def set_ttl(self, minutes: Optional[int]) -> "PayloadFactory":
        """
        Change la durée de vie. None: plus d'exp, exp n'est plus exigé;
        un ttl non nul exige de nouveau exp s'il est configuré.

        Raises:
            ConfigurationError: ttl <= 0, ou None alors que exp est exigé
                explicitement
        """
        if minutes is None:
            if self._explicit_required and "exp" in self._configured_required:
                raise ConfigurationError("exp cannot be required when ttl is None", setting="ttl")
        elif minutes <= 0:
            raise ConfigurationError(f"TTL must be positive, got {minutes}", setting="ttl")
        self._ttl = minutes
        return self

    def set_refresh_ttl(self, minutes: int) -> "PayloadFactory":
        if minutes < 0:
            raise ConfigurationError(f"Refresh TTL cannot be negative, got {minutes}", setting="refresh_ttl")
        self._refresh_ttl = minutes
        return self

    def set_leeway(self, seconds: int) -> "PayloadFactory":
        if seconds < 0:
            raise ConfigurationError(f"Leeway cannot be negative, got {seconds}", setting="leeway")
        self._leeway = seconds
        return self

    def set_required_claims(self, claims: Iterable[str]) -> "PayloadFactory":
        """
        Raises:
            ConfigurationError: Claim inconnu, ou exp exigé sans ttl
        """
        self._configured_required = self._check_required_claims(claims, self._ttl)
        self._explicit_required = True
        return self

    @staticmethod
    def _check_required_claims(claims: Iterable[str], ttl: Optional[int]) -> tuple:
        required = tuple(claims)
        unknown = [c for c in required if c not in REGISTERED_CLAIMS]
        if unknown:
            raise ConfigurationError(f"Unknown required claims: {', '.join(unknown)}", setting="required_claims")
        if ttl is None and "exp" in required:
            raise ConfigurationError("exp cannot be required when ttl is None", setting="required_claims")
        return required

    # ──────────────────────────────────────────────────────────────────────
    # Construction
    # ──────────────────────────────────────────────────────────────────────

    def make(
        self,
        custom_claims: Optional[Mapping[str, Any]] = None,
        mode: ValidationMode = ValidationMode.STRICT,
        permit: Iterable[str] = (),
    ) -> ClaimSet:
        """
        Construit et valide un ClaimSet.

        Une seule InvalidClaimError liste toutes les violations: claims
        protégés surchargés, types/ordre invalides, claims manquants.

        Args:
            custom_claims: Claims fournis (surchargent les defaults)
            mode: Mode de validation
            permit: Claims protégés autorisés en surcharge (ex: iat au refresh)

        Raises:
            InvalidClaimError: Claims invalides
            TokenExpiredError: Claims déjà expirés (exp permis et dépassé)
        """
        custom = dict(custom_claims or {})
        permitted = set(permit)
        violations: Dict[str, str] = {}

        for name in sorted(custom):
            if name in PROTECTED_CLAIMS and name not in permitted:
                violations[name] = "protected claim cannot be overridden"
                del custom[name]

        now = self._clock()
        claims: Optional[ClaimSet] = None
        try:
            claims = ClaimSet.from_dict({**self._default_claims(now), **custom})
        except InvalidClaimError as e:
            violations.update(e.violations)

        if claims is not None:
            violations.update(self._claim_violations(claims, mode, now))

        if violations:
            raise InvalidClaimError(violations)

        self._check_time_policy(claims, mode, now)
        return claims

    def _default_claims(self, now: int) -> Dict[str, Any]:
        defaults: Dict[str, Any] = {
            "iss": self.issuer,
            "iat": now,
            "nbf": now,
            "jti": self._id_generator(),
        }
        if self._ttl is not None:
            defaults["exp"] = now + self._ttl * 60
        return defaults

    # ──────────────────────────────────────────────────────────────────────
    # Validation
    # ──────────────────────────────────────────────────────────────────────

    def validate(self, claims: ClaimSet, mode: ValidationMode = ValidationMode.STRICT) -> ClaimSet:
        """
        Valide un ClaimSet selon le mode.

        STRICT: claims obligatoires, iat/nbf pas dans le futur, exp non dépassé.
        REFRESH_EXEMPT: exp ni requis ni vérifié; iat + refresh_ttl non dépassé.

        Raises:
            InvalidClaimError: Toutes les violations de claims
            TokenExpiredError: Jeton expiré ou plus rafraîchissable
        """
        now = self._clock()
        violations = self._claim_violations(claims, mode, now)
        if violations:
            raise InvalidClaimError(violations)

        self._check_time_policy(claims, mode, now)
        return claims

    def _claim_violations(self, claims: ClaimSet, mode: ValidationMode, now: int) -> Dict[str, str]:
        violations: Dict[str, str] = {}

        for name in self.required_claims:
            if name == "exp" and mode is ValidationMode.REFRESH_EXEMPT:
                continue
            if not claims.has(name):
                violations[name] = "required claim is missing"

        if claims.iat is not None and claims.iat > now + self._leeway:
            violations["iat"] = "Issued At (iat) timestamp cannot be in the future"
        if claims.nbf is not None and claims.nbf > now + self._leeway:
            violations["nbf"] = "Not Before (nbf) timestamp cannot be in the future"

        return violations

    def _check_time_policy(self, claims: ClaimSet, mode: ValidationMode, now: int) -> None:
        if mode is ValidationMode.REFRESH_EXEMPT:
            self._check_refresh_window(claims, now)
        elif claims.exp is not None and claims.exp <= now - self._leeway:
            raise TokenExpiredError("Token has expired")

    def _check_refresh_window(self, claims: ClaimSet, now: int) -> None:
        if claims.iat is None:
            return
        if claims.iat + self._refresh_ttl * 60 < now - self._leeway:
            raise TokenExpiredError("Token has expired and can no longer be refreshed")
