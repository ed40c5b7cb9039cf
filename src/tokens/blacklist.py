"""
Tokens: Blacklist

Registre de révocation des jetons, adossé à un IStorage.

Entrées:
    "forever"                  révocation définitive
    {"valid_until": <secondes>} révocation effective à partir de valid_until

valid_until = instant d'ajout + période de grâce: pendant la grâce, le
jeton remplacé reste accepté (requêtes concurrentes d'un même client).
Le TTL de l'entrée couvre la durée de vie du jeton ET sa fenêtre de
refresh, après quoi l'entrée ne sert plus à rien.
"""

from typing import Any, Callable, Optional

from .clock import Clock, now_timestamp
from .errors import BackendUnavailableError, ConfigurationError
from .interfaces import FOREVER, ClaimSet, IStorage


class Blacklist:
    """
    Blacklist des jetons révoqués.

    Example:
        blacklist = Blacklist(InMemoryStorage())
        blacklist.add(claims)
        blacklist.has(claims)  # True
    """

    DEFAULT_KEY: str = "jti"
    DEFAULT_GRACE_PERIOD: int = 0  # secondes
    DEFAULT_REFRESH_TTL: int = 20160  # minutes (14 jours)

    def __init__(
        self,
        storage: IStorage,
        key: str = DEFAULT_KEY,
        grace_period: int = DEFAULT_GRACE_PERIOD,
        refresh_ttl: int = DEFAULT_REFRESH_TTL,
        clock: Optional[Clock] = None,
        logger: Optional[Any] = None,
    ):
        """
        Args:
            storage: Stockage clé-valeur avec TTL
            key: Claim utilisé comme clé de stockage (défaut: jti)
            grace_period: Grâce en secondes avant révocation effective
            refresh_ttl: Fenêtre de refresh en minutes (rétention des entrées)
            clock: Source de temps (secondes)
            logger: Logger structuré optionnel
        """
        self._storage = storage
        self._clock = clock or now_timestamp
        self._logger = logger
        self.set_key(key)
        self.set_grace_period(grace_period)
        self.set_refresh_ttl(refresh_ttl)

    # ──────────────────────────────────────────────────────────────────────
    # Configuration
    # ──────────────────────────────────────────────────────────────────────

    @property
    def key(self) -> str:
        return self._key

    @property
    def grace_period(self) -> int:
        return self._grace_period

    @property
    def refresh_ttl(self) -> int:
        return self._refresh_ttl

    @property
    def storage(self) -> IStorage:
        return self._storage

    def set_key(self, key: str) -> "Blacklist":
        """Change le claim servant de clé de stockage."""
        if not isinstance(key, str) or not key.strip():
            raise ConfigurationError("Blacklist key must be a non-empty claim name", setting="blacklist_key")
        self._key = key.strip()
        return self

    def set_grace_period(self, seconds: int) -> "Blacklist":
        """Change la période de grâce (secondes)."""
        if seconds < 0:
            raise ConfigurationError(f"Grace period cannot be negative, got {seconds}", setting="grace_period")
        self._grace_period = int(seconds)
        return self

    def set_refresh_ttl(self, minutes: int) -> "Blacklist":
        """Change la fenêtre de refresh (minutes)."""
        if minutes < 0:
            raise ConfigurationError(f"Refresh TTL cannot be negative, got {minutes}", setting="refresh_ttl")
        self._refresh_ttl = int(minutes)
        return self

    # ──────────────────────────────────────────────────────────────────────
    # Opérations
    # ──────────────────────────────────────────────────────────────────────

    def get_key(self, claims: ClaimSet) -> Any:
        """
        Valeur du claim clé.

        Raises:
            ConfigurationError: Claim clé absent du ClaimSet
        """
        value = claims.get(self._key)
        if value is None:
            raise ConfigurationError(
                f"Blacklist key claim '{self._key}' is missing from the claim set",
                setting="blacklist_key",
            )
        return value

    def add(self, claims: ClaimSet, permanent: bool = False, grace_period: Optional[int] = None) -> bool:
        """
        Révoque un jeton.

        Sans exp (ou permanent=True): révocation définitive. Sinon entrée
        {"valid_until": now + grâce} avec un TTL couvrant exp et la fenêtre
        de refresh. Un jeton déjà expiré est accepté.

        Args:
            claims: Claims du jeton à révoquer
            permanent: Révocation définitive
            grace_period: Grâce spécifique à cet ajout (0 = immédiat)

        Returns:
            True

        Raises:
            ConfigurationError: Claim clé absent
            BackendUnavailableError: Stockage indisponible
        """
        key = self.get_key(claims)

        if permanent or claims.exp is None:
            self._call(self._storage.forever, key, FOREVER)
            self._log("info", "Token blacklisted forever", claim=self._key, value=key)
            return True

        grace = self._grace_period if grace_period is None else grace_period
        if grace < 0:
            raise ConfigurationError(f"Grace period cannot be negative, got {grace}", setting="grace_period")

        now = self._clock()
        minutes = self._minutes_until_irrelevant(claims, now)
        self._call(self._storage.add, key, {"valid_until": now + grace}, minutes)
        self._log("info", "Token blacklisted", claim=self._key, value=key, valid_until=now + grace, ttl_minutes=minutes)
        return True

    def add_forever(self, claims: ClaimSet) -> bool:
        """Révoque définitivement un jeton."""
        return self.add(claims, permanent=True)

    def has(self, claims: ClaimSet) -> bool:
        """
        True si le jeton est révoqué.

        "forever" → True. Sinon True dès que valid_until est atteint.
        Une entrée illisible est traitée comme révoquée.
        """
        entry = self._call(self._storage.get, self.get_key(claims))

        if entry is None:
            return False
        if entry == FOREVER:
            return True

        valid_until = entry.get("valid_until") if isinstance(entry, dict) else None
        if isinstance(valid_until, bool) or not isinstance(valid_until, (int, float)):
            return True

        return valid_until <= self._clock()

    def remove(self, claims: ClaimSet) -> bool:
        """Retire un jeton de la blacklist (résultat du stockage)."""
        return self._call(self._storage.destroy, self.get_key(claims))

    def clear(self) -> bool:
        """Vide la blacklist. Idempotent."""
        self._call(self._storage.flush)
        self._log("warn", "Blacklist cleared")
        return True

    # ──────────────────────────────────────────────────────────────────────
    # Interne
    # ──────────────────────────────────────────────────────────────────────

    def _minutes_until_irrelevant(self, claims: ClaimSet, now: int) -> int:
        """Minutes jusqu'à max(exp, iat + refresh_ttl) + 1 minute."""
        issued_at = claims.iat if claims.iat is not None else now
        cutoff = issued_at + self._refresh_ttl * 60
        if claims.exp is not None:
            cutoff = max(cutoff, claims.exp)
        return max(1, (cutoff + 60 - now) // 60)

    def _call(self, operation: Callable[..., Any], *args: Any) -> Any:
        try:
            return operation(*args)
        except BackendUnavailableError:
            raise
        except OSError as e:
            self._log("error", "Blacklist storage unavailable", error=str(e))
            raise BackendUnavailableError(f"Blacklist storage unavailable: {e}", backend="storage", cause=e) from e

    def _log(self, level: str, message: str, **extra: Any) -> None:
        if self._logger is not None:
            getattr(self._logger, level)(message, component="blacklist", **extra)
