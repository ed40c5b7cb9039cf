"""
Tokens: Manager

Orchestration Signer + Blacklist + PayloadFactory:
encode, decode, refresh, invalidate.

Partagé par tous les threads de traitement des requêtes: aucun état
mutable par requête, le mode de validation est passé à chaque appel.
"""

from typing import Any, Mapping, Optional

from .blacklist import Blacklist
from .errors import BlacklistDisabledError, TokenBlacklistedError
from .interfaces import ClaimSet, ISigner, Token, ValidationMode
from .payload_factory import PayloadFactory


class TokenManager:
    """
    Gestionnaire du cycle de vie des jetons.

    Example:
        manager = TokenManager(JWTSigner(secret), Blacklist(storage), PayloadFactory())
        token = manager.encode(manager.payload_factory.make({"sub": "user-1"}))
        claims = manager.decode(token)
        new_token = manager.refresh(token)
        manager.invalidate(new_token)
    """

    def __init__(
        self,
        signer: ISigner,
        blacklist: Blacklist,
        payload_factory: PayloadFactory,
        blacklist_enabled: bool = True,
        logger: Optional[Any] = None,
    ):
        """
        Args:
            signer: Signature/vérification des jetons
            blacklist: Registre de révocation
            payload_factory: Construction/validation des claims
            blacklist_enabled: Consulter la blacklist (décode, refresh, invalidate)
            logger: Logger structuré optionnel
        """
        self._signer = signer
        self._blacklist = blacklist
        self._payload_factory = payload_factory
        self._blacklist_enabled = blacklist_enabled
        self._logger = logger

    @property
    def signer(self) -> ISigner:
        return self._signer

    @property
    def blacklist(self) -> Blacklist:
        return self._blacklist

    @property
    def payload_factory(self) -> PayloadFactory:
        return self._payload_factory

    @property
    def blacklist_enabled(self) -> bool:
        return self._blacklist_enabled

    def set_blacklist_enabled(self, enabled: bool) -> "TokenManager":
        """Active/désactive la consultation de la blacklist."""
        self._blacklist_enabled = bool(enabled)
        return self

    def encode(self, claims: ClaimSet) -> Token:
        """
        Signe un ClaimSet déjà validé.

        Raises:
            EncodingError: Signature impossible
        """
        return Token(self._signer.encode(claims.to_dict()))

    def decode(self, token: Token, mode: ValidationMode = ValidationMode.STRICT) -> ClaimSet:
        """
        Vérifie et décode un jeton.

        Args:
            token: Jeton à décoder
            mode: STRICT, ou REFRESH_EXEMPT pour accepter un jeton expiré

        Raises:
            InvalidTokenError: Signature/structure invalide
            TokenExpiredError: Jeton expiré (STRICT) ou fenêtre de refresh dépassée
            InvalidClaimError: Claims invalides
            TokenBlacklistedError: Jeton révoqué
        """
        payload = self._signer.decode(token.value, verify_exp=mode is ValidationMode.STRICT)
        claims = self._payload_factory.validate(ClaimSet.from_dict(payload), mode)

        if self._blacklist_enabled and self._blacklist.has(claims):
            self._log("warn", "Blacklisted token rejected", jti=claims.jti, sub=claims.sub)
            raise TokenBlacklistedError("The token has been blacklisted")

        return claims

    def refresh(self, token: Token, custom_claims: Optional[Mapping[str, Any]] = None) -> Token:
        """
        Échange un jeton contre un nouveau et révoque l'ancien.

        L'ancien jeton peut être expiré (dans la fenêtre de refresh) mais pas
        révoqué. Il est révoqué sans grâce AVANT l'émission du nouveau: une
        interruption entre les deux laisse au pire l'ancien révoqué sans
        successeur, jamais deux jetons valides.

        Le nouveau jeton conserve sub, iat et les claims personnalisés.

        Args:
            token: Jeton à rafraîchir
            custom_claims: Claims personnalisés ajoutés/remplacés

        Raises:
            TokenBlacklistedError: Ancien jeton déjà révoqué
            TokenExpiredError: Fenêtre de refresh dépassée
        """
        old_claims = self.decode(token, ValidationMode.REFRESH_EXEMPT)

        if self._blacklist_enabled:
            self._blacklist.add(old_claims, grace_period=0)

        carried = dict(old_claims.custom)
        carried.update(custom_claims or {})
        for name in ("sub", "iat"):
            if old_claims.has(name):
                carried[name] = old_claims.get(name)

        new_claims = self._payload_factory.make(carried, permit=("iat",))
        new_token = self.encode(new_claims)

        self._log("info", "Token refreshed", sub=old_claims.sub, old_jti=old_claims.jti, new_jti=new_claims.jti)
        return new_token

    def invalidate(self, token: Token, force_forever: bool = False) -> bool:
        """
        Révoque un jeton.

        Args:
            token: Jeton à révoquer (validation stricte)
            force_forever: Révocation définitive

        Raises:
            BlacklistDisabledError: Blacklist désactivée
        """
        if not self._blacklist_enabled:
            raise BlacklistDisabledError()

        claims = self.decode(token)
        result = self._blacklist.add(claims, permanent=force_forever)

        self._log("info", "Token invalidated", jti=claims.jti, sub=claims.sub, forever=force_forever)
        return result

    def _log(self, level: str, message: str, **extra: Any) -> None:
        if self._logger is not None:
            getattr(self._logger, level)(message, component="manager", **extra)
