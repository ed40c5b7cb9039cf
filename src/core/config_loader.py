"""
Core: Config Loader

Charge les réglages des jetons depuis YAML + variables d'environnement
et assemble le TokenManager.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from ..network import RetryConfig
from ..tokens.blacklist import Blacklist
from ..tokens.clock import Clock
from ..tokens.errors import ConfigurationError
from ..tokens.interfaces import IStorage
from ..tokens.manager import TokenManager
from ..tokens.payload_factory import PayloadFactory
from ..tokens.signer import JWTSigner
from ..tokens.storage import InMemoryStorage, RetryingStorage
from .crypto_provider import KeyProvider
from .settings import TokenSettings

_NULL_VALUES = ("", "null", "none")


class ConfigLoader:
    """
    Chargement des réglages depuis un fichier YAML.

    Le fichier contient les réglages à la racine ou sous une section
    `tokens:`. Les variables TOKENS_<REGLAGE> surchargent le fichier.

    Example:
        settings = ConfigLoader().load("config/tokens.yaml")
        manager = build_manager(settings)
    """

    ENV_PREFIX = "TOKENS_"

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """
        Args:
            environ: Variables d'environnement (défaut: os.environ)
        """
        self._environ = os.environ if environ is None else environ

    def load(self, path: Union[str, Path]) -> TokenSettings:
        """
        Charge et valide les réglages.

        Raises:
            ConfigurationError: Fichier absent, YAML invalide ou réglage invalide
        """
        config_file = Path(path)

        if not config_file.exists():
            raise ConfigurationError(f"Configuration non trouvée: {config_file}")

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Erreur de parsing YAML: {e}")

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration doit être un objet YAML")

        section = data.get("tokens", data)
        if not isinstance(section, dict):
            raise ConfigurationError("Section 'tokens' doit être un objet YAML")

        return self.from_mapping({**section, **self._from_environment()})

    def from_environment(self) -> TokenSettings:
        """Réglages depuis l'environnement seul."""
        return self.from_mapping(self._from_environment())

    def from_mapping(self, data: Mapping[str, Any]) -> TokenSettings:
        """
        Raises:
            ConfigurationError: Réglage invalide (détail pydantic)
        """
        try:
            return TokenSettings(**dict(data))
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(f"Configuration invalide: {details}")

    def _from_environment(self) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}
        for name in TokenSettings.model_fields:
            raw = self._environ.get(self.ENV_PREFIX + name.upper())
            if raw is None:
                continue
            if raw.strip().lower() in _NULL_VALUES:
                overrides[name] = None
            elif name == "required_claims":
                overrides[name] = [claim.strip() for claim in raw.split(",") if claim.strip()]
            else:
                overrides[name] = raw.strip()
        return overrides


def build_manager(
    settings: TokenSettings,
    storage: Optional[IStorage] = None,
    logger: Optional[Any] = None,
    clock: Optional[Clock] = None,
    key_provider: Optional[KeyProvider] = None,
) -> TokenManager:
    """
    Assemble signer, blacklist, payload factory et manager.

    Args:
        settings: Réglages validés
        storage: Stockage de la blacklist (défaut: InMemoryStorage)
        logger: Logger structuré optionnel
        clock: Source de temps (tests)
        key_provider: Fournisseur de clés (défaut: KeyProvider)

    Raises:
        ConfigurationError: Clés illisibles
    """
    key, verification_key = (key_provider or KeyProvider()).signing_keys(settings)
    signer = JWTSigner(
        key, settings.algorithm, verification_key=verification_key, leeway=settings.leeway, clock=clock
    )

    backend = storage if storage is not None else InMemoryStorage(clock=clock)
    if settings.storage_retry_attempts > 1:
        backend = RetryingStorage(backend, RetryConfig(max_attempts=settings.storage_retry_attempts))

    blacklist = Blacklist(
        backend,
        key=settings.blacklist_key,
        grace_period=settings.grace_period,
        refresh_ttl=settings.refresh_ttl,
        clock=clock,
        logger=logger,
    )
    payload_factory = PayloadFactory(
        issuer=settings.issuer,
        ttl=settings.ttl,
        refresh_ttl=settings.refresh_ttl,
        required_claims=settings.required_claims,
        leeway=settings.leeway,
        clock=clock,
    )
    return TokenManager(
        signer,
        blacklist,
        payload_factory,
        blacklist_enabled=settings.blacklist_enabled,
        logger=logger,
    )
