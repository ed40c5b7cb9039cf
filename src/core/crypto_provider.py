"""
Core: Crypto Provider

Chargement des clés de signature des jetons (PEM).
"""

from pathlib import Path
from typing import Any, Optional, Tuple

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization

from ..tokens.errors import ConfigurationError
from .settings import TokenSettings


class KeyProvider:
    """Fournit les clés de signature/vérification selon les réglages."""

    def load_private_key(self, path: str, password: Optional[bytes] = None) -> Any:
        """
        Charge une clé privée PEM.

        Raises:
            ConfigurationError: Fichier absent ou clé illisible
        """
        data = self._read(path, "private_key_path")
        try:
            return serialization.load_pem_private_key(data, password=password)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise ConfigurationError(f"Invalid private key {path}: {e}", setting="private_key_path")

    def load_public_key(self, path: str) -> Any:
        """
        Charge une clé publique PEM.

        Raises:
            ConfigurationError: Fichier absent ou clé illisible
        """
        data = self._read(path, "public_key_path")
        try:
            return serialization.load_pem_public_key(data)
        except (ValueError, UnsupportedAlgorithm) as e:
            raise ConfigurationError(f"Invalid public key {path}: {e}", setting="public_key_path")

    def signing_keys(self, settings: TokenSettings) -> Tuple[Any, Any]:
        """
        Retourne (clé de signature, clé de vérification).

        HS*: le secret pour les deux. RS*/ES*: clé privée et clé publique
        (dérivée de la privée si public_key_path absent).
        """
        if not settings.is_asymmetric:
            return settings.secret, settings.secret

        private_key = self.load_private_key(settings.private_key_path)
        if settings.public_key_path:
            public_key = self.load_public_key(settings.public_key_path)
        else:
            public_key = private_key.public_key()
        return private_key, public_key

    def _read(self, path: str, setting: str) -> bytes:
        key_file = Path(path)
        if not key_file.is_file():
            raise ConfigurationError(f"Key file not found: {path}", setting=setting)
        return key_file.read_bytes()
