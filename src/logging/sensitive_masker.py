"""
Logging: Sensitive Masker

Masquage des jetons et secrets avant écriture des logs.
"""

import re
from typing import Any, Dict, List, Optional

from .interfaces import ISensitiveMasker

# header.payload.signature en base64url
_COMPACT_JWT = re.compile(r"^[A-Za-z0-9_-]{8,}\.[A-Za-z0-9_-]{8,}\.[A-Za-z0-9_-]*$")


class SensitiveMasker(ISensitiveMasker):
    """
    Masquage récursif des données sensibles.

    Deux règles:
        - clé contenant un pattern sensible → valeur masquée
        - valeur ayant la forme d'un JWT → masquée quelle que soit la clé

    Example:
        masker = SensitiveMasker()
        masker.mask({"token": "eyJ...", "jti": "abc"})
        # {"token": "***MASKED***", "jti": "abc"}
    """

    def __init__(self, additional_patterns: Optional[List[str]] = None) -> None:
        """
        Args:
            additional_patterns: Patterns supplémentaires à masquer
        """
        self._patterns: List[str] = [p.lower() for p in self.SENSITIVE_PATTERNS]
        for pattern in additional_patterns or []:
            self.add_pattern(pattern)

    @property
    def patterns(self) -> List[str]:
        """Retourne les patterns sensibles configurés."""
        return list(self._patterns)

    def mask(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Masque récursivement toutes les données sensibles.

        Comportement:
            - Clés contenant patterns sensibles → valeur masquée
            - Valeurs dict → récursion
            - Valeurs list → masque chaque élément
            - Valeurs en forme de JWT → masquées
        """
        if not isinstance(data, dict):
            return data

        result: Dict[str, Any] = {}

        for key, value in data.items():
            if self.is_sensitive_key(str(key)):
                result[key] = self.MASK_VALUE
            else:
                result[key] = self._mask_value(value)

        return result

    def _mask_value(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self.mask(value)
        if isinstance(value, (list, tuple)):
            return [self._mask_value(item) for item in value]
        if self.looks_like_token(value):
            return self.MASK_VALUE
        return value

    def is_sensitive_key(self, key: str) -> bool:
        """
        Vérifie si clé contient un pattern sensible (case-insensitive).
        """
        if not key:
            return False

        key_lower = key.lower()
        return any(pattern in key_lower for pattern in self._patterns)

    def looks_like_token(self, value: Any) -> bool:
        return isinstance(value, str) and bool(_COMPACT_JWT.match(value))

    def add_pattern(self, pattern: str) -> None:
        """
        Ajoute pattern sensible personnalisé.

        Raises:
            ValueError: Si pattern vide
        """
        if not pattern or not pattern.strip():
            raise ValueError("Pattern cannot be empty")

        pattern_lower = pattern.lower().strip()
        if pattern_lower not in self._patterns:
            self._patterns.append(pattern_lower)
