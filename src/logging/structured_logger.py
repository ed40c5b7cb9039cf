"""
Logging: Structured Logger

Logger JSON structuré des opérations sur les jetons.
"""

import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional, Union

from .interfaces import (
    IStructuredLogger,
    ISensitiveMasker,
    LogConfig,
    LogEntry,
    LogLevel,
)
from .sensitive_masker import SensitiveMasker


class MissingRequiredFieldError(Exception):
    """Champ obligatoire manquant."""

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(f"Required field missing: {field_name}")


class InvalidLogLevelError(Exception):
    """Niveau de log invalide."""

    def __init__(self, level: Any) -> None:
        self.level = level
        super().__init__(f"Invalid log level: {level}")


class StructuredLogger(IStructuredLogger):
    """
    Logger JSON structuré avec champs obligatoires.

    Les entrées sont conservées en mémoire (bornées par max_entries) et
    transmises à output_handler sous forme JSON.

    Example:
        logger = StructuredLogger("tokens")
        logger.set_default_correlation("req-456")
        logger.info("Token refreshed", sub="user-1", jti="abc")
    """

    def __init__(
        self,
        name: str,
        config: Optional[LogConfig] = None,
        masker: Optional[ISensitiveMasker] = None,
        output_handler: Optional[Callable[[str], None]] = None,
    ) -> None:
        """
        Args:
            name: Nom du logger (identifiant composant)
            config: Configuration optionnelle
            masker: Masker pour jetons/secrets
            output_handler: Handler personnalisé pour output

        Raises:
            ValueError: Si name vide
        """
        if not name or not name.strip():
            raise ValueError("Logger name cannot be empty")

        self._name = name.strip()
        self._config = config or LogConfig()
        self._masker = masker or SensitiveMasker()
        self._output_handler = output_handler
        self._entries: Deque[LogEntry] = deque(maxlen=self._config.max_entries)
        self._default_correlation_id: Optional[str] = self._config.default_correlation_id

    @property
    def name(self) -> str:
        """Retourne le nom du logger."""
        return self._name

    @property
    def config(self) -> LogConfig:
        """Retourne la configuration."""
        return self._config

    def set_min_level(self, level: Union[LogLevel, str]) -> None:
        """
        Change le niveau minimum.

        Raises:
            InvalidLogLevelError: Niveau inconnu
        """
        self._config.min_level = self._resolve_level(level)

    def set_default_correlation(self, correlation_id: Optional[str]) -> None:
        """Définit correlation_id par défaut."""
        self._default_correlation_id = correlation_id

    def log(
        self,
        level: Union[LogLevel, str],
        message: str,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ) -> Optional[LogEntry]:
        """
        Crée un log structuré JSON.

        Processus:
            1. Vérifie niveau >= min_level
            2. Résout correlation_id (généré si absent)
            3. Masque jetons et secrets dans extra
            4. Output JSON

        Raises:
            InvalidLogLevelError: Niveau inconnu
            MissingRequiredFieldError: Message vide
        """
        resolved_level = self._resolve_level(level)

        if not self._should_log(resolved_level):
            return None

        if not message:
            raise MissingRequiredFieldError("message")

        resolved_correlation = (
            correlation_id or self._default_correlation_id or str(uuid.uuid4())
        )

        masked_extra: Dict[str, Any] = {}
        if extra and self._config.include_extra:
            if self._config.mask_sensitive:
                masked_extra = self._masker.mask(dict(extra))
            else:
                masked_extra = dict(extra)

        entry = LogEntry(
            timestamp=self._generate_timestamp(),
            level=resolved_level,
            correlation_id=resolved_correlation,
            message=message,
            extra=masked_extra,
            logger_name=self._name,
        )

        self._entries.append(entry)

        if self._output_handler:
            self._output_handler(entry.to_json())

        return entry

    def _resolve_level(self, level: Union[LogLevel, str]) -> LogLevel:
        if isinstance(level, LogLevel):
            return level
        try:
            return LogLevel.from_name(str(level))
        except ValueError:
            raise InvalidLogLevelError(level)

    def _generate_timestamp(self) -> str:
        """Timestamp ISO 8601 UTC avec millisecondes (2024-12-04T14:30:00.123Z)."""
        now = datetime.now(timezone.utc)
        return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"

    def _should_log(self, level: LogLevel) -> bool:
        return LogLevel.get_priority(level) >= LogLevel.get_priority(
            self._config.min_level
        )

    def debug(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.DEBUG, message, **extra)

    def info(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.INFO, message, **extra)

    def warn(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.WARN, message, **extra)

    def error(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.ERROR, message, **extra)

    def critical(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.CRITICAL, message, **extra)

    def get_entries(self) -> List[LogEntry]:
        """Retourne les entrées capturées (tests et débogage)."""
        return list(self._entries)

    def clear_entries(self) -> None:
        """Efface les entrées capturées."""
        self._entries.clear()

    def get_entries_by_level(self, level: LogLevel) -> List[LogEntry]:
        return [e for e in self._entries if e.level == level]

    def with_context(
        self,
        correlation_id: Optional[str] = None,
        **bound: Any,
    ) -> "ContextualLogger":
        """
        Crée un logger avec contexte pré-défini.

        Args:
            correlation_id: ID corrélation pour ce contexte
            **bound: Champs ajoutés à chaque entrée (ex: component="blacklist")
        """
        return ContextualLogger(
            self,
            correlation_id=correlation_id or self._default_correlation_id,
            **bound,
        )


class ContextualLogger:
    """
    Logger avec contexte pré-défini.

    Fixe correlation_id et des champs communs pour éviter de les
    répéter à chaque appel.
    """

    def __init__(
        self,
        logger: StructuredLogger,
        correlation_id: Optional[str] = None,
        **bound: Any,
    ) -> None:
        self._logger = logger
        self._correlation_id = correlation_id
        self._bound = bound

    def log(self, level: LogLevel, message: str, **extra: Any) -> Optional[LogEntry]:
        """Log avec contexte."""
        fields = {**self._bound, **extra}
        return self._logger.log(
            level,
            message,
            correlation_id=self._correlation_id,
            **fields,
        )

    def debug(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.DEBUG, message, **extra)

    def info(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.INFO, message, **extra)

    def warn(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.WARN, message, **extra)

    def error(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.ERROR, message, **extra)

    def critical(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.CRITICAL, message, **extra)
