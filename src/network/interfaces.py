"""
Network: Interfaces

Contrats pour le rejeu des appels vers les backends (Storage, Signer
distants) avec backoff exponentiel.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")


@dataclass
class RetryConfig:
    """
    Configuration des retries.

    Une erreur est retryable si elle est instance de retryable_exceptions
    ou si elle porte un attribut retryable=True.
    """

    max_attempts: int = 3
    initial_delay: float = 0.1
    max_delay: float = 2.0
    exponential_base: float = 2.0
    retryable_exceptions: tuple = field(
        default_factory=lambda: (ConnectionError, TimeoutError)
    )

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("Retry delays cannot be negative")


@dataclass
class RetryResult:
    """Résultat d'une opération avec retry."""

    success: bool
    result: Optional[Any]
    attempts: int
    total_delay: float
    last_error: Optional[Exception]


class IRetryHandler(ABC):
    """Interface gestion retries."""

    @abstractmethod
    def execute_with_retry(
        self,
        func: Callable[..., T],
        *args: Any,
        config: Optional[RetryConfig] = None,
        **kwargs: Any,
    ) -> RetryResult:
        """
        Exécute func avec retry et backoff exponentiel.

        Returns:
            RetryResult avec succès/échec et détails
        """
        pass

    @abstractmethod
    def calculate_delay(self, attempt: int, config: RetryConfig) -> float:
        """
        Calcule délai backoff exponentiel.

        Args:
            attempt: Numéro de tentative (0-indexed)
            config: Configuration retry

        Returns:
            Délai en secondes
        """
        pass

    @abstractmethod
    def is_retryable(self, error: Exception, config: RetryConfig) -> bool:
        """Vérifie si erreur est retryable."""
        pass
