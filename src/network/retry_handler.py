"""
Network: Retry Handler

Rejeu des appels backend avec backoff exponentiel.

Les appels Storage/Signer sont synchrones et potentiellement distants:
ils peuvent bloquer et échouer de façon transitoire.
"""

import time
from typing import Any, Callable, Optional, TypeVar

from .interfaces import IRetryHandler, RetryConfig, RetryResult

T = TypeVar("T")


class RetryHandler(IRetryHandler):
    """
    Gestion retries avec backoff exponentiel.

    Example:
        handler = RetryHandler(RetryConfig(max_attempts=3))
        result = handler.execute_with_retry(storage.get, "jti-123")
        if not result.success:
            raise result.last_error
    """

    def __init__(self, default_config: Optional[RetryConfig] = None) -> None:
        """
        Args:
            default_config: Configuration par défaut (optionnel)
        """
        self._default_config = default_config or RetryConfig()

    @property
    def config(self) -> RetryConfig:
        """Configuration par défaut."""
        return self._default_config

    def execute_with_retry(
        self,
        func: Callable[..., T],
        *args: Any,
        config: Optional[RetryConfig] = None,
        **kwargs: Any,
    ) -> RetryResult:
        """
        Exécute func avec backoff exponentiel.

        Backoff: delay = min(initial * (base ^ attempt), max_delay)

        Une erreur non retryable arrête immédiatement les tentatives.

        Returns:
            RetryResult avec succès/échec et détails
        """
        retry_config = config or self._default_config
        last_error: Optional[Exception] = None
        total_delay: float = 0.0

        for attempt in range(retry_config.max_attempts):
            try:
                result = func(*args, **kwargs)

                return RetryResult(
                    success=True,
                    result=result,
                    attempts=attempt + 1,
                    total_delay=total_delay,
                    last_error=None,
                )

            except Exception as e:
                last_error = e

                if not self.is_retryable(e, retry_config):
                    return RetryResult(
                        success=False,
                        result=None,
                        attempts=attempt + 1,
                        total_delay=total_delay,
                        last_error=e,
                    )

                if attempt < retry_config.max_attempts - 1:
                    delay = self.calculate_delay(attempt, retry_config)
                    total_delay += delay
                    time.sleep(delay)

        return RetryResult(
            success=False,
            result=None,
            attempts=retry_config.max_attempts,
            total_delay=total_delay,
            last_error=last_error,
        )

    def calculate_delay(self, attempt: int, config: RetryConfig) -> float:
        """
        Calcule délai backoff exponentiel.

        Formula: min(initial * (base ^ attempt), max_delay)
        """
        delay = config.initial_delay * (config.exponential_base**attempt)
        return min(delay, config.max_delay)

    def is_retryable(self, error: Exception, config: RetryConfig) -> bool:
        """
        Vérifie si exception est retryable.

        Returns:
            True si l'erreur est dans retryable_exceptions ou marquée retryable
        """
        if isinstance(error, config.retryable_exceptions):
            return True
        return getattr(error, "retryable", False) is True
