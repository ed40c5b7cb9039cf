"""
Tokens: Storage

Implémentations du stockage clé-valeur de la blacklist.

Note:
    InMemoryStorage convient à un processus unique (tests, MVP). Un
    stockage partagé (Redis...) implémente IStorage de la même façon.
"""

import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..network import RetryConfig, RetryHandler
from .clock import Clock, now_timestamp
from .errors import BackendUnavailableError
from .interfaces import IStorage


@dataclass
class _StoredValue:
    value: Any
    expires_at: Optional[int]  # None = forever


class InMemoryStorage(IStorage):
    """
    Stockage en mémoire thread-safe avec TTL en minutes.

    Les entrées expirées sont évincées à la lecture.

    Example:
        storage = InMemoryStorage()
        storage.add("jti-1", {"valid_until": 1700000000}, 20161)
        storage.get("jti-1")
    """

    def __init__(self, clock: Optional[Clock] = None):
        """
        Args:
            clock: Source de temps (secondes), défaut: horloge UTC
        """
        self._clock = clock or now_timestamp
        self._data: Dict[Any, _StoredValue] = {}
        self._lock = threading.Lock()

    def add(self, key: Any, value: Any, minutes: int) -> None:
        if minutes < 0:
            raise ValueError(f"TTL cannot be negative, got {minutes}")
        with self._lock:
            self._data[key] = _StoredValue(value, self._clock() + minutes * 60)

    def forever(self, key: Any, value: Any) -> None:
        with self._lock:
            self._data[key] = _StoredValue(value, None)

    def get(self, key: Any) -> Optional[Any]:
        with self._lock:
            stored = self._data.get(key)
            if stored is None:
                return None
            if stored.expires_at is not None and stored.expires_at <= self._clock():
                del self._data[key]
                return None
            return stored.value

    def destroy(self, key: Any) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def flush(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class RetryingStorage(IStorage):
    """
    Décorateur de stockage: rejoue les échecs transitoires.

    ConnectionError/TimeoutError/BackendUnavailableError sont rejoués avec
    backoff; à l'épuisement des tentatives, BackendUnavailableError est levée.
    Les autres erreurs sont propagées telles quelles.
    """

    def __init__(self, inner: IStorage, config: Optional[RetryConfig] = None):
        """
        Args:
            inner: Stockage réel
            config: Politique de retry (défaut: 3 tentatives)
        """
        self._inner = inner
        self._handler = RetryHandler(config or RetryConfig())

    @property
    def inner(self) -> IStorage:
        return self._inner

    def _call(self, operation: str, *args: Any) -> Any:
        result = self._handler.execute_with_retry(getattr(self._inner, operation), *args)
        if result.success:
            return result.result

        error = result.last_error
        if error is not None and not self._handler.is_retryable(error, self._handler.config):
            raise error
        raise BackendUnavailableError(
            f"Storage operation '{operation}' failed after {result.attempts} attempts: {error}",
            backend="storage",
            cause=error,
        )

    def add(self, key: Any, value: Any, minutes: int) -> None:
        self._call("add", key, value, minutes)

    def forever(self, key: Any, value: Any) -> None:
        self._call("forever", key, value)

    def get(self, key: Any) -> Optional[Any]:
        return self._call("get", key)

    def destroy(self, key: Any) -> bool:
        return self._call("destroy", key)

    def flush(self) -> None:
        self._call("flush")
