"""
Tokens: Horloge

Timestamps UTC en secondes entières, injectables pour les tests.
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], int]


def now_timestamp() -> int:
    """Timestamp UTC courant (secondes)."""
    return int(datetime.now(timezone.utc).timestamp())
