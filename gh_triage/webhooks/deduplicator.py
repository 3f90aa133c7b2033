"""At-most-once bookkeeping for webhook deliveries."""

import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import Protocol

DEFAULT_DELIVERY_TTL_SECONDS = 24 * 60 * 60
MIN_DELIVERY_TTL_SECONDS = 1


class RegistrationResult(str, Enum):
    ACCEPTED = "accepted"
    DUPLICATE = "duplicate"


class DeliveryStore(Protocol):
    """Key/TTL store backing the deduplicator."""

    def register_if_first_seen(
        self,
        source: str,
        delivery_id: str,
        received_at_ms: int | None = None,
        ttl_seconds: int = DEFAULT_DELIVERY_TTL_SECONDS,
    ) -> RegistrationResult: ...

    def unregister(self, source: str, delivery_id: str) -> None: ...


def _now_ms() -> int:
    return int(time.time() * 1000)


class DeliveryDeduplicator:
    """Process-local map of delivery keys to expiry times.

    Not shared between processes or replicas. Expired entries are purged
    lazily on each registration.
    """

    def __init__(self, clock: Callable[[], int] = _now_ms):
        """
        Args:
            clock: Returns the current time in epoch milliseconds
        """
        self._clock = clock
        self._expiry_by_key: dict[str, int] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(source: str, delivery_id: str) -> str:
        return f"{source}:{delivery_id}"

    def register_if_first_seen(
        self,
        source: str,
        delivery_id: str,
        received_at_ms: int | None = None,
        ttl_seconds: int = DEFAULT_DELIVERY_TTL_SECONDS,
    ) -> RegistrationResult:
        """Record a delivery unless an unexpired record already exists.

        The expiry baseline is the later of received_at_ms and now, so a
        skewed sender clock cannot expire the record early.
        """
        key = self._key(source, delivery_id)
        ttl_ms = max(int(ttl_seconds), MIN_DELIVERY_TTL_SECONDS) * 1000

        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            if key in self._expiry_by_key:
                return RegistrationResult.DUPLICATE
            baseline = max(received_at_ms or now, now)
            self._expiry_by_key[key] = baseline + ttl_ms
            return RegistrationResult.ACCEPTED

    def unregister(self, source: str, delivery_id: str) -> None:
        with self._lock:
            self._expiry_by_key.pop(self._key(source, delivery_id), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._expiry_by_key)

    def _purge_expired(self, now: int) -> None:
        expired = [k for k, expires in self._expiry_by_key.items() if expires <= now]
        for key in expired:
            del self._expiry_by_key[key]
