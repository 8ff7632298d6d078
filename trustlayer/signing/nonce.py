# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Nonce Source - HL-ENC Compliance
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: Millisecond nonces that are unique and strictly increasing per
#          signing address, even when many tasks sign at once
#
# SOVEREIGN MANDATE:
#   - Thread-safe with mutex lock (non-negotiable)
#   - next = max(now_ms, last + 1); a stalled or rewound clock never repeats
#   - One source per address, shared by every client that signs for it
#
# ============================================================================

import threading
import time
from typing import Callable, Dict, Optional


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class NonceSource:
    """
    Timestamp-with-tiebreak nonce generator.

    The venue accepts nonces close to the current time and rejects any it
    has already seen for the signer. Using the wall clock keeps nonces in
    the accepted window; the tiebreak keeps them unique within a process.

    Reliability Level: SOVEREIGN TIER
    Thread Safety: Mutex lock on next_nonce()

    Example Usage:
        nonces = NonceSource.for_address(wallet.get_address())
        nonce = nonces.next_nonce()
    """

    _registry: Dict[str, "NonceSource"] = {}
    _registry_lock = threading.Lock()

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        """
        Args:
            clock: Returns the current time in milliseconds (default: wall clock)
        """
        self._clock = clock or _wall_clock_ms
        self._last = 0
        self._lock = threading.Lock()

    def next_nonce(self) -> int:
        with self._lock:
            candidate = self._clock()
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate

    @property
    def last_issued(self) -> int:
        return self._last

    @classmethod
    def for_address(cls, address: str) -> "NonceSource":
        """Return the process-wide source for a signing address."""
        key = address.lower()
        with cls._registry_lock:
            source = cls._registry.get(key)
            if source is None:
                source = cls()
                cls._registry[key] = source
            return source

    @classmethod
    def reset_registry(cls) -> None:
        """Forget all per-address sources (for testing)."""
        with cls._registry_lock:
            cls._registry.clear()
