"""
Unit Tests for the Nonce Source

Reliability Level: SOVEREIGN TIER

Tests:
- Nonces follow the clock when it advances
- Strictly increasing when the clock stalls or steps backwards
- Unique under concurrent use from many threads
- One shared source per signing address
"""

import os
import sys
import threading
import time

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from trustlayer.signing.nonce import NonceSource


class SteppingClock:
    """Returns a scripted sequence of millisecond readings."""

    def __init__(self, readings):
        self._readings = list(readings)

    def __call__(self) -> int:
        return self._readings.pop(0) if len(self._readings) > 1 else self._readings[0]


@pytest.fixture(autouse=True)
def clean_registry():
    NonceSource.reset_registry()
    yield
    NonceSource.reset_registry()


class TestMonotonic:

    def test_follows_advancing_clock(self):
        source = NonceSource(clock=SteppingClock([1000, 1005, 1010]))
        assert [source.next_nonce() for _ in range(3)] == [1000, 1005, 1010]

    def test_stalled_clock(self):
        source = NonceSource(clock=lambda: 5000)
        assert [source.next_nonce() for _ in range(4)] == [5000, 5001, 5002, 5003]

    def test_clock_stepping_backwards(self):
        source = NonceSource(clock=SteppingClock([9000, 8000, 8500, 9500]))
        assert [source.next_nonce() for _ in range(4)] == [9000, 9001, 9002, 9500]

    def test_last_issued(self):
        source = NonceSource(clock=lambda: 42)
        assert source.last_issued == 0
        source.next_nonce()
        source.next_nonce()
        assert source.last_issued == 43

    def test_wall_clock_default_is_milliseconds(self):
        before = int(time.time() * 1000)
        nonce = NonceSource().next_nonce()
        after = int(time.time() * 1000)
        assert before <= nonce <= after + 1


class TestConcurrency:

    def test_threads_never_share_a_nonce(self):
        source = NonceSource(clock=lambda: 1_700_000_000_000)
        issued = []
        lock = threading.Lock()

        def worker():
            local = [source.next_nonce() for _ in range(500)]
            with lock:
                issued.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(issued) == 4000
        assert len(set(issued)) == 4000
        assert max(issued) == 1_700_000_000_000 + 3999


class TestRegistry:

    def test_same_address_shares_source(self):
        a = NonceSource.for_address("0xABCDEF0000000000000000000000000000000001")
        b = NonceSource.for_address("0xabcdef0000000000000000000000000000000001")
        assert a is b

    def test_different_addresses_are_independent(self):
        a = NonceSource.for_address("0x" + "11" * 20)
        b = NonceSource.for_address("0x" + "22" * 20)
        assert a is not b

    def test_reset_registry(self):
        a = NonceSource.for_address("0x" + "11" * 20)
        NonceSource.reset_registry()
        assert NonceSource.for_address("0x" + "11" * 20) is not a
