# vouchers/services/policies.py

"""
EXECUTION POLICIES

Small injectable objects that keep timing and retry rules out of the
executor and coordinator:
- RetryPolicy: how many attempts a voucher gets and the pause between retries
- CallCountThrottle: pause after every N issuer calls (rate limiting)
- StoreLocks: one in-process lock per store so two orders for the same
  store never run their balance check + issuance concurrently
"""

from __future__ import annotations

import threading
import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable

from vouchers.domain.records import VoucherUnitRecord
from vouchers.domain.status import VoucherStatus


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_seconds: float = 0.0
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False, repr=False)

    def can_retry(self, unit: VoucherUnitRecord) -> bool:
        return unit.status == VoucherStatus.FAILED and unit.retry_count < self.max_attempts

    def wait(self) -> None:
        if self.backoff_seconds > 0:
            self.sleep(self.backoff_seconds)


class CallCountThrottle:
    """Sleeps for `pause_seconds` after every `every` recorded calls."""

    def __init__(
        self,
        *,
        every: int = 10,
        pause_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if every <= 0:
            raise ValueError("every must be > 0")
        self.every = every
        self.pause_seconds = pause_seconds
        self._sleep = sleep
        self.calls = 0
        self.pauses = 0

    def record_call(self) -> None:
        self.calls += 1
        if self.calls % self.every == 0 and self.pause_seconds > 0:
            self.pauses += 1
            self._sleep(self.pause_seconds)

    def reset(self) -> None:
        self.calls = 0


class NoThrottle:
    def __init__(self):
        self.calls = 0

    def record_call(self) -> None:
        self.calls += 1

    def reset(self) -> None:
        self.calls = 0


class StoreLocks:
    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = defaultdict(threading.Lock)

    @contextmanager
    def hold(self, store_id):
        with self._guard:
            lock = self._locks[str(store_id)]
        with lock:
            yield
