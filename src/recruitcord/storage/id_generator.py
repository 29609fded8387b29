"""
Opaque record id generation.

Ids are the base-36 millisecond timestamp followed by six random base-36
characters. The timestamp part never goes backwards within a process, and the
generator only has to remember ids for the current millisecond (and supplied
ids stamped later) for a repeat to be regenerated instead of returned.
"""

from __future__ import annotations

import secrets
import threading
import time
from typing import Callable, Set

ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
RANDOM_LENGTH = 6


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(ALPHABET[remainder])
    return "".join(reversed(digits))


class IdGenerator:
    """Monotonic-time plus random-suffix id source with a per-process guard."""

    def __init__(
        self,
        clock: Callable[[], int] = time.time_ns,
        random_part: Callable[[], str] | None = None,
    ) -> None:
        self._clock = clock
        self._random_part = random_part or self._default_random_part
        self._last_ms = 0
        # ids taken for _last_ms; earlier timestamps can no longer be produced
        self._issued: Set[str] = set()
        # supplied ids with a timestamp still ahead of _last_ms
        self._reserved: Set[str] = set()
        self._lock = threading.Lock()

    @staticmethod
    def _default_random_part() -> str:
        return "".join(secrets.choice(ALPHABET) for _ in range(RANDOM_LENGTH))

    def generate(self) -> str:
        """Return an id this generator has never returned before."""
        with self._lock:
            while True:
                now_ms = self._clock() // 1_000_000
                if now_ms > self._last_ms:
                    self._advance(now_ms)
                candidate = to_base36(self._last_ms) + self._random_part()
                if candidate not in self._issued:
                    self._issued.add(candidate)
                    return candidate

    def reserve(self, record_id: str) -> None:
        """Remember an externally supplied id so it is never generated."""
        with self._lock:
            timestamp = timestamp_of(record_id)
            if timestamp is None or timestamp < self._last_ms:
                return
            if timestamp == self._last_ms:
                self._issued.add(record_id)
            else:
                self._reserved.add(record_id)

    def _advance(self, now_ms: int) -> None:
        self._last_ms = now_ms
        self._issued = {rid for rid in self._reserved if timestamp_of(rid) == now_ms}
        self._reserved = {rid for rid in self._reserved if timestamp_of(rid) > now_ms}


def timestamp_of(record_id: str) -> int | None:
    """Millisecond part of an id this module could generate, else None."""
    prefix = record_id[:-RANDOM_LENGTH]
    if not prefix or any(char not in ALPHABET for char in record_id):
        return None
    timestamp = int(prefix, 36)
    return timestamp if to_base36(timestamp) == prefix else None


# Module-level default shared by stores that are not given their own
id_generator = IdGenerator()
