"""Chronologically sortable keys for appended history entries.

Keys follow the Realtime Database push-id layout: eight characters encoding
the millisecond timestamp followed by twelve random characters. Keys created
within the same millisecond increment the random suffix, so lexicographic
order always matches creation order within one generator.
"""

from __future__ import annotations

import random
import time
from threading import Lock
from typing import Callable, List, Optional

PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"
_BASE = len(PUSH_CHARS)
_TIME_CHARS = 8
_RANDOM_CHARS = 12


def _now_ms() -> int:
    return int(time.time() * 1000)


class PushIdGenerator:

    def __init__(
        self,
        clock: Callable[[], int] = _now_ms,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._clock = clock
        self._rng = rng or random.SystemRandom()
        self._last_time = -1
        self._last_random: List[int] = [0] * _RANDOM_CHARS
        self._lock = Lock()

    def next_id(self) -> str:
        with self._lock:
            now = self._clock()
            if now <= self._last_time:
                self._increment_random()
                now = self._last_time
            else:
                self._last_random = [self._rng.randrange(_BASE) for _ in range(_RANDOM_CHARS)]
                self._last_time = now

            time_chars = []
            remaining = now
            for _ in range(_TIME_CHARS):
                time_chars.append(PUSH_CHARS[remaining % _BASE])
                remaining //= _BASE
            if remaining:
                raise ValueError(f"Timestamp {now} does not fit in a push id.")

            suffix = "".join(PUSH_CHARS[index] for index in self._last_random)
            return "".join(reversed(time_chars)) + suffix

    def _increment_random(self) -> None:
        position = _RANDOM_CHARS - 1
        while position >= 0 and self._last_random[position] == _BASE - 1:
            self._last_random[position] = 0
            position -= 1
        if position < 0:
            # Suffix space exhausted for this millisecond; move to the next one.
            self._last_time += 1
            return
        self._last_random[position] += 1
