"""Sixteen-key hexadecimal keypad with edge-event queueing."""

from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional

KEY_COUNT = 16
POLL_INTERVAL = 0.002


class InputClosed(RuntimeError):
    """Raised from a blocking key wait once the input source is closed."""


class Chip8Keypad:
    """Keypad addressed 0x0-0xF.

    Each ``press`` enqueues one edge event for the key. ``is_key_down`` and
    ``is_key_up`` consume a pending edge when there is one, so a keystroke is
    seen by exactly one query.
    """

    def __init__(self, poller: Optional[Callable[[], None]] = None) -> None:
        self._pending: List[int] = [0] * KEY_COUNT
        self._pause_toggles = 0
        self._closed = False
        self._condition = threading.Condition()
        self.poller = poller

    @staticmethod
    def _check(key: int) -> int:
        if not (0 <= key < KEY_COUNT):
            raise ValueError(f"key out of range: {key}")
        return key

    def press(self, key: int) -> None:
        with self._condition:
            self._pending[self._check(key)] += 1
            self._condition.notify_all()

    def release(self, key: int) -> None:
        self._check(key)

    def clear(self) -> None:
        with self._condition:
            self._pending = [0] * KEY_COUNT

    def pending(self, key: int) -> int:
        with self._condition:
            return self._pending[self._check(key)]

    def _consume(self, key: int) -> bool:
        if self._pending[key]:
            self._pending[key] -= 1
            return True
        return False

    def is_key_down(self, key: int) -> bool:
        with self._condition:
            return self._consume(self._check(key))

    def is_key_up(self, key: int) -> bool:
        with self._condition:
            return not self._consume(self._check(key))

    def wait_for_next_key(self) -> int:
        """Block until a key edge is pending and return the lowest such key."""

        while True:
            if self.poller is not None:
                self.poller()
            with self._condition:
                for key in range(KEY_COUNT):
                    if self._consume(key):
                        return key
                if self._closed:
                    raise InputClosed("keypad closed while waiting for a key")
                if self.poller is None:
                    self._condition.wait(POLL_INTERVAL * 50)
                    continue
            time.sleep(POLL_INTERVAL)

    # ------------------------------------------------------------------
    # Pause signal
    # ------------------------------------------------------------------
    def toggle_pause(self) -> None:
        with self._condition:
            self._pause_toggles += 1

    def consume_pause_toggles(self) -> int:
        with self._condition:
            toggles = self._pause_toggles
            self._pause_toggles = 0
            return toggles

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        with self._condition:
            self._closed = True
            self._condition.notify_all()
