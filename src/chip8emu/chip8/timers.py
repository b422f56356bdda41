"""Delay/sound timers and the 60 Hz decay activity."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TIMER_FREQUENCY = 60.0
TIMER_INTERVAL = 1.0 / TIMER_FREQUENCY


class TimerRegisters:
    """The two 8-bit countdown timers shared with the decay thread."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._delay = 0
        self._sound = 0

    @property
    def delay(self) -> int:
        with self._lock:
            return self._delay

    @delay.setter
    def delay(self, value: int) -> None:
        with self._lock:
            self._delay = value & 0xFF

    @property
    def sound(self) -> int:
        with self._lock:
            return self._sound

    @sound.setter
    def sound(self, value: int) -> None:
        with self._lock:
            self._sound = value & 0xFF

    def tick(self) -> int:
        """Decrement both timers, saturating at zero. Returns the sound timer."""

        with self._lock:
            if self._delay:
                self._delay -= 1
            if self._sound:
                self._sound -= 1
            return self._sound

    def reset(self) -> None:
        with self._lock:
            self._delay = 0
            self._sound = 0


class TimerThread:
    """Periodic task decaying the timers while the machine is not paused.

    ``on_tone`` is called with ``sound > 0`` whenever that state changes so
    the audio sink follows the sound timer.
    """

    def __init__(
        self,
        timers: TimerRegisters,
        paused: threading.Event,
        *,
        interval: float = TIMER_INTERVAL,
        on_tone: Optional[Callable[[bool], None]] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("timer interval must be positive")
        self.timers = timers
        self.paused = paused
        self.interval = interval
        self.on_tone = on_tone
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._tone_active = False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="Chip8Timers", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Signal the thread and wait for it to exit."""

        self._stop.set()
        thread = self._thread
        if thread is not None:
            thread.join()
        self._thread = None

    def _run(self) -> None:
        # The stop flag is observed at the top of every wait interval.
        while not self._stop.wait(self.interval):
            if self.paused.is_set():
                continue
            sound = self.timers.tick()
            self._update_tone(sound > 0)
        self._update_tone(False)

    def _update_tone(self, active: bool) -> None:
        if active == self._tone_active:
            return
        self._tone_active = active
        if self.on_tone is not None:
            self.on_tone(active)
