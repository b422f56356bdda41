"""CHIP-8 buzzer with optional pygame mixer playback."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
import threading
from array import array
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

TONE_FREQUENCY = 441.0
TONE_AMPLITUDE = 28000


@dataclass
class Chip8SoundProcessor:
    """Sine-wave buzzer gated by the sound timer.

    Without ``enable_audio`` only the call history is kept, which is what the
    headless runner and the tests use.
    """

    history: List[Tuple[str, Tuple[object, ...]]] = field(default_factory=list)
    sample_rate: int = 44100
    volume: float = 0.3
    enable_audio: bool = False

    def __post_init__(self) -> None:
        self._audio_initialized: bool = False
        self._channel = None
        self._sound = None
        self._active: bool = False
        self._lock = threading.Lock()

    @property
    def tone_active(self) -> bool:
        return self._active

    # ------------------------------------------------------------------
    # Machine callback
    # ------------------------------------------------------------------
    def set_tone_active(self, active: bool) -> None:
        with self._lock:
            self.history.append(("set_tone_active", (bool(active),)))
            if active == self._active:
                return
            self._active = bool(active)
            if not self.enable_audio or not self._ensure_mixer():
                return
            if active:
                self._channel.set_volume(self.volume)
                self._channel.play(self._sound, loops=-1)
            else:
                self._channel.stop()

    def close(self) -> None:
        """Stop playback and release the mixer. Errors are logged only."""

        with self._lock:
            self._active = False
            if not self._audio_initialized:
                return
            try:
                import pygame  # type: ignore

                if self._channel is not None:
                    self._channel.stop()
                pygame.mixer.quit()
            except Exception:
                logger.warning("failed to release audio device", exc_info=True)
            finally:
                self._channel = None
                self._sound = None
                self._audio_initialized = False

    # ------------------------------------------------------------------
    # Audio helpers
    # ------------------------------------------------------------------
    def _ensure_mixer(self) -> bool:
        if self._audio_initialized:
            return True
        try:
            import pygame  # type: ignore

            if not pygame.mixer.get_init():
                pygame.mixer.init(frequency=self.sample_rate, size=-16, channels=1)
            self._channel = pygame.mixer.Channel(0)
            self._sound = pygame.mixer.Sound(buffer=self._render_period())
            self._audio_initialized = True
        except Exception:
            logger.warning("audio output unavailable; continuing silently", exc_info=True)
            self.enable_audio = False
            self._channel = None
            self._sound = None
            self._audio_initialized = False
        return self._audio_initialized

    def _render_period(self) -> array:
        """One whole number of tone periods, suitable for seamless looping."""

        samples_per_period = self.sample_rate / TONE_FREQUENCY
        periods = 1
        while abs(samples_per_period * periods - round(samples_per_period * periods)) > 1e-6 and periods < 64:
            periods += 1
        length = max(1, int(round(samples_per_period * periods)))
        buffer = array("h", [0] * length)
        for index in range(length):
            t = index / float(self.sample_rate)
            buffer[index] = int(TONE_AMPLITUDE * math.sin(2.0 * math.pi * TONE_FREQUENCY * t))
        return buffer
