"""CHIP-8 system wiring and cycle scheduler."""

from __future__ import annotations

import logging
import os
import random
import threading
import time
from typing import Optional

from chip8emu.chip8.hardware import Chip8Hardware
from chip8emu.chip8.keypad import InputClosed
from chip8emu.chip8.sound import Chip8SoundProcessor
from chip8emu.chip8.timers import TIMER_INTERVAL, TimerThread
from chip8emu.cpu.cpu import Chip8CPU
from chip8emu.cpu.decoder import Instruction
from chip8emu.cpu.state import MachineState
from chip8emu.emulator.file import ProgramInfo, load_rom_bytes
from chip8emu.system.computer import Computer

logger = logging.getLogger(__name__)

DEFAULT_CYCLE_DELAY = 0.002


class Chip8Computer(Computer):
    """Concrete CHIP-8 machine.

    Owns the machine state, the executor, the collaborators and the timer
    thread. ``close`` tears them down in order: stop signal, join of the
    timer thread, then release of the audio device.
    """

    ENV_AUDIO = "CHIP8EMU_AUDIO"

    def __init__(
        self,
        program: ProgramInfo | bytes | None = None,
        *,
        hardware: Optional[Chip8Hardware] = None,
        enable_audio: bool | None = None,
        cycle_delay: float = DEFAULT_CYCLE_DELAY,
        timer_interval: float = TIMER_INTERVAL,
        rng: Optional[random.Random] = None,
    ) -> None:
        if hardware is None:
            hardware = Chip8Hardware(sound_processor=Chip8SoundProcessor(enable_audio=self._resolve_audio(enable_audio)))
        elif enable_audio is not None:
            hardware.sound_processor.enable_audio = enable_audio
        super().__init__(hardware=hardware)

        if cycle_delay < 0:
            raise ValueError("cycle delay must not be negative")
        self.cycle_delay = cycle_delay
        self.program_info: Optional[ProgramInfo] = None
        self._stop_requested = threading.Event()

        if isinstance(program, (bytes, bytearray)):
            program = load_rom_bytes(bytes(program))
        self.program_info = program
        if program is not None:
            self.state = MachineState(program.data, start=program.start)
        else:
            self.state = MachineState()

        self.cpu_core = Chip8CPU(self.state, hardware, rng=rng)
        self.set_cpu(self.cpu_core)

        self.timer_thread = TimerThread(
            self.state.timers,
            self.paused,
            interval=timer_interval,
            on_tone=hardware.sound_processor.set_tone_active,
        )
        self.add_task(self.timer_thread)

    @classmethod
    def _resolve_audio(cls, enable_audio: bool | None) -> bool:
        if enable_audio is not None:
            return enable_audio
        value = os.getenv(cls.ENV_AUDIO, "")
        return value.strip().lower() in {"1", "true", "yes", "on"}

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def memory(self):
        return self.state.memory

    @property
    def registers(self):
        return self.state.registers

    @property
    def framebuffer(self):
        return self.hardware.framebuffer

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def _apply_pause_signal(self) -> None:
        toggles = self.hardware.keypad.consume_pause_toggles()
        if toggles % 2:
            self.toggle_pause()

    def cycle(self) -> Optional[Instruction]:
        """Run one scheduler iteration.

        Returns the executed instruction, or ``None`` while paused.
        """

        self._apply_pause_signal()
        display = self.hardware.display
        if self.is_paused:
            display.render_pause_overlay()
            return None
        instruction = self.cpu_core.step()
        display.render(self.hardware.framebuffer)
        return instruction

    def request_stop(self) -> None:
        self._stop_requested.set()

    def run(self, max_cycles: Optional[int] = None) -> int:
        """Cycle until stopped, the input closes or ``max_cycles`` elapse.

        Returns the number of scheduler iterations performed.
        """

        self.power_on()
        count = 0
        try:
            while not self._stop_requested.is_set():
                if max_cycles is not None and count >= max_cycles:
                    break
                self.cycle()
                count += 1
                if self.cycle_delay:
                    time.sleep(self.cycle_delay)
        except InputClosed:
            logger.info("input closed; stopping after %d cycles", count)
        return count

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def close(self) -> None:
        self.request_stop()
        self.hardware.keypad.close()
        self.power_off()
        for name in ("sound_processor", "display"):
            component = getattr(self.hardware, name, None)
            if component is None:
                continue
            try:
                component.close()
            except Exception:
                logger.warning("failed to close %s", name, exc_info=True)

    def __enter__(self) -> "Chip8Computer":
        self.power_on()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
