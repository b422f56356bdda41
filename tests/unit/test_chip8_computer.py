from __future__ import annotations

import random
from typing import List

import pytest

from chip8emu.chip8.computer import Chip8Computer
from chip8emu.chip8.display import Chip8Display
from chip8emu.chip8.hardware import Chip8Hardware
from chip8emu.chip8.sound import Chip8SoundProcessor
from chip8emu.emulator.file import ProgramLoadError, load_rom_bytes
from chip8emu.memory import PROGRAM_START

# 0x200: V0 += 1; jump back to 0x200
COUNTER_LOOP = bytes([0x70, 0x01, 0x12, 0x00])


class RecordingDisplay(Chip8Display):
    def __init__(self, log: List[str]) -> None:
        super().__init__()
        self.log = log

    def close(self) -> None:
        self.log.append("display.close")


class RecordingSound(Chip8SoundProcessor):
    def __init__(self, log: List[str]) -> None:
        super().__init__()
        self.log = log

    def close(self) -> None:
        self.log.append("sound.close")
        super().close()


def test_cycle_executes_and_renders() -> None:
    computer = Chip8Computer(COUNTER_LOOP, enable_audio=False, cycle_delay=0.0)
    for _ in range(6):
        computer.cycle()
    assert computer.registers[0] == 3
    assert computer.registers.program_counter == PROGRAM_START
    assert computer.hardware.display.frames_rendered == 6
    assert computer.cpu is computer.cpu_core


def test_program_info_is_accepted() -> None:
    info = load_rom_bytes(COUNTER_LOOP, name="LOOP")
    computer = Chip8Computer(info, enable_audio=False)
    assert computer.program_info is info
    assert computer.memory.load16(PROGRAM_START) == 0x7001


def test_empty_program_rejected() -> None:
    with pytest.raises(ProgramLoadError):
        Chip8Computer(b"", enable_audio=False)


def test_negative_cycle_delay_rejected() -> None:
    with pytest.raises(ValueError):
        Chip8Computer(COUNTER_LOOP, enable_audio=False, cycle_delay=-1.0)


def test_pause_toggle_freezes_state_and_shows_overlay() -> None:
    computer = Chip8Computer(COUNTER_LOOP, enable_audio=False, cycle_delay=0.0)
    with computer:
        computer.cycle()
        keypad = computer.hardware.keypad
        keypad.toggle_pause()
        assert computer.cycle() is None
        assert computer.is_paused
        before = computer.state.snapshot()
        for _ in range(10):
            assert computer.cycle() is None
        assert computer.state.snapshot() == before
        assert computer.hardware.display.pause_overlays == 11

        keypad.toggle_pause()
        assert computer.cycle() is not None
        assert not computer.is_paused


def test_even_toggle_count_is_ignored() -> None:
    computer = Chip8Computer(COUNTER_LOOP, enable_audio=False, cycle_delay=0.0)
    with computer:
        computer.hardware.keypad.toggle_pause()
        computer.hardware.keypad.toggle_pause()
        assert computer.cycle() is not None
        assert not computer.is_paused


def test_run_stops_at_cycle_limit() -> None:
    computer = Chip8Computer(COUNTER_LOOP, enable_audio=False, cycle_delay=0.0)
    try:
        assert computer.run(max_cycles=20) == 20
    finally:
        computer.close()
    assert computer.registers[0] == 10


def test_run_ends_when_key_wait_has_no_input() -> None:
    computer = Chip8Computer(bytes([0xF0, 0x0A]), enable_audio=False, cycle_delay=0.0)
    computer.hardware.keypad.close()
    try:
        assert computer.run(max_cycles=5) == 0
    finally:
        computer.close()


def test_request_stop_ends_run() -> None:
    computer = Chip8Computer(COUNTER_LOOP, enable_audio=False, cycle_delay=0.0)
    computer.request_stop()
    assert computer.run() == 0
    computer.close()


def test_close_orders_teardown() -> None:
    log: List[str] = []
    hardware = Chip8Hardware(display=RecordingDisplay(log), sound_processor=RecordingSound(log))
    computer = Chip8Computer(COUNTER_LOOP, hardware=hardware, cycle_delay=0.0)
    original_stop = computer.timer_thread.stop

    def stop() -> None:
        original_stop()
        log.append("timer.stop")

    computer.timer_thread.stop = stop  # type: ignore[method-assign]
    computer.power_on()
    assert computer.timer_thread.running
    computer.close()
    assert log == ["timer.stop", "sound.close", "display.close"]
    assert not computer.timer_thread.running
    assert computer.hardware.keypad.closed
    assert computer.is_stopped


def test_close_logs_teardown_errors(caplog: pytest.LogCaptureFixture) -> None:
    class FailingDisplay(Chip8Display):
        def close(self) -> None:
            raise RuntimeError("boom")

    computer = Chip8Computer(
        COUNTER_LOOP, hardware=Chip8Hardware(display=FailingDisplay()), cycle_delay=0.0
    )
    computer.close()
    assert "failed to close display" in caplog.text


def test_audio_flag_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(Chip8Computer.ENV_AUDIO, "1")
    assert Chip8Computer._resolve_audio(None) is True
    assert Chip8Computer._resolve_audio(False) is False
    monkeypatch.setenv(Chip8Computer.ENV_AUDIO, "off")
    assert Chip8Computer._resolve_audio(None) is False


def test_seeded_rng_is_reproducible() -> None:
    program = bytes([0xC0, 0xFF, 0xC1, 0xFF, 0xC2, 0xFF])
    results = []
    for _ in range(2):
        computer = Chip8Computer(program, enable_audio=False, rng=random.Random(7))
        for _ in range(3):
            computer.cycle()
        results.append(list(computer.registers.v[:3]))
    assert results[0] == results[1]
