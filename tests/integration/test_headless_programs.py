"""Headless end-to-end checks running small CHIP-8 programs."""

from __future__ import annotations

import importlib.util
from pathlib import Path
import sys

from chip8emu.memory import PROGRAM_START

_HELPER_PATH = Path(__file__).resolve().parents[1] / "helpers" / "headless.py"
_SPEC = importlib.util.spec_from_file_location("headless_helper", _HELPER_PATH)
_MODULE = importlib.util.module_from_spec(_SPEC)
assert _SPEC is not None and _SPEC.loader is not None
sys.modules[_SPEC.name] = _MODULE
_SPEC.loader.exec_module(_MODULE)  # type: ignore[arg-type]

KeyEvent = _MODULE.KeyEvent
run_program = _MODULE.run_program


# Count V0 down from 5 and park on a self jump.
#   200: LD V0, 5
#   202: ADD V0, 0xFF
#   204: SE V0, 0
#   206: JP 202
#   208: JP 208
COUNTDOWN = [0x6005, 0x70FF, 0x3000, 0x1202, 0x1208]

# Draw the glyph for digit 7 at (2, 3), then halt.
#   200: LD V1, 7
#   202: LD F, V1
#   204: LD V2, 2
#   206: LD V3, 3
#   208: DRW V2, V3, 5
#   20A: JP 20A
DRAW_DIGIT = [0x6107, 0xF129, 0x6202, 0x6303, 0xD235, 0x120A]

# Call a subroutine that stores the BCD of V5 at 0x300.
#   200: LD V5, 137
#   202: LD I, 300
#   204: CALL 20A
#   206: LD V6, 1
#   208: JP 208
#   20A: LD B, V5
#   20C: RET
BCD_SUBROUTINE = [0x6589, 0xA300, 0x220A, 0x6601, 0x1208, 0xF533, 0x00EE]

# Wait for a key, then copy it to V1.
#   200: LD V0, K
#   202: LD V1, V0
#   204: JP 204
KEY_WAIT = [0xF00A, 0x8100, 0x1204]


def test_countdown_loop_terminates_in_park() -> None:
    computer, pcs = run_program(COUNTDOWN, total_cycles=40)
    assert computer.registers[0] == 0
    assert pcs[-1] == 0x208
    assert pcs[0] == 0x202
    # Five decrements, each followed by a skip test.
    assert pcs.count(0x204) == 5


def test_draw_digit_glyph() -> None:
    computer, _ = run_program(DRAW_DIGIT, total_cycles=8)
    fb = computer.framebuffer
    expected = [0xF0, 0x10, 0x20, 0x40, 0x40]
    for row, bits in enumerate(expected):
        for column in range(8):
            lit = (bits >> (7 - column)) & 1
            assert fb.get_pixel(2 + column, 3 + row) == lit
    assert computer.registers.vf == 0
    assert computer.hardware.display.last_frame == bytes(fb.pixels)


def test_subroutine_stores_bcd_and_returns() -> None:
    computer, pcs = run_program(BCD_SUBROUTINE, total_cycles=10)
    assert computer.memory.read_block(0x300, 3) == [1, 3, 7]
    assert computer.registers[6] == 1
    assert computer.registers.stack_pointer == 0
    assert pcs[:5] == [0x202, 0x204, 0x20A, 0x20C, 0x206]


def test_key_wait_consumes_scheduled_press() -> None:
    computer, pcs = run_program(KEY_WAIT, total_cycles=4, events=[KeyEvent(cycle=0, key=0xB)])
    assert computer.registers[0] == 0xB
    assert computer.registers[1] == 0xB
    assert pcs[-1] == 0x204


def test_runs_are_reproducible() -> None:
    program = [0xC0FF, 0xC1FF, 0xA300, 0xF155, 0x1200]
    first, first_pcs = run_program(program, total_cycles=30, seed=11)
    second, second_pcs = run_program(program, total_cycles=30, seed=11)
    assert first_pcs == second_pcs
    assert first.state.snapshot() == second.state.snapshot()
    assert first.registers.program_counter == PROGRAM_START
