from __future__ import annotations

import logging

import pytest

from chip8emu.cpu.state import CallStack, CPURegisters, MachineState
from chip8emu.memory import (
    ADDRESS_SPACE_SIZE,
    FONT_GLYPHS,
    GLYPH_SIZE,
    MAX_PROGRAM_SIZE,
    PROGRAM_START,
    Memory,
    glyph_address,
)


def test_memory_big_endian_access() -> None:
    memory = Memory()
    memory.store16(0x300, 0xA2B4)
    assert memory.load8(0x300) == 0xA2
    assert memory.load8(0x301) == 0xB4
    assert memory.load16(0x300) == 0xA2B4
    memory.store8(0x302, 0x1FF)
    assert memory.load8(0x302) == 0xFF


def test_memory_wraps_out_of_range_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    memory = Memory()
    with caplog.at_level(logging.WARNING, logger="chip8emu.memory"):
        memory.store8(ADDRESS_SPACE_SIZE + 5, 0x42)
    assert memory.load8(5) == 0x42
    assert "out of range" in caplog.text


def test_word_read_at_last_byte_wraps() -> None:
    memory = Memory()
    memory.store8(0xFFF, 0x12)
    memory.store8(0x000, 0x34)
    assert memory.load16(0xFFF) == 0x1234


def test_font_installed_at_reserved_area() -> None:
    state = MachineState()
    for digit, glyph in enumerate(FONT_GLYPHS):
        address = glyph_address(digit)
        assert address == digit * GLYPH_SIZE
        assert state.memory.read_block(address, GLYPH_SIZE) == list(glyph)
    assert glyph_address(0x1A) == glyph_address(0xA)


def test_program_loaded_at_start_address() -> None:
    state = MachineState(bytes([0x12, 0x00, 0xAB]))
    assert state.registers.program_counter == PROGRAM_START
    assert state.memory.read_block(PROGRAM_START, 3) == [0x12, 0x00, 0xAB]


def test_program_too_large_is_rejected() -> None:
    memory = Memory()
    memory.load_program(bytes(MAX_PROGRAM_SIZE))
    with pytest.raises(ValueError):
        memory.load_program(bytes(MAX_PROGRAM_SIZE + 1))


def test_state_reset_restores_power_on_values() -> None:
    state = MachineState(bytes([0x60, 0x01]))
    state.registers[0x3] = 9
    state.registers.index = 0x123
    state.stack.push(0x250)
    state.timers.delay = 10
    state.reset(bytes([0x70, 0x02]))
    assert state.registers.v == [0] * 16
    assert state.registers.index == 0
    assert len(state.stack) == 0
    assert state.timers.delay == 0
    assert state.memory.load16(PROGRAM_START) == 0x7002
    assert state.memory.read_block(0, GLYPH_SIZE) == list(FONT_GLYPHS[0])


def test_call_stack_overflow_replaces_top(caplog: pytest.LogCaptureFixture) -> None:
    registers = CPURegisters()
    stack = CallStack(registers)
    for level in range(16):
        stack.push(0x200 + level * 2)
    with caplog.at_level(logging.ERROR, logger="chip8emu.cpu.state"):
        stack.push(0x500)
    assert "overflow" in caplog.text
    assert registers.stack_pointer == 16
    assert stack.pop(0) == 0x500
    assert stack.pop(0) == 0x21C


def test_call_stack_underflow_returns_fallback(caplog: pytest.LogCaptureFixture) -> None:
    registers = CPURegisters()
    stack = CallStack(registers)
    with caplog.at_level(logging.ERROR, logger="chip8emu.cpu.state"):
        assert stack.pop(0x2F0) == 0x2F0
    assert "underflow" in caplog.text
    assert registers.stack_pointer == 0
