"""Flat 4 KiB address space used by the CHIP-8 machine."""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

logger = logging.getLogger(__name__)

ADDRESS_SPACE_SIZE = 0x1000
PROGRAM_START = 0x200
PROGRAM_END = 0xFFF
MAX_PROGRAM_SIZE = ADDRESS_SPACE_SIZE - PROGRAM_START

GLYPH_SIZE = 5
FONT_START = 0x000

# Hexadecimal digit glyphs 0-F, 5 rows each.
FONT_GLYPHS: Sequence[Sequence[int]] = (
    (0xF0, 0x90, 0x90, 0x90, 0xF0),
    (0x20, 0x60, 0x20, 0x20, 0x70),
    (0xF0, 0x10, 0xF0, 0x80, 0xF0),
    (0xF0, 0x10, 0xF0, 0x10, 0xF0),
    (0x90, 0x90, 0xF0, 0x10, 0x10),
    (0xF0, 0x80, 0xF0, 0x10, 0xF0),
    (0xF0, 0x80, 0xF0, 0x90, 0xF0),
    (0xF0, 0x10, 0x20, 0x40, 0x40),
    (0xF0, 0x90, 0xF0, 0x90, 0xF0),
    (0xF0, 0x90, 0xF0, 0x10, 0xF0),
    (0xF0, 0x90, 0xF0, 0x90, 0x90),
    (0xE0, 0x90, 0xE0, 0x90, 0xE0),
    (0xF0, 0x80, 0x80, 0x80, 0xF0),
    (0xE0, 0x90, 0x90, 0x90, 0xE0),
    (0xF0, 0x80, 0xF0, 0x80, 0xF0),
    (0xF0, 0x80, 0xF0, 0x80, 0x80),
)


class Memory:
    """Byte-addressable RAM supporting 8/16-bit big-endian accesses.

    CHIP-8 has no memory protection. Accesses outside the
    4 KiB range are wrapped back into it and reported through the logger
    instead of raising.
    """

    length: int
    data: bytearray

    def __init__(self, length: int = ADDRESS_SPACE_SIZE) -> None:
        if length <= 0:
            raise ValueError("invalid memory size")
        self.length = length
        self.data = bytearray(length)

    def _index(self, address: int) -> int:
        if 0 <= address < self.length:
            return address
        wrapped = address % self.length
        logger.warning("memory access out of range: %#06x (wrapped to %#05x)", address, wrapped)
        return wrapped

    def load8(self, address: int) -> int:
        return self.data[self._index(address)]

    def store8(self, address: int, value: int) -> None:
        self.data[self._index(address)] = value & 0xFF

    def load16(self, address: int) -> int:
        hi = self.load8(address)
        lo = self.load8(address + 1)
        return ((hi << 8) | lo) & 0xFFFF

    def store16(self, address: int, value: int) -> None:
        self.store8(address, (value >> 8) & 0xFF)
        self.store8(address + 1, value & 0xFF)

    def read_block(self, address: int, length: int) -> List[int]:
        return [self.load8(address + offset) for offset in range(length)]

    def write_block(self, address: int, values: Iterable[int]) -> None:
        for offset, value in enumerate(values):
            self.store8(address + offset, value)

    def clear(self) -> None:
        self.data = bytearray(self.length)

    # ------------------------------------------------------------------
    # Machine image setup
    # ------------------------------------------------------------------
    def install_font(self) -> None:
        for code, glyph in enumerate(FONT_GLYPHS):
            self.write_block(FONT_START + code * GLYPH_SIZE, glyph)

    def load_program(self, program: bytes, start: int = PROGRAM_START) -> None:
        available = self.length - start
        if len(program) > available:
            raise ValueError(
                f"program too large: {len(program)} bytes, {available} available from {start:#05x}"
            )
        self.data[start:start + len(program)] = program


def glyph_address(digit: int) -> int:
    """Address of the built-in glyph for a hexadecimal digit."""

    return FONT_START + (digit & 0x0F) * GLYPH_SIZE


__all__ = [
    "ADDRESS_SPACE_SIZE",
    "FONT_GLYPHS",
    "GLYPH_SIZE",
    "MAX_PROGRAM_SIZE",
    "Memory",
    "PROGRAM_END",
    "PROGRAM_START",
    "glyph_address",
]
