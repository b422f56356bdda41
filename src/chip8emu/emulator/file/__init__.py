"""File loading helpers for the CHIP-8 emulator."""

from chip8emu.emulator.file.program import (
    ProgramInfo,
    ProgramLoadError,
    load_rom,
    load_rom_bytes,
    split_words,
)

__all__ = [
    "ProgramInfo",
    "ProgramLoadError",
    "load_rom",
    "load_rom_bytes",
    "split_words",
]
