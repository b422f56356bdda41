"""Loader for raw CHIP-8 program images."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import List, Optional

from chip8emu.memory import MAX_PROGRAM_SIZE, PROGRAM_START

logger = logging.getLogger(__name__)

WORD_SIZE = 2


class ProgramLoadError(RuntimeError):
    """Raised when a program image cannot be read."""


@dataclass
class ProgramInfo:
    """A program image read from storage.

    ``words`` holds the big-endian instruction words plus one trailing zero
    word kept for bounds safety; it is never meant to be executed.
    """

    data: bytes
    name: str = ""
    path: Optional[Path] = None
    start: int = PROGRAM_START
    words: List[int] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def end(self) -> int:
        return self.start + self.size - 1

    @property
    def code_words(self) -> List[int]:
        """Instruction words without the trailing padding word."""

        return self.words[:-1]


def split_words(data: bytes) -> List[int]:
    """Split a byte stream into big-endian words, appending a zero pad word."""

    if len(data) % WORD_SIZE:
        data = data + b"\x00"
    words = [
        int.from_bytes(data[offset:offset + WORD_SIZE], "big", signed=False)
        for offset in range(0, len(data), WORD_SIZE)
    ]
    words.append(0x0000)
    return words


def load_rom_bytes(data: bytes, *, name: str = "", start: int = PROGRAM_START) -> ProgramInfo:
    if not data:
        raise ProgramLoadError("program is empty")
    available = MAX_PROGRAM_SIZE - (start - PROGRAM_START)
    if len(data) > available:
        raise ProgramLoadError(f"program too large: {len(data)} bytes (maximum {available})")
    return ProgramInfo(data=bytes(data), name=name, start=start, words=split_words(bytes(data)))


def load_rom(path: str | Path, *, start: int = PROGRAM_START) -> ProgramInfo:
    """Read a header-less program image from ``path``."""

    file_path = Path(path)
    try:
        data = file_path.read_bytes()
    except OSError as exc:
        raise ProgramLoadError(f"failed to read {file_path}: {exc}") from exc
    info = load_rom_bytes(data, name=file_path.stem.upper(), start=start)
    info.path = file_path
    logger.info("loaded %s (%d bytes)", file_path, info.size)
    return info
