"""Textual listing of a loaded program."""

from __future__ import annotations

from typing import Iterable, List

from chip8emu.cpu.decoder import decode, format_instruction
from chip8emu.cpu.opcode import INSTRUCTION_WIDTH
from chip8emu.memory import PROGRAM_START


def disassemble_word(address: int, word: int) -> str:
    instruction = decode(word)
    return f"  {address & 0xFFFF:04x}: {instruction.opcode} -> {format_instruction(instruction)}"


def disassemble(words: Iterable[int], start: int = PROGRAM_START) -> List[str]:
    lines: List[str] = []
    address = start
    for word in words:
        lines.append(disassemble_word(address, word))
        address += INSTRUCTION_WIDTH
    return lines
