"""Machine state: registers, call stack, memory and timers."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import List

from chip8emu.chip8.timers import TimerRegisters
from chip8emu.memory import Memory, PROGRAM_START

logger = logging.getLogger(__name__)

REGISTER_COUNT = 16
FLAG_REGISTER = 0xF
STACK_DEPTH = 16


@dataclass
class CPURegisters:
    """General registers V0-VF plus the special 16-bit registers."""

    v: List[int] = field(default_factory=lambda: [0x00] * REGISTER_COUNT)
    index: int = 0
    program_counter: int = PROGRAM_START
    stack_pointer: int = 0

    def __getitem__(self, register: int) -> int:
        return self.v[self._check(register)]

    def __setitem__(self, register: int, value: int) -> None:
        self.v[self._check(register)] = value & 0xFF

    @staticmethod
    def _check(register: int) -> int:
        if not (0 <= register < REGISTER_COUNT):
            raise ValueError(f"register index out of range: {register}")
        return register

    @property
    def vf(self) -> int:
        return self.v[FLAG_REGISTER]

    @vf.setter
    def vf(self, value: int) -> None:
        self.v[FLAG_REGISTER] = value & 0xFF

    def reset(self) -> None:
        self.v = [0x00] * REGISTER_COUNT
        self.index = 0
        self.program_counter = PROGRAM_START
        self.stack_pointer = 0


class CallStack:
    """Fixed 16-entry return address stack.

    Overflow and underflow are undefined on the real machine; here they are
    logged and handled without leaving the pointer range [0, 16].
    """

    def __init__(self, registers: CPURegisters, depth: int = STACK_DEPTH) -> None:
        self.registers = registers
        self.depth = depth
        self.entries: List[int] = [0x0000] * depth

    def __len__(self) -> int:
        return self.registers.stack_pointer

    def push(self, address: int) -> None:
        sp = self.registers.stack_pointer
        if sp >= self.depth:
            logger.error("call stack overflow at depth %d; replacing top entry", sp)
            self.entries[self.depth - 1] = address & 0xFFFF
            self.registers.stack_pointer = self.depth
            return
        self.entries[sp] = address & 0xFFFF
        self.registers.stack_pointer = sp + 1

    def pop(self, fallback: int) -> int:
        sp = self.registers.stack_pointer
        if sp <= 0:
            logger.error("call stack underflow; continuing at %#05x", fallback & 0xFFFF)
            self.registers.stack_pointer = 0
            return fallback & 0xFFFF
        sp = min(sp, self.depth) - 1
        self.registers.stack_pointer = sp
        return self.entries[sp]

    def reset(self) -> None:
        self.entries = [0x0000] * self.depth
        self.registers.stack_pointer = 0


class MachineState:
    """Mutable substrate the executor acts on."""

    def __init__(self, program: bytes = b"", *, start: int = PROGRAM_START) -> None:
        self.registers = CPURegisters(program_counter=start)
        self.memory = Memory()
        self.stack = CallStack(self.registers)
        self.timers = TimerRegisters()
        self.memory.install_font()
        if program:
            self.memory.load_program(program, start)

    def reset(self, program: bytes = b"", *, start: int = PROGRAM_START) -> None:
        self.registers.reset()
        self.registers.program_counter = start
        self.stack.reset()
        self.timers.reset()
        self.memory.clear()
        self.memory.install_font()
        if program:
            self.memory.load_program(program, start)

    def snapshot(self) -> dict:
        """Plain-data copy of the CPU-visible state."""

        return {
            "v": list(self.registers.v),
            "index": self.registers.index,
            "program_counter": self.registers.program_counter,
            "stack_pointer": self.registers.stack_pointer,
            "stack": list(self.stack.entries),
            "delay": self.timers.delay,
            "sound": self.timers.sound,
            "memory": bytes(self.memory.data),
        }
