"""16-bit CHIP-8 instruction word with field accessors."""

from __future__ import annotations

from dataclasses import dataclass

INSTRUCTION_WIDTH = 2


@dataclass(frozen=True)
class Opcode:
    """Instruction word as fetched from memory (host order)."""

    value: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", self.value & 0xFFFF)

    @classmethod
    def from_bytes(cls, hi: int, lo: int) -> "Opcode":
        return cls(((hi & 0xFF) << 8) | (lo & 0xFF))

    @property
    def group(self) -> int:
        return (self.value >> 12) & 0x0F

    @property
    def addr(self) -> int:
        return self.value & 0x0FFF

    @property
    def x(self) -> int:
        return (self.value >> 8) & 0x0F

    @property
    def y(self) -> int:
        return (self.value >> 4) & 0x0F

    @property
    def byte(self) -> int:
        return self.value & 0x00FF

    @property
    def nibble(self) -> int:
        return self.value & 0x000F

    def matches(self, mask: int, compare: int) -> bool:
        return (self.value & mask) == compare

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value:04x}"
