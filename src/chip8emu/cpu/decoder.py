"""Opcode decoding into a closed set of instruction kinds."""

from __future__ import annotations

from dataclasses import dataclass
import enum
import logging
from typing import Callable, Dict, Tuple

from chip8emu.cpu.opcode import Opcode

logger = logging.getLogger(__name__)

MASK_GROUP = 0xF000
MASK_REG_PAIR = 0xF00F
MASK_REG_BYTE = 0xF0FF
MASK_EXACT = 0xFFFF


class InstructionKind(enum.Enum):
    CLS = "cls"
    RET = "ret"
    SYS = "sys"
    JP = "jp"
    JP_V0 = "jp_v0"
    CALL = "call"
    SE_BYTE = "se_byte"
    SE_REG = "se_reg"
    SNE_BYTE = "sne_byte"
    SNE_REG = "sne_reg"
    LD_BYTE = "ld_byte"
    LD_REG = "ld_reg"
    LD_I = "ld_i"
    LD_VX_DT = "ld_vx_dt"
    LD_VX_K = "ld_vx_k"
    LD_DT_VX = "ld_dt_vx"
    LD_ST_VX = "ld_st_vx"
    LD_F_VX = "ld_f_vx"
    LD_B_VX = "ld_b_vx"
    LD_MEM_VX = "ld_mem_vx"
    LD_VX_MEM = "ld_vx_mem"
    ADD_BYTE = "add_byte"
    ADD_REG = "add_reg"
    ADD_I_VX = "add_i_vx"
    OR = "or"
    AND = "and"
    XOR = "xor"
    SUB = "sub"
    SHR = "shr"
    SUBN = "subn"
    SHL = "shl"
    RND = "rnd"
    DRW = "drw"
    SKP = "skp"
    SKNP = "sknp"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Instruction:
    """Decoded instruction: a kind tag plus the word it was decoded from."""

    kind: InstructionKind
    opcode: Opcode

    @property
    def is_control_transfer(self) -> bool:
        return self.kind in CONTROL_TRANSFER_KINDS


CONTROL_TRANSFER_KINDS = frozenset(
    {InstructionKind.JP, InstructionKind.JP_V0, InstructionKind.CALL, InstructionKind.RET}
)

Pattern = Tuple[int, int, InstructionKind]

# Patterns per top nibble. Within a group the match sets are disjoint and the
# first full-mask match wins; group 0 falls back to SYS.
DECODE_TABLE: Dict[int, Tuple[Pattern, ...]] = {
    0x0: (
        (MASK_EXACT, 0x00E0, InstructionKind.CLS),
        (MASK_EXACT, 0x00EE, InstructionKind.RET),
        (MASK_GROUP, 0x0000, InstructionKind.SYS),
    ),
    0x1: ((MASK_GROUP, 0x1000, InstructionKind.JP),),
    0x2: ((MASK_GROUP, 0x2000, InstructionKind.CALL),),
    0x3: ((MASK_GROUP, 0x3000, InstructionKind.SE_BYTE),),
    0x4: ((MASK_GROUP, 0x4000, InstructionKind.SNE_BYTE),),
    0x5: ((MASK_REG_PAIR, 0x5000, InstructionKind.SE_REG),),
    0x6: ((MASK_GROUP, 0x6000, InstructionKind.LD_BYTE),),
    0x7: ((MASK_GROUP, 0x7000, InstructionKind.ADD_BYTE),),
    0x8: (
        (MASK_REG_PAIR, 0x8000, InstructionKind.LD_REG),
        (MASK_REG_PAIR, 0x8001, InstructionKind.OR),
        (MASK_REG_PAIR, 0x8002, InstructionKind.AND),
        (MASK_REG_PAIR, 0x8003, InstructionKind.XOR),
        (MASK_REG_PAIR, 0x8004, InstructionKind.ADD_REG),
        (MASK_REG_PAIR, 0x8005, InstructionKind.SUB),
        (MASK_REG_PAIR, 0x8006, InstructionKind.SHR),
        (MASK_REG_PAIR, 0x8007, InstructionKind.SUBN),
        (MASK_REG_PAIR, 0x800E, InstructionKind.SHL),
    ),
    0x9: ((MASK_REG_PAIR, 0x9000, InstructionKind.SNE_REG),),
    0xA: ((MASK_GROUP, 0xA000, InstructionKind.LD_I),),
    0xB: ((MASK_GROUP, 0xB000, InstructionKind.JP_V0),),
    0xC: ((MASK_GROUP, 0xC000, InstructionKind.RND),),
    0xD: ((MASK_GROUP, 0xD000, InstructionKind.DRW),),
    0xE: (
        (MASK_REG_BYTE, 0xE09E, InstructionKind.SKP),
        (MASK_REG_BYTE, 0xE0A1, InstructionKind.SKNP),
    ),
    0xF: (
        (MASK_REG_BYTE, 0xF007, InstructionKind.LD_VX_DT),
        (MASK_REG_BYTE, 0xF00A, InstructionKind.LD_VX_K),
        (MASK_REG_BYTE, 0xF015, InstructionKind.LD_DT_VX),
        (MASK_REG_BYTE, 0xF018, InstructionKind.LD_ST_VX),
        (MASK_REG_BYTE, 0xF01E, InstructionKind.ADD_I_VX),
        (MASK_REG_BYTE, 0xF029, InstructionKind.LD_F_VX),
        (MASK_REG_BYTE, 0xF033, InstructionKind.LD_B_VX),
        (MASK_REG_BYTE, 0xF055, InstructionKind.LD_MEM_VX),
        (MASK_REG_BYTE, 0xF065, InstructionKind.LD_VX_MEM),
    ),
}


def decode(opcode: Opcode | int) -> Instruction:
    """Map any 16-bit word to exactly one instruction.

    Words that match no pattern decode to ``InstructionKind.UNKNOWN``; the
    anomaly is logged and the instruction executes as a no-op.
    """

    if not isinstance(opcode, Opcode):
        opcode = Opcode(opcode)
    for mask, compare, kind in DECODE_TABLE[opcode.group]:
        if opcode.matches(mask, compare):
            return Instruction(kind, opcode)
    logger.warning("unknown instruction %04x", opcode.value)
    return Instruction(InstructionKind.UNKNOWN, opcode)


# ----------------------------------------------------------------------
# Mnemonics
# ----------------------------------------------------------------------
def _vx(op: Opcode) -> str:
    return f"V{op.x:x}"


def _vy(op: Opcode) -> str:
    return f"V{op.y:x}"


_MNEMONICS: Dict[InstructionKind, Callable[[Opcode], str]] = {
    InstructionKind.CLS: lambda op: "CLS",
    InstructionKind.RET: lambda op: "RET",
    InstructionKind.SYS: lambda op: f"SYS     {op.addr:#05x}",
    InstructionKind.JP: lambda op: f"JP      {op.addr:#05x}",
    InstructionKind.JP_V0: lambda op: f"JP      V0, {op.addr:#05x}",
    InstructionKind.CALL: lambda op: f"CALL    {op.addr:#05x}",
    InstructionKind.SE_BYTE: lambda op: f"SE      {_vx(op)}, {op.byte:#04x}",
    InstructionKind.SE_REG: lambda op: f"SE      {_vx(op)}, {_vy(op)}",
    InstructionKind.SNE_BYTE: lambda op: f"SNE     {_vx(op)}, {op.byte:#04x}",
    InstructionKind.SNE_REG: lambda op: f"SNE     {_vx(op)}, {_vy(op)}",
    InstructionKind.LD_BYTE: lambda op: f"LD      {_vx(op)}, {op.byte:#04x}",
    InstructionKind.LD_REG: lambda op: f"LD      {_vx(op)}, {_vy(op)}",
    InstructionKind.LD_I: lambda op: f"LD      I, {op.addr:#05x}",
    InstructionKind.LD_VX_DT: lambda op: f"LD      {_vx(op)}, DT",
    InstructionKind.LD_VX_K: lambda op: f"LD      {_vx(op)}, K",
    InstructionKind.LD_DT_VX: lambda op: f"LD      DT, {_vx(op)}",
    InstructionKind.LD_ST_VX: lambda op: f"LD      ST, {_vx(op)}",
    InstructionKind.LD_F_VX: lambda op: f"LD      F, {_vx(op)}",
    InstructionKind.LD_B_VX: lambda op: f"LD      B, {_vx(op)}",
    InstructionKind.LD_MEM_VX: lambda op: f"LD      [I], {_vx(op)}",
    InstructionKind.LD_VX_MEM: lambda op: f"LD      {_vx(op)}, [I]",
    InstructionKind.ADD_BYTE: lambda op: f"ADD     {_vx(op)}, {op.byte:#04x}",
    InstructionKind.ADD_REG: lambda op: f"ADD     {_vx(op)}, {_vy(op)}",
    InstructionKind.ADD_I_VX: lambda op: f"ADD     I, {_vx(op)}",
    InstructionKind.OR: lambda op: f"OR      {_vx(op)}, {_vy(op)}",
    InstructionKind.AND: lambda op: f"AND     {_vx(op)}, {_vy(op)}",
    InstructionKind.XOR: lambda op: f"XOR     {_vx(op)}, {_vy(op)}",
    InstructionKind.SUB: lambda op: f"SUB     {_vx(op)}, {_vy(op)}",
    InstructionKind.SHR: lambda op: f"SHR     {_vx(op)}",
    InstructionKind.SUBN: lambda op: f"SUBN    {_vx(op)}, {_vy(op)}",
    InstructionKind.SHL: lambda op: f"SHL     {_vx(op)}",
    InstructionKind.RND: lambda op: f"RND     {_vx(op)}, {op.byte:#04x}",
    InstructionKind.DRW: lambda op: f"DRW     {_vx(op)}, {_vy(op)}, {op.nibble:#03x}",
    InstructionKind.SKP: lambda op: f"SKP     {_vx(op)}",
    InstructionKind.SKNP: lambda op: f"SKNP    {_vx(op)}",
    InstructionKind.UNKNOWN: lambda op: f"DW      {op.value:#06x}",
}


def format_instruction(instruction: Instruction) -> str:
    return _MNEMONICS[instruction.kind](instruction.opcode)


__all__ = [
    "CONTROL_TRANSFER_KINDS",
    "DECODE_TABLE",
    "Instruction",
    "InstructionKind",
    "decode",
    "format_instruction",
]
