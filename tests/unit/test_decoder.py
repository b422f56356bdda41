"""Decoder coverage over the full 16-bit opcode space."""

from __future__ import annotations

import logging

import pytest

from chip8emu.cpu.decoder import (
    CONTROL_TRANSFER_KINDS,
    DECODE_TABLE,
    InstructionKind,
    decode,
    format_instruction,
)
from chip8emu.cpu.opcode import Opcode


def test_opcode_fields() -> None:
    op = Opcode(0xD3A7)
    assert op.group == 0xD
    assert op.addr == 0x3A7
    assert op.x == 0x3
    assert op.y == 0xA
    assert op.byte == 0xA7
    assert op.nibble == 0x7
    assert Opcode.from_bytes(0x12, 0x34).value == 0x1234
    assert Opcode(0x12345).value == 0x2345


def test_decode_is_total_and_deterministic(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="chip8emu.cpu.decoder")
    first = [decode(value).kind for value in range(0x10000)]
    second = [decode(value).kind for value in range(0x10000)]
    assert first == second
    assert all(isinstance(kind, InstructionKind) for kind in first)


def test_patterns_are_disjoint_within_groups() -> None:
    for group, patterns in DECODE_TABLE.items():
        for value in range(group << 12, (group + 1) << 12):
            hits = [kind for mask, compare, kind in patterns if (value & mask) == compare]
            if group == 0x0 and value in (0x00E0, 0x00EE):
                # Exact matches take precedence over the SYS fallback.
                assert hits[0] in (InstructionKind.CLS, InstructionKind.RET)
                continue
            assert len(hits) <= 1, f"{value:04x} matches {hits}"


@pytest.mark.parametrize(
    ("value", "kind"),
    [
        (0x00E0, InstructionKind.CLS),
        (0x00EE, InstructionKind.RET),
        (0x0123, InstructionKind.SYS),
        (0x1ABC, InstructionKind.JP),
        (0xB200, InstructionKind.JP_V0),
        (0x2300, InstructionKind.CALL),
        (0x3412, InstructionKind.SE_BYTE),
        (0x5120, InstructionKind.SE_REG),
        (0x4412, InstructionKind.SNE_BYTE),
        (0x9120, InstructionKind.SNE_REG),
        (0x6A55, InstructionKind.LD_BYTE),
        (0x8120, InstructionKind.LD_REG),
        (0xA123, InstructionKind.LD_I),
        (0xF307, InstructionKind.LD_VX_DT),
        (0xF30A, InstructionKind.LD_VX_K),
        (0xF315, InstructionKind.LD_DT_VX),
        (0xF318, InstructionKind.LD_ST_VX),
        (0xF329, InstructionKind.LD_F_VX),
        (0xF333, InstructionKind.LD_B_VX),
        (0xF355, InstructionKind.LD_MEM_VX),
        (0xF365, InstructionKind.LD_VX_MEM),
        (0x7301, InstructionKind.ADD_BYTE),
        (0x8124, InstructionKind.ADD_REG),
        (0xF31E, InstructionKind.ADD_I_VX),
        (0x8121, InstructionKind.OR),
        (0x8122, InstructionKind.AND),
        (0x8123, InstructionKind.XOR),
        (0x8125, InstructionKind.SUB),
        (0x8126, InstructionKind.SHR),
        (0x8127, InstructionKind.SUBN),
        (0x812E, InstructionKind.SHL),
        (0xC3FF, InstructionKind.RND),
        (0xD125, InstructionKind.DRW),
        (0xE39E, InstructionKind.SKP),
        (0xE3A1, InstructionKind.SKNP),
    ],
)
def test_decode_known_forms(value: int, kind: InstructionKind) -> None:
    instruction = decode(value)
    assert instruction.kind is kind
    assert instruction.opcode.value == value


@pytest.mark.parametrize("value", [0x5121, 0x8128, 0x812F, 0x9121, 0xE300, 0xF3FF, 0xF300])
def test_unknown_patterns_decode_to_noop_and_log(value: int, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="chip8emu.cpu.decoder"):
        instruction = decode(value)
    assert instruction.kind is InstructionKind.UNKNOWN
    assert f"{value:04x}" in caplog.text


def test_control_transfer_flag() -> None:
    assert decode(0x1200).is_control_transfer
    assert decode(0x00EE).is_control_transfer
    assert not decode(0x6000).is_control_transfer
    assert InstructionKind.CALL in CONTROL_TRANSFER_KINDS


@pytest.mark.parametrize(
    ("value", "text"),
    [
        (0x00E0, "CLS"),
        (0x00EE, "RET"),
        (0x1228, "JP      0x228"),
        (0x6A2A, "LD      Va, 0x2a"),
        (0xA2B4, "LD      I, 0x2b4"),
        (0xD015, "DRW     V0, V1, 0x5"),
        (0xF065, "LD      V0, [I]"),
        (0x8126, "SHR     V1"),
        (0xFFFF, "DW      0xffff"),
    ],
)
def test_format_instruction(value: int, text: str) -> None:
    assert format_instruction(decode(value)) == text
