"""CHIP-8 instruction executor."""

from __future__ import annotations

import logging
import random
from typing import Callable, Dict, Optional

from chip8emu.cpu.decoder import Instruction, InstructionKind, decode
from chip8emu.cpu.opcode import INSTRUCTION_WIDTH, Opcode
from chip8emu.cpu.state import FLAG_REGISTER, MachineState
from chip8emu.memory import glyph_address

logger = logging.getLogger(__name__)

ADDRESS_MASK = 0xFFFF

Handler = Callable[[Opcode], None]


class Chip8CPU:
    """Executes decoded instructions against a :class:`MachineState`.

    After every instruction ``step`` advances the program counter by one
    instruction width. Jumps, calls and returns therefore store their target
    minus one width so the advance lands exactly on it.
    """

    def __init__(self, state: MachineState, hardware: object, rng: Optional[random.Random] = None) -> None:
        self.state = state
        self.hardware = hardware
        self.rng = rng if rng is not None else random.Random()
        self.executed: int = 0
        self.last_instruction: Optional[Instruction] = None
        self._opcode_table: Dict[InstructionKind, Handler] = {}
        self._init_opcode_table()

    # ------------------------------------------------------------------
    # Convenience accessors
    # ------------------------------------------------------------------
    @property
    def registers(self):
        return self.state.registers

    @property
    def memory(self):
        return self.state.memory

    @property
    def framebuffer(self):
        return getattr(self.hardware, "framebuffer")

    def _advance(self, delta: int) -> None:
        regs = self.state.registers
        regs.program_counter = (regs.program_counter + delta) & ADDRESS_MASK

    def _transfer(self, target: int) -> None:
        self.state.registers.program_counter = (target - INSTRUCTION_WIDTH) & ADDRESS_MASK

    def _skip_if(self, condition: bool) -> None:
        if condition:
            self._advance(INSTRUCTION_WIDTH)

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------
    def fetch(self) -> Opcode:
        return Opcode(self.state.memory.load16(self.state.registers.program_counter))

    def step(self) -> Instruction:
        """Fetch, decode and execute one instruction, then advance PC."""

        instruction = decode(self.fetch())
        self.execute(instruction)
        self._advance(INSTRUCTION_WIDTH)
        return instruction

    def execute(self, instruction: Instruction) -> None:
        self._opcode_table[instruction.kind](instruction.opcode)
        self.last_instruction = instruction
        self.executed += 1

    # ------------------------------------------------------------------
    # Dispatch table
    # ------------------------------------------------------------------
    def _init_opcode_table(self) -> None:
        K = InstructionKind
        self._register_opcode(K.CLS, self._opcode_cls)
        self._register_opcode(K.RET, self._opcode_ret)
        self._register_opcode(K.SYS, self._opcode_nop)
        self._register_opcode(K.JP, self._opcode_jp)
        self._register_opcode(K.JP_V0, self._opcode_jp_v0)
        self._register_opcode(K.CALL, self._opcode_call)
        self._register_opcode(K.SE_BYTE, self._opcode_se_byte)
        self._register_opcode(K.SE_REG, self._opcode_se_reg)
        self._register_opcode(K.SNE_BYTE, self._opcode_sne_byte)
        self._register_opcode(K.SNE_REG, self._opcode_sne_reg)
        self._register_opcode(K.LD_BYTE, self._opcode_ld_byte)
        self._register_opcode(K.LD_REG, self._opcode_ld_reg)
        self._register_opcode(K.LD_I, self._opcode_ld_i)
        self._register_opcode(K.LD_VX_DT, self._opcode_ld_vx_dt)
        self._register_opcode(K.LD_VX_K, self._opcode_ld_vx_k)
        self._register_opcode(K.LD_DT_VX, self._opcode_ld_dt_vx)
        self._register_opcode(K.LD_ST_VX, self._opcode_ld_st_vx)
        self._register_opcode(K.LD_F_VX, self._opcode_ld_f_vx)
        self._register_opcode(K.LD_B_VX, self._opcode_ld_b_vx)
        self._register_opcode(K.LD_MEM_VX, self._opcode_ld_mem_vx)
        self._register_opcode(K.LD_VX_MEM, self._opcode_ld_vx_mem)
        self._register_opcode(K.ADD_BYTE, self._opcode_add_byte)
        self._register_opcode(K.ADD_REG, self._opcode_add_reg)
        self._register_opcode(K.ADD_I_VX, self._opcode_add_i_vx)
        self._register_opcode(K.OR, self._opcode_or)
        self._register_opcode(K.AND, self._opcode_and)
        self._register_opcode(K.XOR, self._opcode_xor)
        self._register_opcode(K.SUB, self._opcode_sub)
        self._register_opcode(K.SHR, self._opcode_shr)
        self._register_opcode(K.SUBN, self._opcode_subn)
        self._register_opcode(K.SHL, self._opcode_shl)
        self._register_opcode(K.RND, self._opcode_rnd)
        self._register_opcode(K.DRW, self._opcode_drw)
        self._register_opcode(K.SKP, self._opcode_skp)
        self._register_opcode(K.SKNP, self._opcode_sknp)
        self._register_opcode(K.UNKNOWN, self._opcode_nop)
        missing = set(InstructionKind) - set(self._opcode_table)
        if missing:
            raise RuntimeError(f"no handler for {sorted(kind.name for kind in missing)}")

    def _register_opcode(self, kind: InstructionKind, handler: Handler) -> None:
        self._opcode_table[kind] = handler

    # ------------------------------------------------------------------
    # Flow control
    # ------------------------------------------------------------------
    def _opcode_nop(self, op: Opcode) -> None:
        return

    def _opcode_cls(self, op: Opcode) -> None:
        self.framebuffer.clear()
        display = getattr(self.hardware, "display", None)
        if display is not None:
            display.clear()

    def _opcode_ret(self, op: Opcode) -> None:
        regs = self.state.registers
        # The stored address is the CALL itself; the post-execute advance
        # moves past it.
        regs.program_counter = self.state.stack.pop(regs.program_counter)

    def _opcode_jp(self, op: Opcode) -> None:
        self._transfer(op.addr)

    def _opcode_jp_v0(self, op: Opcode) -> None:
        self._transfer(self.state.registers[0] + op.addr)

    def _opcode_call(self, op: Opcode) -> None:
        regs = self.state.registers
        self.state.stack.push(regs.program_counter)
        self._transfer(op.addr)

    def _opcode_se_byte(self, op: Opcode) -> None:
        self._skip_if(self.state.registers[op.x] == op.byte)

    def _opcode_se_reg(self, op: Opcode) -> None:
        regs = self.state.registers
        self._skip_if(regs[op.x] == regs[op.y])

    def _opcode_sne_byte(self, op: Opcode) -> None:
        self._skip_if(self.state.registers[op.x] != op.byte)

    def _opcode_sne_reg(self, op: Opcode) -> None:
        regs = self.state.registers
        self._skip_if(regs[op.x] != regs[op.y])

    def _opcode_skp(self, op: Opcode) -> None:
        key = self.state.registers[op.x] & 0x0F
        self._skip_if(self.hardware.keypad.is_key_down(key))

    def _opcode_sknp(self, op: Opcode) -> None:
        key = self.state.registers[op.x] & 0x0F
        self._skip_if(self.hardware.keypad.is_key_up(key))

    # ------------------------------------------------------------------
    # Loads
    # ------------------------------------------------------------------
    def _opcode_ld_byte(self, op: Opcode) -> None:
        self.state.registers[op.x] = op.byte

    def _opcode_ld_reg(self, op: Opcode) -> None:
        regs = self.state.registers
        regs[op.x] = regs[op.y]

    def _opcode_ld_i(self, op: Opcode) -> None:
        self.state.registers.index = op.addr

    def _opcode_ld_vx_dt(self, op: Opcode) -> None:
        self.state.registers[op.x] = self.state.timers.delay

    def _opcode_ld_vx_k(self, op: Opcode) -> None:
        # Blocks the whole interpreter until a key edge arrives.
        self.state.registers[op.x] = self.hardware.keypad.wait_for_next_key()

    def _opcode_ld_dt_vx(self, op: Opcode) -> None:
        self.state.timers.delay = self.state.registers[op.x]

    def _opcode_ld_st_vx(self, op: Opcode) -> None:
        self.state.timers.sound = self.state.registers[op.x]

    def _opcode_ld_f_vx(self, op: Opcode) -> None:
        self.state.registers.index = glyph_address(self.state.registers[op.x])

    def _opcode_ld_b_vx(self, op: Opcode) -> None:
        value = self.state.registers[op.x]
        address = self.state.registers.index
        self.state.memory.write_block(address, (value // 100, (value // 10) % 10, value % 10))

    def _opcode_ld_mem_vx(self, op: Opcode) -> None:
        regs = self.state.registers
        self.state.memory.write_block(regs.index, regs.v[:op.x + 1])

    def _opcode_ld_vx_mem(self, op: Opcode) -> None:
        regs = self.state.registers
        for register, value in enumerate(self.state.memory.read_block(regs.index, op.x + 1)):
            regs[register] = value

    # ------------------------------------------------------------------
    # Arithmetic and logic
    # ------------------------------------------------------------------
    def _opcode_add_byte(self, op: Opcode) -> None:
        regs = self.state.registers
        regs[op.x] = regs[op.x] + op.byte

    def _opcode_add_reg(self, op: Opcode) -> None:
        regs = self.state.registers
        total = regs[op.x] + regs[op.y]
        regs[op.x] = total
        regs[FLAG_REGISTER] = 1 if total > 0xFF else 0

    def _opcode_add_i_vx(self, op: Opcode) -> None:
        regs = self.state.registers
        regs.index = (regs.index + regs[op.x]) & ADDRESS_MASK

    def _opcode_or(self, op: Opcode) -> None:
        regs = self.state.registers
        regs[op.x] = regs[op.x] | regs[op.y]

    def _opcode_and(self, op: Opcode) -> None:
        regs = self.state.registers
        regs[op.x] = regs[op.x] & regs[op.y]

    def _opcode_xor(self, op: Opcode) -> None:
        regs = self.state.registers
        regs[op.x] = regs[op.x] ^ regs[op.y]

    def _opcode_sub(self, op: Opcode) -> None:
        regs = self.state.registers
        minuend, subtrahend = regs[op.x], regs[op.y]
        regs[op.x] = minuend - subtrahend
        regs[FLAG_REGISTER] = 1 if minuend >= subtrahend else 0

    def _opcode_subn(self, op: Opcode) -> None:
        regs = self.state.registers
        first, second = regs[op.x], regs[op.y]
        regs[op.x] = second - first
        regs[FLAG_REGISTER] = 1 if second >= first else 0

    def _opcode_shr(self, op: Opcode) -> None:
        # Shifts Vx in place; Vy is ignored.
        regs = self.state.registers
        value = regs[op.x]
        regs[op.x] = value >> 1
        regs[FLAG_REGISTER] = value & 0x01

    def _opcode_shl(self, op: Opcode) -> None:
        regs = self.state.registers
        value = regs[op.x]
        regs[op.x] = value << 1
        regs[FLAG_REGISTER] = (value >> 7) & 0x01

    def _opcode_rnd(self, op: Opcode) -> None:
        self.state.registers[op.x] = self.rng.randrange(0x100) & op.byte

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------
    def _opcode_drw(self, op: Opcode) -> None:
        regs = self.state.registers
        rows = self.state.memory.read_block(regs.index, op.nibble)
        collision = self.framebuffer.apply_sprite(rows, regs[op.x], regs[op.y])
        regs[FLAG_REGISTER] = 1 if collision else 0
