"""Headless runner for CHIP-8 program debugging workflows."""

from __future__ import annotations

import argparse
import random
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from chip8emu.chip8.computer import Chip8Computer
from chip8emu.chip8.keypad import InputClosed
from chip8emu.emulator.file import ProgramLoadError, load_rom
from chip8emu.memory import ADDRESS_SPACE_SIZE

DEFAULT_MAX_CYCLES = 10_000
ADDRESS_MASK = ADDRESS_SPACE_SIZE - 1


@dataclass(frozen=True)
class DumpRange:
    """Inclusive memory range used for dumping."""

    start: int
    end: int

    def iter_addresses(self) -> Iterable[int]:
        for address in range(self.start, self.end + 1):
            yield address & ADDRESS_MASK


def _parse_hex(value: str) -> int:
    text = value.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if not text:
        raise ValueError("empty hexadecimal value")
    result = int(text, 16)
    if not (0 <= result <= ADDRESS_MASK):
        raise ValueError("hex value out of range")
    return result


def _parse_range(spec: str) -> DumpRange:
    start_str, sep, end_str = spec.partition(":")
    if not sep:
        raise ValueError("range specification must contain ':'")
    start = _parse_hex(start_str)
    end = _parse_hex(end_str)
    if end < start:
        raise ValueError("range end must be >= start")
    return DumpRange(start, end)


def _merge_ranges(ranges: Sequence[DumpRange]) -> List[DumpRange]:
    if not ranges:
        return [DumpRange(0x000, ADDRESS_MASK)]
    ordered = sorted(ranges, key=lambda r: (r.start, r.end))
    merged: List[DumpRange] = []
    for current in ordered:
        if not merged:
            merged.append(current)
            continue
        last = merged[-1]
        if current.start <= last.end + 1:
            merged[-1] = DumpRange(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def _format_hex_dump(memory, dump_ranges: Sequence[DumpRange]) -> str:
    lines: List[str] = []
    header = "ADDR " + " ".join(f"+{offset:X}" for offset in range(16))
    for index, dump_range in enumerate(dump_ranges):
        if index:
            lines.append("")
        lines.append(header)
        start_line = dump_range.start & ~0x0F
        end_line = dump_range.end | 0x0F
        for base in range(start_line, end_line + 1, 16):
            row = [f"{base & ADDRESS_MASK:03X}"]
            for offset in range(16):
                address = (base + offset) & ADDRESS_MASK
                row.append(f"{memory.load8(address) & 0xFF:02X}")
            lines.append(" ".join(row))
    return "\n".join(lines)


def _format_registers(computer: Chip8Computer) -> str:
    regs = computer.registers
    timers = computer.state.timers
    general = " ".join(f"V{index:X}={value:02X}" for index, value in enumerate(regs.v))
    return (
        f"PC={regs.program_counter:04X} I={regs.index:04X} SP={regs.stack_pointer:X} "
        f"DT={timers.delay:02X} ST={timers.sound:02X}\n{general}"
    )


def _write_dump(memory, dump_ranges: Sequence[DumpRange], *, target: Path | None, fmt: str) -> None:
    ranges = _merge_ranges(dump_ranges)
    if fmt == "bin":
        data = bytearray()
        for dump_range in ranges:
            for address in dump_range.iter_addresses():
                data.append(memory.load8(address) & 0xFF)
        if target is None:
            sys.stdout.buffer.write(bytes(data))
            return
        target.write_bytes(bytes(data))
        return

    text = _format_hex_dump(memory, ranges)
    if target is None:
        print(text)
    else:
        target.write_text(text + "\n")


def _execute_program(
    computer: Chip8Computer,
    *,
    max_cycles: int | None,
    breakpoints: Sequence[int],
) -> Tuple[int, bool, bool]:
    break_set = {value & ADDRESS_MASK for value in breakpoints}
    executed = 0
    break_hit = False
    cycle_hit = False
    while max_cycles is None or executed < max_cycles:
        if break_set and computer.registers.program_counter in break_set:
            break_hit = True
            break
        computer.cycle()
        executed += 1
    else:
        cycle_hit = True
    return executed, break_hit, cycle_hit


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8-debug-runner",
        description="Headless CHIP-8 runner for program diagnostics.",
    )
    parser.add_argument("--program", type=str, required=True, help="Raw CHIP-8 program image")
    parser.add_argument(
        "--cycles",
        type=int,
        default=DEFAULT_MAX_CYCLES,
        help="Maximum instructions to execute (0 or negative disables the limit)",
    )
    parser.add_argument(
        "--break-pc",
        action="append",
        default=[],
        help="Stop when PC reaches the given hex address (repeatable)",
    )
    parser.add_argument("--dump", type=str, default=None, help="File path for memory dump (defaults to stdout)")
    parser.add_argument(
        "--dump-range",
        action="append",
        default=[],
        help="Memory range to dump in START:END hex form (inclusive). Repeat to add multiple ranges.",
    )
    parser.add_argument("--dump-format", choices=("hex", "bin"), default="hex", help="Dump format")
    parser.add_argument("--registers", action="store_true", help="Print registers and timers before the dump")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the RND instruction")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_argument_parser()
    args = parser.parse_args(argv)

    breakpoints: List[int] = []
    for spec in args.break_pc:
        try:
            breakpoints.append(_parse_hex(spec))
        except ValueError as exc:
            parser.error(f"invalid breakpoint address '{spec}': {exc}")

    dump_ranges: List[DumpRange] = []
    for spec in args.dump_range:
        try:
            dump_ranges.append(_parse_range(spec))
        except ValueError as exc:
            parser.error(f"invalid dump range '{spec}': {exc}")

    try:
        program = load_rom(args.program)
    except ProgramLoadError as exc:
        print(f"Failed to load program: {exc}", file=sys.stderr)
        return 1

    rng = random.Random(args.seed) if args.seed is not None else None

    computer = Chip8Computer(program, enable_audio=False, cycle_delay=0.0, rng=rng)
    # Nothing ever presses a key here; close the keypad so a key wait ends the run.
    computer.hardware.keypad.close()
    cycle_limit = args.cycles if args.cycles > 0 else None

    with computer:
        try:
            _, break_hit, cycle_hit = _execute_program(
                computer, max_cycles=cycle_limit, breakpoints=breakpoints
            )
        except InputClosed:
            print("Execution stopped: program waited for a key", file=sys.stderr)
            break_hit, cycle_hit = False, False

        if args.registers:
            print(_format_registers(computer))
        dump_target = Path(args.dump) if args.dump is not None else None
        _write_dump(computer.memory, dump_ranges, target=dump_target, fmt=args.dump_format)

    if break_hit:
        return 0
    if cycle_hit and args.cycles > 0:
        print("Execution stopped: cycle limit reached", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
