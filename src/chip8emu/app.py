"""CHIP-8 emulator application."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Iterable, Optional

from chip8emu.chip8.computer import DEFAULT_CYCLE_DELAY, Chip8Computer
from chip8emu.chip8.hardware import Chip8Hardware
from chip8emu.chip8.keypad import Chip8Keypad
from chip8emu.chip8.sound import Chip8SoundProcessor
from chip8emu.cpu.disassembler import disassemble
from chip8emu.emulator.file import ProgramInfo, ProgramLoadError, load_rom
from chip8emu.frontend.window import BASE_CAPTION, PygameWindow

ENV_LOG_LEVEL = "CHIP8EMU_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


def configure_logging(level: Optional[str] = None) -> None:
    name = (level or os.getenv(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        raise ValueError(f"unknown log level: {name}")
    logging.basicConfig(level=numeric, format="[%(levelname)s] %(name)s: %(message)s")


def print_disassembly(program: ProgramInfo, stream=None) -> None:
    out = stream if stream is not None else sys.stdout
    print("Disassembling:", file=out)
    for line in disassemble(program.code_words, program.start):
        print(line, file=out)


def _pygame_loop(
    program: ProgramInfo,
    *,
    scale: int,
    cycle_delay: float,
    enable_audio: bool | None,
) -> None:
    keypad = Chip8Keypad()
    window = PygameWindow(scale=scale, caption=f"{BASE_CAPTION} | {program.name}", keypad=keypad)
    hardware = Chip8Hardware(
        display=window,
        keypad=keypad,
        sound_processor=Chip8SoundProcessor(enable_audio=Chip8Computer._resolve_audio(enable_audio)),
    )
    window.open()
    computer = Chip8Computer(program, hardware=hardware, cycle_delay=cycle_delay)
    window.on_quit = computer.request_stop
    try:
        computer.run()
    finally:
        computer.close()


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chip8emu", description="CHIP-8 emulator")
    parser.add_argument("rom", help="Path to a raw CHIP-8 program image")
    parser.add_argument(
        "-d",
        "--disassemble",
        action="store_true",
        help="Print a disassembly of the whole program before running it",
    )
    parser.add_argument("--scale", type=int, default=10, help="Integer scaling factor for display (default: 10)")
    parser.add_argument(
        "--cycle-delay",
        type=float,
        default=DEFAULT_CYCLE_DELAY * 1000.0,
        help="Milliseconds to sleep between instructions (default: 2)",
    )
    parser.add_argument(
        "--audio",
        dest="audio",
        action="store_true",
        help="Enable the buzzer (requires pygame mixer)",
    )
    parser.add_argument(
        "--no-audio",
        dest="audio",
        action="store_false",
        help="Force audio output off even if CHIP8EMU_AUDIO enables it",
    )
    parser.set_defaults(audio=None)
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Logging level (default: ${ENV_LOG_LEVEL} or {DEFAULT_LOG_LEVEL})",
    )
    parser.add_argument(
        "--no-window",
        action="store_true",
        help="Only load (and optionally disassemble) the program, then exit",
    )
    return parser


def main(argv: Iterable[str] | None = None) -> int:
    parser = _build_argument_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        configure_logging(args.log_level)
    except ValueError as exc:
        parser.error(str(exc))
    if args.scale <= 0:
        parser.error("scale must be positive")
    if args.cycle_delay < 0:
        parser.error("cycle delay must not be negative")

    try:
        program = load_rom(args.rom)
    except ProgramLoadError as exc:
        print(f"Failed to load rom {args.rom}: {exc}", file=sys.stderr)
        return 1

    if args.disassemble:
        print_disassembly(program)

    if args.no_window:
        return 0

    try:
        _pygame_loop(
            program,
            scale=args.scale,
            cycle_delay=args.cycle_delay / 1000.0,
            enable_audio=args.audio,
        )
    except RuntimeError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
