"""CHIP-8 collaborator bundle used by the executor and the scheduler."""

from __future__ import annotations

from dataclasses import dataclass, field

from chip8emu.chip8.display import Chip8Display, Framebuffer
from chip8emu.chip8.keypad import Chip8Keypad
from chip8emu.chip8.sound import Chip8SoundProcessor


@dataclass
class Chip8Hardware:
    display: Chip8Display = field(default_factory=Chip8Display)
    keypad: Chip8Keypad = field(default_factory=Chip8Keypad)
    sound_processor: Chip8SoundProcessor = field(default_factory=Chip8SoundProcessor)
    framebuffer: Framebuffer = field(default_factory=Framebuffer)
