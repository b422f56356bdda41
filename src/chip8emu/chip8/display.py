"""CHIP-8 framebuffer and display model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

WIDTH = 64
HEIGHT = 32
SPRITE_WIDTH = 8

COLOR_OFF = 0x000000
COLOR_ON = 0xFFFFFF


@dataclass
class Framebuffer:
    """64x32 one-bit surface with wrap-around addressing."""

    WIDTH: int = WIDTH
    HEIGHT: int = HEIGHT

    pixels: bytearray = field(default_factory=lambda: bytearray(WIDTH * HEIGHT))

    def clear(self) -> None:
        self.pixels = bytearray(self.WIDTH * self.HEIGHT)

    def _offset(self, x: int, y: int) -> int:
        return (y % self.HEIGHT) * self.WIDTH + (x % self.WIDTH)

    def get_pixel(self, x: int, y: int) -> int:
        return self.pixels[self._offset(x, y)]

    def set_pixel(self, x: int, y: int, value: int) -> None:
        self.pixels[self._offset(x, y)] = 1 if value else 0

    def apply_sprite(self, rows: Iterable[int], x: int, y: int) -> bool:
        """XOR sprite rows onto the buffer at (x, y).

        Returns True when any lit pixel was turned off.
        """

        collision = False
        for row_index, row in enumerate(rows):
            for column in range(SPRITE_WIDTH):
                if not (row >> (SPRITE_WIDTH - 1 - column)) & 0x01:
                    continue
                offset = self._offset(x + column, y + row_index)
                if self.pixels[offset]:
                    collision = True
                self.pixels[offset] ^= 0x01
        return collision

    def lit_count(self) -> int:
        return sum(self.pixels)

    def rows(self) -> List[List[int]]:
        return [
            list(self.pixels[line * self.WIDTH:(line + 1) * self.WIDTH])
            for line in range(self.HEIGHT)
        ]

    def render_pixels(self, on: int = COLOR_ON, off: int = COLOR_OFF) -> List[List[int]]:
        return [[on if bit else off for bit in row] for row in self.rows()]


@dataclass
class Chip8Display:
    """Display sink fed by the machine.

    The base class only keeps counters and the last rendered frame so it can
    run headless; :class:`chip8emu.frontend.window.PygameWindow` overrides
    the hooks to draw into a window.
    """

    foreground: int = COLOR_ON
    background: int = COLOR_OFF
    frames_rendered: int = 0
    pause_overlays: int = 0
    clears: int = 0
    paused_overlay_visible: bool = False
    last_frame: bytes = b""

    def clear(self) -> None:
        self.clears += 1

    def render(self, framebuffer: Framebuffer) -> None:
        self.frames_rendered += 1
        self.paused_overlay_visible = False
        self.last_frame = bytes(framebuffer.pixels)

    def render_pause_overlay(self) -> None:
        self.pause_overlays += 1
        self.paused_overlay_visible = True

    def close(self) -> None:
        return

    def render_pygame_surface(self, framebuffer: Framebuffer, scaling: int = 1):
        """Render the framebuffer into a pygame Surface.

        Parameters
        ----------
        framebuffer:
            Pixels to draw.
        scaling:
            Integer scale factor applied to both axes.

        Raises
        ------
        RuntimeError
            If pygame is not available.
        """

        if scaling <= 0:
            raise ValueError("scaling factor must be positive")

        try:
            import pygame  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("pygame is required for render_pygame_surface") from exc

        surface = pygame.Surface((framebuffer.WIDTH * scaling, framebuffer.HEIGHT * scaling))
        surface.fill(self.background)
        for y, row in enumerate(framebuffer.rows()):
            for x, bit in enumerate(row):
                if bit:
                    surface.fill(self.foreground, (x * scaling, y * scaling, scaling, scaling))
        return surface
