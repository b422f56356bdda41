"""pygame window acting as the CHIP-8 display sink and keypad source."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import Callable, Dict, Optional

from chip8emu.chip8.display import Chip8Display, Framebuffer, HEIGHT, WIDTH
from chip8emu.chip8.keypad import Chip8Keypad

logger = logging.getLogger(__name__)

BASE_CAPTION = "CHIP-8 Emulator"
FRAME_INTERVAL = 1.0 / 60.0
PAUSE_KEY = ord(" ")
QUIT_KEY = 27  # pygame.K_ESCAPE

# QWERTY layout mapped onto the 4x4 hexadecimal keypad:
#   1 2 3 C      1 2 3 4
#   4 5 6 D  <-  q w e r
#   7 8 9 E      a s d f
#   A 0 B F      z x c v
KEYPAD_MAP: Dict[int, int] = {
    ord("1"): 0x1,
    ord("2"): 0x2,
    ord("3"): 0x3,
    ord("4"): 0xC,
    ord("q"): 0x4,
    ord("w"): 0x5,
    ord("e"): 0x6,
    ord("r"): 0xD,
    ord("a"): 0x7,
    ord("s"): 0x8,
    ord("d"): 0x9,
    ord("f"): 0xE,
    ord("z"): 0xA,
    ord("x"): 0x0,
    ord("c"): 0xB,
    ord("v"): 0xF,
}


def handle_key_event(keypad: Chip8Keypad, key: int, pressed: bool) -> bool:
    """Route a host key to the keypad. Returns True when the key was mapped."""

    if key == PAUSE_KEY:
        if pressed:
            keypad.toggle_pause()
        return True
    mapped = KEYPAD_MAP.get(key)
    if mapped is None:
        return False
    if pressed:
        keypad.press(mapped)
    else:
        keypad.release(mapped)
    return True


@dataclass
class PygameWindow(Chip8Display):
    """Display sink drawing into a pygame window.

    Every render call also drains the pygame event queue into the keypad so
    that a blocking key wait keeps the window responsive.
    """

    scale: int = 10
    caption: str = BASE_CAPTION
    keypad: Optional[Chip8Keypad] = None
    on_quit: Optional[Callable[[], None]] = None
    quit_requested: bool = False
    _screen: object = field(default=None, repr=False)
    _last_flip: float = field(default=0.0, repr=False)
    _framebuffer: Optional[Framebuffer] = field(default=None, repr=False)

    def open(self) -> None:
        if self.scale <= 0:
            raise ValueError("scaling factor must be positive")
        try:
            import pygame  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("pygame is required for the window front end") from exc

        pygame.display.init()
        pygame.font.init()
        self._screen = pygame.display.set_mode((WIDTH * self.scale, HEIGHT * self.scale))
        pygame.display.set_caption(self.caption)
        if self.keypad is not None:
            self.keypad.poller = self.poll_events

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------
    def poll_events(self) -> None:
        if self._screen is None:
            return
        import pygame  # type: ignore

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._request_quit()
            elif event.type in (pygame.KEYDOWN, pygame.KEYUP):
                pressed = event.type == pygame.KEYDOWN
                if pressed and event.key == QUIT_KEY:
                    self._request_quit()
                    continue
                if self.keypad is not None:
                    handle_key_event(self.keypad, event.key, pressed)

    def _request_quit(self) -> None:
        if self.quit_requested:
            return
        self.quit_requested = True
        if self.on_quit is not None:
            self.on_quit()
        if self.keypad is not None:
            self.keypad.close()

    # ------------------------------------------------------------------
    # Display sink
    # ------------------------------------------------------------------
    def clear(self) -> None:
        super().clear()
        self._last_flip = 0.0

    def render(self, framebuffer: Framebuffer) -> None:
        super().render(framebuffer)
        self._framebuffer = framebuffer
        self.poll_events()
        now = time.monotonic()
        if self._screen is None or now - self._last_flip < FRAME_INTERVAL:
            return
        self._last_flip = now
        self._draw_framebuffer(framebuffer)

        import pygame  # type: ignore

        pygame.display.flip()

    def render_pause_overlay(self) -> None:
        first = not self.paused_overlay_visible
        super().render_pause_overlay()
        self.poll_events()
        if self._screen is None or not first:
            return
        import pygame  # type: ignore

        if self._framebuffer is not None:
            self._draw_framebuffer(self._framebuffer)
        width, height = 14 * self.scale, 5 * self.scale
        left = (WIDTH * self.scale - width) // 2
        top = (HEIGHT * self.scale - height) // 2
        box = pygame.Rect(left, top, width, height)
        pygame.draw.rect(self._screen, self.background, box)
        pygame.draw.rect(self._screen, self.foreground, box, max(1, self.scale // 4))
        font = pygame.font.SysFont("Courier", max(8, 2 * self.scale), bold=True)
        label = font.render("PAUSED", True, (0xFF, 0xFF, 0xFF))
        self._screen.blit(label, label.get_rect(center=box.center))
        pygame.display.flip()

    def _draw_framebuffer(self, framebuffer: Framebuffer) -> None:
        surface = self.render_pygame_surface(framebuffer, self.scale)
        self._screen.blit(surface, (0, 0))

    def close(self) -> None:
        if self._screen is None:
            return
        try:
            import pygame  # type: ignore

            pygame.display.quit()
        except Exception:
            logger.warning("failed to close window", exc_info=True)
        finally:
            self._screen = None
