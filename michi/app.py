"""
Michi Window
============
pygame front end: the world view, the HUD, the diagnostics list and the
command panel along the bottom edge.

Keys (idle):    Enter or click on the panel starts typing
Keys (typing):  Enter submits, Esc discards, Tab jumps to the next error,
                arrows / Home / End / Backspace / Delete edit the line
"""
import logging
import math

import pygame

from .config import MichiConfig
from .console import ColorClass, pixel_x_to_char_offset
from .session import Session

logger = logging.getLogger(__name__)

PALETTE = {
    "bg": (18, 18, 24),
    "panel": (30, 30, 42),
    "panel_idle": (24, 24, 32),
    "hud": (220, 220, 220),
    "error": (255, 90, 90),
    "cursor": (240, 240, 240),
}

TOKEN_COLORS = {
    ColorClass.GENERAL: (220, 220, 220),
    ColorClass.ERROR: (255, 80, 80),
    ColorClass.NUMBER: (120, 200, 255),
    ColorClass.IDENTIFIER: (140, 230, 140),
    ColorClass.OPERATOR: (250, 200, 90),
}

PAD = 6
BLINK_PERIOD = 1.0

# Actor outline, in actor units with +y forward
TRIANGLE = ((-1.0, -1.0), (0.0, 1.0), (1.0, -1.0))
OUTLINE_SCALE = 1.2


def to_rgb(color) -> tuple[int, int, int]:
    """Float RGBA lanes in [0, 1] to a pygame color."""
    return tuple(int(min(max(c, 0.0), 1.0) * 255) for c in color[:3])


class App:
    """
    The Michi window.

    Usage:
        App(MichiConfig()).run()
    """

    def __init__(self, config: MichiConfig | None = None):
        self.config = config or MichiConfig()
        self.session = Session(self.config)

        pygame.init()
        self.screen = pygame.display.set_mode((self.config.width, self.config.height),
                                              pygame.RESIZABLE)
        pygame.display.set_caption(self.config.title)
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont(self.config.font_name, self.config.font_size)
        self.line_h = self.font.get_height() + 2
        self.blink = 0.0
        logger.info("window %dx%d at %d fps", self.config.width, self.config.height,
                    self.config.fps)

    # ─────────────────────────────────────────────────────────
    #  Geometry
    # ─────────────────────────────────────────────────────────

    def panel_rect(self) -> pygame.Rect:
        w, h = self.screen.get_size()
        height = self.line_h + 2 * PAD
        return pygame.Rect(0, h - height, w, height)

    def world_to_screen(self, x: float, y: float) -> tuple[float, float]:
        """World units (y up, camera centred) to pixels."""
        w, h = self.screen.get_size()
        world = self.session.world
        ppu = h / (2.0 * world.size)
        cx, cy = world.camera
        return w / 2 + (x - cx) * ppu, h / 2 - (y - cy) * ppu

    def pixels_per_unit(self) -> float:
        return self.screen.get_height() / (2.0 * self.session.world.size)

    def advance(self, ch: str) -> float:
        return self.font.size(ch)[0]

    # ─────────────────────────────────────────────────────────
    #  Events
    # ─────────────────────────────────────────────────────────

    def handle_event(self, ev) -> bool:
        """Returns False when the window should close."""
        session = self.session
        if ev.type == pygame.QUIT:
            return False

        if ev.type == pygame.MOUSEBUTTONDOWN and ev.button == 1:
            rect = self.panel_rect()
            if rect.collidepoint(ev.pos):
                session.start_typing()
                offset = pixel_x_to_char_offset(session.text, rect.x + PAD, ev.pos[0], self.advance)
                session.console.set_cursor(offset)
                self.blink = 0.0
            return True

        if ev.type == pygame.TEXTINPUT and session.typing:
            session.type_text(ev.text)
            self.blink = 0.0
            return True

        if ev.type != pygame.KEYDOWN:
            return True

        if not session.typing:
            if ev.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
                session.start_typing()
            return True

        console = session.console
        match ev.key:
            case pygame.K_ESCAPE:
                session.stop_typing()
            case pygame.K_RETURN | pygame.K_KP_ENTER:
                session.submit()
            case pygame.K_TAB:
                session.next_error()
            case pygame.K_BACKSPACE:
                session.backspace()
            case pygame.K_DELETE:
                session.delete()
            case pygame.K_LEFT:
                console.left()
            case pygame.K_RIGHT:
                console.right()
            case pygame.K_HOME:
                console.home()
            case pygame.K_END:
                console.end()
        self.blink = 0.0
        return True

    # ─────────────────────────────────────────────────────────
    #  Drawing
    # ─────────────────────────────────────────────────────────

    def draw_strokes(self):
        ppu = self.pixels_per_unit()
        for stroke in self.session.world.strokes:
            x, y = self.world_to_screen(*stroke.position)
            rx = max(abs(stroke.scale[0]) * ppu, 1.0)
            ry = max(abs(stroke.scale[1]) * ppu, 1.0)
            rect = pygame.Rect(0, 0, int(2 * rx), int(2 * ry))
            rect.center = (int(x), int(y))
            pygame.draw.ellipse(self.screen, to_rgb(stroke.color), rect)

    def actor_points(self, grow: float = 1.0) -> list[tuple[float, float]]:
        actor = self.session.world.actor
        # Positive rotation turns clockwise on screen
        s, c = math.sin(actor.rotation), math.cos(actor.rotation)
        points = []
        for px, py in TRIANGLE:
            px *= actor.scale[0] * grow
            py *= actor.scale[1] * grow
            wx = actor.position[0] + px * c + py * s
            wy = actor.position[1] - px * s + py * c
            points.append(self.world_to_screen(wx, wy))
        return points

    def draw_actor(self):
        color = self.session.world.actor.color
        inverted = [1.0 - c for c in color[:3]]
        pygame.draw.polygon(self.screen, to_rgb(inverted), self.actor_points(OUTLINE_SCALE))
        pygame.draw.polygon(self.screen, to_rgb(color), self.actor_points())

    def draw_text_lines(self, lines: list[str], x: int, y: int, color) -> int:
        for text in lines:
            self.screen.blit(self.font.render(text, True, color), (x, y))
            y += self.line_h
        return y

    def draw_panel(self):
        session = self.session
        rect = self.panel_rect()
        pygame.draw.rect(self.screen, PALETTE["panel"] if session.typing else PALETTE["panel_idle"], rect)

        x = rect.x + PAD
        y = rect.y + PAD
        for run in session.highlight():
            surf = self.font.render(run.text, True, TOKEN_COLORS[run.color])
            self.screen.blit(surf, (x, y))
            x += surf.get_width()

        if session.typing and (self.blink % BLINK_PERIOD) < BLINK_PERIOD / 2:
            cx = rect.x + PAD + self.font.size(session.text[:session.console.cursor])[0]
            pygame.draw.line(self.screen, PALETTE["cursor"], (cx, y), (cx, y + self.line_h - 2), 1)

        # Diagnostics stack upward from the panel
        lines = [str(d) for d in session.diagnostics()]
        self.draw_text_lines(lines, rect.x + PAD, rect.y - PAD - len(lines) * self.line_h,
                             PALETTE["error"])

    def draw(self):
        self.screen.fill(PALETTE["bg"])
        self.draw_strokes()
        self.draw_actor()
        self.draw_text_lines(self.session.hud_lines(), PAD, PAD, PALETTE["hud"])
        self.draw_panel()
        pygame.display.flip()

    # ─────────────────────────────────────────────────────────
    #  Main Loop
    # ─────────────────────────────────────────────────────────

    def run(self):
        pygame.key.start_text_input()
        running = True
        while running and not self.session.exit_requested:
            dt = self.clock.tick(self.config.fps) / 1000.0
            self.blink += dt

            for ev in pygame.event.get():
                if not self.handle_event(ev):
                    running = False
                    break

            self.session.tick(dt)
            self.draw()

        logger.info("window closed")
        pygame.quit()
