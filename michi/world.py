"""
Michi World
===========
The simulated scene that Michi statements act on: one actor, the output
register, the camera, drawn strokes and the HUD display switches.

Animated actor fields come in pairs. Statements write the *target* field;
`World.update(dt)` eases the visible field toward its target at the rate
set in `actor.speed`. Easing is frame-rate independent:

    factor = 1 - (1 - speed) ** dt

Variables in the language are bound to fields through `Location` handles,
so assigning to `actor.color.y` writes straight into the actor.

Chained statements (`move(2): rotate(90): move(2)`) are queued. Each
waits until the actor has finished the previous move and turn, so the
second move heads in the rotated direction.
"""
import logging
import math
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .names import ConstantKind, VariableKind, describe_all
from .vector import Vector

logger = logging.getLogger(__name__)

# A checked statement waiting to be applied
Step = Callable[[], None]

# Remaining move distance and turn below which the actor counts as settled
SETTLE_TOLERANCE = 1e-3


# ─────────────────────────────────────────────────────────────
#  Locations
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class Location:
    """A writable window of `dim` lanes into an attribute of a state object.

    List attributes are addressed from `offset`; float attributes are a
    single lane.
    """
    owner: Any
    attr: str
    offset: int = 0
    dim: int = 1

    def read(self) -> Vector:
        current = getattr(self.owner, self.attr)
        if isinstance(current, list):
            return Vector.of(*current[self.offset:self.offset + self.dim])
        return Vector.scalar(current)

    def write(self, value: Vector):
        """Store the value's lanes, at most `dim` of them."""
        lanes = list(value.components()[:self.dim])
        current = getattr(self.owner, self.attr)
        if isinstance(current, list):
            current[self.offset:self.offset + len(lanes)] = lanes
        elif lanes:
            setattr(self.owner, self.attr, lanes[0])

    def lane(self, index: int) -> "Location":
        return Location(self.owner, self.attr, self.offset + index, 1)

    def refers_to(self, owner: Any, attr: str) -> bool:
        return self.owner is owner and self.attr == attr


def ease_factor(speed: float, dt: float) -> float:
    """Fraction of the remaining distance covered in `dt` seconds."""
    speed = min(max(speed, 0.0), 1.0)
    return 1.0 - (1.0 - speed) ** dt


def lerp(a: float, b: float, t: float) -> float:
    return a * (1.0 - t) + b * t


# ─────────────────────────────────────────────────────────────
#  Actor
# ─────────────────────────────────────────────────────────────

@dataclass
class ActorSpeed:
    """Per-second easing rates, each in [0, 1]."""
    position: float = 0.25
    rotation: float = 0.25
    scale: float = 0.25
    color: float = 0.25


@dataclass
class Actor:
    position: list[float] = field(default_factory=lambda: [0.0, 0.0])
    rotation: float = 0.0                       # radians, clockwise
    scale: list[float] = field(default_factory=lambda: [4.0, 4.0])
    color: list[float] = field(default_factory=lambda: [0.0, 1.0, 1.0, 1.0])

    move_distance: float = 0.0                  # distance still to travel
    rotation_target: float = 0.0
    scale_target: list[float] = field(default_factory=lambda: [4.0, 4.0])
    color_target: list[float] = field(default_factory=lambda: [0.0, 1.0, 1.0, 1.0])

    speed: ActorSpeed = field(default_factory=ActorSpeed)

    def heading(self) -> tuple[float, float]:
        """Unit direction of travel; rotation 0 points up."""
        return math.sin(self.rotation), math.cos(self.rotation)


# Variable name -> (field, target field, lanes)
ACTOR_FIELDS: dict[VariableKind, tuple[str, str | None, int]] = {
    VariableKind.POSITION: ("position", None, 2),
    VariableKind.ROTATION: ("rotation", "rotation_target", 1),
    VariableKind.SCALE:    ("scale", "scale_target", 2),
    VariableKind.COLOR:    ("color", "color_target", 4),
}

SPEED_FIELDS: dict[VariableKind, str] = {
    VariableKind.POSITION: "position",
    VariableKind.ROTATION: "rotation",
    VariableKind.SCALE:    "scale",
    VariableKind.COLOR:    "color",
}


@dataclass(frozen=True)
class Stroke:
    """A dab of paint left behind by a drawing actor."""
    position: tuple[float, float]
    scale: tuple[float, float]
    color: tuple[float, float, float, float]


# ─────────────────────────────────────────────────────────────
#  HUD Displays
# ─────────────────────────────────────────────────────────────

class Display(Enum):
    HELP     = "help"
    EXPR     = "expr"
    POSITION = "position"
    ROTATION = "rotation"
    SCALE    = "scale"
    COLOR    = "color"
    SPEED    = "speed"
    OUTPUT   = "output"


# Arguments accepted by `disp`
DISPLAY_OPTIONS: dict[ConstantKind | VariableKind, Display] = {
    ConstantKind.HELP:     Display.HELP,
    ConstantKind.EXPR:     Display.EXPR,
    VariableKind.POSITION: Display.POSITION,
    VariableKind.ROTATION: Display.ROTATION,
    VariableKind.SCALE:    Display.SCALE,
    VariableKind.COLOR:    Display.COLOR,
    VariableKind.SPEED:    Display.SPEED,
    VariableKind.OUTPUT:   Display.OUTPUT,
}


@dataclass(frozen=True)
class WorldSnapshot:
    """Read-only copy of the world for rendering and tests."""
    position: tuple[float, float]
    rotation: float
    scale: tuple[float, float]
    color: tuple[float, float, float, float]
    speed: tuple[float, float, float, float]
    output: Vector
    camera: tuple[float, float]
    follow: bool
    draw: bool
    stroke_count: int
    displays: frozenset
    exit_requested: bool
    pending_steps: int


# ─────────────────────────────────────────────────────────────
#  World
# ─────────────────────────────────────────────────────────────

@dataclass
class World:
    actor: Actor = field(default_factory=Actor)
    output: list[float] = field(default_factory=lambda: [0.0, 0.0, 0.0, 0.0])
    output_dim: int = 4
    camera: list[float] = field(default_factory=lambda: [0.0, 0.0])
    size: float = 100.0                         # half-height of the view, world units
    follow: bool = False
    draw: bool = True
    follow_rate: float = 0.99
    stroke_threshold: float = 1.0
    strokes: list[Stroke] = field(default_factory=list)
    displays: set[Display] = field(default_factory=lambda: {Display.OUTPUT})
    exit_requested: bool = False
    pending: deque = field(default_factory=deque)

    @classmethod
    def from_config(cls, config) -> "World":
        """Build the initial world from a MichiConfig."""
        actor = Actor(
            position=list(config.actor_position),
            rotation=config.actor_rotation,
            rotation_target=config.actor_rotation,
            scale=list(config.actor_scale),
            scale_target=list(config.actor_scale),
            color=list(config.actor_color),
            color_target=list(config.actor_color),
            speed=ActorSpeed(
                config.speed_position, config.speed_rotation,
                config.speed_scale, config.speed_color,
            ),
        )
        return cls(
            actor=actor,
            output=list(config.output),
            output_dim=config.output_dim,
            camera=list(config.actor_position),
            size=config.world_size,
            follow=config.follow,
            draw=config.draw,
            follow_rate=config.follow_rate,
            stroke_threshold=config.stroke_threshold,
            displays={Display(name) for name in config.displays},
        )

    # ─────────────────────────────────────────────────────────
    #  Output Register
    # ─────────────────────────────────────────────────────────

    @property
    def output_vector(self) -> Vector:
        return Vector.of(*self.output[:self.output_dim])

    def set_output(self, value: Vector):
        """Store a value and its dimension in the output register."""
        self.output[:] = list(value.lanes)
        self.output_dim = value.dim

    def output_location(self) -> Location:
        return Location(self, "output", 0, 4)

    def output_lane(self, index: int) -> Location:
        return self.output_location().lane(index)

    # ─────────────────────────────────────────────────────────
    #  Bindings
    # ─────────────────────────────────────────────────────────

    def actor_field(self, kind: VariableKind) -> tuple[Location, Location | None] | None:
        """Primary and target locations for `actor.<kind>`, None if no such field."""
        entry = ACTOR_FIELDS.get(kind)
        if entry is None:
            return None
        attr, target_attr, dim = entry
        primary = Location(self.actor, attr, 0, dim)
        target = Location(self.actor, target_attr, 0, dim) if target_attr else None
        return primary, target

    def speed_field(self, kind: VariableKind) -> Location | None:
        attr = SPEED_FIELDS.get(kind)
        if attr is None:
            return None
        return Location(self.actor.speed, attr)

    def toggle(self, display: Display) -> bool:
        """Flip a HUD display. Returns whether it is now shown."""
        if display in self.displays:
            self.displays.discard(display)
            return False
        self.displays.add(display)
        return True

    def request_exit(self):
        logger.info("exit requested")
        self.exit_requested = True

    # ─────────────────────────────────────────────────────────
    #  Statement Queue
    # ─────────────────────────────────────────────────────────

    def schedule(self, steps: list[Step]):
        """Apply the first step now and queue the rest.

        While an earlier chain is still queued, new steps wait behind it.
        """
        if self.pending:
            logger.debug("queueing %d steps behind %d", len(steps), len(self.pending))
            self.pending.extend(steps)
            return
        self.pending.extend(steps[1:])
        if steps:
            steps[0]()

    @property
    def settled(self) -> bool:
        """Whether the actor has (nearly) finished its move and turn."""
        actor = self.actor
        return (abs(actor.move_distance) < SETTLE_TOLERANCE
                and abs(actor.rotation_target - actor.rotation) < SETTLE_TOLERANCE)

    def _finish_motion(self):
        """Snap the leftover move and turn so the next step starts clean."""
        actor = self.actor
        dx, dy = actor.heading()
        actor.position[0] += dx * actor.move_distance
        actor.position[1] += dy * actor.move_distance
        actor.move_distance = 0.0
        actor.rotation = actor.rotation_target

    def _run_pending(self):
        while self.pending and self.settled:
            self._finish_motion()
            step = self.pending.popleft()
            step()

    # ─────────────────────────────────────────────────────────
    #  Frame Update
    # ─────────────────────────────────────────────────────────

    def update(self, dt: float):
        """Advance the animation by `dt` seconds."""
        self._run_pending()

        actor = self.actor
        speed = actor.speed

        dx, dy = actor.heading()
        previous = actor.move_distance
        actor.move_distance = lerp(actor.move_distance, 0.0, ease_factor(speed.position, dt))
        travelled = previous - actor.move_distance
        actor.position[0] += dx * travelled
        actor.position[1] += dy * travelled

        actor.rotation = lerp(actor.rotation, actor.rotation_target,
                              ease_factor(speed.rotation, dt))

        t = ease_factor(speed.scale, dt)
        actor.scale[:] = [lerp(a, b, t) for a, b in zip(actor.scale, actor.scale_target)]

        t = ease_factor(speed.color, dt)
        actor.color[:] = [lerp(a, b, t) for a, b in zip(actor.color, actor.color_target)]

        if self.follow:
            t = ease_factor(self.follow_rate, dt)
            self.camera[:] = [lerp(a, b, t) for a, b in zip(self.camera, actor.position)]

        if self.draw and actor.move_distance > self.stroke_threshold:
            self.strokes.append(Stroke(
                tuple(actor.position), tuple(actor.scale), tuple(actor.color),
            ))

    # ─────────────────────────────────────────────────────────
    #  Views
    # ─────────────────────────────────────────────────────────

    def snapshot(self) -> WorldSnapshot:
        actor = self.actor
        speed = actor.speed
        return WorldSnapshot(
            position=tuple(actor.position),
            rotation=actor.rotation,
            scale=tuple(actor.scale),
            color=tuple(actor.color),
            speed=(speed.position, speed.rotation, speed.scale, speed.color),
            output=self.output_vector,
            camera=tuple(self.camera),
            follow=self.follow,
            draw=self.draw,
            stroke_count=len(self.strokes),
            displays=frozenset(self.displays),
            exit_requested=self.exit_requested,
            pending_steps=len(self.pending),
        )

    def hud_lines(self, expr_lines: list[str] | None = None) -> list[str]:
        """Text of every enabled HUD display, top to bottom."""
        actor = self.actor
        speed = actor.speed
        shown = self.displays
        lines: list[str] = []

        if Display.HELP in shown:
            lines += describe_all()
        if Display.EXPR in shown:
            lines += expr_lines or ["Expr None"]
        if Display.POSITION in shown:
            lines.append("Position: %.4f, %.4f" % tuple(actor.position))
        if Display.ROTATION in shown:
            lines.append("Rotation: %.4f degs" % math.degrees(actor.rotation))
        if Display.SCALE in shown:
            lines.append("Scale: %.4f, %.4f" % tuple(actor.scale))
        if Display.COLOR in shown:
            lines.append("Color: %.4f, %.4f, %.4f, %.4f" % tuple(actor.color))
        if Display.SPEED in shown:
            lines.append(
                "Speed: Position(%.4f), Rotation(%.4f), Scale(%.4f), Color(%.4f)"
                % (speed.position, speed.rotation, speed.scale, speed.color)
            )
        if Display.OUTPUT in shown:
            lines.append(self.output_vector.format("Output"))
            lines.append(f"Stroke Count: {len(self.strokes)}")
            lines.append("Follow: %s, Draw: %s" % (
                "on" if self.follow else "off", "on" if self.draw else "off",
            ))
        return lines
