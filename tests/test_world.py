"""
Michi World Tests
=================
Tests for locations, per-frame easing, strokes, the camera and the HUD.

Usage:
    python -m unittest tests.test_world -v
"""
import sys
import os
import math
import unittest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from michi.config import MichiConfig
from michi.names import VariableKind, describe_all
from michi.vector import Vector
from michi.world import Actor, Display, Location, World, ease_factor


# ─────────────────────────────────────────────
#  Locations
# ─────────────────────────────────────────────

class TestLocation(unittest.TestCase):

    def test_read_list_window(self):
        actor = Actor()
        self.assertEqual(Location(actor, "color", 1, 2).read(), Vector.of(1, 1))

    def test_partial_write(self):
        actor = Actor()
        Location(actor, "color_target", 0, 4).write(Vector.of(0.5, 0.5))
        self.assertEqual(actor.color_target, [0.5, 0.5, 1.0, 1.0])

    def test_lane(self):
        actor = Actor()
        Location(actor, "scale", 0, 2).lane(1).write(Vector.of(9))
        self.assertEqual(actor.scale, [4.0, 9.0])

    def test_scalar_attribute(self):
        actor = Actor()
        location = Location(actor, "rotation")
        location.write(Vector.of(1.5))
        self.assertEqual(actor.rotation, 1.5)
        self.assertEqual(location.read(), Vector.of(1.5))

    def test_refers_to(self):
        actor = Actor()
        self.assertTrue(Location(actor, "position").lane(1).refers_to(actor, "position"))
        self.assertFalse(Location(actor, "position").refers_to(Actor(), "position"))


# ─────────────────────────────────────────────
#  Easing
# ─────────────────────────────────────────────

class TestEasing(unittest.TestCase):

    def test_factor(self):
        self.assertAlmostEqual(ease_factor(0.25, 1.0), 0.25)

    def test_speed_is_clamped(self):
        self.assertEqual(ease_factor(2.0, 1.0), 1.0)
        self.assertEqual(ease_factor(-1.0, 1.0), 0.0)

    def test_zero_dt_does_nothing(self):
        self.assertEqual(ease_factor(0.5, 0.0), 0.0)

    def test_frame_rate_independent(self):
        a, b = World(), World()
        a.actor.move_distance = b.actor.move_distance = 10.0
        a.update(1.0)
        b.update(0.5)
        b.update(0.5)
        self.assertAlmostEqual(a.actor.move_distance, b.actor.move_distance)
        self.assertAlmostEqual(a.actor.position[1], b.actor.position[1])


class TestUpdate(unittest.TestCase):

    def setUp(self):
        self.world = World()
        self.actor = self.world.actor

    def test_move_forward_is_up(self):
        self.actor.move_distance = 10.0
        self.world.update(1.0)
        self.assertAlmostEqual(self.actor.move_distance, 7.5)
        self.assertAlmostEqual(self.actor.position[0], 0.0)
        self.assertAlmostEqual(self.actor.position[1], 2.5)

    def test_move_follows_rotation(self):
        self.actor.rotation = self.actor.rotation_target = math.pi / 2
        self.actor.move_distance = 10.0
        self.world.update(1.0)
        self.assertAlmostEqual(self.actor.position[0], 2.5)
        self.assertAlmostEqual(self.actor.position[1], 0.0)

    def test_rotation_eases_to_target(self):
        self.actor.rotation_target = 1.0
        self.world.update(1.0)
        self.assertAlmostEqual(self.actor.rotation, 0.25)

    def test_scale_and_color_ease(self):
        self.actor.scale_target[:] = [8.0, 4.0]
        self.actor.color_target[:] = [1.0, 1.0, 1.0, 1.0]
        self.world.update(1.0)
        self.assertAlmostEqual(self.actor.scale[0], 5.0)
        self.assertAlmostEqual(self.actor.color[0], 0.25)

    def test_full_speed_snaps(self):
        self.actor.speed.scale = 1.0
        self.actor.scale_target[:] = [8.0, 8.0]
        self.world.update(1 / 60)
        self.assertEqual(self.actor.scale, [8.0, 8.0])

    def test_strokes_while_drawing(self):
        self.actor.move_distance = 10.0
        self.world.update(1.0)
        self.assertEqual(len(self.world.strokes), 1)
        stroke = self.world.strokes[0]
        self.assertEqual(stroke.position, tuple(self.actor.position))
        self.assertEqual(stroke.color, (0.0, 1.0, 1.0, 1.0))

    def test_no_strokes_when_draw_off(self):
        self.world.draw = False
        self.actor.move_distance = 10.0
        self.world.update(1.0)
        self.assertEqual(self.world.strokes, [])

    def test_no_strokes_near_the_end_of_a_move(self):
        self.actor.move_distance = 1.0
        self.world.update(1.0)
        self.assertEqual(self.world.strokes, [])

    def test_camera_follows(self):
        self.world.follow = True
        self.actor.position[:] = [10.0, 0.0]
        self.world.update(1.0)
        self.assertAlmostEqual(self.world.camera[0], 9.9)

    def test_camera_still_without_follow(self):
        self.actor.position[:] = [10.0, 0.0]
        self.world.update(1.0)
        self.assertEqual(self.world.camera, [0.0, 0.0])


class TestStatementQueue(unittest.TestCase):

    def setUp(self):
        self.world = World()
        self.actor = self.world.actor
        self.log = []

    def step(self, name):
        return lambda: self.log.append(name)

    def test_first_step_runs_now(self):
        self.world.schedule([self.step("a"), self.step("b")])
        self.assertEqual(self.log, ["a"])
        self.world.update(1 / 60)
        self.assertEqual(self.log, ["a", "b"])
        self.assertEqual(len(self.world.pending), 0)

    def test_waits_for_move_to_settle(self):
        self.world.schedule([lambda: setattr(self.actor, "move_distance", 2.0),
                             self.step("turn")])
        self.world.update(1.0)
        self.assertEqual(self.log, [])
        self.assertEqual(self.world.snapshot().pending_steps, 1)
        for _ in range(60 * 60):
            self.world.update(1 / 60)
        self.assertEqual(self.log, ["turn"])
        self.assertAlmostEqual(self.actor.position[1], 2.0, places=6)

    def test_new_steps_queue_behind_pending(self):
        self.actor.rotation_target = 1.0
        self.world.pending.append(self.step("a"))
        self.world.schedule([self.step("b")])
        self.assertEqual(self.log, [])
        self.assertEqual(len(self.world.pending), 2)

    def test_settled_snaps_leftover_turn(self):
        self.actor.rotation_target = 1e-4
        self.world.pending.append(self.step("a"))
        self.world.update(1 / 60)
        self.assertEqual(self.log, ["a"])
        self.assertAlmostEqual(self.actor.rotation, 1e-4)


# ─────────────────────────────────────────────
#  Configuration & Views
# ─────────────────────────────────────────────

class TestWorldViews(unittest.TestCase):

    def test_from_config(self):
        config = MichiConfig(speed_position=0.5, actor_color=(1, 0, 0, 1),
                             displays=["help"], draw=False)
        world = World.from_config(config)
        self.assertEqual(world.actor.speed.position, 0.5)
        self.assertEqual(world.actor.color, [1.0, 0.0, 0.0, 1.0])
        self.assertEqual(world.actor.color_target, world.actor.color)
        self.assertEqual(world.displays, {Display.HELP})
        self.assertFalse(world.draw)

    def test_field_bindings(self):
        world = World()
        primary, target = world.actor_field(VariableKind.SCALE)
        self.assertEqual(primary.dim, 2)
        self.assertEqual(target.attr, "scale_target")
        self.assertIsNone(world.actor_field(VariableKind.X))

    def test_default_hud(self):
        self.assertEqual(World().hud_lines(), [
            "Output: v4 0.0000 0.0000 0.0000 0.0000",
            "Stroke Count: 0",
            "Follow: off, Draw: on",
        ])

    def test_rotation_shown_in_degrees(self):
        world = World()
        world.toggle(Display.ROTATION)
        world.actor.rotation = math.pi / 2
        self.assertIn("Rotation: 90.0000 degs", world.hud_lines())

    def test_help_lines(self):
        world = World()
        world.toggle(Display.HELP)
        self.assertEqual(world.hud_lines()[:3], describe_all())

    def test_speed_line(self):
        world = World()
        world.toggle(Display.SPEED)
        self.assertIn(
            "Speed: Position(0.2500), Rotation(0.2500), Scale(0.2500), Color(0.2500)",
            world.hud_lines())

    def test_expr_lines(self):
        world = World(displays={Display.EXPR})
        self.assertEqual(world.hud_lines(["Expr Identifier: x"]), ["Expr Identifier: x"])
        self.assertEqual(world.hud_lines(), ["Expr None"])

    def test_toggle_reports_state(self):
        world = World()
        self.assertTrue(world.toggle(Display.COLOR))
        self.assertFalse(world.toggle(Display.COLOR))

    def test_snapshot_is_a_copy(self):
        world = World()
        snap = world.snapshot()
        world.actor.position[0] = 5.0
        self.assertEqual(snap.position, (0.0, 0.0))
        self.assertEqual(snap.output, Vector.of(0, 0, 0, 0))


if __name__ == "__main__":
    unittest.main()
