"""
Michi Executor Tests
====================
Tests for executing resolved lines against the world: output register,
actions, switches, displays and assignments.

Usage:
    python -m unittest tests.test_executor -v
"""
import sys
import os
import math
import unittest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from michi.evaluator import Evaluator
from michi.executor import Executor
from michi.parser import Parser
from michi.session import Pipeline
from michi.vector import Vector
from michi.world import Display, World


class ExecutorTestCase(unittest.TestCase):

    def setUp(self):
        self.world = World()
        self.pipeline = Pipeline(self.world)

    @property
    def actor(self):
        return self.world.actor

    def run_line(self, text):
        return self.pipeline.submit(text)

    def messages(self):
        return self.pipeline.errors.messages()

    def assertRuns(self, text):
        ok = self.run_line(text)
        self.assertEqual(self.messages(), [])
        self.assertTrue(ok, text)

    def assertRejects(self, text, message):
        ok = self.run_line(text)
        self.assertFalse(ok, text)
        self.assertEqual(self.messages(), [message])


# ─────────────────────────────────────────────
#  Values
# ─────────────────────────────────────────────

class TestOutput(ExecutorTestCase):

    def test_literal_goes_to_output(self):
        self.assertRuns("1, 2")
        self.assertEqual(self.world.output_vector, Vector.of(1, 2))
        self.assertEqual(self.world.output_dim, 2)

    def test_bound_variable_goes_to_output(self):
        self.actor.color[:] = [0.5, 0.5, 0.5, 1.0]
        self.assertRuns("actor.color")
        self.assertEqual(self.world.output_vector, Vector.of(0.5, 0.5, 0.5, 1.0))

    def test_unbound_variable(self):
        self.assertRejects("position", "Invalid variable")

    def test_constant_is_not_executable(self):
        self.assertRejects("on", "Expected literal, variable or statement")

    def test_empty_line_does_nothing(self):
        self.assertFalse(self.run_line(""))
        self.assertEqual(self.messages(), [])

    def test_add_then_subtract_round_trips(self):
        self.assertRuns("((1.25, -2) + (3.1, 4.7)) - (3.1, 4.7)")
        self.assertTrue(self.world.output_vector.is_close(Vector.of(1.25, -2)))
        self.assertEqual(self.world.output_dim, 2)

    def test_five_lanes_leave_world_unchanged(self):
        before = self.world.snapshot()
        self.assertRejects("1,2,3,4,5",
                           "Vectors with dimension greater than 4 is not supported")
        self.assertEqual(self.world.snapshot(), before)

    def test_assign_output(self):
        self.assertRuns("output: 1, 2, 3")
        self.assertEqual(self.world.output_vector, Vector.of(1, 2, 3))

    def test_assign_output_lane(self):
        self.assertRuns("output.x: 5")
        self.assertEqual(self.world.output[0], 5.0)
        self.assertEqual(self.world.output_dim, 4)


# ─────────────────────────────────────────────
#  Actions
# ─────────────────────────────────────────────

class TestActions(ExecutorTestCase):

    def test_move(self):
        self.assertRuns("move: 10")
        self.assertEqual(self.actor.move_distance, 10.0)

    def test_rotate_adds_radians(self):
        self.assertRuns("rotate: 90")
        self.assertRuns("rotate(90)")
        self.assertAlmostEqual(self.actor.rotation_target, math.pi)

    def test_enlarge_partial(self):
        self.assertRuns("enlarge: 8")
        self.assertEqual(self.actor.scale_target, [8.0, 4.0])

    def test_enlarge_both_lanes(self):
        self.assertRuns("enlarge: 8, 6")
        self.assertEqual(self.actor.scale_target, [8.0, 6.0])

    def test_change_three_lanes_keeps_alpha(self):
        self.assertRuns("change: 1, 0, 0")
        self.assertEqual(self.actor.color_target, [1.0, 0.0, 0.0, 1.0])

    def test_actions_touch_targets_only(self):
        self.assertRuns("change: 1, 0, 0, 0")
        self.assertEqual(self.actor.color, [0.0, 1.0, 1.0, 1.0])

    def test_move_needs_scalar(self):
        self.assertRejects("move: 1, 2", "Expected vector1 argument")

    def test_enlarge_needs_at_most_two_lanes(self):
        self.assertRejects("enlarge: 1, 2, 3", "Expected vector1 or vector2 argument")

    def test_action_needs_value(self):
        self.assertRejects("move: on", "Expected r-value resolving to vector")

    def test_bare_actions(self):
        cases = {
            "move": "Expected vector1 argument",
            "rotate": "Expected vector1 argument",
            "enlarge": "Expected vector1 or vector2 argument",
            "change": "Expected vector1, vector2, vector3 or vector4 argument",
            "follow": "Expected 'on' or 'off' argument",
        }
        for text, message in cases.items():
            with self.subTest(text=text):
                self.assertRejects(text, message)

    def test_bare_draw_falls_through(self):
        self.assertRejects("draw", "Expected literal, variable or statement")

    def test_exit(self):
        self.assertRuns("exit")
        self.assertTrue(self.world.exit_requested)

    def test_exit_takes_no_argument(self):
        self.assertRejects("exit: 1", "Action takes no arguments")
        self.assertFalse(self.world.exit_requested)


class TestSwitches(ExecutorTestCase):

    def test_follow_on_then_off(self):
        self.assertRuns("follow: on")
        self.assertTrue(self.world.follow)
        self.assertRuns("follow: off")
        self.assertFalse(self.world.follow)
        self.assertTrue(self.world.draw)

    def test_draw_off(self):
        self.assertRuns("draw: off")
        self.assertFalse(self.world.draw)

    def test_switch_needs_on_or_off(self):
        self.assertRejects("follow: 1", "Expected 'on' or 'off' argument")
        self.assertRejects("draw: help", "Expected 'on' or 'off' argument")


class TestDisplays(ExecutorTestCase):

    def test_toggle_help(self):
        self.assertRuns("disp: help")
        self.assertIn(Display.HELP, self.world.displays)
        self.assertRuns("disp: help")
        self.assertNotIn(Display.HELP, self.world.displays)

    def test_toggle_by_variable_name(self):
        self.assertRuns("disp(speed)")
        self.assertIn(Display.SPEED, self.world.displays)

    def test_output_shown_by_default(self):
        self.assertRuns("disp: output")
        self.assertNotIn(Display.OUTPUT, self.world.displays)

    def test_invalid_option(self):
        self.assertRejects("disp: on", "Invalid option")
        self.assertRejects("disp: 1", "Invalid option")


# ─────────────────────────────────────────────
#  Assignment
# ─────────────────────────────────────────────

class TestAssignment(ExecutorTestCase):

    def test_position_write_resets_move(self):
        self.assertRuns("move: 10")
        self.assertRuns("actor.position: 5, 6")
        self.assertEqual(self.actor.position, [5.0, 6.0])
        self.assertEqual(self.actor.move_distance, 0.0)

    def test_position_lane_write_resets_move(self):
        self.assertRuns("move: 10")
        self.assertRuns("actor.position.x: 3")
        self.assertEqual(self.actor.position, [3.0, 0.0])
        self.assertEqual(self.actor.move_distance, 0.0)

    def test_animated_field_writes_target_too(self):
        self.assertRuns("actor.color: 1, 0, 0, 1")
        self.assertEqual(self.actor.color, [1.0, 0.0, 0.0, 1.0])
        self.assertEqual(self.actor.color_target, [1.0, 0.0, 0.0, 1.0])

    def test_lane_write_through_target(self):
        self.assertRuns("actor.color.y: 0.5")
        self.assertEqual(self.actor.color[1], 0.5)
        self.assertEqual(self.actor.color_target[1], 0.5)

    def test_speed_write(self):
        self.assertRuns("speed.position: 1")
        self.assertEqual(self.actor.speed.position, 1.0)

    def test_incompatible_types(self):
        self.assertRejects("actor.position: 1", "Incompatible types")
        self.assertEqual(self.actor.position, [0.0, 0.0])

    def test_unbound_variable(self):
        self.assertRejects("position: 1", "Invalid variable")

    def test_needs_value(self):
        self.assertRejects("actor.position: on", "Expected r-value resolving to vector")


# ─────────────────────────────────────────────
#  Sequences
# ─────────────────────────────────────────────

class TestSequences(ExecutorTestCase):

    def settle(self, seconds=120.0):
        for _ in range(int(seconds * 60)):
            self.world.update(1 / 60)

    def test_move_rotate_move(self):
        self.assertRuns("move(2): rotate(90): move(2)")
        self.assertEqual(self.actor.move_distance, 2.0)
        self.assertEqual(len(self.world.pending), 2)
        self.settle()
        self.assertEqual(len(self.world.pending), 0)
        self.assertAlmostEqual(self.actor.rotation, math.pi / 2, places=4)
        self.assertAlmostEqual(self.actor.position[0], 2.0, places=3)
        self.assertAlmostEqual(self.actor.position[1], 2.0, places=3)

    def test_rotation_waits_for_move(self):
        self.assertRuns("move(2): rotate(90)")
        self.world.update(1.0)
        self.assertEqual(self.actor.rotation_target, 0.0)
        self.assertAlmostEqual(self.actor.position[0], 0.0)

    def test_failure_applies_nothing(self):
        self.assertRejects("rotate(90): move(1, 2): rotate(90)", "Expected vector1 argument")
        self.assertEqual(self.actor.rotation_target, 0.0)
        self.assertEqual(len(self.world.pending), 0)


class TestExecutorDirect(unittest.TestCase):

    def test_failed_execution_leaves_one_diagnostic(self):
        world = World()
        parser = Parser()
        node = Evaluator(parser, world).evaluate(parser.parse("enlarge: 1, 2, 3"))
        self.assertFalse(Executor(parser, world).execute(node))
        self.assertEqual(len(parser.errors), 1)
        self.assertEqual(world.actor.scale_target, [4.0, 4.0])


if __name__ == "__main__":
    unittest.main()
