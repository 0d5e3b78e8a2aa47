"""
Michi Executor
==============
Applies a resolved tree to the world. This is the only pass that mutates
world state; it runs only after parsing and resolution finished without
diagnostics.

`execute()` returns True when the line took effect. On failure exactly one
diagnostic describes why, except for the Null sentinel, which is silently
not executable.

Statements become steps that the world applies: the first at once, later
ones of a chain as the actor settles (see `World.schedule`).
"""
import logging
import math

from .lexer import Span
from .names import Action, ConstantKind, VariableKind
from .parser import (
    ASTNode, ActionExpr, ConstantExpr, NullExpr, NumberLiteral, Parser,
    Sequence, Statement, VariableExpr, is_literal_like, resolve_vector,
)
from .world import DISPLAY_OPTIONS, Location, Step, World

logger = logging.getLogger(__name__)

ARGUMENT_SHAPES = {
    Action.MOVE:    "Expected vector1 argument",
    Action.ROTATE:  "Expected vector1 argument",
    Action.ENLARGE: "Expected vector1 or vector2 argument",
    Action.CHANGE:  "Expected vector1, vector2, vector3 or vector4 argument",
    Action.FOLLOW:  "Expected 'on' or 'off' argument",
    Action.DISP:    "Expected 'help', 'expr' or a variable to display",
}

# Largest argument dimension each vector action accepts
MAX_ARGUMENT_DIM = {
    Action.MOVE: 1,
    Action.ROTATE: 1,
    Action.ENLARGE: 2,
    Action.CHANGE: 4,
}


class Executor:
    """
    Executes resolved Michi trees against a World.

    Usage:
        executor = Executor(parser, world)
        ok = executor.execute(evaluator.evaluate(root))
    """

    def __init__(self, parser: Parser, world: World):
        self.parser = parser
        self.world = world

    def execute(self, node: ASTNode) -> bool:
        """Run a top-level resolved node. Returns whether it took effect."""
        self.parser.arena.check(node)
        method = f"_exec_{node.node_type.lower()}"
        executor = getattr(self, method, None)
        if executor is None:
            return self._fail(node.span, "Expected literal, variable or statement")
        return executor(node)

    def _fail(self, span: Span, message: str) -> bool:
        self.parser.report(span, message)
        return False

    # ─────────────────────────────────────────────────────────
    #  Values
    # ─────────────────────────────────────────────────────────

    def _exec_null(self, node: NullExpr) -> bool:
        return False

    def _exec_numberliteral(self, node: NumberLiteral) -> bool:
        self.world.set_output(node.value)
        return True

    def _exec_variable(self, node: VariableExpr) -> bool:
        if node.dim == 0:
            return self._fail(node.span, "Invalid variable")
        self.world.set_output(node.value)
        return True

    def _exec_action(self, node: ActionExpr) -> bool:
        """A bare action. Only `exit` works without an argument."""
        match node.kind:
            case Action.EXIT:
                self.world.request_exit()
                return True
            case Action.DRAW:
                # `draw` has no bare form
                return self._fail(node.span, "Expected literal, variable or statement")
        return self._fail(node.span, ARGUMENT_SHAPES[node.kind])

    # ─────────────────────────────────────────────────────────
    #  Statements
    # ─────────────────────────────────────────────────────────
    #
    # Statements are checked first and turned into steps. Nothing touches
    # the world until every statement of the line has been accepted; the
    # world then applies the first step and queues the rest.

    def _exec_sequence(self, node: Sequence) -> bool:
        """Check chained statements in order, stopping at the first failure."""
        steps: list[Step] = []
        for stmt in node.statements:
            step = self._plan(stmt)
            if step is None:
                return False
            steps.append(step)
        self.world.schedule(steps)
        return True

    def _exec_statement(self, node: Statement) -> bool:
        step = self._plan(node)
        if step is None:
            return False
        self.world.schedule([step])
        return True

    def _reject(self, span: Span, message: str) -> None:
        self.parser.report(span, message)
        return None

    def _plan(self, node: Statement) -> Step | None:
        left = node.left
        if isinstance(left, ActionExpr):
            return self._plan_action(node, left.kind, node.right)
        if isinstance(left, VariableExpr):
            return self._plan_assign(node, left, node.right)
        return self._reject(left.span, "Expected action or variable")

    def _plan_action(self, node: Statement, action: Action, arg: ASTNode) -> Step | None:
        match action:
            case Action.EXIT:
                return self._reject(node.left.span, "Action takes no arguments")
            case Action.FOLLOW | Action.DRAW:
                return self._plan_switch(action, arg)
            case Action.DISP:
                return self._plan_display(arg)

        if not is_literal_like(arg):
            return self._reject(arg.span, "Expected r-value resolving to vector")

        value = resolve_vector(arg)
        if value.dim > MAX_ARGUMENT_DIM[action]:
            return self._reject(arg.span, ARGUMENT_SHAPES[action])

        actor = self.world.actor

        def step():
            match action:
                case Action.MOVE:
                    actor.move_distance = value.x
                case Action.ROTATE:
                    actor.rotation_target += math.radians(value.x)
                case Action.ENLARGE:
                    Location(actor, "scale_target", 0, 2).write(value)
                case Action.CHANGE:
                    Location(actor, "color_target", 0, 4).write(value)
            logger.debug("%s %s", action.value, value)
        return step

    def _plan_switch(self, action: Action, arg: ASTNode) -> Step | None:
        """`follow: on`, `draw: off`."""
        if not isinstance(arg, ConstantExpr) or arg.kind not in (ConstantKind.ON, ConstantKind.OFF):
            return self._reject(arg.span, "Expected 'on' or 'off' argument")

        enabled = arg.kind == ConstantKind.ON
        world = self.world

        def step():
            if action == Action.FOLLOW:
                world.follow = enabled
            else:
                world.draw = enabled
            logger.info("%s %s", action.value, "on" if enabled else "off")
        return step

    def _plan_display(self, arg: ASTNode) -> Step | None:
        """`disp: help` and friends toggle a HUD display."""
        display = None
        if isinstance(arg, (ConstantExpr, VariableExpr)):
            display = DISPLAY_OPTIONS.get(arg.kind)
        if display is None:
            return self._reject(arg.span, "Invalid option")

        world = self.world

        def step():
            shown = world.toggle(display)
            logger.info("display %s %s", display.value, "shown" if shown else "hidden")
        return step

    def _plan_assign(self, node: Statement, var: VariableExpr, arg: ASTNode) -> Step | None:
        """`variable : value` writes through the variable's bindings."""
        world = self.world
        if var.kind == VariableKind.OUTPUT:
            if not is_literal_like(arg):
                return self._reject(arg.span, "Expected r-value resolving to vector")
            value = resolve_vector(arg)
            return lambda: world.set_output(value)

        if var.dim == 0 or var.location is None:
            return self._reject(var.span, "Invalid variable")
        if not is_literal_like(arg):
            return self._reject(arg.span, "Expected r-value resolving to vector")

        value = resolve_vector(arg)
        if value.dim != var.dim:
            return self._reject(node.span, "Incompatible types")

        location, target = var.location, var.target

        def step():
            location.write(value)
            if target is not None:
                target.write(value)
            actor = world.actor
            if location.refers_to(actor, "position"):
                actor.move_distance = 0.0
        return step
