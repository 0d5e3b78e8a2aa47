"""
Michi Evaluator
===============
Resolves a parsed tree against the live world and folds constant
arithmetic. The result is a tree made only of resolved nodes:

    NumberLiteral, Variable, Constant, Action, Statement, Sequence, Null

Evaluation does not change the world. Each failed sub-evaluation reports
one diagnostic and yields Null; an operator that receives Null from a
child yields Null without adding a diagnostic of its own, so one mistake
is reported once.

Extensions:
  - Call brackets: `move(2)` binds like `move: (2)`
  - Statement chaining: `move(2): rotate(90)` becomes a Sequence
"""
import logging

from .lexer import Span
from .names import Action, ConstantKind, VariableKind, lane_index, resolve_name
from .parser import (
    ASTNode, ActionExpr, BinaryOp, ConstantExpr, Identifier, NullExpr,
    NumberLiteral, OpKind, Parser, Sequence, Statement, UnaryOp, VariableExpr,
    is_literal_like, resolve_vector,
)
from .vector import VOID, Vector
from .world import World

logger = logging.getLogger(__name__)

DIMENSION_MISMATCH = {
    OpKind.PLUS: "Addition can not be performed on vectors with different dimension",
    OpKind.MINUS: "Subtraction can not be performed on vectors with different dimension",
}


class Evaluator:
    """
    Resolves identifiers and folds arithmetic for one Parser's trees.

    Usage:
        parser = Parser()
        evaluator = Evaluator(parser, world)
        resolved = evaluator.evaluate(parser.parse("actor.position + 1, 2"))

    New nodes are allocated in the parser's arena and diagnostics go to the
    parser's error stream, so everything belongs to the same pass.
    """

    def __init__(self, parser: Parser, world: World):
        self.parser = parser
        self.world = world

    @property
    def null(self) -> NullExpr:
        return self.parser.null

    def evaluate(self, node: ASTNode) -> ASTNode:
        """Resolve a node of the current pass."""
        self.parser.arena.check(node)
        method = f"_eval_{node.node_type.lower()}"
        evaluator = getattr(self, method, None)
        if evaluator is None:
            # Already-resolved nodes evaluate to themselves
            return node
        return evaluator(node)

    def _literal(self, value: Vector, span: Span) -> NumberLiteral:
        return self.parser.make(NumberLiteral(value=value, span=span))

    def _variable(self, kind: VariableKind, span: Span, location=None, target=None,
                  value: Vector | None = None) -> VariableExpr:
        if value is None:
            value = location.read() if location is not None else VOID
        return self.parser.make(VariableExpr(
            kind=kind, value=value, location=location, target=target, span=span,
        ))

    def _error(self, span: Span, message: str) -> NullExpr:
        self.parser.report(span, message)
        return self.null

    # ─────────────────────────────────────────────────────────
    #  Leaves
    # ─────────────────────────────────────────────────────────

    def _eval_null(self, node: NullExpr) -> NullExpr:
        return self.null

    def _eval_numberliteral(self, node: NumberLiteral) -> NumberLiteral:
        return node

    def _eval_identifier(self, node: Identifier) -> ASTNode:
        """Look the name up in Action, Variable, Constant order."""
        kind = resolve_name(node.name)
        match kind:
            case Action():
                return self.parser.make(ActionExpr(kind=kind, span=node.span))
            case VariableKind.OUTPUT:
                return self._variable(
                    kind, node.span,
                    location=self.world.output_location(),
                    value=self.world.output_vector,
                )
            case VariableKind():
                return self._variable(kind, node.span)
            case ConstantKind():
                return self.parser.make(ConstantExpr(kind=kind, span=node.span))
        return self._error(node.span, "Invalid identifier")

    # ─────────────────────────────────────────────────────────
    #  Operators
    # ─────────────────────────────────────────────────────────

    def _eval_unaryop(self, node: UnaryOp) -> ASTNode:
        """Signs and brackets fold to a literal."""
        child = self.evaluate(node.child)
        if child is self.null:
            return self.null
        if not is_literal_like(child):
            return self._error(child.span, "Expected expression")

        value = resolve_vector(child)
        if node.op == OpKind.MINUS:
            value = -value
        return self._literal(value, node.span)

    def _eval_binaryop(self, node: BinaryOp) -> ASTNode:
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)

        # Placeholders were already reported by the parser
        if node.op == OpKind.NONE:
            return self.null
        if left is self.null or right is self.null:
            return self.null

        match node.op:
            case OpKind.PLUS | OpKind.MINUS | OpKind.STAR | OpKind.SLASH | OpKind.COMMA:
                return self._arithmetic(node, left, right)
            case OpKind.PERIOD:
                return self._member_access(node, left, right)
            case OpKind.COLON | OpKind.CALL:
                return self._bind(node, left, right)
        return self._error(node.span, "Invalid operator")

    def _arithmetic(self, node: BinaryOp, left: ASTNode, right: ASTNode) -> ASTNode:
        for operand in (left, right):
            if not is_literal_like(operand):
                return self._error(operand.span, "Expected variable or literal")

        a = resolve_vector(left)
        b = resolve_vector(right)

        match node.op:
            case OpKind.PLUS | OpKind.MINUS:
                if a.dim != b.dim:
                    return self._error(node.span, DIMENSION_MISMATCH[node.op])
                value = a + b if node.op == OpKind.PLUS else a - b

            case OpKind.SLASH:
                if b.dim != 1:
                    return self._error(right.span, "Division can not be performed by vector")
                if b.x == 0.0:
                    return self._error(right.span, "Division by zero")
                value = a.scale(1.0 / b.x)

            case OpKind.STAR:
                if a.dim == b.dim:
                    value = Vector.scalar(a.dot(b))
                elif b.dim == 1:
                    value = a.scale(b.x)
                elif a.dim == 1:
                    value = b.scale(a.x)
                else:
                    return self._error(node.span, "Invalid vectors for multiplication")

            case _:
                if a.dim + b.dim > 4:
                    return self._error(
                        node.span, "Vectors with dimension greater than 4 is not supported")
                value = a.concat(b)

        return self._literal(value, node.span)

    def _member_access(self, node: BinaryOp, left: ASTNode, right: ASTNode) -> ASTNode:
        """`owner.member` narrows a variable to one of its fields or lanes."""
        if not isinstance(left, VariableExpr):
            return self._error(left.span, "Expected variable")
        if not isinstance(right, VariableExpr):
            return self._error(right.span, "Expected variable")

        member = right.kind
        lane = lane_index(member)

        match left.kind:
            case VariableKind.OUTPUT:
                if lane is None:
                    return self._error(node.span, "Invalid member access")
                return self._variable(member, node.span, location=self.world.output_lane(lane))

            case VariableKind.ACTOR:
                binding = self.world.actor_field(member)
                if binding is None:
                    return self._error(node.span, "Invalid member access")
                primary, target = binding
                return self._variable(member, node.span, location=primary, target=target)

            case VariableKind.SPEED:
                location = self.world.speed_field(member)
                if location is None:
                    return self._error(node.span, "Invalid member access")
                return self._variable(VariableKind.X, node.span, location=location)

            case VariableKind.POSITION | VariableKind.SCALE | VariableKind.COLOR:
                if left.location is None or lane is None or lane >= left.dim:
                    return self._error(node.span, "Invalid member access")
                target = left.target.lane(lane) if left.target is not None else None
                return self._variable(member, node.span,
                                      location=left.location.lane(lane), target=target)

        return self._error(node.span, "Invalid member access")

    def _bind(self, node: BinaryOp, left: ASTNode, right: ASTNode) -> ASTNode:
        """`left : right` (or `left(right)`) builds a statement."""
        chained = (Statement, Sequence)
        if isinstance(left, chained) and isinstance(right, chained):
            return self.parser.make(Sequence(
                statements=_flatten(left) + _flatten(right), span=node.span,
            ))

        if not isinstance(left, (ActionExpr, VariableExpr)):
            return self._error(left.span, "Expected action or variable")
        if not isinstance(right, (NumberLiteral, VariableExpr, ConstantExpr)):
            return self._error(right.span, "Expected literal, variable or constant")

        return self.parser.make(Statement(left=left, right=right, span=node.span))


def _flatten(node: Statement | Sequence) -> list[Statement]:
    if isinstance(node, Sequence):
        return list(node.statements)
    return [node]
