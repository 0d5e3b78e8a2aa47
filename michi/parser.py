"""
Michi Parser
============
Precedence-climbing parser that builds a syntax tree from one console line.

Every node is pushed into the parser's Arena; the arena, the token buffer
and the error stream are all reset at the start of each `parse()` call,
so one Parser is reused for every keystroke.

Parsing never stops at the first problem. Lexing errors end the pass
(the whole line becomes the Null sentinel), but parse errors are recorded
and a placeholder node is synthesized so that later diagnostics in the
same line are still found.

Binding table (higher binds tighter):

    :            10   right
    ,            15   left
    + -          80   left
    * /          90   left
    .  (call)   100   left
"""
from dataclasses import dataclass, field
from enum import Enum, auto

from .arena import Arena, TokenBuffer
from .diagnostics import DiagnosticKind, ErrorStream
from .lexer import Lexer, Span, Token, TokenType, decode_source
from .names import Action, ConstantKind, VariableKind
from .vector import VOID, Vector
from .world import Location


class OpKind(Enum):
    """Operators of unary and binary nodes."""
    NONE    = auto()   # placeholder synthesized after a parse error
    PLUS    = auto()
    MINUS   = auto()
    STAR    = auto()
    SLASH   = auto()
    PERIOD  = auto()
    COMMA   = auto()
    COLON   = auto()
    CALL    = auto()   # a(b)
    BRACKET = auto()   # (a)


OP_SYMBOLS = {
    OpKind.NONE: "null",
    OpKind.PLUS: "+",
    OpKind.MINUS: "-",
    OpKind.STAR: "*",
    OpKind.SLASH: "/",
    OpKind.PERIOD: ".",
    OpKind.COMMA: ",",
    OpKind.COLON: ":",
    OpKind.CALL: "()",
    OpKind.BRACKET: "()",
}

BINARY_OPS = {
    TokenType.PLUS: OpKind.PLUS,
    TokenType.MINUS: OpKind.MINUS,
    TokenType.STAR: OpKind.STAR,
    TokenType.SLASH: OpKind.SLASH,
    TokenType.PERIOD: OpKind.PERIOD,
    TokenType.COMMA: OpKind.COMMA,
    TokenType.COLON: OpKind.COLON,
}


class Associativity(Enum):
    LEFT  = auto()
    RIGHT = auto()


PRECEDENCE: dict[TokenType, tuple[int, Associativity]] = {
    TokenType.COLON:  (10, Associativity.RIGHT),
    TokenType.COMMA:  (15, Associativity.LEFT),
    TokenType.PLUS:   (80, Associativity.LEFT),
    TokenType.MINUS:  (80, Associativity.LEFT),
    TokenType.STAR:   (90, Associativity.LEFT),
    TokenType.SLASH:  (90, Associativity.LEFT),
    TokenType.PERIOD: (100, Associativity.LEFT),
    TokenType.LPAREN: (100, Associativity.LEFT),
}

# Tokens that are not operators bind loosest of all
NOT_AN_OPERATOR = (-1, Associativity.RIGHT)


def binding_of(token_type: TokenType) -> tuple[int, Associativity]:
    return PRECEDENCE.get(token_type, NOT_AN_OPERATOR)


# ─────────────────────────────────────────────────────────────
#  Syntax Tree
# ─────────────────────────────────────────────────────────────

@dataclass
class ASTNode:
    """Base class for all syntax-tree nodes."""
    node_type: str = ""
    span: Span = field(default_factory=lambda: Span(0, 0))
    generation: int | None = field(default=None, compare=False, repr=False)


@dataclass
class NullExpr(ASTNode):
    """The "no value" sentinel. One per Parser; never pushed into the arena."""

    def __post_init__(self):
        self.node_type = "Null"


@dataclass
class NumberLiteral(ASTNode):
    """A literal vector: parsed numbers and folded results."""
    value: Vector = VOID

    def __post_init__(self):
        self.node_type = "NumberLiteral"


@dataclass
class Identifier(ASTNode):
    """An unresolved name. Only exists between parsing and resolution."""
    name: str = ""

    def __post_init__(self):
        self.node_type = "Identifier"


@dataclass
class UnaryOp(ASTNode):
    """Prefix + / - or a parenthesized expression."""
    op: OpKind = OpKind.NONE
    child: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "UnaryOp"


@dataclass
class BinaryOp(ASTNode):
    """An infix operator. `right` is None only while the parser fills it in."""
    op: OpKind = OpKind.NONE
    left: ASTNode | None = None
    right: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "BinaryOp"


@dataclass
class VariableExpr(ASTNode):
    """A resolved variable.

    `value` caches the field's current content; its dimension is 0 when the
    name is not bound to a field (e.g. a bare `position`). Writes go to
    `location` and, for animated fields, also to `target`.
    """
    kind: VariableKind = VariableKind.OUTPUT
    value: Vector = VOID
    location: Location | None = None
    target: Location | None = None

    def __post_init__(self):
        self.node_type = "Variable"

    @property
    def dim(self) -> int:
        return self.value.dim


@dataclass
class ConstantExpr(ASTNode):
    """A resolved constant (on, off, help, expr)."""
    kind: ConstantKind = ConstantKind.ON
    value: Vector = VOID

    def __post_init__(self):
        self.node_type = "Constant"


@dataclass
class ActionExpr(ASTNode):
    """A resolved action verb."""
    kind: Action = Action.EXIT

    def __post_init__(self):
        self.node_type = "Action"


@dataclass
class Statement(ASTNode):
    """`left : right` with an action or variable on the left."""
    left: ASTNode | None = None
    right: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Statement"


@dataclass
class Sequence(ASTNode):
    """Chained statements, `move(2): rotate(90)`, run in source order."""
    statements: list[Statement] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "Sequence"


def is_literal_like(node: ASTNode) -> bool:
    """True for nodes that carry a real vector value."""
    if isinstance(node, NumberLiteral):
        return True
    if isinstance(node, (VariableExpr, ConstantExpr)):
        return node.value.dim != 0
    return False


def resolve_vector(node: ASTNode) -> Vector:
    """The vector a literal-like node carries, VOID for anything else."""
    if isinstance(node, (NumberLiteral, VariableExpr, ConstantExpr)):
        return node.value
    return VOID


def describe_tree(node: ASTNode, depth: int = 0) -> list[str]:
    """Indented dump of a tree, one node per line (the `disp: expr` overlay)."""
    pad = "  " * depth
    match node:
        case NumberLiteral():
            lines = [pad + node.value.format("Expr Number")]
        case Identifier():
            lines = [f"{pad}Expr Identifier: {node.name}"]
        case UnaryOp():
            lines = [f"{pad}Expr Unary: {OP_SYMBOLS[node.op]}"]
            lines += describe_tree(node.child, depth + 1)
        case BinaryOp():
            lines = [f"{pad}Expr Binary: {OP_SYMBOLS[node.op]}"]
            lines += describe_tree(node.left, depth + 1)
            if node.right is not None:
                lines += describe_tree(node.right, depth + 1)
        case VariableExpr():
            lines = [pad + node.value.format(f"Expr Variable {node.kind.value}")]
        case ConstantExpr():
            lines = [f"{pad}Expr Constant: {node.kind.value}"]
        case ActionExpr():
            lines = [f"{pad}Expr Action: {node.kind.value}"]
        case Statement():
            lines = [f"{pad}Expr Statement"]
            lines += describe_tree(node.left, depth + 1)
            lines += describe_tree(node.right, depth + 1)
        case Sequence():
            lines = [f"{pad}Expr Sequence"]
            for stmt in node.statements:
                lines += describe_tree(stmt, depth + 1)
        case _:
            lines = [f"{pad}Expr None"]
    return lines


# ─────────────────────────────────────────────────────────────
#  Parser
# ─────────────────────────────────────────────────────────────

class Parser:
    """
    Precedence-climbing parser for Michi console lines.

    Usage:
        parser = Parser()
        root = parser.parse("move: 10")
        for error in parser.errors:
            print(error)

    The Parser owns the Arena, TokenBuffer and ErrorStream of its passes;
    all three are reset by each call to `parse()`.
    """

    def __init__(self):
        self.arena = Arena()
        self.tokens = TokenBuffer()
        self.errors = ErrorStream()
        self.null = NullExpr()
        self.source = ""
        self.pos = 0

    def reset(self, source: str | bytes = ""):
        """Start a new pass: previous nodes, tokens and errors are discarded."""
        self.source = decode_source(source)
        self.arena.reset()
        self.tokens.reset()
        self.errors.reset()
        self.pos = 0

    def make(self, node: ASTNode) -> ASTNode:
        """Allocate a node in the current pass."""
        return self.arena.push(node)

    def report(self, span: Span, message: str,
               kind: DiagnosticKind = DiagnosticKind.SEMANTIC):
        self.errors.add(span, message, kind)

    def _current(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return token

    def _record_error(self, token: Token, message: str):
        self.report(token.span, message, DiagnosticKind.PARSE)

    def _cover(self, *parts: ASTNode | Token) -> Span:
        """Span from the first to the last part, skipping the Null sentinel."""
        spans = [p.span for p in parts if p is not None and p is not self.null]
        if not spans:
            return self._current().span
        span = spans[0]
        for other in spans[1:]:
            span = span.cover(other)
        return span

    # ─────────────────────────────────────────────────────────
    #  Top Level
    # ─────────────────────────────────────────────────────────

    def parse(self, source: str | bytes) -> ASTNode:
        """Tokenize and parse one line. Always returns a node (maybe Null)."""
        self.reset(source)

        lexer = Lexer(self.source)
        while True:
            token = lexer.next_token()
            self.tokens.add(token)
            if token.type == TokenType.ERROR:
                self.report(token.span, token.error, DiagnosticKind.LEX)
                return self.null
            if token.type == TokenType.EOF:
                break

        if self.tokens[0].type == TokenType.EOF:
            return self.null

        return self._parse_expression(-1, TokenType.EOF)

    # ─────────────────────────────────────────────────────────
    #  Expressions
    # ─────────────────────────────────────────────────────────

    def _parse_expression(self, prec: int, expect: TokenType) -> ASTNode:
        """Parse operators binding tighter than `prec`, stopping at `expect`."""
        token = self._current()
        if token.type == TokenType.EOF:
            # Inside brackets the missing ")" is reported once by the group
            if expect != TokenType.RPAREN:
                self._record_error(token, "Expected expression")
            return self.null
        if token.type == expect:
            # An operand is missing right before the awaited ")". Leave the
            # bracket in place so the group still closes.
            self._record_error(token, "Bracket mismatch!")
            return self.null

        node = self._parse_subexpression()

        token = self._current()
        while token.type not in (TokenType.EOF, expect):
            op_prec, assoc = binding_of(token.type)
            if op_prec < prec:
                break
            if op_prec == prec and assoc == Associativity.LEFT:
                break

            op_node = self._parse_binary_operator(node)
            if op_node.right is None:
                op_node.right = self._parse_expression(op_prec, expect)
                op_node.span = self._cover(op_node, op_node.right)

            node = op_node
            token = self._current()

        return node

    def _parse_subexpression(self) -> ASTNode:
        """Parse a primary: signed operand, number, identifier or group."""
        token = self._current()

        match token.type:
            case TokenType.PLUS | TokenType.MINUS:
                self._advance()
                child = self._parse_subexpression()
                op = OpKind.PLUS if token.type == TokenType.PLUS else OpKind.MINUS
                return self.make(UnaryOp(op=op, child=child, span=self._cover(token, child)))

            case TokenType.NUMBER:
                self._advance()
                return self.make(NumberLiteral(value=Vector.scalar(token.number), span=token.span))

            case TokenType.IDENTIFIER:
                self._advance()
                return self.make(Identifier(name=token.value, span=token.span))

            case TokenType.LPAREN:
                return self._parse_group()

            case TokenType.RPAREN:
                self._advance()
                self._record_error(token, "Bracket mismatch!")
                return self.null

        self._record_error(token, "Expected expression")
        return self.null

    def _parse_group(self) -> UnaryOp:
        """Parse `( expression )`. A missing `)` is reported, not fatal."""
        open_token = self._advance()
        child = self._parse_expression(-1, TokenType.RPAREN)
        close = self._close_bracket()
        return self.make(UnaryOp(
            op=OpKind.BRACKET, child=child,
            span=self._cover(open_token, child, close),
        ))

    def _close_bracket(self) -> Token | None:
        token = self._current()
        if token.type == TokenType.RPAREN:
            return self._advance()
        self._record_error(token, 'Expected ")"')
        return None

    def _parse_binary_operator(self, left: ASTNode) -> BinaryOp:
        """Consume the operator after `left` and build its node.

        The right operand is left as None for the caller to fill, except for
        calls (which parse their own bracketed argument) and for placeholder
        nodes built after a stray `)`.
        """
        token = self._current()

        if token.type == TokenType.LPAREN:
            return self._parse_call(left)

        if token.type == TokenType.RPAREN:
            self._advance()
            self._record_error(token, "Bracket mismatch")
            return self.make(BinaryOp(
                op=OpKind.NONE, left=left, right=self.null,
                span=self._cover(left, token),
            ))

        op = BINARY_OPS.get(token.type)
        if op is None:
            self._record_error(token, "Expected operator")
            return self.make(BinaryOp(op=OpKind.NONE, left=left, span=self._cover(left)))

        self._advance()
        return self.make(BinaryOp(op=op, left=left, span=self._cover(left, token)))

    def _parse_call(self, callee: ASTNode) -> BinaryOp:
        """Parse `callee ( argument )`."""
        open_token = self._advance()
        argument = self._parse_expression(-1, TokenType.RPAREN)
        close = self._close_bracket()
        return self.make(BinaryOp(
            op=OpKind.CALL, left=callee, right=argument,
            span=self._cover(callee, open_token, argument, close),
        ))
