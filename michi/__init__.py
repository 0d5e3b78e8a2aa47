# Michi: a console micro-language for steering an actor
"""
Michi: a tiny expression language typed into a console panel.
Lines are lexed, parsed, resolved against a live world and executed.
"""
from .vector import Vector, VOID
from .names import Action, VariableKind, ConstantKind, resolve_name, describe_all
from .lexer import Lexer, Span, Token, TokenType
from .diagnostics import (
    ConfigError, Diagnostic, DiagnosticKind, ErrorStream, MichiError, StaleNodeError,
)
from .arena import Arena, TokenBuffer
from .parser import (
    Parser, ASTNode, NullExpr, NumberLiteral, Identifier, UnaryOp, BinaryOp,
    VariableExpr, ConstantExpr, ActionExpr, Statement, Sequence, OpKind,
)
from .world import Actor, ActorSpeed, Display, Location, Stroke, World, WorldSnapshot
from .evaluator import Evaluator
from .executor import Executor
from .config import MichiConfig
from .console import Console, ColorClass, highlight, pixel_x_to_char_offset
from .session import Pipeline, Session

__version__ = "0.1.0"
__all__ = [
    "Vector", "VOID",
    "Action", "VariableKind", "ConstantKind", "resolve_name", "describe_all",
    "Lexer", "Span", "Token", "TokenType",
    "ConfigError", "Diagnostic", "DiagnosticKind", "ErrorStream", "MichiError",
    "StaleNodeError",
    "Arena", "TokenBuffer",
    "Parser", "ASTNode", "NullExpr", "NumberLiteral", "Identifier", "UnaryOp",
    "BinaryOp", "VariableExpr", "ConstantExpr", "ActionExpr", "Statement",
    "Sequence", "OpKind",
    "Actor", "ActorSpeed", "Display", "Location", "Stroke", "World", "WorldSnapshot",
    "Evaluator", "Executor",
    "MichiConfig",
    "Console", "ColorClass", "highlight", "pixel_x_to_char_offset",
    "Pipeline", "Session",
]
