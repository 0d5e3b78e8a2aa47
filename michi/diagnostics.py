"""
Michi Diagnostics
=================
Language errors are data, not exceptions. Every problem found while
lexing, parsing, resolving or executing a line is appended, in discovery
order, to the ErrorStream of the current pass.

Exceptions are reserved for misuse of the library itself (MichiError and
its subclasses).
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator

from .lexer import Span


class MichiError(Exception):
    """Misuse of the Michi runtime (not a language diagnostic)."""
    pass


class StaleNodeError(MichiError):
    """A syntax-tree node from an earlier parse pass was used after reset."""
    pass


class ConfigError(MichiError):
    """Invalid configuration value or file."""
    pass


class DiagnosticKind(Enum):
    """Where in the pipeline a diagnostic was raised."""
    LEX      = auto()   # fatal to the pass
    PARSE    = auto()   # recoverable, placeholder node synthesized
    SEMANTIC = auto()   # recoverable, enclosing sub-evaluation aborted


@dataclass(frozen=True)
class Diagnostic:
    """A single error with the source region it refers to."""
    span: Span
    message: str
    kind: DiagnosticKind = DiagnosticKind.SEMANTIC

    def __str__(self) -> str:
        return f"{self.span.start}: {self.message}"


class ErrorStream:
    """Ordered diagnostics for one pass. Cleared at the start of the next."""

    def __init__(self):
        self._errors: list[Diagnostic] = []

    def add(self, span: Span, message: str,
            kind: DiagnosticKind = DiagnosticKind.SEMANTIC) -> Diagnostic:
        diagnostic = Diagnostic(span, message, kind)
        self._errors.append(diagnostic)
        return diagnostic

    def reset(self):
        self._errors.clear()

    def messages(self) -> list[str]:
        return [d.message for d in self._errors]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def __getitem__(self, index: int) -> Diagnostic:
        return self._errors[index]
