"""
Michi Arena
===========
Storage for the syntax tree and token stream of one parse pass.

Nodes are pushed into the arena and never released one by one; the whole
arena is reset at the start of the next pass. Each reset starts a new
generation. Nodes are stamped with the generation they were created in, so
a node that outlived its pass is detected instead of silently reused.
"""
from typing import Iterator, TypeVar

from .diagnostics import StaleNodeError
from .lexer import Token, TokenType

N = TypeVar("N")


class Arena:
    """Generation-stamped bump storage for syntax-tree nodes."""

    def __init__(self):
        self.generation = 0
        self._nodes: list = []

    def push(self, node: N) -> N:
        """Take ownership of a freshly built node and return it."""
        node.generation = self.generation
        self._nodes.append(node)
        return node

    def reset(self):
        """Drop every node and start a new generation."""
        self._nodes.clear()
        self.generation += 1

    def owns(self, node) -> bool:
        """True when the node belongs to the current generation.

        Nodes without a stamp (the per-parser Null sentinel) are always owned.
        """
        generation = getattr(node, "generation", None)
        return generation is None or generation == self.generation

    def check(self, node) -> None:
        if not self.owns(node):
            raise StaleNodeError(
                f"{type(node).__name__} from generation {node.generation} "
                f"used in generation {self.generation}"
            )

    def __len__(self) -> int:
        return len(self._nodes)


class TokenBuffer:
    """The tokens of the current pass, ending in EOF unless lexing failed."""

    def __init__(self):
        self._tokens: list[Token] = []

    def add(self, token: Token):
        self._tokens.append(token)

    def reset(self):
        self._tokens.clear()

    def last(self) -> Token:
        return self._tokens[-1]

    def has_error(self) -> bool:
        return bool(self._tokens) and self._tokens[-1].type == TokenType.ERROR

    def __getitem__(self, index: int) -> Token:
        return self._tokens[index]

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)
