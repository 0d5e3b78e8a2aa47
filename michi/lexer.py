"""
Michi Lexer
===========
Tokenizes a console line into a stream of span-tagged tokens.

The lexer is a cursor over the text: each `next_token()` call produces
exactly one token and moves past it. Once the end of input is reached the
lexer keeps answering EOF. Input given as bytes is decoded as Latin-1 so
that character offsets and byte offsets coincide; a NUL ends the input.
"""
import math
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator


class TokenType(Enum):
    """All token kinds in the Michi language."""
    ERROR       = auto()
    EOF         = auto()

    NUMBER      = auto()   # 1, 2.5, .5, 1e3
    IDENTIFIER  = auto()   # move, actor, x

    PLUS        = auto()   # +
    MINUS       = auto()   # -
    STAR        = auto()   # *
    SLASH       = auto()   # /
    LPAREN      = auto()   # (
    RPAREN      = auto()   # )
    PERIOD      = auto()   # .
    COMMA       = auto()   # ,
    COLON       = auto()   # :


@dataclass(frozen=True)
class Span:
    """A region of the source text: character offset and length."""
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length

    def cover(self, other: "Span") -> "Span":
        """Smallest span containing both spans."""
        start = min(self.start, other.start)
        return Span(start, max(self.end, other.end) - start)

    def text(self, source: str) -> str:
        return source[self.start:self.end]


@dataclass(frozen=True)
class Token:
    """A single token from a Michi line."""
    type: TokenType
    value: str
    span: Span
    number: float = 0.0
    error: str = ""   # message, for ERROR tokens only

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, @{self.span.start})"


SINGLE_CHAR_TOKENS = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
}

WHITESPACE = frozenset(" \t\n\v\f\r")
DIGITS = frozenset("0123456789")
IDENTIFIER_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_"
)

NUMBER_PATTERN = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)

# Lanes are single precision; literals outside its range are rejected
FLOAT32_MAX = 3.4028234663852886e38
FLOAT32_MIN_NORMAL = 1.1754943508222875e-38


def decode_source(source: str | bytes) -> str:
    """Normalize console input: bytes become Latin-1 text, a NUL ends input."""
    if isinstance(source, (bytes, bytearray)):
        source = bytes(source).decode("latin-1")
    nul = source.find("\0")
    if nul >= 0:
        source = source[:nul]
    return source


def parse_float(text: str) -> float | None:
    """Locale-independent decimal parse; None when out of single-precision range."""
    value = float(text)
    if not math.isfinite(value) or abs(value) > FLOAT32_MAX:
        return None
    if value != 0.0 and abs(value) < FLOAT32_MIN_NORMAL:
        return None
    return value


class Lexer:
    """
    Tokenizes a Michi console line.

    Usage:
        lexer = Lexer("move: 10")
        token = lexer.next_token()      # one token at a time
        tokens = Lexer(text).tokenize() # or everything up to EOF / ERROR
    """

    def __init__(self, source: str | bytes):
        self.source = decode_source(source)
        self.pos = 0
        self.token_start = 0
        self.tokenizing = len(self.source) > 0

    def _current(self) -> str:
        return self.source[self.pos]

    def _peek(self, offset: int = 1) -> str | None:
        idx = self.pos + offset
        if idx >= len(self.source):
            return None
        return self.source[idx]

    def _advance(self, count: int = 1):
        for _ in range(count):
            if not self.tokenizing:
                return
            self.pos += 1
            if self.pos >= len(self.source):
                self.tokenizing = False

    def _make_token(self, token_type: TokenType, number: float = 0.0, error: str = "") -> Token:
        span = Span(self.token_start, self.pos - self.token_start)
        self.token_start = self.pos
        return Token(token_type, span.text(self.source), span, number, error)

    def _read_number(self) -> Token:
        """Read a decimal float literal (`12`, `1.5`, `.5`, `2e-3`)."""
        match = NUMBER_PATTERN.match(self.source, self.pos)
        self._advance(match.end() - self.pos)
        value = parse_float(match.group())
        if value is None:
            return self._make_token(TokenType.ERROR, error="Number literal out of range")
        return self._make_token(TokenType.NUMBER, number=value)

    def _read_identifier(self) -> Token:
        """Read a maximal run of letters, digits and underscores."""
        while self.tokenizing and self._current() in IDENTIFIER_CHARS:
            self._advance()
        return self._make_token(TokenType.IDENTIFIER)

    def next_token(self) -> Token:
        """Produce the next token and move past it."""
        while self.tokenizing:
            ch = self._current()

            if ch in WHITESPACE:
                while self.tokenizing and self._current() in WHITESPACE:
                    self._advance()
                self.token_start = self.pos
                continue

            if ch in SINGLE_CHAR_TOKENS:
                self._advance()
                return self._make_token(SINGLE_CHAR_TOKENS[ch])

            if ch == ".":
                if self._peek() in DIGITS:
                    return self._read_number()
                self._advance()
                return self._make_token(TokenType.PERIOD)

            if ch in DIGITS:
                return self._read_number()

            if ch in IDENTIFIER_CHARS:
                return self._read_identifier()

            self._advance()
            return self._make_token(TokenType.ERROR, error="Invalid character")

        return self._make_token(TokenType.EOF)

    def tokenize(self) -> list[Token]:
        """Tokenize up to and including EOF, or up to the first ERROR token."""
        return list(self._iter_tokens())

    def _iter_tokens(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.type in (TokenType.EOF, TokenType.ERROR):
                return
