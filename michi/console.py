"""
Michi Console
=============
The single-line input buffer of the command panel, and the helpers the
front end needs to draw it: token color classes for live highlighting and
mapping a click position to a character offset.
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Iterable

from .lexer import Token, TokenType

DEFAULT_CAPACITY = 256

# Printable ASCII accepted by the panel
FIRST_PRINTABLE = 32
LAST_PRINTABLE = 125


class Console:
    """
    Fixed-capacity line editor with a cursor.

    Usage:
        console = Console()
        console.insert("move: 1")
        console.backspace()
        console.text         # "move: "
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self.capacity = capacity
        self._chars: list[str] = []
        self.cursor = 0

    @property
    def text(self) -> str:
        return "".join(self._chars)

    @property
    def full(self) -> bool:
        return len(self._chars) >= self.capacity

    def __len__(self) -> int:
        return len(self._chars)

    def insert(self, text: str) -> int:
        """Insert printable characters at the cursor. Returns how many fit."""
        inserted = 0
        for ch in text:
            if not FIRST_PRINTABLE <= ord(ch) <= LAST_PRINTABLE:
                continue
            if self.full:
                break
            self._chars.insert(self.cursor, ch)
            self.cursor += 1
            inserted += 1
        return inserted

    def backspace(self) -> bool:
        if self.cursor == 0:
            return False
        self.cursor -= 1
        del self._chars[self.cursor]
        return True

    def delete(self) -> bool:
        if self.cursor >= len(self._chars):
            return False
        del self._chars[self.cursor]
        return True

    def left(self):
        self.set_cursor(self.cursor - 1)

    def right(self):
        self.set_cursor(self.cursor + 1)

    def home(self):
        self.cursor = 0

    def end(self):
        self.cursor = len(self._chars)

    def set_cursor(self, offset: int):
        self.cursor = min(max(offset, 0), len(self._chars))

    def clear(self):
        self._chars.clear()
        self.cursor = 0


def pixel_x_to_char_offset(text: str, line_start_pos: float, x: float,
                           advance: Callable[[str], float]) -> int:
    """Character boundary nearest to pixel `x` on a line drawn from `line_start_pos`.

    `advance(ch)` is the horizontal advance of one glyph in pixels.
    """
    pos = line_start_pos
    for i, ch in enumerate(text):
        prev = pos
        pos += advance(ch)
        if prev <= x <= pos:
            return i if x - prev < pos - x else i + 1
    if x < line_start_pos:
        return 0
    return len(text)


# ─────────────────────────────────────────────────────────────
#  Highlighting
# ─────────────────────────────────────────────────────────────

class ColorClass(Enum):
    GENERAL    = auto()
    ERROR      = auto()
    NUMBER     = auto()
    IDENTIFIER = auto()
    OPERATOR   = auto()


OPERATOR_TOKENS = frozenset({
    TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH,
    TokenType.LPAREN, TokenType.RPAREN, TokenType.PERIOD,
    TokenType.COMMA, TokenType.COLON,
})


def color_class(token_type: TokenType) -> ColorClass:
    if token_type == TokenType.ERROR:
        return ColorClass.ERROR
    if token_type == TokenType.NUMBER:
        return ColorClass.NUMBER
    if token_type == TokenType.IDENTIFIER:
        return ColorClass.IDENTIFIER
    if token_type in OPERATOR_TOKENS:
        return ColorClass.OPERATOR
    return ColorClass.GENERAL


@dataclass(frozen=True)
class Run:
    """A stretch of console text drawn in one color."""
    text: str
    start: int
    color: ColorClass


def highlight(text: str, tokens: Iterable[Token]) -> list[Run]:
    """Split `text` into colored runs covering every character.

    Gaps between tokens (whitespace, or text after a lexing error) are
    GENERAL.
    """
    runs: list[Run] = []
    pos = 0
    for token in tokens:
        if token.type == TokenType.EOF:
            break
        start, end = token.span.start, token.span.end
        if start > pos:
            runs.append(Run(text[pos:start], pos, ColorClass.GENERAL))
        runs.append(Run(text[start:end], start, color_class(token.type)))
        pos = end
    if pos < len(text):
        runs.append(Run(text[pos:], pos, ColorClass.GENERAL))
    return runs
