"""
Michi REPL
==========
Terminal front end: type Michi lines and watch the world change, without
opening a window. Also runs script files, one command per line.

Commands: help, hud, tick [seconds], quit
"""
import logging
from typing import Callable, Iterable

from .diagnostics import Diagnostic, MichiError
from .names import describe_all
from .session import Session

logger = logging.getLogger(__name__)

PROMPT = "  michi> "

BANNER = r"""
  ┌──────────────────────────────────────────────┐
  │  MICHI                                       │
  │  A tiny language for steering a turtle.      │
  │                                              │
  │  move: 10        rotate(90)      disp: help  │
  │  Type 'help' for names, 'quit' to leave      │
  └──────────────────────────────────────────────┘
"""

HELP_TEXT = """
  Statements          name : value    or    name(value)
  Vectors             1, 2, 3         (up to four lanes)
  Arithmetic          + - * /         ( ) for grouping
  Fields              actor.color.y   speed.position   output.x
  Chaining            move(10): rotate(90): move(10)

  REPL commands       help, hud, tick [seconds], quit
"""

DEFAULT_TICK = 1.0
TICK_STEP = 1.0 / 60.0


def format_diagnostic(line: str, diagnostic: Diagnostic, indent: str = "  ") -> list[str]:
    """The line with a caret run under the diagnostic's span."""
    span = diagnostic.span
    marker = " " * span.start + "^" * max(span.length, 1)
    return [
        f"{indent}{line}",
        f"{indent}{marker} {diagnostic.message}",
    ]


def advance(session: Session, seconds: float):
    """Run the world for `seconds` in fixed 60 Hz steps."""
    steps = max(int(round(seconds / TICK_STEP)), 1)
    for _ in range(steps):
        session.tick(seconds / steps)


def run_line(session: Session, line: str, output_fn: Callable[[str], None]) -> bool:
    """Submit one command and report the outcome."""
    ok = session.submit(line)
    if ok:
        output_fn("  " + session.world.output_vector.format("output"))
        return True
    # Carets line up with the text the command pass actually read
    shown = session.command.parser.source
    for diagnostic in session.command.errors:
        for text in format_diagnostic(shown, diagnostic):
            output_fn(text)
    return False


def run_lines(session: Session, lines: Iterable[str],
              output_fn: Callable[[str], None] = print, tick: float = 0.0) -> int:
    """Run script lines in order. Returns the number of failed commands.

    Blank lines and lines starting with `#` are skipped. With `tick` set,
    the world is advanced that many seconds after each command.
    """
    failures = 0
    for number, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        output_fn(f"{number}: {line}")
        if not run_line(session, line, output_fn):
            failures += 1
        if tick:
            advance(session, tick)
        if session.exit_requested:
            break
    return failures


def run_repl(session: Session | None = None,
             input_fn: Callable[[str], str] = input,
             output_fn: Callable[[str], None] = print):
    """Run the interactive Michi REPL."""
    session = session or Session()
    output_fn(BANNER)

    while not session.exit_requested:
        try:
            line = input_fn(PROMPT)
        except (EOFError, KeyboardInterrupt):
            output_fn("\n  Bye.")
            break

        stripped = line.strip()
        if not stripped:
            continue

        words = stripped.split()
        match words[0].lower():
            case "quit":
                output_fn("  Bye.")
                break
            case "help":
                output_fn(HELP_TEXT)
                for text in describe_all():
                    output_fn("  " + text)
                continue
            case "hud":
                for text in session.hud_lines():
                    output_fn("  " + text)
                continue
            case "tick" if len(words) <= 2:
                try:
                    seconds = float(words[1]) if len(words) == 2 else DEFAULT_TICK
                except ValueError:
                    output_fn(f"  tick: not a number: {words[1]}")
                    continue
                advance(session, seconds)
                snap = session.world.snapshot()
                output_fn("  position %.4f, %.4f  strokes %d" % (*snap.position, snap.stroke_count))
                continue

        try:
            run_line(session, line, output_fn)
        except MichiError as e:
            logger.exception("runtime error")
            output_fn(f"  Michi Error: {e}")
