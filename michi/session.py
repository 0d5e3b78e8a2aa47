"""
Michi Session
=============
Wires the language pipeline to the world and the console panel.

A Session keeps two independent pipelines over the same World:

    preview  re-parses and resolves the text on every edit, for highlighting
             and live diagnostics; it never executes
    command  parses, resolves and executes the text on submission

Each pipeline owns its parser, arena and error stream, so a preview pass
never invalidates the nodes or diagnostics of the last submission.
"""
import logging

from .config import MichiConfig
from .console import Console, Run, highlight
from .diagnostics import Diagnostic, ErrorStream
from .evaluator import Evaluator
from .executor import Executor
from .lexer import Span
from .parser import ASTNode, Parser, describe_tree
from .world import World

logger = logging.getLogger(__name__)


class Pipeline:
    """One parser with its evaluator and executor: lex, parse, resolve, run."""

    def __init__(self, world: World):
        self.parser = Parser()
        self.evaluator = Evaluator(self.parser, world)
        self.executor = Executor(self.parser, world)
        self.root: ASTNode = self.parser.null
        self.resolved: ASTNode = self.parser.null

    @property
    def errors(self) -> ErrorStream:
        return self.parser.errors

    @property
    def tokens(self):
        return self.parser.tokens

    def _parse(self, text: str | bytes) -> ASTNode:
        self.root = self.parser.parse(text)
        self.resolved = self.parser.null
        logger.debug("parsed %d tokens, %d errors", len(self.tokens), len(self.errors))
        return self.root

    def preview(self, text: str | bytes) -> ASTNode:
        """Parse and resolve without touching the world."""
        self._parse(text)
        if not self.parser.tokens.has_error():
            self.resolved = self.evaluator.evaluate(self.root)
        return self.resolved

    def submit(self, text: str | bytes) -> bool:
        """Parse, resolve and execute. Stops at the first stage with errors."""
        self._parse(text)
        if self.errors:
            return False
        self.resolved = self.evaluator.evaluate(self.root)
        if self.errors:
            return False
        return self.executor.execute(self.resolved)

    def reject(self, text: str | bytes, span: Span, message: str) -> bool:
        """Fail a line without parsing it."""
        self.parser.reset(text)
        self.root = self.resolved = self.parser.null
        self.parser.report(span, message)
        return False


class Session:
    """
    A Michi console session: world, input panel and both pipelines.

    Usage:
        session = Session()
        session.console.insert("move: 10")
        session.refresh()
        session.submit()
        session.tick(1 / 60)
    """

    def __init__(self, config: MichiConfig | None = None):
        self.config = config or MichiConfig()
        self.world = World.from_config(self.config)
        self.console = Console(self.config.text_capacity)
        self.preview = Pipeline(self.world)
        self.command = Pipeline(self.world)
        self.typing = False
        self.error_index = 0
        self.refresh()

    @property
    def text(self) -> str:
        return self.console.text

    @property
    def exit_requested(self) -> bool:
        return self.world.exit_requested

    def refresh(self):
        """Re-run the preview pass over the current text."""
        self.preview.preview(self.console.text)
        self.error_index = 0

    # ─────────────────────────────────────────────────────────
    #  Typing Mode
    # ─────────────────────────────────────────────────────────

    def start_typing(self):
        self.typing = True

    def stop_typing(self):
        """Leave typing mode. The unsent text is discarded."""
        self.typing = False
        self.console.clear()
        self.refresh()

    def type_text(self, text: str):
        if self.console.insert(text):
            self.refresh()

    def backspace(self):
        if self.console.backspace():
            self.refresh()

    def delete(self):
        if self.console.delete():
            self.refresh()

    # ─────────────────────────────────────────────────────────
    #  Submission
    # ─────────────────────────────────────────────────────────

    def submit(self, text: str | None = None) -> bool:
        """Run the panel text (or `text`) as a command.

        `text` is run exactly as given; characters the panel would refuse
        reach the lexer and a line longer than the panel is rejected whole.
        On success the panel is cleared. On failure the text stays in the
        panel, if the panel can hold it unchanged, and the cursor moves to
        the first diagnostic.
        """
        line = self.console.text if text is None else text
        capacity = self.console.capacity
        if len(line) > capacity:
            ok = self.command.reject(line, Span(capacity, len(line) - capacity),
                                     f"Line longer than {capacity} characters")
        else:
            ok = self.command.submit(line)

        self.console.clear()
        if ok:
            logger.info("command %r ok", line)
        else:
            if self.command.errors:
                logger.warning("command %r rejected: %s", line,
                               "; ".join(self.command.errors.messages()))
            if self.console.insert(line) != len(line):
                self.console.clear()
        self.refresh()

        if not ok and self.console.text:
            self.error_index = len(self.preview.errors)
            self.next_error()
        return ok

    def next_error(self) -> bool:
        """Move the cursor to the next diagnostic, wrapping at the end.

        Live errors come first, then the last submission's.
        """
        diagnostics = self.diagnostics()
        if not diagnostics:
            return False
        if self.error_index >= len(diagnostics):
            self.error_index = 0
        self.console.set_cursor(diagnostics[self.error_index].span.start)
        self.error_index += 1
        return True

    def diagnostics(self) -> list[Diagnostic]:
        """Everything the panel should list: live errors, then the last submission's."""
        return list(self.preview.errors) + list(self.command.errors)

    # ─────────────────────────────────────────────────────────
    #  Frame
    # ─────────────────────────────────────────────────────────

    def tick(self, dt: float):
        self.world.update(dt)

    def highlight(self) -> list[Run]:
        return highlight(self.console.text, self.preview.tokens)

    def hud_lines(self) -> list[str]:
        return self.world.hud_lines(describe_tree(self.preview.root))
