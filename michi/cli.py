"""
Michi CLI
=========
Entry point for the Michi console.

Usage:
    # Open the window (default)
    michi
    michi window --width 1280 --height 720

    # Terminal REPL, no window
    michi repl

    # Run a script, one command per line
    michi run demo.michi --tick 0.5

    # Any command with a JSON config file
    michi --config michi.json repl
"""
import argparse
import logging
import sys
from dataclasses import replace

from .config import MichiConfig
from .diagnostics import MichiError
from .repl import run_lines, run_repl
from .session import Session

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(config: MichiConfig):
    """Log to `config.log_file` when set, otherwise only warnings to stderr."""
    if config.log_file:
        logging.basicConfig(
            filename=config.log_file,
            level=getattr(logging, config.log_level.upper()),
            format=LOG_FORMAT,
        )
    else:
        logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)


def build_config(args) -> MichiConfig:
    """Defaults, then the config file, then MICHI_* variables, then flags."""
    config = MichiConfig.load(args.config) if args.config else MichiConfig()
    config = config.apply_env()

    flags = {
        "log_file": args.log_file,
        "log_level": args.log_level,
        "width": getattr(args, "width", None),
        "height": getattr(args, "height", None),
        "fps": getattr(args, "fps", None),
    }
    changes = {name: value for name, value in flags.items() if value is not None}
    return replace(config, **changes) if changes else config


# ─────────────────────────────────────────────────────────────
#  Commands
# ─────────────────────────────────────────────────────────────

def cmd_window(args, config: MichiConfig) -> int:
    """Open the pygame window."""
    try:
        from .app import App
    except ImportError as e:
        print(f"✘ pygame is required for the window: {e}")
        print("  Install it with:  pip install pygame")
        return 1
    App(config).run()
    return 0


def cmd_repl(args, config: MichiConfig) -> int:
    run_repl(Session(config))
    return 0


def cmd_run(args, config: MichiConfig) -> int:
    """Run a script file; the exit code is 1 if any command failed."""
    try:
        with open(args.file, encoding="latin-1") as f:
            lines = f.readlines()
    except OSError as e:
        print(f"✘ Cannot read {args.file}: {e}")
        return 1

    session = Session(config)
    failures = run_lines(session, lines, tick=args.tick)
    if args.hud:
        for text in session.hud_lines():
            print(text)
    return 1 if failures else 0


# ─────────────────────────────────────────────────────────────
#  Main
# ─────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="michi",
        description="Michi: a console micro-language for steering an actor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  michi\n"
            "  michi repl\n"
            "  michi run demo.michi --tick 0.5 --hud\n"
        ),
    )
    parser.add_argument("--config", default=None, help="Path to a JSON config file")
    parser.add_argument("--log-file", default=None, help="Write logs to this file")
    parser.add_argument("--log-level", default=None,
                        help="Log level for --log-file (DEBUG, INFO, WARNING, ...)")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # window
    p_window = subparsers.add_parser("window", help="Open the Michi window (default)")
    p_window.add_argument("--width", type=int, default=None, help="Window width in pixels")
    p_window.add_argument("--height", type=int, default=None, help="Window height in pixels")
    p_window.add_argument("--fps", type=int, default=None, help="Frame rate cap")

    # repl
    subparsers.add_parser("repl", help="Interactive terminal REPL")

    # run
    p_run = subparsers.add_parser("run", help="Run a script file")
    p_run.add_argument("file", help="Script with one command per line")
    p_run.add_argument("--tick", type=float, default=0.0,
                       help="Seconds of animation to run after each command")
    p_run.add_argument("--hud", action="store_true", help="Print the HUD when done")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except MichiError as e:
        print(f"✘ {e}")
        return 2
    configure_logging(config)
    logger.info("michi starting: %s", args.command or "window")

    commands = {
        "window": cmd_window,
        "repl": cmd_repl,
        "run": cmd_run,
    }

    try:
        return commands[args.command or "window"](args, config)
    except MichiError as e:
        logger.exception("michi error")
        print(f"✘ Michi Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
