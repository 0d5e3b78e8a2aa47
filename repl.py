"""
Michi REPL
==========
Interactive Read-Eval-Print Loop for Michi, without a window.
Type statements and watch the world change; 'tick' runs the animation.
"""
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from michi.cli import configure_logging
from michi.config import MichiConfig
from michi.diagnostics import MichiError
from michi.repl import run_repl
from michi.session import Session


if __name__ == "__main__":
    try:
        config = MichiConfig().apply_env()
    except MichiError as e:
        print(f"  Michi Error: {e}")
        sys.exit(2)
    configure_logging(config)
    run_repl(Session(config))
