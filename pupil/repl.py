"""Command-line front end: one-shot evaluation and an interactive REPL.

The driver owns the ``ans`` bookkeeping: after every successful evaluation
the result is stored in the environment before the next line is read.
"""

from __future__ import annotations

import argparse
import logging
import math
import sys
from typing import Dict, List, Optional, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import FileHistory
from pydantic import ValidationError

from pupil.builtins import BUILTIN_NAMES
from pupil.config import Settings, configure_logging, load_settings
from pupil.environment import Environment
from pupil.errors import PupilError
from pupil.expression import Expression

logger = logging.getLogger(__name__)

# --------------------------
# Help
# --------------------------

BANNER = "Welcome to Pupil, the expression evaluator!"

_HELP_TOPICS: Dict[str, str] = {
    'general': (
        "Enter an expression, eg. 2 + 3, and press enter.\n"
        "Examples:\n"
        "  2 + 3 * 4       -> 14\n"
        "  2 pi            -> 6.283185307179586\n"
        "  min(5, 2, 9)    -> 2\n"
        "  ans / 2         -> half of the previous result\n"
        "Commands:\n"
        "  :help, help [topic]    show help (topics: operators, functions)\n"
        "  :vars                  list variables\n"
        "  :exit, :quit           exit (or Ctrl-D)\n"
    ),
    'operators': (
        "Operators and precedence (high -> low):\n"
        "  ^        exponentiation (right-assoc, 2^3^2 == 2^(3^2))\n"
        "  + -      unary plus and minus\n"
        "  a b      implicit multiplication (2 pi, 3 sin(x))\n"
        "  * / %    multiplication, division, remainder\n"
        "  + -      addition, subtraction\n"
        "Notes:\n"
        "  - (expr) groups an expression.\n"
        "  - Division by zero gives inf or nan rather than an error.\n"
    ),
    'functions': (
        "Built-in functions:\n"
        + ", ".join(BUILTIN_NAMES) +
        "\nConstants pi, tau and e need no parentheses. Use ans for the previous result.\n"
    ),
}

def show_help(topic: Optional[str] = None) -> str:
    """Return help text for topic or general if None."""
    if not topic:
        return _HELP_TOPICS['general']
    key = topic.lower()
    return _HELP_TOPICS.get(key, f"No help available for topic '{topic}'")

def format_result(value: float) -> str:
    """Print integral results without a trailing '.0'."""
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return repr(value)

# --------------------------
# REPL
# --------------------------

class REPL:
    """Read-Eval-Print Loop for the calculator."""

    def __init__(self, env: Optional[Environment] = None, settings: Optional[Settings] = None,
                 session: Optional[PromptSession] = None):
        self.env = env if env is not None else Environment()
        self.settings = settings if settings is not None else Settings()
        self._session = session

    @property
    def session(self) -> PromptSession:
        if self._session is None:
            self._session = PromptSession(history=FileHistory(self.settings.history_file))
        return self._session

    def _completer(self) -> WordCompleter:
        words = list(BUILTIN_NAMES) + sorted(self.env.variables)
        return WordCompleter(words, ignore_case=True)

    def _process_command(self, line: str) -> Optional[str]:
        """Process commands starting with ':' or 'help'. Returns response string if a command, else None."""
        s = line.strip()
        if not s:
            return None
        if s.startswith(':'):
            body = s[1:].lstrip()
            if body == '':
                return "No command specified. Use :help for available commands."
            parts = body.split(None, 1)
            cmd = parts[0]
            args = parts[1].split() if len(parts) > 1 else []
            return self._run_command(cmd, args)
        parts = s.split(None, 1)
        if parts[0].lower() == 'help':
            return show_help(parts[1].strip() if len(parts) > 1 else None)
        return None

    def _run_command(self, cmd: str, args: List[str]) -> str:
        """Execute a REPL colon command. Raises EOFError for exit/quit to allow outer loop to handle shutdown."""
        cmd_lower = cmd.lower()
        if cmd_lower in {'exit', 'quit'}:
            raise EOFError()
        if cmd_lower == 'help':
            return show_help(args[0] if args else None)
        if cmd_lower == 'vars':
            items = sorted(self.env.variables.items())
            if not items:
                return "(no variables)"
            return "\n".join(f"{k} = {format_result(v)}" for k, v in items)
        return f"Unknown command: {cmd}"

    def evaluate(self, text: str) -> float:
        """Evaluate ``text`` in a fresh expression and remember the result as ``ans``."""
        result = Expression.evaluate(self.env, text)
        self.env.set_variable('ans', result)
        return result

    def evaluate_line(self, line: str) -> Tuple[bool, str]:
        """Evaluate a single line (either command or expression). Returns (ok, output)."""
        cmd_out = self._process_command(line)
        if cmd_out is not None:
            return True, cmd_out
        try:
            return True, format_result(self.evaluate(line))
        except PupilError as e:
            logger.info("Evaluation of %r failed: %s", line, e)
            return False, f"Error: {e}"
        except Exception as e:
            logger.exception("Unhandled error evaluating %r", line)
            return False, f"Unhandled error: {e}"

    def repl_loop(self) -> None:
        """Interactive loop; Ctrl-C cancels the current line, Ctrl-D or :exit quits."""
        while True:
            try:
                line = self.session.prompt(self.settings.prompt, completer=self._completer())
            except KeyboardInterrupt:
                print("^C")
                continue
            except EOFError:
                print("Exiting.")
                break
            if not line.strip():
                continue
            try:
                ok, out = self.evaluate_line(line)
            except EOFError:
                print("Exiting.")
                break
            print(out)

# --------------------------
# Entry point
# --------------------------

def run_once(words: List[str], env: Optional[Environment] = None) -> int:
    """Evaluate the command-line words as one expression."""
    env = env if env is not None else Environment()
    try:
        expr = Expression(env)
        for word in words:
            expr.feed(word)
        result = expr.result()
    except PupilError as e:
        print(f"Err: {e}!", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("Unhandled error evaluating %r", words)
        print(f"Err: {e}!", file=sys.stderr)
        return 1
    env.set_variable('ans', result)
    print(f"Ok: {format_result(result)}")
    return 0

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pupil", description="Evaluate arithmetic expressions.")
    parser.add_argument(
        "expression",
        nargs="*",
        help="Expression to evaluate; starts the interactive REPL when omitted.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Logging level (default: PUPIL_LOG_LEVEL or WARNING).",
    )
    parser.add_argument(
        "--history-file",
        type=str,
        help="File for interactive history (default: PUPIL_HISTORY_FILE or ~/.pupil_history).",
    )
    parser.add_argument(
        "--no-banner",
        action="store_true",
        help="Do not print the welcome banner in interactive mode.",
    )
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    overrides = {}
    if args.log_level:
        overrides['log_level'] = args.log_level
    if args.history_file:
        overrides['history_file'] = args.history_file
    try:
        settings = load_settings()
        if overrides:
            settings = Settings(**{**settings.model_dump(), **overrides})
    except ValidationError as e:
        parser.error(f"invalid settings: {e}")
    configure_logging(settings.log_level)

    if args.expression:
        return run_once(args.expression)

    if not args.no_banner:
        print(BANNER)
        print("Type :help for help. Ctrl-D or :exit to quit.")
    REPL(settings=settings).repl_loop()
    return 0

if __name__ == '__main__':
    raise SystemExit(main())
