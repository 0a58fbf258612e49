#!/usr/bin/env python3
"""
naz: command-line runner for naz programs

Usage:
    python naz.py <program.naz> [-d DELAY_MS] [--trace] [--tokens]
                                [--no-spinner] [--verbose] [--log-file PATH]

Examples:
    python naz.py examples/hello.naz
    python naz.py examples/hello.naz -d 50        # slow it down to watch
    python naz.py examples/hello.naz --trace      # one line per instruction
    python naz.py examples/hello.naz --tokens     # dump the token stream

Exit status: 0 on completion (including 'h'), 1 on any naz error or
unreadable file, 2 on an internal error.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

# Allow running from project root or as module
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from rich.console import Console
from rich.text import Text

from naz_interpreter import __version__
from naz_interpreter.diagnostics import Diagnostic, Diagnostics, NazError, Severity
from naz_interpreter.interpreter import Interpreter
from naz_interpreter.lexer import Program
from naz_interpreter.log import setup_logging


DEFAULT_DELAY_MS = 1

SEVERITY_STYLES = {
    Severity.INFO: "cyan",
    Severity.WARNING: "yellow",
    Severity.FATAL: "white",
}


def format_elapsed(seconds: float) -> str:
    """Human-readable duration: '0ms', '250ms', '1.5s', '2m 5s'."""
    ms = int(round(seconds * 1000))
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60_000:
        return f"{ms / 1000:.1f}s".replace(".0s", "s")
    minutes, rest = divmod(ms // 1000, 60)
    return f"{minutes}m {rest}s"


def parse_delay(value: str) -> float:
    try:
        delay = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if delay < 0:
        raise argparse.ArgumentTypeError("delay must be non-negative")
    return delay


class ConsoleSink:
    """Prints diagnostics the way the terminal display expects them."""

    def __init__(self, console: Console):
        self.console = console

    def __call__(self, diag: Diagnostic):
        if diag.severity is Severity.FATAL:
            line = Text.assemble(("error: ", "red"), (diag.message, "white"))
        else:
            line = Text(diag.message, style=SEVERITY_STYLES[diag.severity])
        self.console.print(line, soft_wrap=True)
        if diag.trace is not None:
            self.console.print(Text(diag.trace, style="cyan"), soft_wrap=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="naz",
        description="Run a naz program one instruction at a time",
    )
    parser.add_argument("input", help="naz source file")
    parser.add_argument("-d", "--delay", type=parse_delay, default=DEFAULT_DELAY_MS,
                        help=f"delay between steps in ms (default: {DEFAULT_DELAY_MS})")
    parser.add_argument("--trace", action="store_true",
                        help="print one line per executed instruction after the run")
    parser.add_argument("--tokens", action="store_true",
                        help="dump the token stream and exit (debug)")
    parser.add_argument("--no-spinner", action="store_true",
                        help="don't show the running... spinner")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="log interpreter details to stderr")
    parser.add_argument("--log-file", default=None,
                        help="also write a DEBUG log to this file")
    parser.add_argument("--version", action="version",
                        version=f"naz {__version__}")
    return parser


def main(argv: Optional[List[str]] = None, console: Optional[Console] = None) -> int:
    args = build_parser().parse_args(argv)
    console = console or Console(highlight=False)

    setup_logging(
        console_level=logging.DEBUG if args.verbose else logging.WARNING,
        log_file=args.log_file,
        rich_console=args.verbose,
    )

    # Read input
    try:
        with open(args.input, "r", encoding="utf-8", newline="") as f:
            source = f.read()
    except FileNotFoundError:
        console.print(Text.assemble(("error: ", "red"), f"file not found: {args.input}"))
        return 1
    except (OSError, UnicodeDecodeError) as e:
        console.print(Text.assemble(("error: ", "red"), f"cannot read {args.input}: {e}"))
        return 1

    filename = args.input

    if args.tokens:
        program = Program(source, filename)
        for tok in program:
            console.print(repr(tok), markup=False, soft_wrap=True)
        if args.verbose:
            console.print(f"{len(program)} tokens, {program.line_count} lines", markup=False)
        return 0

    diagnostics = Diagnostics(filename, sink=ConsoleSink(console))

    try:
        interp = Interpreter(source, filename=filename, delay=args.delay,
                             diagnostics=diagnostics, trace=args.trace)
        if args.no_spinner or not console.is_terminal:
            result = interp.run()
        else:
            with console.status(Text("running...", style="yellow"),
                                spinner="dots", spinner_style="yellow"):
                result = interp.run()
    except NazError:
        # already printed with its trace by the sink
        return 1
    except Exception as e:
        console.print(Text.assemble(("internal error: ", "red"), str(e)))
        if args.verbose:
            console.print_exception()
        return 2

    if args.trace:
        for line in result.trace:
            console.print(Text(line, style="dim"), soft_wrap=True)

    console.print(Text.assemble(("finished", "green"),
                                (f" in {format_elapsed(result.elapsed)}", "cyan")))
    console.print(Text.assemble("output: ", result.output), soft_wrap=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
