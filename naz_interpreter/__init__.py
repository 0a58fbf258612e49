"""
naz interpreter
===============
An interpreter for naz, a tiny esoteric language whose programs are
two-character instructions (a digit operand and an opcode letter).

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌────────────┐
    │  Source  │───>│  Lexer   │───>│ Stepper  │───>│ Dispatcher │
    │ (.naz)   │    │ (tokens) │    │ (1/step) │    │ (opcodes)  │
    └──────────┘    └──────────┘    └──────────┘    └────────────┘
                                         │                │
                                         v                v
                                   ┌─────────────┐  ┌────────────────┐
                                   │ Diagnostics │  │ ExecutionState │
                                   └─────────────┘  └────────────────┘

    - lexer.py:       pair slicer, shape validator, Program buffer
    - opcodes.py:     Opcode enum + output character mapping
    - state.py:       register, function table, mode, position
    - dispatch.py:    apply(opcode, operand, state), function replay
    - interpreter.py: step/run loop with an injectable wait hook
    - diagnostics.py: ErrorKind / NazError, info/warn/fatal records
    - log.py:         rich logging setup
"""

__version__ = "0.1.0"

from typing import Optional

from .diagnostics import (
    Diagnostic, Diagnostics, ErrorKind, NazError, Severity, SourceLocation,
)
from .dispatch import apply, invoke
from .interpreter import Interpreter, RunResult, StopReason, Wait
from .lexer import Instruction, Program, Token, TokenKind, decode, tokenize, validate
from .opcodes import Opcode, output_char
from .state import ExecutionState, FunctionTable, Mode


def run_source(source: str, filename: str = "<source>", *, delay: float = 0,
               wait: Optional[Wait] = None,
               diagnostics: Optional[Diagnostics] = None) -> RunResult:
    """Run a naz program and return its RunResult.

    Args:
        source: program text.
        filename: name used in '  at file:line:col' traces.
        delay: pause between steps in milliseconds (0 = none).
        wait: replacement for time.sleep, called with seconds.
        diagnostics: collector to report into (a fresh one by default).

    Raises:
        NazError on any fatal error, after it has been reported.
    """
    interp = Interpreter(source, filename=filename, delay=delay, wait=wait,
                         diagnostics=diagnostics)
    return interp.run()
