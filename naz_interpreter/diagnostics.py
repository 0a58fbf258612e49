"""
Diagnostics for the naz interpreter.

Every problem the interpreter can detect is fatal. The core raises a
NazError carrying an ErrorKind; the stepper attaches the source position
and the Diagnostics object records the message, logs it and forwards it
to whatever sink the shell installed (the CLI prints through rich).

Informational and warning diagnostics (the halt notice, for example) go
through the same path but do not stop anything by themselves.
"""

from __future__ import annotations
import enum
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional


log = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Error taxonomy
# ──────────────────────────────────────────────

class ErrorKind(enum.Enum):
    # Format errors (token shape)
    MISSING_NUMBER_LITERAL = "missing number literal"
    MISSING_INSTRUCTION = "number literal missing an instruction"
    CHAINED_NUMBER_LITERALS = "attempt to chain number literals"
    INVALID_INSTRUCTION = "invalid instruction"

    # Arithmetic errors
    DIVISION_BY_ZERO = "division by zero"
    OUT_OF_BOUNDS = "register value out of bounds"

    # Semantic errors
    UNDECLARED_FUNCTION = "use of undeclared function"
    INVALID_OUTPUT_VALUE = "invalid output value"
    INVALID_OPCODE = "invalid opcode"
    CALL_DEPTH_EXCEEDED = "function call depth exceeded"


@dataclass(frozen=True)
class SourceLocation:
    filename: str
    line: int
    column: int

    def __str__(self):
        return f"{self.filename}:{self.line}:{self.column}"


class NazError(Exception):
    """Fatal interpreter error. Raised without a position by the lexer and
    dispatcher; the stepper calls locate() before it leaves the core."""

    def __init__(self, kind: ErrorKind, location: Optional[SourceLocation] = None):
        self.kind = kind
        self.location = location
        super().__init__(self._render())

    @property
    def message(self) -> str:
        return self.kind.value

    def locate(self, filename: str, line: int, column: int) -> "NazError":
        self.location = SourceLocation(filename, line, column)
        self.args = (self._render(),)
        return self

    def _render(self) -> str:
        if self.location is None:
            return self.kind.value
        return f"{self.kind.value} at {self.location}"


# ──────────────────────────────────────────────
# Diagnostic records
# ──────────────────────────────────────────────

class Severity(enum.Enum):
    INFO = "info"
    WARNING = "warning"
    FATAL = "fatal"


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.FATAL: logging.ERROR,
}


@dataclass
class Diagnostic:
    severity: Severity
    message: str
    location: Optional[SourceLocation] = None

    @property
    def trace(self) -> Optional[str]:
        """The '  at file:line:col' line, or None when unlocated."""
        if self.location is None:
            return None
        return f"  at {self.location}"

    def render(self) -> str:
        head = f"error: {self.message}" if self.severity is Severity.FATAL else self.message
        if self.trace is None:
            return head
        return f"{head}\n{self.trace}"


Sink = Callable[[Diagnostic], None]


class Diagnostics:
    """Collects diagnostics for one run and forwards them to a sink."""

    def __init__(self, filename: str = "<source>", sink: Optional[Sink] = None):
        self.filename = filename
        self.sink = sink
        self.records: List[Diagnostic] = []

    def at(self, line: int, column: int) -> SourceLocation:
        return SourceLocation(self.filename, line, column)

    def emit(self, diag: Diagnostic) -> Diagnostic:
        self.records.append(diag)
        log.log(_LOG_LEVELS[diag.severity], "%s", diag.render())
        if self.sink is not None:
            self.sink(diag)
        return diag

    def info(self, message: str, location: Optional[SourceLocation] = None) -> Diagnostic:
        return self.emit(Diagnostic(Severity.INFO, message, location))

    def warn(self, message: str, location: Optional[SourceLocation] = None) -> Diagnostic:
        return self.emit(Diagnostic(Severity.WARNING, message, location))

    def fatal(self, error: NazError) -> Diagnostic:
        if error.location is None:
            raise ValueError(f"fatal diagnostic without a location: {error.kind.name}")
        return self.emit(Diagnostic(Severity.FATAL, error.message, error.location))

    @property
    def failed(self) -> bool:
        return any(d.severity is Severity.FATAL for d in self.records)
