"""
naz Interpreter: the stepper.

Execution model:
  1. Fetch the token at state.position
  2. Line break → advance the line, end any declaration, back to NORMAL
  3. Validate the token's shape (fatal NazError if malformed)
  4. Recording a function → append the token to its slot
     otherwise → decode and dispatch
  5. Advance the column by two and the position by one
  6. Wait for the configured delay, then go again

Termination reasons:
  - DONE:  ran off the end of the program
  - HALT:  an 'h' instruction, at any call depth

Fatal errors are not a StopReason: run() reports them through the
Diagnostics object with a position trace and re-raises the NazError for
the shell to turn into an exit status.
"""

from __future__ import annotations
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .diagnostics import Diagnostics, NazError, SourceLocation
from .dispatch import apply
from .lexer import Program, decode, validate
from .state import ExecutionState


log = logging.getLogger(__name__)

Wait = Callable[[float], None]


class StopReason(enum.Enum):
    DONE = "DONE"
    HALT = "HALT"


@dataclass
class RunResult:
    output: str
    reason: StopReason
    elapsed: float
    steps: int
    register: int
    trace: List[str] = field(default_factory=list)

    @property
    def halted(self) -> bool:
        return self.reason is StopReason.HALT


class Interpreter:
    """Runs one naz program.

    Usage:
        interp = Interpreter(source, filename="hello.naz", delay=0)
        result = interp.run()
        print(result.output)

    delay is in milliseconds. wait(seconds) is called between steps when
    delay is non-zero; it defaults to time.sleep and exists so tests can
    step without real time passing.
    """

    def __init__(self, source: str, filename: str = "<source>", delay: float = 0,
                 wait: Optional[Wait] = None, diagnostics: Optional[Diagnostics] = None,
                 trace: bool = False):
        if delay < 0:
            raise ValueError(f"delay must be non-negative, got {delay}")
        self.program = Program(source, filename)
        self.filename = filename
        self.delay = delay
        self.wait = wait if wait is not None else time.sleep
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics(filename)
        self.state = ExecutionState()

        self._trace = trace
        self.trace_output: List[str] = []

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Process one token. Returns a StopReason if the run is over."""
        state = self.state
        if state.halted:
            return StopReason.HALT
        if state.position >= len(self.program):
            return StopReason.DONE

        token = self.program[state.position]
        state.steps += 1

        if token.is_newline:
            state.new_line()
            state.position += 1
            return None

        if state.recording:
            validate(token.text)
            state.functions.record(state.pending_function, token.text)
            log.debug("L%d:%d record %s into f%d", state.line, state.column,
                      token.text, state.pending_function)
            state.column += 2
            state.position += 1
            return None

        col = state.column
        instr = decode(token.text)
        state.column += 1  # errors and the halt trace point at the opcode
        apply(instr.opcode, instr.operand, state)
        if self._trace:
            self.trace_output.append(f"L{state.line}:{col} {token.text} reg={state.register}")
        if state.halted:
            return StopReason.HALT

        state.column += 1
        state.position += 1
        return None

    def run(self) -> RunResult:
        """Run until the program ends or halts.

        Raises NazError (already reported through diagnostics) on any
        fatal error.
        """
        start = time.perf_counter()
        log.debug("run %s: %d tokens, delay=%sms", self.filename, len(self.program), self.delay)

        while True:
            try:
                reason = self.step()
            except NazError as e:
                self.state.halted = True
                e.locate(self.filename, self.state.line, self.state.column)
                self.diagnostics.fatal(e)
                raise
            if reason is not None:
                break
            if self.delay:
                self.wait(self.delay / 1000.0)

        if reason is StopReason.HALT:
            self.diagnostics.warn("program halted.",
                                  SourceLocation(self.filename, self.state.line, self.state.column))

        elapsed = time.perf_counter() - start
        log.debug("%s after %d steps in %.6fs", reason.name, self.state.steps, elapsed)
        return RunResult(
            output=self.state.output_text,
            reason=reason,
            elapsed=elapsed,
            steps=self.state.steps,
            register=self.state.register,
            trace=list(self.trace_output),
        )
