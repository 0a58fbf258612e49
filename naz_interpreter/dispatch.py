"""
Instruction dispatcher for the naz interpreter.

apply() looks the opcode up in DISPATCH and runs its handler against the
ExecutionState. Handlers are plain functions of (state, operand); they
raise NazError on failure and never touch the source position, which is
the stepper's business.

Function invocation ('f' in NORMAL mode) replays the slot's recorded
tokens through apply() on the same state, so nested calls share the
register, the function table and the halted flag.
"""

from __future__ import annotations
import logging
from typing import Callable, Dict

from .diagnostics import ErrorKind, NazError
from .lexer import decode
from .opcodes import Opcode, output_char
from .state import REGISTER_MAX, REGISTER_MIN, ExecutionState, Mode


log = logging.getLogger(__name__)

MAX_CALL_DEPTH = 128

Handler = Callable[[ExecutionState, int], None]


def _check_register(state: ExecutionState):
    if not REGISTER_MIN <= state.register <= REGISTER_MAX:
        raise NazError(ErrorKind.OUT_OF_BOUNDS)


# ──────────────────────────────────────────────
# Arithmetic
# ──────────────────────────────────────────────

def op_add(state: ExecutionState, operand: int):
    state.register += operand
    _check_register(state)


def op_subtract(state: ExecutionState, operand: int):
    state.register -= operand
    _check_register(state)


def op_multiply(state: ExecutionState, operand: int):
    state.register *= operand
    _check_register(state)


def op_divide(state: ExecutionState, operand: int):
    if operand == 0:
        raise NazError(ErrorKind.DIVISION_BY_ZERO)
    state.register = state.register // operand


def op_modulo(state: ExecutionState, operand: int):
    """Remainder with the sign of the register (-7 p 3 gives -1)."""
    if operand == 0:
        raise NazError(ErrorKind.DIVISION_BY_ZERO)
    remainder = abs(state.register) % operand
    state.register = -remainder if state.register < 0 else remainder


# ──────────────────────────────────────────────
# Program flow
# ──────────────────────────────────────────────

def op_function(state: ExecutionState, operand: int):
    if state.mode is Mode.DECLARING:
        state.pending_function = operand
        return
    invoke(state, operand)


def op_halt(state: ExecutionState, operand: int):
    state.halted = True


def op_output(state: ExecutionState, operand: int):
    ch = output_char(state.register)
    if ch is None:
        raise NazError(ErrorKind.INVALID_OUTPUT_VALUE)
    state.output.append(ch * operand)


# ──────────────────────────────────────────────
# Special
# ──────────────────────────────────────────────

def op_mode(state: ExecutionState, operand: int):
    if operand > Mode.DECLARING:
        raise NazError(ErrorKind.INVALID_OPCODE)
    state.mode = Mode(operand)


DISPATCH: Dict[Opcode, Handler] = {
    Opcode.ADD: op_add,
    Opcode.SUBTRACT: op_subtract,
    Opcode.MULTIPLY: op_multiply,
    Opcode.DIVIDE: op_divide,
    Opcode.MODULO: op_modulo,
    Opcode.FUNCTION: op_function,
    Opcode.HALT: op_halt,
    Opcode.OUTPUT: op_output,
    Opcode.MODE: op_mode,
}


def apply(opcode: Opcode, operand: int, state: ExecutionState):
    """Execute one decoded instruction against state."""
    DISPATCH[opcode](state, operand)


def invoke(state: ExecutionState, slot: int):
    """Replay function slot to completion or until the run halts."""
    if not state.functions.is_declared(slot):
        raise NazError(ErrorKind.UNDECLARED_FUNCTION)
    if state.call_depth >= MAX_CALL_DEPTH:
        raise NazError(ErrorKind.CALL_DEPTH_EXCEEDED)

    log.debug("call f%d depth=%d body=%s", slot, state.call_depth + 1,
              state.functions.source(slot))
    state.call_depth += 1
    try:
        for text in state.functions.body(slot):
            instr = decode(text)
            apply(instr.opcode, instr.operand, state)
            if state.halted:
                break
    finally:
        state.call_depth -= 1
