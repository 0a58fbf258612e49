"""
Execution state for one naz run.

Register model:
  register         signed accumulator, kept within [-127, 127] by
                   the additive and multiplicative opcodes
  functions        ten slots (0-9) of recorded instruction text
  mode             NORMAL executes, DECLARING lets 'f' pick a slot
                   to record into for the rest of the line
  pending_function the slot being recorded into, or None
  position         index of the next token in the Program
  line / column    1-based source position for diagnostics
  halted           set by 'h'; nothing runs after it, at any depth
  output           characters appended by 'o'
"""

from __future__ import annotations
import enum
from dataclasses import dataclass, field
from typing import List, Optional


REGISTER_MIN = -127
REGISTER_MAX = 127

FUNCTION_SLOTS = 10


class Mode(enum.IntEnum):
    NORMAL = 0
    DECLARING = 1


class FunctionTable:
    """Ten write-then-replay slots of instruction text.

    A slot with no recorded tokens is undeclared. Recording into a slot
    that already has a body appends to it; nothing ever clears a slot.
    """

    def __init__(self):
        self._slots: List[List[str]] = [[] for _ in range(FUNCTION_SLOTS)]

    def record(self, slot: int, text: str):
        self._slots[slot].append(text)

    def is_declared(self, slot: int) -> bool:
        return bool(self._slots[slot])

    def body(self, slot: int) -> List[str]:
        return list(self._slots[slot])

    def source(self, slot: int) -> str:
        return "".join(self._slots[slot])

    def declared(self) -> List[int]:
        return [i for i, body in enumerate(self._slots) if body]


@dataclass
class ExecutionState:
    register: int = 0
    position: int = 0
    mode: Mode = Mode.NORMAL
    pending_function: Optional[int] = None
    halted: bool = False
    line: int = 1
    column: int = 1
    call_depth: int = 0
    steps: int = 0
    output: List[str] = field(default_factory=list)
    functions: FunctionTable = field(default_factory=FunctionTable)

    @property
    def recording(self) -> bool:
        """True while tokens go into a function slot instead of running."""
        return self.mode is Mode.DECLARING and self.pending_function is not None

    @property
    def output_text(self) -> str:
        return "".join(self.output)

    def new_line(self):
        """Line break: end any declaration and fall back to NORMAL."""
        self.line += 1
        self.column = 1
        self.pending_function = None
        self.mode = Mode.NORMAL
