"""
naz opcode table and output character mapping.

Each instruction is one operand digit followed by one of these letters:

    a  add          d  divide       m  multiply
    s  subtract     p  modulo       o  output
    f  function     x  mode switch  h  halt
"""

from __future__ import annotations
import enum
from typing import Dict, Optional


class Opcode(enum.Enum):
    # Arithmetic
    ADD = "a"
    SUBTRACT = "s"
    MULTIPLY = "m"
    DIVIDE = "d"
    MODULO = "p"

    # Program flow
    FUNCTION = "f"
    HALT = "h"
    OUTPUT = "o"

    # Special
    MODE = "x"

    @property
    def letter(self) -> str:
        return self.value


OPCODES: Dict[str, Opcode] = {op.value: op for op in Opcode}

DIGITS = "0123456789"


def is_digit(ch: str) -> bool:
    """True for a single ASCII decimal digit (unicode digits don't count)."""
    return len(ch) == 1 and ch in DIGITS


def is_opcode(ch: str) -> bool:
    return len(ch) == 1 and ch in OPCODES


def output_char(value: int) -> Optional[str]:
    """Map a register value to the character 'o' emits, or None.

    0-9 print as their decimal digit, 10 is a line break and 32-126 are
    the printable ASCII characters.
    """
    if 0 <= value <= 9:
        return str(value)
    if value == 10:
        return "\n"
    if 32 <= value <= 126:
        return chr(value)
    return None
