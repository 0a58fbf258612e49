"""
Lexer / Program buffer for the naz interpreter.

A naz program is a run of two-character instructions per line:

    9a9m9a9a5a1o
    1a1o

tokenize() slices each line into pairs and emits a NEWLINE token after
every line that ends in a line break. It never rejects anything; shape
problems are found by validate() when the stepper reaches the token, so
a malformed token after a halt is never reported.
"""

from __future__ import annotations
import enum
import re
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from .diagnostics import ErrorKind, NazError
from .opcodes import OPCODES, Opcode, is_digit, is_opcode


LINE_BREAK = "\n"

_LINE_ENDINGS = re.compile(r"\r\n?")


# ──────────────────────────────────────────────
# Tokens
# ──────────────────────────────────────────────

class TokenKind(enum.Enum):
    INSTRUCTION = "INSTRUCTION"
    NEWLINE = "NEWLINE"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    line: int
    col: int

    @property
    def is_newline(self) -> bool:
        return self.kind is TokenKind.NEWLINE

    def __repr__(self):
        return f"Token({self.kind.name}, {self.text!r}, L{self.line}:{self.col})"


@dataclass(frozen=True)
class Instruction:
    operand: int
    opcode: Opcode

    @property
    def text(self) -> str:
        return f"{self.operand}{self.opcode.letter}"


# ──────────────────────────────────────────────
# Validation
# ──────────────────────────────────────────────

def validate(text: str) -> None:
    """Raise NazError if text is not a well-formed digit+opcode pair.

    The checks run in a fixed order so that each malformed shape maps to
    exactly one diagnosis.
    """
    first, second = text[:1], text[1:2]

    if not is_digit(first):
        if is_opcode(first):
            # opcode where the operand should be
            raise NazError(ErrorKind.INVALID_INSTRUCTION)
        raise NazError(ErrorKind.MISSING_NUMBER_LITERAL)

    if second in ("", LINE_BREAK):
        raise NazError(ErrorKind.MISSING_INSTRUCTION)

    if is_digit(second):
        raise NazError(ErrorKind.CHAINED_NUMBER_LITERALS)

    if not is_opcode(second):
        raise NazError(ErrorKind.INVALID_INSTRUCTION)


def decode(text: str) -> Instruction:
    """Validate and split a token into (operand, opcode)."""
    validate(text)
    return Instruction(int(text[0]), OPCODES[text[1]])


# ──────────────────────────────────────────────
# Tokenizer
# ──────────────────────────────────────────────

def _pairs(line: str) -> Iterator[Tuple[int, str]]:
    for i in range(0, len(line), 2):
        yield i + 1, line[i:i + 2]


def tokenize(source: str) -> List[Token]:
    """Split source into instruction and NEWLINE tokens."""
    source = _LINE_ENDINGS.sub(LINE_BREAK, source)
    tokens: List[Token] = []
    lines = source.split(LINE_BREAK)

    for index, line in enumerate(lines):
        line_no = index + 1
        terminated = index < len(lines) - 1
        for col, chunk in _pairs(line):
            if len(chunk) == 1 and terminated:
                # a dangling character swallows the line break
                chunk += LINE_BREAK
            tokens.append(Token(TokenKind.INSTRUCTION, chunk, line_no, col))
        if terminated:
            tokens.append(Token(TokenKind.NEWLINE, LINE_BREAK, line_no, len(line) + 1))

    return tokens


class Program:
    """Indexed token buffer for one source file."""

    def __init__(self, source: str, filename: str = "<source>"):
        self.source = source
        self.filename = filename
        self.tokens = tokenize(source)

    def __len__(self) -> int:
        return len(self.tokens)

    def __getitem__(self, index: int) -> Token:
        return self.tokens[index]

    def __iter__(self) -> Iterator[Token]:
        return iter(self.tokens)

    @property
    def line_count(self) -> int:
        return sum(1 for tok in self.tokens if tok.is_newline) + 1
