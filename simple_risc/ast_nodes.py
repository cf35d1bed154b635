"""
AST node definitions for the SimpleRISC assembler.

The parser turns each source line into at most one Statement; the
assembler consumes the Statement list. Operands keep just enough
information to be resolved: register index, immediate bit pattern,
label name, or the base + displacement pair of an imm[reg] address.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Union

from .isa import Modifier, Opcode


# ──────────────────────────────────────────────
# Operands
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class RegisterOperand:
    index: int                  # 0..15, sp already folded to 14

@dataclass(frozen=True)
class ImmediateOperand:
    value: int                  # 32-bit pattern, negatives already two's complement

@dataclass(frozen=True)
class LabelOperand:
    name: str

@dataclass(frozen=True)
class AddressOperand:
    """imm[reg]: effective address is base register + displacement."""
    displacement: int
    base: int


Operand = Union[RegisterOperand, ImmediateOperand, LabelOperand, AddressOperand]


# ──────────────────────────────────────────────
# Statement
# ──────────────────────────────────────────────

@dataclass
class Statement:
    """One source line: optional label, optional instruction."""
    line: int = 0
    text: str = ""
    label: Optional[str] = None
    opcode: Optional[Opcode] = None
    modifier: Modifier = Modifier.NONE
    operands: List[Operand] = field(default_factory=list)

    @property
    def has_instruction(self) -> bool:
        return self.opcode is not None
