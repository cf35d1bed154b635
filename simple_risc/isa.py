"""
SimpleRISC instruction set definition.

One place that describes every mnemonic: its opcode number, the operand
shape the parser must accept, whether it takes a u/h modifier, and how a
resolved Instruction looks. The parser, assembler, encoder and emulator all
read these tables, so adding an instruction means touching this file and
the emulator dispatch table only.

Operand shapes:

    mov                                      reg, reg/imm
    add sub mul div mod and or lsl lsr asr   reg, reg, reg/imm
    cmp                                      reg, reg/imm      (no destination)
    not                                      reg, reg/imm
    ld                                       reg, imm[reg]
    st                                       reg, imm[reg]     (first operand is a source)
    b beq bgt call                           label
    ret nop sys                              (none)
"""

from __future__ import annotations
import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Sequence, Tuple

from .config import NUM_REGISTERS, SP_REGISTER

__all__ = [
    'Opcode', 'Modifier', 'REG', 'REG_OR_IMM', 'ADDRESS', 'LABEL',
    'OPERAND_SHAPES', 'MODIFIABLE', 'BRANCHES', 'REGISTERS',
    'split_mnemonic', 'is_reserved', 'Instruction', 'Program',
]


class Opcode(enum.IntEnum):
    """Opcode numbers double as the 5-bit machine encoding."""
    ADD = 0
    SUB = 1
    MUL = 2
    DIV = 3
    MOD = 4
    CMP = 5
    AND = 6
    OR = 7
    NOT = 8
    MOV = 9
    LSL = 10
    LSR = 11
    ASR = 12
    NOP = 13
    LD = 14
    ST = 15
    BEQ = 16
    BGT = 17
    B = 18
    CALL = 19
    RET = 20
    SYS = 21

    @property
    def mnemonic(self) -> str:
        return self.name.lower()


class Modifier(enum.IntEnum):
    """Immediate widening mode; the value is the 2-bit machine encoding."""
    NONE = 0    # sign-extend bit 15
    U = 1       # zero-extend
    H = 2       # load into bits 31..16

    @property
    def suffix(self) -> str:
        return "" if self is Modifier.NONE else self.name.lower()


# ──────────────────────────────────────────────
# Operand shapes
# ──────────────────────────────────────────────

REG = 'reg'
REG_OR_IMM = 'reg/imm'
ADDRESS = 'imm[reg]'
LABEL = 'label'

_ALU3 = (REG, REG, REG_OR_IMM)

OPERAND_SHAPES: Dict[Opcode, Tuple[str, ...]] = {
    Opcode.MOV:  (REG, REG_OR_IMM),
    Opcode.ADD:  _ALU3,
    Opcode.SUB:  _ALU3,
    Opcode.MUL:  _ALU3,
    Opcode.DIV:  _ALU3,
    Opcode.MOD:  _ALU3,
    Opcode.AND:  _ALU3,
    Opcode.OR:   _ALU3,
    Opcode.LSL:  _ALU3,
    Opcode.LSR:  _ALU3,
    Opcode.ASR:  _ALU3,
    Opcode.CMP:  (REG, REG_OR_IMM),
    Opcode.NOT:  (REG, REG_OR_IMM),
    Opcode.LD:   (REG, ADDRESS),
    Opcode.ST:   (REG, ADDRESS),
    Opcode.B:    (LABEL,),
    Opcode.BEQ:  (LABEL,),
    Opcode.BGT:  (LABEL,),
    Opcode.CALL: (LABEL,),
    Opcode.RET:  (),
    Opcode.NOP:  (),
    Opcode.SYS:  (),
}

MODIFIABLE = frozenset({
    Opcode.ADD, Opcode.SUB, Opcode.MUL, Opcode.DIV, Opcode.MOD,
    Opcode.CMP, Opcode.AND, Opcode.OR, Opcode.NOT, Opcode.MOV,
})

BRANCHES = frozenset({Opcode.B, Opcode.BEQ, Opcode.BGT, Opcode.CALL})

MNEMONICS: Dict[str, Opcode] = {op.mnemonic: op for op in Opcode}


# ──────────────────────────────────────────────
# Registers
# ──────────────────────────────────────────────

REGISTERS: Dict[str, int] = {f"r{i}": i for i in range(NUM_REGISTERS)}
REGISTERS["sp"] = SP_REGISTER

REGISTER_NAMES = {i: f"r{i}" for i in range(NUM_REGISTERS)}
REGISTER_NAMES[SP_REGISTER] = "sp"


def split_mnemonic(word: str) -> Optional[Tuple[Opcode, Modifier]]:
    """Split 'addu' into (ADD, U). Returns None if word is not a mnemonic.

    Modifier legality is not checked here; 'nopu' splits to (NOP, U) so the
    parser can report an illegal modifier instead of an unknown mnemonic.
    """
    if word in MNEMONICS:
        return MNEMONICS[word], Modifier.NONE
    if len(word) > 1 and word[-1] in "uh" and word[:-1] in MNEMONICS:
        return MNEMONICS[word[:-1]], Modifier[word[-1].upper()]
    return None


def is_reserved(word: str) -> bool:
    """Register names and mnemonics cannot be used as labels."""
    return word in REGISTERS or split_mnemonic(word) is not None


def _signed16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


# ──────────────────────────────────────────────
# Resolved instructions
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Instruction:
    """A fully resolved, executable instruction.

    Field usage per shape:
        reg, reg, reg/imm   rd, rs1, and rs2 or imm
        cmp                 rs1, and rs2 or imm
        mov / not           rd, and rs2 or imm
        ld / st             rd (data register), rs1 (base), imm (displacement)
        b / beq / bgt / call  imm (target instruction index)

    imm holds the 16-bit field exactly as encoded (negative literals are
    stored as their two's complement). Widening by modifier happens at
    execution. line and label are source metadata and do not take part in
    equality, so a Program decoded from an image equals the assembled one.
    """
    op: Opcode
    modifier: Modifier = Modifier.NONE
    rd: int = 0
    rs1: int = 0
    rs2: Optional[int] = None
    imm: Optional[int] = None
    line: int = field(default=0, compare=False)
    label: Optional[str] = field(default=None, compare=False)

    @property
    def mnemonic(self) -> str:
        return self.op.mnemonic + self.modifier.suffix

    @property
    def has_immediate(self) -> bool:
        return self.imm is not None

    def _src2(self) -> str:
        if self.imm is None:
            return REGISTER_NAMES[self.rs2]
        if self.modifier is Modifier.NONE:
            return str(_signed16(self.imm))
        return f"0x{self.imm & 0xFFFF:X}"

    def __str__(self) -> str:
        shape = OPERAND_SHAPES[self.op]
        rd = REGISTER_NAMES[self.rd]
        if self.op in BRANCHES:
            return f"{self.mnemonic} {self.label or self.imm}"
        if self.op in (Opcode.LD, Opcode.ST):
            return f"{self.mnemonic} {rd}, {_signed16(self.imm)}[{REGISTER_NAMES[self.rs1]}]"
        if self.op is Opcode.CMP:
            return f"{self.mnemonic} {REGISTER_NAMES[self.rs1]}, {self._src2()}"
        if len(shape) == 2:
            return f"{self.mnemonic} {rd}, {self._src2()}"
        if len(shape) == 3:
            return f"{self.mnemonic} {rd}, {REGISTER_NAMES[self.rs1]}, {self._src2()}"
        return self.mnemonic


class Program:
    """Immutable, ordered sequence of resolved instructions.

    Valid pc values are 0 .. len(program) - 1; any other pc means halt.
    """

    def __init__(self, instructions: Sequence[Instruction],
                 labels: Optional[Mapping[str, int]] = None):
        self._instructions: Tuple[Instruction, ...] = tuple(instructions)
        self._labels = MappingProxyType(dict(labels or {}))

    @property
    def instructions(self) -> Tuple[Instruction, ...]:
        return self._instructions

    @property
    def labels(self) -> Mapping[str, int]:
        return self._labels

    def __len__(self) -> int:
        return len(self._instructions)

    def __getitem__(self, index: int) -> Instruction:
        return self._instructions[index]

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._instructions)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Program):
            return NotImplemented
        return self._instructions == other._instructions

    def __repr__(self) -> str:
        return f"Program({len(self)} instructions, {len(self._labels)} labels)"

    def to_bytes(self) -> bytes:
        """Encode as a little-endian machine-word image."""
        from .encoding import encode_program
        return encode_program(self)

    @classmethod
    def from_bytes(cls, data: bytes) -> Program:
        from .encoding import decode_program
        return decode_program(data)
