"""
Two-pass SimpleRISC assembler.

Input:  assembly source text
Output: a Program (immutable, fully resolved Instruction sequence)

How the two-pass algorithm works:
  Pass 1: Walk the parsed statements, give every instruction the next
          sequential index, and bind each label to the index of the next
          instruction at or after it. A label with no instruction after it
          binds to len(program), the halt index.
  Pass 2: With the label table complete, turn every statement into an
          Instruction: registers become indices, immediates keep their
          16-bit encoding plus the modifier, and label operands become
          ordinary immediates holding the target index.

Range checks on literals happen in the lexer and operand shape checks in
the parser, so pass 2 only has label resolution left that can fail.
Assembly is all-or-nothing: the first error raises and no Program is
produced.
"""

from __future__ import annotations
import logging
from typing import Dict, List, Optional

from .ast_nodes import ImmediateOperand, Statement
from .encoding import encode_instruction
from .errors import AssemblyError
from .isa import BRANCHES, OPERAND_SHAPES, Instruction, Opcode, Program
from .lexer import Lexer
from .parser import Parser

__all__ = ['Assembler', 'AssemblyError', 'DuplicateLabel', 'UndefinedLabel', 'assemble']

logger = logging.getLogger(__name__)

_IMM_FIELD = 0xFFFF     # immediates keep only their 16-bit encoding


class DuplicateLabel(AssemblyError):
    def __init__(self, name: str, line: int = 0, line_text: str = ""):
        self.name = name
        super().__init__(f"Duplicate label '{name}'", line, line_text)


class UndefinedLabel(AssemblyError):
    def __init__(self, name: str, line: int = 0, line_text: str = ""):
        self.name = name
        super().__init__(f"Undefined label '{name}'", line, line_text)


class Assembler:
    """Two-pass SimpleRISC assembler.

    Usage:
        asm = Assembler()
        program = asm.assemble(source_text)
        print(asm.get_listing())
    """

    def __init__(self):
        self.labels: Dict[str, int] = {}          # label name -> instruction index
        self.program: Optional[Program] = None    # last successful result
        self._statements: List[Statement] = []

    def assemble(self, source: str) -> Program:
        """Lex, parse and resolve source text into a Program."""
        self.program = None
        tokens = Lexer(source).tokenize()
        statements = Parser(tokens, source).parse()
        return self.assemble_statements(statements)

    def assemble_statements(self, statements: List[Statement]) -> Program:
        """Resolve already-parsed statements into a Program."""
        self.program = None
        self.labels = {}
        self._statements = list(statements)

        self._pass1()
        logger.debug("pass 1: %d statements, %d labels",
                     len(self._statements), len(self.labels))

        instructions = self._pass2()
        program = Program(instructions, self.labels)
        self.program = program
        logger.info("assembled %d instructions", len(program))
        return program

    def _pass1(self):
        """Pass 1: assign instruction indices and bind labels."""
        index = 0
        for stmt in self._statements:
            if stmt.label is not None:
                if stmt.label in self.labels:
                    raise DuplicateLabel(stmt.label, stmt.line, stmt.text)
                self.labels[stmt.label] = index
            if stmt.has_instruction:
                index += 1

    def _pass2(self) -> List[Instruction]:
        """Pass 2: resolve operands of every instruction-bearing statement."""
        return [self._resolve(stmt) for stmt in self._statements if stmt.has_instruction]

    def _resolve(self, stmt: Statement) -> Instruction:
        op = stmt.opcode
        ops = stmt.operands

        if op in BRANCHES:
            name = ops[0].name
            if name not in self.labels:
                raise UndefinedLabel(name, stmt.line, stmt.text)
            return Instruction(op, imm=self.labels[name], line=stmt.line, label=name)

        if not OPERAND_SHAPES[op]:
            return Instruction(op, line=stmt.line)

        if op in (Opcode.LD, Opcode.ST):
            data, addr = ops
            return Instruction(op, rd=data.index, rs1=addr.base,
                               imm=addr.displacement & _IMM_FIELD, line=stmt.line)

        *regs, src2 = ops
        if op is Opcode.CMP:
            rd, rs1 = 0, regs[0].index
        elif len(regs) == 1:
            rd, rs1 = regs[0].index, 0
        else:
            rd, rs1 = regs[0].index, regs[1].index

        if isinstance(src2, ImmediateOperand):
            return Instruction(op, modifier=stmt.modifier, rd=rd, rs1=rs1,
                               imm=src2.value & _IMM_FIELD, line=stmt.line)
        return Instruction(op, rd=rd, rs1=rs1, rs2=src2.index, line=stmt.line)

    def get_listing(self) -> str:
        """Return a human-readable listing: index, machine word, and source."""
        if self.program is None:
            return ""

        lines = [f"{'INDEX':>5}  {'WORD':<8}  SOURCE", "-" * 60]
        index = 0
        for stmt in self._statements:
            if not stmt.has_instruction:
                lines.append(f"{'':>5}  {'':<8}  {stmt.text}")
                continue
            word = encode_instruction(self.program[index], index)
            lines.append(f"{index:>5}  {word:08X}  {stmt.text}")
            index += 1
        return "\n".join(lines)


# ──────────────────────────────────────────────
# Convenience functions
# ──────────────────────────────────────────────

def assemble(source: str) -> Program:
    """Assemble source text and return the resolved Program."""
    return Assembler().assemble(source)
