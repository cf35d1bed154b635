"""
SimpleRISC assembler and instruction-set simulator
==================================================
Assembles SimpleRISC assembly text into a resolved Program and executes it
on a 16-register virtual machine with byte-addressed memory and aligned
word access.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌───────────┐    ┌───────────┐
    │ .s text  │───>│  Lexer   │───>│  Parser  │───>│ Assembler │───>│ Emulator  │
    │          │    │ (tokens) │    │ (stmts)  │    │ (Program) │    │ (run/step)│
    └──────────┘    └──────────┘    └──────────┘    └───────────┘    └───────────┘
                                                          │
                                                          └──> encoding (.bin image)

    - lexer.py:      hand-written scanner, literals range-checked here
    - parser.py:     one statement per line, operand shapes from isa.py
    - ast_nodes.py:  dataclass operands and statements
    - assembler.py:  two-pass label resolver, listing output
    - encoding.py:   32-bit machine words and binary images
    - emulator/:     registers, memory, ALU, syscalls and the step loop
"""

from typing import BinaryIO, Optional, Tuple

__version__ = "0.1.0"

from .config import EmulatorConfig
from .errors import (
    AssemblyError, DivideByZero, EncodingError, ExecutionError, InvalidMemoryAddress,
    InvalidSyscall, MemoryAccessError, SimpleRiscError, UnalignedAccess,
)
from .lexer import Lexer, LexError, ImmediateOutOfRange, Token, TokenType
from .parser import Parser, ParseError
from .isa import Instruction, Modifier, Opcode, Program
from .assembler import Assembler, DuplicateLabel, UndefinedLabel, assemble
from .emulator import Emulator, MachineState, StopReason


def assemble_source(source: str, *, output: str = "program"):
    """Assemble source text to a Program, binary image, or listing.

    Args:
        source: SimpleRISC assembly text.
        output: 'program' (default), 'binary' or 'listing'.

    Returns:
        Program, raw little-endian bytes, or listing text depending on output.
    """
    asm = Assembler()
    program = asm.assemble(source)

    if output == 'program':
        return program
    elif output == 'binary':
        return program.to_bytes()
    elif output == 'listing':
        return asm.get_listing()
    raise ValueError(f"unknown output kind {output!r}")


def run_source(source: str, *, stdin: Optional[BinaryIO] = None,
               stdout: Optional[BinaryIO] = None,
               config: Optional[EmulatorConfig] = None,
               max_steps: Optional[int] = None) -> Tuple[Emulator, StopReason]:
    """Assemble and run source text; return the emulator and why it stopped."""
    emu = Emulator(assemble(source), config, stdin=stdin, stdout=stdout)
    reason = emu.run(max_steps)
    return emu, reason
