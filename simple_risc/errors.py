"""
Error taxonomy for the SimpleRISC toolchain.

Assembly-side errors (lexing, parsing, label resolution) derive from
AssemblyError and always carry the offending source line. Runtime errors
derive from ExecutionError and carry the pc of the faulting instruction.

    SimpleRiscError
    ├── AssemblyError          (lexer.py / parser.py / assembler.py subclass this)
    ├── EncodingError          (bad machine word or binary image)
    └── ExecutionError
        ├── MemoryAccessError
        │   ├── UnalignedAccess
        │   └── InvalidMemoryAddress
        ├── DivideByZero
        └── InvalidSyscall
"""

from __future__ import annotations


class SimpleRiscError(Exception):
    """Base class for every error raised by the toolchain."""


class AssemblyError(SimpleRiscError):
    """Raised when source text cannot be turned into a Program."""
    def __init__(self, message: str, line: int = 0, line_text: str = ""):
        self.reason = message
        self.line = line
        self.line_text = line_text
        super().__init__(f"Line {line}: {message}" if line else message)


class EncodingError(SimpleRiscError):
    """Raised on a malformed machine word or binary image."""


class ExecutionError(SimpleRiscError):
    """Raised when the execution engine hits a fatal runtime fault."""
    def __init__(self, message: str, pc: int = 0, line: int = 0):
        self.reason = message
        self.pc = pc
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        where = f"pc={self.pc}"
        if self.line:
            where += f" (line {self.line})"
        return f"{where}: {self.reason}"

    def locate(self, pc: int, line: int = 0) -> ExecutionError:
        """Attach the faulting instruction's position and return self."""
        self.pc = pc
        self.line = line
        self.args = (self._format(),)
        return self


class MemoryAccessError(ExecutionError):
    def __init__(self, message: str, address: int, pc: int = 0, line: int = 0):
        self.address = address
        super().__init__(message, pc, line)


class UnalignedAccess(MemoryAccessError):
    def __init__(self, address: int, pc: int = 0, line: int = 0):
        super().__init__(f"unaligned memory access at address {address}",
                         address, pc, line)


class InvalidMemoryAddress(MemoryAccessError):
    def __init__(self, address: int, pc: int = 0, line: int = 0):
        super().__init__(f"memory address {address} out of range",
                         address, pc, line)


class DivideByZero(ExecutionError):
    def __init__(self, pc: int = 0, line: int = 0):
        super().__init__("division by zero", pc, line)


class InvalidSyscall(ExecutionError):
    def __init__(self, number: int, pc: int = 0, line: int = 0):
        self.number = number
        super().__init__(f"unknown syscall number {number}", pc, line)
