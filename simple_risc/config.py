"""
SimpleRISC machine configuration.

Architectural constants are fixed; the emulator knobs (memory size, step
limit, unknown-syscall policy) are collected in EmulatorConfig so the CLI
and tests can override them per run.
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
#  ARCHITECTURE (fixed)
# =============================================================================
NUM_REGISTERS = 16
SP_REGISTER = 14          # r14, alias "sp"
LINK_REGISTER = 15        # r15, written by call, read by ret
WORD_SIZE = 4             # bytes per ld/st access

IMMEDIATE_MIN = -32768    # literal window is [-32768, 65535]
IMMEDIATE_MAX = 65535

COMMENT_CHAR = "@"


# =============================================================================
#  EMULATOR DEFAULTS
# =============================================================================
DEFAULT_MEMORY_SIZE = 16 * 1024   # 4096 words
DEFAULT_MAX_STEPS = None          # no step limit

UNKNOWN_SYSCALL_ERROR = "error"   # raise InvalidSyscall
UNKNOWN_SYSCALL_RETURN = "return" # r0 = -1, keep running
UNKNOWN_SYSCALL_POLICIES = (UNKNOWN_SYSCALL_ERROR, UNKNOWN_SYSCALL_RETURN)


@dataclass
class EmulatorConfig:
    memory_size: int = DEFAULT_MEMORY_SIZE
    max_steps: Optional[int] = DEFAULT_MAX_STEPS
    unknown_syscall: str = UNKNOWN_SYSCALL_ERROR

    def __post_init__(self):
        if self.memory_size <= 0 or self.memory_size % WORD_SIZE:
            raise ValueError(
                f"memory_size must be a positive multiple of {WORD_SIZE}, "
                f"got {self.memory_size}")
        if self.max_steps is not None and self.max_steps < 0:
            raise ValueError(f"max_steps must be >= 0, got {self.max_steps}")
        if self.unknown_syscall not in UNKNOWN_SYSCALL_POLICIES:
            raise ValueError(
                f"unknown_syscall must be one of {UNKNOWN_SYSCALL_POLICIES}, "
                f"got {self.unknown_syscall!r}")
