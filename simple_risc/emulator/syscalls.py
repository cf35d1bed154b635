"""
SimpleRISC syscall dispatcher.

ABI: syscall number in r0, arguments in r1..r4, result written back to r0.
Every other register is preserved.

    0  getchar   read one byte; result 0..255, or -1 at end of input / on error
    1  putchar   write low byte of r1; result is that byte, or -1 on error

Unknown numbers either raise InvalidSyscall (policy "error", the default)
or return -1 (policy "return").
"""

import logging
import sys
from typing import BinaryIO, Callable, Dict, Optional, Sequence

from ..config import UNKNOWN_SYSCALL_ERROR, UNKNOWN_SYSCALL_POLICIES
from ..errors import InvalidSyscall

logger = logging.getLogger(__name__)

SYS_GETCHAR = 0
SYS_PUTCHAR = 1
SYS_FAIL = -1


class SyscallDispatcher:
    """Routes syscall numbers to handlers operating on external byte streams.

    stdin/stdout must be binary streams (read() returns bytes, write()
    takes bytes); a text stream such as io.StringIO is rejected with
    TypeError. They default to the process's binary standard streams,
    looked up at call time so a harness can swap them.
    """

    def __init__(self, stdin: Optional[BinaryIO] = None,
                 stdout: Optional[BinaryIO] = None,
                 unknown_policy: str = UNKNOWN_SYSCALL_ERROR):
        if unknown_policy not in UNKNOWN_SYSCALL_POLICIES:
            raise ValueError(f"unknown syscall policy {unknown_policy!r}")
        self._stdin = stdin
        self._stdout = stdout
        self.unknown_policy = unknown_policy
        self._table: Dict[int, Callable[[Sequence[int]], int]] = {
            SYS_GETCHAR: self._sys_getchar,
            SYS_PUTCHAR: self._sys_putchar,
        }

    @property
    def stdin(self) -> BinaryIO:
        return self._stdin if self._stdin is not None else sys.stdin.buffer

    @property
    def stdout(self) -> BinaryIO:
        return self._stdout if self._stdout is not None else sys.stdout.buffer

    def dispatch(self, number: int, args: Sequence[int]) -> int:
        """Run syscall `number` with up to four arguments; return the r0 result."""
        handler = self._table.get(number)
        if handler is None:
            if self.unknown_policy == UNKNOWN_SYSCALL_ERROR:
                raise InvalidSyscall(number)
            logger.warning("unknown syscall %d, returning %d", number, SYS_FAIL)
            return SYS_FAIL
        logger.debug("syscall %d args=%s", number, list(args))
        return handler(args)

    def _sys_getchar(self, args: Sequence[int]) -> int:
        try:
            data = self.stdin.read(1)
        except OSError as e:
            logger.debug("getchar failed: %s", e)
            return SYS_FAIL
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError(
                f"getchar needs a binary stdin stream, read() returned {type(data).__name__}")
        if not data:
            return SYS_FAIL
        return data[0]

    def _sys_putchar(self, args: Sequence[int]) -> int:
        byte = args[0] & 0xFF
        try:
            self.stdout.write(bytes([byte]))
            self.stdout.flush()
        except OSError as e:
            logger.debug("putchar failed: %s", e)
            return SYS_FAIL
        return byte
