#!/usr/bin/env python3
"""
srisc: SimpleRISC assembler and simulator CLI

Usage:
    python srisc.py <input.s|input.bin> [-o output] [--format run|bin|listing|tokens]
                    [--memory-size N] [--max-steps N] [--unknown-syscall error|return]
                    [--regs] [--trace] [--verbose]

Input ending in .bin is a machine-word image and is decoded; anything else
is assembled from text. Output format is auto-detected from the -o extension
when --format is not given:
    .bin       → binary image
    .lst       → assembly listing with indices and machine words
    otherwise  → run the program (getchar/putchar use stdin/stdout)

Examples:
    python srisc.py hello.s
    python srisc.py factorial.s --regs
    python srisc.py factorial.s -o factorial.bin
    python srisc.py factorial.bin --max-steps 10000
    python srisc.py factorial.s --format listing
"""

import argparse
import logging
import os
import sys

from simple_risc import __version__
from simple_risc.assembler import Assembler
from simple_risc.config import (
    DEFAULT_MEMORY_SIZE, UNKNOWN_SYSCALL_ERROR, UNKNOWN_SYSCALL_POLICIES, EmulatorConfig,
)
from simple_risc.emulator import Emulator, StopReason
from simple_risc.errors import AssemblyError, EncodingError, ExecutionError
from simple_risc.isa import Program
from simple_risc.lexer import Lexer

logger = logging.getLogger("srisc")

FORMATS = ["run", "bin", "listing", "tokens"]


def parse_int_arg(value: str) -> int:
    """Parse an integer argument that may be hex (0x...) or decimal."""
    return int(value.strip(), 0)


def _detect_format(args) -> str:
    if args.format:
        return args.format
    if args.output:
        ext = os.path.splitext(args.output)[1].lower()
        if ext == '.bin':
            return 'bin'
        if ext == '.lst':
            return 'listing'
    return 'run'


def _write_output(path, result):
    if path is None:
        if isinstance(result, bytes):
            sys.stdout.buffer.write(result)
        else:
            print(result)
        return
    if isinstance(result, bytes):
        with open(path, "wb") as f:
            f.write(result)
    else:
        with open(path, "w", encoding="utf-8") as f:
            f.write(result)
            if not result.endswith('\n'):
                f.write("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="srisc",
        description="SimpleRISC assembler and instruction-set simulator",
    )
    parser.add_argument("input", help="Assembly source (.s) or binary image (.bin)")
    parser.add_argument("-o", "--output", help="Output file (default: stdout)")
    parser.add_argument("--format", choices=FORMATS, default=None,
                        help="Output format (auto-detected from -o extension if not set)")
    parser.add_argument("--memory-size", type=parse_int_arg, default=DEFAULT_MEMORY_SIZE,
                        help=f"Data memory size in bytes (default: {DEFAULT_MEMORY_SIZE})")
    parser.add_argument("--max-steps", type=parse_int_arg, default=None,
                        help="Stop after this many instructions (default: no limit)")
    parser.add_argument("--unknown-syscall", choices=UNKNOWN_SYSCALL_POLICIES,
                        default=UNKNOWN_SYSCALL_ERROR,
                        help="Unknown syscall numbers raise an error or return -1")
    parser.add_argument("--regs", action="store_true",
                        help="Print the register dump after the run")
    parser.add_argument("--trace", action="store_true",
                        help="Print an instruction trace to stderr after the run")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log assembler and emulator details to stderr")
    parser.add_argument("--version", action="version",
                        version=f"srisc {__version__}")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(name)s] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    is_image = args.input.lower().endswith(".bin")

    # Read input
    try:
        if is_image:
            with open(args.input, "rb") as f:
                data = f.read()
        else:
            with open(args.input, "r", encoding="utf-8") as f:
                source = f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"Error reading {args.input}: {e}", file=sys.stderr)
        sys.exit(1)

    out_format = _detect_format(args)
    logger.debug("input %s, format %s", args.input, out_format)

    emu = None
    try:
        # Token dump mode
        if out_format == 'tokens':
            if is_image:
                parser.error("--format tokens needs an assembly source input")
            _write_output(args.output, "\n".join(repr(tok) for tok in Lexer(source)))
            return 0

        asm = Assembler()
        if is_image:
            program = Program.from_bytes(data)
        else:
            program = asm.assemble(source)

        if out_format == 'bin':
            _write_output(args.output, program.to_bytes())
            logger.debug("wrote %d instructions (%d bytes)", len(program), 4 * len(program))
            return 0

        if out_format == 'listing':
            if is_image:
                parser.error("--format listing needs an assembly source input")
            _write_output(args.output, asm.get_listing())
            return 0

        config = EmulatorConfig(memory_size=args.memory_size, max_steps=args.max_steps,
                                unknown_syscall=args.unknown_syscall)
        emu = Emulator(program, config)
        if args.trace:
            emu.enable_trace()
        reason = emu.run()

        sys.stdout.flush()
        if args.trace:
            print("\n".join(emu.get_trace()), file=sys.stderr)
        if reason is StopReason.TIMEOUT:
            print(f"Stopped: step limit of {config.max_steps} reached", file=sys.stderr)
        if args.regs:
            print(emu.regs.dump(), file=sys.stderr)
        return 0

    except AssemblyError as e:
        print(f"Assembly error: {e}", file=sys.stderr)
        if e.line_text:
            print(f"    {e.line_text.strip()}", file=sys.stderr)
        sys.exit(1)
    except EncodingError as e:
        print(f"Encoding error: {e}", file=sys.stderr)
        sys.exit(1)
    except ExecutionError as e:
        sys.stdout.flush()
        print(f"Runtime error: {e}", file=sys.stderr)
        print(emu.regs.dump(), file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Internal error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(2)


if __name__ == "__main__":
    sys.exit(main())
