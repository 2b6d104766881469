#!/usr/bin/env python3
"""
Headless runner for the CPU interpreter
Loads a hex byte program (or the built-in demos), executes it under a cycle
budget and prints the halt reason and final CPU state.
"""

import argparse

from cpu import CPU, CycleBudgetExceeded, StackError, HALT_UNKNOWN_OPCODE, INS_LDA_IM, INS_TAX
from cpu_config import RESET_VECTOR, describe_config
from memory import Memory, MemoryAccessError
from utils import set_debug, parse_hex_bytes

# Built-in demo programs: (title, program bytes, cycle budget)
DEMOS = [
    ("Load Accumulator Immediate", [INS_LDA_IM, 0x42], 2),
    ("Register Transfer (TAX)", [INS_LDA_IM, 0x37, INS_TAX], 3),
]


def load_program(memory, origin, program):
    """Write program bytes into memory starting at origin"""
    for offset, value in enumerate(program):
        memory.write(origin + offset, value)


def format_state(cpu):
    state = cpu.get_state()
    flags = "".join(name if state[name] else "-" for name in ("N", "V", "B", "D", "I", "Z", "C"))
    return (
        f"PC: 0x{state['PC']:04X}  SP: 0x{state['SP']:02X}  "
        f"A: 0x{state['A']:02X}  X: 0x{state['X']:02X}  Y: 0x{state['Y']:02X}  "
        f"Flags: {flags}  Cycles remaining: {state['cycles']}"
    )


def run_program(program, cycles, origin=RESET_VECTOR):
    """Reset a fresh CPU, load program at origin and execute it.

    Returns (cpu, memory, halt_reason).
    """
    memory = Memory()
    cpu = CPU()
    cpu.reset(memory)
    load_program(memory, origin, program)
    cpu.PC = origin
    reason = cpu.execute(cycles, memory)
    return cpu, memory, reason


def run_demos():
    """Run the built-in demo programs"""
    print("Starting 6502 CPU demos...\n")
    status = 0
    for title, program, cycles in DEMOS:
        print(title)
        cpu, _, reason = run_program(program, cycles)
        print(f"Halted: {reason}")
        print(format_state(cpu))
        print()
        if reason == HALT_UNKNOWN_OPCODE:
            status = 1
    return status


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run a program on the 6502 CPU interpreter.")
    parser.add_argument(
        "program",
        nargs="?",
        default=None,
        help='Program as hex bytes, e.g. "A9 42 AA" (runs built-in demos when omitted)',
    )
    parser.add_argument("--cycles", type=int, default=None, help="Cycle budget (required with a program)")
    parser.add_argument(
        "--origin",
        type=lambda s: int(s, 0),
        default=RESET_VECTOR,
        help=f"Load address and starting PC (default 0x{RESET_VECTOR:04X})",
    )
    parser.add_argument("--trace", action="store_true", help="Print one line per executed instruction")
    parser.add_argument("--show-config", action="store_true", help="Print the CPU configuration first")
    args = parser.parse_args(argv)

    set_debug(args.trace)

    if args.show_config:
        describe_config()

    if args.program is None:
        return run_demos()

    if args.cycles is None:
        parser.error("--cycles is required when a program is given")
    if args.cycles < 0:
        parser.error("--cycles must be non-negative")

    try:
        program = parse_hex_bytes(args.program)
    except ValueError as e:
        parser.error(str(e))

    try:
        cpu, _, reason = run_program(program, args.cycles, args.origin)
    except (MemoryAccessError, StackError, CycleBudgetExceeded) as e:
        print(f"CPU fault: {e}")
        return 1

    print(f"Halted: {reason}")
    print(format_state(cpu))
    return 1 if reason == HALT_UNKNOWN_OPCODE else 0


if __name__ == "__main__":
    raise SystemExit(main())
