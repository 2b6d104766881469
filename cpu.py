"""
6502 CPU Interpreter
Cycle-counted fetch/decode/execute loop over a borrowed Memory.
Implements the load, transfer, carry and subroutine instructions listed in
INSTRUCTIONS; every other opcode halts execution.
"""

from cpu_config import CPU_OPTIONS, RESET_VECTOR, STACK_PAGE, STACK_RESET
from memory import MemoryAccessError
from utils import debug_print

# Opcodes
INS_LDA_IM = 0xA9
INS_LDA_ZP = 0xA5
INS_LDA_ZPX = 0xB5
INS_LDX_IM = 0xA2
INS_LDY_IM = 0xA0
INS_JSR = 0x20
INS_RTS = 0x60
INS_CLC = 0x18
INS_SEC = 0x38
INS_TAX = 0xAA
INS_TAY = 0xA8
INS_TXA = 0x8A
INS_TYA = 0x98

# Instruction catalog: opcode -> (mnemonic, addressing mode, length, cycles)
# Cycle counts include the opcode fetch.
INSTRUCTIONS = {
    # Load
    INS_LDA_IM: ("LDA", "immediate", 2, 2),
    INS_LDA_ZP: ("LDA", "zero_page", 2, 3),
    INS_LDA_ZPX: ("LDA", "zero_page_x", 2, 4),
    INS_LDX_IM: ("LDX", "immediate", 2, 2),
    INS_LDY_IM: ("LDY", "immediate", 2, 2),
    # Subroutine
    INS_JSR: ("JSR", "absolute", 3, 6),
    INS_RTS: ("RTS", "implied", 1, 6),
    # Flags
    INS_CLC: ("CLC", "implied", 1, 1),
    INS_SEC: ("SEC", "implied", 1, 1),
    # Transfer
    INS_TAX: ("TAX", "implied", 1, 1),
    INS_TAY: ("TAY", "implied", 1, 1),
    INS_TXA: ("TXA", "implied", 1, 1),
    INS_TYA: ("TYA", "implied", 1, 1),
}

# Halt reasons returned by CPU.execute
HALT_BUDGET_EXHAUSTED = "budget_exhausted"
HALT_INSUFFICIENT_CYCLES = "insufficient_cycles"
HALT_UNKNOWN_OPCODE = "unknown_opcode"
HALT_FAULT = "fault"  # set before a StackError or MemoryAccessError propagates


class CycleBudgetExceeded(Exception):
    """Raised when a charge would take the cycle budget below zero"""

    def __init__(self, requested, remaining):
        self.requested = requested
        self.remaining = remaining
        super().__init__(f"Cannot charge {requested} cycles, {remaining} remaining")


class StackError(Exception):
    """Stack pointer would leave the stack page"""


class StackOverflowError(StackError):
    pass


class StackUnderflowError(StackError):
    pass


class CycleBudget:
    """Cycles available to one execute() call.

    Every primitive charges the budget it is handed; charging more than
    what remains raises CycleBudgetExceeded instead of wrapping.
    """

    def __init__(self, cycles):
        if cycles < 0:
            raise ValueError(f"Cycle budget must be non-negative, got {cycles}")
        self.budget = cycles
        self.remaining = cycles

    @property
    def consumed(self):
        return self.budget - self.remaining

    @property
    def exhausted(self):
        return self.remaining == 0

    def can_afford(self, cycles):
        return cycles <= self.remaining

    def charge(self, cycles=1):
        if cycles > self.remaining:
            raise CycleBudgetExceeded(cycles, self.remaining)
        self.remaining -= cycles

    def __repr__(self):
        return f"CycleBudget(remaining={self.remaining}, consumed={self.consumed})"


class CPU:
    def __init__(self):
        # Registers
        self.A = 0  # Accumulator
        self.X = 0  # X Register
        self.Y = 0  # Y Register
        self.PC = RESET_VECTOR  # Program Counter
        self.SP = STACK_RESET  # Stack Pointer (offset into the stack page)

        # Status flags
        self.C = 0  # Carry flag
        self.Z = 0  # Zero flag
        self.I = 0  # Interrupt disable
        self.D = 0  # Decimal mode
        self.B = 0  # Break flag
        self.V = 0  # Overflow flag
        self.N = 0  # Negative flag

        # Observable execution state
        self.cycles = None  # CycleBudget of the most recent execute() call
        self.last_opcode = None
        self.halt_reason = None

        self.instructions = INSTRUCTIONS
        self.instruction_dispatch = {
            opcode: getattr(self, f"execute_{mnemonic.lower()}")
            for opcode, (mnemonic, _, _, _) in self.instructions.items()
        }

    def reset(self, memory):
        """Reset registers and flags and zero the bound memory.

        PC is set to the reset vector address itself; callers wanting the
        word stored there should use read_reset_vector() and assign PC.
        """
        self.A = 0
        self.X = 0
        self.Y = 0
        self.PC = RESET_VECTOR
        self.SP = STACK_RESET
        self.C = 0
        self.Z = 0
        self.I = 0
        self.D = 0
        self.B = 0
        self.V = 0
        self.N = 0

        self.cycles = None
        self.last_opcode = None
        self.halt_reason = None

        memory.initialize()

    def read_reset_vector(self, memory):
        """Return the little-endian word stored at the reset vector"""
        low = memory.read(RESET_VECTOR)
        high = memory.read(RESET_VECTOR + 1)
        return (high << 8) | low

    # Fetch primitives
    def fetch_byte(self, cycles, memory):
        cycles.charge(1)
        data = memory.read(self.PC)
        self.PC = (self.PC + 1) & 0xFFFF
        return data

    def fetch_word(self, cycles, memory):
        cycles.charge(2)
        low = memory.read(self.PC)
        self.PC = (self.PC + 1) & 0xFFFF
        high = memory.read(self.PC)
        self.PC = (self.PC + 1) & 0xFFFF
        return (high << 8) | low

    def read_byte(self, cycles, addr, memory):
        cycles.charge(1)
        return memory.read(addr)

    # Stack primitives
    def push_word(self, cycles, memory, value):
        """Push high byte at SP, low byte at SP - 1"""
        if self.SP < 2:
            raise StackOverflowError(f"Stack overflow: no room for a word at SP=0x{self.SP:02X}")
        cycles.charge(2)
        memory.write(STACK_PAGE + self.SP, (value >> 8) & 0xFF)
        memory.write(STACK_PAGE + self.SP - 1, value & 0xFF)
        self.SP -= 2

    def pop_word(self, cycles, memory):
        """Pop low byte from SP + 1, high byte from SP + 2"""
        if self.SP > 0xFD:
            raise StackUnderflowError(f"Stack underflow: no word above SP=0x{self.SP:02X}")
        cycles.charge(2)
        low = memory.read(STACK_PAGE + self.SP + 1)
        high = memory.read(STACK_PAGE + self.SP + 2)
        self.SP += 2
        return (high << 8) | low

    def set_zero_negative(self, value):
        """Set zero and negative flags based on value"""
        self.Z = 1 if value == 0 else 0
        self.N = 1 if value & 0x80 else 0

    def get_state(self):
        """Snapshot of registers, flags and execution status"""
        return {
            "A": self.A,
            "X": self.X,
            "Y": self.Y,
            "PC": self.PC,
            "SP": self.SP,
            "C": self.C,
            "Z": self.Z,
            "I": self.I,
            "D": self.D,
            "B": self.B,
            "V": self.V,
            "N": self.N,
            "cycles": self.cycles.remaining if self.cycles is not None else None,
            "last_opcode": self.last_opcode,
            "halt_reason": self.halt_reason,
        }

    def execute(self, cycles, memory):
        """Run instructions until the cycle budget is spent.

        Args:
            cycles: an int or a CycleBudget; the budget is shared with every
                primitive and is left at whatever remains on return.
            memory: the Memory to fetch from and write to.

        Returns:
            One of HALT_BUDGET_EXHAUSTED, HALT_INSUFFICIENT_CYCLES or
            HALT_UNKNOWN_OPCODE. A stack or memory fault sets halt_reason to
            HALT_FAULT and re-raises.
        """
        budget = cycles if isinstance(cycles, CycleBudget) else CycleBudget(cycles)
        self.cycles = budget
        self.halt_reason = None
        trace = CPU_OPTIONS["trace_instructions"]

        while not budget.exhausted:
            opcode_pc = self.PC
            opcode = self.fetch_byte(budget, memory)
            self.last_opcode = opcode

            if trace:
                debug_print(
                    f"Executing instruction 0x{opcode:02X} at PC: 0x{opcode_pc:04X} (Cycles remaining: {budget.remaining})"
                )

            if opcode not in self.instructions:
                debug_print(f"Instruction not handled: {opcode:02X} at PC={opcode_pc:04X}")
                return self._halt(HALT_UNKNOWN_OPCODE)

            instruction, addressing_mode, _, total_cycles = self.instructions[opcode]

            # The opcode fetch is already paid for and is not rolled back
            if not budget.can_afford(total_cycles - 1):
                debug_print(
                    f"{instruction} needs {total_cycles - 1} more cycles, {budget.remaining} remaining"
                )
                return self._halt(HALT_INSUFFICIENT_CYCLES)

            try:
                operand = self._fetch_operand(addressing_mode, budget, memory)
                self.instruction_dispatch[opcode](operand, budget, memory)
            except (StackError, MemoryAccessError) as e:
                # Effects applied before the fault are kept
                debug_print(f"{instruction} faulted: {e}")
                self._halt(HALT_FAULT)
                raise

        return self._halt(HALT_BUDGET_EXHAUSTED)

    def run_instruction(self, memory):
        """Execute the single instruction at PC with exactly its own cost.

        Returns the number of cycles consumed (1 for an unknown opcode).
        """
        opcode = memory.read(self.PC)
        entry = self.instructions.get(opcode)
        budget = CycleBudget(entry[3] if entry else 1)
        self.execute(budget, memory)
        return budget.consumed

    def _halt(self, reason):
        self.halt_reason = reason
        debug_print(
            f"CPU halted: {reason} at PC=0x{self.PC:04X} (Cycles remaining: {self.cycles.remaining})"
        )
        return reason

    def _trace(self, text):
        if CPU_OPTIONS["trace_instructions"]:
            debug_print(text)

    def _fetch_operand(self, addressing_mode, cycles, memory):
        """Resolve the operand for an addressing mode, charging its cycles"""
        if addressing_mode == "implied":
            return None
        elif addressing_mode == "immediate":
            return self.fetch_byte(cycles, memory)
        elif addressing_mode == "zero_page":
            addr = self.fetch_byte(cycles, memory)
            return self.read_byte(cycles, addr, memory)
        elif addressing_mode == "zero_page_x":
            # Index add costs a cycle and wraps within the zero page
            addr = (self.fetch_byte(cycles, memory) + self.X) & 0xFF
            cycles.charge(1)
            return self.read_byte(cycles, addr, memory)
        elif addressing_mode == "absolute":
            return self.fetch_word(cycles, memory)
        raise ValueError(f"Unsupported addressing mode: {addressing_mode}")

    # Instruction implementations
    def execute_lda(self, operand, cycles, memory):
        self.A = operand
        self.set_zero_negative(self.A)
        self._trace(f"LDA: Loaded 0x{self.A:02X} into A")

    def execute_ldx(self, operand, cycles, memory):
        self.X = operand
        self.set_zero_negative(self.X)
        self._trace(f"LDX: Loaded 0x{self.X:02X} into X")

    def execute_ldy(self, operand, cycles, memory):
        self.Y = operand
        self.set_zero_negative(self.Y)
        self._trace(f"LDY: Loaded 0x{self.Y:02X} into Y")

    def execute_jsr(self, operand, cycles, memory):
        # Return address is the last byte of the JSR itself
        self.push_word(cycles, memory, (self.PC - 1) & 0xFFFF)
        self.PC = operand
        cycles.charge(1)

    def execute_rts(self, operand, cycles, memory):
        return_addr = self.pop_word(cycles, memory)
        self.PC = (return_addr + 1) & 0xFFFF
        cycles.charge(3)

    def execute_clc(self, operand, cycles, memory):
        self.C = 0

    def execute_sec(self, operand, cycles, memory):
        self.C = 1

    def execute_tax(self, operand, cycles, memory):
        self.X = self.A
        self.set_zero_negative(self.X)
        self._trace(f"TAX: Transferred 0x{self.X:02X} from A to X")

    def execute_tay(self, operand, cycles, memory):
        self.Y = self.A
        self.set_zero_negative(self.Y)
        self._trace(f"TAY: Transferred 0x{self.Y:02X} from A to Y")

    def execute_txa(self, operand, cycles, memory):
        self.A = self.X
        self.set_zero_negative(self.A)
        self._trace(f"TXA: Transferred 0x{self.A:02X} from X to A")

    def execute_tya(self, operand, cycles, memory):
        self.A = self.Y
        self.set_zero_negative(self.A)
        self._trace(f"TYA: Transferred 0x{self.A:02X} from Y to A")
