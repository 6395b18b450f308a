"""CHIP-8 error taxonomy.

Faults raised while executing instructions are recorded inside the (jittable)
emulator state as a ``Fault`` code. ``raise_for_fault`` turns that code into
one of the exceptions below on the host side.
"""

import enum
from typing import Optional

from chipax.constants import ADDRESS_MASK


class Fault(enum.IntEnum):
    """Fault codes stored in ``EmulatorState.fault``."""
    NONE = 0
    UNKNOWN_OPCODE = 1
    MEMORY_BOUNDS = 2
    STACK_OVERFLOW = 3
    STACK_UNDERFLOW = 4


class Chip8Error(Exception):
    """Base class for every error raised by chipax."""


class ExecutionFault(Chip8Error):
    """Fatal error raised while executing an instruction.

    Attributes:
        pc: Address of the faulting instruction
        instruction: Raw 16-bit instruction word, or None if it could not be fetched
    """

    reason = "execution fault"

    def __init__(self, pc: int, instruction: Optional[int] = None):
        self.pc = pc
        self.instruction = instruction
        if instruction is None:
            message = f"{self.reason} at PC=0x{pc:03X}"
        else:
            message = f"{self.reason} at PC=0x{pc:03X} (instruction 0x{instruction:04X})"
        super().__init__(message)


class DecodeError(ExecutionFault):
    reason = "unknown opcode"


class BoundsError(ExecutionFault):
    reason = "memory access out of range"


class ControlError(ExecutionFault):
    reason = "control flow error"


class StackOverflowError(ControlError):
    reason = "stack overflow"


class StackUnderflowError(ControlError):
    reason = "stack underflow"


class FormatError(Chip8Error):
    """Malformed ROM or snapshot buffer."""


class RomTooLargeError(FormatError):
    pass


class SnapshotFormatError(FormatError):
    pass


FAULT_EXCEPTIONS = {
    Fault.UNKNOWN_OPCODE: DecodeError,
    Fault.MEMORY_BOUNDS: BoundsError,
    Fault.STACK_OVERFLOW: StackOverflowError,
    Fault.STACK_UNDERFLOW: StackUnderflowError,
}


def fault_exception(state) -> Optional[ExecutionFault]:
    """Build the exception matching ``state.fault``, or None if the state is running."""
    fault = Fault(int(state.fault))
    if fault == Fault.NONE:
        return None

    pc = int(state.pc)
    instruction = None
    if pc + 1 <= ADDRESS_MASK:
        instruction = (int(state.memory[pc]) << 8) | int(state.memory[pc + 1])
    return FAULT_EXCEPTIONS[fault](pc, instruction)


def raise_for_fault(state) -> None:
    """Raise the exception matching ``state.fault``, if any."""
    error = fault_exception(state)
    if error is not None:
        raise error
