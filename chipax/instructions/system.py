"""CHIP-8 system instructions (0x0xxx) and the unknown-opcode handler."""

import jax.numpy as jnp
from chipax.state import EmulatorState, flag_fault
from chipax.decode import DecodedInstruction
from chipax.errors import Fault
from chipax.stack import pop


def execute_unknown(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Any word that matches no instruction pattern."""
    return flag_fault(state, True, int(Fault.UNKNOWN_OPCODE))


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=jnp.zeros_like(state.display))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    stack, address, fault = pop(state.stack)
    state = state.replace(stack=stack, pc=address)
    return flag_fault(state, fault != int(Fault.NONE), fault)
