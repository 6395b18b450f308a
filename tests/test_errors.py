"""Tests for fault codes and their host exceptions."""

import jax.numpy as jnp
import pytest
from chipax import (
    Fault, raise_for_fault, ExecutionFault, DecodeError, BoundsError, ControlError,
    StackOverflowError, StackUnderflowError, Chip8Error, FormatError,
    RomTooLargeError, SnapshotFormatError,
)
from chipax.state import flag_fault
from conftest import load_program


def with_fault(state, fault, pc=0x200):
    return state.replace(
        fault=jnp.asarray(int(fault), dtype=jnp.uint8),
        pc=jnp.asarray(pc, dtype=jnp.uint16),
    )


def test_running_state_does_not_raise(fresh_state):
    raise_for_fault(fresh_state)


@pytest.mark.parametrize("fault,error", [
    (Fault.UNKNOWN_OPCODE, DecodeError),
    (Fault.MEMORY_BOUNDS, BoundsError),
    (Fault.STACK_OVERFLOW, StackOverflowError),
    (Fault.STACK_UNDERFLOW, StackUnderflowError),
])
def test_fault_codes_map_to_exceptions(fresh_state, fault, error):
    state = with_fault(load_program(fresh_state, 0x2345), fault)

    with pytest.raises(error) as excinfo:
        raise_for_fault(state)

    assert excinfo.value.pc == 0x200
    assert excinfo.value.instruction == 0x2345
    assert "0x2345" in str(excinfo.value)


def test_unfetchable_instruction_is_none(fresh_state):
    state = with_fault(fresh_state, Fault.MEMORY_BOUNDS, pc=0xFFF)

    with pytest.raises(BoundsError) as excinfo:
        raise_for_fault(state)

    assert excinfo.value.instruction is None
    assert str(excinfo.value) == "memory access out of range at PC=0xFFF"


def test_hierarchy():
    assert issubclass(StackOverflowError, ControlError)
    assert issubclass(StackUnderflowError, ControlError)
    for error in (DecodeError, BoundsError, ControlError):
        assert issubclass(error, ExecutionFault)
    assert issubclass(ExecutionFault, Chip8Error)
    assert issubclass(RomTooLargeError, FormatError)
    assert issubclass(SnapshotFormatError, FormatError)
    assert issubclass(FormatError, Chip8Error)


def test_flag_fault_only_when_condition_holds(fresh_state):
    state = flag_fault(fresh_state, False, int(Fault.MEMORY_BOUNDS))
    assert int(state.fault) == Fault.NONE

    state = flag_fault(fresh_state, True, int(Fault.MEMORY_BOUNDS))
    assert int(state.fault) == Fault.MEMORY_BOUNDS
    assert state.fault.dtype == jnp.uint8


def test_flag_fault_accepts_array_codes(fresh_state):
    code = jnp.asarray(int(Fault.STACK_OVERFLOW), dtype=jnp.uint8)
    state = flag_fault(fresh_state, jnp.asarray(True), code)
    assert int(state.fault) == Fault.STACK_OVERFLOW
