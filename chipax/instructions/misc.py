"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chipax.state import EmulatorState, flag_fault, span_out_of_range
from chipax.decode import DecodedInstruction
from chipax.constants import FONT_START, FONT_GLYPH_SIZE, NUM_REGISTERS, MEMORY_SIZE
from chipax.errors import Fault


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register. VF is not affected."""
    return state.replace(I=state.I + jnp.astype(state.V[instruction.x], jnp.uint16))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press.

    Parks the machine on this instruction. Keys already held are latched and
    must be released before they count; ``resume_key_wait`` finishes the
    instruction once a new key goes down.
    """
    return state.replace(
        pc=state.pc - 2,
        key_wait=jnp.ones((), dtype=jnp.bool_),
        key_wait_register=jnp.astype(instruction.x, jnp.uint8),
        key_latch=state.keypad,
    )


def resume_key_wait(state: EmulatorState) -> EmulatorState:
    """Complete a parked FX0A if a key not in the latch is down."""
    new_presses = state.keypad & ~state.key_latch

    def key_pressed_action(state):
        pressed_key = jnp.argmax(new_presses)
        return state.replace(
            V=state.V.at[state.key_wait_register].set(jnp.astype(pressed_key, jnp.uint8)),
            pc=state.pc + 2,
            key_wait=jnp.zeros((), dtype=jnp.bool_),
            key_latch=jnp.zeros_like(state.key_latch),
        )

    def wait_action(state):
        return state.replace(key_latch=state.key_latch & state.keypad)

    return jax.lax.cond(jnp.any(new_presses), key_pressed_action, wait_action, state)


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    digit = jnp.astype(state.V[instruction.x], jnp.int32) & 0xF
    return state.replace(I=jnp.astype(FONT_START + digit * FONT_GLYPH_SIZE, jnp.uint16))


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = jnp.arange(3) + jnp.astype(state.I, jnp.int32)
    state = state.replace(memory=state.memory.at[indices].set(digits, mode="drop"))
    return flag_fault(state, span_out_of_range(state.I, 3), int(Fault.MEMORY_BOUNDS))


def _advance_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    if state.quirks.memory_increments_index:
        return state.replace(I=jnp.astype(state.I + instruction.x + 1, jnp.uint16))
    return state


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    # Addresses outside the window or past the end of memory are dropped.
    indices = jnp.where(register_mask, jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS), MEMORY_SIZE)
    new_memory = state.memory.at[indices].set(state.V, mode="drop")

    out_of_range = span_out_of_range(state.I, instruction.x + 1)
    state = _advance_index(state.replace(memory=new_memory), instruction)
    return flag_fault(state, out_of_range, int(Fault.MEMORY_BOUNDS))


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = jnp.clip(jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS), 0, MEMORY_SIZE - 1)
    memory_values = state.memory[base_indices]
    new_V = jnp.where(register_mask, memory_values, state.V)

    out_of_range = span_out_of_range(state.I, instruction.x + 1)
    state = _advance_index(state.replace(V=new_V), instruction)
    return flag_fault(state, out_of_range, int(Fault.MEMORY_BOUNDS))
