"""Main CHIP-8 emulator execution engine."""

import jax
import jax.lax
import jax.numpy as jnp
from chipax.state import EmulatorState, flag_fault, span_out_of_range
from chipax.decode import decode
from chipax.constants import PROGRAM_START, MAX_ROM_SIZE, MEMORY_SIZE
from chipax.errors import Fault, RomTooLargeError
from chipax.instructions.system import execute_unknown, execute_clear_screen, execute_return
from chipax.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key_down, execute_skip_if_key_up
)
from chipax.instructions.alu import (
    execute_alu_set, execute_alu_or, execute_alu_and, execute_alu_xor,
    execute_alu_add, execute_alu_sub_xy, execute_alu_shift_right,
    execute_alu_sub_yx, execute_alu_shift_left
)
from chipax.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipax.instructions.display import execute_display
from chipax.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_bcd_conversion, execute_store_registers, execute_load_registers,
    resume_key_wait
)

# Indexed by decode.Op
INSTRUCTION_HANDLERS = [
    execute_unknown,
    execute_clear_screen,
    execute_return,
    execute_jump,
    execute_call,
    execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate,
    execute_skip_if_equal_register,
    execute_set,
    execute_add,
    execute_alu_set,
    execute_alu_or,
    execute_alu_and,
    execute_alu_xor,
    execute_alu_add,
    execute_alu_sub_xy,
    execute_alu_shift_right,
    execute_alu_sub_yx,
    execute_alu_shift_left,
    execute_skip_if_not_equal_register,
    execute_set_index,
    execute_jump_with_offset,
    execute_random,
    execute_display,
    execute_skip_if_key_down,
    execute_skip_if_key_up,
    execute_get_delay_timer,
    execute_wait_for_key,
    execute_set_delay_timer,
    execute_set_sound_timer,
    execute_add_to_index,
    execute_font_character,
    execute_bcd_conversion,
    execute_store_registers,
    execute_load_registers,
]


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    ``state.pc`` must already point past the instruction (see ``fetch``). If
    the instruction faults, the input state is returned with only its fault
    code set.
    """
    decoded_instruction = decode(instruction)
    new_state = jax.lax.switch(decoded_instruction.op, INSTRUCTION_HANDLERS, state, decoded_instruction)

    return jax.lax.cond(
        new_state.fault != int(Fault.NONE),
        lambda: state.replace(fault=new_state.fault),
        lambda: new_state,
    )


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory.

    A PC whose instruction word does not fit in memory flags ``MEMORY_BOUNDS``.
    """
    address = jnp.clip(jnp.astype(state.pc, jnp.int32), 0, MEMORY_SIZE - 2)
    instruction = _pack_u16(state.memory[address], state.memory[address + 1])
    fetched = state.replace(pc=state.pc + 2)
    return flag_fault(fetched, span_out_of_range(state.pc, 2), int(Fault.MEMORY_BOUNDS)), instruction


def _run_instruction(state: EmulatorState) -> EmulatorState:
    fetched, instruction = fetch(state)
    executed = execute(fetched, instruction)
    return jax.lax.cond(
        executed.fault != int(Fault.NONE),
        lambda: state.replace(fault=executed.fault),
        lambda: executed,
    )


def step(state: EmulatorState) -> EmulatorState:
    """Run one cycle.

    A faulted state is halted and returned unchanged. A state parked on FX0A
    only checks for a new key press. Otherwise the next instruction is fetched
    and executed; if it faults, the pre-cycle state is returned with its fault
    code set.
    """
    mode = jnp.where(state.fault != int(Fault.NONE), 0, jnp.where(state.key_wait, 1, 2))
    return jax.lax.switch(mode, [lambda s: s, resume_key_wait, _run_instruction], state)


def load_rom(state: EmulatorState, rom_data: bytes) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    if len(rom_data) > MAX_ROM_SIZE:
        raise RomTooLargeError(
            f"ROM is {len(rom_data)} bytes, at most {MAX_ROM_SIZE} bytes fit above 0x{PROGRAM_START:03X}"
        )
    if not rom_data:
        return state
    rom_array = jnp.array(list(rom_data), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(rom_data)].set(rom_array)
    return state.replace(memory=new_memory)
