"""CHIP-8 display operations."""

import jax.numpy as jnp
from chipax.state import EmulatorState, flag_fault, span_out_of_range
from chipax.decode import DecodedInstruction
from chipax.constants import SCREEN_WIDTH, SCREEN_HEIGHT, MEMORY_SIZE, FLAG_REGISTER
from chipax.errors import Fault

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def sprite_mask(memory: jnp.ndarray, address: jnp.ndarray, x: jnp.ndarray, y: jnp.ndarray,
                height: jnp.ndarray) -> jnp.ndarray:
    """Screen-sized mask of the pixels set by an 8xN sprite drawn at (x, y).

    Pixels past the right or bottom edge wrap around to the opposite side.
    """
    col_offset = (xx - x) % SCREEN_WIDTH
    row_offset = (yy - y) % SCREEN_HEIGHT
    in_sprite = (col_offset < 8) & (row_offset < height)

    rows = jnp.clip(jnp.astype(address, jnp.int32) + row_offset, 0, MEMORY_SIZE - 1)
    sprite_bytes = jnp.astype(memory[rows], jnp.int32)
    bits = (sprite_bytes >> jnp.clip(7 - col_offset, 0, 7)) & 1
    return (bits == 1) & in_sprite


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N, VF = collision."""
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32) % SCREEN_WIDTH
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32) % SCREEN_HEIGHT
    sprite = sprite_mask(state.memory, state.I, sprite_x, sprite_y, instruction.n)

    collision = jnp.any(state.display & sprite)
    state = state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8))
    )
    out_of_range = (instruction.n > 0) & span_out_of_range(state.I, instruction.n)
    return flag_fault(state, out_of_range, int(Fault.MEMORY_BOUNDS))
