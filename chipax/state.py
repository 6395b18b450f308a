"""CHIP-8 emulator state structures."""

import dataclasses

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode, field

from chipax.constants import (
    PROGRAM_START, FONT_START, FONT_DATA, SCREEN_WIDTH, SCREEN_HEIGHT,
    STACK_SIZE, MEMORY_SIZE, NUM_REGISTERS, NUM_KEYS,
)


@dataclasses.dataclass(frozen=True)
class Quirks:
    """Compatibility options for opcodes whose behaviour differs between interpreters.

    Attributes:
        shift_uses_vy: 8XY6/8XYE shift VY into VX instead of shifting VX in place
        jump_uses_vx: BXNN jumps to XNN + VX instead of BNNN jumping to NNN + V0
        memory_increments_index: FX55/FX65 leave I pointing past the last register
        logic_resets_vf: 8XY1/8XY2/8XY3 clear VF
    """
    shift_uses_vy: bool = False
    jump_uses_vx: bool = False
    memory_increments_index: bool = False
    logic_resets_vf: bool = False

    @classmethod
    def modern(cls) -> "Quirks":
        return cls()

    @classmethod
    def cosmac(cls) -> "Quirks":
        """Behaviour of the original COSMAC VIP interpreter."""
        return cls(shift_uses_vy=True, memory_increments_index=True, logic_resets_vf=True)


@dataclass(frozen=True)
class StackState:
    """Stack state for subroutine calls."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state."""
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.asarray(PROGRAM_START, dtype=jnp.uint16))
    display: jnp.ndarray = field(default_factory=lambda: jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.bool_))
    stack: StackState = field(default_factory=StackState)
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    key_wait: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.bool_))
    key_wait_register: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    key_latch: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    fault: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    quirks: Quirks = field(pytree_node=False, default=Quirks())


def create_state(rng: jax.random.PRNGKey = None, quirks: Quirks = Quirks()) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    if rng is None:
        rng = jax.random.PRNGKey(0)
    state = EmulatorState(rng, quirks=quirks)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(FONT_DATA))


def reseed(state: EmulatorState, seed: int) -> EmulatorState:
    """Replace the random generator used by CXNN."""
    return state.replace(rng=jax.random.PRNGKey(seed))


def set_key(state: EmulatorState, key: int, pressed: bool) -> EmulatorState:
    """Set the down/up state of a single keypad key."""
    return state.replace(keypad=state.keypad.at[key].set(pressed))


def flag_fault(state: EmulatorState, condition: jnp.ndarray, fault: int | jnp.ndarray) -> EmulatorState:
    """Record ``fault`` on the state when ``condition`` holds."""
    code = jnp.where(condition, fault, state.fault)
    return state.replace(fault=jnp.astype(code, jnp.uint8))


def span_out_of_range(address: jnp.ndarray, length: int | jnp.ndarray) -> jnp.ndarray:
    """True when the ``length`` bytes starting at ``address`` do not fit in memory."""
    last = jnp.astype(address, jnp.int32) + jnp.astype(length, jnp.int32) - 1
    return last >= MEMORY_SIZE
