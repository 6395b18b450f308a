"""CHIP-8 delay and sound timers."""

import jax.numpy as jnp
from chipax.state import EmulatorState


def _count_down(timer: jnp.ndarray) -> jnp.ndarray:
    return jnp.where(timer > 0, timer - 1, timer)


def tick_timers(state: EmulatorState) -> EmulatorState:
    """Advance both timers by one 60 Hz tick, stopping at zero."""
    return state.replace(
        delay_timer=_count_down(state.delay_timer),
        sound_timer=_count_down(state.sound_timer),
    )


def sound_active(state: EmulatorState) -> bool:
    """Whether the host should be playing the buzzer tone."""
    return bool(state.sound_timer > 0)
