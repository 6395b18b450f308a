"""Frame clock: how many cycles run per host frame."""

import jax
import jax.lax
import jax.numpy as jnp

from chipax.state import EmulatorState
from chipax.emulator import step
from chipax.timers import tick_timers
from chipax.errors import Fault
from chipax.constants import DEFAULT_CYCLES_PER_FRAME, DEFAULT_SPEED_STEP, TIMER_HZ


@jax.jit
def run_cycles(state: EmulatorState, cycles: int) -> EmulatorState:
    """Run ``cycles`` fetch-decode-execute cycles. Cycles after a fault do nothing."""
    return jax.lax.fori_loop(0, cycles, lambda _, s: step(s), state)


@jax.jit
def run_frame(state: EmulatorState, cycles: int) -> EmulatorState:
    """Run one host frame: ``cycles`` cycles, then a single timer tick.

    The timers do not tick if the frame faulted, so the state stays in its
    last-good condition.
    """
    state = run_cycles(state, cycles)
    return jax.lax.cond(state.fault == int(Fault.NONE), tick_timers, lambda s: s, state)


class Clock:
    """Instruction throughput control.

    Throughput is adjustable at runtime; timer cadence is always one tick per
    frame (60 Hz when the host runs at 60 fps).
    """

    def __init__(
        self,
        cycles_per_frame: int = DEFAULT_CYCLES_PER_FRAME,
        speed_step: int = DEFAULT_SPEED_STEP,
    ):
        if cycles_per_frame < 1:
            raise ValueError(f"cycles_per_frame must be at least 1, got {cycles_per_frame}")
        if speed_step < 1:
            raise ValueError(f"speed_step must be at least 1, got {speed_step}")
        self.cycles_per_frame = cycles_per_frame
        self.speed_step = speed_step

    @property
    def instructions_per_second(self) -> int:
        """Nominal CPU frequency when frames run at 60 Hz."""
        return self.cycles_per_frame * TIMER_HZ

    def increase_speed(self) -> int:
        self.cycles_per_frame += self.speed_step
        return self.cycles_per_frame

    def decrease_speed(self) -> int:
        self.cycles_per_frame = max(1, self.cycles_per_frame - self.speed_step)
        return self.cycles_per_frame

    def run_frame(self, state: EmulatorState) -> EmulatorState:
        return run_frame(state, jnp.asarray(self.cycles_per_frame, dtype=jnp.int32))
