"""Tests for the frame clock and multi-cycle execution."""

import pytest
import jax.numpy as jnp
from chipax import Clock, run_cycles, run_frame, step, Fault
from conftest import load_program


class TestClockSpeed:
    """Test throughput control."""

    def test_defaults(self):
        clock = Clock()
        assert clock.cycles_per_frame == 10
        assert clock.speed_step == 10
        assert clock.instructions_per_second == 600

    def test_increase_and_decrease(self):
        clock = Clock()
        assert clock.increase_speed() == 20
        assert clock.increase_speed() == 30
        assert clock.decrease_speed() == 20
        assert clock.instructions_per_second == 1200

    def test_decrease_floors_at_one(self):
        clock = Clock(cycles_per_frame=15)
        assert clock.decrease_speed() == 5
        assert clock.decrease_speed() == 1
        assert clock.decrease_speed() == 1

    def test_no_upper_limit(self):
        clock = Clock(cycles_per_frame=1000, speed_step=500)
        for _ in range(4):
            clock.increase_speed()
        assert clock.cycles_per_frame == 3000

    @pytest.mark.parametrize("kwargs", [
        {"cycles_per_frame": 0},
        {"cycles_per_frame": -5},
        {"speed_step": 0},
    ])
    def test_invalid_settings(self, kwargs):
        with pytest.raises(ValueError):
            Clock(**kwargs)


class TestRunCycles:
    """Test the jitted cycle loop."""

    def test_runs_exact_cycle_count(self, fresh_state):
        state = load_program(fresh_state, 0x7001, 0x7001, 0x7001, 0x7001)
        state = run_cycles(state, 3)
        assert state.V[0] == 3
        assert state.pc == 0x206

    def test_matches_repeated_step(self, fresh_state):
        state = load_program(fresh_state, 0x6005, 0x2208, 0x1206, 0x0000, 0x7101, 0x00EE)
        stepped = state
        for _ in range(5):
            stepped = step(stepped)
        looped = run_cycles(state, 5)

        assert looped.pc == stepped.pc
        assert jnp.array_equal(looped.V, stepped.V)
        assert looped.stack.pointer == stepped.stack.pointer

    def test_call_then_return_resumes_after_call(self, fresh_state):
        # 0x200: CALL 0x204; 0x202: JP 0x202; 0x204: RET
        state = load_program(fresh_state, 0x2204, 0x1202, 0x00EE)
        state = run_cycles(state, 2)
        assert state.pc == 0x202
        assert state.stack.pointer == 0

    def test_fault_stops_execution(self, fresh_state):
        # 0x200: V0 += 1; 0x202: unknown; 0x204: V0 += 1
        state = load_program(fresh_state, 0x7001, 0x0000, 0x7001)
        state = run_cycles(state, 10)

        assert int(state.fault) == Fault.UNKNOWN_OPCODE
        assert state.pc == 0x202
        assert state.V[0] == 1

    def test_fetch_past_end_of_memory_faults(self, fresh_state):
        state = fresh_state.replace(pc=jnp.asarray(0xFFF, dtype=jnp.uint16))
        state = run_cycles(state, 1)

        assert int(state.fault) == Fault.MEMORY_BOUNDS
        assert state.pc == 0xFFF


class TestRunFrame:
    """Test frames: cycles followed by one timer tick."""

    def test_frame_ticks_timers_once(self, fresh_state):
        state = load_program(fresh_state, 0x6009, 0xF015, 0x1204)  # DT = 9; loop
        state = run_frame(state, 10)
        assert state.delay_timer == 8

    def test_faulted_frame_does_not_tick(self, fresh_state):
        state = load_program(fresh_state, 0x6009, 0xF015, 0xFFFF)
        state = run_frame(state, 10)

        assert int(state.fault) == Fault.UNKNOWN_OPCODE
        assert state.delay_timer == 9
        assert state.pc == 0x204

    def test_halted_state_is_unchanged(self, fresh_state):
        state = run_frame(load_program(fresh_state, 0x0000), 1)
        again = run_frame(state, 10)

        assert again.pc == state.pc
        assert int(again.fault) == Fault.UNKNOWN_OPCODE

    def test_clock_runs_its_cycle_count(self, fresh_state):
        clock = Clock(cycles_per_frame=3)
        state = load_program(fresh_state, *([0x7001] * 8))

        state = clock.run_frame(state)
        assert state.V[0] == 3

        clock.increase_speed()
        state = clock.run_frame(state)
        assert state.V[0] == 8
