"""Host-facing emulation session.

A ``Session`` owns exactly one ``EmulatorState`` and is the only place the
host touches it: ROM loading, keypad writes, frame execution, snapshot
save/load and speed control all go through it.
"""

import threading
from typing import Iterable, Optional

import jax
import jax.numpy as jnp
import numpy as np

from chipax.state import EmulatorState, Quirks, create_state, reseed, set_key
from chipax.emulator import load_rom
from chipax.clock import Clock
from chipax.timers import sound_active
from chipax.snapshot import serialize, deserialize
from chipax.errors import fault_exception
from chipax.logging import SessionLogger
from chipax.constants import DEFAULT_CYCLES_PER_FRAME, DEFAULT_SPEED_STEP, NUM_KEYS


class Session:
    """A single CHIP-8 machine driven one host frame at a time."""

    def __init__(
        self,
        quirks: Quirks = Quirks(),
        seed: int = 0,
        cycles_per_frame: int = DEFAULT_CYCLES_PER_FRAME,
        speed_step: int = DEFAULT_SPEED_STEP,
        logger: Optional[SessionLogger] = None,
    ):
        """Initialize the session with an empty machine.

        Args:
            quirks: Compatibility options for ambiguous opcodes
            seed: Seed for the CXNN random generator
            cycles_per_frame: Instructions executed per host frame
            speed_step: Amount by which the speed controls change cycles_per_frame
            logger: Logger for session events, defaults to a SessionLogger
        """
        self.quirks = quirks
        self.seed = seed
        self.clock = Clock(cycles_per_frame, speed_step)
        self.logger = logger if logger is not None else SessionLogger()
        self._lock = threading.RLock()
        self._rom = b""
        self.state = self._fresh_state()

        self.logger.log_session_start({
            "quirks": quirks,
            "seed": seed,
            "cycles_per_frame": cycles_per_frame,
            "speed_step": speed_step,
        })

    def _fresh_state(self) -> EmulatorState:
        return create_state(jax.random.PRNGKey(self.seed), self.quirks)

    def load_rom(self, rom_data: bytes):
        """Start a fresh machine running ``rom_data``.

        Raises:
            RomTooLargeError: if the ROM does not fit; the current machine is kept.
        """
        rom_data = bytes(rom_data)
        with self._lock:
            state = load_rom(self._fresh_state(), rom_data)
            self.state = state
            self._rom = rom_data
        self.logger.info(f"Loaded ROM ({len(rom_data)} bytes)")

    def reset(self):
        """Restart the current ROM from a fresh machine."""
        with self._lock:
            self.state = load_rom(self._fresh_state(), self._rom)
        self.logger.info("Reset")

    def reseed(self, seed: int):
        """Re-seed the random generator of the running machine."""
        with self._lock:
            self.seed = seed
            self.state = reseed(self.state, seed)

    @staticmethod
    def _check_key(key: int):
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Key must be in 0x0-0xF, got {key!r}")

    def press_key(self, key: int):
        self._check_key(key)
        with self._lock:
            self.state = set_key(self.state, key, True)

    def release_key(self, key: int):
        self._check_key(key)
        with self._lock:
            self.state = set_key(self.state, key, False)

    def set_keys(self, pressed: Iterable[int]):
        """Replace the whole keypad: keys in ``pressed`` are down, the rest are up."""
        keypad = np.zeros(NUM_KEYS, dtype=np.bool_)
        for key in pressed:
            self._check_key(key)
            keypad[key] = True
        with self._lock:
            self.state = self.state.replace(keypad=jnp.asarray(keypad))

    def run_frame(self) -> EmulatorState:
        """Run one host frame.

        Raises:
            ExecutionFault: if an instruction faulted. The session keeps the
                last-good state and stays halted until a ROM or snapshot is
                loaded or the session is reset.
        """
        with self._lock:
            self.state = self.clock.run_frame(self.state)
            error = fault_exception(self.state)
            if error is not None:
                self.logger.log_fault(error, self.state)
                raise error
            return self.state

    @property
    def halted(self) -> bool:
        return fault_exception(self.state) is not None

    @property
    def framebuffer(self) -> np.ndarray:
        """Boolean (64, 32) array indexed [x, y]."""
        return np.asarray(self.state.display)

    @property
    def sound_active(self) -> bool:
        return sound_active(self.state)

    def save_snapshot(self) -> bytes:
        with self._lock:
            data = serialize(self.state)
        self.logger.info(f"Saved snapshot ({len(data)} bytes)")
        return data

    def load_snapshot(self, data: bytes):
        """Replace the machine with a snapshot.

        Raises:
            SnapshotFormatError: if the snapshot is malformed; the current
                machine is kept.
        """
        with self._lock:
            self.state = deserialize(data, self.quirks)
        self.logger.info("Loaded snapshot")

    def increase_speed(self) -> int:
        cycles = self.clock.increase_speed()
        self.logger.info(f"Speed: {cycles} cycles per frame ({self.clock.instructions_per_second} Hz)")
        return cycles

    def decrease_speed(self) -> int:
        cycles = self.clock.decrease_speed()
        self.logger.info(f"Speed: {cycles} cycles per frame ({self.clock.instructions_per_second} Hz)")
        return cycles
