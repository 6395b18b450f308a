"""CHIP-8 virtual machine package."""

from chipax.state import EmulatorState, Quirks, create_state, reseed, set_key
from chipax.emulator import execute, fetch, step, load_rom
from chipax.decode import DecodedInstruction, Op, decode, disassemble
from chipax.timers import tick_timers, sound_active
from chipax.clock import Clock, run_cycles, run_frame
from chipax.snapshot import serialize, deserialize, SNAPSHOT_SIZE, SNAPSHOT_VERSION
from chipax.session import Session
from chipax.errors import (
    Fault, Chip8Error, ExecutionFault, DecodeError, BoundsError, ControlError,
    StackOverflowError, StackUnderflowError, FormatError, RomTooLargeError,
    SnapshotFormatError, raise_for_fault,
)
from chipax.constants import *
from chipax.rendering import display_to_rgb, create_color_scheme

__all__ = [
    "EmulatorState",
    "Quirks",
    "create_state",
    "reseed",
    "set_key",
    "fetch",
    "execute",
    "step",
    "load_rom",
    "DecodedInstruction",
    "Op",
    "decode",
    "disassemble",
    "tick_timers",
    "sound_active",
    "Clock",
    "run_cycles",
    "run_frame",
    "serialize",
    "deserialize",
    "SNAPSHOT_SIZE",
    "SNAPSHOT_VERSION",
    "Session",
    "Fault",
    "Chip8Error",
    "ExecutionFault",
    "DecodeError",
    "BoundsError",
    "ControlError",
    "StackOverflowError",
    "StackUnderflowError",
    "FormatError",
    "RomTooLargeError",
    "SnapshotFormatError",
    "raise_for_fault",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "display_to_rgb",
    "create_color_scheme",
]
