"""Binary save-state format.

A snapshot is a fixed-length big-endian record::

    magic "C8SN" | version | memory[4096] | V0-VF[16] | I | PC
    | stack depth | stack[16] | delay timer | sound timer
    | framebuffer bitmap[256] | keypad mask | key-wait flag | key-wait register
    | key latch mask | PRNG key[2]

The framebuffer is stored row by row, most significant bit first. Key masks
hold key ``k`` in bit ``k``. Compatibility quirks and the fault code are not
part of the snapshot; a restored state is always running.
"""

import struct

import jax
import jax.numpy as jnp
import numpy as np

from chipax.constants import MEMORY_SIZE, NUM_REGISTERS, NUM_KEYS, STACK_SIZE, SCREEN_WIDTH, SCREEN_HEIGHT
from chipax.errors import SnapshotFormatError
from chipax.state import EmulatorState, StackState, Quirks

SNAPSHOT_MAGIC = b"C8SN"
SNAPSHOT_VERSION = 1

_HEADER = struct.Struct(">4sB")
_RECORD = struct.Struct(
    f">4sB{MEMORY_SIZE}s{NUM_REGISTERS}sHHB{STACK_SIZE}HBB{SCREEN_WIDTH * SCREEN_HEIGHT // 8}sHBBH2I"
)
SNAPSHOT_SIZE = _RECORD.size


def _pack_mask(keys) -> int:
    return sum(1 << k for k, down in enumerate(np.asarray(keys)) if down)


def _unpack_mask(mask: int) -> jnp.ndarray:
    return jnp.array([(mask >> k) & 1 for k in range(NUM_KEYS)], dtype=jnp.bool_)


def _key_words(rng) -> np.ndarray:
    if jnp.issubdtype(rng.dtype, jax.dtypes.prng_key):
        rng = jax.random.key_data(rng)
    return np.asarray(rng, dtype=np.uint32).reshape(-1)


def serialize(state: EmulatorState) -> bytes:
    """Encode every machine field of ``state`` as a snapshot record."""
    display = np.asarray(state.display, dtype=np.bool_).T  # rows of 64 pixels
    return _RECORD.pack(
        SNAPSHOT_MAGIC,
        SNAPSHOT_VERSION,
        np.asarray(state.memory, dtype=np.uint8).tobytes(),
        np.asarray(state.V, dtype=np.uint8).tobytes(),
        int(state.I),
        int(state.pc),
        int(state.stack.pointer),
        *(int(address) for address in np.asarray(state.stack.data)),
        int(state.delay_timer),
        int(state.sound_timer),
        np.packbits(display).tobytes(),
        _pack_mask(state.keypad),
        int(bool(state.key_wait)),
        int(state.key_wait_register),
        _pack_mask(state.key_latch),
        *(int(word) for word in _key_words(state.rng)),
    )


def deserialize(data: bytes, quirks: Quirks = Quirks()) -> EmulatorState:
    """Decode a snapshot record into a new state.

    Raises:
        SnapshotFormatError: if the buffer is truncated, has the wrong magic or
            version, or holds values no running machine can have.
    """
    data = bytes(data)
    if len(data) < _HEADER.size:
        raise SnapshotFormatError(f"snapshot truncated to {len(data)} bytes")

    magic, version = _HEADER.unpack_from(data)
    if magic != SNAPSHOT_MAGIC:
        raise SnapshotFormatError(f"not a CHIP-8 snapshot (magic {magic!r})")
    if version != SNAPSHOT_VERSION:
        raise SnapshotFormatError(f"unsupported snapshot version {version}, expected {SNAPSHOT_VERSION}")
    if len(data) != SNAPSHOT_SIZE:
        raise SnapshotFormatError(f"snapshot is {len(data)} bytes, expected {SNAPSHOT_SIZE}")

    fields = _RECORD.unpack(data)
    memory, registers, index, pc, depth = fields[2:7]
    stack_data = fields[7:7 + STACK_SIZE]
    (delay_timer, sound_timer, bitmap, keypad, key_wait,
     key_wait_register, key_latch, *rng) = fields[7 + STACK_SIZE:]

    if depth > STACK_SIZE:
        raise SnapshotFormatError(f"stack depth {depth} exceeds {STACK_SIZE}")
    if key_wait not in (0, 1):
        raise SnapshotFormatError(f"invalid key-wait flag {key_wait}")
    if key_wait_register >= NUM_REGISTERS:
        raise SnapshotFormatError(f"invalid key-wait register {key_wait_register}")

    pixels = np.unpackbits(np.frombuffer(bitmap, dtype=np.uint8)).reshape(SCREEN_HEIGHT, SCREEN_WIDTH)

    return EmulatorState(
        rng=jnp.asarray(rng, dtype=jnp.uint32),
        memory=jnp.asarray(np.frombuffer(memory, dtype=np.uint8)),
        pc=jnp.asarray(pc, dtype=jnp.uint16),
        display=jnp.asarray(pixels.T.astype(np.bool_)),
        stack=StackState(
            data=jnp.asarray(stack_data, dtype=jnp.uint16),
            pointer=jnp.asarray(depth, dtype=jnp.uint8),
        ),
        delay_timer=jnp.asarray(delay_timer, dtype=jnp.uint8),
        sound_timer=jnp.asarray(sound_timer, dtype=jnp.uint8),
        keypad=_unpack_mask(keypad),
        V=jnp.asarray(np.frombuffer(registers, dtype=np.uint8)),
        I=jnp.asarray(index, dtype=jnp.uint16),
        key_wait=jnp.asarray(bool(key_wait)),
        key_wait_register=jnp.asarray(key_wait_register, dtype=jnp.uint8),
        key_latch=_unpack_mask(key_latch),
        quirks=quirks,
    )
