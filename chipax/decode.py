"""CHIP-8 instruction decoding."""

import enum

import jax.numpy as jnp
from chex import dataclass


class Op(enum.IntEnum):
    """Symbolic opcode tags. The order is the executor's dispatch order."""
    UNKNOWN = 0
    CLEAR_SCREEN = 1       # 00E0
    RETURN = 2             # 00EE
    JUMP = 3               # 1NNN
    CALL = 4               # 2NNN
    SKIP_EQ_IMM = 5        # 3XNN
    SKIP_NE_IMM = 6        # 4XNN
    SKIP_EQ_REG = 7        # 5XY0
    SET_IMM = 8            # 6XNN
    ADD_IMM = 9            # 7XNN
    SET_REG = 10           # 8XY0
    OR = 11                # 8XY1
    AND = 12               # 8XY2
    XOR = 13               # 8XY3
    ADD_REG = 14           # 8XY4
    SUB = 15               # 8XY5
    SHIFT_RIGHT = 16       # 8XY6
    SUBN = 17              # 8XY7
    SHIFT_LEFT = 18        # 8XYE
    SKIP_NE_REG = 19       # 9XY0
    SET_INDEX = 20         # ANNN
    JUMP_OFFSET = 21       # BNNN
    RANDOM = 22            # CXNN
    DRAW = 23              # DXYN
    SKIP_KEY_DOWN = 24     # EX9E
    SKIP_KEY_UP = 25       # EXA1
    GET_DELAY = 26         # FX07
    WAIT_KEY = 27          # FX0A
    SET_DELAY = 28         # FX15
    SET_SOUND = 29         # FX18
    ADD_INDEX = 30         # FX1E
    FONT_CHARACTER = 31    # FX29
    BCD = 32               # FX33
    STORE_REGISTERS = 33   # FX55
    LOAD_REGISTERS = 34    # FX65


# (mask, value, op): a word decodes to op when word & mask == value.
INSTRUCTION_PATTERNS = (
    (0xFFFF, 0x00E0, Op.CLEAR_SCREEN),
    (0xFFFF, 0x00EE, Op.RETURN),
    (0xF000, 0x1000, Op.JUMP),
    (0xF000, 0x2000, Op.CALL),
    (0xF000, 0x3000, Op.SKIP_EQ_IMM),
    (0xF000, 0x4000, Op.SKIP_NE_IMM),
    (0xF00F, 0x5000, Op.SKIP_EQ_REG),
    (0xF000, 0x6000, Op.SET_IMM),
    (0xF000, 0x7000, Op.ADD_IMM),
    (0xF00F, 0x8000, Op.SET_REG),
    (0xF00F, 0x8001, Op.OR),
    (0xF00F, 0x8002, Op.AND),
    (0xF00F, 0x8003, Op.XOR),
    (0xF00F, 0x8004, Op.ADD_REG),
    (0xF00F, 0x8005, Op.SUB),
    (0xF00F, 0x8006, Op.SHIFT_RIGHT),
    (0xF00F, 0x8007, Op.SUBN),
    (0xF00F, 0x800E, Op.SHIFT_LEFT),
    (0xF00F, 0x9000, Op.SKIP_NE_REG),
    (0xF000, 0xA000, Op.SET_INDEX),
    (0xF000, 0xB000, Op.JUMP_OFFSET),
    (0xF000, 0xC000, Op.RANDOM),
    (0xF000, 0xD000, Op.DRAW),
    (0xF0FF, 0xE09E, Op.SKIP_KEY_DOWN),
    (0xF0FF, 0xE0A1, Op.SKIP_KEY_UP),
    (0xF0FF, 0xF007, Op.GET_DELAY),
    (0xF0FF, 0xF00A, Op.WAIT_KEY),
    (0xF0FF, 0xF015, Op.SET_DELAY),
    (0xF0FF, 0xF018, Op.SET_SOUND),
    (0xF0FF, 0xF01E, Op.ADD_INDEX),
    (0xF0FF, 0xF029, Op.FONT_CHARACTER),
    (0xF0FF, 0xF033, Op.BCD),
    (0xF0FF, 0xF055, Op.STORE_REGISTERS),
    (0xF0FF, 0xF065, Op.LOAD_REGISTERS),
)

MNEMONICS = {
    Op.CLEAR_SCREEN: "CLS",
    Op.RETURN: "RET",
    Op.JUMP: "JP {nnn:03X}",
    Op.CALL: "CALL {nnn:03X}",
    Op.SKIP_EQ_IMM: "SE V{x:X}, {nn:02X}",
    Op.SKIP_NE_IMM: "SNE V{x:X}, {nn:02X}",
    Op.SKIP_EQ_REG: "SE V{x:X}, V{y:X}",
    Op.SET_IMM: "LD V{x:X}, {nn:02X}",
    Op.ADD_IMM: "ADD V{x:X}, {nn:02X}",
    Op.SET_REG: "LD V{x:X}, V{y:X}",
    Op.OR: "OR V{x:X}, V{y:X}",
    Op.AND: "AND V{x:X}, V{y:X}",
    Op.XOR: "XOR V{x:X}, V{y:X}",
    Op.ADD_REG: "ADD V{x:X}, V{y:X}",
    Op.SUB: "SUB V{x:X}, V{y:X}",
    Op.SHIFT_RIGHT: "SHR V{x:X}, V{y:X}",
    Op.SUBN: "SUBN V{x:X}, V{y:X}",
    Op.SHIFT_LEFT: "SHL V{x:X}, V{y:X}",
    Op.SKIP_NE_REG: "SNE V{x:X}, V{y:X}",
    Op.SET_INDEX: "LD I, {nnn:03X}",
    Op.JUMP_OFFSET: "JP V0, {nnn:03X}",
    Op.RANDOM: "RND V{x:X}, {nn:02X}",
    Op.DRAW: "DRW V{x:X}, V{y:X}, {n:X}",
    Op.SKIP_KEY_DOWN: "SKP V{x:X}",
    Op.SKIP_KEY_UP: "SKNP V{x:X}",
    Op.GET_DELAY: "LD V{x:X}, DT",
    Op.WAIT_KEY: "LD V{x:X}, K",
    Op.SET_DELAY: "LD DT, V{x:X}",
    Op.SET_SOUND: "LD ST, V{x:X}",
    Op.ADD_INDEX: "ADD I, V{x:X}",
    Op.FONT_CHARACTER: "LD F, V{x:X}",
    Op.BCD: "LD B, V{x:X}",
    Op.STORE_REGISTERS: "LD [I], V{x:X}",
    Op.LOAD_REGISTERS: "LD V{x:X}, [I]",
}


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)
    op: int      # Op tag, Op.UNKNOWN if no pattern matches


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    word = jnp.asarray(instruction, dtype=jnp.int32) & 0xFFFF
    op = jnp.select(
        [(word & mask) == value for mask, value, _ in INSTRUCTION_PATTERNS],
        [int(op) for _, _, op in INSTRUCTION_PATTERNS],
        default=int(Op.UNKNOWN),
    )
    return DecodedInstruction(
        raw=word,
        opcode=(word & 0xF000) >> 12,
        x=(word & 0x0F00) >> 8,
        y=(word & 0x00F0) >> 4,
        n=word & 0x000F,
        nn=word & 0x00FF,
        nnn=word & 0x0FFF,
        op=op,
    )


def disassemble(instruction: int) -> str:
    """Render a host-side integer instruction word as a mnemonic."""
    instruction &= 0xFFFF
    for mask, value, op in INSTRUCTION_PATTERNS:
        if instruction & mask == value:
            return MNEMONICS[op].format(
                x=(instruction & 0x0F00) >> 8,
                y=(instruction & 0x00F0) >> 4,
                n=instruction & 0x000F,
                nn=instruction & 0x00FF,
                nnn=instruction & 0x0FFF,
            )
    return f"DW {instruction:04X}"
