"""Instruction decoding.

``decode`` is the single place where a 16-bit instruction word is classified
and its operand fields are extracted. The executor and the disassembler both
work from the ``DecodedInstruction`` it returns.
"""

from enum import Enum

from flax.struct import dataclass, field


class Op(Enum):
    """Operation kinds, named after what they do."""
    CLEAR_SCREEN = "00E0"
    RETURN = "00EE"
    CALL_MACHINE = "0NNN"
    JUMP = "1NNN"
    CALL = "2NNN"
    SKIP_IF_EQUAL_IMMEDIATE = "3XNN"
    SKIP_IF_NOT_EQUAL_IMMEDIATE = "4XNN"
    SKIP_IF_EQUAL_REGISTER = "5XY0"
    SET_IMMEDIATE = "6XNN"
    ADD_IMMEDIATE = "7XNN"
    SET_REGISTER = "8XY0"
    OR = "8XY1"
    AND = "8XY2"
    XOR = "8XY3"
    ADD_REGISTER = "8XY4"
    SUB_XY = "8XY5"
    SHIFT_RIGHT = "8XY6"
    SUB_YX = "8XY7"
    SHIFT_LEFT = "8XYE"
    SKIP_IF_NOT_EQUAL_REGISTER = "9XY0"
    SET_INDEX = "ANNN"
    JUMP_WITH_OFFSET = "BNNN"
    RANDOM = "CXNN"
    DRAW = "DXYN"
    SKIP_IF_KEY = "EX9E"
    SKIP_IF_NOT_KEY = "EXA1"
    GET_DELAY_TIMER = "FX07"
    WAIT_FOR_KEY = "FX0A"
    SET_DELAY_TIMER = "FX15"
    SET_SOUND_TIMER = "FX18"
    ADD_TO_INDEX = "FX1E"
    FONT_CHARACTER = "FX29"
    BCD = "FX33"
    STORE_REGISTERS = "FX55"
    LOAD_REGISTERS = "FX65"


class DecodeError(Exception):
    """Raised for an instruction word that matches no known operation."""

    def __init__(self, opcode: int):
        self.opcode = opcode
        super().__init__(f"Unhandled op-code: 0x{opcode:04X}")


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded instruction with extracted operands.

    ``kind`` is static metadata; the remaining fields are pytree leaves, so a
    jitted executor is compiled once per kind rather than once per word.
    """
    kind: Op = field(pytree_node=False)
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


# Top nibbles that fully determine the operation
_BY_OPCODE = {
    0x1: Op.JUMP,
    0x2: Op.CALL,
    0x3: Op.SKIP_IF_EQUAL_IMMEDIATE,
    0x4: Op.SKIP_IF_NOT_EQUAL_IMMEDIATE,
    0x5: Op.SKIP_IF_EQUAL_REGISTER,
    0x6: Op.SET_IMMEDIATE,
    0x7: Op.ADD_IMMEDIATE,
    0x9: Op.SKIP_IF_NOT_EQUAL_REGISTER,
    0xA: Op.SET_INDEX,
    0xB: Op.JUMP_WITH_OFFSET,
    0xC: Op.RANDOM,
    0xD: Op.DRAW,
}

_ALU_BY_N = {
    0x0: Op.SET_REGISTER,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REGISTER,
    0x5: Op.SUB_XY,
    0x6: Op.SHIFT_RIGHT,
    0x7: Op.SUB_YX,
    0xE: Op.SHIFT_LEFT,
}

_KEY_BY_NN = {
    0x9E: Op.SKIP_IF_KEY,
    0xA1: Op.SKIP_IF_NOT_KEY,
}

_MISC_BY_NN = {
    0x07: Op.GET_DELAY_TIMER,
    0x0A: Op.WAIT_FOR_KEY,
    0x15: Op.SET_DELAY_TIMER,
    0x18: Op.SET_SOUND_TIMER,
    0x1E: Op.ADD_TO_INDEX,
    0x29: Op.FONT_CHARACTER,
    0x33: Op.BCD,
    0x55: Op.STORE_REGISTERS,
    0x65: Op.LOAD_REGISTERS,
}


def classify(instruction: int) -> Op:
    """Return the operation kind of a 16-bit word or raise DecodeError."""
    opcode = (instruction & 0xF000) >> 12

    if opcode == 0x0:
        if instruction == 0x00E0:
            return Op.CLEAR_SCREEN
        if instruction == 0x00EE:
            return Op.RETURN
        return Op.CALL_MACHINE
    if opcode == 0x8:
        kind = _ALU_BY_N.get(instruction & 0x000F)
    elif opcode == 0xE:
        kind = _KEY_BY_NN.get(instruction & 0x00FF)
    elif opcode == 0xF:
        kind = _MISC_BY_NN.get(instruction & 0x00FF)
    else:
        kind = _BY_OPCODE[opcode]

    if kind is None:
        raise DecodeError(instruction)
    return kind


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into its kind and operand fields."""
    instruction = int(instruction) & 0xFFFF
    return DecodedInstruction(
        kind=classify(instruction),
        raw=instruction,
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )
