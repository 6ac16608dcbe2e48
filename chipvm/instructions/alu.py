"""ALU operations (8xxx).

Each operation maps ``(vx, vy)`` to ``(result, flag)``. ``flag`` is ``None``
for the operations that leave VF alone. The result is written to VX first and
the flag to VF afterwards, so ``8FY4`` and friends end with the flag in VF.
"""

import jax.numpy as jnp
from chipvm.constants import FLAG_REGISTER
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction, Op


def alu_set(vx, vy):
    """8XY0 - Set: VX = VY."""
    return vy, None


def alu_or(vx, vy):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, None


def alu_and(vx, vy):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, None


def alu_xor(vx, vy):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, None


def alu_add(vx, vy):
    """8XY4 - Add: VX += VY, set carry flag."""
    result = jnp.astype(vx, jnp.int32) + vy
    carry = jnp.astype(result > 0xFF, jnp.uint8)
    return jnp.astype(result & 0xFF, jnp.uint8), carry


def alu_sub_xy(vx, vy):
    """8XY5 - Subtract: VX -= VY, VF = 0 on borrow else 1."""
    no_borrow = jnp.astype(vx >= vy, jnp.uint8)
    return vx - vy, no_borrow


def alu_shift_right(vx, vy):
    """8XY6 - Shift right: VX >>= 1, VF = bit shifted out."""
    shifted_bit = vx & 1
    return vx >> 1, shifted_bit


def alu_sub_yx(vx, vy):
    """8XY7 - Subtract: VX = VY - VX, VF = 0 on borrow else 1."""
    no_borrow = jnp.astype(vy >= vx, jnp.uint8)
    return vy - vx, no_borrow


def alu_shift_left(vx, vy):
    """8XYE - Shift left: VX <<= 1, VF = bit shifted out."""
    shifted_bit = (vx & 0x80) >> 7
    return vx << 1, shifted_bit


ALU_OPERATIONS = {
    Op.SET_REGISTER: alu_set,
    Op.OR: alu_or,
    Op.AND: alu_and,
    Op.XOR: alu_xor,
    Op.ADD_REGISTER: alu_add,
    Op.SUB_XY: alu_sub_xy,
    Op.SHIFT_RIGHT: alu_shift_right,
    Op.SUB_YX: alu_sub_yx,
    Op.SHIFT_LEFT: alu_shift_left,
}


def execute_alu_operation(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """8XYN - ALU operations dispatcher."""
    vx = state.V[instruction.x]
    vy = state.V[instruction.y]

    result, vf = ALU_OPERATIONS[instruction.kind](vx, vy)

    new_V = state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
    if vf is not None:
        new_V = new_V.at[FLAG_REGISTER].set(jnp.astype(vf, jnp.uint8))
    return state.replace(V=new_V)
