"""Main execution engine: fetch, execute and timer ticks on EmulatorState."""

import jax
import jax.numpy as jnp
from chipvm.state import EmulatorState, load_program
from chipvm.decode import DecodedInstruction, Op, decode
from chipvm.constants import ADDRESS_MASK
from chipvm.instructions.system import execute_clear_screen, execute_return, execute_call_machine
from chipvm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key, execute_skip_if_not_key
)
from chipvm.instructions.alu import execute_alu_operation
from chipvm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipvm.instructions.display import execute_display
from chipvm.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_bcd_conversion, execute_store_registers, execute_load_registers
)


HANDLERS = {
    Op.CLEAR_SCREEN: execute_clear_screen,
    Op.RETURN: execute_return,
    Op.CALL_MACHINE: execute_call_machine,
    Op.JUMP: execute_jump,
    Op.CALL: execute_call,
    Op.SKIP_IF_EQUAL_IMMEDIATE: execute_skip_if_equal_immediate,
    Op.SKIP_IF_NOT_EQUAL_IMMEDIATE: execute_skip_if_not_equal_immediate,
    Op.SKIP_IF_EQUAL_REGISTER: execute_skip_if_equal_register,
    Op.SET_IMMEDIATE: execute_set,
    Op.ADD_IMMEDIATE: execute_add,
    Op.SET_REGISTER: execute_alu_operation,
    Op.OR: execute_alu_operation,
    Op.AND: execute_alu_operation,
    Op.XOR: execute_alu_operation,
    Op.ADD_REGISTER: execute_alu_operation,
    Op.SUB_XY: execute_alu_operation,
    Op.SHIFT_RIGHT: execute_alu_operation,
    Op.SUB_YX: execute_alu_operation,
    Op.SHIFT_LEFT: execute_alu_operation,
    Op.SKIP_IF_NOT_EQUAL_REGISTER: execute_skip_if_not_equal_register,
    Op.SET_INDEX: execute_set_index,
    Op.JUMP_WITH_OFFSET: execute_jump_with_offset,
    Op.RANDOM: execute_random,
    Op.DRAW: execute_display,
    Op.SKIP_IF_KEY: execute_skip_if_key,
    Op.SKIP_IF_NOT_KEY: execute_skip_if_not_key,
    Op.GET_DELAY_TIMER: execute_get_delay_timer,
    Op.WAIT_FOR_KEY: execute_wait_for_key,
    Op.SET_DELAY_TIMER: execute_set_delay_timer,
    Op.SET_SOUND_TIMER: execute_set_sound_timer,
    Op.ADD_TO_INDEX: execute_add_to_index,
    Op.FONT_CHARACTER: execute_font_character,
    Op.BCD: execute_bcd_conversion,
    Op.STORE_REGISTERS: execute_store_registers,
    Op.LOAD_REGISTERS: execute_load_registers,
}


@jax.jit
def execute_decoded(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Apply a decoded instruction. Traced once per instruction kind."""
    return HANDLERS[instruction.kind](state, instruction)


def execute(state: EmulatorState, instruction: int | DecodedInstruction) -> EmulatorState:
    """Execute single instruction.

    Raw words are decoded first, so an unknown word raises DecodeError before
    the state is touched.
    """
    if not isinstance(instruction, DecodedInstruction):
        instruction = decode(instruction)
    return execute_decoded(state, instruction)


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def _unpack_u16(value: jnp.uint16) -> tuple[jnp.uint8, jnp.uint8]:
    """Unpack uint16 into two bytes."""
    return (value >> 8).astype(jnp.uint8), (value & 0xFF).astype(jnp.uint8)


@jax.jit
def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch the big-endian word at PC and advance PC by 2."""
    instruction = _pack_u16(
        state.memory[state.pc & ADDRESS_MASK],
        state.memory[(state.pc + 1) & ADDRESS_MASK],
    )
    return state.replace(pc=state.pc + 2), instruction


def write_word(state: EmulatorState, address: int, word: int) -> EmulatorState:
    """Store a 16-bit word big-endian at address (used to poke programs in place)."""
    high, low = _unpack_u16(jnp.astype(word, jnp.uint16))
    memory = state.memory.at[address & ADDRESS_MASK].set(high)
    memory = memory.at[(address + 1) & ADDRESS_MASK].set(low)
    return state.replace(memory=memory)


@jax.jit
def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement both timers by one, stopping at zero."""
    return state.replace(
        delay_timer=jnp.where(state.delay_timer > 0, state.delay_timer - 1, 0).astype(jnp.uint8),
        sound_timer=jnp.where(state.sound_timer > 0, state.sound_timer - 1, 0).astype(jnp.uint8),
    )


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)
