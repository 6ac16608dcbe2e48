"""Virtual machine state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, field, PyTreeNode

from chipvm.constants import (
    MEMORY_SIZE, PROGRAM_START, MAX_PROGRAM_SIZE, FONT_START, FONT_DATA,
    SCREEN_WIDTH, SCREEN_HEIGHT, STACK_SIZE, NUM_REGISTERS, NUM_KEYS,
    NOT_WAITING, DEFAULT_SEED,
)


@dataclass(frozen=True)
class StackState:
    """Call stack: 16 return addresses and an 8-bit stack pointer."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))


class EmulatorState(PyTreeNode):
    """Complete machine state.

    ``waiting_register`` is the blocking-read latch: ``NOT_WAITING`` while the
    CPU runs, otherwise the index of the register awaiting a key press.
    """
    rng: jax.Array
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.astype(PROGRAM_START, jnp.uint16))
    display: jnp.ndarray = field(default_factory=lambda: jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.bool_))
    stack: StackState = StackState()
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    waiting_register: jnp.ndarray = field(default_factory=lambda: jnp.astype(NOT_WAITING, jnp.int8))


def load_program(state: EmulatorState, program: bytes) -> EmulatorState:
    """Copy a raw program image into memory starting at 0x200."""
    if len(program) > MAX_PROGRAM_SIZE:
        raise ValueError(
            f"Program is {len(program)} bytes, at most {MAX_PROGRAM_SIZE} fit above 0x{PROGRAM_START:03X}"
        )
    if not program:
        return state
    program_array = jnp.array(list(program), dtype=jnp.uint8)
    return state.replace(
        memory=state.memory.at[PROGRAM_START:PROGRAM_START + len(program)].set(program_array)
    )


def create_state(program: bytes = b"", seed: int = DEFAULT_SEED) -> EmulatorState:
    """Create power-on state with the font table and the program loaded."""
    state = EmulatorState(jax.random.PRNGKey(seed))
    state = state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(
        jnp.array(FONT_DATA, dtype=jnp.uint8)
    ))
    return load_program(state, program)
