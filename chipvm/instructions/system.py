"""System instructions (0x0xxx)."""

import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction
from chipvm.framebuffer import clear
from chipvm.stack import push, pop


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=clear(state.display))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    stack, address = pop(state.stack)
    return state.replace(stack=stack, pc=address)


def execute_call_machine(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """0NNN - Call machine code routine at NNN, treated as an ordinary call."""
    return state.replace(
        stack=push(state.stack, state.pc),
        pc=jnp.astype(instruction.nnn, jnp.uint16),
    )
