"""Display operations."""

import jax.numpy as jnp
from chipvm.constants import FLAG_REGISTER
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction
from chipvm.framebuffer import draw_sprite


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N, VF = collision."""
    display, collision = draw_sprite(
        state.display,
        state.memory,
        state.I,
        state.V[instruction.x],
        state.V[instruction.y],
        instruction.n,
    )
    return state.replace(
        display=display,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8))
    )
