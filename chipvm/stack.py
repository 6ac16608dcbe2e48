"""Call stack operations.

The stack holds ``STACK_SIZE`` return addresses. The pointer is an 8-bit
counter that wraps, and slots are addressed ``pointer mod STACK_SIZE``: a push
past the sixteenth entry overwrites the oldest slot, and a pop on an empty
stack wraps the pointer to 255 and reads the last slot. Neither case raises.
"""

import jax.numpy as jnp
from chipvm.constants import STACK_SIZE
from chipvm.state import StackState


def push(stack: StackState, address: jnp.ndarray) -> StackState:
    """Push address onto stack."""
    slot = stack.pointer % STACK_SIZE
    new_data = stack.data.at[slot].set(jnp.astype(address, jnp.uint16))
    return stack.replace(data=new_data, pointer=jnp.astype(stack.pointer + 1, jnp.uint8))


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray]:
    """Pop address from stack."""
    new_pointer = jnp.astype(stack.pointer - 1, jnp.uint8)
    popped_address = stack.data[new_pointer % STACK_SIZE]
    return stack.replace(pointer=new_pointer), popped_address
