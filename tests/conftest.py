"""Test configuration and fixtures for the virtual machine tests."""

import pytest
import jax.numpy as jnp
from chipvm import create_state, Machine
from chipvm.logging import CycleLogger


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def quiet_logger():
    return CycleLogger(log_level="CRITICAL", use_colors=False, show_timestamps=False)


@pytest.fixture
def make_machine(quiet_logger):
    """Build a machine around a list of 16-bit instruction words."""
    def _make(words=(), clock_hz=1024, **kwargs):
        program = b"".join(word.to_bytes(2, "big") for word in words)
        return Machine(program, clock_hz=clock_hz, logger=quiet_logger, **kwargs)
    return _make


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )
