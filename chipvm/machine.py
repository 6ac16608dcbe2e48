"""Host-facing virtual CPU.

``Machine`` owns an ``EmulatorState`` and is the only thing a front end talks
to. Its write surface is ``advance``, ``handle_key_event`` and the clock rate
setters; everything else is a read-only view of the state.
"""

from typing import Optional

import chex
import jax.numpy as jnp
import numpy as np

from chipvm.constants import (
    DEFAULT_CLOCK_HZ, DEFAULT_SEED, NOT_WAITING, NUM_KEYS, STACK_SIZE, TIMER_INTERVAL,
)
from chipvm.decode import DecodeError, decode
from chipvm.emulator import execute_decoded, fetch, tick_timers, load_rom
from chipvm.framebuffer import get_pixel
from chipvm.logging import CycleLogger, ConsoleLogger
from chipvm.state import EmulatorState, create_state


@chex.dataclass(frozen=True)
class MachineSnapshot:
    """Register, timer and stack values at one point in time."""
    registers: np.ndarray
    I: int
    pc: int
    delay_timer: int
    sound_timer: int
    stack: np.ndarray
    stack_depth: int
    awaiting_key: Optional[int]
    clock_rate: float


class Machine:
    """Virtual CPU driven by wall-clock time and key events.

    Time is reconciled with two countdowns. Each ``advance(dt)`` subtracts
    ``dt`` from both; the instruction countdown then runs one step per clock
    period it is overdue, and the timer countdown ticks the delay and sound
    timers once per 1/60 s it is overdue. A long ``dt`` therefore executes a
    burst of catch-up instructions in a single call.
    """

    def __init__(
        self,
        program: bytes = b"",
        clock_hz: float = DEFAULT_CLOCK_HZ,
        seed: int = DEFAULT_SEED,
        logger: Optional[ConsoleLogger] = None,
        state: Optional[EmulatorState] = None,
    ):
        self.state = state if state is not None else create_state(program, seed)
        self.logger = logger if logger is not None else CycleLogger()
        self._clock_interval = 0.0
        self._cycle_cooldown = 0.0
        self._timer_cooldown = 0.0
        self.set_clock_rate(clock_hz)

    @classmethod
    def from_rom_file(cls, filename: str, **kwargs) -> "Machine":
        """Create a machine with the ROM at ``filename`` loaded at 0x200."""
        machine = cls(**kwargs)
        machine.state = load_rom(machine.state, filename)
        machine.logger.info(f"Loaded {filename}")
        return machine

    # Clock

    @property
    def clock_rate(self) -> float:
        """Instructions per second."""
        return 1.0 / self._clock_interval

    def set_clock_rate(self, hz: float):
        """Set the instruction rate. Applies from the next advance call."""
        if hz <= 0:
            raise ValueError(f"Clock rate must be positive, got {hz}")
        self._clock_interval = 1.0 / hz
        if isinstance(self.logger, CycleLogger):
            self.logger.log_clock_change(hz)

    def multiply_clock_rate(self, factor: float):
        """Scale the instruction rate, e.g. 1.25 to speed up or 0.8 to slow down."""
        self.set_clock_rate(self.clock_rate * factor)

    # Events

    def advance(self, dt: float) -> int:
        """Run the machine for ``dt`` seconds of wall-clock time.

        Returns the number of instructions executed. Steps taken while the CPU
        waits for a key consume time but are not counted.
        """
        executed = 0
        self._cycle_cooldown -= dt
        while self._cycle_cooldown <= 0.0:
            self._cycle_cooldown += self._clock_interval
            if self.step():
                executed += 1

        self._timer_cooldown -= dt
        while self._timer_cooldown <= 0.0:
            self._timer_cooldown += TIMER_INTERVAL
            self.state = tick_timers(self.state)

        if isinstance(self.logger, CycleLogger):
            self.logger.log_advance(dt, executed)
        return executed

    def step(self) -> bool:
        """Fetch, decode and execute one instruction.

        Returns False without doing anything while waiting for a key, True
        otherwise. Raises DecodeError for an unknown instruction word; PC has
        already moved past it at that point.
        """
        if self.awaiting_key is not None:
            return False

        address = int(self.state.pc)
        self.state, word = fetch(self.state)
        try:
            instruction = decode(int(word))
        except DecodeError as e:
            self.logger.error(f"{e} at 0x{address:03X}")
            raise
        self.state = execute_decoded(self.state, instruction)
        return True

    def handle_key_event(self, key: int, pressed: bool):
        """Record a key going down or up.

        A press while the CPU waits for a key stores the key in the waiting
        register and lets execution resume on the next advance.
        """
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Key must be in 0..{NUM_KEYS - 1}, got {key}")
        state = self.state.replace(keypad=self.state.keypad.at[key].set(pressed))

        waiting = self.awaiting_key
        if pressed and waiting is not None:
            state = state.replace(
                V=state.V.at[waiting].set(key),
                waiting_register=jnp.astype(NOT_WAITING, jnp.int8),
            )
            self.logger.debug(f"Key {key:X} released wait on V{waiting:X}")
        self.state = state

    # Read-only views

    @property
    def awaiting_key(self) -> Optional[int]:
        """Index of the register waiting for a key press, or None if running."""
        register = int(self.state.waiting_register)
        return None if register == NOT_WAITING else register

    @property
    def display(self) -> np.ndarray:
        """Copy of the frame buffer, shape (64, 32), indexed [x, y]."""
        return np.array(self.state.display, dtype=np.bool_)

    def get_pixel(self, x: int, y: int) -> bool:
        return bool(get_pixel(self.state.display, x, y))

    def snapshot(self) -> MachineSnapshot:
        state = self.state
        depth = int(state.stack.pointer)
        return MachineSnapshot(
            registers=np.array(state.V, dtype=np.uint8),
            I=int(state.I),
            pc=int(state.pc),
            delay_timer=int(state.delay_timer),
            sound_timer=int(state.sound_timer),
            stack=np.array(state.stack.data[:min(depth, STACK_SIZE)], dtype=np.uint16),
            stack_depth=depth,
            awaiting_key=self.awaiting_key,
            clock_rate=self.clock_rate,
        )

    def __repr__(self) -> str:
        return (
            f"Machine(registers={np.asarray(self.state.V).tolist()}, "
            f"address_register=0x{int(self.state.I):04X}, "
            f"program_counter=0x{int(self.state.pc):03X})"
        )
