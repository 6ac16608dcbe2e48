"""Tests for miscellaneous instructions (Fxxx)."""

import jax.numpy as jnp
from chipvm import execute, tick_timers, FONT_DATA, NOT_WAITING


class TestTimers:
    """Test timer-related instructions."""

    def test_misc_timer_instructions(self, fresh_state):
        """Test timer set and get operations."""
        state = execute(fresh_state, 0x6030)  # V0 = 48
        state = execute(state, 0xF015)  # delay timer = V0
        assert state.delay_timer == 48

        state = execute(state, 0x6120)  # V1 = 32
        state = execute(state, 0xF118)  # sound timer = V1
        assert state.sound_timer == 32

        state = execute(state, 0xF207)  # V2 = delay timer
        assert state.V[2] == 48

    def test_tick_timers_stops_at_zero(self, fresh_state):
        """Timers count down by one per tick and never go below zero."""
        state = execute(fresh_state, 0x6002)
        state = execute(state, 0xF015)  # delay = 2
        state = execute(state, 0x6001)
        state = execute(state, 0xF018)  # sound = 1

        state = tick_timers(state)
        assert state.delay_timer == 1
        assert state.sound_timer == 0

        state = tick_timers(tick_timers(state))
        assert state.delay_timer == 0
        assert state.sound_timer == 0


class TestBCD:
    """Test BCD conversion."""

    def test_misc_bcd_conversion(self, fresh_state):
        """Test BCD conversion with 156."""
        state = execute(fresh_state, 0x609C)  # V0 = 156
        state = execute(state, 0xA300)
        state = execute(state, 0xF033)

        assert state.memory[0x300] == 1
        assert state.memory[0x301] == 5
        assert state.memory[0x302] == 6

    def test_bcd_edge_cases(self, fresh_state):
        """Test BCD with 0 and 255."""
        state = execute(fresh_state, 0x6000)
        state = execute(state, 0xA400)
        state = execute(state, 0xF033)
        assert [int(b) for b in state.memory[0x400:0x403]] == [0, 0, 0]

        state = execute(state, 0x60FF)
        state = execute(state, 0xA500)
        state = execute(state, 0xF033)
        assert [int(b) for b in state.memory[0x500:0x503]] == [2, 5, 5]

    def test_bcd_wraps_at_end_of_memory(self, fresh_state):
        """Test BCD digits past 0xFFF land at the start of memory."""
        state = execute(fresh_state, 0x607B)  # 123
        state = execute(state, 0xAFFE)
        state = execute(state, 0xF033)

        assert state.memory[0xFFE] == 1
        assert state.memory[0xFFF] == 2
        assert state.memory[0x000] == 3


class TestFont:
    """Test font character addressing."""

    def test_font_all_characters(self, fresh_state):
        """FX29 - I = VX * 5 for every hex digit."""
        state = fresh_state
        for digit in range(16):
            state = execute(state, 0x6000 | digit)
            state = execute(state, 0xF029)
            assert state.I == digit * 5, f"Font address wrong for digit {digit:X}"

    def test_font_glyphs_loaded_at_zero(self, fresh_state):
        """The font table occupies 0x000-0x04F."""
        assert [int(b) for b in fresh_state.memory[:80]] == FONT_DATA
        assert [int(b) for b in fresh_state.memory[0x4B:0x50]] == [0xF0, 0x80, 0xF0, 0x80, 0x80]


class TestMemoryOperations:
    """Test store/load register operations."""

    def test_store_registers(self, fresh_state):
        """FX55 - Dump V0..VX inclusive, leave I alone."""
        state = fresh_state.replace(V=jnp.arange(16, dtype=jnp.uint8) + 0x10)
        state = execute(state, 0xA600)

        state = execute(state, 0xF355)

        assert [int(b) for b in state.memory[0x600:0x605]] == [0x10, 0x11, 0x12, 0x13, 0x00]
        assert state.I == 0x600

    def test_load_registers(self, fresh_state):
        """FX65 - Load V0..VX inclusive, leave the rest and I alone."""
        state = fresh_state.replace(
            memory=fresh_state.memory.at[0xF06:0xF09].set(jnp.array([0x0A, 0x0B, 0x0C], dtype=jnp.uint8)),
            V=fresh_state.V.at[3].set(0x77),
        )
        state = execute(state, 0xAF06)

        state = execute(state, 0xF265)

        assert [int(v) for v in state.V[0:4]] == [0x0A, 0x0B, 0x0C, 0x77]
        assert state.I == 0xF06

    def test_store_load_round_trip(self, fresh_state):
        """FX55 then FX65 restores the registers."""
        state = execute(fresh_state, 0x6001)
        state = execute(state, 0x6102)
        state = execute(state, 0x6203)
        state = execute(state, 0xA300)
        state = execute(state, 0xF255)

        state = execute(state, 0x6000)
        state = execute(state, 0x6100)
        state = execute(state, 0x6200)
        state = execute(state, 0xF265)

        assert [int(v) for v in state.V[0:3]] == [1, 2, 3]


class TestIndexArithmetic:
    """Test FX1E."""

    def test_add_to_index(self, fresh_state):
        """FX1E - Add VX to I register."""
        state = execute(fresh_state, 0x6010)
        state = execute(state, 0xA300)
        state = execute(state, 0xF01E)

        assert state.I == 0x310

    def test_add_to_index_keeps_sixteen_bits(self, fresh_state):
        """FX1E - No 12-bit wrap and no flag."""
        state = execute(fresh_state, 0x60FF)
        state = execute(state, 0xAF80)
        state = execute(state, 0xF01E)

        assert state.I == 0x107F
        assert state.V[15] == 0

    def test_add_to_index_wraps_sixteen_bits(self, fresh_state):
        """FX1E - Wrap at 0xFFFF."""
        state = fresh_state.replace(I=jnp.astype(0xFFFF, jnp.uint16))
        state = execute(state, 0x6002)
        state = execute(state, 0xF01E)

        assert state.I == 0x0001


class TestWaitForKey:
    """Test FX0A at the instruction level."""

    def test_wait_for_key_latches_register(self, fresh_state):
        """FX0A - Set the latch, write nothing."""
        state = execute(fresh_state, 0xF80A)

        assert state.waiting_register == 8
        assert state.V[8] == 0
        assert state.pc == fresh_state.pc

    def test_fresh_state_is_running(self, fresh_state):
        assert fresh_state.waiting_register == NOT_WAITING
