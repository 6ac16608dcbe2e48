"""Tests for display operations (DXYN) and the frame buffer."""

import jax.numpy as jnp
import numpy as np
import pytest
from chipvm import execute, SCREEN_WIDTH, SCREEN_HEIGHT
from chipvm import framebuffer
from conftest import setup_sprite_in_memory


def draw_setup(state, address, sprite, x, y):
    """Load a sprite, point I at it and put the coordinates in V0/V1."""
    state = setup_sprite_in_memory(state, address, sprite)
    state = execute(state, 0x6000 | x)
    state = execute(state, 0x6100 | y)
    return execute(state, 0xA000 | address)


class TestBasicSprites:
    """Test basic sprite drawing."""

    def test_basic_sprite_draw(self, fresh_state):
        """Test basic sprite drawing without collision."""
        state = draw_setup(fresh_state, 0x300, [0xC0, 0xC0], 10, 5)

        state = execute(state, 0xD012)

        assert state.display[10, 5]
        assert state.display[11, 5]
        assert state.display[10, 6]
        assert state.display[11, 6]
        assert not state.display[12, 5]
        assert jnp.sum(state.display) == 4
        assert state.V[15] == 0

    def test_collision_detection(self, fresh_state):
        """Test collision flag when sprite overlaps existing pixels."""
        state = draw_setup(fresh_state, 0x400, [0x80], 20, 10)

        state = execute(state, 0xD011)
        assert state.display[20, 10]
        assert state.V[15] == 0

        state = execute(state, 0xD011)
        assert not state.display[20, 10]
        assert state.V[15] == 1

    def test_xor_twice_restores_display(self, fresh_state):
        """Drawing the same sprite twice restores the original pixels."""
        state = fresh_state.replace(display=fresh_state.display.at[9, 15].set(True).at[30, 2].set(True))
        state = draw_setup(state, 0x500, [0xF0, 0x81], 8, 15)
        before = np.array(state.display)

        state = execute(state, 0xD012)
        assert state.V[15] == 1  # (9, 15) was already on
        state = execute(state, 0xD012)

        np.testing.assert_array_equal(np.array(state.display), before)
        assert state.V[15] == 1

    def test_no_collision_when_pixels_only_turn_on(self, fresh_state):
        """Lit pixels outside the sprite's set bits do not collide."""
        state = fresh_state.replace(display=fresh_state.display.at[9, 15].set(True))
        state = draw_setup(state, 0x500, [0xA0], 8, 15)  # bits at x=8 and x=10

        state = execute(state, 0xD011)

        assert state.V[15] == 0
        assert state.display[9, 15]

    def test_vf_cleared_without_collision(self, fresh_state):
        """VF is cleared to 0 when nothing collides."""
        state = execute(fresh_state, 0x6F01)
        state = draw_setup(state, 0xB00, [0x80], 5, 5)

        state = execute(state, 0xD011)

        assert state.V[15] == 0

    def test_zero_height_draws_nothing(self, fresh_state):
        """DXY0 flips no pixels."""
        state = draw_setup(fresh_state, 0x300, [0xFF], 0, 0)

        state = execute(state, 0xD010)

        assert jnp.sum(state.display) == 0
        assert state.V[15] == 0


class TestScreenWrapping:
    """Test toroidal wrapping."""

    def test_sprite_wraps_right_edge(self, fresh_state):
        """A sprite at x=60 continues at x=0."""
        state = draw_setup(fresh_state, 0x600, [0xFF], 60, 0)

        state = execute(state, 0xD011)

        for x in (60, 61, 62, 63, 0, 1, 2, 3):
            assert state.display[x, 0], f"pixel {x} not drawn"
        assert jnp.sum(state.display) == 8

    def test_sprite_wraps_bottom_edge(self, fresh_state):
        """A sprite at y=30 continues at y=0."""
        state = draw_setup(fresh_state, 0x700, [0x80, 0x80, 0x80], 0, 30)

        state = execute(state, 0xD013)

        assert state.display[0, 30]
        assert state.display[0, 31]
        assert state.display[0, 0]

    def test_start_coordinates_wrap(self, fresh_state):
        """Coordinates past the screen size are reduced first."""
        state = draw_setup(fresh_state, 0x800, [0x80], 70, 37)

        state = execute(state, 0xD011)

        assert state.display[6, 5]

    def test_collision_detected_across_wrap(self, fresh_state):
        """A wrapped pixel collides like any other."""
        state = fresh_state.replace(display=fresh_state.display.at[1, 0].set(True))
        state = draw_setup(state, 0x600, [0xFF], 60, 0)

        state = execute(state, 0xD011)

        assert state.V[15] == 1
        assert not state.display[1, 0]

    def test_sprite_rows_wrap_through_memory(self, fresh_state):
        """Sprite rows past 0xFFF are read from 0x000."""
        state = setup_sprite_in_memory(fresh_state, 0xFFF, [0x80])
        state = execute(state, 0x6000)
        state = execute(state, 0x6100)
        state = execute(state, 0xAFFF)

        state = execute(state, 0xD012)  # second row is font byte 0xF0

        assert state.display[0, 0]
        assert [bool(state.display[x, 1]) for x in range(5)] == [True, True, True, True, False]


class TestSpriteVariations:
    """Test different sprite configurations."""

    def test_different_sprite_heights(self, fresh_state):
        """Only the first N rows are drawn."""
        state = draw_setup(fresh_state, 0x900, [0x80, 0x40, 0x20, 0x10, 0x08], 10, 8)

        state = execute(state, 0xD013)

        assert state.display[10, 8]
        assert state.display[11, 9]
        assert state.display[12, 10]
        assert not state.display[13, 11]

    def test_font_glyph(self, fresh_state):
        """FX29 then DXY5 draws a hex digit."""
        state = execute(fresh_state, 0x620A)  # V2 = 0xA
        state = execute(state, 0xF229)
        state = execute(state, 0x6000)
        state = execute(state, 0x6100)

        state = execute(state, 0xD015)

        text = framebuffer.to_text(state.display).splitlines()
        assert [line[:4] for line in text[:5]] == ["OOOO", "O  O", "OOOO", "O  O", "O  O"]


class TestFrameBuffer:
    """Test frame buffer helpers directly."""

    def test_flip_and_get_wrap(self):
        display = framebuffer.create_display()

        display = framebuffer.flip_pixel(display, 3 + SCREEN_WIDTH, 4)

        assert framebuffer.get_pixel(display, 3, 4)
        assert framebuffer.get_pixel(display, 3 + SCREEN_WIDTH, 4)
        assert framebuffer.get_pixel(display, 3, 4 + SCREEN_HEIGHT)

    def test_flip_twice_restores(self):
        display = framebuffer.create_display()

        display = framebuffer.flip_pixel(framebuffer.flip_pixel(display, 10, 10), 10, 10)

        assert not jnp.any(display)

    def test_clear(self):
        display = framebuffer.flip_pixel(framebuffer.create_display(), 0, 0)

        assert not jnp.any(framebuffer.clear(display))

    @pytest.mark.parametrize("x,y", [(0, 0), (63, 31), (17, 9)])
    def test_wrap_invariant(self, x, y):
        display = framebuffer.flip_pixel(framebuffer.create_display(), x, y)
        for dx, dy in [(0, 0), (SCREEN_WIDTH, 0), (0, SCREEN_HEIGHT), (2 * SCREEN_WIDTH, SCREEN_HEIGHT)]:
            assert framebuffer.get_pixel(display, x + dx, y + dy)

    def test_to_text_shape(self):
        text = framebuffer.to_text(framebuffer.create_display())
        lines = text.split("\n")
        assert len(lines) == SCREEN_HEIGHT
        assert all(len(line) == SCREEN_WIDTH for line in lines)
