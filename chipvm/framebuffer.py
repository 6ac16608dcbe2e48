"""Monochrome 64x32 frame buffer.

The buffer is a boolean array of shape ``(SCREEN_WIDTH, SCREEN_HEIGHT)``
indexed ``[x, y]``. Coordinates wrap on both axes, for reads as well as
writes, so ``(x, y)``, ``(x + 64, y)`` and ``(x, y + 32)`` are the same cell.
"""

import jax.numpy as jnp
import numpy as np

from chipvm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, ADDRESS_MASK

SPRITE_WIDTH = 8
MAX_SPRITE_HEIGHT = 15

# Row/column offsets of every pixel a sprite can cover
_rows, _cols = jnp.meshgrid(jnp.arange(MAX_SPRITE_HEIGHT), jnp.arange(SPRITE_WIDTH), indexing='ij')


def create_display() -> jnp.ndarray:
    """Return a blank frame buffer."""
    return jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.bool_)


def get_pixel(display: jnp.ndarray, x, y) -> jnp.ndarray:
    """Read the pixel at (x, y), wrapping both coordinates."""
    return display[x % SCREEN_WIDTH, y % SCREEN_HEIGHT]


def flip_pixel(display: jnp.ndarray, x, y) -> jnp.ndarray:
    """Invert the pixel at (x, y), wrapping both coordinates."""
    x = x % SCREEN_WIDTH
    y = y % SCREEN_HEIGHT
    return display.at[x, y].set(~display[x, y])


def clear(display: jnp.ndarray) -> jnp.ndarray:
    """Turn every pixel off."""
    return jnp.zeros_like(display)


def sprite_mask(memory: jnp.ndarray, address, x, y, height) -> jnp.ndarray:
    """Build the set of pixels a sprite would flip.

    Row ``r`` of the sprite is the byte at ``address + r``; its bits are laid
    out most significant first starting at column ``x``. Rows at or past
    ``height`` are ignored. Sprite pixels wrap around the screen edges.
    """
    row_bytes = memory[(address + _rows) & ADDRESS_MASK]
    bits = ((row_bytes >> (SPRITE_WIDTH - 1 - _cols)) & 1).astype(jnp.bool_)
    bits = bits & (_rows < height)

    xs = (x + _cols) % SCREEN_WIDTH
    ys = (y + _rows) % SCREEN_HEIGHT
    # Sprites are narrower and shorter than the screen, so targets never repeat
    return jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.bool_).at[xs, ys].set(bits)


def draw_sprite(display: jnp.ndarray, memory: jnp.ndarray, address, x, y, height) -> tuple[jnp.ndarray, jnp.ndarray]:
    """XOR a sprite into the display.

    Returns the new display and the collision flag, which is set when at least
    one pixel went from on to off.
    """
    mask = sprite_mask(memory, address, x, y, height)
    collision = jnp.any(display & mask)
    return display ^ mask, collision


def to_text(display, on: str = "O", off: str = " ") -> str:
    """Render the display as text, one line per row."""
    pixels = np.asarray(display)
    lines = []
    for y in range(SCREEN_HEIGHT):
        lines.append("".join(on if pixels[x, y] else off for x in range(SCREEN_WIDTH)))
    return "\n".join(lines)
