"""
Coefficient positions shared by the embedder and the extractor
"""

import math

from .exceptions import InvalidParameterError

DEFAULT_BLOCK_SIZE = 8
DEFAULT_STRENGTH = 36.0
DEFAULT_POSITION = (3, 4)

# Mid-frequency neighbours of the default position
DEFAULT_MULTI_POINTS = ((3, 5), (4, 3), (5, 3))

MULTI_POINT_STRENGTH_FACTOR = 0.8


def validate_position(position, block_size):
    """
    Check that a (row, col) pair lies inside a block.

    Out-of-range positions are rejected, never clamped or wrapped.

    Returns:
        tuple: (row, col) as ints
    """
    try:
        row, col = position
    except (TypeError, ValueError):
        raise InvalidParameterError(f"Position must be a (row, col) pair, got {position!r}")

    if int(row) != row or int(col) != col:
        raise InvalidParameterError(f"Position must contain integers, got {position!r}")
    row, col = int(row), int(col)

    if not (0 <= row < block_size and 0 <= col < block_size):
        raise InvalidParameterError(
            f"Position ({row}, {col}) is outside a {block_size}x{block_size} block"
        )
    return row, col


def validate_strength(strength):
    if not math.isfinite(strength) or strength <= 0:
        raise InvalidParameterError(f"Strength must be a positive number, got {strength}")
    return float(strength)


def symmetric_positions(position, block_size):
    """
    Mirrors of a position within its block.

    Returns the horizontal mirror, the vertical mirror and the 180 degree
    mirror, in that order.
    """
    row, col = position
    last = block_size - 1
    return [
        (row, last - col),
        (last - row, col),
        (last - row, last - col),
    ]


def multi_point_positions(points, block_size):
    """Extra positions that fit inside the block; the rest are skipped."""
    return [
        (int(row), int(col)) for row, col in points
        if 0 <= row < block_size and 0 <= col < block_size
    ]


def carrier_blocks(height, width, block_size):
    """
    Number of complete tiles per row and in total.

    Only complete tiles carry bits: a partial edge tile loses its padding on
    reconstruction, which would change the coefficient that was written.
    Marks written by codecs that also fill partial edge tiles are read
    differently on images whose width is not a multiple of block_size: the
    bit order diverges after the first row of blocks.

    Returns:
        tuple: (blocks_per_row, total_blocks)
    """
    blocks_x = width // block_size
    blocks_y = height // block_size
    return blocks_x, blocks_x * blocks_y
