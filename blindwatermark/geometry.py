"""
Geometric transform detection and correction

Flips and quarter-turn rotations move DCT blocks around, so a watermarked
image that was mirrored or rotated has to be put back before extraction.
Detection compares a small window at the centre of a reference channel
(captured right after embedding) against the candidate under each mapping.
"""

from collections import namedtuple

import numpy as np

ROTATION_ANGLES = (0, 90, 180, 270)
MAX_SAMPLE_SIZE = 10
MAX_TRANSFORM_SAMPLE_SIZE = 64


class GeometricTransform(namedtuple('GeometricTransform', ['horizontal_flip', 'vertical_flip', 'rotation'])):
    """Detected transform: two flip flags and a rotation angle in degrees."""

    __slots__ = ()

    @property
    def is_identity(self):
        return not self.horizontal_flip and not self.vertical_flip and self.rotation == 0


# The eight distinct flip/rotation combinations, simplest first. Both flips
# together equal a 180 degree turn, so that pair is left out.
TRANSFORM_HYPOTHESES = (
    GeometricTransform(False, False, 0),
    GeometricTransform(True, False, 0),
    GeometricTransform(False, True, 0),
    GeometricTransform(False, False, 90),
    GeometricTransform(False, False, 180),
    GeometricTransform(False, False, 270),
    GeometricTransform(True, False, 90),
    GeometricTransform(False, True, 90),
)


def _as_channel(channel):
    data = np.asarray(channel)
    if data.ndim == 1 and data.size == 0:
        return data.reshape(0, 0)
    return data


def flip_horizontal(channel):
    """Mirror along the X axis (reverse every row)."""
    return np.ascontiguousarray(_as_channel(channel)[:, ::-1])


def flip_vertical(channel):
    """Mirror along the Y axis (reverse the row order)."""
    return np.ascontiguousarray(_as_channel(channel)[::-1])


def rotate(channel, angle):
    """
    Rotate a channel clockwise by a multiple of 90 degrees.

    90 and 270 swap height and width, 180 keeps them. Any other angle
    returns the channel unchanged.

    Args:
        channel: 2-D array-like
        angle: 90, 180 or 270

    Returns:
        np.ndarray: Rotated channel
    """
    data = _as_channel(channel)
    if angle == 90:
        return np.ascontiguousarray(np.rot90(data, -1))
    if angle == 180:
        return np.ascontiguousarray(data[::-1, ::-1])
    if angle == 270:
        return np.ascontiguousarray(np.rot90(data, 1))
    return data


def _window(height, width, sample_size):
    start_y = height // 2 - sample_size // 2
    start_x = width // 2 - sample_size // 2
    ys = np.arange(start_y, start_y + sample_size).reshape(-1, 1)
    xs = np.arange(start_x, start_x + sample_size).reshape(1, -1)
    return ys, xs


def detect_horizontal_flip(reference, candidate):
    """
    Check whether candidate is the reference mirrored left to right.

    Returns False when the shapes differ or the channel is empty.
    """
    ref = _as_channel(reference).astype(np.int64)
    cand = _as_channel(candidate).astype(np.int64)
    height, width = ref.shape
    if height == 0 or width == 0 or cand.shape != ref.shape:
        return False

    sample_size = min(MAX_SAMPLE_SIZE, width // 4, height)
    ys, xs = _window(height, width, sample_size)
    window = ref[ys, xs]

    direct = np.abs(window - cand[ys, xs]).sum()
    mirrored = np.abs(window - cand[ys, width - 1 - xs]).sum()
    return bool(mirrored < direct)


def detect_vertical_flip(reference, candidate):
    """
    Check whether candidate is the reference mirrored top to bottom.

    Returns False when the shapes differ or the channel is empty.
    """
    ref = _as_channel(reference).astype(np.int64)
    cand = _as_channel(candidate).astype(np.int64)
    height, width = ref.shape
    if height == 0 or width == 0 or cand.shape != ref.shape:
        return False

    sample_size = min(MAX_SAMPLE_SIZE, height // 4, width)
    ys, xs = _window(height, width, sample_size)
    window = ref[ys, xs]

    direct = np.abs(window - cand[ys, xs]).sum()
    mirrored = np.abs(window - cand[height - 1 - ys, xs]).sum()
    return bool(mirrored < direct)


def detect_rotation(reference, candidate):
    """
    Estimate the clockwise rotation that maps reference onto candidate.

    Only angles compatible with the candidate's dimensions are considered:
    0/180 need identical shapes, 90/270 need transposed ones. The angle with
    the smallest summed absolute difference over the centre window wins;
    ties keep the earlier angle in 0, 90, 180, 270 order.

    Returns:
        int: 0, 90, 180 or 270 (0 when no angle is dimensionally possible)
    """
    ref = _as_channel(reference).astype(np.int64)
    cand = _as_channel(candidate).astype(np.int64)
    height, width = ref.shape
    if height == 0 or width == 0:
        return 0

    possible_0_or_180 = cand.shape == (height, width)
    possible_90_or_270 = cand.shape == (width, height)
    if not possible_0_or_180 and not possible_90_or_270:
        return 0

    sample_size = min(MAX_SAMPLE_SIZE, min(height, width) // 4)
    ys, xs = _window(height, width, sample_size)
    window = ref[ys, xs]

    differences = {}
    if possible_0_or_180:
        differences[0] = np.abs(window - cand[ys, xs]).sum()
        differences[180] = np.abs(window - cand[height - 1 - ys, width - 1 - xs]).sum()
    if possible_90_or_270:
        differences[90] = np.abs(window - cand[xs, height - 1 - ys]).sum()
        differences[270] = np.abs(window - cand[width - 1 - xs, ys]).sum()

    best_angle = 0
    best_difference = None
    for angle in ROTATION_ANGLES:
        if angle not in differences:
            continue
        if best_difference is None or differences[angle] < best_difference:
            best_angle = angle
            best_difference = differences[angle]
    return best_angle


def detect_transform(reference, candidate):
    """
    Find the single flip/rotation combination that maps reference onto candidate.

    Each hypothesis is undone with correct_geometric_transform and the centre
    window of the result is compared with the reference. The individual
    detectors are not combined: a 180 degree turn looks like two flips and a
    vertical flip looks like a rotation, so their answers would undo the
    same change twice.

    Hypotheses are tried simplest first and only replaced by a strictly
    smaller difference, so ties go to the identity.

    Returns:
        GeometricTransform: Identity when no hypothesis fits the shapes
    """
    ref = _as_channel(reference).astype(np.int64)
    cand = _as_channel(candidate)
    height, width = ref.shape
    identity = GeometricTransform(False, False, 0)
    if height == 0 or width == 0:
        return identity

    sample_size = min(MAX_TRANSFORM_SAMPLE_SIZE, height, width)
    ys, xs = _window(height, width, sample_size)
    window = ref[ys, xs]

    best = identity
    best_difference = None
    for hypothesis in TRANSFORM_HYPOTHESES:
        corrected = correct_geometric_transform(cand, *hypothesis)
        if corrected.shape != ref.shape:
            continue
        difference = np.abs(window - corrected[ys, xs].astype(np.int64)).sum()
        if best_difference is None or difference < best_difference:
            best = hypothesis
            best_difference = difference
    return best


def correct_geometric_transform(channel, horizontal_flip, vertical_flip, rotation_angle):
    """
    Undo a detected transform.

    The rotation is undone first, then the horizontal flip, then the vertical
    flip: the inverse of rotate-then-flip.

    Args:
        channel: Transformed channel
        horizontal_flip: Whether a horizontal flip was detected
        vertical_flip: Whether a vertical flip was detected
        rotation_angle: Detected clockwise rotation (0, 90, 180, 270)

    Returns:
        np.ndarray: Corrected channel
    """
    corrected = _as_channel(channel)

    inverse_angle = (360 - rotation_angle) % 360
    if inverse_angle > 0:
        corrected = rotate(corrected, inverse_angle)
    if horizontal_flip:
        corrected = flip_horizontal(corrected)
    if vertical_flip:
        corrected = flip_vertical(corrected)

    return corrected
