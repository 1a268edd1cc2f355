"""
Watermark Embedder - Writes payload bits into DCT coefficients of a channel
"""

import logging

import numpy as np

from . import bits as bitcodec
from .dct import DCT, check_block_size
from .exceptions import InsufficientCapacityError, InvalidParameterError
from .obfuscation import PermutationObfuscation
from .positions import (
    DEFAULT_BLOCK_SIZE,
    DEFAULT_MULTI_POINTS,
    DEFAULT_POSITION,
    DEFAULT_STRENGTH,
    MULTI_POINT_STRENGTH_FACTOR,
    carrier_blocks,
    multi_point_positions,
    symmetric_positions,
    validate_position,
    validate_strength,
)

LOGGER = logging.getLogger(__name__)


class EmbedResult:
    """
    Outcome of an embedding pass.

    Attributes:
        channel: Watermarked channel (uint8, same shape as the input)
        bits_total: Header plus payload bits that were requested
        bits_embedded: Bits actually written
        capacity: Number of carrier blocks in the channel
    """

    def __init__(self, channel, bits_total, bits_embedded, capacity):
        self.channel = channel
        self.bits_total = bits_total
        self.bits_embedded = bits_embedded
        self.capacity = capacity

    @property
    def truncated(self):
        return self.bits_embedded < self.bits_total

    def __repr__(self):
        return (f"EmbedResult(shape={self.channel.shape}, bits_embedded={self.bits_embedded}/"
                f"{self.bits_total}, capacity={self.capacity})")


class WatermarkEmbedder:
    """
    Embeds a byte payload into one channel using block DCT coefficients.

    The embedder:
    1. Converts the payload to bits and prepends a 16-bit length header
    2. Splits the channel into DCT blocks
    3. Overwrites one coefficient per block with +strength (bit 1) or
       -strength (bit 0), walking blocks in row-major order
    4. Optionally repeats the bit at mirrored and neighbouring positions
    5. Inverse transforms, rounds and clamps to [0, 255]
    """

    def __init__(self, block_size=DEFAULT_BLOCK_SIZE, strength=DEFAULT_STRENGTH,
                 position=DEFAULT_POSITION, symmetric=False, multi_point=False,
                 multi_points=DEFAULT_MULTI_POINTS, key=None, strict=False,
                 dct=None, logger=None):
        """
        Initialize the embedder.

        Args:
            block_size: DCT tile size (>= 1)
            strength: Magnitude written into the chosen coefficient (> 0)
            position: (row, col) of the coefficient inside a block
            symmetric: Also write the three mirrored positions
            multi_point: Also write multi_points at reduced strength
            multi_points: Extra (row, col) positions for multi-point embedding
            key: Optional key for permutation obfuscation of payload bits
            strict: Raise InsufficientCapacityError instead of truncating
            dct: DCT engine to use (a cached-mode engine if omitted)
            logger: Logger to report progress to
        """
        check_block_size(block_size)
        self.block_size = block_size
        self.strength = validate_strength(strength)
        self.position = validate_position(position, block_size)
        self.symmetric = symmetric
        self.multi_point = multi_point
        self.multi_points = [tuple(point) for point in multi_points]
        self.obfuscation = PermutationObfuscation(key) if key else None
        self.strict = strict
        self.dct = dct if dct is not None else DCT()
        self.logger = logger if logger is not None else LOGGER

    def symmetric_positions(self):
        return symmetric_positions(self.position, self.block_size)

    def multi_point_positions(self):
        return multi_point_positions(self.multi_points, self.block_size)

    def capacity(self, height, width):
        """Number of bits (header included) a height x width channel can carry."""
        return carrier_blocks(height, width, self.block_size)[1]

    def embed(self, channel, payload):
        """
        Embed a payload into a single channel.

        Args:
            channel: 2-D array-like of intensities in [0, 255]
            payload: bytes or str (str is encoded as UTF-8)

        Returns:
            EmbedResult: Watermarked channel and capacity bookkeeping

        Raises:
            PayloadTooLargeError: Payload exceeds 65535 bits
            InsufficientCapacityError: strict mode and too few blocks
        """
        data = np.asarray(channel, dtype=np.float64)
        if data.ndim != 2:
            raise InvalidParameterError(f"Expected a 2-D channel, got shape {data.shape}")
        height, width = data.shape

        payload_bits = bitcodec.text_to_bits(payload)
        self.logger.debug("Payload is %d bytes, %d bits", payload_bits.size // 8, payload_bits.size)
        if self.obfuscation is not None:
            payload_bits = self.obfuscation.shuffle(payload_bits)
        all_bits = bitcodec.frame(payload_bits)

        blocks_x, capacity = carrier_blocks(height, width, self.block_size)
        bits_to_embed = min(all_bits.size, capacity)
        self.logger.info("Available blocks: %d, bits to embed: %d", capacity, all_bits.size)

        if bits_to_embed < all_bits.size:
            if self.strict:
                raise InsufficientCapacityError(all_bits.size, capacity)
            self.logger.warning(
                "Not enough DCT blocks, watermark truncated to %d of %d bits",
                bits_to_embed, all_bits.size
            )

        coefficients = self.dct.block_dct(data, self.block_size)
        self._embed_bits(coefficients, all_bits[:bits_to_embed], blocks_x)
        reconstructed = self.dct.block_idct(coefficients, height, width, self.block_size)

        watermarked = np.clip(np.rint(reconstructed), 0, 255).astype(np.uint8)
        self.logger.debug("Embedded %d bits", bits_to_embed)

        return EmbedResult(watermarked, all_bits.size, bits_to_embed, capacity)

    def embed_channels(self, channels, payload, channel='blue'):
        """
        Embed into one channel of a {'red', 'green', 'blue'} mapping.

        The other channels are passed through untouched.

        Returns:
            tuple: (new channel mapping, EmbedResult)
        """
        if channel not in channels:
            raise InvalidParameterError(f"Unknown channel '{channel}', expected one of {sorted(channels)}")

        result = self.embed(channels[channel], payload)
        merged = dict(channels)
        merged[channel] = result.channel
        return merged, result

    def _embed_bits(self, coefficients, bits, blocks_x):
        """Overwrite coefficients in place for each bit, row-major over carrier blocks."""
        if bits.size == 0:
            return

        index = np.arange(bits.size)
        block_rows = index // blocks_x
        block_cols = index % blocks_x
        values = np.where(bits == 1, self.strength, -self.strength)

        positions = [self.position]
        if self.symmetric:
            positions.extend(self.symmetric_positions())
        for row, col in positions:
            coefficients[block_rows, block_cols, row, col] = values

        if self.multi_point:
            reduced = values * MULTI_POINT_STRENGTH_FACTOR
            for row, col in self.multi_point_positions():
                coefficients[block_rows, block_cols, row, col] = reduced
