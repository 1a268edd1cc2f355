"""
Watermark Extractor - Recovers payload bits from DCT coefficient signs
"""

import enum
import logging

import numpy as np

from . import bits as bitcodec
from . import geometry
from .dct import DCT, check_block_size
from .exceptions import InvalidParameterError
from .obfuscation import PermutationObfuscation
from .positions import (
    DEFAULT_BLOCK_SIZE,
    DEFAULT_MULTI_POINTS,
    DEFAULT_POSITION,
    carrier_blocks,
    multi_point_positions,
    symmetric_positions,
    validate_position,
)

LOGGER = logging.getLogger(__name__)

# First pass reads the header plus enough bits for short payloads
INITIAL_BITS = 256


class ExtractionStatus(enum.Enum):
    FOUND = 'found'
    NOT_FOUND = 'not_found'


class ExtractionResult:
    """
    Tagged outcome of an extraction.

    A FOUND result always carries bytes, possibly empty when an empty payload
    was embedded. NOT_FOUND carries a human readable reason instead.
    """

    def __init__(self, status, payload=b'', reason=None, bit_length=None):
        self.status = status
        self.payload = payload
        self.reason = reason
        self.bit_length = bit_length

    @classmethod
    def success(cls, payload, bit_length):
        return cls(ExtractionStatus.FOUND, payload, bit_length=bit_length)

    @classmethod
    def failure(cls, reason):
        return cls(ExtractionStatus.NOT_FOUND, b'', reason=reason)

    @property
    def found(self):
        return self.status is ExtractionStatus.FOUND

    @property
    def text(self):
        """Payload decoded as UTF-8; invalid sequences are replaced."""
        return self.payload.decode('utf-8', errors='replace')

    def __repr__(self):
        if self.found:
            return f"ExtractionResult(found, payload={self.payload!r})"
        return f"ExtractionResult(not_found, reason={self.reason!r})"


class WatermarkExtractor:
    """
    Reads a watermark back from a channel without the original image.

    The extractor:
    1. Optionally undoes flips/rotations detected against a reference channel
    2. Splits the channel into DCT blocks
    3. Reads bit = 1 where the chosen coefficient is positive, row-major,
       majority voting over companion positions when enabled
    4. Decodes the 16-bit length header, then reads exactly that many bits
    """

    def __init__(self, block_size=DEFAULT_BLOCK_SIZE, position=DEFAULT_POSITION,
                 symmetric=False, multi_point=False, multi_points=DEFAULT_MULTI_POINTS,
                 geometric_correction=False, reference=None, key=None, dct=None,
                 logger=None):
        """
        Initialize the extractor.

        Parameters must match those used for embedding.

        Args:
            block_size: DCT tile size (>= 1)
            position: (row, col) of the coefficient inside a block
            symmetric: Also vote with the three mirrored positions
            multi_point: Also vote with multi_points
            multi_points: Extra (row, col) positions used by multi-point embedding
            geometric_correction: Detect and undo flips/rotations before reading
            reference: Channel captured right after embedding (borrowed, not copied)
            key: Key used for permutation obfuscation at embedding time
            dct: DCT engine to use (a cached-mode engine if omitted)
            logger: Logger to report progress to
        """
        check_block_size(block_size)
        self.block_size = block_size
        self.position = validate_position(position, block_size)
        self.symmetric = symmetric
        self.multi_point = multi_point
        self.multi_points = [tuple(point) for point in multi_points]
        self.geometric_correction = geometric_correction
        self.reference = reference
        self.obfuscation = PermutationObfuscation(key) if key else None
        self.dct = dct if dct is not None else DCT()
        self.logger = logger if logger is not None else LOGGER

    def extraction_positions(self):
        """Companion positions that vote alongside the main position."""
        positions = []
        if self.symmetric:
            positions.extend(symmetric_positions(self.position, self.block_size))
        if self.multi_point:
            positions.extend(multi_point_positions(self.multi_points, self.block_size))
        return positions

    def correct_geometry(self, channel, reference):
        """
        Undo flips and quarter-turn rotations of channel relative to reference.

        Returns:
            np.ndarray: Corrected channel (the input when nothing was detected)
        """
        self.logger.debug("Detecting geometric transforms")
        transform = geometry.detect_transform(reference, channel)

        if transform.horizontal_flip:
            self.logger.info("Detected horizontal flip")
        if transform.vertical_flip:
            self.logger.info("Detected vertical flip")
        if transform.rotation:
            self.logger.info("Detected rotation of %d degrees", transform.rotation)

        if transform.is_identity:
            return channel

        self.logger.info("Correcting geometric transform")
        return geometry.correct_geometric_transform(
            channel,
            transform.horizontal_flip,
            transform.vertical_flip,
            transform.rotation,
        )

    def extract_bits(self, channel, count):
        """
        Read up to count bits from the carrier blocks of a channel.

        Args:
            channel: 2-D array-like
            count: Number of bits wanted

        Returns:
            np.ndarray: uint8 bits, shorter than count if the channel is too small
        """
        data = np.asarray(channel, dtype=np.float64)
        height, width = data.shape
        blocks_x, capacity = carrier_blocks(height, width, self.block_size)
        bits_to_extract = min(count, capacity)
        self.logger.debug("Available DCT blocks: %d, extracting %d bits", capacity, bits_to_extract)

        if bits_to_extract <= 0:
            return np.zeros(0, dtype=np.uint8)

        coefficients = self.dct.block_dct(data, self.block_size)
        index = np.arange(bits_to_extract)
        block_rows = index // blocks_x
        block_cols = index % blocks_x

        row, col = self.position
        main = coefficients[block_rows, block_cols, row, col] > 0

        companions = self.extraction_positions()
        if not companions:
            return main.astype(np.uint8)

        ones = main.astype(np.int64)
        for row, col in companions:
            ones += coefficients[block_rows, block_cols, row, col] > 0
        zeros = 1 + len(companions) - ones

        # The main position settles ties
        bits = np.where(ones > zeros, 1, np.where(zeros > ones, 0, main))
        return bits.astype(np.uint8)

    def extract(self, channel, reference=None):
        """
        Extract the payload from a single channel.

        An image that carries no watermark yields a NOT_FOUND result rather
        than an exception.

        Args:
            channel: 2-D array-like of intensities
            reference: Reference channel for geometric correction; overrides
                the one given at construction

        Returns:
            ExtractionResult: FOUND with the payload, or NOT_FOUND with a reason
        """
        data = np.asarray(channel)
        if data.ndim != 2:
            raise InvalidParameterError(f"Expected a 2-D channel, got shape {data.shape}")

        reference = reference if reference is not None else self.reference
        if self.geometric_correction and reference is not None:
            data = self.correct_geometry(data, reference)

        self.logger.info("Extracting watermark")
        extracted = self.extract_bits(data, INITIAL_BITS)
        if extracted.size < bitcodec.LENGTH_HEADER_BITS:
            self.logger.warning("Only %d bits available, cannot read the length header", extracted.size)
            return ExtractionResult.failure("image too small to hold a length header")

        bit_length = bitcodec.decode_length(extracted)
        self.logger.debug("Length header announces %d payload bits", bit_length)
        if bit_length < 0 or bit_length > bitcodec.MAX_PAYLOAD_BITS:
            self.logger.warning("Implausible watermark length: %d", bit_length)
            return ExtractionResult.failure(f"implausible payload length {bit_length}")

        bits_needed = bitcodec.LENGTH_HEADER_BITS + bit_length
        if extracted.size < bits_needed:
            self.logger.debug("Re-reading %d bits", bits_needed)
            extracted = self.extract_bits(data, bits_needed)
            if extracted.size < bits_needed:
                self.logger.warning(
                    "Header announces %d bits but only %d can be read",
                    bits_needed, extracted.size
                )
                return ExtractionResult.failure(
                    f"header announces {bit_length} payload bits, image holds "
                    f"{extracted.size - bitcodec.LENGTH_HEADER_BITS}"
                )

        payload_bits = extracted[bitcodec.LENGTH_HEADER_BITS:bits_needed]
        if self.obfuscation is not None:
            payload_bits = self.obfuscation.unshuffle(payload_bits)

        payload = bitcodec.bits_to_text(payload_bits)
        self.logger.info("Watermark extracted, %d bytes", len(payload))
        return ExtractionResult.success(payload, bit_length)

    def extract_channels(self, channels, channel='blue', reference=None):
        """Extract from one channel of a {'red', 'green', 'blue'} mapping."""
        if channel not in channels:
            raise InvalidParameterError(f"Unknown channel '{channel}', expected one of {sorted(channels)}")
        return self.extract(channels[channel], reference=reference)
