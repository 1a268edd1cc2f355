"""
Tests for WatermarkEmbedder
"""

import logging
import unittest

import numpy as np

from blindwatermark import dct
from blindwatermark.embedder import WatermarkEmbedder
from blindwatermark.exceptions import (
    InsufficientCapacityError,
    InvalidParameterError,
    PayloadTooLargeError,
)
from blindwatermark.positions import carrier_blocks


def gradient_channel(height=256, width=256):
    """Mid-range gradient so embedding never hits the clamp."""
    ys, xs = np.mgrid[0:height, 0:width]
    return (32 + (xs + ys) * 191 // (height + width - 2)).astype(np.uint8)


class TestEmbedderInitialization(unittest.TestCase):
    """Test parameter validation."""

    def test_defaults(self):
        """Test default parameters."""
        embedder = WatermarkEmbedder()
        self.assertEqual(embedder.block_size, 8)
        self.assertEqual(embedder.strength, 36.0)
        self.assertEqual(embedder.position, (3, 4))
        self.assertFalse(embedder.symmetric)
        self.assertFalse(embedder.multi_point)

    def test_invalid_parameters(self):
        """Test invalid block size, strength and position are rejected."""
        invalid = [
            {'block_size': 0},
            {'strength': 0},
            {'strength': -1.0},
            {'strength': float('nan')},
            {'position': (8, 0)},
            {'position': (3, -1)},
            {'block_size': 4, 'position': (3, 4)},
            {'position': (1, 2, 3)},
        ]
        for kwargs in invalid:
            with self.assertRaises(InvalidParameterError, msg=kwargs):
                WatermarkEmbedder(**kwargs)

    def test_symmetric_positions(self):
        """Test mirrored positions of (3, 4) in an 8x8 block."""
        self.assertEqual(WatermarkEmbedder().symmetric_positions(), [(3, 3), (4, 4), (4, 3)])

    def test_multi_points_outside_block_skipped(self):
        """Test extra positions that do not fit the block are dropped."""
        embedder = WatermarkEmbedder(block_size=5, position=(1, 1), multi_points=[(3, 5), (4, 3), (5, 3)])
        self.assertEqual(embedder.multi_point_positions(), [(4, 3)])

    def test_capacity(self):
        """Test capacity counts complete blocks only."""
        embedder = WatermarkEmbedder()
        self.assertEqual(embedder.capacity(256, 256), 1024)
        self.assertEqual(embedder.capacity(20, 30), 6)
        self.assertEqual(embedder.capacity(7, 100), 0)

    def test_carrier_blocks_skip_partial_tiles(self):
        """Test partial edge tiles are not counted, so rows hold width // block_size bits."""
        self.assertEqual(carrier_blocks(16, 20, 8), (2, 4))
        self.assertEqual(carrier_blocks(20, 16, 8), (2, 4))
        self.assertEqual(carrier_blocks(7, 7, 8), (0, 0))


class TestEmbed(unittest.TestCase):
    """Test embedding into a channel."""

    def setUp(self):
        self.channel = gradient_channel()

    def test_output_shape_and_type(self):
        """Test the watermarked channel keeps shape and is uint8."""
        result = WatermarkEmbedder().embed(self.channel, 'Hello')
        self.assertEqual(result.channel.shape, self.channel.shape)
        self.assertEqual(result.channel.dtype, np.uint8)
        self.assertEqual(result.bits_total, 16 + 40)
        self.assertEqual(result.bits_embedded, 56)
        self.assertEqual(result.capacity, 1024)
        self.assertFalse(result.truncated)

    def test_input_not_mutated(self):
        """Test the input channel is left untouched."""
        original = self.channel.copy()
        WatermarkEmbedder().embed(self.channel, 'Hello')
        np.testing.assert_array_equal(self.channel, original)

    def test_coefficient_signs(self):
        """Test the chosen coefficient carries the header and payload bits."""
        result = WatermarkEmbedder().embed(self.channel, b'\x80')
        coefficients = dct.block_dct(result.channel, 8)
        # header 0000000000001000 then payload 10000000
        expected = [0] * 12 + [1, 0, 0, 0] + [1] + [0] * 7
        signs = [int(coefficients[0, i, 3, 4] > 0) for i in range(24)]
        self.assertEqual(signs, expected)
        self.assertAlmostEqual(abs(coefficients[0, 12, 3, 4]), 36.0, delta=2.0)

    def test_change_is_small(self):
        """Test embedding changes pixels by a bounded amount."""
        result = WatermarkEmbedder().embed(self.channel, 'Hello BlindWatermark!')
        difference = np.abs(result.channel.astype(int) - self.channel.astype(int))
        self.assertLessEqual(difference.max(), 12)

    def test_truncation(self):
        """Test payloads larger than the image are truncated with a warning."""
        embedder = WatermarkEmbedder()
        with self.assertLogs('blindwatermark.embedder', level='WARNING'):
            result = embedder.embed(gradient_channel(64, 64), 'ten bytes!')
        self.assertEqual(result.capacity, 64)
        self.assertEqual(result.bits_embedded, 64)
        self.assertEqual(result.bits_total, 96)
        self.assertTrue(result.truncated)

    def test_strict_capacity(self):
        """Test strict mode raises instead of truncating."""
        embedder = WatermarkEmbedder(strict=True)
        with self.assertRaises(InsufficientCapacityError) as context:
            embedder.embed(gradient_channel(64, 64), 'ten bytes!')
        self.assertEqual(context.exception.bits_needed, 96)
        self.assertEqual(context.exception.capacity, 64)

    def test_payload_too_large(self):
        """Test payloads beyond the header limit are rejected."""
        with self.assertRaises(PayloadTooLargeError):
            WatermarkEmbedder().embed(self.channel, b'x' * 8192)

    def test_non_2d_channel(self):
        """Test a 3-D array is rejected."""
        with self.assertRaises(InvalidParameterError):
            WatermarkEmbedder().embed(np.zeros((8, 8, 3)), 'x')

    def test_injected_logger(self):
        """Test progress is reported to an injected logger."""
        logger = logging.getLogger('test.embedder')
        with self.assertLogs(logger, level='INFO'):
            WatermarkEmbedder(logger=logger).embed(self.channel, 'x')

    def test_embed_channels(self):
        """Test only the selected channel changes."""
        channels = {
            'red': self.channel.copy(),
            'green': self.channel.copy(),
            'blue': self.channel.copy(),
        }
        merged, result = WatermarkEmbedder().embed_channels(channels, 'Hi', channel='green')
        self.assertIs(merged['red'], channels['red'])
        self.assertIs(merged['blue'], channels['blue'])
        self.assertIs(merged['green'], result.channel)
        with self.assertRaises(InvalidParameterError):
            WatermarkEmbedder().embed_channels(channels, 'Hi', channel='alpha')


if __name__ == '__main__':
    unittest.main()
