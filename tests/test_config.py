"""
Tests for WatermarkConfig
"""

import json
import os
import tempfile
import unittest

from blindwatermark.config import WatermarkConfig
from blindwatermark.embedder import WatermarkEmbedder
from blindwatermark.exceptions import InvalidParameterError
from blindwatermark.extractor import WatermarkExtractor


class TestWatermarkConfig(unittest.TestCase):
    """Test configuration loading and validation."""

    def test_defaults(self):
        config = WatermarkConfig()
        self.assertEqual(config.block_size, 8)
        self.assertEqual(config.alpha, 36.0)
        self.assertEqual(config.position, (3, 4))
        self.assertEqual(config.channel, 'blue')
        self.assertIsNone(config.key)

    def test_invalid_values(self):
        """Test each invalid setting is rejected at construction."""
        for kwargs in ({'block_size': 0}, {'alpha': -2}, {'position': (9, 0)},
                       {'channel': 'alpha'}, {'multi_points': [(1,)]}):
            with self.assertRaises(InvalidParameterError, msg=kwargs):
                WatermarkConfig(**kwargs)

    def test_from_dict_rejects_unknown_keys(self):
        with self.assertRaises(InvalidParameterError):
            WatermarkConfig.from_dict({'block_size': 8, 'strength': 10})

    def test_dict_round_trip(self):
        config = WatermarkConfig(block_size=16, position=(5, 6), key='k', symmetric=True)
        self.assertEqual(WatermarkConfig.from_dict(config.to_dict()), config)

    def test_replace_ignores_none(self):
        config = WatermarkConfig(alpha=20.0).replace(alpha=None, block_size=16)
        self.assertEqual(config.alpha, 20.0)
        self.assertEqual(config.block_size, 16)

    def test_load_json(self):
        """Test loading settings from a JSON file."""
        fd, path = tempfile.mkstemp(suffix='.json')
        os.close(fd)
        try:
            with open(path, 'w') as f:
                json.dump({'alpha': 50.0, 'channel': 'green', 'position': [2, 3]}, f)
            config = WatermarkConfig.load(path)
            self.assertEqual(config.alpha, 50.0)
            self.assertEqual(config.channel, 'green')
            self.assertEqual(config.position, (2, 3))

            with open(path, 'w') as f:
                f.write('[1, 2]')
            with self.assertRaises(InvalidParameterError):
                WatermarkConfig.load(path)

            with open(path, 'w') as f:
                f.write('{not json')
            with self.assertRaises(InvalidParameterError):
                WatermarkConfig.load(path)
        finally:
            os.remove(path)

    def test_load_missing_file(self):
        """Test an unreadable file raises the library error type."""
        with tempfile.TemporaryDirectory() as temp_dir:
            with self.assertRaises(InvalidParameterError):
                WatermarkConfig.load(os.path.join(temp_dir, 'missing.json'))
            with self.assertRaises(InvalidParameterError):
                WatermarkConfig.load(temp_dir)

    def test_factories(self):
        """Test embedder and extractor share the configured parameters."""
        config = WatermarkConfig(block_size=16, position=(5, 6), multi_point=True, key='k')
        embedder = config.embedder(strict=True)
        extractor = config.extractor()
        self.assertIsInstance(embedder, WatermarkEmbedder)
        self.assertIsInstance(extractor, WatermarkExtractor)
        self.assertEqual(embedder.block_size, 16)
        self.assertEqual(extractor.position, (5, 6))
        self.assertTrue(embedder.strict)
        self.assertTrue(extractor.multi_point)
        self.assertEqual(embedder.obfuscation.seed, extractor.obfuscation.seed)


if __name__ == '__main__':
    unittest.main()
