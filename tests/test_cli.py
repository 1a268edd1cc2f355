"""
Tests for the command-line interface
"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path

import numpy as np
from click.testing import CliRunner
from PIL import Image

from blindwatermark import __version__
from blindwatermark.cli import main


class TestCLI(unittest.TestCase):
    """Test CLI commands against temporary images."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.runner = CliRunner()
        ys, xs = np.mgrid[0:128, 0:256]
        pixels = np.dstack([
            np.full((128, 256), 120),
            40 + ys,
            np.where((ys // 4) % 2, 64, 191) + xs // 8,
        ]).astype(np.uint8)
        self.source = self.path('source.png')
        Image.fromarray(pixels).save(self.source)

    def tearDown(self):
        if Path(self.temp_dir).exists():
            shutil.rmtree(self.temp_dir)

    def path(self, name):
        return str(Path(self.temp_dir) / name)

    def test_version(self):
        result = self.runner.invoke(main, ['--version'])
        self.assertEqual(result.exit_code, 0)
        self.assertIn(__version__, result.output)

    def test_embed_and_extract(self):
        output = self.path('out.png')
        result = self.runner.invoke(main, ['embed', self.source, output, '--text', 'cli test'])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('Watermarked image saved', result.output)
        self.assertTrue(Path(output).exists())

        result = self.runner.invoke(main, ['extract', output])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output.strip(), 'cli test')

    def test_options_must_match(self):
        output = self.path('out.png')
        args = ['--block-size', '16', '--position', '5', '6', '--key', 'k', '--symmetric']
        result = self.runner.invoke(main, ['embed', self.source, output, '-t', 'options'] + args)
        self.assertEqual(result.exit_code, 0, result.output)

        result = self.runner.invoke(main, ['extract', output] + args)
        self.assertEqual(result.output.strip(), 'options')

    def test_config_file(self):
        config_path = self.path('config.json')
        with open(config_path, 'w') as f:
            json.dump({'channel': 'green', 'alpha': 30.0}, f)

        output = self.path('out.png')
        result = self.runner.invoke(main, ['embed', self.source, output, '-t', 'green', '--config', config_path])
        self.assertEqual(result.exit_code, 0, result.output)

        result = self.runner.invoke(main, ['extract', output, '--config', config_path])
        self.assertEqual(result.output.strip(), 'green')

    def test_extract_not_found(self):
        small = self.path('small.png')
        Image.new('RGB', (16, 16)).save(small)
        result = self.runner.invoke(main, ['extract', small])
        self.assertEqual(result.exit_code, 1)

    def test_invalid_parameters(self):
        """Test library errors exit with status 2."""
        result = self.runner.invoke(main, ['embed', self.source, self.path('out.png'), '-t', 'x',
                                           '--block-size', '4'])
        self.assertEqual(result.exit_code, 2)
        self.assertIn('Error', result.output)

    def test_strict(self):
        small = self.path('small.png')
        Image.new('RGB', (32, 32), color=(100, 100, 100)).save(small)
        result = self.runner.invoke(main, ['embed', small, self.path('out.png'), '-t', 'too long', '--strict'])
        self.assertEqual(result.exit_code, 2)

    def test_truncation_warning(self):
        small = self.path('small.png')
        Image.new('RGB', (32, 32), color=(100, 100, 100)).save(small)
        result = self.runner.invoke(main, ['embed', small, self.path('out.png'), '-t', 'too long'])
        self.assertEqual(result.exit_code, 0)
        self.assertIn('truncated', result.output)

    def test_transform_and_reference(self):
        """Test extracting from a rotated copy with the reference image."""
        output = self.path('out.png')
        rotated = self.path('rotated.png')
        self.runner.invoke(main, ['embed', self.source, output, '-t', 'rotate me'])

        result = self.runner.invoke(main, ['transform', output, rotated, '--rotate', '90'])
        self.assertEqual(result.exit_code, 0, result.output)
        with Image.open(rotated) as image:
            self.assertEqual(image.size, (128, 256))

        result = self.runner.invoke(main, ['extract', rotated, '--reference', output])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output.strip(), 'rotate me')

    def test_capacity(self):
        result = self.runner.invoke(main, ['capacity', self.source])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('Image size: 256x128', result.output)
        self.assertIn('Capacity: 62 bytes', result.output)

        result = self.runner.invoke(main, ['capacity', self.source, '-b', '16', '-p', '5', '6'])
        self.assertIn('Capacity: 14 bytes', result.output)


if __name__ == '__main__':
    unittest.main()
