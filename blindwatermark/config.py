"""
Watermark configuration shared by the library, the CLI and the HTTP service
"""

import json
from pathlib import Path

from .dct import check_block_size
from .embedder import WatermarkEmbedder
from .exceptions import InvalidParameterError
from .extractor import WatermarkExtractor
from .positions import (
    DEFAULT_BLOCK_SIZE,
    DEFAULT_MULTI_POINTS,
    DEFAULT_POSITION,
    DEFAULT_STRENGTH,
    validate_position,
    validate_strength,
)

CHANNELS = ('red', 'green', 'blue')


class WatermarkConfig:
    """
    Embedding/extraction settings.

    Both sides of a watermark must agree on block_size, position, symmetric,
    multi_point, multi_points and key. alpha only matters for embedding,
    geometric_correction only for extraction.
    """

    FIELDS = (
        'block_size', 'alpha', 'position', 'symmetric', 'multi_point',
        'multi_points', 'geometric_correction', 'key', 'channel',
    )

    def __init__(self, block_size=DEFAULT_BLOCK_SIZE, alpha=DEFAULT_STRENGTH,
                 position=DEFAULT_POSITION, symmetric=False, multi_point=False,
                 multi_points=DEFAULT_MULTI_POINTS, geometric_correction=False,
                 key=None, channel='blue'):
        self.block_size = block_size
        self.alpha = alpha
        self.position = tuple(position)
        self.symmetric = symmetric
        self.multi_point = multi_point
        self.multi_points = [tuple(point) for point in multi_points]
        self.geometric_correction = geometric_correction
        self.key = key
        self.channel = channel
        self.validate()

    def validate(self):
        """
        Check every setting.

        Raises:
            InvalidParameterError: On the first invalid value
        """
        check_block_size(self.block_size)
        validate_strength(self.alpha)
        validate_position(self.position, self.block_size)
        if self.channel not in CHANNELS:
            raise InvalidParameterError(f"Channel must be one of {CHANNELS}, got '{self.channel}'")
        for point in self.multi_points:
            if len(point) != 2:
                raise InvalidParameterError(f"Multi-point positions must be (row, col) pairs, got {point!r}")
        return self

    @classmethod
    def from_dict(cls, values):
        """
        Build a config from a mapping, e.g. parsed JSON.

        Missing keys take their defaults; unknown keys are rejected.
        """
        unknown = set(values) - set(cls.FIELDS)
        if unknown:
            raise InvalidParameterError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        return cls(**values)

    @classmethod
    def load(cls, path):
        """Load a JSON configuration file."""
        path = Path(path)
        try:
            with open(path, 'r') as f:
                values = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidParameterError(f"Invalid configuration file {path}: {e}")
        except OSError as e:
            raise InvalidParameterError(f"Cannot read configuration file {path}: {e}")
        if not isinstance(values, dict):
            raise InvalidParameterError(f"Configuration file {path} must contain a JSON object")
        return cls.from_dict(values)

    def to_dict(self):
        return {
            'block_size': self.block_size,
            'alpha': self.alpha,
            'position': list(self.position),
            'symmetric': self.symmetric,
            'multi_point': self.multi_point,
            'multi_points': [list(point) for point in self.multi_points],
            'geometric_correction': self.geometric_correction,
            'key': self.key,
            'channel': self.channel,
        }

    def replace(self, **changes):
        """Copy with some settings changed; None values are ignored."""
        values = self.to_dict()
        values.update({name: value for name, value in changes.items() if value is not None})
        return self.from_dict(values)

    def embedder(self, logger=None, strict=False):
        return WatermarkEmbedder(
            block_size=self.block_size,
            strength=self.alpha,
            position=self.position,
            symmetric=self.symmetric,
            multi_point=self.multi_point,
            multi_points=self.multi_points,
            key=self.key,
            strict=strict,
            logger=logger,
        )

    def extractor(self, reference=None, logger=None):
        return WatermarkExtractor(
            block_size=self.block_size,
            position=self.position,
            symmetric=self.symmetric,
            multi_point=self.multi_point,
            multi_points=self.multi_points,
            geometric_correction=self.geometric_correction,
            reference=reference,
            key=self.key,
            logger=logger,
        )

    def __eq__(self, other):
        if not isinstance(other, WatermarkConfig):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"WatermarkConfig({self.to_dict()})"
