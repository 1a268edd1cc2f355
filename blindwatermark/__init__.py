"""
blindwatermark - Blind DCT-domain watermarking for raster images
Embeds a byte payload into block DCT coefficients and recovers it without the original image
"""

__version__ = "0.1.0"

from .config import WatermarkConfig
from .dct import DCT, CosineCache
from .embedder import EmbedResult, WatermarkEmbedder
from .exceptions import (
    BlindWatermarkError,
    ImageNotLoadedError,
    ImageProcessingError,
    InsufficientCapacityError,
    InvalidParameterError,
    PayloadTooLargeError,
)
from .extractor import ExtractionResult, ExtractionStatus, WatermarkExtractor
from .image import ImageProcessor
from .obfuscation import PermutationObfuscation
from .watermark import BlindWatermark

__all__ = [
    "BlindWatermark",
    "WatermarkConfig",
    "WatermarkEmbedder",
    "WatermarkExtractor",
    "EmbedResult",
    "ExtractionResult",
    "ExtractionStatus",
    "DCT",
    "CosineCache",
    "ImageProcessor",
    "PermutationObfuscation",
    "BlindWatermarkError",
    "InvalidParameterError",
    "PayloadTooLargeError",
    "InsufficientCapacityError",
    "ImageProcessingError",
    "ImageNotLoadedError",
]
