"""
BlindWatermark - High level API tying images, embedding and extraction together
"""

import logging

from . import geometry
from .bits import LENGTH_HEADER_BITS
from .config import WatermarkConfig
from .exceptions import ImageNotLoadedError, InvalidParameterError
from .image import ImageProcessor, image_type_for_path

LOGGER = logging.getLogger(__name__)


class BlindWatermark:
    """
    Embeds text into images and reads it back without the original.

    Provides:
    - Loading and saving images (JPEG/PNG)
    - Embedding and extracting text in one color channel
    - A reference snapshot for undoing flips and rotations on extraction
    - Flip/rotate helpers for robustness testing

    Example:
        watermark = BlindWatermark(alpha=36.0)
        watermark.embed_text_to_image('in.png', 'owner: alice', 'out.png')
        watermark.extract_text_from_image('out.png')
    """

    def __init__(self, config=None, logger=None, **overrides):
        """
        Initialize the watermark facade.

        Args:
            config: WatermarkConfig (defaults if omitted)
            logger: Logger passed on to the embedder and extractor
            **overrides: Individual WatermarkConfig settings
        """
        config = config if config is not None else WatermarkConfig()
        if overrides:
            config = config.replace(**overrides)
        self.config = config
        self.logger = logger if logger is not None else LOGGER

        self.image = None
        self.reference_channel = None
        self.last_embed = None

    def configure(self, **changes):
        """Change several settings at once (e.g. block_size together with position)."""
        self.config = self.config.replace(**changes)
        return self

    def set_block_size(self, block_size):
        return self.configure(block_size=block_size)

    def set_alpha(self, alpha):
        return self.configure(alpha=alpha)

    def set_position(self, position):
        return self.configure(position=position)

    def set_key(self, key):
        self.config.key = key or None
        return self

    def set_channel(self, channel):
        return self.configure(channel=channel)

    def enable_symmetric_embedding(self, enabled=True):
        """Repeat each bit at mirrored coefficient positions (flip robustness)."""
        self.config.symmetric = enabled
        return self

    def enable_multi_point_embedding(self, enabled=True):
        """Repeat each bit at neighbouring mid-frequency positions."""
        self.config.multi_point = enabled
        return self

    def enable_geometric_correction(self, enabled=True):
        """Undo flips/rotations against the reference channel before extraction."""
        self.config.geometric_correction = enabled
        return self

    def load_image(self, file_path):
        self.image = ImageProcessor.from_file(file_path)
        return self

    def set_image(self, image):
        """Use an ImageProcessor, PIL image or array as the current image."""
        if isinstance(image, ImageProcessor):
            self.image = image
        elif hasattr(image, 'mode') and hasattr(image, 'size'):
            self.image = ImageProcessor.from_image(image)
        else:
            self.image = ImageProcessor.from_array(image)
        return self

    def embed_text(self, text, strict=False):
        """
        Embed text (or bytes) into the current image.

        Args:
            text: Payload, str or bytes
            strict: Fail instead of truncating when the image is too small

        Raises:
            ImageNotLoadedError: If no image is loaded
            InsufficientCapacityError: strict and the payload does not fit
        """
        image = self._require_image()
        embedder = self.config.embedder(logger=self.logger, strict=strict)
        channels, self.last_embed = embedder.embed_channels(
            image.split_channels(), text, channel=self.config.channel
        )
        image.merge_channels(channels)
        return self

    def extract(self):
        """
        Extract from the current image.

        Returns:
            ExtractionResult: FOUND with the payload, or NOT_FOUND
        """
        image = self._require_image()
        reference = self.reference_channel if self.config.geometric_correction else None
        extractor = self.config.extractor(reference=reference, logger=self.logger)
        return extractor.extract_channels(image.split_channels(), channel=self.config.channel)

    def extract_text(self):
        """Extract text from the current image; '' when no watermark is found."""
        result = self.extract()
        return result.text if result.found else ''

    def save_image(self, file_path, image_type=None, quality=90):
        """
        Save the current image.

        Args:
            file_path: Destination path
            image_type: 'jpeg' or 'png' (guessed from the extension if omitted)
            quality: JPEG quality 1-100
        """
        image = self._require_image()
        if image_type is None:
            image_type = image_type_for_path(file_path)
        return image.save(file_path, image_type=image_type, quality=quality)

    def save_as_reference(self):
        """Snapshot the watermark channel of the current image for geometric correction."""
        image = self._require_image()
        self.reference_channel = image.split_channels()[self.config.channel]
        return self

    def set_reference_image(self, reference):
        """Load the reference channel from a file path or ImageProcessor."""
        if not isinstance(reference, ImageProcessor):
            reference = ImageProcessor.from_file(reference)
        self.reference_channel = reference.split_channels()[self.config.channel]
        return self

    def embed_text_to_image(self, src_image_path, text, dest_image_path, image_type=None, quality=90):
        """
        Load an image, embed text and save it.

        The result is kept as the reference when geometric correction is on.

        Returns:
            Path of the written image
        """
        self.load_image(src_image_path).embed_text(text)
        if self.config.geometric_correction:
            self.save_as_reference()
        return self.save_image(dest_image_path, image_type=image_type, quality=quality)

    def extract_text_from_image(self, watermarked_image_path):
        return self.load_image(watermarked_image_path).extract_text()

    def capacity_bytes(self):
        """Largest payload (in bytes) the current image can hold with this configuration."""
        image = self._require_image()
        capacity = self.config.embedder().capacity(image.height, image.width)
        return max(0, (capacity - LENGTH_HEADER_BITS) // 8)

    def flip_horizontal(self):
        return self._transform_channels(geometry.flip_horizontal)

    def flip_vertical(self):
        return self._transform_channels(geometry.flip_vertical)

    def rotate(self, angle):
        """
        Rotate the current image clockwise.

        Args:
            angle: Multiple of 90 degrees

        Raises:
            InvalidParameterError: If angle is not a multiple of 90
        """
        if angle % 90 != 0:
            raise InvalidParameterError(f"Only multiples of 90 degrees are supported, got {angle}")
        angle %= 360
        if angle == 0:
            return self
        return self._transform_channels(lambda channel: geometry.rotate(channel, angle))

    def _transform_channels(self, transform):
        image = self._require_image()
        channels = image.split_channels()
        image.merge_channels({name: transform(data) for name, data in channels.items()})
        return self

    def _require_image(self):
        if self.image is None:
            raise ImageNotLoadedError()
        return self.image
