"""
Image Processor - Pillow-backed raster I/O and RGB channel access
"""

from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from .exceptions import ImageNotLoadedError, ImageProcessingError

IMAGE_TYPE_JPEG = 'jpeg'
IMAGE_TYPE_PNG = 'png'
IMAGE_TYPES = (IMAGE_TYPE_JPEG, IMAGE_TYPE_PNG)

CHANNEL_NAMES = ('red', 'green', 'blue')


class ImageProcessor:
    """
    Holds an RGB image as a height x width x 3 uint8 array.

    An alpha band, when present, is kept aside and restored on save as long
    as the image dimensions do not change.
    """

    def __init__(self):
        self.pixels = None
        self.alpha = None

    @classmethod
    def from_file(cls, file_path):
        return cls().load(file_path)

    @classmethod
    def from_array(cls, array):
        """
        Wrap an existing array.

        Args:
            array: (height, width) grayscale or (height, width, 3|4) color array
        """
        processor = cls()
        processor._set_array(np.asarray(array))
        return processor

    @classmethod
    def from_image(cls, image):
        processor = cls()
        processor._set_image(image)
        return processor

    def load(self, file_path):
        """
        Load an image file.

        Raises:
            ImageProcessingError: If the file is missing or not an image
        """
        path = Path(file_path)
        if not path.exists():
            raise ImageProcessingError(f"Image file does not exist: {path}")

        try:
            with Image.open(path) as image:
                image.load()
                self._set_image(image)
        except (UnidentifiedImageError, OSError) as e:
            raise ImageProcessingError(f"Cannot read image {path}: {e}")

        return self

    def create(self, width, height):
        """Start from a black image of the given size."""
        if width <= 0 or height <= 0:
            raise ImageProcessingError(f"Invalid image size {width}x{height}")
        self.pixels = np.zeros((height, width, 3), dtype=np.uint8)
        self.alpha = None
        return self

    @property
    def loaded(self):
        return self.pixels is not None

    @property
    def width(self):
        self._require_loaded()
        return self.pixels.shape[1]

    @property
    def height(self):
        self._require_loaded()
        return self.pixels.shape[0]

    def split_channels(self):
        """
        Split into independent channel matrices.

        Returns:
            dict: {'red', 'green', 'blue'} -> (height, width) uint8 arrays
        """
        self._require_loaded()
        return {
            name: self.pixels[:, :, index].copy()
            for index, name in enumerate(CHANNEL_NAMES)
        }

    def merge_channels(self, channels):
        """
        Replace the pixels with the given channels.

        Values are rounded and clamped to [0, 255]. The channels may have
        different dimensions from the current image (e.g. after a rotation);
        the alpha band is dropped in that case.
        """
        missing = [name for name in CHANNEL_NAMES if name not in channels]
        if missing:
            raise ImageProcessingError(f"Missing channels: {', '.join(missing)}")

        arrays = [np.asarray(channels[name], dtype=np.float64) for name in CHANNEL_NAMES]
        shapes = {array.shape for array in arrays}
        if len(shapes) != 1 or arrays[0].ndim != 2:
            raise ImageProcessingError(f"Channels must be 2-D arrays of one shape, got {sorted(shapes)}")

        merged = np.stack([np.clip(np.rint(array), 0, 255) for array in arrays], axis=-1)
        if self.alpha is not None and self.alpha.shape != merged.shape[:2]:
            self.alpha = None
        self.pixels = merged.astype(np.uint8)
        return self

    def to_image(self):
        self._require_loaded()
        if self.alpha is not None:
            return Image.fromarray(np.dstack([self.pixels, self.alpha]))
        return Image.fromarray(self.pixels)

    def save(self, file_path, image_type=IMAGE_TYPE_PNG, quality=90):
        """
        Write the image to disk.

        Args:
            file_path: Destination path
            image_type: 'jpeg' or 'png'
            quality: JPEG quality 1-100 (ignored for PNG)
        """
        self._require_loaded()
        if image_type not in IMAGE_TYPES:
            raise ImageProcessingError(f"Unsupported image type '{image_type}', expected one of {IMAGE_TYPES}")

        image = self.to_image()
        try:
            if image_type == IMAGE_TYPE_JPEG:
                image.convert('RGB').save(file_path, 'JPEG', quality=quality)
            else:
                image.save(file_path, 'PNG')
        except OSError as e:
            raise ImageProcessingError(f"Cannot write image {file_path}: {e}")
        return file_path

    def copy(self):
        duplicate = ImageProcessor()
        if self.pixels is not None:
            duplicate.pixels = self.pixels.copy()
        if self.alpha is not None:
            duplicate.alpha = self.alpha.copy()
        return duplicate

    def _set_image(self, image):
        if image.mode in ('RGBA', 'LA') or (image.mode == 'P' and 'transparency' in image.info):
            rgba = np.array(image.convert('RGBA'))
            self.pixels = rgba[:, :, :3].copy()
            self.alpha = rgba[:, :, 3].copy()
        else:
            self.pixels = np.array(image.convert('RGB'))
            self.alpha = None

    def _set_array(self, array):
        if array.ndim == 2:
            array = np.stack([array] * 3, axis=-1)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise ImageProcessingError(f"Unsupported array shape {array.shape}")

        array = np.clip(array, 0, 255).astype(np.uint8)
        self.pixels = array[:, :, :3].copy()
        self.alpha = array[:, :, 3].copy() if array.shape[2] == 4 else None

    def _require_loaded(self):
        if self.pixels is None:
            raise ImageNotLoadedError()


def image_type_for_path(file_path):
    """Pick 'png' or 'jpeg' from a file extension (PNG for anything unknown)."""
    suffix = Path(file_path).suffix.lower()
    if suffix in ('.jpg', '.jpeg'):
        return IMAGE_TYPE_JPEG
    return IMAGE_TYPE_PNG
