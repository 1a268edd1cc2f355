"""
Exception hierarchy for blind watermarking
"""


class BlindWatermarkError(Exception):
    """
    Base class for all watermarking errors.

    Each error carries a numeric ``code`` grouping it by the stage that
    failed (image processing, embedding or extraction).
    """

    ERROR_IMAGE_PROCESSING = 100
    ERROR_WATERMARK_EMBEDDING = 200
    ERROR_WATERMARK_EXTRACTION = 300

    default_code = 0

    def __init__(self, message, code=None):
        super().__init__(message)
        self.code = self.default_code if code is None else code


class InvalidParameterError(BlindWatermarkError, ValueError):
    """A configuration value violates a precondition (block size, position, strength)."""

    default_code = BlindWatermarkError.ERROR_WATERMARK_EMBEDDING


class PayloadTooLargeError(InvalidParameterError):
    """The payload does not fit in the 16-bit length header."""


class InsufficientCapacityError(BlindWatermarkError):
    """Raised by strict embedders when the image has fewer blocks than bits."""

    default_code = BlindWatermarkError.ERROR_WATERMARK_EMBEDDING

    def __init__(self, bits_needed, capacity):
        super().__init__(
            f"Need {bits_needed} blocks to embed the watermark, image provides {capacity}"
        )
        self.bits_needed = bits_needed
        self.capacity = capacity


class ImageProcessingError(BlindWatermarkError):
    """Image could not be read, written or converted."""

    default_code = BlindWatermarkError.ERROR_IMAGE_PROCESSING


class ImageNotLoadedError(ImageProcessingError):
    """An operation needs an image but none has been loaded."""

    def __init__(self, message="No image loaded, call load_image() first"):
        super().__init__(message)
