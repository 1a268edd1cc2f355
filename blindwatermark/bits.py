"""
Bit codec - payload bytes to bit sequences and the 16-bit length header
"""

import numpy as np

from .exceptions import PayloadTooLargeError

LENGTH_HEADER_BITS = 16
MAX_PAYLOAD_BITS = (1 << LENGTH_HEADER_BITS) - 1


def to_bytes(payload):
    """Accept str (encoded as UTF-8), bytes or bytearray."""
    if isinstance(payload, str):
        return payload.encode('utf-8')
    return bytes(payload)


def text_to_bits(payload):
    """
    Expand a payload into bits, most significant bit of each byte first.

    Args:
        payload: bytes or str

    Returns:
        np.ndarray: uint8 array of 0/1 values, 8 per byte
    """
    data = np.frombuffer(to_bytes(payload), dtype=np.uint8)
    return np.unpackbits(data)


def bits_to_text(bits):
    """
    Pack bits back into bytes, 8 at a time.

    A trailing group of fewer than 8 bits is discarded.

    Args:
        bits: Sequence of 0/1 values

    Returns:
        bytes: Decoded payload
    """
    bits = np.asarray(bits, dtype=np.uint8).ravel()
    usable = (bits.size // 8) * 8
    return np.packbits(bits[:usable]).tobytes()


def encode_length(bit_count):
    """
    Encode a payload bit count as a big-endian 16-bit header.

    Raises:
        PayloadTooLargeError: If bit_count is negative or above 65535
    """
    if bit_count < 0 or bit_count > MAX_PAYLOAD_BITS:
        raise PayloadTooLargeError(
            f"Payload of {bit_count} bits exceeds the {MAX_PAYLOAD_BITS}-bit header limit"
        )
    shifts = np.arange(LENGTH_HEADER_BITS - 1, -1, -1)
    return ((int(bit_count) >> shifts) & 1).astype(np.uint8)


def decode_length(bits):
    """Read the payload bit count from the first 16 bits."""
    header = np.asarray(bits, dtype=np.int64).ravel()[:LENGTH_HEADER_BITS]
    value = 0
    for bit in header:
        value = (value << 1) | int(bit)
    return value


def frame(payload_bits):
    """Prepend the length header to payload bits."""
    payload_bits = np.asarray(payload_bits, dtype=np.uint8).ravel()
    return np.concatenate([encode_length(payload_bits.size), payload_bits])
