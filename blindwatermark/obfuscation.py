"""
Keyed bit permutation

Scrambles payload bit order so a mark cannot be read without the key. This is
obfuscation only: the seed is a CRC-32 of the key and offers no
confidentiality.
"""

import zlib

import numpy as np


class PermutationObfuscation:
    """
    Reversible, key-seeded shuffle of a bit sequence.

    The permutation for a given length is a Fisher-Yates shuffle drawn from
    numpy's legacy RandomState, whose stream is frozen across numpy releases.
    """

    def __init__(self, key):
        if isinstance(key, str):
            key = key.encode('utf-8')
        self.seed = zlib.crc32(key) & 0xFFFFFFFF

    def permutation(self, length):
        return np.random.RandomState(self.seed).permutation(length)

    def shuffle(self, bits):
        bits = np.asarray(bits).ravel()
        return bits[self.permutation(bits.size)]

    def unshuffle(self, bits):
        bits = np.asarray(bits).ravel()
        restored = np.empty_like(bits)
        restored[self.permutation(bits.size)] = bits
        return restored
