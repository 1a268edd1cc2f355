"""
DCT - Block-wise two dimensional Discrete Cosine Transform

Implements the orthonormal DCT-II used to carry watermark bits:

    F(u,v) = 2/sqrt(M*N) * C(u) * C(v) * sum_i sum_j f(i,j)
             * cos((2i+1)*u*pi / 2M) * cos((2j+1)*v*pi / 2N)

where C(0) = 1/sqrt(2) and C(k) = 1 otherwise. The inverse sums over (u, v)
with the same normalisation.
"""

import math
import threading

import numpy as np
from scipy import fft as sp_fft

from .exceptions import InvalidParameterError

DIRECT = 'direct'
CACHED = 'cached'
FFT = 'fft'

MODES = (DIRECT, CACHED, FFT)


def _alpha(k):
    return 1 / math.sqrt(2) if k == 0 else 1.0


def _weights(m, n):
    """C(u) * C(v) * 2/sqrt(MN) for every (u, v)."""
    alpha_m = np.ones(m)
    alpha_m[0] = 1 / math.sqrt(2)
    alpha_n = np.ones(n)
    alpha_n[0] = 1 / math.sqrt(2)
    return np.outer(alpha_m, alpha_n) * 2 / math.sqrt(m * n)


def _as_matrix(matrix):
    data = np.asarray(matrix, dtype=np.float64)
    if data.ndim == 1 and data.size == 0:
        return data.reshape(0, 0)
    if data.ndim != 2:
        raise InvalidParameterError(f"Expected a 2-D matrix, got shape {data.shape}")
    return data


def check_block_size(block_size):
    if isinstance(block_size, bool) or not isinstance(block_size, (int, np.integer)) or block_size < 1:
        raise InvalidParameterError(f"Block size must be a positive integer, got {block_size}")


class CosineCache:
    """
    Append-only memo of cos((2k+1) * f * pi / (2 * size)).

    One table is built per transform size and shared by every later call with
    that size. Entries are addressed by the (index, frequency, size) tuple.
    Population is serialised behind a lock; a table is never modified once
    stored, so readers need no locking.
    """

    def __init__(self):
        self._tables = {}
        self._lock = threading.Lock()

    def table(self, size):
        """
        Get the cosine table for a transform size.

        Args:
            size: Transform length along one axis

        Returns:
            np.ndarray: Read-only (size, size) array indexed as [index, frequency]
        """
        table = self._tables.get(size)
        if table is None:
            with self._lock:
                table = self._tables.get(size)
                if table is None:
                    index = np.arange(size).reshape(-1, 1)
                    frequency = np.arange(size).reshape(1, -1)
                    table = np.cos((2 * index + 1) * frequency * np.pi / (2 * size))
                    table.setflags(write=False)
                    self._tables[size] = table
        return table

    def cosine(self, index, frequency, size):
        return float(self.table(size)[index, frequency])

    def sizes(self):
        return sorted(self._tables)

    def clear(self):
        with self._lock:
            self._tables = {}

    def __contains__(self, size):
        return size in self._tables

    def __len__(self):
        return len(self._tables)


class DCT:
    """
    Forward and inverse 2-D DCT over whole matrices or block tiles.

    Three modes compute the same transform:

    - ``direct``: literal double summation, every cosine recomputed per call.
      Slow; used as the reference.
    - ``cached``: cosines come from a ``CosineCache`` and the sums are
      evaluated as matrix products. Default.
    - ``fft``: scipy's orthonormal DCT-II, numerically identical.
    """

    def __init__(self, mode=CACHED, cache=None):
        """
        Initialize the engine.

        Args:
            mode: One of 'direct', 'cached', 'fft'
            cache: CosineCache to share between engines (a new one if omitted)
        """
        if mode not in MODES:
            raise InvalidParameterError(f"Unknown DCT mode '{mode}', expected one of {MODES}")
        self.mode = mode
        self.cache = cache if cache is not None else CosineCache()

    def forward(self, matrix):
        """
        Transform an M x N matrix into DCT coefficients.

        Args:
            matrix: 2-D array-like of samples (may be empty)

        Returns:
            np.ndarray: float64 coefficients of the same shape
        """
        data = _as_matrix(matrix)
        if data.size == 0:
            return data.copy()
        return self._forward(data)

    def inverse(self, coefficients):
        """
        Reconstruct samples from an M x N coefficient matrix.

        Args:
            coefficients: 2-D array-like of DCT coefficients (may be empty)

        Returns:
            np.ndarray: float64 samples of the same shape, unrounded
        """
        data = _as_matrix(coefficients)
        if data.size == 0:
            return data.copy()
        return self._inverse(data)

    def block_dct(self, channel, block_size=8):
        """
        Split a channel into block_size tiles and transform each one.

        Partial tiles at the bottom and right edges are zero padded.

        Args:
            channel: 2-D array-like (height x width)
            block_size: Tile edge length

        Returns:
            np.ndarray: (blocks_y, blocks_x, block_size, block_size) coefficients
        """
        check_block_size(block_size)
        data = _as_matrix(channel)
        height, width = data.shape
        blocks_y = -(-height // block_size)
        blocks_x = -(-width // block_size)

        padded = np.zeros((blocks_y * block_size, blocks_x * block_size))
        padded[:height, :width] = data
        tiles = padded.reshape(blocks_y, block_size, blocks_x, block_size).swapaxes(1, 2)

        if tiles.size == 0:
            return np.ascontiguousarray(tiles)
        return self._forward(tiles)

    def block_idct(self, blocks, height, width, block_size=8):
        """
        Inverse-transform tiles and reassemble a height x width channel.

        Padding beyond the channel edges is dropped. Pixels not covered by any
        tile stay 0. Values are neither rounded nor clamped.

        Args:
            blocks: Output of block_dct (4-D array)
            height: Channel height
            width: Channel width
            block_size: Tile edge length

        Returns:
            np.ndarray: float64 channel
        """
        check_block_size(block_size)
        result = np.zeros((height, width))

        blocks = np.asarray(blocks, dtype=np.float64)
        if blocks.size == 0:
            return result
        if blocks.ndim != 4 or blocks.shape[2:] != (block_size, block_size):
            raise InvalidParameterError(
                f"Expected blocks of shape (by, bx, {block_size}, {block_size}), got {blocks.shape}"
            )

        blocks_y, blocks_x = blocks.shape[:2]
        tiles = self._inverse(blocks)
        full = tiles.swapaxes(1, 2).reshape(blocks_y * block_size, blocks_x * block_size)

        h = min(height, full.shape[0])
        w = min(width, full.shape[1])
        result[:h, :w] = full[:h, :w]
        return result

    def _forward(self, data):
        if self.mode == FFT:
            return sp_fft.dctn(data, type=2, norm='ortho', axes=(-2, -1))
        if self.mode == DIRECT:
            return self._per_matrix(data, _direct_forward)

        m, n = data.shape[-2:]
        cos_m = self.cache.table(m)
        cos_n = self.cache.table(n)
        return np.einsum('iu,...ij,jv->...uv', cos_m, data, cos_n) * _weights(m, n)

    def _inverse(self, data):
        if self.mode == FFT:
            return sp_fft.idctn(data, type=2, norm='ortho', axes=(-2, -1))
        if self.mode == DIRECT:
            return self._per_matrix(data, _direct_inverse)

        m, n = data.shape[-2:]
        cos_m = self.cache.table(m)
        cos_n = self.cache.table(n)
        return np.einsum('iu,...uv,jv->...ij', cos_m, data * _weights(m, n), cos_n)

    @staticmethod
    def _per_matrix(data, transform):
        out = np.empty_like(data)
        for index in np.ndindex(*data.shape[:-2]):
            out[index] = transform(data[index])
        return out


def _direct_forward(matrix):
    m, n = matrix.shape
    values = matrix.tolist()
    result = np.zeros((m, n))

    for u in range(m):
        for v in range(n):
            total = 0.0
            for i in range(m):
                for j in range(n):
                    total += (values[i][j]
                              * math.cos((2 * i + 1) * u * math.pi / (2 * m))
                              * math.cos((2 * j + 1) * v * math.pi / (2 * n)))
            result[u, v] = _alpha(u) * _alpha(v) * total * 2 / math.sqrt(m * n)

    return result


def _direct_inverse(coefficients):
    m, n = coefficients.shape
    values = coefficients.tolist()
    result = np.zeros((m, n))

    for i in range(m):
        for j in range(n):
            total = 0.0
            for u in range(m):
                for v in range(n):
                    total += (_alpha(u) * _alpha(v) * values[u][v]
                              * math.cos((2 * i + 1) * u * math.pi / (2 * m))
                              * math.cos((2 * j + 1) * v * math.pi / (2 * n)))
            result[i, j] = total * 2 / math.sqrt(m * n)

    return result


_default_engine = DCT()


def forward(matrix):
    return _default_engine.forward(matrix)


def inverse(coefficients):
    return _default_engine.inverse(coefficients)


def block_dct(channel, block_size=8):
    return _default_engine.block_dct(channel, block_size)


def block_idct(blocks, height, width, block_size=8):
    return _default_engine.block_idct(blocks, height, width, block_size)
