"""
Sliding-window extraction.

A window is the cube of ``size**3`` voxels centred on the cursor of a 4D
volume. Its voxels are enumerated with z outermost, then y, then x
innermost; column k of the window matrix holds the volume vector of the
k-th voxel in that order, so the centre voxel is always column ``n // 2``.
"""

import numpy as np

from ..data.volume import Volume


class WindowExtractor:
    """
    Gathers the window around a voxel into a reusable m x n matrix.

    The matrix is a view onto a buffer owned by the extractor and is
    overwritten on every call to ``load``; an extractor must therefore not be
    shared between threads.
    """

    def __init__(self, n_volumes: int, size: int, dtype=np.float64):
        """
        Initialize extractor.

        Args:
            n_volumes: Number of volumes m (rows of the window matrix)
            size: Odd side length of the cubic window
            dtype: Data type of the window matrix

        Raises:
            ValueError: If n_volumes is not positive or size is not a positive odd integer
        """
        if n_volumes <= 0:
            raise ValueError(f"n_volumes must be positive, got {n_volumes}")
        if size <= 0 or size % 2 == 0:
            raise ValueError(f"size must be a positive odd integer, got {size}")

        self.size = size
        self.extent = size // 2
        self.m = n_volumes
        self.n = size ** 3
        self.center_index = self.n // 2

        # Indexed (z, y, x, v) so that a C-order reshape gives z-outermost columns
        self._buffer = np.zeros((size, size, size, n_volumes), dtype=dtype)

    @property
    def X(self) -> np.ndarray:
        """The m x n window matrix, a view onto the buffer."""
        return self._buffer.reshape(self.n, self.m).T

    def offsets(self) -> np.ndarray:
        """
        Get the (dx, dy, dz) offset of every window column.

        Returns:
            Integer array of shape (n, 3); row k is the offset of column k
        """
        r = np.arange(-self.extent, self.extent + 1)
        dz, dy, dx = np.meshgrid(r, r, r, indexing='ij')
        return np.stack([dx.ravel(), dy.ravel(), dz.ravel()], axis=1)

    def load(self, volume: Volume) -> np.ndarray:
        """
        Fill the window matrix around the cursor of a volume.

        Neighbours outside the image leave their columns at zero. The
        volume's cursor is not moved.

        Args:
            volume: 4D source volume with m volumes

        Returns:
            The m x n window matrix (a view onto the extractor's buffer)
        """
        e = self.extent
        center = volume.index
        self._buffer.fill(0)

        if volume.is_out_of_bounds():
            return self.X

        lo = [max(c - e, 0) for c in center]
        hi = [min(c + e + 1, dim) for c, dim in zip(center, volume.spatial_shape)]

        # Position of the in-bounds block inside the window
        start = [l - (c - e) for l, c in zip(lo, center)]
        stop = [s + (h - l) for s, l, h in zip(start, lo, hi)]

        block = volume.data[lo[0]:hi[0], lo[1]:hi[1], lo[2]:hi[2]]
        self._buffer[start[2]:stop[2], start[1]:stop[1], start[0]:stop[0]] = \
            block.transpose(2, 1, 0, 3)
        return self.X
