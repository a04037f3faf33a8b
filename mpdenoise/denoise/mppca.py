"""
MP-PCA denoising of a single window.

The window matrix is centred, decomposed with an SVD, and the smallest
components are discarded as noise. The number of signal components p is the
first index at which the variance of the remaining eigenvalues, as predicted
by the Marchenko-Pastur law from their spread, falls below their mean.

References
----------
Veraart J, Novikov DS, Christiaens D, Ades-aron B, Sijbers J, Fieremans E.
Denoising of diffusion MRI using random matrix theory. NeuroImage 2016.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.linalg import LinAlgError, svd

from ..data.volume import Volume
from .window import WindowExtractor

logger = logging.getLogger(__name__)


@dataclass
class MPPCAResult:
    """Outcome of denoising one window."""

    # Number of retained signal components
    p: int
    # Noise standard deviation, NaN if every component was retained
    sigma: float

    @property
    def degenerate(self) -> bool:
        return bool(np.isnan(self.sigma))


def mp_threshold(lam: np.ndarray, m: int, n: int):
    """
    Find the signal/noise boundary of an eigenvalue spectrum.

    Args:
        lam: Eigenvalues s**2 / n in descending order, length r = min(m, n)
        m: Number of rows of the window matrix
        n: Number of columns of the window matrix

    Returns:
        Tuple (p, sigsq) where p is the number of signal components and sigsq
        the noise variance at p, or (r, nan) when no boundary is found
    """
    r = lam.shape[0]
    if r == 0:
        return 0, np.nan

    # clam[i] = sum of lam[i:]
    clam = np.cumsum(lam[::-1])[::-1]

    p = np.arange(r)
    gam = (m - p) / n
    sigsq1 = clam / (r - p) / np.maximum(gam, 1.0)
    sigsq2 = (lam - lam[r - 1]) / (4 * np.sqrt(gam))

    # A tail with no energy left is pure (zero) noise
    stop = np.flatnonzero((sigsq2 < sigsq1) | (clam == 0))
    if stop.size == 0:
        return r, np.nan

    p = int(stop[0])
    return p, float(sigsq1[p])


class MPPCADenoiser:
    """
    Per-voxel MP-PCA denoiser.

    Owns the window buffer and the mean vector, both reused on every voxel.
    Each worker thread needs its own instance; the threaded loop deep-copies
    the denoiser once per thread.
    """

    def __init__(self, n_volumes: int, size: int = 5):
        """
        Initialize denoiser.

        Args:
            n_volumes: Number of volumes m in the images to be denoised
            size: Odd side length of the cubic window
        """
        self.extractor = WindowExtractor(n_volumes, size)
        self.m = self.extractor.m
        self.n = self.extractor.n
        self.r = min(self.m, self.n)
        self._mean = np.zeros(self.m, dtype=self.extractor.X.dtype)

    def __repr__(self):
        return f"MPPCADenoiser(m={self.m}, n={self.n}, size={self.extractor.size})"

    def decompose(self, X: np.ndarray) -> MPPCAResult:
        """
        Denoise a window matrix in place.

        Args:
            X: m x n window matrix, overwritten with its denoised reconstruction

        Returns:
            MPPCAResult with the number of retained components and the noise level
        """
        m, n = X.shape
        if not np.isfinite(X).all():
            # Windows touching NaN/inf samples pass through unchanged
            return MPPCAResult(p=min(m, n), sigma=np.nan)

        Xm = self._mean if m == self.m else np.empty(m, dtype=X.dtype)
        np.mean(X, axis=1, out=Xm)
        X -= Xm[:, np.newaxis]

        try:
            U, s, Vt = svd(X, full_matrices=False, lapack_driver='gesvd', check_finite=False)
        except LinAlgError as e:
            logger.debug(f"SVD did not converge, window left unchanged: {str(e)}")
            X += Xm[:, np.newaxis]
            return MPPCAResult(p=min(m, n), sigma=np.nan)

        lam = s ** 2 / n

        p, sigsq = mp_threshold(lam, m, n)
        s[p:] = 0.0

        X[...] = (U * s) @ Vt
        X += Xm[:, np.newaxis]

        return MPPCAResult(p=p, sigma=float(np.sqrt(sigsq)))

    def __call__(self,
                 dwi: Volume,
                 out: Volume,
                 noise: Optional[Volume] = None) -> MPPCAResult:
        """
        Denoise the voxel under the cursor of ``dwi``.

        Args:
            dwi: 4D source volume, cursor at the voxel to process
            out: 4D destination volume, written at the same voxel
            noise: Optional 3D noise map, receives the noise level at the voxel

        Returns:
            MPPCAResult for this voxel
        """
        X = self.extractor.load(dwi)
        result = self.decompose(X)

        out.index = list(dwi.index)
        out.set_row(X[:, self.extractor.center_index])

        if noise is not None:
            noise.index = list(dwi.index)
            noise.value = result.sigma

        return result
