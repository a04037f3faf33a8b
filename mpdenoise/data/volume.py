"""
Volumetric image access for the denoising engine.

This module provides the ``Volume`` view used by the denoiser: a numpy array
with three spatial axes (x, y, z) and an optional volume axis (v), plus a
spatial cursor. NIfTI files are read and written with nibabel.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import nibabel as nib
import numpy as np

from ..core.timing import Timer

logger = logging.getLogger(__name__)


class Volume:
    """
    A 3D or 4D image addressed by (x, y, z[, v]) with a spatial cursor.

    Several ``Volume`` objects can share the same data array; each keeps its
    own cursor. Worker threads take a ``view()`` so that moving the cursor in
    one thread never affects another.
    """

    def __init__(self,
                 data: np.ndarray,
                 affine: Optional[np.ndarray] = None,
                 header: Optional[nib.Nifti1Header] = None):
        """
        Initialize volume.

        Args:
            data: 3D or 4D array, indexed as (x, y, z[, v])
            affine: Voxel-to-world affine, identity if not given
            header: NIfTI header carried over when saving

        Raises:
            ValueError: If data is not 3D or 4D
        """
        data = np.asarray(data)
        if data.ndim not in (3, 4):
            raise ValueError(f"Expected 3D or 4D volume, got shape {data.shape}")

        self.data = data
        self.affine = np.eye(4) if affine is None else np.asarray(affine)
        self.header = header
        self.index = [0, 0, 0]

    def __repr__(self):
        return f"Volume(shape={self.shape}, dtype={self.dtype}, index={tuple(self.index)})"

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.data.shape

    @property
    def ndim(self) -> int:
        return self.data.ndim

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    @property
    def spatial_shape(self) -> Tuple[int, int, int]:
        return self.data.shape[:3]

    @property
    def n_volumes(self) -> int:
        """Number of volumes along the 4th axis (1 for a 3D image)."""
        return self.data.shape[3] if self.data.ndim == 4 else 1

    def view(self) -> "Volume":
        """Get a volume sharing this data with an independent cursor."""
        other = Volume(self.data, self.affine, self.header)
        other.index = list(self.index)
        return other

    def is_out_of_bounds(self, index: Optional[Sequence[int]] = None) -> bool:
        """Check whether a spatial position (default: the cursor) lies outside the image."""
        if index is None:
            index = self.index
        return any(i < 0 or i >= n for i, n in zip(index, self.spatial_shape))

    def row(self) -> np.ndarray:
        """Get the values along the volume axis at the cursor."""
        x, y, z = self.index
        return self.data[x, y, z]

    def set_row(self, values: np.ndarray):
        """Set the values along the volume axis at the cursor."""
        x, y, z = self.index
        self.data[x, y, z] = values

    @property
    def value(self):
        """Scalar at the cursor of a 3D volume."""
        x, y, z = self.index
        return self.data[x, y, z]

    @value.setter
    def value(self, v):
        x, y, z = self.index
        self.data[x, y, z] = v

    def validate(self):
        """
        Validate that this volume can be fed to the denoiser.

        Raises:
            ValueError: If the volume is not 4D or is empty
        """
        if self.ndim != 4:
            logger.error(f"Volume must be 4D, got {self.ndim}D")
            raise ValueError(f"Expected 4D volume, got shape {self.shape}")

        if self.data.size == 0:
            logger.error("Volume is empty")
            raise ValueError(f"Volume is empty, shape {self.shape}")

    @classmethod
    def create_like(cls,
                    template: "Volume",
                    ndim: Optional[int] = None,
                    dtype=np.float32) -> "Volume":
        """
        Allocate a zero-filled volume with the geometry of a template.

        Args:
            template: Volume whose spatial shape, affine and header are copied
            ndim: 3 to drop the volume axis, default keeps the template's
            dtype: Data type of the new volume

        Returns:
            New Volume
        """
        ndim = template.ndim if ndim is None else ndim
        if ndim not in (3, 4):
            raise ValueError(f"ndim must be 3 or 4, got {ndim}")

        shape = template.shape[:ndim]
        header = None
        if template.header is not None:
            header = template.header.copy()
            header.set_data_dtype(dtype)
            header.set_data_shape(shape)

        return cls(np.zeros(shape, dtype=dtype), template.affine.copy(), header)


def load_volume(nifti_path: Union[str, Path]) -> Volume:
    """
    Load a NIfTI file as a float32 Volume.

    Args:
        nifti_path: Path to NIfTI file

    Returns:
        Volume with the file's data, affine and header

    Raises:
        FileNotFoundError: If NIfTI file doesn't exist
        ValueError: If file cannot be loaded or has invalid dimensions
    """
    nifti_path = Path(nifti_path)

    if not nifti_path.exists():
        raise FileNotFoundError(f"NIfTI file not found: {nifti_path}")

    with Timer(f"Loading {nifti_path}", unit="bytes", log_level=logging.DEBUG) as timer:
        try:
            nifti_img = nib.load(str(nifti_path))
            data = np.asarray(nifti_img.dataobj, dtype=np.float32)
        except Exception as e:
            raise ValueError(f"Failed to load NIfTI file {nifti_path}: {str(e)}")
        timer.count = data.nbytes

    volume = Volume(data, nifti_img.affine, nifti_img.header.copy())
    logger.debug(f"Loaded NIfTI file {nifti_path} with shape {volume.shape}")
    return volume


def save_volume(volume: Volume, nifti_path: Union[str, Path]):
    """
    Save a Volume to a NIfTI file as float32.

    Args:
        volume: Volume to save
        nifti_path: Destination path
    """
    nifti_path = Path(nifti_path)
    data = np.asarray(volume.data, dtype=np.float32)

    header = volume.header.copy() if volume.header is not None else None
    nifti_img = nib.Nifti1Image(data, volume.affine, header)
    nifti_img.set_data_dtype(np.float32)
    with Timer(f"Saving {nifti_path}", unit="bytes", log_level=logging.DEBUG) as timer:
        nib.save(nifti_img, str(nifti_path))
        timer.count = data.nbytes

    logger.debug(f"Saved volume with shape {data.shape} to {nifti_path}")
