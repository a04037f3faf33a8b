"""
MP-PCA denoising components.

This module handles:
- Window extraction around each voxel
- MP-PCA decomposition of a window
- Threaded iteration over all voxels
- File and array level entry points
"""

from .window import WindowExtractor
from .mppca import MPPCADenoiser, MPPCAResult, mp_threshold
from .loop import ThreadedLoop
from .pipeline import denoise_array, denoise_file, denoise_volume

__all__ = [
    'WindowExtractor',
    'MPPCADenoiser',
    'MPPCAResult',
    'mp_threshold',
    'ThreadedLoop',
    'denoise_array',
    'denoise_file',
    'denoise_volume',
]
