"""
mpdenoise: MP-PCA denoising of diffusion-weighted MRI

Voxel-wise denoising of multi-volume images by local principal component
analysis, with the noise/signal boundary chosen from the Marchenko-Pastur
distribution. Also produces a map of the estimated noise level.
"""

__version__ = "0.1.0"
__author__ = "mpdenoise Team"

from .core import DenoiseConfig, load_config
from .data import Volume, load_volume, save_volume
from .denoise import (
    MPPCADenoiser,
    MPPCAResult,
    ThreadedLoop,
    WindowExtractor,
    denoise_array,
    denoise_file,
    denoise_volume,
)
