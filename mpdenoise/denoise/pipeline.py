"""
End-to-end MP-PCA denoising of diffusion-weighted images.

Ties together volume I/O, run configuration, the per-voxel denoiser and the
threaded loop.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

from ..core.config import DenoiseConfig
from ..core.timing import Timer
from ..data.volume import Volume, load_volume, save_volume
from .loop import ThreadedLoop
from .mppca import MPPCADenoiser

logger = logging.getLogger(__name__)

LOOP_DESCRIPTION = "running MP-PCA denoising"


def denoise_volume(dwi: Volume,
                   config: Optional[DenoiseConfig] = None,
                   return_noise: Optional[bool] = None,
                   progress: bool = True) -> Tuple[Volume, Optional[Volume]]:
    """
    Denoise a 4D volume.

    Args:
        dwi: 4D input volume
        config: Run configuration, defaults to DenoiseConfig()
        return_noise: Whether to compute the noise map; defaults to
            ``config.wants_noise_map``
        progress: Whether to display a progress bar

    Returns:
        Tuple (denoised, noise): float32 volume with the input's shape, and the
        3D float32 noise map or None

    Raises:
        ValueError: If the input is not a non-empty 4D volume
    """
    config = config or DenoiseConfig()
    if return_noise is None:
        return_noise = config.wants_noise_map

    dwi.validate()

    out = Volume.create_like(dwi, dtype=np.float32)
    volumes = [dwi, out]
    noise = None
    if return_noise:
        noise = Volume.create_like(dwi, ndim=3, dtype=np.float32)
        volumes.append(noise)

    denoiser = MPPCADenoiser(dwi.n_volumes, config.window_size)
    logger.info(
        f"Denoising volume {dwi.shape} with window size {config.window_size} "
        f"(m={denoiser.m}, n={denoiser.n})"
    )

    loop = ThreadedLoop(LOOP_DESCRIPTION, dwi, nthreads=config.nthreads, progress=progress)
    with Timer("MP-PCA denoising") as timer:
        timer.count = loop.run(denoiser, *volumes)
    n_voxels = timer.count

    if noise is not None:
        n_undefined = int(np.isnan(noise.data).sum())
        if n_undefined:
            logger.info(f"Noise level undefined in {n_undefined} of {n_voxels} voxels")

    return out, noise


def denoise_array(arr: np.ndarray,
                  window_size: int = 5,
                  return_sigma: bool = False,
                  nthreads: Optional[int] = None,
                  progress: bool = False):
    """
    Convenience function to denoise a 4D numpy array.

    Args:
        arr: 4D array indexed (x, y, z, v)
        window_size: Odd side length of the cubic window
        return_sigma: Whether to also return the 3D noise map
        nthreads: Number of worker threads
        progress: Whether to display a progress bar

    Returns:
        Denoised float32 array, or (denoised, sigma) if return_sigma
    """
    config = DenoiseConfig(window_size=window_size, nthreads=nthreads)
    out, noise = denoise_volume(Volume(arr), config, return_noise=return_sigma,
                                progress=progress)
    if return_sigma:
        return out.data, noise.data
    return out.data


def denoise_file(in_path: Union[str, Path],
                 out_path: Union[str, Path],
                 noise_path: Optional[Union[str, Path]] = None,
                 config: Optional[DenoiseConfig] = None,
                 progress: bool = True):
    """
    Denoise a NIfTI file and write the result (and noise map) to disk.

    Args:
        in_path: Input 4D NIfTI file
        out_path: Output denoised NIfTI file
        noise_path: Output noise map, overrides ``config.noise_map``
        config: Run configuration
        progress: Whether to display a progress bar
    """
    config = config or DenoiseConfig()
    if noise_path is not None:
        config = DenoiseConfig(window_size=config.window_size,
                               nthreads=config.nthreads,
                               noise_map=str(noise_path))

    with Timer(f"Denoising {in_path}"):
        dwi = load_volume(in_path)
        out, noise = denoise_volume(dwi, config, progress=progress)

        save_volume(out, out_path)
        logger.info(f"Wrote denoised image to {out_path}")

        if noise is not None:
            save_volume(noise, config.noise_map)
            logger.info(f"Wrote noise map to {config.noise_map}")
