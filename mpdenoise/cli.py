"""Command line interface for MP-PCA denoising."""

import logging
import sys

import click

from .core.config import DEFAULT_WINDOW_SIZE, MAX_WINDOW_SIZE, MIN_WINDOW_SIZE, DenoiseConfig, load_config
from .core.threads import number_of_threads
from .denoise.pipeline import denoise_file

logger = logging.getLogger(__name__)


@click.command(name="mpdenoise")
@click.argument("dwi", type=click.Path(exists=True, dir_okay=False))
@click.argument("out", type=click.Path(dir_okay=False))
@click.option("--size", "window_size", type=click.IntRange(MIN_WINDOW_SIZE, MAX_WINDOW_SIZE),
              default=None,
              help=f"Set the window size of the denoising filter (default = {DEFAULT_WINDOW_SIZE}).")
@click.option("--noise", "noise_path", type=click.Path(dir_okay=False), default=None,
              help="Write the noise level map to this file.")
@click.option("--nthreads", type=click.IntRange(min=1), default=None,
              help="Number of worker threads.")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), default=None,
              help="YAML file with default run parameters.")
@click.option("--quiet", is_flag=True, help="Hide the progress bar and informational messages.")
@click.option("--verbose", is_flag=True, help="Show debug messages.")
def denoise_command(dwi, out, window_size, noise_path, nthreads, config_path, quiet, verbose):
    """Denoise DWI data and estimate the noise level based on the optimal threshold for PCA."""
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    try:
        config = load_config(config_path) if config_path else DenoiseConfig()
        config = DenoiseConfig(
            window_size=config.window_size if window_size is None else window_size,
            nthreads=config.nthreads if nthreads is None else nthreads,
            noise_map=config.noise_map if noise_path is None else noise_path,
        )
        if config.nthreads is not None:
            number_of_threads(config.nthreads)
    except ValueError as e:
        raise click.BadParameter(str(e))

    try:
        denoise_file(dwi, out, config=config, progress=not quiet)
    except (OSError, ValueError) as e:
        logger.error(f"Denoising failed: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    denoise_command()
