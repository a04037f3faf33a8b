"""Volume access and NIfTI I/O."""

from .volume import Volume, load_volume, save_volume

__all__ = ["Volume", "load_volume", "save_volume"]
