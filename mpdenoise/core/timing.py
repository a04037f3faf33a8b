"""Throughput reporting for denoising runs and image I/O."""

import logging
import time
from typing import Optional

logger = logging.getLogger(__name__)


class Timer:
    """
    Times a block of work and logs how long it took.

    Set ``count`` inside the block (for example to the number of voxels
    processed) to have the rate logged as well.
    """

    def __init__(self, name: str, unit: str = "voxels", log_level: int = logging.INFO):
        self.name = name
        self.unit = unit
        self.log_level = log_level
        self.count: Optional[int] = None
        self.duration = 0.0
        self._start = None

    def __enter__(self):
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.perf_counter() - self._start
        if exc_type is not None:
            logger.error(f"{self.name} failed after {self.duration:.2f} s")
        elif self.count:
            logger.log(self.log_level,
                       f"{self.name}: {self.count} {self.unit} in {self.duration:.2f} s "
                       f"({self.rate:.0f} {self.unit}/s)")
        else:
            logger.log(self.log_level, f"{self.name}: {self.duration:.2f} s")

    @property
    def rate(self) -> float:
        """Items processed per second, 0 if nothing was counted."""
        if not self.count or self.duration <= 0:
            return 0.0
        return self.count / self.duration
