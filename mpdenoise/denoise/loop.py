"""
Multi-threaded iteration over the spatial positions of a volume.

The iteration space is split into lines along x, one per (y, z) pair. Worker
threads pull lines from a shared iterator, so every position is visited by
exactly one thread. numpy and LAPACK release the GIL during the heavy
lifting, which is what makes threads worthwhile here.
"""

import copy
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from tqdm import tqdm

from ..core.threads import console_lock, number_of_threads, thread_print
from ..data.volume import Volume

logger = logging.getLogger(__name__)


class ThreadedLoop:
    """
    Runs a per-voxel functor over every spatial position of a volume.

    Each worker thread gets a deep copy of the functor and its own ``view()``
    of every volume, so scratch buffers and cursors are never shared. Writes
    to the output volumes are only ever made at the current position, which
    no other thread visits.
    """

    def __init__(self,
                 description: str,
                 volume: Volume,
                 nthreads: Optional[int] = None,
                 progress: bool = True):
        """
        Initialize threaded loop.

        Args:
            description: Label of the progress bar
            volume: Volume defining the spatial iteration space
            nthreads: Number of worker threads for this loop only; the
                process-wide number_of_threads() is used if None
            progress: Whether to display a progress bar
        """
        self.description = description
        self.spatial_shape = volume.spatial_shape
        if nthreads is None:
            nthreads = number_of_threads()
        elif nthreads <= 0:
            raise ValueError(f"nthreads must be positive, got {nthreads}")
        self.nthreads = nthreads
        self.progress = progress

    def _lines(self):
        nx, ny, nz = self.spatial_shape
        for z in range(nz):
            for y in range(ny):
                yield y, z

    def run(self, functor: Callable, *volumes: Volume) -> int:
        """
        Call ``functor(*volumes)`` once per spatial position.

        The cursor of the first volume is placed on the position before each
        call; the functor is responsible for positioning the others.

        Args:
            functor: Per-voxel callable, deep-copied once per thread
            *volumes: Volumes passed to the functor, the first one drives the loop

        Returns:
            Number of positions processed

        Raises:
            Exception: Any exception raised by the functor in a worker thread
        """
        nx, ny, nz = self.spatial_shape
        n_lines = ny * nz
        if nx == 0 or n_lines == 0:
            return 0

        lines = self._lines()
        lines_lock = threading.Lock()
        failed = threading.Event()

        def next_line():
            if failed.is_set():
                return None
            with lines_lock:
                return next(lines, None)

        bar = tqdm(total=n_lines, desc=self.description, unit="line",
                   disable=not self.progress, leave=False)

        def worker():
            local = copy.deepcopy(functor)
            views = [v.view() for v in volumes]
            source = views[0]
            count = 0
            try:
                while True:
                    line = next_line()
                    if line is None:
                        return count
                    y, z = line
                    for x in range(nx):
                        source.index = [x, y, z]
                        local(*views)
                    count += nx
                    with console_lock:
                        bar.update(1)
            except Exception as e:
                failed.set()
                thread_print(
                    f"{threading.current_thread().name}: {self.description} failed "
                    f"at voxel {tuple(source.index)}: {e}"
                )
                raise

        n_workers = min(self.nthreads, n_lines)
        logger.debug(f"{self.description}: {n_lines} lines on {n_workers} threads")

        try:
            with ThreadPoolExecutor(max_workers=n_workers,
                                    thread_name_prefix="mpdenoise") as executor:
                futures = [executor.submit(worker) for _ in range(n_workers)]
                counts = [f.result() for f in futures]
        finally:
            with console_lock:
                bar.close()

        return sum(counts)
