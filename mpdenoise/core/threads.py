"""
Process-wide threading configuration.

The worker count is resolved once, from an explicit value, then the
``MPDENOISE_NTHREADS`` environment variable, then the ``number_of_threads``
key of the user configuration file, and finally the CPU count. Console
output from worker threads goes through ``console_lock``.
"""

import logging
import os
import threading
from typing import Optional

from tqdm import tqdm

from .config import user_config

logger = logging.getLogger(__name__)

NTHREADS_ENV_VAR = "MPDENOISE_NTHREADS"

_number_of_threads: Optional[int] = None
_resolve_lock = threading.Lock()

# Guards the single shared console sink (progress bars and thread_print).
console_lock = threading.Lock()


def number_of_threads(nthreads: Optional[int] = None) -> int:
    """
    Get the number of worker threads, resolving and caching it on first use.

    Args:
        nthreads: Explicit thread count; replaces any cached value

    Returns:
        Positive thread count

    Raises:
        ValueError: If the resolved value is not a positive integer
    """
    global _number_of_threads

    with _resolve_lock:
        if nthreads is not None:
            source, value = "argument", nthreads
        elif _number_of_threads is not None:
            return _number_of_threads
        elif os.environ.get(NTHREADS_ENV_VAR):
            source, value = NTHREADS_ENV_VAR, os.environ[NTHREADS_ENV_VAR]
        else:
            config = user_config()
            if config.get("number_of_threads") is not None:
                source, value = "config file", config["number_of_threads"]
            else:
                source, value = "cpu count", os.cpu_count() or 1

        try:
            value = int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid thread count from {source}: {value!r}")
        if value <= 0:
            raise ValueError(f"Thread count from {source} must be positive, got {value}")

        _number_of_threads = value
        logger.debug(f"Using {value} threads (from {source})")
        return value


def reset_number_of_threads():
    """Forget the cached thread count."""
    global _number_of_threads
    with _resolve_lock:
        _number_of_threads = None


def thread_print(msg: str):
    """Write a line to the console without interleaving with other threads."""
    with console_lock:
        tqdm.write(msg)
