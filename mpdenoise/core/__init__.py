"""Run configuration, threading and timing support."""

from .config import DenoiseConfig, load_config
from .threads import number_of_threads, thread_print
from .timing import Timer

__all__ = [
    "DenoiseConfig",
    "load_config",
    "number_of_threads",
    "thread_print",
    "Timer",
]
