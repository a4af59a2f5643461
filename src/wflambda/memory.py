"""System memory statistics."""

from dataclasses import dataclass
from typing import Callable

import psutil

MEGABYTE = 2**20


@dataclass(frozen=True)
class MemoryStats:
    """Memory figures in megabytes, plus the used percentage."""

    total: float = 0.0
    used: float = 0.0
    used_percentage: float = 0.0


MemoryStatsProvider = Callable[[], MemoryStats]


def get_memory_stats() -> MemoryStats:
    """Read the current memory usage of the execution environment."""
    vm = psutil.virtual_memory()
    return MemoryStats(
        total=vm.total / MEGABYTE,
        used=vm.used / MEGABYTE,
        used_percentage=vm.percent,
    )
