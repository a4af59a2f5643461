"""Tests for memory statistics."""

from types import SimpleNamespace
from unittest.mock import patch

from wflambda.memory import MemoryStats, get_memory_stats


def test_memory_stats_from_psutil():
    """Bytes reported by psutil are converted to megabytes."""
    vm = SimpleNamespace(total=2048 * 2**20, used=512 * 2**20, percent=25.0)
    with patch("wflambda.memory.psutil.virtual_memory", return_value=vm) as mock_vm:
        stats = get_memory_stats()

    mock_vm.assert_called_once_with()
    assert stats == MemoryStats(total=2048.0, used=512.0, used_percentage=25.0)


def test_memory_stats_of_this_process():
    """Real figures are consistent with each other."""
    stats = get_memory_stats()
    assert stats.total > 0
    assert 0 <= stats.used <= stats.total
    assert 0 <= stats.used_percentage <= 100
