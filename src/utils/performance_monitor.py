# ========================
# src/utils/performance_monitor.py
# ========================

"""
Performance Monitoring Utilities

Times each stage of an analysis run (read, normalize, analyze, save) and
samples resident memory with psutil between stages.
"""

import os
import time
import logging
from contextlib import contextmanager
from typing import Dict, Any, List

import psutil

logger = logging.getLogger(__name__)


def _rss_mb(process: psutil.Process) -> float:
    return process.memory_info().rss / (1024 * 1024)


class PerformanceMonitor:
    """
    Stage timer for one analysis run.

    Each stage records its duration, the memory sampled when it finished
    and how many catalog rows it handled.
    """

    def __init__(self, name: str = "Analysis"):
        self.name = name
        self.started_at = None
        self.finished_at = None
        self.rows_read = 0
        self.peak_memory_mb = 0.0
        self.stages: List[Dict[str, Any]] = []
        self.summary: Dict[str, Any] = {}
        self._process = psutil.Process(os.getpid())

    def start_monitoring(self) -> None:
        self.started_at = time.perf_counter()
        self.peak_memory_mb = _rss_mb(self._process)
        logger.info(f"{self.name} started, resident memory {self.peak_memory_mb:.2f} MB")

    def update_progress(self, rows: int) -> None:
        """Count catalog rows read so far."""
        self.rows_read += rows

    @contextmanager
    def stage(self, stage_name: str, rows: int = 0):
        """
        Time a named stage of the run.

        Args:
            stage_name (str): Stage label, e.g. 'normalize'
            rows (int): Rows the stage consumes, reported with its timing
        """
        began = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - began
            memory_mb = _rss_mb(self._process)
            self.peak_memory_mb = max(self.peak_memory_mb, memory_mb)
            self.stages.append({
                'stage': stage_name,
                'seconds': round(elapsed, 4),
                'rows': rows,
                'memory_mb': round(memory_mb, 2),
            })
            logger.debug(f"Stage '{stage_name}' took {elapsed:.3f}s ({rows:,} rows)")

    def stop_monitoring(self) -> Dict[str, Any]:
        """
        Finish the run and summarise it.

        Returns:
            dict: Total time, throughput, peak memory and per-stage timings
        """
        self.finished_at = time.perf_counter()
        total = self.finished_at - self.started_at if self.started_at is not None else 0.0
        throughput = self.rows_read / total if total > 0 else 0.0

        logger.info(
            f"{self.name} - {self.rows_read:,} rows in {total:.2f}s "
            f"({throughput:.0f} rows/sec), peak memory {self.peak_memory_mb:.2f} MB"
        )
        return {
            'name': self.name,
            'total_seconds': round(total, 4),
            'rows_read': self.rows_read,
            'rows_per_second': round(throughput, 1),
            'peak_memory_mb': round(self.peak_memory_mb, 2),
            'stages': list(self.stages),
        }


@contextmanager
def monitor_performance(name: str = "Analysis"):
    """
    Run a block under a PerformanceMonitor.

    The summary from stop_monitoring() is stored on the monitor as
    ``summary`` once the block exits.
    """
    monitor = PerformanceMonitor(name)
    monitor.start_monitoring()
    try:
        yield monitor
    finally:
        monitor.summary = monitor.stop_monitoring()
