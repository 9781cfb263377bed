"""Performance monitoring for upstream calls and process resources."""

import os
import psutil
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from aggregator.utils.logging_config import get_performance_logger


@dataclass
class UpstreamCallMetrics:
    """Timing of a single upstream request."""
    timestamp: datetime
    path: str
    duration: float
    success: bool
    status_code: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            'timestamp': self.timestamp.isoformat(),
            'path': self.path,
            'duration': self.duration,
            'success': self.success,
            'status_code': self.status_code
        }


@dataclass
class ResourceMetrics:
    """Container for process resource metrics."""
    timestamp: datetime
    cpu_percent: float
    memory_rss_mb: float
    system_memory_percent: float
    num_threads: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp.isoformat(),
            'cpu_percent': self.cpu_percent,
            'memory_rss_mb': self.memory_rss_mb,
            'system_memory_percent': self.system_memory_percent,
            'num_threads': self.num_threads
        }


class PerformanceMonitor:
    """Keeps a rolling window of upstream call timings and reports process resources."""

    def __init__(self, history_size: int = 500, slow_call_threshold: float = 2.0):
        """Initialize performance monitor.

        Args:
            history_size: Number of upstream calls to keep
            slow_call_threshold: Calls slower than this (seconds) are logged as warnings
        """
        self.history_size = history_size
        self.slow_call_threshold = slow_call_threshold
        self._calls: deque = deque(maxlen=history_size)
        self._process = psutil.Process(os.getpid())
        self._started_at = datetime.now()
        self._logger = get_performance_logger('performance_monitor')

    def record_upstream_call(
        self,
        path: str,
        duration: float,
        success: bool,
        status_code: Optional[int] = None
    ) -> UpstreamCallMetrics:
        """Record the outcome of one upstream request.

        Args:
            path: Upstream path that was requested
            duration: Request duration in seconds
            success: Whether a usable response was received
            status_code: HTTP status code, if a response arrived

        Returns:
            The stored metrics entry
        """
        metrics = UpstreamCallMetrics(
            timestamp=datetime.now(),
            path=path,
            duration=duration,
            success=success,
            status_code=status_code
        )
        self._calls.append(metrics)

        if duration > self.slow_call_threshold:
            self._logger.warning("Slow upstream call", extra=metrics.to_dict())

        return metrics

    def get_upstream_summary(self) -> Dict[str, Any]:
        """Summarize recorded upstream calls per path."""
        summary: Dict[str, Dict[str, Any]] = {}
        for call in self._calls:
            entry = summary.setdefault(call.path, {
                'calls': 0,
                'failures': 0,
                'total_duration': 0.0,
                'max_duration': 0.0
            })
            entry['calls'] += 1
            entry['total_duration'] += call.duration
            entry['max_duration'] = max(entry['max_duration'], call.duration)
            if not call.success:
                entry['failures'] += 1

        for entry in summary.values():
            entry['avg_duration'] = entry['total_duration'] / entry['calls']
            del entry['total_duration']

        return summary

    def collect_resource_metrics(self) -> ResourceMetrics:
        """Take a snapshot of process resource usage."""
        with self._process.oneshot():
            cpu_percent = self._process.cpu_percent(interval=None)
            memory_rss_mb = self._process.memory_info().rss / (1024 * 1024)
            num_threads = self._process.num_threads()

        return ResourceMetrics(
            timestamp=datetime.now(),
            cpu_percent=cpu_percent,
            memory_rss_mb=memory_rss_mb,
            system_memory_percent=psutil.virtual_memory().percent,
            num_threads=num_threads
        )

    def get_performance_status(self) -> Dict[str, Any]:
        """Get current performance status.

        Returns:
            Dictionary with upstream call summary and resource snapshot
        """
        resources = self.collect_resource_metrics()
        return {
            'uptime_seconds': (datetime.now() - self._started_at).total_seconds(),
            'upstream_calls_recorded': len(self._calls),
            'upstream': self.get_upstream_summary(),
            'resources': resources.to_dict()
        }
