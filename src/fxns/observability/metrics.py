"""
Aggregated metrics registry for tool runs and steps.
"""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class StepMetricsSnapshot:
    count: int = 0
    failures: int = 0
    total_duration_seconds: float = 0.0


@dataclass
class RunMetricsSnapshot:
    total_runs: int = 0
    failed_runs: int = 0
    avg_duration_seconds: float = 0.0


class MetricsRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._steps: Dict[str, StepMetricsSnapshot] = {}
        self._runs: Dict[str, RunMetricsSnapshot] = {}
        self._http_calls: Dict[str, int] = {}

    def record_step(self, step_type: str, duration_seconds: float, *, failed: bool = False) -> None:
        with self._lock:
            snap = self._steps.setdefault(step_type, StepMetricsSnapshot())
            snap.count += 1
            snap.total_duration_seconds += max(duration_seconds, 0.0)
            if failed:
                snap.failures += 1

    def record_run(self, mode: str, duration_seconds: float, *, success: bool) -> None:
        with self._lock:
            snap = self._runs.setdefault(mode, RunMetricsSnapshot())
            snap.total_runs += 1
            if not success:
                snap.failed_runs += 1
            snap.avg_duration_seconds = (
                (snap.avg_duration_seconds * (snap.total_runs - 1)) + duration_seconds
            ) / snap.total_runs

    def record_http_call(self, outcome: str) -> None:
        key = outcome or "unknown"
        with self._lock:
            self._http_calls[key] = self._http_calls.get(key, 0) + 1

    def get_step_metrics(self) -> Dict[str, StepMetricsSnapshot]:
        with self._lock:
            return dict(self._steps)

    def get_run_metrics(self) -> Dict[str, RunMetricsSnapshot]:
        with self._lock:
            return dict(self._runs)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "steps": {key: asdict(value) for key, value in self._steps.items()},
                "runs": {key: asdict(value) for key, value in self._runs.items()},
                "httpCalls": dict(self._http_calls),
            }

    def reset(self) -> None:
        with self._lock:
            self._steps.clear()
            self._runs.clear()
            self._http_calls.clear()


default_metrics = MetricsRegistry()
