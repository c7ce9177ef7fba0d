"""Performance profiling utilities for the extraction pipeline.

Provides a context manager for timing pipeline phases and a report object
that collects them. Reports are passed explicitly so that concurrent
extraction runs never share timing state.
"""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class TimingMetric:
    """Container for a single timing measurement."""

    name: str
    duration_ms: float
    timestamp: float
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        meta_str = ", ".join(f"{k}={v}" for k, v in self.metadata.items()) if self.metadata else ""
        return f"{self.name}: {self.duration_ms:.2f}ms" + (f" ({meta_str})" if meta_str else "")


@dataclass
class PerformanceReport:
    """Aggregated performance metrics for a complete operation."""

    operation: str
    phases: List[TimingMetric] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_duration_ms(self) -> float:
        return sum(phase.duration_ms for phase in self.phases)

    def add_phase(self, phase: TimingMetric) -> None:
        """Add a timing phase to the report."""
        self.phases.append(phase)

    def get_phase_breakdown(self) -> Dict[str, float]:
        """Get percentage breakdown of time spent in each phase."""
        total = self.total_duration_ms
        if total == 0:
            return {}
        return {phase.name: (phase.duration_ms / total) * 100 for phase in self.phases}

    def format_report(self, verbose: bool = False) -> str:
        """Format the performance report as a readable string."""
        total = self.total_duration_ms
        lines = [
            f"\n{'=' * 60}",
            f"PERFORMANCE REPORT: {self.operation}",
            f"{'=' * 60}",
            f"Total Duration: {total:.2f}ms ({total / 1000:.3f}s)",
        ]

        if self.metadata:
            lines.append("\nMetadata:")
            for key, value in self.metadata.items():
                lines.append(f"  {key}: {value}")

        if self.phases:
            lines.append("\nPhase Breakdown:")
            breakdown = self.get_phase_breakdown()
            for phase in sorted(self.phases, key=lambda p: p.duration_ms, reverse=True):
                pct = breakdown.get(phase.name, 0)
                lines.append(f"  [{pct:5.1f}%] {phase.name}: {phase.duration_ms:.2f}ms")
                if verbose and phase.metadata:
                    for key, value in phase.metadata.items():
                        lines.append(f"         {key}: {value}")

        lines.append("=" * 60)
        return "\n".join(lines)


@contextmanager
def profile_phase(
    phase_name: str,
    report: Optional[PerformanceReport] = None,
    metadata: Optional[Dict[str, Any]] = None,
):
    """Context manager for timing one phase, optionally recorded on a report.

    Usage:
        report = PerformanceReport("extract_stable_clusters")
        with profile_phase("build_merge_tree", report):
            tree = build_merge_tree(hierarchy)
    """
    start_time = time.perf_counter()
    try:
        yield
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        metric = TimingMetric(
            name=phase_name,
            duration_ms=duration_ms,
            timestamp=time.time(),
            metadata=metadata or {},
        )
        if report is not None:
            report.add_phase(metric)
        logger.debug("Phase [%s]: %.2fms", phase_name, duration_ms)
