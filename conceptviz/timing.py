"""
Name: Stage Timing Utilities

Responsibilities:
  - Measure wall-clock time of pipeline stages (extract, format, render)
  - Expose timings as a flat dict for logs and API responses

Collaborators:
  - application.use_cases.visualize_text: records per-stage timings
  - application.formatting: records chunk/format timings
  - metrics.py: stage histograms are fed from these values

Notes:
  - Uses time.perf_counter (monotonic, high resolution)
"""

import time
from dataclasses import dataclass, field
from typing import Optional


class Timer:
    """
    R: Simple context-manager timer.

    Usage:
        with Timer() as t:
            do_work()
        print(t.elapsed_ms)
    """

    def __init__(self) -> None:
        self._start: Optional[float] = None
        self._end: Optional[float] = None

    def start(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def stop(self) -> float:
        self._end = time.perf_counter()
        return self.elapsed_ms

    @property
    def elapsed_ms(self) -> float:
        """R: Elapsed milliseconds (running timers report time so far)."""
        if self._start is None:
            return 0.0
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000, 2)

    def __enter__(self) -> "Timer":
        return self.start()

    def __exit__(self, *args) -> None:
        self.stop()


@dataclass
class StageTimings:
    """
    R: Collect timings for named stages plus a running total.

    Usage:
        timings = StageTimings()
        with timings.measure("extract"):
            concepts = await extractor.extract(text)

        timings.to_dict()
        # {"extract_ms": 812.4, "total_ms": 815.0}
    """

    _stages: dict[str, float] = field(default_factory=dict)
    _total_timer: Timer = field(default_factory=Timer)

    def __post_init__(self):
        self._total_timer.start()

    def measure(self, stage_name: str) -> "_StageTimer":
        """R: Create a timer that records into this StageTimings on exit."""
        return _StageTimer(stage_name, self)

    def record(self, stage_name: str, elapsed_ms: float) -> None:
        self._stages[stage_name] = elapsed_ms

    def seconds(self, stage_name: str) -> Optional[float]:
        """R: Recorded duration of a stage in seconds, if measured."""
        ms = self._stages.get(stage_name)
        return None if ms is None else ms / 1000

    def to_dict(self) -> dict[str, float]:
        result = {f"{name}_ms": ms for name, ms in self._stages.items()}
        result["total_ms"] = self._total_timer.elapsed_ms
        return result


class _StageTimer(Timer):
    """R: Internal timer that records to parent StageTimings."""

    def __init__(self, stage_name: str, parent: StageTimings):
        super().__init__()
        self._stage_name = stage_name
        self._parent = parent

    def __exit__(self, *args) -> None:
        super().__exit__(*args)
        self._parent.record(self._stage_name, self.elapsed_ms)
