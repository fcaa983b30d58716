from __future__ import annotations

import time
from dataclasses import dataclass
from dataclasses import fields
from datetime import timedelta
from typing import Optional


@dataclass
class RuleInductionTimes:
    """Wall clock time spent in the phases of rule induction."""

    growing_time: timedelta = timedelta()
    pruning_time: timedelta = timedelta()
    optimization_time: timedelta = timedelta()
    total_training_time: timedelta = timedelta()

    def record(self, phase: str, elapsed: timedelta):
        setattr(self, phase, getattr(self, phase) + elapsed)

    def __add__(self, other: RuleInductionTimes) -> RuleInductionTimes:
        if other == 0:
            return self
        if not isinstance(other, RuleInductionTimes):
            raise TypeError(f"Cannot add {type(other)} to RuleInductionTimes")
        return RuleInductionTimes(
            **{
                field.name: getattr(self, field.name) + getattr(other, field.name)
                for field in fields(self)
            }
        )

    def __radd__(self, other: RuleInductionTimes) -> RuleInductionTimes:
        return self.__add__(other)

    def __repr__(self) -> str:
        return ", ".join(
            f"{field.name}={getattr(self, field.name).total_seconds()}"
            for field in fields(self)
        )


class PerformanceTimer:
    """Context manager measuring wall clock time of a code block. When given
    induction times and a phase, the measured time is added to that phase on exit.

    Example:
    >>> times = RuleInductionTimes()
    >>> with PerformanceTimer(times, "growing_time"):
    ...     time.sleep(0.5)
    >>> print(times.growing_time)
    """

    def __init__(
        self,
        times: Optional[RuleInductionTimes] = None,
        phase: Optional[str] = None,
    ) -> None:
        self.times: Optional[RuleInductionTimes] = times
        self.phase: Optional[str] = phase
        self._start: Optional[float] = None
        self.elapsed: timedelta = timedelta()

    def __enter__(self) -> PerformanceTimer:
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args, **kwargs):
        self.elapsed = timedelta(seconds=time.perf_counter() - self._start)
        if self.times is not None:
            self.times.record(self.phase, self.elapsed)

    def __str__(self) -> str:
        return str(self.elapsed)
