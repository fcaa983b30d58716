from __future__ import annotations

import functools
from abc import ABC
from abc import abstractmethod
from typing import Any
from typing import Callable

from secorules._timing import PerformanceTimer
from secorules._timing import RuleInductionTimes
from secorules.instances import Instances
from secorules.ruleset import RuleSet

__all__ = ["RuleInducersMixin", "RuleInductionTimes"]

# method name, induction phase, whether every inducer has to implement it
_TIMED_METHODS: tuple[tuple[str, str, bool], ...] = (
    ("induce_ruleset", "total_training_time", True),
    ("_grow", "growing_time", True),
    ("_prune", "pruning_time", False),
    ("_optimize", "optimization_time", False),
)


class RuleInducersMixin(ABC):
    """Base of rule inducers. Time spent in rule growing, pruning and theory
    optimization is accumulated in :code:`induction_times`. Pruning and
    optimization are timed only for inducers implementing these steps.
    """

    def __init__(self):
        self.params: dict[str, Any] = None
        self.induction_times: RuleInductionTimes = RuleInductionTimes()
        for method_name, phase, required in _TIMED_METHODS:
            self._setup_timer_for_method(method_name, phase, required)

    @abstractmethod
    def induce_ruleset(self, instances: Instances) -> RuleSet:
        raise NotImplementedError(
            "RuleInducersMixin requires induce_ruleset method to be implemented"
        )

    @abstractmethod
    def _grow(self, *args, **kwargs) -> Any:
        pass

    def _setup_timer_for_method(
        self, method_name: str, phase: str, required: bool = True
    ):
        method: Callable = getattr(self, method_name, None)
        if method is None:
            if not required:
                return
            raise ValueError(
                f"RuleInducersMixin requires {method_name} method to be implemented"
            )

        @functools.wraps(method)
        def timed_method(*args, **kwargs):
            with PerformanceTimer(self.induction_times, phase):
                return method(*args, **kwargs)

        setattr(self, method_name, timed_method)
