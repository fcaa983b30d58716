"""
Rules learned by separate-and-conquer algorithms. A rule consists of a
conjunctive body of conditions and a head which is either a single class
condition or a set of label conditions (multi-label rules).
"""
from __future__ import annotations

import math
from abc import ABC
from abc import abstractmethod
from enum import Enum
from typing import Iterable
from typing import Iterator
from typing import Optional

import numpy as np

from secorules.conditions import Condition
from secorules.conditions import NominalCondition
from secorules.conditions import NumericCondition
from secorules.conditions import conjunction_mask
from secorules.heuristics import Heuristic
from secorules.instances import Instances
from secorules.stats import ConfusionMatrix


class RuleKind(Enum):
    NORMAL = "normal"
    # marks positions in a multi-label rule list where prediction may stop
    SKIP = "skip"


def _orderable(value: float) -> float:
    if math.isnan(value):
        return -math.inf
    return value


class Rule(ABC):
    """Base class of single head and multi head rules.

    Rules are totally ordered by :meth:`compare_to`: by heuristic value, then by
    number of covered positives, then by number of generalizations and finally by
    a random tie breaker, which is drawn from the generator of the run the first
    time it is needed and then frozen.

    Args:
        heuristic (Optional[Heuristic], optional): heuristic used to compute rule
            value. Defaults to None.
        rng (Optional[np.random.Generator], optional): generator used to draw the
            tie breaker. Defaults to None.
    """

    def __init__(
        self,
        heuristic: Optional[Heuristic] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.body: list[Condition] = []
        self.heuristic: Optional[Heuristic] = heuristic
        self.stats: ConfusionMatrix = ConfusionMatrix()
        self.value: float = math.nan
        self.predecessor: Optional[Rule] = None
        self.generalization_count: int = 0
        self.rng: Optional[np.random.Generator] = rng
        self._tie_breaker: Optional[float] = None

    @abstractmethod
    def _copy_head(self) -> Rule:
        """Returns new rule with a copy of this rule's head and empty body."""

    @property
    def tie_breaker(self) -> float:
        if self._tie_breaker is None:
            rng: np.random.Generator = (
                self.rng if self.rng is not None else np.random.default_rng()
            )
            self._tie_breaker = float(rng.random())
        return self._tie_breaker

    @property
    def length(self) -> int:
        return len(self.body)

    def add_condition(self, condition: Condition):
        self.body.append(condition)

    def contains_condition(self, condition: Condition) -> bool:
        return condition in self.body

    def copy(self) -> Rule:
        """Returns a copy of the rule. The copy shares the predecessor but draws its
        own tie breaker.
        """
        rule: Rule = self._copy_head()
        rule.body = list(self.body)
        rule.stats = self.stats.copy()
        rule.value = self.value
        rule.predecessor = self.predecessor
        rule.generalization_count = self.generalization_count
        return rule

    def specialize(self, condition: Condition) -> Rule:
        rule: Rule = self.copy()
        rule.add_condition(condition)
        rule.predecessor = self
        return rule

    def generalize(self, index: int) -> Rule:
        rule: Rule = self.copy()
        del rule.body[index]
        rule.predecessor = self
        return rule

    def generalize_numeric(self, index: int, value: float) -> Rule:
        """Returns a copy where numeric condition at given position compares with a
        new value.
        """
        rule: Rule = self.copy()
        condition: Condition = rule.body[index]
        rule.body[index] = NumericCondition(condition.attribute, value, condition.cmp)
        rule.generalization_count += 1
        rule.predecessor = self
        return rule

    def covers(self, row: np.ndarray) -> bool:
        return all(condition.covers(row) for condition in self.body)

    def covered_mask(self, X: np.ndarray) -> np.ndarray:
        return conjunction_mask(self.body, X)

    def covered_instances(self, instances: Instances) -> Instances:
        return instances.subset(self.covered_mask(instances.X))

    def uncovered_instances(self, instances: Instances) -> Instances:
        return instances.subset(~self.covered_mask(instances.X))

    def compute_value(self, heuristic: Optional[Heuristic] = None) -> float:
        if heuristic is None:
            heuristic = self.heuristic
        self.value = math.nan if heuristic is None else heuristic.evaluate_rule(self)
        return self.value

    def compare_to(self, other: Rule) -> int:
        """Compares two rules.

        Returns:
            int: 1 if this rule is better, -1 if the other one is better, 0 only if
            both rules share the same tie breaker
        """
        value, other_value = _orderable(self.value), _orderable(other.value)
        if value != other_value:
            return 1 if value > other_value else -1
        if self.stats.tp != other.stats.tp:
            return 1 if self.stats.tp > other.stats.tp else -1
        if self.generalization_count != other.generalization_count:
            return 1 if self.generalization_count > other.generalization_count else -1
        if self is other:
            return 0
        if self.tie_breaker > other.tie_breaker:
            return -1
        if self.tie_breaker < other.tie_breaker:
            return 1
        return 0

    def sort_key(self) -> tuple[float, float, int, float]:
        """Key consistent with :meth:`compare_to`, greater keys denote better
        rules.
        """
        return (
            _orderable(self.value),
            self.stats.tp,
            self.generalization_count,
            -self.tie_breaker,
        )

    def body_str(self) -> str:
        return ", ".join(str(condition) for condition in self.body)

    @abstractmethod
    def head_key(self) -> object:
        pass

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rule) or type(self) is not type(other):
            return False
        return self.head_key() == other.head_key() and frozenset(
            self.body
        ) == frozenset(other.body)

    def __hash__(self) -> int:
        return hash((self.head_key(), frozenset(self.body)))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self)})"


def get_better_rule(first: Rule, second: Rule) -> Rule:
    if first.compare_to(second) > 0:
        return first
    return second


class SingleHeadRule(Rule):
    """Rule predicting a single class value.

    Args:
        head (Condition): class condition
        heuristic (Optional[Heuristic], optional): Defaults to None.
        rng (Optional[np.random.Generator], optional): Defaults to None.
    """

    def __init__(
        self,
        head: Condition,
        heuristic: Optional[Heuristic] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        super().__init__(heuristic, rng)
        self.head: Condition = head

    def _copy_head(self) -> SingleHeadRule:
        return SingleHeadRule(self.head, self.heuristic, self.rng)

    @property
    def predicted_value(self) -> float:
        return self.head.value

    def head_key(self) -> object:
        return self.head

    def evaluate(
        self, instances: Instances, heuristic: Optional[Heuristic] = None
    ) -> float:
        """Computes confusion matrix of the rule for its class value on given
        instances and recomputes rule value.

        Args:
            instances (Instances): instances
            heuristic (Optional[Heuristic], optional): heuristic used instead of
                the rule's one. Defaults to None.

        Returns:
            float: rule value
        """
        covered: np.ndarray = self.covered_mask(instances.X)
        positive: np.ndarray = instances.positive_mask(self.head.value)
        weights: np.ndarray = instances.weights
        self.stats = ConfusionMatrix(
            tp=weights[covered & positive].sum(),
            fp=weights[covered & ~positive].sum(),
            tn=weights[~covered & ~positive].sum(),
            fn=weights[~covered & positive].sum(),
        )
        return self.compute_value(heuristic)

    def __str__(self) -> str:
        return f"{self.head} :- {self.body_str()}."


class Head:
    """Head of a multi-label rule mapping label attribute index to the label
    condition predicted by the rule.
    """

    def __init__(self, conditions: Optional[Iterable[Condition]] = None):
        self._conditions: dict[int, Condition] = {}
        for condition in conditions or []:
            self.add_condition(condition)

    def add_condition(self, condition: Condition):
        self._conditions[condition.index] = condition

    def get_condition(self, label_index: int) -> Optional[Condition]:
        return self._conditions.get(label_index)

    def contains_condition(self, label_index: int) -> bool:
        return label_index in self._conditions

    @property
    def label_indices(self) -> frozenset[int]:
        return frozenset(self._conditions.keys())

    @property
    def conditions(self) -> list[Condition]:
        return list(self._conditions.values())

    def copy(self) -> Head:
        return Head(self._conditions.values())

    def __iter__(self) -> Iterator[Condition]:
        return iter(list(self._conditions.values()))

    def __len__(self) -> int:
        return len(self._conditions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Head):
            return False
        return frozenset(self._conditions.values()) == frozenset(
            other._conditions.values()
        )

    def __hash__(self) -> int:
        return hash(frozenset(self._conditions.values()))

    def __str__(self) -> str:
        return ", ".join(str(condition) for condition in sorted(self.conditions))


class MultiHeadRule(Rule):
    """Multi-label rule. Skip rules carry no body and an empty head, they only
    mark positions where prediction of a rule list stops.
    """

    def __init__(
        self,
        heuristic: Optional[Heuristic] = None,
        head: Optional[Head] = None,
        kind: RuleKind = RuleKind.NORMAL,
        rng: Optional[np.random.Generator] = None,
    ):
        super().__init__(heuristic, rng)
        self.head: Optional[Head] = head
        self.kind: RuleKind = kind

    @classmethod
    def skip_rule(cls, stats: ConfusionMatrix) -> MultiHeadRule:
        rule = cls(head=Head(), kind=RuleKind.SKIP)
        rule.stats = stats
        return rule

    @property
    def is_skip(self) -> bool:
        return self.kind == RuleKind.SKIP

    def _copy_head(self) -> MultiHeadRule:
        return MultiHeadRule(
            self.heuristic,
            None if self.head is None else self.head.copy(),
            self.kind,
            self.rng,
        )

    def head_key(self) -> object:
        return (self.kind, self.head)

    def __str__(self) -> str:
        if self.is_skip:
            return "<skip>"
        return f"{'' if self.head is None else self.head} :- {self.body_str()}."


def bottom_rule_body(instances: Instances, row: int) -> list[Condition]:
    """Returns the most specific body covering given example: an equality for each
    nominal value and a pair of bounds for each numerical value. Missing values
    and class or label attributes are skipped.
    """
    conditions: list[Condition] = []
    for index in instances.feature_indices:
        attribute = instances.attribute(index)
        value: float = instances.X[row, index]
        if np.isnan(value):
            continue
        if attribute.is_nominal:
            conditions.append(NominalCondition(attribute, value, True))
        else:
            conditions.append(NumericCondition(attribute, value, False))
            conditions.append(NumericCondition(attribute, value, True))
    return conditions
