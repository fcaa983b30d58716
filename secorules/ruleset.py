"""
Ordered rule sets (decision lists) with a default rule.
"""
from __future__ import annotations

import math
from collections import Counter
from typing import Generic
from typing import Iterator
from typing import Optional
from typing import TypeVar

import numpy as np

from secorules.instances import Instances
from secorules.rules import Head
from secorules.rules import MultiHeadRule
from secorules.rules import Rule
from secorules.rules import SingleHeadRule

RuleT = TypeVar("RuleT", bound=Rule)


class RuleSet(Generic[RuleT]):
    """Ordered list of rules and an optional default rule.

    Args:
        rules (Optional[list[RuleT]], optional): rules. Defaults to None.
        default_rule (Optional[RuleT], optional): rule used when no other rule
            covers an example. Defaults to None.
    """

    def __init__(
        self,
        rules: Optional[list[RuleT]] = None,
        default_rule: Optional[RuleT] = None,
    ):
        self.rules: list[RuleT] = list(rules) if rules is not None else []
        self.default_rule: Optional[RuleT] = default_rule

    def add_rule(self, rule: RuleT):
        self.rules.append(rule)

    def replace_rule(self, index: int, rule: RuleT):
        self.rules[index] = rule

    def remove_rule(self, index: int):
        del self.rules[index]

    def copy(self) -> RuleSet:
        return self.__class__(self.rules, self.default_rule)

    @property
    def num_conditions(self) -> int:
        return sum(rule.length for rule in self.rules)

    @property
    def average_length(self) -> float:
        if len(self.rules) == 0:
            return 0.0
        return self.num_conditions / len(self.rules)

    def __getitem__(self, index: int) -> RuleT:
        return self.rules[index]

    def __iter__(self) -> Iterator[RuleT]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RuleSet):
            return False
        return Counter(self.rules) == Counter(other.rules)

    def __hash__(self) -> int:
        return hash(frozenset(self.rules))

    @staticmethod
    def _rule_str(rule: Rule) -> str:
        return f"{rule} {rule.stats} value={rule.value:.4f}"

    def __str__(self) -> str:
        lines: list[str] = [self._rule_str(rule) for rule in self.rules]
        if self.default_rule is not None:
            lines.append(f"default: {self._rule_str(self.default_rule)}")
        return "\n".join(lines)


class SingleHeadRuleSet(RuleSet[SingleHeadRule]):
    """Decision list predicting a single class value."""

    def classify(self, row: np.ndarray) -> float:
        """Returns class value predicted by the first rule covering given example,
        value of the default rule if none covers it or NaN if there is no default
        rule.
        """
        for rule in self.rules:
            if rule.covers(row):
                return rule.predicted_value
        if self.default_rule is not None:
            return self.default_rule.predicted_value
        return math.nan

    def predict(self, instances: Instances) -> np.ndarray:
        """Vectorised :meth:`classify` over all given instances.

        Returns:
            np.ndarray: predicted class value codes, NaN where nothing is predicted
        """
        prediction: np.ndarray = np.full(instances.num_instances, np.nan)
        undecided: np.ndarray = np.ones(instances.num_instances, dtype=bool)
        for rule in self.rules:
            fired: np.ndarray = undecided & rule.covered_mask(instances.X)
            prediction[fired] = rule.predicted_value
            undecided &= ~fired
        if self.default_rule is not None:
            prediction[undecided] = self.default_rule.predicted_value
        return prediction


class MultiHeadRuleSet(RuleSet[MultiHeadRule]):
    """Multi-label rule list.

    In union mode heads of all covering rules are collected until every label is
    predicted. In decision list mode only the first covering rule is used. Label
    values predicted by earlier rules are visible to label conditions in bodies
    of the following rules. A skip rule stops prediction if the rule fired right
    before it predicted at least one new label.

    Args:
        rules (Optional[list[MultiHeadRule]], optional): Defaults to None.
        default_rule (Optional[MultiHeadRule], optional): Defaults to None.
        label_indices (Optional[list[int]], optional): attribute indices of labels.
            Defaults to None.
        decision_list (bool, optional): decision list mode. Defaults to False.
    """

    def __init__(
        self,
        rules: Optional[list[MultiHeadRule]] = None,
        default_rule: Optional[MultiHeadRule] = None,
        label_indices: Optional[list[int]] = None,
        decision_list: bool = False,
    ):
        super().__init__(rules, default_rule)
        self.label_indices: list[int] = list(label_indices) if label_indices else []
        self.decision_list: bool = decision_list

    def copy(self) -> MultiHeadRuleSet:
        return MultiHeadRuleSet(
            self.rules, self.default_rule, self.label_indices, self.decision_list
        )

    def predict_head(self, row: np.ndarray) -> Head:
        row = np.array(row, dtype=float)
        row[self.label_indices] = np.nan
        head = Head()
        previous_predicted: bool = False
        for rule in self.rules:
            if rule.is_skip:
                if previous_predicted:
                    break
                continue
            previous_predicted = False
            if rule.head is None or not rule.covers(row):
                continue
            for condition in rule.head:
                if not head.contains_condition(condition.index):
                    head.add_condition(condition)
                    row[condition.index] = condition.value
                    previous_predicted = True
            if self.decision_list or len(head) == len(self.label_indices):
                break
        return head

    def predict(self, instances: Instances) -> np.ndarray:
        """Predicts label vectors, labels without prediction are set to 0.

        Returns:
            np.ndarray: matrix of shape (instances, labels) with 0/1 values
        """
        position: dict[int, int] = {
            index: i for i, index in enumerate(self.label_indices)
        }
        prediction: np.ndarray = np.zeros(
            (instances.num_instances, len(self.label_indices)), dtype=int
        )
        for i in range(instances.num_instances):
            for condition in self.predict_head(instances.X[i]):
                prediction[i, position[condition.index]] = int(condition.value)
        return prediction

    def __str__(self) -> str:
        rules: list[MultiHeadRule] = [rule for rule in self.rules if not rule.is_skip]
        head_sizes: list[int] = [
            len(rule.head) for rule in rules if rule.head is not None
        ]
        average_head: float = float(np.mean(head_sizes)) if head_sizes else 0.0
        summary: str = (
            f"rules: {len(rules)}, skip rules: {len(self.rules) - len(rules)}, "
            f"conditions: {self.num_conditions}, "
            f"average head size: {average_head:.2f}"
        )
        return "\n".join([super().__str__(), summary])
