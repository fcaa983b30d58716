"""
Refinement operators producing specializations and generalizations of rules.
"""
from __future__ import annotations

from enum import Enum

import numpy as np

from secorules.components._base import RuleRefiner
from secorules.conditions import Condition
from secorules.conditions import NominalCondition
from secorules.conditions import NumericCondition
from secorules.instances import Attribute
from secorules.instances import Instances
from secorules.rules import SingleHeadRule


class NominalCompareMode(str, Enum):
    EQUALITY = "equal"
    INEQUALITY = "unequal"
    BOTH = "both"


def numeric_split_points(
    examples: Instances, attribute: Attribute, class_value: float
) -> np.ndarray:
    """Returns midpoints between neighbouring distinct values of numerical
    attribute where membership in the target class changes. Only examples with
    known value and positive weight are considered, the first example of each
    distinct value represents it.
    """
    column: np.ndarray = examples.X[:, attribute.index]
    usable: np.ndarray = ~np.isnan(column) & (examples.weights > 0)
    values: np.ndarray = column[usable]
    positive: np.ndarray = examples.class_values[usable] == class_value
    order: np.ndarray = np.argsort(values, kind="stable")
    values, positive = values[order], positive[order]
    values, first = np.unique(values, return_index=True)
    positive = positive[first]
    boundaries: np.ndarray = np.where(positive[1:] != positive[:-1])[0]
    return values[boundaries] + (values[boundaries + 1] - values[boundaries]) / 2


class TopDownRefiner(RuleRefiner):
    """Specializes a rule by adding a single condition. Nominal attributes already
    used in the rule are skipped, numerical attributes may be refined repeatedly.
    Only conditions covering at least one positive and excluding at least one
    negative example covered by the rule are used.

    Args:
        nominal_compare_mode (NominalCompareMode, optional): which nominal
            conditions are generated. Defaults to NominalCompareMode.EQUALITY.
    """

    def __init__(
        self, nominal_compare_mode: NominalCompareMode = NominalCompareMode.EQUALITY
    ):
        super().__init__()
        self.nominal_compare_mode: NominalCompareMode = NominalCompareMode(
            nominal_compare_mode
        )

    def _nominal_conditions(self, attribute: Attribute) -> list[Condition]:
        conditions: list[Condition] = []
        for value in range(attribute.num_values):
            if self.nominal_compare_mode in (
                NominalCompareMode.EQUALITY,
                NominalCompareMode.BOTH,
            ):
                conditions.append(NominalCondition(attribute, value, True))
            if self.nominal_compare_mode in (
                NominalCompareMode.INEQUALITY,
                NominalCompareMode.BOTH,
            ):
                conditions.append(NominalCondition(attribute, value, False))
        return conditions

    def create_usable_conditions(
        self, rule: SingleHeadRule, examples: Instances, class_value: float
    ) -> list[Condition]:
        used_nominal: set[int] = {
            condition.index for condition in rule.body if condition.attribute.is_nominal
        }
        usable: set[Condition] = set()
        for index in examples.feature_indices:
            attribute: Attribute = examples.attribute(index)
            if attribute.is_nominal:
                if index not in used_nominal:
                    usable.update(self._nominal_conditions(attribute))
                continue
            for split in numeric_split_points(examples, attribute, class_value):
                usable.add(NumericCondition(attribute, split, False))
                usable.add(NumericCondition(attribute, split, True))
        return sorted(usable)

    @staticmethod
    def filter_usable_conditions(
        rule: SingleHeadRule,
        conditions: list[Condition],
        examples: Instances,
        class_value: float,
    ) -> list[Condition]:
        covered: np.ndarray = rule.covered_mask(examples.X)
        positive: np.ndarray = examples.positive_mask(class_value)
        covered_positive: np.ndarray = covered & positive
        covered_negative: np.ndarray = covered & ~positive
        usable: list[Condition] = []
        for condition in conditions:
            mask: np.ndarray = condition.covered_mask(examples.X)
            if (mask & covered_positive).any() and (~mask & covered_negative).any():
                usable.append(condition)
        return usable

    def refine_rule(
        self, rule: SingleHeadRule, examples: Instances, class_value: float
    ) -> list[SingleHeadRule]:
        conditions: list[Condition] = self.filter_usable_conditions(
            rule,
            self.create_usable_conditions(rule, examples, class_value),
            examples,
            class_value,
        )
        refinements: list[SingleHeadRule] = []
        for condition in conditions:
            refinement: SingleHeadRule = rule.specialize(condition)
            refinement.evaluate(examples)
            refinements.append(refinement)
        return refinements

    def __repr__(self) -> str:
        return f"TopDownRefiner(nominal_compare_mode={self.nominal_compare_mode.value})"


class BottomUpRefiner(RuleRefiner):
    """Generalizes a rule by removing one of its conditions."""

    def refine_rule(
        self, rule: SingleHeadRule, examples: Instances, class_value: float
    ) -> list[SingleHeadRule]:
        refinements: list[SingleHeadRule] = []
        for i in range(rule.length):
            refinement: SingleHeadRule = rule.generalize(i)
            refinement.evaluate(examples)
            refinements.append(refinement)
        return refinements


class BidirectionalRefiner(RuleRefiner):
    """Returns both specializations and generalizations of a rule."""

    def __init__(
        self, nominal_compare_mode: NominalCompareMode = NominalCompareMode.EQUALITY
    ):
        super().__init__()
        self.specializer: TopDownRefiner = TopDownRefiner(nominal_compare_mode)
        self.generalizer: BottomUpRefiner = BottomUpRefiner()

    def refine_rule(
        self, rule: SingleHeadRule, examples: Instances, class_value: float
    ) -> list[SingleHeadRule]:
        return self.specializer.refine_rule(
            rule, examples, class_value
        ) + self.generalizer.refine_rule(rule, examples, class_value)
