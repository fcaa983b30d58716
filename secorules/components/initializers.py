import numpy as np

from secorules.components._base import RuleInitializer
from secorules.conditions import NominalCondition
from secorules.heuristics import Heuristic
from secorules.instances import Instances
from secorules.rules import SingleHeadRule
from secorules.rules import bottom_rule_body


class TopDownRuleInitializer(RuleInitializer):
    """Starts the search with the empty rule predicting the target class."""

    def initialize_rule(
        self,
        heuristic: Heuristic,
        examples: Instances,
        class_value: float,
        rng: np.random.Generator,
    ) -> list[SingleHeadRule]:
        head = NominalCondition(examples.class_attribute, class_value)
        return [SingleHeadRule(head, heuristic, rng)]


class RandomRuleInitializer(RuleInitializer):
    """Starts the search with the most specific rule covering a randomly chosen
    example of the target class (any example if there is none).
    """

    def initialize_rule(
        self,
        heuristic: Heuristic,
        examples: Instances,
        class_value: float,
        rng: np.random.Generator,
    ) -> list[SingleHeadRule]:
        head = NominalCondition(examples.class_attribute, class_value)
        rule = SingleHeadRule(head, heuristic, rng)
        if examples.num_instances == 0:
            return [rule]
        candidates: np.ndarray = np.where(examples.positive_mask(class_value))[0]
        if len(candidates) == 0:
            candidates = np.arange(examples.num_instances)
        row: int = int(candidates[rng.integers(len(candidates))])
        for condition in bottom_rule_body(examples, row):
            rule.add_condition(condition)
        self.logger.debug("Initialized rule from example %d: %s", row, rule)
        return [rule]
