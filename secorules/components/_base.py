"""
Interfaces of the pluggable parts of the separate-and-conquer algorithm.
"""
from __future__ import annotations

from abc import ABC
from abc import abstractmethod
from logging import Logger
from logging import getLogger
from typing import Optional

import numpy as np

from secorules.heuristics import Heuristic
from secorules.instances import Instances
from secorules.rules import SingleHeadRule
from secorules.ruleset import SingleHeadRuleSet


class Component(ABC):

    def __init__(self):
        self.logger: Logger = getLogger(self.__class__.__name__)

    def reset(self):
        """Clears state kept between calls, called before each training run."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class CandidateSelector(Component):

    @abstractmethod
    def select_candidates(
        self, rules: list[SingleHeadRule], examples: Instances
    ) -> list[SingleHeadRule]:
        """Chooses candidates to be refined in the current round.

        Args:
            rules (list[SingleHeadRule]): live candidates sorted best first
            examples (Instances): growing examples

        Returns:
            list[SingleHeadRule]: selected candidates
        """


class RuleFilter(Component):

    @abstractmethod
    def filter_rules(
        self, rules: list[SingleHeadRule], examples: Instances
    ) -> list[SingleHeadRule]:
        """Returns candidates kept for the next round, rules are sorted best
        first.
        """


class RuleInitializer(Component):

    @abstractmethod
    def initialize_rule(
        self,
        heuristic: Heuristic,
        examples: Instances,
        class_value: float,
        rng: np.random.Generator,
    ) -> list[SingleHeadRule]:
        """Returns seed rules of the refinement search."""


class RuleRefiner(Component):

    @abstractmethod
    def refine_rule(
        self, rule: SingleHeadRule, examples: Instances, class_value: float
    ) -> list[SingleHeadRule]:
        """Returns evaluated refinements of given rule."""


class StoppingCriterion(Component):

    @abstractmethod
    def check_for_stop(self, rule: SingleHeadRule, examples: Instances) -> bool:
        """Returns True if given candidate should not be refined any further."""


class RuleStoppingCriterion(Component):

    @abstractmethod
    def check_for_rule_stop(
        self,
        theory: SingleHeadRuleSet,
        rule: SingleHeadRule,
        examples: Instances,
        class_value: float,
    ) -> bool:
        """Returns True if given rule should not be added to the theory and
        learning of rules for the class value should stop.
        """


class WeightModel(Component):

    @abstractmethod
    def change_weights(
        self,
        examples: Instances,
        cover_counts: np.ndarray,
        rule: SingleHeadRule,
    ):
        """Updates weights of given examples in place after a rule was learned.

        Args:
            examples (Instances): examples
            cover_counts (np.ndarray): number of rules covering each example so
                far indexed by example id, updated in place
            rule (SingleHeadRule): learned rule
        """

    @staticmethod
    def _covered(examples: Instances, rule: SingleHeadRule) -> np.ndarray:
        return rule.covered_mask(examples.X)


class PostProcessor(Component):

    def __init__(self):
        super().__init__()
        self.new_instances: Optional[Instances] = None
