"""
Stopping criteria. Candidate stopping criteria decide whether a candidate rule
is refined any further, rule stopping criteria decide whether a learned rule is
added to the theory.
"""
from __future__ import annotations

import math
from typing import Optional

from secorules.components._base import RuleStoppingCriterion
from secorules.components._base import StoppingCriterion
from secorules.conditions import NominalCondition
from secorules.exceptions import ConfigurationError
from secorules.heuristics import Laplace
from secorules.instances import Instances
from secorules.mdl import MAX_DL_SURPLUS
from secorules.mdl import RuleStats
from secorules.rules import SingleHeadRule
from secorules.rules import get_better_rule
from secorules.ruleset import SingleHeadRuleSet

# significance level -> critical value of chi square distribution with one degree
# of freedom
_CHI2_CRITICAL_VALUES: dict[float, float] = {
    0.0: 0.0,
    0.7: 1.07,
    0.75: 1.32,
    0.8: 1.64,
    0.85: 2.07,
    0.9: 2.71,
    0.95: 3.84,
    0.975: 5.02,
    0.99: 6.63,
    0.995: 7.88,
}


def map_threshold(threshold: float) -> float:
    """Maps significance level to the critical value of likelihood ratio and chi
    square statistics.

    Raises:
        ConfigurationError: if threshold is not one of the tabulated levels
    """
    if threshold not in _CHI2_CRITICAL_VALUES:
        raise ConfigurationError(
            f"Unknown threshold {threshold}, allowed values are: "
            f"{sorted(_CHI2_CRITICAL_VALUES)}"
        )
    return _CHI2_CRITICAL_VALUES[threshold]


def likelihood_ratio_statistic(p: float, n: float, ep: float, en: float) -> float:
    def term(observed: float, expected: float) -> float:
        if observed == 0 or expected == 0:
            return 0.0
        return observed * math.log(observed / expected)

    return 2 * (term(p, ep) + term(n, en))


class NoOpStop(StoppingCriterion):

    def check_for_stop(self, rule: SingleHeadRule, examples: Instances) -> bool:
        return False


class NoNegativesCoveredStop(StoppingCriterion):
    """Stops refining rules which cover no negative examples."""

    def check_for_stop(self, rule: SingleHeadRule, examples: Instances) -> bool:
        return rule.stats.fp == 0


class LikelihoodRatio(StoppingCriterion):
    """Stops refining rules whose class distribution does not differ
    significantly from the one of all examples.

    Args:
        threshold (float, optional): significance level. Defaults to 0.9.
    """

    def __init__(self, threshold: float = 0.9):
        super().__init__()
        self.border: float = map_threshold(threshold)
        self.threshold: float = threshold

    def check_for_stop(self, rule: SingleHeadRule, examples: Instances) -> bool:
        stats = rule.stats
        P, N = stats.positives, stats.negatives
        p, n = stats.tp, stats.fp
        if P + N == 0:
            return True
        ep: float = (p + n) * (P / (P + N))
        en: float = (p + n) * (N / (P + N))
        result: bool = likelihood_ratio_statistic(p, n, ep, en) <= self.border
        if result:
            self.logger.debug("Stop criterion matched for rule %s", rule)
        return result

    def __repr__(self) -> str:
        return f"LikelihoodRatio(threshold={self.threshold})"


class NoOpRuleStop(RuleStoppingCriterion):

    def check_for_rule_stop(
        self,
        theory: SingleHeadRuleSet,
        rule: SingleHeadRule,
        examples: Instances,
        class_value: float,
    ) -> bool:
        return False


class CoverageRuleStop(RuleStoppingCriterion):
    """Rejects rules which do not cover more positive than negative examples."""

    def check_for_rule_stop(
        self,
        theory: SingleHeadRuleSet,
        rule: SingleHeadRule,
        examples: Instances,
        class_value: float,
    ) -> bool:
        return rule.stats.tp <= rule.stats.fp


class DefaultRuleAndCoverageRuleStop(RuleStoppingCriterion):
    """Rejects empty rules, rules not covering more positive than negative
    examples and rules whose Laplace value is not better than the one of the
    default rule predicting the same class.
    """

    def __init__(self):
        super().__init__()
        self.heuristic: Laplace = Laplace()

    def check_for_rule_stop(
        self,
        theory: SingleHeadRuleSet,
        rule: SingleHeadRule,
        examples: Instances,
        class_value: float,
    ) -> bool:
        if rule.length == 0 or rule.stats.tp <= rule.stats.fp:
            return True
        default_rule = SingleHeadRule(
            NominalCondition(examples.class_attribute, class_value),
            self.heuristic,
            rule.rng,
        )
        default_rule.evaluate(examples)
        evaluated: SingleHeadRule = rule.copy()
        evaluated.evaluate(examples, self.heuristic)
        return get_better_rule(evaluated, default_rule) is not evaluated


class MDLRuleStop(RuleStoppingCriterion):
    """Stopping criterion of RIPPER building phase. Total description length of
    rules learned for the current class is tracked incrementally, learning stops
    once it exceeds the best seen length by more than 64 bits, the rule covers no
    positive examples or its error rate reaches 0.5.
    """

    def __init__(self):
        super().__init__()
        self.rule_stats: Optional[RuleStats] = None
        self.num_all_conditions: float = -math.inf
        self.class_weights: Optional[dict[float, float]] = None
        self.remaining_weight: float = 0.0
        self.class_value: Optional[float] = None
        self.exp_fp_rate: float = 0.0
        self.dl: float = 0.0
        self.min_dl: float = 0.0

    def reset(self):
        self.rule_stats = None
        self.class_weights = None
        self.class_value = None

    def _start_class(self, examples: Instances, class_value: float):
        self.class_value = class_value
        self.rule_stats = RuleStats(examples, num_all_conditions=self.num_all_conditions)
        self.exp_fp_rate = (
            self.class_weights[class_value] / self.remaining_weight
            if self.remaining_weight > 0
            else 0.0
        )
        default_dl: float = RuleStats.data_dl(
            self.exp_fp_rate,
            0.0,
            examples.total_weight(),
            0.0,
            examples.count_instances(class_value),
        )
        self.remaining_weight -= self.class_weights[class_value]
        self.dl = self.min_dl = default_dl

    def check_for_rule_stop(
        self,
        theory: SingleHeadRuleSet,
        rule: SingleHeadRule,
        examples: Instances,
        class_value: float,
    ) -> bool:
        if self.class_weights is None:
            self.num_all_conditions = RuleStats.num_all_conditions(examples)
            self.class_weights = {
                float(value): count
                for value, count in enumerate(examples.class_counts())
            }
            self.remaining_weight = sum(self.class_weights.values())
        if self.class_value != class_value:
            self._start_class(examples, class_value)

        self.rule_stats.add_and_update(rule)
        last: int = len(self.rule_stats.ruleset) - 1
        self.dl += self.rule_stats.relative_dl(last, self.exp_fp_rate, True)
        if not math.isfinite(self.dl):
            raise ArithmeticError("Description length in building stage is not finite")
        self.min_dl = min(self.min_dl, self.dl)
        stop: bool = check_stop(
            self.rule_stats.simple_stats[last], self.min_dl, self.dl
        )
        self.logger.debug("dl = %f, min dl = %f, stop = %s", self.dl, self.min_dl, stop)
        return stop


def check_stop(rule_stats: list[float], min_dl: float, dl: float) -> bool:
    """Stop test of RIPPER building and optimization phases on the simple stats
    :code:`[cover, uncover, tp, tn, fp, fn]` of the last rule.
    """
    if dl > min_dl + MAX_DL_SURPLUS:
        return True
    if not RuleStats.gr(rule_stats[2], 0.0):
        return True
    return rule_stats[4] / rule_stats[0] >= 0.5
