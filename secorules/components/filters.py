from __future__ import annotations

from typing import Iterable

from secorules.components._base import RuleFilter
from secorules.components.stopping import map_threshold
from secorules.instances import Instances
from secorules.rules import SingleHeadRule


class BeamWidthFilter(RuleFilter):
    """Keeps only the :code:`beam_width` best candidates.

    Args:
        beam_width (int, optional): number of kept candidates. Non positive values
            are replaced with 1. Defaults to 1.
    """

    def __init__(self, beam_width: int = 1):
        super().__init__()
        if beam_width <= 0:
            self.logger.error(
                "Beam width was %d but has to be > 0, it was set to 1", beam_width
            )
            beam_width = 1
        self.beam_width: int = beam_width

    def filter_rules(
        self, rules: list[SingleHeadRule], examples: Instances
    ) -> list[SingleHeadRule]:
        return rules[: self.beam_width]

    def __repr__(self) -> str:
        return f"BeamWidthFilter(beam_width={self.beam_width})"


def chi_square_k2(p: float, n: float, ep: float, en: float) -> float:
    """Chi square statistic of observed predicted positive and negative counts
    against the expected ones. Terms with zero expectation are ignored.
    """
    chi2: float = 0.0
    if ep != 0:
        chi2 += (p - ep) ** 2 / ep
    if en != 0:
        chi2 += (n - en) ** 2 / en
    return chi2


class ChiSquareFilter(RuleFilter):
    """Removes refinements whose coverage does not differ significantly from
    their predecessor's one. Rules without predecessor are always kept.

    Args:
        threshold (float, optional): significance level. Defaults to 0.9.
    """

    def __init__(self, threshold: float = 0.9):
        super().__init__()
        self.threshold: float = threshold
        self.border: float = map_threshold(threshold)

    def _is_significant(self, rule: SingleHeadRule) -> bool:
        predecessor = rule.predecessor
        if predecessor is None:
            return True
        chi2: float = chi_square_k2(
            rule.stats.predicted_positive,
            rule.stats.predicted_negative,
            predecessor.stats.predicted_positive,
            predecessor.stats.predicted_negative,
        )
        return chi2 > self.border

    def filter_rules(
        self, rules: list[SingleHeadRule], examples: Instances
    ) -> list[SingleHeadRule]:
        return [rule for rule in rules if self._is_significant(rule)]

    def __repr__(self) -> str:
        return f"ChiSquareFilter(threshold={self.threshold})"


class MultiRuleFilter(RuleFilter):
    """Applies given filters one after another."""

    def __init__(self, filters: Iterable[RuleFilter]):
        super().__init__()
        self.filters: list[RuleFilter] = list(filters)

    def filter_rules(
        self, rules: list[SingleHeadRule], examples: Instances
    ) -> list[SingleHeadRule]:
        for rule_filter in self.filters:
            rules = rule_filter.filter_rules(rules, examples)
        return rules

    def __repr__(self) -> str:
        return f"MultiRuleFilter({self.filters})"
