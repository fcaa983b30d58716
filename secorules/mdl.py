"""
Minimum description length bookkeeping of RIPPER.

For every rule of a rule set the following simple statistics are computed on
the examples not covered by the preceding rules:
:code:`[cover, uncover, tp, tn, fp, fn]`. They are used to estimate how many bits
are needed to encode the rule set (theory) and the examples it misclassifies
(data).
"""
from __future__ import annotations

import math
from logging import Logger
from logging import getLogger
from typing import Optional

import numpy as np

from secorules.instances import Instances
from secorules.rules import SingleHeadRule
from secorules.ruleset import SingleHeadRuleSet

MAX_DL_SURPLUS: float = 64.0
REDUNDANCY_FACTOR: float = 0.5
SMALL: float = 1e-6

COVER, UNCOVER, TP, TN, FP, FN = range(6)

SimpleStats = list[float]
Split = tuple[Optional[Instances], Instances]


def _log2(value: float) -> float:
    if value > 0:
        return math.log2(value)
    if value == 0:
        return -math.inf
    return math.nan


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return math.nan
    return numerator / denominator


class RuleStats:
    """Statistics of a rule set on given data used to compute its description
    length.

    Args:
        data (Optional[Instances], optional): examples. Defaults to None.
        ruleset (Optional[SingleHeadRuleSet], optional): rules. Defaults to None.
        num_all_conditions (float, optional): number of all possible conditions,
            negative value means it is computed from data. Defaults to -1.
        mdl_theory_weight (float, optional): weight of theory description length.
            Defaults to 1.0.
    """

    def __init__(
        self,
        data: Optional[Instances] = None,
        ruleset: Optional[SingleHeadRuleSet] = None,
        num_all_conditions: float = -1,
        mdl_theory_weight: float = 1.0,
    ):
        self.logger: Logger = getLogger(self.__class__.__name__)
        self.data: Optional[Instances] = data
        self.ruleset: SingleHeadRuleSet = (
            ruleset if ruleset is not None else SingleHeadRuleSet()
        )
        self.simple_stats: list[SimpleStats] = []
        self.filtered: list[Optional[Split]] = []
        self.distributions: list[Optional[np.ndarray]] = []
        self.mdl_theory_weight: float = mdl_theory_weight
        if num_all_conditions < 0 and data is not None:
            num_all_conditions = RuleStats.num_all_conditions(data)
        self.total: float = num_all_conditions

    @staticmethod
    def num_all_conditions(data: Instances) -> float:
        """Number of all possible conditions: the number of values of each nominal
        attribute and twice the number of distinct values of each numerical one.
        """
        total: float = 0.0
        for index in data.feature_indices:
            attribute = data.attribute(index)
            if attribute.is_nominal:
                total += attribute.num_values
            else:
                total += 2.0 * data.num_distinct_values(index)
        return total

    @staticmethod
    def gr(a: float, b: float) -> bool:
        return a - b > SMALL

    @staticmethod
    def gr_or_eq(a: float, b: float) -> bool:
        return b - a < SMALL

    def compute_simple_stats(
        self, index: int, instances: Instances, with_distribution: bool = False
    ) -> tuple[SimpleStats, tuple[Instances, Instances], Optional[np.ndarray]]:
        """Computes simple statistics of a rule on given examples.

        Returns:
            tuple: statistics, (covered, uncovered) examples and class distribution
            of covered examples (None unless requested)
        """
        rule: SingleHeadRule = self.ruleset[index]
        covered: np.ndarray = rule.covered_mask(instances.X)
        positive: np.ndarray = instances.positive_mask(rule.predicted_value)
        weights: np.ndarray = instances.weights
        stats: SimpleStats = [
            float(weights[covered].sum()),
            float(weights[~covered].sum()),
            float(weights[covered & positive].sum()),
            float(weights[~covered & ~positive].sum()),
            float(weights[covered & ~positive].sum()),
            float(weights[~covered & positive].sum()),
        ]
        distribution: Optional[np.ndarray] = None
        if with_distribution:
            distribution = np.bincount(
                instances.class_values[covered].astype(int),
                weights=weights[covered],
                minlength=instances.num_classes,
            )
        return (
            stats,
            (instances.subset(covered), instances.subset(~covered)),
            distribution,
        )

    def count_data(self):
        """Computes statistics of all rules on the data from scratch."""
        self.filtered = []
        self.simple_stats = []
        self.distributions = []
        data: Instances = self.data
        for i in range(len(self.ruleset)):
            stats, split, distribution = self.compute_simple_stats(i, data, True)
            self.filtered.append(split)
            self.simple_stats.append(stats)
            self.distributions.append(distribution)
            data = split[1]

    def count_data_from(
        self, index: int, uncovered: Instances, previous_stats: list[SimpleStats]
    ):
        """Computes statistics of rules starting at given index, statistics of the
        preceding rules are taken from :code:`previous_stats`.

        Args:
            index (int): first rule whose statistics are computed
            uncovered (Instances): examples not covered by rules before index
            previous_stats (list[SimpleStats]): statistics of rules before index
        """
        self.filtered = []
        self.simple_stats = []
        self.distributions = []
        data: Split = (None, uncovered)
        for i in range(index):
            self.simple_stats.append(previous_stats[i])
            self.filtered.append(data if i + 1 == index else None)
            self.distributions.append(None)
        for j in range(index, len(self.ruleset)):
            stats, split, _ = self.compute_simple_stats(j, data[1])
            self.filtered.append(split)
            self.simple_stats.append(stats)
            self.distributions.append(None)
            data = split

    def add_and_update(self, rule: SingleHeadRule):
        """Appends a rule and computes its statistics on examples not covered by
        the preceding rules.
        """
        self.ruleset.add_rule(rule)
        data: Instances = self.data if not self.filtered else self.filtered[-1][1]
        stats, split, distribution = self.compute_simple_stats(
            len(self.ruleset) - 1, data, True
        )
        self.filtered.append(split)
        self.simple_stats.append(stats)
        self.distributions.append(distribution)

    def remove_last(self):
        self.ruleset.remove_rule(len(self.ruleset) - 1)
        self.filtered.pop()
        self.simple_stats.pop()
        if self.distributions:
            self.distributions.pop()

    @staticmethod
    def subset_dl(t: float, k: float, p: float) -> float:
        """Bits needed to encode which k of t elements are selected when each one is
        selected with probability p.
        """
        rt: float = -k * _log2(p) if RuleStats.gr(p, 0.0) else 0.0
        if t - k != 0:
            rt -= (t - k) * _log2(1 - p)
        return rt

    def theory_dl(self, index: int) -> float:
        k: float = float(self.ruleset[index].length)
        if k == 0:
            return 0.0
        tdl: float = math.log2(k)
        if k > 1:
            # approximation of log2 star
            tdl += 2.0 * math.log2(tdl)
        tdl += RuleStats.subset_dl(self.total, k, k / self.total)
        return self.mdl_theory_weight * REDUNDANCY_FACTOR * tdl

    @staticmethod
    def data_dl(
        exp_fp_over_err: float, cover: float, uncover: float, fp: float, fn: float
    ) -> float:
        """Bits needed to encode misclassified examples given the expected ratio of
        false positives among all errors. The larger of the covered and uncovered
        subsets is encoded with the expected error count.
        """
        total_bits: float = math.log2(cover + uncover + 1.0)
        if RuleStats.gr(cover, uncover):
            exp_err: float = exp_fp_over_err * (fp + fn)
            cover_bits: float = RuleStats.subset_dl(cover, fp, exp_err / cover)
            uncover_bits: float = (
                RuleStats.subset_dl(uncover, fn, fn / uncover)
                if RuleStats.gr(uncover, 0.0)
                else 0.0
            )
        else:
            exp_err = (1.0 - exp_fp_over_err) * (fp + fn)
            cover_bits = (
                RuleStats.subset_dl(cover, fp, fp / cover)
                if RuleStats.gr(cover, 0.0)
                else 0.0
            )
            uncover_bits = RuleStats.subset_dl(uncover, fn, _ratio(exp_err, uncover))
        return total_bits + cover_bits + uncover_bits

    def potential(
        self,
        index: int,
        exp_fp_over_err: float,
        ruleset_stat: SimpleStats,
        rule_stat: SimpleStats,
        check_err: bool,
    ) -> float:
        """Description length saved by deleting a rule. If the rule is worth
        deleting, :code:`ruleset_stat` is updated as if it were deleted.

        Returns:
            float: potential or NaN if the rule is not worth deleting
        """
        pcov: float = ruleset_stat[COVER] - rule_stat[COVER]
        puncov: float = ruleset_stat[UNCOVER] + rule_stat[COVER]
        pfp: float = ruleset_stat[FP] - rule_stat[FP]
        pfn: float = ruleset_stat[FN] + rule_stat[TP]

        data_dl_with: float = RuleStats.data_dl(
            exp_fp_over_err,
            ruleset_stat[COVER],
            ruleset_stat[UNCOVER],
            ruleset_stat[FP],
            ruleset_stat[FN],
        )
        theory_dl_with: float = self.theory_dl(index)
        data_dl_without: float = RuleStats.data_dl(
            exp_fp_over_err, pcov, puncov, pfp, pfn
        )
        potential: float = data_dl_with + theory_dl_with - data_dl_without
        err: float = _ratio(rule_stat[FP], rule_stat[COVER])
        over_err: bool = check_err and RuleStats.gr_or_eq(err, 0.5)
        if RuleStats.gr_or_eq(potential, 0.0) or over_err:
            ruleset_stat[COVER] = pcov
            ruleset_stat[UNCOVER] = puncov
            ruleset_stat[FP] = pfp
            ruleset_stat[FN] = pfn
            return potential
        return math.nan

    def _cumulative_stats(self) -> SimpleStats:
        ruleset_stat: SimpleStats = [0.0] * 6
        for stats in self.simple_stats:
            ruleset_stat[COVER] += stats[COVER]
            ruleset_stat[TP] += stats[TP]
            ruleset_stat[FP] += stats[FP]
        if self.simple_stats:
            last: SimpleStats = self.simple_stats[-1]
            ruleset_stat[UNCOVER] = last[UNCOVER]
            ruleset_stat[TN] = last[TN]
            ruleset_stat[FN] = last[FN]
        return ruleset_stat

    def min_data_dl_if_deleted(
        self, index: int, exp_fp_rate: float, check_err: bool
    ) -> float:
        """Minimal data description length of the rule set without given rule,
        following rules are recomputed and may be deleted as well.
        """
        ruleset_stat: SimpleStats = [0.0] * 6
        more: int = len(self.ruleset) - 1 - index
        index_plus: list[SimpleStats] = []
        for stats in self.simple_stats[:index]:
            ruleset_stat[COVER] += stats[COVER]
            ruleset_stat[TP] += stats[TP]
            ruleset_stat[FP] += stats[FP]

        data: Instances = self.data if index == 0 else self.filtered[index - 1][1]
        for j in range(index + 1, len(self.ruleset)):
            stats, split, _ = self.compute_simple_stats(j, data)
            index_plus.append(stats)
            ruleset_stat[COVER] += stats[COVER]
            ruleset_stat[TP] += stats[TP]
            ruleset_stat[FP] += stats[FP]
            data = split[1]

        if more > 0:
            source: SimpleStats = index_plus[-1]
            ruleset_stat[UNCOVER] = source[UNCOVER]
            ruleset_stat[TN] = source[TN]
            ruleset_stat[FN] = source[FN]
        elif index > 0:
            source = self.simple_stats[index - 1]
            ruleset_stat[UNCOVER] = source[UNCOVER]
            ruleset_stat[TN] = source[TN]
            ruleset_stat[FN] = source[FN]
        else:
            # no rule covers anything
            source = self.simple_stats[0]
            ruleset_stat[UNCOVER] = source[COVER] + source[UNCOVER]
            ruleset_stat[TN] = source[TN] + source[FP]
            ruleset_stat[FN] = source[TP] + source[FN]

        potential: float = 0.0
        for k in range(index + 1, len(self.ruleset)):
            if_deleted: float = self.potential(
                k, exp_fp_rate, ruleset_stat, index_plus[k - index - 1], check_err
            )
            if not math.isnan(if_deleted):
                potential += if_deleted

        data_dl_without: float = RuleStats.data_dl(
            exp_fp_rate,
            ruleset_stat[COVER],
            ruleset_stat[UNCOVER],
            ruleset_stat[FP],
            ruleset_stat[FN],
        )
        return data_dl_without - potential

    def min_data_dl_if_exists(
        self, index: int, exp_fp_rate: float, check_err: bool
    ) -> float:
        """Minimal data description length of the rule set with given rule, rules
        after it may be deleted.
        """
        ruleset_stat: SimpleStats = self._cumulative_stats()
        potential: float = 0.0
        for k in range(index + 1, len(self.simple_stats)):
            if_deleted: float = self.potential(
                k, exp_fp_rate, ruleset_stat, self.simple_stats[k], check_err
            )
            if not math.isnan(if_deleted):
                potential += if_deleted
        data_dl_with: float = RuleStats.data_dl(
            exp_fp_rate,
            ruleset_stat[COVER],
            ruleset_stat[UNCOVER],
            ruleset_stat[FP],
            ruleset_stat[FN],
        )
        return data_dl_with - potential

    def relative_dl(self, index: int, exp_fp_rate: float, check_err: bool) -> float:
        """Change of total description length caused by the rule at given
        position.
        """
        return (
            self.min_data_dl_if_exists(index, exp_fp_rate, check_err)
            + self.theory_dl(index)
            - self.min_data_dl_if_deleted(index, exp_fp_rate, check_err)
        )

    def reduce_dl(self, exp_fp_rate: float, check_err: bool):
        """Scans rules from the last to the first one and deletes every rule whose
        deletion does not increase description length.
        """
        need_update: bool = False
        ruleset_stat: SimpleStats = self._cumulative_stats()
        for k in range(len(self.simple_stats) - 1, -1, -1):
            if_deleted: float = self.potential(
                k, exp_fp_rate, ruleset_stat, self.simple_stats[k], check_err
            )
            if math.isnan(if_deleted):
                continue
            self.logger.debug("Deleting rule %d: %s", k, self.ruleset[k])
            if k == len(self.simple_stats) - 1:
                self.remove_last()
            else:
                self.ruleset.remove_rule(k)
                need_update = True
        if need_update:
            self.count_data()

    def combined_dl(self, exp_fp_rate: float, predicted: float) -> float:
        """Total description length of the rule set: data and theory."""
        rt: float = 0.0
        if len(self.ruleset) > 0:
            stats: SimpleStats = list(self.simple_stats[-1])
            for previous in self.simple_stats[:-1]:
                stats[COVER] += previous[COVER]
                stats[TP] += previous[TP]
                stats[FP] += previous[FP]
            rt += RuleStats.data_dl(
                exp_fp_rate, stats[COVER], stats[UNCOVER], stats[FP], stats[FN]
            )
        else:
            fn: float = self.data.count_instances(predicted)
            rt += RuleStats.data_dl(exp_fp_rate, 0.0, self.data.total_weight(), 0.0, fn)
        for i in range(len(self.ruleset)):
            rt += self.theory_dl(i)
        return rt

    @staticmethod
    def rm_covered_by_successives(
        data: Instances, theory: SingleHeadRuleSet, index: int
    ) -> Instances:
        """Returns examples not covered by any rule following given position."""
        uncovered: np.ndarray = np.ones(data.num_instances, dtype=bool)
        for rule in theory.rules[index + 1 :]:
            uncovered &= ~rule.covered_mask(data.X)
        return data.subset(uncovered)

    @staticmethod
    def stratify(
        data: Instances, growing_set_size: float, rng: np.random.Generator
    ) -> Instances:
        return data.stratify(growing_set_size, rng)

    @staticmethod
    def partition(data: Instances, num_folds: int) -> tuple[Instances, Instances]:
        return data.partition(num_folds)
