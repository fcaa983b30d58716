"""
Post processors rewriting a theory learned for a single class.
"""
from __future__ import annotations

import math
from typing import TYPE_CHECKING
from typing import Optional

from secorules.components._base import PostProcessor
from secorules.components.stopping import check_stop
from secorules.heuristics import Heuristic
from secorules.instances import Instances
from secorules.mdl import RuleStats
from secorules.rules import SingleHeadRule
from secorules.ruleset import SingleHeadRuleSet

if TYPE_CHECKING:
    from secorules.classification._induction import RuleInducer


class NoOpPostProcessor(PostProcessor):

    def post_process_theory(
        self,
        theory: SingleHeadRuleSet,
        examples: Instances,
        class_value: float,
        inducer: RuleInducer,
    ) -> SingleHeadRuleSet:
        self.new_instances = None
        return theory


def _error_rate(rule: SingleHeadRule) -> float:
    covered: float = rule.stats.predicted_positive
    if covered == 0:
        return math.inf
    return rule.stats.fp / covered


class RipperPostProcessor(PostProcessor):
    """Optimization phase of RIPPER. Each rule of the theory is compared with its
    replacement (grown from scratch) and its revision (grown further from the
    rule) and the variant yielding the smallest description length of the whole
    theory is kept. Positive examples left uncovered are covered by residual
    rules and finally rules increasing description length are deleted.

    Args:
        optimizations (int, optional): number of optimization passes. Defaults
            to 2.
        use_abridgment (bool, optional): also consider the rule with conditions
            greedily removed as long as its error rate does not grow. Defaults
            to False.
        selection_heuristic (Optional[Heuristic], optional): if given, variants
            are selected by this heuristic instead of description length.
            Defaults to None.
    """

    def __init__(
        self,
        optimizations: int = 2,
        use_abridgment: bool = False,
        selection_heuristic: Optional[Heuristic] = None,
    ):
        super().__init__()
        self.optimizations: int = optimizations
        self.use_abridgment: bool = use_abridgment
        self.selection_heuristic: Optional[Heuristic] = selection_heuristic

    def post_process_theory(
        self,
        theory: SingleHeadRuleSet,
        examples: Instances,
        class_value: float,
        inducer: RuleInducer,
    ) -> SingleHeadRuleSet:
        """Optimizes theory learned for given class.

        Args:
            theory (SingleHeadRuleSet): rules learned for the class
            examples (Instances): examples the theory was learned on
            class_value (float): target class
            inducer (RuleInducer): inducer used to grow and prune rules

        Returns:
            SingleHeadRuleSet: optimized theory, examples it leaves uncovered are
            stored in :code:`new_instances`
        """
        self.new_instances = None
        if self.optimizations == 0:
            return theory

        total_weight: float = examples.total_weight()
        class_weight: float = examples.count_instances(class_value)
        exp_fp_rate: float = class_weight / total_weight if total_weight > 0 else 0.0
        default_dl: float = RuleStats.data_dl(
            exp_fp_rate, 0.0, total_weight, 0.0, class_weight
        )
        num_all_conditions: float = RuleStats.num_all_conditions(examples)

        for k in range(self.optimizations):
            self.logger.info(
                "Optimization pass %d of %d for class %s",
                k + 1,
                self.optimizations,
                examples.class_attribute.format_value(class_value),
            )
            theory = self._optimize_once(
                theory,
                examples,
                class_value,
                inducer,
                exp_fp_rate,
                default_dl,
                num_all_conditions,
            )

        remaining: Instances = examples
        for rule in theory:
            rule.evaluate(remaining)
            remaining = rule.uncovered_instances(remaining)
        self.new_instances = remaining
        return theory

    def _optimize_once(
        self,
        theory: SingleHeadRuleSet,
        examples: Instances,
        class_value: float,
        inducer: RuleInducer,
        exp_fp_rate: float,
        default_dl: float,
        num_all_conditions: float,
    ) -> SingleHeadRuleSet:
        theory = theory.copy()
        growing_set_size: float = inducer.params["growing_set_size"]
        stats = RuleStats(examples, num_all_conditions=num_all_conditions)
        position: int = 0
        dl: float = default_dl
        min_dl: float = default_dl
        stop: bool = False
        new_examples: Instances = examples
        has_positive: bool = new_examples.contains_positive(class_value)

        while not stop and has_positive:
            residual: bool = position >= len(theory)
            new_examples = new_examples.stratify(growing_set_size, inducer.rng)
            growing, pruning = new_examples.split(growing_set_size)

            if residual:
                final: SingleHeadRule = inducer.find_best_rule(growing, None, class_value)
                final = inducer.prune_rule(pruning, final, False, class_value)
                final.evaluate(pruning)
            else:
                old: SingleHeadRule = theory[position]
                old.evaluate(new_examples)
                if not old.covered_mask(new_examples.X).any():
                    self.logger.debug("Deleting rule covering no examples: %s", old)
                    theory.remove_rule(position)
                    continue
                final = self._select_variant(
                    self._variants(
                        old, theory, position, new_examples, growing, pruning, inducer
                    ),
                    theory,
                    position,
                    examples,
                    new_examples,
                    stats,
                    exp_fp_rate,
                )

            stats.add_and_update(final)
            rule_stat: list[float] = stats.simple_stats[position]
            if residual:
                dl += stats.relative_dl(position, exp_fp_rate, True)
                min_dl = min(min_dl, dl)
                stop = check_stop(rule_stat, min_dl, dl)
                if stop:
                    stats.remove_last()
                    position -= 1
                else:
                    theory.add_rule(final)
                    self.logger.debug("Added residual rule: %s", final)
            else:
                theory.replace_rule(position, final)

            if stats.filtered:
                new_examples = stats.filtered[position][1]
            has_positive = new_examples.contains_positive(class_value)
            position += 1

        for rule in list(theory)[len(stats.ruleset) :]:
            stats.add_and_update(rule)
        stats.reduce_dl(exp_fp_rate, True)
        return SingleHeadRuleSet(list(stats.ruleset))

    def _variants(
        self,
        old: SingleHeadRule,
        theory: SingleHeadRuleSet,
        position: int,
        new_examples: Instances,
        growing: Instances,
        pruning: Instances,
        inducer: RuleInducer,
    ) -> list[SingleHeadRule]:
        class_value: float = old.predicted_value
        pruning = RuleStats.rm_covered_by_successives(pruning, theory, position)

        replace: SingleHeadRule = inducer.find_best_rule(growing, None, class_value)
        replace.evaluate(new_examples)
        replace = inducer.prune_rule(pruning, replace, True, class_value)
        replace.evaluate(new_examples)

        revision: SingleHeadRule = inducer.find_best_rule(
            old.covered_instances(growing), old.copy(), class_value
        )
        revision.evaluate(growing)
        revision = inducer.prune_rule(pruning, revision, True, class_value)
        revision.evaluate(new_examples)

        variants: list[SingleHeadRule] = [old, revision, replace]
        if self.use_abridgment:
            variants.append(self._abridge(old, new_examples))
        return variants

    @staticmethod
    def _abridge(rule: SingleHeadRule, examples: Instances) -> SingleHeadRule:
        """Greedily removes conditions as long as error rate does not grow."""
        best: SingleHeadRule = rule.copy()
        best.evaluate(examples)
        best_error: float = _error_rate(best)
        while best.length > 1:
            candidates: list[SingleHeadRule] = []
            for i in range(best.length):
                candidate: SingleHeadRule = best.generalize(i)
                candidate.evaluate(examples)
                candidates.append(candidate)
            chosen: SingleHeadRule = min(candidates, key=_error_rate)
            error: float = _error_rate(chosen)
            if error > best_error:
                break
            best, best_error = chosen, error
        return best

    def _select_variant(
        self,
        variants: list[SingleHeadRule],
        theory: SingleHeadRuleSet,
        position: int,
        examples: Instances,
        new_examples: Instances,
        stats: RuleStats,
        exp_fp_rate: float,
    ) -> SingleHeadRule:
        scores: list[float] = []
        for variant in variants:
            if self.selection_heuristic is not None:
                scores.append(-self.selection_heuristic.evaluate_rule(variant))
                continue
            variant_theory: SingleHeadRuleSet = theory.copy()
            variant_theory.replace_rule(position, variant)
            variant_stats = RuleStats(examples, variant_theory, stats.total)
            variant_stats.count_data_from(position, new_examples, stats.simple_stats)
            dl: float = variant_stats.relative_dl(position, exp_fp_rate, True)
            if not math.isfinite(dl):
                raise ArithmeticError(
                    f"Description length of rule variant is not finite: {variant}"
                )
            scores.append(dl)
        chosen: int = scores.index(min(scores))
        self.logger.debug(
            "Variant scores (old, revision, replace, abridgment): %s, chosen %d",
            scores,
            chosen,
        )
        return variants[chosen]

    def __repr__(self) -> str:
        return (
            f"RipperPostProcessor(optimizations={self.optimizations}, "
            f"use_abridgment={self.use_abridgment})"
        )
