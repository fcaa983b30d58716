from __future__ import annotations

from logging import Logger
from logging import getLogger
from typing import Optional

import numpy as np

from secorules._candidates import CandidateSet
from secorules._induction import RuleInducersMixin
from secorules._params import AlgorithmParams
from secorules.components import create_candidate_selector
from secorules.components import create_post_processor
from secorules.components import create_rule_filter
from secorules.components import create_rule_initializer
from secorules.components import create_rule_refiner
from secorules.components import create_rule_stop
from secorules.components import create_stopping_criterion
from secorules.components import create_weight_model
from secorules.components._base import Component
from secorules.conditions import NominalCondition
from secorules.heuristics import Heuristic
from secorules.heuristics import create_heuristic
from secorules.instances import Instances
from secorules.rules import SingleHeadRule
from secorules.rules import get_better_rule
from secorules.ruleset import SingleHeadRuleSet
from secorules.stats import ConfusionMatrix


class RuleInducer(RuleInducersMixin):
    """Induces a decision list with the separate-and-conquer strategy. Rules are
    found by a best-first refinement search, optionally pruned on a separate
    pruning set and the theory learned for each class may be optimized by the
    post processor.
    """

    def __init__(self, params: AlgorithmParams):
        super().__init__()
        self.params: AlgorithmParams = params
        self.logger: Logger = getLogger(self.__class__.__name__)
        self.rng: np.random.Generator = np.random.default_rng(params["random_state"])
        self.heuristic: Heuristic = create_heuristic(params["heuristic"])
        self.candidate_selector = create_candidate_selector(params["candidate_selector"])
        self.rule_filter = create_rule_filter(
            params["rule_filter"], params["beam_width"], params["filter_threshold"]
        )
        self.rule_initializer = create_rule_initializer(params["rule_initializer"])
        self.rule_refiner = create_rule_refiner(
            params["rule_refiner"], params["nominal_compare_mode"]
        )
        self.stopping_criterion = create_stopping_criterion(
            params["stopping_criterion"], params["stopping_threshold"]
        )
        self.rule_stop = create_rule_stop(params["rule_stop"])
        self.weight_model = create_weight_model(params["weight_model"])
        selection_heuristic: Optional[Heuristic] = None
        if params["selection_heuristic"] is not None:
            selection_heuristic = create_heuristic(params["selection_heuristic"])
        self.post_processor = create_post_processor(
            params["post_processor"],
            params["optimizations"],
            params["use_abridgment"],
            selection_heuristic,
        )

    @property
    def components(self) -> list[Component]:
        return [
            self.candidate_selector,
            self.rule_filter,
            self.rule_initializer,
            self.rule_refiner,
            self.stopping_criterion,
            self.rule_stop,
            self.weight_model,
            self.post_processor,
        ]

    def induce_ruleset(self, instances: Instances) -> SingleHeadRuleSet:
        """Induces a decision list based on given data

        Args:
            instances (Instances): training examples with class attribute

        Returns:
            SingleHeadRuleSet: ruleset with default rule
        """
        for component in self.components:
            component.reset()
        if self.params["ordered"]:
            return self._induce_ordered(instances)
        return self._induce_unordered(instances)

    def _induce_ordered(self, instances: Instances) -> SingleHeadRuleSet:
        ruleset = SingleHeadRuleSet()
        examples: Instances = instances
        for class_value in instances.order_classes()[:-1]:
            self.logger.info(
                "Learning rules for class %s",
                instances.class_attribute.format_value(class_value),
            )
            theory, examples = self.separate_and_conquer(examples, float(class_value))
            for rule in theory:
                ruleset.add_rule(rule)
        ruleset.default_rule = self._default_rule(
            examples if examples.num_instances > 0 else instances
        )
        return ruleset

    def _induce_unordered(self, instances: Instances) -> SingleHeadRuleSet:
        ruleset = SingleHeadRuleSet()
        examples: Instances = instances
        min_remaining: float = instances.num_instances * self.params["uncovered_fraction"]
        while examples.num_instances > min_remaining:
            best: Optional[SingleHeadRule] = None
            class_values: np.ndarray = examples.class_values
            for class_value in np.unique(class_values[~np.isnan(class_values)]):
                rule: SingleHeadRule
                rule, examples = self._learn_rule(examples, float(class_value))
                if best is None or best.compare_to(rule) < 0:
                    best = rule
            if best is None or self.rule_stop.check_for_rule_stop(
                ruleset, best, examples, best.predicted_value
            ):
                break
            if best.length == 0:
                break
            examples = best.uncovered_instances(examples)
            ruleset.add_rule(best)
            self.logger.info("Learned rule: %s %s", best, best.stats)
        ruleset.default_rule = self._default_rule(
            examples if examples.num_instances > 0 else instances
        )
        return ruleset

    def _default_rule(self, examples: Instances) -> SingleHeadRule:
        counts: np.ndarray = examples.class_counts()
        class_value: int = int(np.argmax(counts))
        rule = SingleHeadRule(
            NominalCondition(examples.class_attribute, class_value),
            self.heuristic,
            self.rng,
        )
        rule.stats = ConfusionMatrix(
            tp=counts[class_value], fp=counts.sum() - counts[class_value]
        )
        rule.compute_value()
        return rule

    def _learn_rule(
        self, examples: Instances, class_value: float
    ) -> tuple[SingleHeadRule, Instances]:
        """Finds a single rule, with growing set smaller than 1 the rule is grown on
        the growing part and pruned on the pruning part of stratified examples.

        Returns:
            tuple[SingleHeadRule, Instances]: rule and examples it was evaluated on
        """
        growing_set_size: float = self.params["growing_set_size"]
        if growing_set_size == 1:
            return self.find_best_rule(examples, None, class_value), examples
        examples, growing, pruning = examples.stratified_split(
            growing_set_size, self.rng
        )
        rule: SingleHeadRule = self.find_best_rule(growing, None, class_value)
        rule.evaluate(examples)
        rule = self.prune_rule(pruning, rule, False, class_value)
        rule.evaluate(examples)
        return rule, examples

    def separate_and_conquer(
        self, examples: Instances, class_value: float
    ) -> tuple[SingleHeadRuleSet, Instances]:
        """Learns rules for given class until no positive example is left or the
        rule stopping criterion rejects a rule.

        Args:
            examples (Instances): examples
            class_value (float): target class

        Returns:
            tuple[SingleHeadRuleSet, Instances]: learned theory and examples left
                uncovered by it
        """
        original: Instances = examples
        examples = examples.copy()
        theory = SingleHeadRuleSet()
        cover_counts: np.ndarray = np.zeros(
            int(examples.ids.max()) + 1 if examples.num_instances > 0 else 0
        )
        while examples.contains_positive(class_value):
            rule: SingleHeadRule
            rule, examples = self._learn_rule(examples, class_value)
            if self.rule_stop.check_for_rule_stop(theory, rule, examples, class_value):
                self.logger.debug("Rule rejected by rule stopping criterion: %s", rule)
                break
            covered: np.ndarray = rule.covered_mask(examples.X)
            if not covered.any():
                break
            self.weight_model.change_weights(examples, cover_counts, rule)
            examples = examples.subset(~covered)
            theory.add_rule(rule)
            self.logger.info("Learned rule: %s %s", rule, rule.stats)

        remaining: Instances = examples
        if self.params["growing_set_size"] != 1:
            theory = self._optimize(theory, original, class_value)
            if self.post_processor.new_instances is not None:
                remaining = self.post_processor.new_instances
        return theory, remaining

    def find_best_rule(
        self,
        examples: Instances,
        rule: Optional[SingleHeadRule],
        class_value: float,
    ) -> SingleHeadRule:
        """Best-first search for the best rule predicting given class.

        Args:
            examples (Instances): growing examples
            rule (Optional[SingleHeadRule]): rule to start the search from, seeds
                come from the rule initializer if None
            class_value (float): target class

        Returns:
            SingleHeadRule: best rule found
        """
        return self._grow(examples, rule, class_value)

    def _grow(
        self,
        examples: Instances,
        rule: Optional[SingleHeadRule],
        class_value: float,
    ) -> SingleHeadRule:
        min_no: int = self.params["min_no"]
        if rule is not None:
            seeds: list[SingleHeadRule] = [rule]
        else:
            seeds = self.rule_initializer.initialize_rule(
                self.heuristic, examples, class_value, self.rng
            )
        for seed in seeds:
            seed.evaluate(examples, self.heuristic)
        candidates = CandidateSet(seeds)
        best: SingleHeadRule = candidates.first()

        while len(candidates) > 0:
            selected: list[SingleHeadRule] = self.candidate_selector.select_candidates(
                candidates.to_list(), examples
            )
            candidates.remove_all(selected)
            for candidate in selected:
                if (
                    self.stopping_criterion.check_for_stop(candidate, examples)
                    or candidate.stats.tp < min_no
                ):
                    continue
                for refinement in self.rule_refiner.refine_rule(
                    candidate, examples, class_value
                ):
                    if refinement == candidate or refinement.stats.tp <= 0:
                        continue
                    # refinement excluding all its negatives
                    virtual: SingleHeadRule = refinement.copy()
                    virtual.stats.set_true_negatives(
                        virtual.stats.tn + virtual.stats.fp
                    )
                    virtual.stats.set_false_positives(0)
                    virtual.compute_value(self.heuristic)
                    if best.compare_to(virtual) > 0:
                        continue
                    if (
                        self.params["strictly_greater"]
                        and refinement.compare_to(candidate) <= 0
                    ):
                        continue
                    candidates.add(refinement)

            if len(candidates) > 0:
                first: SingleHeadRule = candidates.first()
                if self.heuristic.is_value_heuristic:
                    if first.stats.tp >= min_no:
                        best = get_better_rule(best, first)
                elif (
                    self.stopping_criterion.check_for_stop(first, examples)
                    and first.stats.tp >= min_no
                ):
                    best = first
            self.logger.debug("Best rule so far: %s (%d candidates)", best, len(candidates))
            candidates = CandidateSet(
                self.rule_filter.filter_rules(candidates.to_list(), examples)
            )
        return best

    def prune_rule(
        self,
        examples: Instances,
        rule: SingleHeadRule,
        use_whole: bool,
        class_value: float,
    ) -> SingleHeadRule:
        """Reduced error pruning of the rule's final conditions.

        Args:
            examples (Instances): pruning examples
            rule (SingleHeadRule): rule to prune
            use_whole (bool): measure accuracy on all pruning examples instead of
                the covered ones only
            class_value (float): target class

        Returns:
            SingleHeadRule: copy of the rule with the best prefix of its body
        """
        return self._prune(examples, rule, use_whole, class_value)

    def _prune(
        self,
        examples: Instances,
        rule: SingleHeadRule,
        use_whole: bool,
        class_value: float,
    ) -> SingleHeadRule:
        if rule.length == 0:
            return rule
        total: float = examples.total_weight()
        if total == 0:
            return rule
        default_accuracy: float = examples.count_instances(class_value)

        worth: list[float] = []
        remaining: np.ndarray = np.ones(examples.num_instances, dtype=bool)
        positive: np.ndarray = examples.positive_mask(class_value)
        true_negatives: float = 0.0
        for condition in rule.body:
            covered: np.ndarray = remaining & condition.covered_mask(examples.X)
            coverage: float = examples.weights[covered].sum()
            value: float = examples.weights[covered & positive].sum()
            if use_whole:
                true_negatives += examples.weights[
                    remaining & ~covered & ~positive
                ].sum()
                worth.append((value + true_negatives) / total)
            else:
                worth.append((value + 1.0) / (coverage + 2.0))
            remaining = covered

        keep: int = self._select_prefix(
            worth, (default_accuracy + 1.0) / (total + 2.0)
        )
        pruned: SingleHeadRule = rule.copy()
        pruned.body = pruned.body[:keep]
        self.logger.debug("Pruned rule %s to %d conditions", rule, keep)
        return pruned

    @staticmethod
    def _select_prefix(worth: list[float], default_worth: float) -> int:
        """Returns length of the shortest prefix whose worth is the highest one and
        greater than default worth, 0 if no prefix beats it.
        """
        max_value: float = default_worth
        max_index: int = -1
        for i, value in enumerate(worth):
            if value > max_value:
                max_value = value
                max_index = i
        return max_index + 1

    def _optimize(
        self, theory: SingleHeadRuleSet, examples: Instances, class_value: float
    ) -> SingleHeadRuleSet:
        return self.post_processor.post_process_theory(
            theory, examples, class_value, self
        )
