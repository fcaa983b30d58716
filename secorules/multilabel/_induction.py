from __future__ import annotations

from logging import Logger
from logging import getLogger
from typing import Optional

import numpy as np

from secorules._induction import RuleInducersMixin
from secorules._params import MultiLabelAlgorithmParams
from secorules._params import create_multilabel_heuristic
from secorules.heuristics import Heuristic
from secorules.instances import Instances
from secorules.multilabel.covering import MulticlassCovering
from secorules.multilabel.evaluation import MultiLabelEvaluation
from secorules.rules import MultiHeadRule
from secorules.ruleset import MultiHeadRuleSet
from secorules.stats import ConfusionMatrix


class MultiLabelRuleInducer(RuleInducersMixin):
    """Learns a multi-label rule list. Label columns of the working examples start
    missing and are filled with predictions of the learned rules, examples whose
    labels are not fully predicted yet may be re-added to the training set.
    """

    def __init__(self, params: MultiLabelAlgorithmParams):
        super().__init__()
        self.params: MultiLabelAlgorithmParams = params
        self.logger: Logger = getLogger(self.__class__.__name__)
        self.rng: np.random.Generator = np.random.default_rng(params["random_state"])
        self.heuristic: Heuristic = create_multilabel_heuristic(params)
        self.evaluation = MultiLabelEvaluation(
            self.heuristic,
            params["evaluation_strategy"],
            params["averaging_strategy"],
        )
        self.covering = MulticlassCovering(
            self.evaluation, predict_zero=params["predict_zero"], rng=self.rng
        )

    def induce_ruleset(self, instances: Instances) -> MultiHeadRuleSet:
        """Induces a multi-label rule list based on given data

        Args:
            instances (Instances): training examples with label attributes

        Returns:
            MultiHeadRuleSet: rule list
        """
        ruleset = MultiHeadRuleSet(
            label_indices=instances.label_indices,
            decision_list=self.params["decision_list"],
        )
        examples: Instances = instances.mask_labels()
        # True while the original example is not covered by any rule
        instance_status: np.ndarray = np.ones(instances.num_instances, dtype=bool)
        predicted_labels: set[int] = set()
        min_remaining: float = instances.num_instances * self.params["uncovered_fraction"]

        while examples.num_instances > min_remaining:
            rule: Optional[MultiHeadRule] = self._grow(
                examples, predicted_labels, instance_status
            )
            if rule is None:
                self.logger.debug("No rule found, stopping")
                break

            covered_mask: np.ndarray = rule.covered_mask(examples.X)
            covered: Instances = examples.subset(covered_mask)
            examples = examples.subset(~covered_mask)
            for condition in rule.head:
                predicted_labels.add(condition.index)
                column: np.ndarray = covered.X[:, condition.index]
                column[np.isnan(column)] = condition.value
            not_fully_covered: np.ndarray = self._not_fully_covered(covered)

            instance_status &= ~rule.covered_mask(instances.X)
            ruleset.add_rule(rule)
            self.logger.info("Rule added: %s (%s)", rule, rule.stats)

            examples = self._readd(ruleset, examples, covered, not_fully_covered)
        return ruleset

    def _grow(
        self,
        examples: Instances,
        predicted_labels: set[int],
        instance_status: np.ndarray,
    ) -> Optional[MultiHeadRule]:
        if self.params["use_bottom_up"]:
            return self.covering.find_best_rule_bottom_up(
                examples,
                predicted_labels,
                self.params["beam_width"],
                instance_status=instance_status,
                accept_equal=self.params["accept_equal"],
                n_step=self.params["n_step"],
                numeric_generalization=self.params["numeric_generalization"],
                use_random=self.params["use_random"],
            )
        return self.covering.find_best_global_rule(
            examples, predicted_labels, self.params["beam_width"]
        )

    def _readd(
        self,
        ruleset: MultiHeadRuleSet,
        examples: Instances,
        covered: Instances,
        not_fully_covered: np.ndarray,
    ) -> Instances:
        """Returns remaining examples extended by covered examples that should be
        learned further. With skip rules enabled (non-negative skip threshold) a
        skip rule is added instead when few covered examples miss some label.
        """
        num_not_fully: int = int(not_fully_covered.sum())
        if self.params["skip_threshold"] >= 0:
            if num_not_fully / covered.num_instances > self.params["skip_threshold"]:
                if self.params["readd_all_covered"]:
                    return examples.concat(covered)
                return examples.concat(covered.subset(not_fully_covered))
            ruleset.add_rule(
                MultiHeadRule.skip_rule(
                    ConfusionMatrix(
                        tp=covered.num_instances - num_not_fully, fp=num_not_fully
                    )
                )
            )
            self.logger.debug("Skip rule added")
            return examples
        if self.params["cover_all_labels"]:
            return examples.concat(covered.subset(not_fully_covered))
        return examples

    def _not_fully_covered(self, covered: Instances) -> np.ndarray:
        """Flags covered examples with some label still to be predicted. Without
        zero predictions only missing labels which are truly present count.
        """
        missing: np.ndarray = np.isnan(covered.X[:, covered.label_indices])
        if not self.params["predict_zero"]:
            missing &= covered.label_vectors() == 1.0
        return missing.any(axis=1)
