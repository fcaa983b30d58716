"""
Evaluation of multi-label rules.

Statistics of a rule are aggregated over label-example pairs: for covered
examples a label is a true positive when the rule predicts it correctly (labels
outside the head count as predicted absent), for uncovered examples it is a
false negative when present and a true negative otherwise. Covered examples whose
head labels were all predicted by earlier rules are ignored.
"""
from __future__ import annotations

from logging import Logger
from logging import getLogger
from typing import Optional
from typing import Union

import numpy as np

from secorules.heuristics import AveragingStrategyType
from secorules.heuristics import Characteristic
from secorules.heuristics import EvaluationStrategyType
from secorules.heuristics import Heuristic
from secorules.instances import Instances
from secorules.rules import MultiHeadRule
from secorules.stats import ConfusionMatrix


class LabelWiseStats:
    """Weights of label-example pairs of each confusion matrix cell. Every matrix
    has a row per example and a column per relevant label.
    """

    def __init__(
        self,
        tp: np.ndarray,
        fp: np.ndarray,
        tn: np.ndarray,
        fn: np.ndarray,
        considered: np.ndarray,
    ):
        self.tp: np.ndarray = tp
        self.fp: np.ndarray = fp
        self.tn: np.ndarray = tn
        self.fn: np.ndarray = fn
        self.considered: np.ndarray = considered

    def total(self) -> ConfusionMatrix:
        return ConfusionMatrix(
            tp=self.tp.sum(), fp=self.fp.sum(), tn=self.tn.sum(), fn=self.fn.sum()
        )

    def label(self, j: int) -> ConfusionMatrix:
        return ConfusionMatrix(
            tp=self.tp[:, j].sum(),
            fp=self.fp[:, j].sum(),
            tn=self.tn[:, j].sum(),
            fn=self.fn[:, j].sum(),
        )

    def example(self, i: int) -> ConfusionMatrix:
        return ConfusionMatrix(
            tp=self.tp[i].sum(), fp=self.fp[i].sum(), tn=self.tn[i].sum(), fn=self.fn[i].sum()
        )

    def cell(self, i: int, j: int) -> ConfusionMatrix:
        return ConfusionMatrix(
            tp=self.tp[i, j], fp=self.fp[i, j], tn=self.tn[i, j], fn=self.fn[i, j]
        )


class MultiLabelEvaluation:
    """Evaluates multi-label rules with a heuristic.

    Args:
        heuristic (Heuristic): heuristic applied to aggregated statistics
        evaluation_strategy (Union[EvaluationStrategyType, str], optional): which
            labels are relevant, head labels only or all labels. Defaults to
            EvaluationStrategyType.RULE_DEPENDENT.
        averaging_strategy (Union[AveragingStrategyType, str], optional): how
            statistics are aggregated. Defaults to AveragingStrategyType.MICRO.
    """

    def __init__(
        self,
        heuristic: Heuristic,
        evaluation_strategy: Union[
            EvaluationStrategyType, str
        ] = EvaluationStrategyType.RULE_DEPENDENT,
        averaging_strategy: Union[AveragingStrategyType, str] = AveragingStrategyType.MICRO,
    ):
        self.logger: Logger = getLogger(self.__class__.__name__)
        self.heuristic: Heuristic = heuristic
        self.evaluation_strategy: EvaluationStrategyType = EvaluationStrategyType(
            evaluation_strategy
        )
        self.averaging_strategy: AveragingStrategyType = AveragingStrategyType(
            averaging_strategy
        )

    @property
    def characteristic(self) -> Optional[Characteristic]:
        return self.heuristic.characteristic(
            self.evaluation_strategy, self.averaging_strategy
        )

    def relevant_labels(self, instances: Instances, rule: MultiHeadRule) -> list[int]:
        if self.evaluation_strategy == EvaluationStrategyType.RULE_INDEPENDENT:
            return list(instances.label_indices)
        if rule.head is None:
            return []
        return sorted(rule.head.label_indices)

    def label_wise_stats(
        self, instances: Instances, rule: MultiHeadRule, labels: list[int]
    ) -> LabelWiseStats:
        n: int = instances.num_instances
        covered: np.ndarray = rule.covered_mask(instances.X)
        head_indices: list[int] = [] if rule.head is None else sorted(rule.head.label_indices)
        # covered examples with all head labels already predicted
        predicted: np.ndarray = covered & ~np.isnan(instances.X[:, head_indices]).any(axis=1)
        considered: np.ndarray = ~predicted

        truth: np.ndarray = (
            np.column_stack([instances.true_values(index) for index in labels])
            if labels
            else np.empty((n, 0))
        )
        predicted_values: np.ndarray = np.zeros(len(labels))
        in_head: np.ndarray = np.zeros(len(labels), dtype=bool)
        for j, index in enumerate(labels):
            condition = None if rule.head is None else rule.head.get_condition(index)
            if condition is not None:
                in_head[j] = True
                predicted_values[j] = condition.value

        correct: np.ndarray = np.where(
            in_head[np.newaxis, :], truth == predicted_values[np.newaxis, :], truth != 1.0
        )
        present: np.ndarray = truth == 1.0
        weights: np.ndarray = (instances.weights * considered)[:, np.newaxis]
        row_covered: np.ndarray = covered[:, np.newaxis]
        return LabelWiseStats(
            tp=weights * (row_covered & correct),
            fp=weights * (row_covered & ~correct),
            tn=weights * (~row_covered & ~present),
            fn=weights * (~row_covered & present),
            considered=considered,
        )

    def evaluate(self, instances: Instances, rule: MultiHeadRule) -> float:
        """Computes statistics and value of the rule on given instances and stores
        them in the rule.

        Args:
            instances (Instances): working instances, label columns hold labels
                predicted so far and true labels are kept in :code:`truth`
            rule (MultiHeadRule): rule

        Returns:
            float: rule value
        """
        labels: list[int] = self.relevant_labels(instances, rule)
        stats: LabelWiseStats = self.label_wise_stats(instances, rule, labels)
        rule.stats = stats.total()
        rule.value = self._average(instances, stats, len(labels))
        return rule.value

    def _average(
        self, instances: Instances, stats: LabelWiseStats, num_labels: int
    ) -> float:
        h: Heuristic = self.heuristic
        n: int = instances.num_instances
        if self.averaging_strategy == AveragingStrategyType.MICRO:
            return h.evaluate_confusion_matrix(stats.total())
        if self.averaging_strategy == AveragingStrategyType.LABEL_BASED:
            if num_labels == 0:
                return 0.0
            return float(
                np.mean([h.evaluate_confusion_matrix(stats.label(j)) for j in range(num_labels)])
            )
        if n == 0 or num_labels == 0:
            return 0.0
        considered: np.ndarray = np.where(stats.considered)[0]
        if self.averaging_strategy == AveragingStrategyType.EXAMPLE_BASED:
            total: float = sum(
                h.evaluate_confusion_matrix(stats.example(i)) for i in considered
            )
        else:
            total = sum(
                np.mean(
                    [
                        h.evaluate_confusion_matrix(stats.cell(i, j))
                        for j in range(num_labels)
                    ]
                )
                for i in considered
            )
        return float(total) / n

    def __repr__(self) -> str:
        return (
            f"MultiLabelEvaluation(heuristic={self.heuristic!r}, "
            f"evaluation_strategy={self.evaluation_strategy.value}, "
            f"averaging_strategy={self.averaging_strategy.value})"
        )
