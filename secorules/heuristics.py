"""
Rule evaluation heuristics.

Each heuristic maps a confusion matrix of a rule into a real value where higher
values denote better rules. Heuristics never return NaN, all zero denominators
evaluate to 0.
"""
from __future__ import annotations

import math
from abc import ABC
from abc import abstractmethod
from enum import Enum
from typing import TYPE_CHECKING
from typing import Any
from typing import Callable
from typing import Optional
from typing import TypeAlias
from typing import Union

from decision_rules import measures
from decision_rules.core.coverage import Coverage

from secorules.exceptions import ConfigurationError
from secorules.stats import ConfusionMatrix

if TYPE_CHECKING:
    from secorules.rules import Rule

QualityMeasure: TypeAlias = Callable[[Coverage], float]


class Characteristic(Enum):
    DECOMPOSABLE = "decomposable"
    ANTI_MONOTONIC = "anti-monotonic"


class EvaluationStrategyType(str, Enum):
    """Which labels are taken into account when evaluating multi-label rules."""

    RULE_DEPENDENT = "rule-dependent"
    RULE_INDEPENDENT = "rule-independent"


class AveragingStrategyType(str, Enum):
    """How label-wise and example-wise statistics of multi-label rules are
    aggregated.
    """

    MICRO = "micro"
    LABEL_BASED = "label-based"
    EXAMPLE_BASED = "example-based"
    MACRO = "macro"


def _safe_div(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


class Heuristic(ABC):
    """Base class of all rule evaluation heuristics."""

    is_value_heuristic: bool = True

    @abstractmethod
    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        pass

    def evaluate_rule(self, rule: Rule) -> float:
        return self.evaluate_confusion_matrix(rule.stats)

    def characteristic(
        self,
        evaluation_strategy: EvaluationStrategyType,
        averaging_strategy: AveragingStrategyType,
    ) -> Optional[Characteristic]:
        """Returns the property of the heuristic in given multi-label evaluation
        setting which allows searching for multi-label heads efficiently. None
        means that the heuristic cannot be used to learn multi-label heads.
        """
        return None

    def __str__(self) -> str:
        return self.__class__.__name__

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class _RuleDependentDecomposable(Heuristic):
    # decomposable when only head labels are evaluated, anti-monotonic otherwise

    def characteristic(
        self,
        evaluation_strategy: EvaluationStrategyType,
        averaging_strategy: AveragingStrategyType,
    ) -> Optional[Characteristic]:
        if EvaluationStrategyType(evaluation_strategy) == EvaluationStrategyType.RULE_DEPENDENT:
            return Characteristic.DECOMPOSABLE
        return Characteristic.ANTI_MONOTONIC


class Accuracy(Heuristic):

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        return _safe_div(confusion_matrix.correct, confusion_matrix.total)


class AqrDifference(Heuristic):

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        if confusion_matrix.tp < 1:
            return -confusion_matrix.total
        return confusion_matrix.tp - confusion_matrix.fp


class Correlation(Heuristic):

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        p, n = confusion_matrix.tp, confusion_matrix.fp
        P, N = confusion_matrix.positives, confusion_matrix.negatives
        denominator: float = P * N * (p + n) * confusion_matrix.predicted_negative
        if abs(denominator) < 0.0001:
            return 0.0
        return (p * N - n * P) / math.sqrt(denominator)


class Difference(Heuristic):

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        return confusion_matrix.tp - confusion_matrix.fp


class FalsePositiveRate(Heuristic):

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        return _safe_div(confusion_matrix.fp, confusion_matrix.negatives)


class Precision(_RuleDependentDecomposable):

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        return _safe_div(confusion_matrix.tp, confusion_matrix.predicted_positive)


class Recall(_RuleDependentDecomposable):
    """True positive rate."""

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        return _safe_div(confusion_matrix.tp, confusion_matrix.positives)


class FMeasure(_RuleDependentDecomposable):
    """Weighted harmonic mean of precision and recall.

    Args:
        beta (float, optional): weight of recall. Defaults to 0.5.
    """

    def __init__(self, beta: float = 0.5):
        if beta < 0:
            raise ConfigurationError("FMeasure: beta must not be negative")
        self.beta: float = beta

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        precision: float = _safe_div(
            confusion_matrix.tp, confusion_matrix.predicted_positive
        )
        recall: float = _safe_div(confusion_matrix.tp, confusion_matrix.positives)
        if precision + recall == 0:
            return 0.0
        beta_square: float = self.beta**2
        return _safe_div(
            (beta_square + 1) * recall * precision, beta_square * precision + recall
        )

    def __repr__(self) -> str:
        return f"FMeasure(beta={self.beta})"


class FoilGain(Heuristic):
    """Information gain of a rule with respect to its predecessor. It is a gain
    heuristic, values of rules on different search depths are not comparable.
    """

    is_value_heuristic: bool = False

    @staticmethod
    def _log_precision(confusion_matrix: ConfusionMatrix) -> float:
        return math.log2(
            (confusion_matrix.tp + 1) / (confusion_matrix.predicted_positive + 1)
        )

    def evaluate_rule(self, rule: Rule) -> float:
        predecessor = rule.predecessor
        if predecessor is None:
            return 0.0
        return rule.stats.tp * (
            self._log_precision(rule.stats) - self._log_precision(predecessor.stats)
        )

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        raise ConfigurationError(
            "FoilGain can only evaluate rules, it requires the predecessor of a rule"
        )


class GeneralizedM(Heuristic):
    """Generalized m-estimate. With :code:`m` equal to NaN it falls back to linear
    cost with cost :code:`c`.

    Args:
        m (float, optional): Defaults to 2.0.
        c (float, optional): Defaults to 0.5.
    """

    def __init__(self, m: float = 2.0, c: float = 0.5):
        if c < 0 or c > 1:
            raise ConfigurationError("GeneralizedM: c must be in [0, 1]")
        if m < 0:
            raise ConfigurationError("GeneralizedM: m must not be negative")
        self.m: float = m
        self.c: float = c

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        if math.isnan(self.m):
            return self.c * confusion_matrix.tp - (1 - self.c) * confusion_matrix.fp
        return _safe_div(
            confusion_matrix.tp + self.m * self.c,
            confusion_matrix.predicted_positive + self.m,
        )

    def __repr__(self) -> str:
        return f"GeneralizedM(m={self.m}, c={self.c})"


class HammingAccuracy(_RuleDependentDecomposable):

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        return _safe_div(confusion_matrix.correct, confusion_matrix.total)


class HammingLoss(Heuristic):
    """Complement of the Hamming loss, so that higher is better."""

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        if confusion_matrix.total == 0:
            return 0.0
        return 1 - confusion_matrix.incorrect / confusion_matrix.total


class KloesgenMeasure(Heuristic):

    def __init__(self, omega: float = 0.4323):
        if omega == 0:
            raise ConfigurationError("KloesgenMeasure: omega must not be 0")
        self.omega: float = omega

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        total: float = confusion_matrix.total
        if total == 0:
            return 0.0
        coverage: float = confusion_matrix.predicted_positive / total
        gain: float = (
            _safe_div(confusion_matrix.tp, confusion_matrix.predicted_positive)
            - confusion_matrix.positives / total
        )
        if coverage == 0:
            return 0.0
        return coverage**self.omega * gain

    def __repr__(self) -> str:
        return f"KloesgenMeasure(omega={self.omega})"


class Laplace(Heuristic):
    """Laplace estimate of precision, 0 for rules covering no examples."""

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        if confusion_matrix.predicted_positive == 0:
            return 0.0
        return (confusion_matrix.tp + 1) / (confusion_matrix.predicted_positive + 2)


class LinearCost(Heuristic):

    def __init__(self, cost: float = 0.437):
        if cost < 0 or cost > 1:
            raise ConfigurationError("LinearCost: cost must be in [0, 1]")
        self.cost: float = cost

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        return self.cost * confusion_matrix.tp - (1 - self.cost) * confusion_matrix.fp

    def __repr__(self) -> str:
        return f"LinearCost(cost={self.cost})"


class LinearRegression(Heuristic):
    """Precision estimate of a linear model over coverage statistics with fixed
    coefficients.
    """

    COEFFICIENTS: dict[str, float] = {
        "log_P": 0.0709,
        "log_N": -0.0255,
        "apriori": -0.0521,
        "log_p": 0.1139,
        "log_n": -0.0588,
        "tpr": 0.1379,
        "fpr": -0.3673,
        "precision": -0.1032,
        "constant": 0.427,
    }

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        p, n = confusion_matrix.tp, confusion_matrix.fp
        P, N = confusion_matrix.positives, confusion_matrix.negatives
        features: dict[str, float] = {
            "log_P": math.log1p(P),
            "log_N": math.log1p(N),
            "apriori": _safe_div(P, P + N),
            "log_p": math.log1p(p),
            "log_n": math.log1p(n),
            "tpr": _safe_div(p, P),
            "fpr": _safe_div(n, N),
            "precision": _safe_div(p, p + n),
            "constant": 1.0,
        }
        return sum(
            coefficient * features[name]
            for name, coefficient in self.COEFFICIENTS.items()
        )


class MEstimate(Heuristic):

    def __init__(self, m: float = 22.466):
        if m < 0:
            raise ConfigurationError("MEstimate: m must not be negative")
        self.m: float = m

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        prior: float = _safe_div(confusion_matrix.positives, confusion_matrix.total)
        return _safe_div(
            confusion_matrix.tp + self.m * prior,
            confusion_matrix.predicted_positive + self.m,
        )

    def __repr__(self) -> str:
        return f"MEstimate(m={self.m})"


class MaxPosCover(Heuristic):

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        return confusion_matrix.tp


class RateDifference(Heuristic):

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        return _safe_div(confusion_matrix.tp, confusion_matrix.positives) - _safe_div(
            confusion_matrix.fp, confusion_matrix.negatives
        )


class RelativeLinearCost(Heuristic):

    def __init__(self, cost: float = 0.342):
        if cost < 0 or cost > 1:
            raise ConfigurationError("RelativeLinearCost: cost must be in [0, 1]")
        self.cost: float = cost

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        return self.cost * _safe_div(
            confusion_matrix.tp, confusion_matrix.positives
        ) - (1 - self.cost) * _safe_div(confusion_matrix.fp, confusion_matrix.negatives)

    def __repr__(self) -> str:
        return f"RelativeLinearCost(cost={self.cost})"


class SubsetAccuracy(Heuristic):

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        if confusion_matrix.correct > 0 and confusion_matrix.incorrect == 0:
            return 1.0
        return 0.0

    def characteristic(
        self,
        evaluation_strategy: EvaluationStrategyType,
        averaging_strategy: AveragingStrategyType,
    ) -> Optional[Characteristic]:
        if (
            EvaluationStrategyType(evaluation_strategy)
            == EvaluationStrategyType.RULE_DEPENDENT
            and AveragingStrategyType(averaging_strategy)
            == AveragingStrategyType.EXAMPLE_BASED
        ):
            return Characteristic.ANTI_MONOTONIC
        return None


class WRAcc(Heuristic):
    """Weighted relative accuracy."""

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        total: float = confusion_matrix.total
        if total == 0:
            return 0.0
        return confusion_matrix.tp / total - (
            confusion_matrix.predicted_positive / total
        ) * (confusion_matrix.positives / total)


class DecisionRulesMeasure(Heuristic):
    """Adapter evaluating rules with any quality measure from `decision_rules`
    package, e.g. :code:`decision_rules.measures.c2`.

    Args:
        measure (QualityMeasure, optional): quality measure taking coverage.
            Defaults to measures.c2.
    """

    def __init__(self, measure: QualityMeasure = measures.c2):
        self.measure: QualityMeasure = measure

    def evaluate_confusion_matrix(self, confusion_matrix: ConfusionMatrix) -> float:
        try:
            value = float(self.measure(confusion_matrix.to_coverage()))
        except ZeroDivisionError:
            return 0.0
        if not math.isfinite(value):
            return 0.0
        return value

    def __str__(self) -> str:
        return getattr(self.measure, "__name__", str(self.measure))

    def __repr__(self) -> str:
        return f"DecisionRulesMeasure({str(self)})"


class HeuristicType(str, Enum):
    ACCURACY = "accuracy"
    AQR_DIFFERENCE = "aqr_difference"
    CORRELATION = "correlation"
    DIFFERENCE = "difference"
    F_MEASURE = "f_measure"
    FALSE_POSITIVE_RATE = "false_positive_rate"
    FOIL_GAIN = "foil_gain"
    GENERALIZED_M = "generalized_m"
    HAMMING_ACCURACY = "hamming_accuracy"
    HAMMING_LOSS = "hamming_loss"
    KLOESGEN = "kloesgen"
    LAPLACE = "laplace"
    LINEAR_COST = "linear_cost"
    LINEAR_REGRESSION = "linear_regression"
    M_ESTIMATE = "m_estimate"
    MAX_POS_COVER = "max_pos_cover"
    PRECISION = "precision"
    RATE_DIFFERENCE = "rate_difference"
    RECALL = "recall"
    RELATIVE_LINEAR_COST = "relative_linear_cost"
    SUBSET_ACCURACY = "subset_accuracy"
    WRACC = "wracc"


_HEURISTICS: dict[HeuristicType, type[Heuristic]] = {
    HeuristicType.ACCURACY: Accuracy,
    HeuristicType.AQR_DIFFERENCE: AqrDifference,
    HeuristicType.CORRELATION: Correlation,
    HeuristicType.DIFFERENCE: Difference,
    HeuristicType.F_MEASURE: FMeasure,
    HeuristicType.FALSE_POSITIVE_RATE: FalsePositiveRate,
    HeuristicType.FOIL_GAIN: FoilGain,
    HeuristicType.GENERALIZED_M: GeneralizedM,
    HeuristicType.HAMMING_ACCURACY: HammingAccuracy,
    HeuristicType.HAMMING_LOSS: HammingLoss,
    HeuristicType.KLOESGEN: KloesgenMeasure,
    HeuristicType.LAPLACE: Laplace,
    HeuristicType.LINEAR_COST: LinearCost,
    HeuristicType.LINEAR_REGRESSION: LinearRegression,
    HeuristicType.M_ESTIMATE: MEstimate,
    HeuristicType.MAX_POS_COVER: MaxPosCover,
    HeuristicType.PRECISION: Precision,
    HeuristicType.RATE_DIFFERENCE: RateDifference,
    HeuristicType.RECALL: Recall,
    HeuristicType.RELATIVE_LINEAR_COST: RelativeLinearCost,
    HeuristicType.SUBSET_ACCURACY: SubsetAccuracy,
    HeuristicType.WRACC: WRAcc,
}


def create_heuristic(
    heuristic: Union[Heuristic, HeuristicType, str, QualityMeasure], **kwargs: Any
) -> Heuristic:
    """Builds heuristic from its configuration value.

    Args:
        heuristic (Union[Heuristic, HeuristicType, str, QualityMeasure]): heuristic
            instance, its type (or type name) or a `decision_rules` quality measure
        **kwargs: parameters of the heuristic, e.g. :code:`beta` for FMeasure

    Raises:
        ConfigurationError: when heuristic is unknown or parameters are invalid

    Returns:
        Heuristic: heuristic instance
    """
    if isinstance(heuristic, Heuristic):
        return heuristic
    if isinstance(heuristic, (HeuristicType, str)):
        try:
            heuristic_type = HeuristicType(heuristic)
        except ValueError as error:
            raise ConfigurationError(f"Unknown heuristic: {heuristic}") from error
        try:
            return _HEURISTICS[heuristic_type](**kwargs)
        except TypeError as error:
            raise ConfigurationError(
                f"Invalid parameters for heuristic {heuristic_type.value}: {kwargs}"
            ) from error
    if callable(heuristic):
        return DecisionRulesMeasure(heuristic)
    raise ConfigurationError(f"Unknown heuristic: {heuristic}")
