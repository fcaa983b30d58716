import math

import pytest
from decision_rules import measures

from secorules.exceptions import ConfigurationError
from secorules.heuristics import AveragingStrategyType
from secorules.heuristics import Characteristic
from secorules.heuristics import DecisionRulesMeasure
from secorules.heuristics import EvaluationStrategyType
from secorules.heuristics import FMeasure
from secorules.heuristics import FoilGain
from secorules.heuristics import HeuristicType
from secorules.heuristics import Laplace
from secorules.heuristics import MEstimate
from secorules.heuristics import Precision
from secorules.heuristics import SubsetAccuracy
from secorules.heuristics import create_heuristic
from secorules.rules import SingleHeadRule
from secorules.stats import ConfusionMatrix


@pytest.mark.parametrize(
    "heuristic_type",
    [heuristic for heuristic in HeuristicType if heuristic != HeuristicType.FOIL_GAIN],
)
def test_empty_confusion_matrix_gives_finite_value(heuristic_type: HeuristicType):
    value: float = create_heuristic(heuristic_type).evaluate_confusion_matrix(
        ConfusionMatrix()
    )
    assert math.isfinite(value)


def test_laplace():
    heuristic = Laplace()
    assert heuristic.evaluate_confusion_matrix(ConfusionMatrix()) == 0.0
    assert heuristic.evaluate_confusion_matrix(
        ConfusionMatrix(tp=6, fp=4)
    ) == pytest.approx(7 / 12)
    assert heuristic.evaluate_confusion_matrix(
        ConfusionMatrix(tp=6, fp=0, tn=4)
    ) == pytest.approx(7 / 8)


def test_m_estimate():
    heuristic = MEstimate(m=2.0)
    value: float = heuristic.evaluate_confusion_matrix(
        ConfusionMatrix(tp=4, fp=1, tn=4, fn=1)
    )
    # prior of positives is 0.5
    assert value == pytest.approx((4 + 2.0 * 0.5) / (5 + 2.0))
    with pytest.raises(ConfigurationError):
        MEstimate(m=-1)


def test_f_measure():
    cm = ConfusionMatrix(tp=3, fp=1, fn=3)
    precision, recall = 0.75, 0.5
    assert FMeasure(beta=1.0).evaluate_confusion_matrix(cm) == pytest.approx(
        2 * precision * recall / (precision + recall)
    )
    assert FMeasure(beta=0.0).evaluate_confusion_matrix(cm) == pytest.approx(precision)
    assert FMeasure().evaluate_confusion_matrix(ConfusionMatrix(tn=5)) == 0.0


def test_foil_gain_requires_predecessor():
    heuristic = FoilGain()
    parent = SingleHeadRule(None)
    parent.stats = ConfusionMatrix(tp=4, fp=4)
    child: SingleHeadRule = parent.copy()
    child.predecessor = parent
    child.stats = ConfusionMatrix(tp=3, fp=0, tn=4, fn=1)

    assert heuristic.evaluate_rule(parent) == 0.0
    assert heuristic.evaluate_rule(child) == pytest.approx(
        3 * (math.log2(4 / 4) - math.log2(5 / 9))
    )
    assert not heuristic.is_value_heuristic
    with pytest.raises(ConfigurationError):
        heuristic.evaluate_confusion_matrix(child.stats)


def test_characteristics():
    dependent, independent = (
        EvaluationStrategyType.RULE_DEPENDENT,
        EvaluationStrategyType.RULE_INDEPENDENT,
    )
    assert Precision().characteristic(dependent, AveragingStrategyType.MICRO) == (
        Characteristic.DECOMPOSABLE
    )
    assert Precision().characteristic(independent, AveragingStrategyType.MACRO) == (
        Characteristic.ANTI_MONOTONIC
    )
    assert SubsetAccuracy().characteristic(
        dependent, AveragingStrategyType.EXAMPLE_BASED
    ) == Characteristic.ANTI_MONOTONIC
    assert SubsetAccuracy().characteristic(dependent, "micro") is None
    assert Laplace().characteristic(dependent, AveragingStrategyType.MICRO) is None


def test_create_heuristic():
    assert isinstance(create_heuristic("laplace"), Laplace)
    assert create_heuristic(HeuristicType.F_MEASURE, beta=2.0).beta == 2.0
    heuristic = Laplace()
    assert create_heuristic(heuristic) is heuristic
    assert isinstance(create_heuristic(measures.c2), DecisionRulesMeasure)
    with pytest.raises(ConfigurationError):
        create_heuristic("unknown")
    with pytest.raises(ConfigurationError):
        create_heuristic(HeuristicType.LAPLACE, beta=2.0)
    with pytest.raises(ConfigurationError):
        create_heuristic(42)


def test_decision_rules_measure():
    heuristic = DecisionRulesMeasure(_precision)
    assert heuristic.evaluate_confusion_matrix(
        ConfusionMatrix(tp=3, fp=1, tn=5, fn=1)
    ) == pytest.approx(0.75)
    assert str(heuristic) == "_precision"
    # zero division is evaluated as 0
    assert heuristic.evaluate_confusion_matrix(ConfusionMatrix()) == 0.0


def _precision(coverage) -> float:
    return coverage.p / (coverage.p + coverage.n)
