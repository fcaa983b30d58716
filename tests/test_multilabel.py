import logging

import numpy as np
import pandas as pd
import pytest
import utils
from sklearn import metrics

from secorules.conditions import NominalCondition
from secorules.conditions import NumericCondition
from secorules.exceptions import ConfigurationError
from secorules.exceptions import EmptyDatasetError
from secorules.heuristics import AveragingStrategyType
from secorules.heuristics import EvaluationStrategyType
from secorules.heuristics import FMeasure
from secorules.heuristics import Precision
from secorules.instances import Instances
from secorules.multilabel import MulticlassCovering
from secorules.multilabel import MultiLabelEvaluation
from secorules.multilabel import MultiLabelSeCoClassifier
from secorules.multilabel.covering import Closure
from secorules.multilabel.covering import FixedPriorityQueue
from secorules.rules import Head
from secorules.rules import MultiHeadRule
from secorules.ruleset import MultiHeadRuleSet
from secorules.stats import ConfusionMatrix

KIND, L1, L2 = range(3)
A, B = 0.0, 1.0


@pytest.fixture
def toy_dataset() -> tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    return utils.read_dataset(problem_type="multilabel", dataset_name="toy")


def _instances(kinds: list[str], l1: list[int], l2: list[int]) -> Instances:
    X = pd.DataFrame({"kind": kinds})
    Y = pd.DataFrame({"l1": l1, "l2": l2})
    return Instances.from_dataframe(X, Y).mask_labels()


@pytest.fixture
def mixed() -> Instances:
    return _instances(["a", "a", "b", "b"], [1, 1, 0, 0], [0, 1, 1, 0])


@pytest.fixture
def correlated() -> Instances:
    return _instances(["a", "a", "b", "b"], [1, 1, 0, 0], [1, 1, 0, 1])


def _rule(instances: Instances, *head: tuple[int, float]) -> MultiHeadRule:
    rule = MultiHeadRule(
        Precision(),
        Head(
            [NominalCondition(instances.attribute(index), value) for index, value in head]
        ),
        rng=np.random.default_rng(0),
    )
    rule.add_condition(NominalCondition(instances.attribute(KIND), A))
    return rule


def test_fixed_priority_queue():
    queue = FixedPriorityQueue(2)
    assert queue.offer(1) and queue.offer(2)
    assert not queue.offer(0)
    assert queue.offer(3)
    assert sorted(queue.items) == [2, 3]
    # equal to the minimum does not replace it
    assert not queue.offer(2)
    assert queue.best() == 3
    assert len(queue) == 2
    assert FixedPriorityQueue(1).best() is None


def test_resolve_beam_width():
    assert MulticlassCovering.resolve_beam_width(2, 5) == 2
    assert MulticlassCovering.resolve_beam_width(0.5, 5) == 3
    assert MulticlassCovering.resolve_beam_width(0.0, 5) == 1
    for beam_width in [0, 6, 1.5, -0.1, True, "1"]:
        with pytest.raises(ConfigurationError):
            MulticlassCovering.resolve_beam_width(beam_width, 5)


def test_labels_are_masked(mixed: Instances):
    assert mixed.label_indices == [L1, L2]
    assert mixed.feature_indices == [KIND]
    assert np.isnan(mixed.X[:, [L1, L2]]).all()
    assert list(mixed.true_values(L2)) == [0.0, 1.0, 1.0, 0.0]


@pytest.mark.parametrize(
    "evaluation_strategy, averaging_strategy, expected",
    [
        ("rule-dependent", "micro", 1.0),
        ("rule-independent", "micro", 0.75),
        ("rule-independent", "label-based", 0.75),
        ("rule-independent", "example-based", 0.375),
        ("rule-independent", "macro", 0.375),
    ],
)
def test_evaluation(
    mixed: Instances, evaluation_strategy: str, averaging_strategy: str, expected: float
):
    evaluation = MultiLabelEvaluation(Precision(), evaluation_strategy, averaging_strategy)
    rule: MultiHeadRule = _rule(mixed, (L1, 1.0))
    assert evaluation.evaluate(mixed, rule) == pytest.approx(expected)
    assert rule.value == pytest.approx(expected)


def test_evaluation_statistics(mixed: Instances):
    rule: MultiHeadRule = _rule(mixed, (L1, 1.0))
    MultiLabelEvaluation(Precision(), "rule-dependent").evaluate(mixed, rule)
    assert rule.stats == ConfusionMatrix(tp=2, fp=0, tn=2, fn=0)
    MultiLabelEvaluation(Precision(), "rule-independent").evaluate(mixed, rule)
    assert rule.stats == ConfusionMatrix(tp=3, fp=1, tn=3, fn=1)


def test_evaluation_skips_predicted_examples(mixed: Instances):
    mixed.X[0, L1] = 1.0
    rule: MultiHeadRule = _rule(mixed, (L1, 1.0))
    MultiLabelEvaluation(Precision()).evaluate(mixed, rule)
    assert rule.stats == ConfusionMatrix(tp=1, fp=0, tn=2, fn=0)


def test_empty_head_evaluates_to_zero(mixed: Instances):
    rule = MultiHeadRule(Precision())
    evaluation = MultiLabelEvaluation(
        Precision(), EvaluationStrategyType.RULE_DEPENDENT, AveragingStrategyType.MACRO
    )
    assert evaluation.evaluate(mixed, rule) == 0.0


def test_decomposite_merges_tied_labels(correlated: Instances):
    covering = MulticlassCovering(
        MultiLabelEvaluation(Precision()), rng=np.random.default_rng(0)
    )
    rule = MultiHeadRule(Precision(), rng=np.random.default_rng(0))
    rule.add_condition(NominalCondition(correlated.attribute(KIND), A))
    found: Closure = covering.find_best_head(correlated, Closure.of_rule(rule))

    assert found.rule.head.label_indices == frozenset({L1, L2})
    assert found.rule.value == pytest.approx(1.0)
    assert found.rule.stats == ConfusionMatrix(tp=4, fp=0, tn=3, fn=1)


def test_pruned_search_extends_head(correlated: Instances):
    evaluation = MultiLabelEvaluation(Precision(), "rule-independent", "micro")
    covering = MulticlassCovering(evaluation, rng=np.random.default_rng(0))
    rule = MultiHeadRule(Precision(), rng=np.random.default_rng(0))
    rule.add_condition(NominalCondition(correlated.attribute(KIND), A))
    found: Closure = covering.find_best_head(correlated, Closure.of_rule(rule))

    assert found.rule.head == Head(
        [
            NominalCondition(correlated.attribute(L1), 1.0),
            NominalCondition(correlated.attribute(L2), 1.0),
        ]
    )
    assert found.rule.value == pytest.approx(1.0)


def test_is_head_pruned(correlated: Instances):
    l1 = NominalCondition(correlated.attribute(L1), 1.0)
    l2 = NominalCondition(correlated.attribute(L2), 1.0)
    both = Head([l1, l2])
    assert MulticlassCovering.is_head_pruned([Head([l1])], set(), both)
    assert MulticlassCovering.is_head_pruned([], {frozenset({L1, L2})}, both)
    assert not MulticlassCovering.is_head_pruned([Head([l2])], set(), Head([l1]))


def test_closure_contains_condition(correlated: Instances):
    kind = NominalCondition(correlated.attribute(KIND), A)
    rule = MultiHeadRule(Precision())
    rule.add_condition(kind)
    closure: Closure = Closure.of_rule(rule)
    # a nominal attribute is used at most once
    assert closure.contains_condition(NominalCondition(correlated.attribute(KIND), B))
    assert not closure.contains_condition(
        NominalCondition(correlated.attribute(L1), 1.0)
    )


def test_numeric_conditions():
    X = pd.DataFrame({"x": [4.0, 1.0, 3.0, 2.0, np.nan]})
    Y = pd.DataFrame({"l1": [1, 0, 1, 0, 1], "l2": [1, 0, 1, 1, 0]})
    instances: Instances = Instances.from_dataframe(X, Y).mask_labels()
    conditions = MulticlassCovering.numeric_conditions(instances, instances.attribute(0))
    assert conditions == [
        NumericCondition(instances.attribute(0), 1.5, False),
        NumericCondition(instances.attribute(0), 1.5, True),
        NumericCondition(instances.attribute(0), 2.5, False),
        NumericCondition(instances.attribute(0), 2.5, True),
    ]


def test_candidate_attributes(mixed: Instances):
    assert MulticlassCovering.candidate_attributes(mixed, {L2}) == [KIND, L2]


def test_find_best_global_rule(correlated: Instances):
    covering = MulticlassCovering(
        MultiLabelEvaluation(FMeasure(0.5)), rng=np.random.default_rng(0)
    )
    rule: MultiHeadRule = covering.find_best_global_rule(correlated, set(), 1)
    assert rule is not None
    assert rule.value == pytest.approx(1.0)
    assert rule.stats.tp > 0


def test_find_best_rule_bottom_up(correlated: Instances):
    covering = MulticlassCovering(
        MultiLabelEvaluation(FMeasure(0.5)), rng=np.random.default_rng(0)
    )
    status: np.ndarray = np.array([True, False, False, False])
    rule: MultiHeadRule = covering.find_best_rule_bottom_up(
        correlated, set(), 1, instance_status=status, numeric_generalization="nearest"
    )
    assert rule is not None
    assert rule.covered_mask(correlated.X)[0]


def test_predict_with_skip_rule(mixed: Instances):
    first: MultiHeadRule = _rule(mixed, (L1, 1.0))
    second = MultiHeadRule(Precision(), Head([NominalCondition(mixed.attribute(L2), 1.0)]))
    skip: MultiHeadRule = MultiHeadRule.skip_rule(ConfusionMatrix(tp=2))
    ruleset = MultiHeadRuleSet([first, skip, second], label_indices=[L1, L2])

    prediction: np.ndarray = ruleset.predict(mixed)
    # prediction of kind "a" stops at the skip rule
    assert prediction.tolist() == [[1, 0], [1, 0], [0, 1], [0, 1]]
    union = MultiHeadRuleSet([first, second], label_indices=[L1, L2])
    assert union.predict(mixed).tolist() == [[1, 1], [1, 1], [0, 1], [0, 1]]
    decision_list = MultiHeadRuleSet(
        [first, second], label_indices=[L1, L2], decision_list=True
    )
    assert decision_list.predict(mixed).tolist() == [[1, 0], [1, 0], [0, 1], [0, 1]]


def test_classifier(
    toy_dataset: tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame, pd.DataFrame],
):
    model = MultiLabelSeCoClassifier(random_state=0)
    X_train, y_train, X_test, y_test = toy_dataset
    ruleset: MultiHeadRuleSet = model.fit(X_train, y_train)

    assert len(ruleset.rules) > 0
    assert model.labels_ == ["label_l1", "label_l2", "label_l3"]
    y_pred: np.ndarray = model.predict(X_test)
    assert y_pred.shape == y_test.shape
    assert set(np.unique(y_pred)) <= {0, 1}
    assert metrics.hamming_loss(y_test.to_numpy(), y_pred) < 0.25


@pytest.mark.parametrize(
    "params",
    [
        {"use_bottom_up": True, "numeric_generalization": "nearest"},
        {"beam_width": 0.5, "decision_list": True},
        {"skip_threshold": -1, "cover_all_labels": True},
        {"readd_all_covered": True, "predict_zero": False},
        {"evaluation_strategy": "rule-independent", "averaging_strategy": "label-based"},
    ],
)
def test_configurations(
    toy_dataset: tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame, pd.DataFrame],
    params: dict,
):
    model = MultiLabelSeCoClassifier(random_state=0, **params)
    X_train, y_train, X_test, y_test = toy_dataset
    model.fit(X_train, y_train)
    y_pred: np.ndarray = model.predict(X_test)
    assert y_pred.shape == y_test.shape


@pytest.mark.parametrize(
    "params",
    [
        {"beta": -1, "heuristic": "laplace"},
        {"beam_width": 0},
        {"beam_width": 100},
        {"beam_width": 1.5},
        {"n_step": 0},
        {"numeric_generalization": "farthest"},
        {"averaging_strategy": "median"},
    ],
)
def test_invalid_params(
    toy_dataset: tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame, pd.DataFrame],
    params: dict,
):
    X_train, y_train, _, _ = toy_dataset
    with pytest.raises(ConfigurationError):
        MultiLabelSeCoClassifier(**params).fit(X_train, y_train)


@pytest.mark.parametrize(
    "params",
    [
        {"beta": -1, "heuristic": "laplace"},
        {"beta": -1, "heuristic": "no_such_heuristic"},
    ],
)
def test_invalid_heuristic_rejected_before_reading_data(
    toy_dataset: tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame, pd.DataFrame],
    caplog: pytest.LogCaptureFixture,
    params: dict,
):
    X_train, y_train, _, _ = toy_dataset
    y_train = y_train.astype(float)
    y_train.iloc[0, 0] = np.nan
    with caplog.at_level(logging.WARNING):
        with pytest.raises(ConfigurationError):
            MultiLabelSeCoClassifier(**params).fit(X_train, y_train)
    assert "Dropping" not in caplog.text


def test_all_labels_missing(
    toy_dataset: tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame, pd.DataFrame],
):
    X_train, y_train, _, _ = toy_dataset
    y_train = pd.DataFrame(np.nan, index=y_train.index, columns=y_train.columns)
    with pytest.raises(EmptyDatasetError):
        MultiLabelSeCoClassifier(random_state=0).fit(X_train, y_train)
