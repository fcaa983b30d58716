import logging
from datetime import timedelta

import numpy as np
import pandas as pd
import pytest
import utils
from sklearn import metrics
from sklearn.exceptions import NotFittedError

from secorules.classification import RipperClassifier
from secorules.classification import SeCoClassifier
from secorules.components import RuleFilterType
from secorules.components import RuleRefinerType
from secorules.components import RuleStopType
from secorules.exceptions import ConfigurationError
from secorules.exceptions import EmptyDatasetError
from secorules.heuristics import HeuristicType
from secorules.ruleset import SingleHeadRuleSet


@pytest.fixture
def rectangles_dataset() -> tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series]:
    return utils.read_dataset(problem_type="classification", dataset_name="rectangles")


@pytest.fixture
def weather_dataset() -> tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series]:
    return utils.read_dataset(problem_type="classification", dataset_name="weather")


def test_classifier(
    rectangles_dataset: tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series],
):
    model = SeCoClassifier(random_state=0)
    X_train, y_train, X_test, y_test = rectangles_dataset
    ruleset: SingleHeadRuleSet = model.fit(X_train, y_train)

    assert ruleset.default_rule is not None
    assert 0 < len(ruleset.rules) < 20
    y_pred: np.ndarray = model.predict(X_test)
    assert set(y_pred) <= set(y_train)
    assert metrics.balanced_accuracy_score(y_test, y_pred) > 0.8
    assert model.induction_times.total_training_time >= timedelta()


def test_ripper(
    rectangles_dataset: tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series],
):
    model = RipperClassifier(random_state=0)
    X_train, y_train, X_test, y_test = rectangles_dataset
    ruleset: SingleHeadRuleSet = model.fit(X_train, y_train)

    assert model.get_params()["growing_set_size"] == pytest.approx(2 / 3)
    assert len(ruleset.rules) > 0
    assert metrics.accuracy_score(y_test, model.predict(X_test)) > 0.8
    assert model.induction_times.optimization_time >= timedelta()


def test_ripper_overrides_defaults():
    model = RipperClassifier(random_state=1, optimizations=0)
    params: dict = model.get_params()
    assert params["optimizations"] == 0
    assert params["heuristic"] == HeuristicType.FOIL_GAIN
    assert params["random_state"] == 1


def test_same_seed_gives_same_ruleset(
    rectangles_dataset: tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series],
):
    X_train, y_train, _, _ = rectangles_dataset
    first: SingleHeadRuleSet = RipperClassifier(random_state=3).fit(X_train, y_train)
    second: SingleHeadRuleSet = RipperClassifier(random_state=3).fit(X_train, y_train)
    assert [str(rule) for rule in first] == [str(rule) for rule in second]


def test_weather_training_accuracy(
    weather_dataset: tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series],
):
    model = SeCoClassifier(heuristic=HeuristicType.LAPLACE, random_state=0)
    X_train, y_train, _, _ = weather_dataset
    model.fit(X_train, y_train)
    assert metrics.accuracy_score(y_train, model.predict(X_train)) > 0.85


@pytest.mark.parametrize(
    "params",
    [
        {"ordered": False},
        {"rule_filter": RuleFilterType.BEAM_WIDTH, "beam_width": 3},
        {"rule_filter": "multi", "beam_width": 2},
        {"rule_refiner": RuleRefinerType.BIDIRECTIONAL},
        {"rule_stop": RuleStopType.DEFAULT_RULE_AND_COVERAGE},
        {"heuristic": "precision", "weight_model": "per_iteration"},
        {"stopping_criterion": "likelihood_ratio", "nominal_compare_mode": "both"},
    ],
)
def test_configurations(
    rectangles_dataset: tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series],
    params: dict,
):
    model = SeCoClassifier(random_state=0, **params)
    X_train, y_train, X_test, y_test = rectangles_dataset
    model.fit(X_train, y_train)
    assert metrics.accuracy_score(y_test, model.predict(X_test)) > 0.6


def test_decision_rules_measure_as_heuristic(
    weather_dataset: tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series],
):
    from decision_rules import measures

    model = SeCoClassifier(heuristic=measures.c2, random_state=0)
    X_train, y_train, _, _ = weather_dataset
    ruleset: SingleHeadRuleSet = model.fit(X_train, y_train)
    assert ruleset.default_rule is not None


def test_predict_before_fit(
    weather_dataset: tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series],
):
    _, _, X_test, _ = weather_dataset
    with pytest.raises(NotFittedError):
        SeCoClassifier().predict(X_test)


@pytest.mark.parametrize(
    "params",
    [
        {"growing_set_size": 0.0},
        {"growing_set_size": 1.5},
        {"uncovered_fraction": -0.1},
        {"optimizations": -1},
        {"heuristic": "no_such_heuristic"},
        {"rule_filter": "no_such_filter"},
    ],
)
def test_invalid_params(
    weather_dataset: tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series],
    params: dict,
):
    X_train, y_train, _, _ = weather_dataset
    with pytest.raises(ConfigurationError):
        SeCoClassifier(**params).fit(X_train, y_train)


def test_min_no_is_clamped(
    weather_dataset: tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series],
    caplog: pytest.LogCaptureFixture,
):
    X_train, y_train, _, _ = weather_dataset
    with caplog.at_level(logging.WARNING):
        SeCoClassifier(min_no=0).fit(X_train, y_train)
    assert "min_no" in caplog.text


def test_missing_labels_are_dropped(
    weather_dataset: tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series],
    caplog: pytest.LogCaptureFixture,
):
    X_train, y_train, _, _ = weather_dataset
    y_train = y_train.astype(object)
    y_train.iloc[0] = None
    model = SeCoClassifier(random_state=0)
    with caplog.at_level(logging.WARNING):
        model.fit(X_train, y_train)
    assert "Dropping 1 examples" in caplog.text
    assert len(model.predict(X_train)) == len(X_train)


@pytest.mark.parametrize(
    "params",
    [
        {"heuristic": "no_such_heuristic"},
        {"selection_heuristic": "no_such_heuristic"},
        {"weight_model": "no_such_weight_model"},
        {"rule_stop": "no_such_rule_stop"},
        {"nominal_compare_mode": "no_such_mode"},
    ],
)
def test_invalid_params_rejected_before_reading_data(
    weather_dataset: tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series],
    caplog: pytest.LogCaptureFixture,
    params: dict,
):
    X_train, y_train, _, _ = weather_dataset
    y_train = pd.Series([None] * len(y_train), name=y_train.name, dtype=object)
    model = SeCoClassifier(**params)
    with caplog.at_level(logging.WARNING):
        with pytest.raises(ConfigurationError):
            model.fit(X_train, y_train)
    assert "Dropping" not in caplog.text
    assert model.ruleset is None


def test_all_labels_missing(
    weather_dataset: tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series],
):
    X_train, y_train, _, _ = weather_dataset
    y_train = pd.Series([None] * len(y_train), name=y_train.name, dtype=object)
    with pytest.raises(EmptyDatasetError):
        SeCoClassifier(random_state=0).fit(X_train, y_train)


def test_set_params(
    weather_dataset: tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.Series],
):
    X_train, y_train, _, _ = weather_dataset
    model = SeCoClassifier()
    model.set_params(heuristic=HeuristicType.ACCURACY, random_state=5)
    assert model.get_params()["heuristic"] == HeuristicType.ACCURACY
    ruleset: SingleHeadRuleSet = model.fit(X_train, y_train)
    assert str(model._inducer.heuristic) == "Accuracy"
    assert ruleset.default_rule is not None
