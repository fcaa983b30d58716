import logging

import pandas as pd
import pytest
from decision_rules.problem import ProblemTypes

from secorules._params import DEFAULT_MULTILABEL_PARAMS_VALUES
from secorules._params import DEFAULT_PARAMS_VALUES
from secorules._params import RIPPER_PARAMS_VALUES
from secorules._params import adjust_params_on_dataset
from secorules._params import create_multilabel_heuristic
from secorules._params import validate_multilabel_params
from secorules._params import validate_params
from secorules.exceptions import ConfigurationError
from secorules.exceptions import EmptyDatasetError
from secorules.heuristics import FMeasure
from secorules.heuristics import Precision


def test_validate_params_returns_copy():
    params = validate_params(DEFAULT_PARAMS_VALUES)
    assert params == DEFAULT_PARAMS_VALUES
    assert params is not DEFAULT_PARAMS_VALUES


def test_validate_params_fixes_min_no(caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.WARNING):
        params = validate_params(dict(DEFAULT_PARAMS_VALUES, min_no=0))
    assert params["min_no"] == 1
    assert "min_no" in caplog.text


@pytest.mark.parametrize(
    "name, value",
    [
        ("growing_set_size", 0.0),
        ("growing_set_size", 1.5),
        ("uncovered_fraction", -0.1),
        ("optimizations", -1),
    ],
)
def test_validate_params_errors(name: str, value):
    with pytest.raises(ConfigurationError):
        validate_params(dict(DEFAULT_PARAMS_VALUES, **{name: value}))


def test_ripper_params():
    assert RIPPER_PARAMS_VALUES["min_no"] == 2
    assert RIPPER_PARAMS_VALUES["growing_set_size"] == pytest.approx(2 / 3)
    assert RIPPER_PARAMS_VALUES["beam_width"] == DEFAULT_PARAMS_VALUES["beam_width"]


@pytest.mark.parametrize("beam_width", [1, 3, 0.0, 0.5, 1.0])
def test_validate_multilabel_beam_width(beam_width):
    params = validate_multilabel_params(
        dict(DEFAULT_MULTILABEL_PARAMS_VALUES, beam_width=beam_width)
    )
    assert params["beam_width"] == beam_width


@pytest.mark.parametrize(
    "name, value",
    [
        ("beam_width", 0),
        ("beam_width", -0.5),
        ("beam_width", 2.5),
        ("beam_width", True),
        ("n_step", 0),
        ("numeric_generalization", "widest"),
        ("evaluation_strategy", "per-label"),
        ("averaging_strategy", "weighted"),
        ("uncovered_fraction", 2.0),
    ],
)
def test_validate_multilabel_params_errors(name: str, value):
    with pytest.raises(ConfigurationError):
        validate_multilabel_params(dict(DEFAULT_MULTILABEL_PARAMS_VALUES, **{name: value}))


def test_adjust_min_no_to_minority_class():
    y = pd.Series(["a"] * 5 + ["b"] * 2)
    params = adjust_params_on_dataset(
        dict(DEFAULT_PARAMS_VALUES, min_no=3), y, ProblemTypes.CLASSIFICATION
    )
    assert params["min_no"] == 2
    params = adjust_params_on_dataset(
        dict(DEFAULT_PARAMS_VALUES, min_no=1), y, ProblemTypes.CLASSIFICATION
    )
    assert params["min_no"] == 1


def test_adjust_multilabel_params_unchanged():
    y = pd.DataFrame({"l1": [0, 1], "l2": [1, 1]})
    params = adjust_params_on_dataset(
        DEFAULT_MULTILABEL_PARAMS_VALUES, y, ProblemTypes.CLASSIFICATION
    )
    assert params == DEFAULT_MULTILABEL_PARAMS_VALUES


@pytest.mark.parametrize(
    "name, value",
    [
        ("heuristic", "no_such_heuristic"),
        ("selection_heuristic", "no_such_heuristic"),
        ("candidate_selector", "no_such_selector"),
        ("rule_initializer", "no_such_initializer"),
        ("post_processor", "no_such_post_processor"),
        ("stopping_criterion", "no_such_criterion"),
    ],
)
def test_validate_params_rejects_unknown_names(name: str, value: str):
    with pytest.raises(ConfigurationError):
        validate_params(dict(DEFAULT_PARAMS_VALUES, **{name: value}))


def test_adjust_min_no_ignores_missing_labels():
    y = pd.Series(["a"] * 5 + ["b"] * 3 + [None] * 2, dtype=object)
    params = adjust_params_on_dataset(
        dict(DEFAULT_PARAMS_VALUES, min_no=4), y, ProblemTypes.CLASSIFICATION
    )
    assert params["min_no"] == 3


def test_adjust_params_without_known_labels():
    y = pd.Series([None, None, None], dtype=object)
    with pytest.raises(EmptyDatasetError):
        adjust_params_on_dataset(DEFAULT_PARAMS_VALUES, y, ProblemTypes.CLASSIFICATION)


def test_create_multilabel_heuristic():
    heuristic = create_multilabel_heuristic(DEFAULT_MULTILABEL_PARAMS_VALUES)
    assert isinstance(heuristic, FMeasure)
    heuristic = create_multilabel_heuristic(
        dict(DEFAULT_MULTILABEL_PARAMS_VALUES, beta=-1, heuristic="precision")
    )
    assert isinstance(heuristic, Precision)


@pytest.mark.parametrize("heuristic", ["laplace", "no_such_heuristic"])
def test_create_multilabel_heuristic_errors(heuristic: str):
    with pytest.raises(ConfigurationError):
        create_multilabel_heuristic(
            dict(DEFAULT_MULTILABEL_PARAMS_VALUES, beta=-1, heuristic=heuristic)
        )
