import numpy as np
import pandas as pd
import pytest

from secorules._params import DEFAULT_PARAMS_VALUES
from secorules.classification._induction import RuleInducer
from secorules.components import WeightModelType
from secorules.components import create_weight_model
from secorules.conditions import NominalCondition
from secorules.conditions import NumericCondition
from secorules.heuristics import HeuristicType
from secorules.instances import Instances
from secorules.rules import SingleHeadRule

GROUP, SIZE, CLASS = range(3)
POSITIVE: float = 1.0


@pytest.fixture
def groups() -> Instances:
    # all positives share group "a", all negatives group "b"
    X = pd.DataFrame(
        {
            "group": ["a"] * 6 + ["b"] * 4,
            "size": [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0, 10.0],
        }
    )
    y = pd.Series(["pos"] * 6 + ["neg"] * 4, name="class")
    return Instances.from_dataframe(X, y)


def _inducer(**params) -> RuleInducer:
    return RuleInducer(dict(DEFAULT_PARAMS_VALUES, random_state=0, **params))


def test_find_best_rule_prefers_pure_refinement(groups: Instances):
    inducer = _inducer(heuristic=HeuristicType.LAPLACE)
    empty = SingleHeadRule(
        NominalCondition(groups.class_attribute, POSITIVE),
        inducer.heuristic,
        inducer.rng,
    )
    assert empty.evaluate(groups) == pytest.approx(7 / 12)

    rule: SingleHeadRule = inducer.find_best_rule(groups, None, POSITIVE)
    assert rule.value == pytest.approx(7 / 8)
    assert rule.stats.tp == 6 and rule.stats.fp == 0
    assert rule.covered_mask(groups.X).sum() == 6


def test_find_best_rule_with_beam(groups: Instances):
    inducer = _inducer(heuristic=HeuristicType.PRECISION, beam_width=4)
    rule: SingleHeadRule = inducer.find_best_rule(groups, None, POSITIVE)
    assert rule.stats.fp == 0
    assert rule.stats.tp == 6
    assert inducer.induction_times.growing_time.total_seconds() >= 0


def test_select_prefix():
    assert RuleInducer._select_prefix([0.6, 0.75, 0.70], 0.65) == 2
    assert RuleInducer._select_prefix([0.6, 0.62], 0.65) == 0
    # ties keep the shorter prefix
    assert RuleInducer._select_prefix([0.8, 0.8], 0.5) == 1


def test_prune_rule(groups: Instances):
    inducer = _inducer(heuristic=HeuristicType.LAPLACE)
    rule = SingleHeadRule(
        NominalCondition(groups.class_attribute, POSITIVE), inducer.heuristic
    )
    rule.add_condition(NominalCondition(groups.attribute(GROUP), 0.0))
    # covers no example
    rule.add_condition(NumericCondition(groups.attribute(SIZE), 100.0, False))

    pruned: SingleHeadRule = inducer.prune_rule(groups, rule, False, POSITIVE)
    assert pruned.body == rule.body[:1]
    assert rule.length == 2
    again: SingleHeadRule = inducer.prune_rule(groups, pruned, False, POSITIVE)
    assert again.body == pruned.body


def test_prune_rule_to_empty(groups: Instances):
    inducer = _inducer()
    rule = SingleHeadRule(NominalCondition(groups.class_attribute, POSITIVE))
    rule.add_condition(NominalCondition(groups.attribute(GROUP), 1.0))
    pruned: SingleHeadRule = inducer.prune_rule(groups, rule, True, POSITIVE)
    assert pruned.length == 0


def test_separate_and_conquer(groups: Instances):
    inducer = _inducer(heuristic=HeuristicType.LAPLACE)
    theory, remaining = inducer.separate_and_conquer(groups, POSITIVE)
    assert len(theory) == 1
    assert not remaining.contains_positive(POSITIVE)
    assert remaining.num_instances == 4


def test_induce_ruleset(groups: Instances):
    inducer = _inducer(heuristic=HeuristicType.LAPLACE)
    ruleset = inducer.induce_ruleset(groups)
    assert np.array_equal(ruleset.predict(groups), groups.class_values)
    assert inducer.induction_times.total_training_time.total_seconds() >= 0


def test_weight_per_iteration_halves_covered_weights(groups: Instances):
    rule = SingleHeadRule(NominalCondition(groups.class_attribute, POSITIVE))
    rule.add_condition(NominalCondition(groups.attribute(GROUP), 0.0))
    examples: Instances = groups.copy()
    cover_counts = np.zeros(groups.num_instances)

    create_weight_model(WeightModelType.PER_ITERATION).change_weights(
        examples, cover_counts, rule
    )
    assert list(examples.weights) == [0.5] * 6 + [1.0] * 4
    assert list(cover_counts) == [1.0] * 6 + [0.0] * 4


def test_weight_negative_to_the_power(groups: Instances):
    rule = SingleHeadRule(NominalCondition(groups.class_attribute, POSITIVE))
    rule.add_condition(NumericCondition(groups.attribute(SIZE), 7.0, False))
    examples: Instances = groups.copy()
    cover_counts = np.zeros(groups.num_instances)
    cover_counts[6] = 1.0

    create_weight_model("negative_to_the_power").change_weights(
        examples, cover_counts, rule
    )
    # positives keep their weight, covered negatives get (count + 1) ** 3
    assert list(examples.weights) == [1.0] * 6 + [8.0, 1.0, 1.0, 1.0]
    assert list(cover_counts) == [0.0] * 6 + [2.0, 1.0, 1.0, 1.0]


@pytest.mark.parametrize("weight_model", ["per_iteration", "negative_to_the_power"])
def test_weight_models_do_not_change_covering_theory(
    groups: Instances, weight_model: str
):
    expected, _ = _inducer(heuristic=HeuristicType.LAPLACE).separate_and_conquer(
        groups, POSITIVE
    )
    weighted = _inducer(heuristic=HeuristicType.LAPLACE, weight_model=weight_model)
    theory, remaining = weighted.separate_and_conquer(groups, POSITIVE)
    assert [str(rule) for rule in theory] == [str(rule) for rule in expected]
    assert np.all(remaining.weights == 1.0)
