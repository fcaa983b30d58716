import math

import numpy as np
import pytest
import utils

from secorules.components.stopping import MDLRuleStop
from secorules.conditions import NominalCondition
from secorules.conditions import NumericCondition
from secorules.heuristics import Laplace
from secorules.instances import Instances
from secorules.mdl import RuleStats
from secorules.rules import SingleHeadRule
from secorules.ruleset import SingleHeadRuleSet

OUTLOOK, TEMPERATURE, HUMIDITY, WINDY, CLASS = range(5)
NO: float = 0.0
OVERCAST, SUNNY = 0.0, 2.0


@pytest.fixture
def weather() -> Instances:
    X_train, y_train, _, _ = utils.read_dataset(
        problem_type="classification", dataset_name="weather"
    )
    return Instances.from_dataframe(X_train, y_train)


def _rule(instances: Instances, *conditions) -> SingleHeadRule:
    rule = SingleHeadRule(
        NominalCondition(instances.class_attribute, NO),
        Laplace(),
        np.random.default_rng(0),
    )
    for condition in conditions:
        rule.add_condition(condition)
    return rule


@pytest.fixture
def good_rule(weather: Instances) -> SingleHeadRule:
    # sunny and humid days are exactly the sunny "no" days
    return _rule(
        weather,
        NominalCondition(weather.attribute(OUTLOOK), SUNNY),
        NumericCondition(weather.attribute(HUMIDITY), 77.5, False),
    )


@pytest.fixture
def bad_rule(weather: Instances) -> SingleHeadRule:
    # overcast days are all "yes" days
    return _rule(weather, NominalCondition(weather.attribute(OUTLOOK), OVERCAST))


def test_subset_dl():
    assert RuleStats.subset_dl(4, 2, 0.5) == pytest.approx(4.0)
    assert RuleStats.subset_dl(10, 0, 0.0) == 0.0
    assert RuleStats.subset_dl(3, 3, 1.0) == pytest.approx(0.0)


def test_data_dl_of_perfect_split():
    assert RuleStats.data_dl(0.5, 10, 0, 0, 0) == pytest.approx(math.log2(11))
    assert RuleStats.data_dl(0.5, 0, 10, 0, 0) == pytest.approx(math.log2(11))


def test_num_all_conditions(weather: Instances):
    # 3 outlook values, 12 and 10 distinct numerical values, 2 windy values
    assert RuleStats.num_all_conditions(weather) == 3 + 2 * 12 + 2 * 10 + 2


def test_add_and_update(
    weather: Instances, good_rule: SingleHeadRule, bad_rule: SingleHeadRule
):
    stats = RuleStats(weather)
    stats.add_and_update(good_rule)
    stats.add_and_update(bad_rule)
    assert stats.simple_stats[0] == [3.0, 11.0, 3.0, 9.0, 0.0, 2.0]
    assert stats.simple_stats[1] == [4.0, 7.0, 0.0, 5.0, 4.0, 2.0]
    assert stats.filtered[1][1].num_instances == 7
    assert list(stats.distributions[0]) == [3.0, 0.0]

    recomputed = RuleStats(weather, stats.ruleset.copy())
    recomputed.count_data()
    assert recomputed.simple_stats == stats.simple_stats


def test_theory_dl(weather: Instances, good_rule: SingleHeadRule):
    stats = RuleStats(weather, SingleHeadRuleSet([good_rule, _rule(weather)]))
    assert stats.theory_dl(1) == 0.0
    total: float = stats.total
    expected: float = 1.0 + 2.0 * math.log2(1.0) + RuleStats.subset_dl(total, 2, 2 / total)
    assert stats.theory_dl(0) == pytest.approx(0.5 * expected)


def test_reduce_dl_deletes_useless_rule(
    weather: Instances, good_rule: SingleHeadRule, bad_rule: SingleHeadRule
):
    stats = RuleStats(weather)
    stats.add_and_update(good_rule)
    stats.add_and_update(bad_rule)
    exp_fp_rate: float = 0.5
    before: float = stats.combined_dl(exp_fp_rate, NO)

    stats.reduce_dl(exp_fp_rate, True)
    assert [rule for rule in stats.ruleset] == [good_rule]
    assert stats.combined_dl(exp_fp_rate, NO) <= before


def test_relative_dl_of_good_rule_is_negative(
    weather: Instances, good_rule: SingleHeadRule
):
    stats = RuleStats(weather)
    stats.add_and_update(good_rule)
    assert stats.relative_dl(0, 0.5, False) < 0


def test_rm_covered_by_successives(
    weather: Instances, good_rule: SingleHeadRule, bad_rule: SingleHeadRule
):
    theory = SingleHeadRuleSet([good_rule, bad_rule])
    remaining: Instances = RuleStats.rm_covered_by_successives(weather, theory, 0)
    assert remaining.num_instances == 10


def test_mdl_rule_stop(weather: Instances, good_rule: SingleHeadRule):
    rule_stop = MDLRuleStop()
    rule_stop.reset()
    good_rule.evaluate(weather)
    assert not rule_stop.check_for_rule_stop(
        SingleHeadRuleSet(), good_rule, weather, NO
    )
