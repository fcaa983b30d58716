"""
Weight models called by the covering loop after each accepted rule.

Models only change weights of examples covered by the rule. The covering loop
removes those examples right afterwards, so the learned theory is the same as
with :code:`NoOpWeight`.
Changed weights and cover counts matter to callers which keep covered
examples in the set.
"""
import numpy as np

from secorules.components._base import WeightModel
from secorules.instances import Instances
from secorules.rules import SingleHeadRule


class NoOpWeight(WeightModel):

    def change_weights(
        self, examples: Instances, cover_counts: np.ndarray, rule: SingleHeadRule
    ):
        pass


class WeightPerIteration(WeightModel):
    """Halves the weight of every covered example."""

    def change_weights(
        self, examples: Instances, cover_counts: np.ndarray, rule: SingleHeadRule
    ):
        covered: np.ndarray = self._covered(examples, rule)
        examples.weights[covered] *= 0.5
        cover_counts[examples.ids[covered]] += 1


class WeightNegativeToThePower(WeightModel):
    """Sets weight of misclassified covered examples to the cube of the number of
    rules covering them.
    """

    def change_weights(
        self, examples: Instances, cover_counts: np.ndarray, rule: SingleHeadRule
    ):
        covered: np.ndarray = self._covered(examples, rule)
        misclassified: np.ndarray = covered & ~examples.positive_mask(
            rule.predicted_value
        )
        ids: np.ndarray = examples.ids[misclassified]
        examples.weights[misclassified] = (cover_counts[ids] + 1) ** 3
        cover_counts[ids] += 1
