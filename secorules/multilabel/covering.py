"""
Beam search for multi-label rules. Bodies are refined top-down (or generalized
bottom-up) while the best head of every candidate body is searched for among
subsets of label conditions, either label by label for decomposable heuristics
or by a pruned search over label combinations for anti-monotonic ones.
"""
from __future__ import annotations

import heapq
from logging import Logger
from logging import getLogger
from numbers import Integral
from numbers import Real
from typing import Iterable
from typing import Optional
from typing import Union

import numpy as np

from secorules import _helpers
from secorules.conditions import Condition
from secorules.conditions import NominalCondition
from secorules.conditions import NumericCondition
from secorules.exceptions import ConfigurationError
from secorules.heuristics import Characteristic
from secorules.instances import Attribute
from secorules.instances import Instances
from secorules.multilabel.evaluation import MultiLabelEvaluation
from secorules.rules import Head
from secorules.rules import MultiHeadRule
from secorules.rules import bottom_rule_body


class FixedPriorityQueue:
    """Min-heap holding at most :code:`max_size` items. Once full, the smallest
    item is evicted only for a strictly greater one.
    """

    def __init__(self, max_size: int):
        self.max_size: int = max_size
        self._heap: list = []

    def offer(self, item) -> bool:
        """Returns True if the item was added."""
        if len(self._heap) >= self.max_size:
            if self._heap[0] < item:
                heapq.heapreplace(self._heap, item)
                return True
            return False
        heapq.heappush(self._heap, item)
        return True

    @property
    def items(self) -> list:
        return list(self._heap)

    def best(self):
        if not self._heap:
            return None
        return max(self._heap)

    def __len__(self) -> int:
        return len(self._heap)


class Closure:
    """Candidate rule of the beam together with its body conditions grouped by
    attribute index.
    """

    def __init__(
        self,
        rule: MultiHeadRule,
        conditions: Optional[dict[int, list[Condition]]] = None,
    ):
        self.rule: MultiHeadRule = rule
        self.conditions: dict[int, list[Condition]] = {
            index: list(values) for index, values in (conditions or {}).items()
        }
        self.refine_further: bool = True

    @classmethod
    def of_rule(cls, rule: MultiHeadRule) -> Closure:
        closure = cls(rule)
        for condition in rule.body:
            closure.add_condition(condition.index, condition)
        return closure

    def add_condition(self, index: int, condition: Condition):
        self.conditions.setdefault(index, []).append(condition)

    def contains_condition(self, condition: Condition) -> bool:
        """A nominal attribute may be used only once, numerical attributes may
        be used repeatedly with different values.
        """
        conditions: Optional[list[Condition]] = self.conditions.get(condition.index)
        return conditions is not None and (
            isinstance(condition, NominalCondition) or condition in conditions
        )

    def __lt__(self, other: Closure) -> bool:
        return self.rule.compare_to(other.rule) < 0

    def __gt__(self, other: Closure) -> bool:
        return self.rule.compare_to(other.rule) > 0

    def __str__(self) -> str:
        return str(self.rule)


class MulticlassCovering:
    """Finds the best multi-label rule on given examples.

    Args:
        evaluation (MultiLabelEvaluation): evaluation of rules
        predict_zero (bool, optional): heads may predict absence of labels.
            Defaults to True.
        rng (Optional[np.random.Generator], optional): random generator used for
            tie breaking and random generalizations. Defaults to None.
    """

    def __init__(
        self,
        evaluation: MultiLabelEvaluation,
        predict_zero: bool = True,
        rng: Optional[np.random.Generator] = None,
    ):
        self.logger: Logger = getLogger(self.__class__.__name__)
        self.evaluation: MultiLabelEvaluation = evaluation
        self.predict_zero: bool = predict_zero
        self.rng: np.random.Generator = (
            rng if rng is not None else np.random.default_rng()
        )
        self._label_values: tuple[float, ...] = (0.0, 1.0) if predict_zero else (1.0,)
        self._fix_head: bool = False

    @staticmethod
    def resolve_beam_width(beam_width: Union[int, float], num_attributes: int) -> int:
        """Converts beam width given as a number of attributes or as a fraction of
        their number into a number of kept rules.

        Raises:
            ConfigurationError: if beam width is out of range
        """
        if isinstance(beam_width, bool) or not isinstance(beam_width, Real):
            raise ConfigurationError(f"Beam width must be a number, got: {beam_width}")
        if isinstance(beam_width, Integral):
            if beam_width < 1:
                raise ConfigurationError("Beam width must be at least 1")
            if beam_width > num_attributes:
                raise ConfigurationError(
                    f"Beam width must be at maximum {num_attributes}"
                )
            return int(beam_width)
        if beam_width < 0:
            raise ConfigurationError("Beam width must be at least 0.0")
        if beam_width > 1:
            raise ConfigurationError("Beam width must be at maximum 1.0")
        return max(1, min(num_attributes, _helpers.round_half_up(num_attributes * beam_width)))

    def _new_rule(self) -> MultiHeadRule:
        return MultiHeadRule(self.evaluation.heuristic, rng=self.rng)

    def find_best_global_rule(
        self,
        instances: Instances,
        predicted_labels: Iterable[int],
        beam_width: Union[int, float],
    ) -> Optional[MultiHeadRule]:
        """Top-down beam search. In the first round the best head is searched for
        each body, later refinements keep the head of the rule they refine.

        Args:
            instances (Instances): working instances
            predicted_labels (Iterable[int]): labels predicted by earlier rules,
                they may be used in rule bodies
            beam_width (Union[int, float]): number of attributes or its fraction

        Returns:
            Optional[MultiHeadRule]: best rule, None if no rule covers a positive
        """
        beam = FixedPriorityQueue(
            self.resolve_beam_width(beam_width, instances.num_attributes)
        )
        predicted_labels = sorted(predicted_labels)
        self._fix_head = False
        improved: bool = True
        while improved:
            improved = self._refine_rules(instances, predicted_labels, beam)
            if len(beam) > 0:
                self._fix_head = True
            self.logger.debug("Beam: %s", [str(closure) for closure in beam.items])
        return self.get_best_rule(beam)

    def _refine_rules(
        self,
        instances: Instances,
        predicted_labels: list[int],
        beam: FixedPriorityQueue,
    ) -> bool:
        improved: bool = False
        closures: list[Optional[Closure]] = beam.items if len(beam) > 0 else [None]
        for closure in closures:
            if closure is not None:
                if not closure.refine_further:
                    continue
                closure.refine_further = False
            else:
                # the empty body competes as well
                found: Optional[Closure] = self.find_best_head(
                    instances, Closure(self._new_rule())
                )
                if found is not None:
                    improved |= beam.offer(found)

            for index in self.candidate_attributes(instances, predicted_labels):
                attribute: Attribute = instances.attribute(index)
                conditions: list[Condition] = (
                    self.numeric_conditions(instances, attribute)
                    if attribute.is_numeric
                    else self.nominal_conditions(attribute)
                )
                for condition in conditions:
                    if closure is None:
                        refined = Closure(self._new_rule())
                        refined.rule.add_condition(condition)
                    elif closure.contains_condition(condition):
                        continue
                    else:
                        refined = Closure(
                            closure.rule.specialize(condition), closure.conditions
                        )
                    refined.add_condition(index, condition)
                    found = self.find_best_head(instances, refined)
                    if found is not None:
                        improved |= beam.offer(found)
        return improved

    @staticmethod
    def candidate_attributes(
        instances: Instances, predicted_labels: Iterable[int]
    ) -> list[int]:
        return instances.feature_indices + sorted(predicted_labels)

    @staticmethod
    def nominal_conditions(attribute: Attribute) -> list[Condition]:
        return [NominalCondition(attribute, value) for value in range(attribute.num_values)]

    @staticmethod
    def numeric_conditions(instances: Instances, attribute: Attribute) -> list[Condition]:
        """Returns pairs of conditions :code:`>= split` and :code:`<= split` for
        every split point between neighbouring examples (sorted by the attribute)
        whose label vectors differ. Examples with missing value are skipped.
        """
        column: np.ndarray = instances.X[:, attribute.index]
        known: np.ndarray = ~np.isnan(column)
        order: np.ndarray = np.argsort(column[known], kind="stable")
        values: np.ndarray = column[known][order]
        labels: np.ndarray = instances.label_vectors()[known][order]
        if len(values) < 2:
            return []
        changed: np.ndarray = np.where(np.any(labels[1:] != labels[:-1], axis=1))[0]
        conditions: list[Condition] = []
        for k in changed:
            split: float = values[k] + (values[k + 1] - values[k]) / 2.0
            conditions.append(NumericCondition(attribute, split, False))
            conditions.append(NumericCondition(attribute, split, True))
        return list(dict.fromkeys(conditions))

    def find_best_head(
        self, instances: Instances, closure: Closure
    ) -> Optional[Closure]:
        """Finds the best head for the closure's body. Once heads are fixed the
        rule is only evaluated with its current head and rejected when it does
        not cover more true than false positives.

        Raises:
            ConfigurationError: if the heuristic is neither decomposable nor
                anti-monotonic in the evaluation setting
        """
        rule: MultiHeadRule = closure.rule
        if self._fix_head:
            self.evaluation.evaluate(instances, rule)
            if rule.stats.tp <= 0 or rule.stats.tp < rule.stats.fp:
                return None
            return closure

        rule.head = None
        characteristic: Optional[Characteristic] = self.evaluation.characteristic
        if characteristic == Characteristic.DECOMPOSABLE:
            return self.decomposite(instances, closure)
        if characteristic == Characteristic.ANTI_MONOTONIC:
            return self.pruned_search(instances, closure, None, set(), [])
        raise ConfigurationError(
            "Only anti-monotonic or decomposable heuristics are supported for "
            f"learning multi-label heads, got: {self.evaluation}"
        )

    def _single_label_rules(
        self, instances: Instances, closure: Closure, label_index: int
    ) -> Optional[MultiHeadRule]:
        best: Optional[MultiHeadRule] = None
        for value in self._label_values:
            condition = NominalCondition(instances.attribute(label_index), value)
            if closure.contains_condition(condition):
                continue
            rule: MultiHeadRule = closure.rule.copy()
            rule.head = Head([condition])
            self.evaluation.evaluate(instances, rule)
            if best is None or rule.value >= best.value:
                best = rule
        return best

    def decomposite(self, instances: Instances, closure: Closure) -> Optional[Closure]:
        """Head search for decomposable heuristics. The best condition of each
        label is found separately, conditions of labels reaching the best value
        are joined into a single head.
        """
        result: Optional[MultiHeadRule] = None
        for label_index in instances.label_indices:
            current: Optional[MultiHeadRule] = self._single_label_rules(
                instances, closure, label_index
            )
            if current is None or current.stats.tp <= 0:
                continue
            if result is None:
                result = current
            elif current.value == result.value:
                result.head.add_condition(next(iter(current.head)))
                result.stats.merge(current.stats)
            elif current.compare_to(result) > 0:
                result = current
        if result is None:
            return None
        return Closure(result, closure.conditions)

    def pruned_search(
        self,
        instances: Instances,
        closure: Closure,
        best: Optional[Closure],
        evaluated_heads: set[frozenset[int]],
        pruned_heads: list[Head],
    ) -> Optional[Closure]:
        """Head search for anti-monotonic heuristics. Heads are extended by one
        label condition at a time, starting from the most promising extension.
        Extensions not better than the best head so far are pruned together with
        all their supersets.
        """
        result: Optional[Closure] = best
        improved: dict[float, Closure] = {}
        head: Optional[Head] = closure.rule.head
        for label_index in instances.label_indices:
            if head is not None and head.contains_condition(label_index):
                continue
            refined: Optional[Closure] = None
            for value in self._label_values:
                condition = NominalCondition(instances.attribute(label_index), value)
                if closure.contains_condition(condition):
                    break
                rule: MultiHeadRule = closure.rule.copy()
                if rule.head is None:
                    rule.head = Head()
                rule.head.add_condition(condition)
                if self.is_head_pruned(pruned_heads, evaluated_heads, rule.head):
                    break
                self.evaluation.evaluate(instances, rule)
                if refined is None or rule.value >= refined.rule.value:
                    refined = Closure(rule, closure.conditions)
            if refined is None:
                continue
            if refined.rule.stats.tp > 0 and (
                result is None or refined.rule.value >= result.rule.value
            ):
                improved[refined.rule.value] = refined
                evaluated_heads.add(refined.rule.head.label_indices)
            else:
                pruned_heads.append(refined.rule.head)

        for i, value in enumerate(sorted(improved, reverse=True)):
            if i == 0:
                result = improved[value]
            result = self.pruned_search(
                instances, improved[value], result, evaluated_heads, pruned_heads
            )
        return result

    @staticmethod
    def is_head_pruned(
        pruned_heads: list[Head], evaluated_heads: set[frozenset[int]], head: Head
    ) -> bool:
        labels: frozenset[int] = head.label_indices
        if labels in evaluated_heads:
            return True
        return any(pruned.label_indices <= labels for pruned in pruned_heads)

    @staticmethod
    def get_best_rule(beam: FixedPriorityQueue) -> Optional[MultiHeadRule]:
        best: Optional[Closure] = beam.best()
        return None if best is None else best.rule

    def find_best_rule_bottom_up(
        self,
        instances: Instances,
        predicted_labels: Iterable[int],
        beam_width: Union[int, float],
        instance_status: Optional[np.ndarray] = None,
        accept_equal: bool = True,
        n_step: int = 1,
        numeric_generalization: str = "random",
        use_random: bool = False,
    ) -> Optional[MultiHeadRule]:
        """Bottom-up beam search starting from the most specific rules of single
        examples, which are generalized as long as it does not make them worse.

        Args:
            instances (Instances): working instances
            predicted_labels (Iterable[int]): labels predicted by earlier rules
            beam_width (Union[int, float]): number of attributes or its fraction
            instance_status (Optional[np.ndarray], optional): flags of original
                examples not covered by any rule yet, indexed by example id. Only
                such examples seed the search while there are any. Defaults to
                None.
            accept_equal (bool, optional): accept generalizations as good as the
                generalized rule. Defaults to True.
            n_step (int, optional): number of generalization steps applied to a
                condition at once. Defaults to 1.
            numeric_generalization (str, optional): "nearest" widens numerical
                conditions to the next distinct value, "random" to a random wider
                value. Defaults to "random".
            use_random (bool, optional): generalize conditions in random order.
                Defaults to False.

        Returns:
            Optional[MultiHeadRule]: best rule
        """
        beam = FixedPriorityQueue(
            self.resolve_beam_width(beam_width, instances.num_attributes)
        )
        self._fix_head = False
        rows: np.ndarray = np.arange(instances.num_instances)
        if instance_status is not None:
            uncovered: np.ndarray = instance_status[instances.ids]
            if uncovered.any():
                rows = rows[uncovered]
        for row in rows:
            rule: MultiHeadRule = self._new_rule()
            for condition in bottom_rule_body(instances, row):
                rule.add_condition(condition)
            found: Optional[Closure] = self.find_best_head(instances, Closure.of_rule(rule))
            if found is not None:
                beam.offer(found)

        improved: bool = True
        while improved:
            improved = False
            for closure in beam.items:
                if not closure.refine_further:
                    continue
                closure.refine_further = False
                for generalized in self._generalizations(
                    instances, closure.rule, n_step, numeric_generalization, use_random
                ):
                    found = self.find_best_head(instances, Closure.of_rule(generalized))
                    if found is None:
                        continue
                    accepted: bool = found.rule.value > closure.rule.value or (
                        accept_equal and found.rule.value == closure.rule.value
                    )
                    if accepted:
                        improved |= beam.offer(found)
        return self.get_best_rule(beam)

    def _generalizations(
        self,
        instances: Instances,
        rule: MultiHeadRule,
        n_step: int,
        numeric_generalization: str,
        use_random: bool,
    ) -> list[MultiHeadRule]:
        positions: list[int] = list(range(rule.length))
        if use_random:
            self.rng.shuffle(positions)
        generalizations: list[MultiHeadRule] = []
        for position in positions:
            generalized: MultiHeadRule = rule
            for _ in range(n_step):
                length: int = generalized.length
                generalized = self._generalize_condition(
                    instances, generalized, position, numeric_generalization
                )
                if generalized.length < length:
                    break
            generalizations.append(generalized)
        return generalizations

    def _generalize_condition(
        self,
        instances: Instances,
        rule: MultiHeadRule,
        position: int,
        numeric_generalization: str,
    ) -> MultiHeadRule:
        """Removes a nominal condition or widens a numerical one to a value of a
        training example, conditions which cannot be widened are removed.
        """
        condition: Condition = rule.body[position]
        if condition.attribute.is_nominal:
            return rule.generalize(position)
        column: np.ndarray = instances.X[:, condition.index]
        values: np.ndarray = np.unique(column[~np.isnan(column)])
        if condition.cmp:
            wider: np.ndarray = values[values > condition.value]
        else:
            wider = values[values < condition.value]
        if len(wider) == 0:
            return rule.generalize(position)
        if numeric_generalization == "nearest":
            value: float = wider.min() if condition.cmp else wider.max()
        else:
            value = self.rng.choice(wider)
        return rule.generalize_numeric(position, float(value))
