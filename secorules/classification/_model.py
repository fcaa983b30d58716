from typing import Any
from typing import Optional

import numpy as np
import pandas as pd
from decision_rules.problem import ProblemTypes

from secorules import _helpers
from secorules._model import BaseModel
from secorules._params import DEFAULT_PARAMS_VALUES
from secorules._params import RIPPER_PARAMS_VALUES
from secorules._params import HeuristicLike
from secorules.classification._induction import RuleInducer
from secorules.components import CandidateSelectorType
from secorules.components import NominalCompareMode
from secorules.components import PostProcessorType
from secorules.components import RuleFilterType
from secorules.components import RuleInitializerType
from secorules.components import RuleRefinerType
from secorules.components import RuleStopType
from secorules.components import StoppingCriterionType
from secorules.components import WeightModelType
from secorules.ruleset import SingleHeadRuleSet


class _ClassifierMixin:

    def fit(self, X: pd.DataFrame, y: pd.Series) -> SingleHeadRuleSet:
        ruleset: SingleHeadRuleSet = super().fit(X, y)
        self.classes_: list = _helpers.sorted_unique(y)
        return ruleset

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Predicts class labels of given examples.

        Args:
            X (pd.DataFrame): dataset with the same columns as the training one

        Raises:
            NotFittedError: if called before :code:`fit`

        Returns:
            np.ndarray: predicted class labels
        """
        codes: np.ndarray = self.ruleset.predict(self._transform(X))
        classes: np.ndarray = np.array(self.classes_, dtype=object)
        return classes[codes.astype(int)]


class SeCoClassifier(_ClassifierMixin, BaseModel):
    """Separate-and-conquer rule learner producing a decision list. Rules are
    learned for all classes but the most frequent one, taken from the least
    frequent class. The most frequent class among examples left uncovered is
    predicted by the default rule.

    Every part of the algorithm is configurable, e.g. a heuristic with beam search
    and no pruning gives CN2-like learner while reduced error pruning with MDL
    optimization gives RIPPER (see :class:`RipperClassifier`).
    """

    _Inducer = RuleInducer
    _problem_type = ProblemTypes.CLASSIFICATION

    def __init__(
        self,
        heuristic: HeuristicLike = DEFAULT_PARAMS_VALUES["heuristic"],
        candidate_selector: CandidateSelectorType = DEFAULT_PARAMS_VALUES[
            "candidate_selector"
        ],
        rule_filter: RuleFilterType = DEFAULT_PARAMS_VALUES["rule_filter"],
        beam_width: int = DEFAULT_PARAMS_VALUES["beam_width"],
        filter_threshold: float = DEFAULT_PARAMS_VALUES["filter_threshold"],
        rule_initializer: RuleInitializerType = DEFAULT_PARAMS_VALUES[
            "rule_initializer"
        ],
        rule_refiner: RuleRefinerType = DEFAULT_PARAMS_VALUES["rule_refiner"],
        nominal_compare_mode: NominalCompareMode = DEFAULT_PARAMS_VALUES[
            "nominal_compare_mode"
        ],
        stopping_criterion: StoppingCriterionType = DEFAULT_PARAMS_VALUES[
            "stopping_criterion"
        ],
        stopping_threshold: float = DEFAULT_PARAMS_VALUES["stopping_threshold"],
        rule_stop: RuleStopType = DEFAULT_PARAMS_VALUES["rule_stop"],
        weight_model: WeightModelType = DEFAULT_PARAMS_VALUES["weight_model"],
        post_processor: PostProcessorType = DEFAULT_PARAMS_VALUES["post_processor"],
        optimizations: int = DEFAULT_PARAMS_VALUES["optimizations"],
        use_abridgment: bool = DEFAULT_PARAMS_VALUES["use_abridgment"],
        selection_heuristic: Optional[HeuristicLike] = DEFAULT_PARAMS_VALUES[
            "selection_heuristic"
        ],
        growing_set_size: float = DEFAULT_PARAMS_VALUES["growing_set_size"],
        min_no: int = DEFAULT_PARAMS_VALUES["min_no"],
        strictly_greater: bool = DEFAULT_PARAMS_VALUES["strictly_greater"],
        ordered: bool = DEFAULT_PARAMS_VALUES["ordered"],
        uncovered_fraction: float = DEFAULT_PARAMS_VALUES["uncovered_fraction"],
        random_state: Optional[int] = DEFAULT_PARAMS_VALUES["random_state"],
    ):
        """
        Args:
            heuristic (HeuristicLike, optional): Heuristic used to evaluate rules
                during refinement search: a heuristic instance, its name or any
                quality measure from `decision_rules.measures`. Defaults to
                DEFAULT_PARAMS_VALUES["heuristic"].
            candidate_selector (CandidateSelectorType, optional): Selects candidates
                refined in each round. Defaults to
                DEFAULT_PARAMS_VALUES["candidate_selector"].
            rule_filter (RuleFilterType, optional): Filters candidates kept for the
                next round. Defaults to DEFAULT_PARAMS_VALUES["rule_filter"].
            beam_width (int, optional): Number of candidates kept by beam width
                filter. Defaults to DEFAULT_PARAMS_VALUES["beam_width"].
            filter_threshold (float, optional): Significance level of chi square
                filter. Defaults to DEFAULT_PARAMS_VALUES["filter_threshold"].
            rule_initializer (RuleInitializerType, optional): Creates seeds of the
                search, empty rule or most specific rule of a random example.
                Defaults to DEFAULT_PARAMS_VALUES["rule_initializer"].
            rule_refiner (RuleRefinerType, optional): Refinement operator. Defaults
                to DEFAULT_PARAMS_VALUES["rule_refiner"].
            nominal_compare_mode (NominalCompareMode, optional): Whether equality,
                inequality or both nominal conditions are generated. Defaults to
                DEFAULT_PARAMS_VALUES["nominal_compare_mode"].
            stopping_criterion (StoppingCriterionType, optional): Decides whether
                a candidate is refined further. Defaults to
                DEFAULT_PARAMS_VALUES["stopping_criterion"].
            stopping_threshold (float, optional): Significance level of likelihood
                ratio stopping criterion. Defaults to
                DEFAULT_PARAMS_VALUES["stopping_threshold"].
            rule_stop (RuleStopType, optional): Decides whether a learned rule is
                added to the theory. Defaults to DEFAULT_PARAMS_VALUES["rule_stop"].
            weight_model (WeightModelType, optional): Reweights examples after each
                learned rule. Defaults to DEFAULT_PARAMS_VALUES["weight_model"].
            post_processor (PostProcessorType, optional): Optimizes the theory of
                each class, used only when growing_set_size is lower than 1.
                Defaults to DEFAULT_PARAMS_VALUES["post_processor"].
            optimizations (int, optional): Number of RIPPER optimization passes.
                Defaults to DEFAULT_PARAMS_VALUES["optimizations"].
            use_abridgment (bool, optional): Also considers abridged rules during
                optimization. Defaults to DEFAULT_PARAMS_VALUES["use_abridgment"].
            selection_heuristic (Optional[HeuristicLike], optional): Selects rule
                variants during optimization instead of description length.
                Defaults to DEFAULT_PARAMS_VALUES["selection_heuristic"].
            growing_set_size (float, optional): Fraction of examples used to grow
                rules, the rest is used for pruning. 1 disables pruning. Defaults
                to DEFAULT_PARAMS_VALUES["growing_set_size"].
            min_no (int, optional): Minimum number of positive examples covered by
                a rule. It is lowered to the size of the minority class. Defaults
                to DEFAULT_PARAMS_VALUES["min_no"].
            strictly_greater (bool, optional): Only refinements better than their
                parent are kept. Defaults to DEFAULT_PARAMS_VALUES["strictly_greater"].
            ordered (bool, optional): Learns classes one after another, otherwise
                the best rule of all classes is taken in each iteration. Defaults
                to DEFAULT_PARAMS_VALUES["ordered"].
            uncovered_fraction (float, optional): Fraction of examples which may
                stay uncovered when learning unordered rules. Defaults to
                DEFAULT_PARAMS_VALUES["uncovered_fraction"].
            random_state (Optional[int], optional): Seed of the random generator
                used for tie breaking and stratification. Defaults to
                DEFAULT_PARAMS_VALUES["random_state"].
        """
        # pylint: disable=unused-argument
        params: dict = locals()
        params.pop("self")
        params.pop("__class__", None)
        super().__init__(**params)


class RipperClassifier(SeCoClassifier):
    """RIPPER: rules are grown with FOIL gain on 2/3 of examples, pruned on the
    rest, learning of each class stops based on description length and learned
    theories are optimized by comparing each rule with its replacement and its
    revision.
    """

    def __init__(self, random_state: Optional[int] = None, **params: Any):
        """
        Args:
            random_state (Optional[int], optional): Seed of the random generator.
                Defaults to None.
            **params: Any other parameter of :class:`SeCoClassifier` overriding
                RIPPER defaults.
        """
        ripper_params: dict[str, Any] = dict(RIPPER_PARAMS_VALUES)
        ripper_params.update(params)
        ripper_params["random_state"] = random_state
        super().__init__(**ripper_params)
