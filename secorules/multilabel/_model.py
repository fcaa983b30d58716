from typing import Any
from typing import Optional
from typing import Union

import numpy as np
import pandas as pd
from decision_rules.problem import ProblemTypes

from secorules._model import BaseModel
from secorules._params import DEFAULT_MULTILABEL_PARAMS_VALUES
from secorules._params import HeuristicLike
from secorules._params import validate_multilabel_params
from secorules.heuristics import AveragingStrategyType
from secorules.heuristics import EvaluationStrategyType
from secorules.multilabel._induction import MultiLabelRuleInducer
from secorules.ruleset import MultiHeadRuleSet


class MultiLabelSeCoClassifier(BaseModel):
    """Multi-label separate-and-conquer rule learner. Each rule may predict
    several labels at once, labels predicted by earlier rules may be used in
    bodies of the following ones.
    """

    _Inducer = MultiLabelRuleInducer
    _problem_type = ProblemTypes.CLASSIFICATION

    def __init__(
        self,
        heuristic: HeuristicLike = DEFAULT_MULTILABEL_PARAMS_VALUES["heuristic"],
        beta: float = DEFAULT_MULTILABEL_PARAMS_VALUES["beta"],
        evaluation_strategy: EvaluationStrategyType = DEFAULT_MULTILABEL_PARAMS_VALUES[
            "evaluation_strategy"
        ],
        averaging_strategy: AveragingStrategyType = DEFAULT_MULTILABEL_PARAMS_VALUES[
            "averaging_strategy"
        ],
        beam_width: Union[int, float] = DEFAULT_MULTILABEL_PARAMS_VALUES["beam_width"],
        predict_zero: bool = DEFAULT_MULTILABEL_PARAMS_VALUES["predict_zero"],
        use_bottom_up: bool = DEFAULT_MULTILABEL_PARAMS_VALUES["use_bottom_up"],
        accept_equal: bool = DEFAULT_MULTILABEL_PARAMS_VALUES["accept_equal"],
        n_step: int = DEFAULT_MULTILABEL_PARAMS_VALUES["n_step"],
        use_random: bool = DEFAULT_MULTILABEL_PARAMS_VALUES["use_random"],
        numeric_generalization: str = DEFAULT_MULTILABEL_PARAMS_VALUES[
            "numeric_generalization"
        ],
        skip_threshold: float = DEFAULT_MULTILABEL_PARAMS_VALUES["skip_threshold"],
        readd_all_covered: bool = DEFAULT_MULTILABEL_PARAMS_VALUES["readd_all_covered"],
        cover_all_labels: bool = DEFAULT_MULTILABEL_PARAMS_VALUES["cover_all_labels"],
        decision_list: bool = DEFAULT_MULTILABEL_PARAMS_VALUES["decision_list"],
        uncovered_fraction: float = DEFAULT_MULTILABEL_PARAMS_VALUES[
            "uncovered_fraction"
        ],
        random_state: Optional[int] = DEFAULT_MULTILABEL_PARAMS_VALUES["random_state"],
    ):
        """
        Args:
            heuristic (HeuristicLike, optional): Heuristic evaluating rules, used
                only when beta is -1. Defaults to
                DEFAULT_MULTILABEL_PARAMS_VALUES["heuristic"].
            beta (float, optional): Beta of F-measure used as heuristic, -1 selects
                the heuristic given by `heuristic` parameter. Defaults to
                DEFAULT_MULTILABEL_PARAMS_VALUES["beta"].
            evaluation_strategy (EvaluationStrategyType, optional): Labels taken
                into account when evaluating a rule. Defaults to
                DEFAULT_MULTILABEL_PARAMS_VALUES["evaluation_strategy"].
            averaging_strategy (AveragingStrategyType, optional): Aggregation of
                label-wise statistics. Defaults to
                DEFAULT_MULTILABEL_PARAMS_VALUES["averaging_strategy"].
            beam_width (Union[int, float], optional): Number of rules kept in the
                beam or its fraction of the number of attributes. Defaults to
                DEFAULT_MULTILABEL_PARAMS_VALUES["beam_width"].
            predict_zero (bool, optional): Heads may predict absence of labels.
                Defaults to DEFAULT_MULTILABEL_PARAMS_VALUES["predict_zero"].
            use_bottom_up (bool, optional): Generalizes rules of single examples
                instead of refining the empty rule. Defaults to
                DEFAULT_MULTILABEL_PARAMS_VALUES["use_bottom_up"].
            accept_equal (bool, optional): Bottom-up search accepts generalizations
                as good as the generalized rule. Defaults to
                DEFAULT_MULTILABEL_PARAMS_VALUES["accept_equal"].
            n_step (int, optional): Number of generalization steps applied at
                once. Defaults to DEFAULT_MULTILABEL_PARAMS_VALUES["n_step"].
            use_random (bool, optional): Generalizes conditions in random order.
                Defaults to DEFAULT_MULTILABEL_PARAMS_VALUES["use_random"].
            numeric_generalization (str, optional): "random" or "nearest" widening
                of numerical conditions. Defaults to
                DEFAULT_MULTILABEL_PARAMS_VALUES["numeric_generalization"].
            skip_threshold (float, optional): Fraction of covered examples with
                some label not predicted yet above which they are re-added,
                otherwise a skip rule is added. Negative value disables skip
                rules. Defaults to DEFAULT_MULTILABEL_PARAMS_VALUES["skip_threshold"].
            readd_all_covered (bool, optional): Re-adds all covered examples
                instead of those with missing labels only. Defaults to
                DEFAULT_MULTILABEL_PARAMS_VALUES["readd_all_covered"].
            cover_all_labels (bool, optional): Without skip rules, re-adds covered
                examples with missing labels. Defaults to
                DEFAULT_MULTILABEL_PARAMS_VALUES["cover_all_labels"].
            decision_list (bool, optional): Prediction uses only the first
                covering rule. Defaults to
                DEFAULT_MULTILABEL_PARAMS_VALUES["decision_list"].
            uncovered_fraction (float, optional): Fraction of examples which may
                stay uncovered. Defaults to
                DEFAULT_MULTILABEL_PARAMS_VALUES["uncovered_fraction"].
            random_state (Optional[int], optional): Seed of the random generator.
                Defaults to DEFAULT_MULTILABEL_PARAMS_VALUES["random_state"].
        """
        # pylint: disable=unused-argument
        params: dict = locals()
        params.pop("self")
        params.pop("__class__", None)
        super().__init__(**params)

    def _validate_params(self) -> dict[str, Any]:
        return validate_multilabel_params(self._params)

    def fit(self, X: pd.DataFrame, y: pd.DataFrame) -> MultiHeadRuleSet:
        ruleset: MultiHeadRuleSet = super().fit(X, y)
        self.labels_: list[str] = [str(column) for column in y.columns]
        return ruleset

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Predicts label vectors of given examples.

        Args:
            X (pd.DataFrame): dataset with the same columns as the training one

        Raises:
            NotFittedError: if called before :code:`fit`

        Returns:
            np.ndarray: 0/1 matrix with a column per label
        """
        return self.ruleset.predict(self._transform(X))
