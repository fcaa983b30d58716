from typing import Any
from typing import Optional
from typing import Type
from typing import Union

import numpy as np
import pandas as pd
from decision_rules.problem import ProblemTypes
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_is_fitted

from secorules._induction import RuleInducersMixin
from secorules._induction import RuleInductionTimes
from secorules._params import adjust_params_on_dataset
from secorules._params import validate_params
from secorules.instances import Instances
from secorules.ruleset import RuleSet


class BaseModel(BaseEstimator):

    _Inducer: Type[RuleInducersMixin] = None
    _problem_type: ProblemTypes = None

    def __init__(self, **algorithm_params: dict):
        if self._Inducer is None:
            raise NotImplementedError(
                "_Inducer field must point to valid class implementing "
                "RuleInducersMixin."
            )
        if self._problem_type is None:
            raise NotImplementedError(
                "_problem_type field must point to value from "
                "decision_rules.problem.ProblemTypes enum"
            )

        self._params: dict[str, Any] = algorithm_params
        self.induction_times: RuleInductionTimes = None
        self.ruleset: Optional[RuleSet] = None
        self._inducer: RuleInducersMixin = None
        self._instances: Optional[Instances] = None

    def set_params(self, **params):
        self._params.update(params)

    def get_params(self, deep=True) -> dict:
        return self._params

    def _validate_params(self) -> dict[str, Any]:
        return validate_params(self._params)

    def __sklearn_is_fitted__(self) -> bool:
        return self.ruleset is not None

    def fit(self, X: pd.DataFrame, y: Union[pd.Series, pd.DataFrame]) -> RuleSet:
        """Trains a ruleset on given data.

        Args:
            X (pd.DataFrame): dataset
            y (Union[pd.Series, pd.DataFrame]): label column or label columns

        Raises:
            ConfigurationError: when algorithm parameters are invalid, checked
                before the data is read
            EmptyDatasetError: when no example has a known label

        Returns:
            RuleSet: trained ruleset
        """
        params: dict[str, Any] = self._validate_params()
        self._instances = Instances.from_dataframe(X, y)
        adjusted_params: dict[str, Any] = adjust_params_on_dataset(
            params, y, problem_type=self._problem_type
        )
        self._inducer: RuleInducersMixin = self._Inducer(
            adjusted_params
        )  # pylint: disable=not-callable
        self.ruleset = self._inducer.induce_ruleset(self._instances)
        self.induction_times = self._inducer.induction_times
        return self.ruleset

    def _transform(self, X: pd.DataFrame) -> Instances:
        check_is_fitted(self)
        return self._instances.transform(X)

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        raise NotImplementedError()
