import math
from logging import Logger
from logging import getLogger
from numbers import Integral
from numbers import Real
from typing import Optional
from typing import TypeAlias
from typing import TypedDict
from typing import Union

import pandas as pd
from decision_rules.problem import ProblemTypes

from secorules.components import CandidateSelectorType
from secorules.components import NominalCompareMode
from secorules.components import PostProcessorType
from secorules.components import RuleFilterType
from secorules.components import RuleInitializerType
from secorules.components import RuleRefinerType
from secorules.components import RuleStopType
from secorules.components import StoppingCriterionType
from secorules.components import WeightModelType
from secorules.components import parse_component_type
from secorules.exceptions import ConfigurationError
from secorules.exceptions import EmptyDatasetError
from secorules.heuristics import AveragingStrategyType
from secorules.heuristics import EvaluationStrategyType
from secorules.heuristics import Heuristic
from secorules.heuristics import HeuristicType
from secorules.heuristics import QualityMeasure
from secorules.heuristics import create_heuristic

HeuristicLike: TypeAlias = Union[Heuristic, HeuristicType, str, QualityMeasure]

_logger: Logger = getLogger(__name__)


class AlgorithmParams(TypedDict):
    heuristic: HeuristicLike
    candidate_selector: CandidateSelectorType
    rule_filter: RuleFilterType
    beam_width: int
    filter_threshold: float
    rule_initializer: RuleInitializerType
    rule_refiner: RuleRefinerType
    nominal_compare_mode: NominalCompareMode
    stopping_criterion: StoppingCriterionType
    stopping_threshold: float
    rule_stop: RuleStopType
    weight_model: WeightModelType
    post_processor: PostProcessorType
    optimizations: int
    use_abridgment: bool
    selection_heuristic: Optional[HeuristicLike]
    growing_set_size: float
    min_no: int
    strictly_greater: bool
    ordered: bool
    uncovered_fraction: float
    random_state: Optional[int]


DEFAULT_PARAMS_VALUES: AlgorithmParams = AlgorithmParams(
    heuristic=HeuristicType.M_ESTIMATE,
    candidate_selector=CandidateSelectorType.SELECT_ALL,
    rule_filter=RuleFilterType.BEAM_WIDTH,
    beam_width=1,
    filter_threshold=0.9,
    rule_initializer=RuleInitializerType.TOP_DOWN,
    rule_refiner=RuleRefinerType.TOP_DOWN,
    nominal_compare_mode=NominalCompareMode.EQUALITY,
    stopping_criterion=StoppingCriterionType.NO_NEGATIVES_COVERED,
    stopping_threshold=0.9,
    rule_stop=RuleStopType.COVERAGE,
    weight_model=WeightModelType.NOOP,
    post_processor=PostProcessorType.NOOP,
    optimizations=2,
    use_abridgment=False,
    selection_heuristic=None,
    growing_set_size=1.0,
    min_no=1,
    strictly_greater=False,
    ordered=True,
    uncovered_fraction=0.05,
    random_state=None,
)

RIPPER_PARAMS_VALUES: AlgorithmParams = AlgorithmParams(
    DEFAULT_PARAMS_VALUES,
    heuristic=HeuristicType.FOIL_GAIN,
    stopping_criterion=StoppingCriterionType.NO_NEGATIVES_COVERED,
    rule_stop=RuleStopType.MDL,
    post_processor=PostProcessorType.RIPPER,
    growing_set_size=2.0 / 3.0,
    min_no=2,
)


class MultiLabelAlgorithmParams(TypedDict):
    heuristic: HeuristicLike
    beta: float
    evaluation_strategy: EvaluationStrategyType
    averaging_strategy: AveragingStrategyType
    beam_width: Union[int, float]
    predict_zero: bool
    use_bottom_up: bool
    accept_equal: bool
    n_step: int
    use_random: bool
    numeric_generalization: str
    skip_threshold: float
    readd_all_covered: bool
    cover_all_labels: bool
    decision_list: bool
    uncovered_fraction: float
    random_state: Optional[int]


DEFAULT_MULTILABEL_PARAMS_VALUES: MultiLabelAlgorithmParams = MultiLabelAlgorithmParams(
    heuristic=HeuristicType.F_MEASURE,
    beta=0.5,
    evaluation_strategy=EvaluationStrategyType.RULE_DEPENDENT,
    averaging_strategy=AveragingStrategyType.MICRO,
    beam_width=1,
    predict_zero=True,
    use_bottom_up=False,
    accept_equal=True,
    n_step=1,
    use_random=False,
    numeric_generalization="random",
    skip_threshold=0.0,
    readd_all_covered=False,
    cover_all_labels=False,
    decision_list=False,
    uncovered_fraction=0.05,
    random_state=None,
)

NUMERIC_GENERALIZATIONS: tuple[str, ...] = ("random", "nearest")

_COMPONENT_TYPES: dict[str, type] = {
    "candidate_selector": CandidateSelectorType,
    "rule_filter": RuleFilterType,
    "rule_initializer": RuleInitializerType,
    "rule_refiner": RuleRefinerType,
    "nominal_compare_mode": NominalCompareMode,
    "stopping_criterion": StoppingCriterionType,
    "rule_stop": RuleStopType,
    "weight_model": WeightModelType,
    "post_processor": PostProcessorType,
}


def _check_fraction(params: dict, name: str):
    value = params[name]
    if not isinstance(value, Real) or not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be in [0, 1], got: {value}")


def validate_params(params: AlgorithmParams) -> AlgorithmParams:
    """Checks parameters of single label algorithms. Component types and
    heuristics are resolved here, so that invalid names are reported before any
    data is read.

    Raises:
        ConfigurationError: on invalid parameter value

    Returns:
        AlgorithmParams: copy of parameters, :code:`min_no` lower than 1 is set to 1
    """
    new_params: AlgorithmParams = params.copy()
    growing_set_size = params["growing_set_size"]
    if not isinstance(growing_set_size, Real) or not 0.0 < growing_set_size <= 1.0:
        raise ConfigurationError(
            f"growing_set_size must be in (0, 1], got: {growing_set_size}"
        )
    _check_fraction(params, "uncovered_fraction")
    if params["optimizations"] < 0:
        raise ConfigurationError(
            f"optimizations must not be negative, got: {params['optimizations']}"
        )
    for name, component_type in _COMPONENT_TYPES.items():
        parse_component_type(component_type, params[name])
    create_heuristic(params["heuristic"])
    if params["selection_heuristic"] is not None:
        create_heuristic(params["selection_heuristic"])
    if params["min_no"] < 1:
        _logger.warning("min_no was %s but has to be >= 1, it was set to 1", params["min_no"])
        new_params["min_no"] = 1
    return new_params


def create_multilabel_heuristic(params: MultiLabelAlgorithmParams) -> Heuristic:
    """Returns F-measure with given beta, or the configured heuristic when beta
    is -1.

    Raises:
        ConfigurationError: if the heuristic is unknown or it is neither
            decomposable nor anti-monotonic with configured evaluation and
            averaging strategies
    """
    if params["beta"] != -1:
        heuristic: Heuristic = create_heuristic(
            HeuristicType.F_MEASURE, beta=params["beta"]
        )
    else:
        heuristic = create_heuristic(params["heuristic"])
    try:
        evaluation_strategy = EvaluationStrategyType(params["evaluation_strategy"])
        averaging_strategy = AveragingStrategyType(params["averaging_strategy"])
    except ValueError as error:
        raise ConfigurationError(str(error)) from error
    if heuristic.characteristic(evaluation_strategy, averaging_strategy) is None:
        raise ConfigurationError(
            f"Heuristic {heuristic} is neither decomposable nor anti-monotonic "
            f"with evaluation strategy {evaluation_strategy.value} and averaging "
            f"strategy {averaging_strategy.value}"
        )
    return heuristic


def validate_multilabel_params(
    params: MultiLabelAlgorithmParams,
) -> MultiLabelAlgorithmParams:
    """Checks parameters of multi-label algorithms. Beam width may be given as
    a number of attributes (int) or as their fraction (float from [0, 1]), it is
    checked against the data once it is known.

    Raises:
        ConfigurationError: on invalid parameter value
    """
    _check_fraction(params, "uncovered_fraction")
    beam_width = params["beam_width"]
    if isinstance(beam_width, bool) or not isinstance(beam_width, Real):
        raise ConfigurationError(f"beam_width must be a number, got: {beam_width}")
    if isinstance(beam_width, Integral) and beam_width < 1:
        raise ConfigurationError(f"beam_width must be at least 1, got: {beam_width}")
    if not isinstance(beam_width, Integral) and not 0.0 <= beam_width <= 1.0:
        raise ConfigurationError(f"beam_width fraction must be in [0, 1], got: {beam_width}")
    if params["n_step"] < 1:
        raise ConfigurationError(f"n_step must be at least 1, got: {params['n_step']}")
    if params["numeric_generalization"] not in NUMERIC_GENERALIZATIONS:
        raise ConfigurationError(
            f"numeric_generalization must be one of {NUMERIC_GENERALIZATIONS}, "
            f"got: {params['numeric_generalization']}"
        )
    create_multilabel_heuristic(params)
    return params.copy()


def adjust_params_on_dataset(
    params: Union[AlgorithmParams, MultiLabelAlgorithmParams],
    y: Union[pd.Series, pd.DataFrame],
    problem_type: ProblemTypes,
) -> Union[AlgorithmParams, MultiLabelAlgorithmParams]:
    """Lowers :code:`min_no` to the size of the minority class. Examples with
    missing class label are not counted.

    Raises:
        EmptyDatasetError: if no example has a known class label
    """
    if problem_type != ProblemTypes.CLASSIFICATION or "min_no" not in params:
        return params.copy()
    class_counts: pd.Series = y.dropna().value_counts()
    if class_counts.empty:
        raise EmptyDatasetError("No example with known class label")
    new_params: AlgorithmParams = params.copy()
    new_params["min_no"] = math.ceil(min(class_counts.min(), params["min_no"]))
    return new_params
