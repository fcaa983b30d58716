"""
Pluggable parts of the separate-and-conquer algorithm. Each kind of component is
a closed set of strategies selected by an enum (or its string value).
"""
from enum import Enum
from typing import Optional
from typing import TypeVar
from typing import Union

from secorules.components._base import CandidateSelector
from secorules.components._base import PostProcessor
from secorules.components._base import RuleFilter
from secorules.components._base import RuleInitializer
from secorules.components._base import RuleRefiner
from secorules.components._base import RuleStoppingCriterion
from secorules.components._base import StoppingCriterion
from secorules.components._base import WeightModel
from secorules.components.filters import BeamWidthFilter
from secorules.components.filters import ChiSquareFilter
from secorules.components.filters import MultiRuleFilter
from secorules.components.initializers import RandomRuleInitializer
from secorules.components.initializers import TopDownRuleInitializer
from secorules.components.postprocessors import NoOpPostProcessor
from secorules.components.postprocessors import RipperPostProcessor
from secorules.components.refiners import BidirectionalRefiner
from secorules.components.refiners import BottomUpRefiner
from secorules.components.refiners import NominalCompareMode
from secorules.components.refiners import TopDownRefiner
from secorules.components.selectors import SelectAllCandidatesSelector
from secorules.components.stopping import CoverageRuleStop
from secorules.components.stopping import DefaultRuleAndCoverageRuleStop
from secorules.components.stopping import LikelihoodRatio
from secorules.components.stopping import MDLRuleStop
from secorules.components.stopping import NoNegativesCoveredStop
from secorules.components.stopping import NoOpRuleStop
from secorules.components.stopping import NoOpStop
from secorules.components.weights import NoOpWeight
from secorules.components.weights import WeightNegativeToThePower
from secorules.components.weights import WeightPerIteration
from secorules.exceptions import ConfigurationError
from secorules.heuristics import Heuristic


class CandidateSelectorType(str, Enum):
    SELECT_ALL = "select_all"


class RuleFilterType(str, Enum):
    BEAM_WIDTH = "beam_width"
    CHI_SQUARE = "chi_square"
    # chi square filter followed by beam width filter
    MULTI = "multi"


class RuleInitializerType(str, Enum):
    TOP_DOWN = "top_down"
    RANDOM = "random"


class RuleRefinerType(str, Enum):
    TOP_DOWN = "top_down"
    BOTTOM_UP = "bottom_up"
    BIDIRECTIONAL = "bidirectional"


class RuleStopType(str, Enum):
    COVERAGE = "coverage"
    DEFAULT_RULE_AND_COVERAGE = "default_rule_and_coverage"
    MDL = "mdl"
    NOOP = "noop"


class StoppingCriterionType(str, Enum):
    NO_NEGATIVES_COVERED = "no_negatives_covered"
    LIKELIHOOD_RATIO = "likelihood_ratio"
    NOOP = "noop"


class WeightModelType(str, Enum):
    NOOP = "noop"
    PER_ITERATION = "per_iteration"
    NEGATIVE_TO_THE_POWER = "negative_to_the_power"


class PostProcessorType(str, Enum):
    NOOP = "noop"
    RIPPER = "ripper"


EnumT = TypeVar("EnumT", bound=Enum)


def parse_component_type(enum_type: type[EnumT], value: Union[EnumT, str]) -> EnumT:
    try:
        return enum_type(value)
    except ValueError as error:
        allowed: list[str] = [item.value for item in enum_type]
        raise ConfigurationError(
            f"Unknown {enum_type.__name__} value: {value}, allowed values are: "
            f"{allowed}"
        ) from error


def create_candidate_selector(
    selector: Union[CandidateSelectorType, str]
) -> CandidateSelector:
    parse_component_type(CandidateSelectorType, selector)
    return SelectAllCandidatesSelector()


def create_rule_filter(
    rule_filter: Union[RuleFilterType, str],
    beam_width: int = 1,
    threshold: float = 0.9,
) -> RuleFilter:
    rule_filter = parse_component_type(RuleFilterType, rule_filter)
    if rule_filter == RuleFilterType.BEAM_WIDTH:
        return BeamWidthFilter(beam_width)
    if rule_filter == RuleFilterType.CHI_SQUARE:
        return ChiSquareFilter(threshold)
    return MultiRuleFilter([ChiSquareFilter(threshold), BeamWidthFilter(beam_width)])


def create_rule_initializer(
    initializer: Union[RuleInitializerType, str]
) -> RuleInitializer:
    initializer = parse_component_type(RuleInitializerType, initializer)
    if initializer == RuleInitializerType.RANDOM:
        return RandomRuleInitializer()
    return TopDownRuleInitializer()


def create_rule_refiner(
    refiner: Union[RuleRefinerType, str],
    nominal_compare_mode: Union[NominalCompareMode, str] = NominalCompareMode.EQUALITY,
) -> RuleRefiner:
    refiner = parse_component_type(RuleRefinerType, refiner)
    nominal_compare_mode = parse_component_type(NominalCompareMode, nominal_compare_mode)
    if refiner == RuleRefinerType.TOP_DOWN:
        return TopDownRefiner(nominal_compare_mode)
    if refiner == RuleRefinerType.BOTTOM_UP:
        return BottomUpRefiner()
    return BidirectionalRefiner(nominal_compare_mode)


def create_rule_stop(rule_stop: Union[RuleStopType, str]) -> RuleStoppingCriterion:
    return {
        RuleStopType.COVERAGE: CoverageRuleStop,
        RuleStopType.DEFAULT_RULE_AND_COVERAGE: DefaultRuleAndCoverageRuleStop,
        RuleStopType.MDL: MDLRuleStop,
        RuleStopType.NOOP: NoOpRuleStop,
    }[parse_component_type(RuleStopType, rule_stop)]()


def create_stopping_criterion(
    criterion: Union[StoppingCriterionType, str], threshold: float = 0.9
) -> StoppingCriterion:
    criterion = parse_component_type(StoppingCriterionType, criterion)
    if criterion == StoppingCriterionType.LIKELIHOOD_RATIO:
        return LikelihoodRatio(threshold)
    if criterion == StoppingCriterionType.NOOP:
        return NoOpStop()
    return NoNegativesCoveredStop()


def create_weight_model(weight_model: Union[WeightModelType, str]) -> WeightModel:
    return {
        WeightModelType.NOOP: NoOpWeight,
        WeightModelType.PER_ITERATION: WeightPerIteration,
        WeightModelType.NEGATIVE_TO_THE_POWER: WeightNegativeToThePower,
    }[parse_component_type(WeightModelType, weight_model)]()


def create_post_processor(
    post_processor: Union[PostProcessorType, str],
    optimizations: int = 2,
    use_abridgment: bool = False,
    selection_heuristic: Optional[Heuristic] = None,
) -> PostProcessor:
    post_processor = parse_component_type(PostProcessorType, post_processor)
    if post_processor == PostProcessorType.RIPPER:
        return RipperPostProcessor(optimizations, use_abridgment, selection_heuristic)
    return NoOpPostProcessor()


__all__ = [
    "CandidateSelectorType",
    "RuleFilterType",
    "RuleInitializerType",
    "RuleRefinerType",
    "RuleStopType",
    "StoppingCriterionType",
    "WeightModelType",
    "PostProcessorType",
    "NominalCompareMode",
    "parse_component_type",
    "create_candidate_selector",
    "create_rule_filter",
    "create_rule_initializer",
    "create_rule_refiner",
    "create_rule_stop",
    "create_stopping_criterion",
    "create_weight_model",
    "create_post_processor",
]
