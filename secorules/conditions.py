"""
Elementary conditions over a single attribute used both in rule bodies and
rule heads.
"""
from __future__ import annotations

import operator
from abc import ABC
from abc import abstractmethod
from typing import Callable

import numpy as np

from secorules.instances import Attribute


class Condition(ABC):
    """Condition comparing an attribute value with a fixed value. Its polarity
    :code:`cmp` selects one of the two operators available for the attribute
    type. A condition never covers a missing value.
    """

    OPERATORS: dict[bool, tuple[str, Callable]] = {}

    def __init__(self, attribute: Attribute, value: float, cmp: bool = True):
        self.attribute: Attribute = attribute
        self.value: float = float(value)
        self.cmp: bool = cmp

    @property
    def index(self) -> int:
        return self.attribute.index

    @property
    def operator_symbol(self) -> str:
        return self.OPERATORS[self.cmp][0]

    def covers_value(self, value: float) -> bool:
        if np.isnan(value):
            return False
        return bool(self.OPERATORS[self.cmp][1](value, self.value))

    def covers(self, row: np.ndarray) -> bool:
        return self.covers_value(row[self.attribute.index])

    def covered_mask(self, X: np.ndarray) -> np.ndarray:
        column: np.ndarray = X[:, self.attribute.index]
        # comparisons with NaN are always False for == <= >=, != needs a guard
        return self.OPERATORS[self.cmp][1](column, self.value) & ~np.isnan(column)

    @abstractmethod
    def copy(self) -> Condition:
        pass

    def sort_key(self) -> tuple:
        return (self.attribute.index, self.value, not self.cmp)

    def __lt__(self, other: Condition) -> bool:
        return self.sort_key() < other.sort_key()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Condition):
            return False
        return (
            self.attribute.index == other.attribute.index
            and self.value == other.value
            and self.cmp == other.cmp
        )

    def __hash__(self) -> int:
        return hash((self.attribute.index, self.value, self.cmp))

    def __str__(self) -> str:
        return (
            f"{self.attribute.name} {self.operator_symbol} "
            f"{self.attribute.format_value(self.value)}"
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self)})"


class NominalCondition(Condition):

    OPERATORS: dict[bool, tuple[str, Callable]] = {
        True: ("=", operator.eq),
        False: ("!=", operator.ne),
    }

    def copy(self) -> NominalCondition:
        return NominalCondition(self.attribute, self.value, self.cmp)


class NumericCondition(Condition):

    OPERATORS: dict[bool, tuple[str, Callable]] = {
        True: ("<=", operator.le),
        False: (">=", operator.ge),
    }

    def copy(self) -> NumericCondition:
        return NumericCondition(self.attribute, self.value, self.cmp)


def create_condition(attribute: Attribute, value: float, cmp: bool = True) -> Condition:
    if attribute.is_nominal:
        return NominalCondition(attribute, value, cmp)
    return NumericCondition(attribute, value, cmp)


def conjunction_mask(conditions: list[Condition], X: np.ndarray) -> np.ndarray:
    """Returns mask of rows covered by all given conditions."""
    mask: np.ndarray = np.ones(X.shape[0], dtype=bool)
    for condition in conditions:
        mask &= condition.covered_mask(X)
    return mask
