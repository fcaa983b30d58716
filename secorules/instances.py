"""
Weighted tabular examples the rule learners operate on.

Every attribute value is stored as a float: numerical values as they are and
nominal values as indices into the attribute's ordered tuple of values. Missing
values are represented by NaN.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from logging import Logger
from logging import getLogger
from typing import Optional
from typing import Union

import numpy as np
import pandas as pd

from secorules import _helpers
from secorules.exceptions import EmptyDatasetError
from secorules.exceptions import UnassignedClassError

LABEL_VALUES: tuple[str, ...] = ("0", "1")


class AttributeType(Enum):
    NOMINAL = "nominal"
    NUMERIC = "numeric"


@dataclass(frozen=True)
class Attribute:
    name: str
    index: int
    type: AttributeType
    values: tuple[str, ...] = ()

    @property
    def is_nominal(self) -> bool:
        return self.type == AttributeType.NOMINAL

    @property
    def is_numeric(self) -> bool:
        return self.type == AttributeType.NUMERIC

    @property
    def num_values(self) -> int:
        return len(self.values)

    def format_value(self, value: float) -> str:
        if np.isnan(value):
            return "?"
        if self.is_nominal:
            return self.values[int(value)]
        return f"{value:g}"

    def encode_column(self, column: pd.Series) -> np.ndarray:
        """Encodes raw column values into floats. Unknown nominal values are
        encoded as missing.

        Args:
            column (pd.Series): raw values

        Returns:
            np.ndarray: encoded values
        """
        if self.is_numeric:
            return pd.to_numeric(column, errors="coerce").to_numpy(dtype=float)
        mapping: dict[str, int] = {value: i for i, value in enumerate(self.values)}
        return np.array(
            [
                np.nan if pd.isna(value) else mapping.get(str(value), np.nan)
                for value in column
            ],
            dtype=float,
        )


def _nominal_attribute(name: str, index: int, column: pd.Series) -> Attribute:
    values: tuple[str, ...] = tuple(str(v) for v in _helpers.sorted_unique(column))
    return Attribute(name=str(name), index=index, type=AttributeType.NOMINAL, values=values)


class Instances:
    """Set of weighted examples. Class attribute (single label problems) or label
    attributes (multi-label problems) are stored as regular nominal columns of the
    data matrix.

    Multi-label working copies keep original label values in :code:`truth`
    matrix, while label columns of :code:`X` hold labels predicted so far.
    """

    def __init__(
        self,
        attributes: list[Attribute],
        X: np.ndarray,
        weights: Optional[np.ndarray] = None,
        class_index: Optional[int] = None,
        label_indices: Optional[list[int]] = None,
        truth: Optional[np.ndarray] = None,
        ids: Optional[np.ndarray] = None,
    ):
        self.attributes: list[Attribute] = list(attributes)
        self.X: np.ndarray = np.asarray(X, dtype=float)
        n: int = self.X.shape[0]
        self.weights: np.ndarray = (
            np.ones(n) if weights is None else np.asarray(weights, dtype=float)
        )
        self.class_index: Optional[int] = class_index
        self.label_indices: list[int] = list(label_indices) if label_indices else []
        self.truth: Optional[np.ndarray] = truth
        self.ids: np.ndarray = np.arange(n) if ids is None else np.asarray(ids)

    @classmethod
    def from_dataframe(
        cls,
        X: pd.DataFrame,
        y: Optional[Union[pd.Series, pd.DataFrame]] = None,
    ) -> Instances:
        """Builds instances from a dataframe. Columns of :code:`object`,
        :code:`category` or :code:`bool` dtype are treated as nominal, all others as
        numerical.

        Args:
            X (pd.DataFrame): dataset
            y (Optional[Union[pd.Series, pd.DataFrame]], optional): label column
                or 0/1 label columns for multi-label problems. Examples with a
                missing label are dropped. Defaults to None.

        Raises:
            EmptyDatasetError: if labels are given but none of them is known

        Returns:
            Instances: instances
        """
        logger: Logger = getLogger(cls.__name__)
        X = X.reset_index(drop=True)
        if y is not None:
            y = y.reset_index(drop=True)
            missing: pd.Series = (
                y.isna() if isinstance(y, pd.Series) else y.isna().any(axis=1)
            )
            if missing.any():
                logger.warning(
                    "Dropping %d examples with missing class label", int(missing.sum())
                )
                X = X[~missing].reset_index(drop=True)
                y = y[~missing].reset_index(drop=True)
            if len(y) == 0:
                raise EmptyDatasetError("No example with known class label")

        attributes: list[Attribute] = []
        columns: list[np.ndarray] = []
        nominal_indexes: set[int] = set(_helpers.get_nominal_indexes(X))
        for i, name in enumerate(X.columns):
            if i in nominal_indexes:
                attribute = _nominal_attribute(name, i, X.iloc[:, i])
            else:
                attribute = Attribute(name=str(name), index=i, type=AttributeType.NUMERIC)
            attributes.append(attribute)
            columns.append(attribute.encode_column(X.iloc[:, i]))

        class_index: Optional[int] = None
        label_indices: list[int] = []
        if isinstance(y, pd.Series):
            class_index = len(attributes)
            name = y.name if y.name is not None else "class"
            attribute = _nominal_attribute(name, class_index, y)
            attributes.append(attribute)
            columns.append(attribute.encode_column(y))
        elif isinstance(y, pd.DataFrame):
            for name in y.columns:
                attribute = Attribute(
                    name=str(name),
                    index=len(attributes),
                    type=AttributeType.NOMINAL,
                    values=LABEL_VALUES,
                )
                label_indices.append(attribute.index)
                attributes.append(attribute)
                columns.append(
                    (pd.to_numeric(y[name]).to_numpy(dtype=float) > 0).astype(float)
                )

        matrix: np.ndarray = (
            np.column_stack(columns) if columns else np.empty((len(X), 0))
        )
        return cls(
            attributes, matrix, class_index=class_index, label_indices=label_indices
        )

    def transform(self, X: pd.DataFrame) -> Instances:
        """Encodes new data using attributes of these instances. Class and label
        columns of the result are missing.

        Args:
            X (pd.DataFrame): dataset with the same feature columns

        Returns:
            Instances: encoded instances
        """
        X = X.reset_index(drop=True)
        matrix: np.ndarray = np.full((len(X), self.num_attributes), np.nan)
        for index in self.feature_indices:
            matrix[:, index] = self.attributes[index].encode_column(X.iloc[:, index])
        return Instances(
            self.attributes,
            matrix,
            class_index=self.class_index,
            label_indices=self.label_indices,
        )

    def __len__(self) -> int:
        return self.X.shape[0]

    @property
    def num_instances(self) -> int:
        return self.X.shape[0]

    @property
    def num_attributes(self) -> int:
        return len(self.attributes)

    def attribute(self, index: int) -> Attribute:
        return self.attributes[index]

    @property
    def feature_indices(self) -> list[int]:
        """Indices of attributes which are neither the class nor a label."""
        excluded: set[int] = set(self.label_indices)
        if self.class_index is not None:
            excluded.add(self.class_index)
        return [i for i in range(self.num_attributes) if i not in excluded]

    @property
    def class_attribute(self) -> Attribute:
        if self.class_index is None:
            raise UnassignedClassError("Instances have no class attribute assigned")
        return self.attributes[self.class_index]

    @property
    def class_values(self) -> np.ndarray:
        return self.X[:, self.class_attribute.index]

    @property
    def num_classes(self) -> int:
        return self.class_attribute.num_values

    def class_value(self, i: int) -> float:
        return float(self.class_values[i])

    def total_weight(self) -> float:
        return float(self.weights.sum())

    def positive_mask(self, class_value: float) -> np.ndarray:
        return self.class_values == class_value

    def count_instances(self, class_value: float) -> float:
        return float(self.weights[self.positive_mask(class_value)].sum())

    def contains_positive(self, class_value: float) -> bool:
        return bool(self.positive_mask(class_value).any())

    def class_counts(self) -> np.ndarray:
        return np.array(
            [self.count_instances(value) for value in range(self.num_classes)]
        )

    def order_classes(self) -> list[int]:
        """Returns class values sorted by ascending frequency."""
        counts: np.ndarray = self.class_counts()
        return [int(i) for i in np.argsort(counts, kind="stable")]

    def subset(self, selector: np.ndarray) -> Instances:
        """Returns a copy of selected examples.

        Args:
            selector (np.ndarray): boolean mask or array of row indices

        Returns:
            Instances: copy holding selected examples only
        """
        return Instances(
            self.attributes,
            self.X[selector],
            self.weights[selector],
            class_index=self.class_index,
            label_indices=self.label_indices,
            truth=None if self.truth is None else self.truth[selector],
            ids=self.ids[selector],
        )

    def copy(self) -> Instances:
        return self.subset(np.arange(self.num_instances))

    def concat(self, other: Instances) -> Instances:
        truth: Optional[np.ndarray] = None
        if self.truth is not None and other.truth is not None:
            truth = np.vstack([self.truth, other.truth])
        return Instances(
            self.attributes,
            np.vstack([self.X, other.X]),
            np.concatenate([self.weights, other.weights]),
            class_index=self.class_index,
            label_indices=self.label_indices,
            truth=truth,
            ids=np.concatenate([self.ids, other.ids]),
        )

    def stratify(self, growing_set_size: float, rng: np.random.Generator) -> Instances:
        """Reorders examples so that each of the :code:`round(1 / (1 - g))` folds
        holds the same class distribution. Class bags are taken from the smallest to
        the largest one and shuffled before being spread over folds.

        Args:
            growing_set_size (float): fraction of examples used for growing rules
            rng (np.random.Generator): random generator

        Returns:
            Instances: reordered copy
        """
        if self.class_index is None:
            return self
        folds: int = max(1, _helpers.round_half_up(1.0 / (1.0 - growing_set_size)))
        class_values: np.ndarray = self.class_values
        bags: list[np.ndarray] = [
            np.where(class_values == value)[0] for value in range(self.num_classes)
        ]
        bags.sort(key=len)
        bags = [rng.permutation(bag) for bag in bags]
        order: np.ndarray = (
            np.concatenate(bags) if bags else np.array([], dtype=int)
        ).astype(int)
        order = np.concatenate([order[k::folds] for k in range(folds)])
        return self.subset(order)

    def split(self, growing_set_size: float) -> tuple[Instances, Instances]:
        """Splits examples into growing and pruning sets keeping their order."""
        cut: int = int(self.num_instances * growing_set_size)
        return self.subset(np.arange(cut)), self.subset(
            np.arange(cut, self.num_instances)
        )

    def stratified_split(
        self, growing_set_size: float, rng: np.random.Generator
    ) -> tuple[Instances, Instances, Instances]:
        stratified: Instances = self.stratify(growing_set_size, rng)
        growing, pruning = stratified.split(growing_set_size)
        return stratified, growing, pruning

    def partition(self, num_folds: int) -> tuple[Instances, Instances]:
        cut: int = self.num_instances * (num_folds - 1) // num_folds
        return self.subset(np.arange(cut)), self.subset(
            np.arange(cut, self.num_instances)
        )

    def num_distinct_values(self, index: int) -> int:
        column: np.ndarray = self.X[:, index]
        return len(np.unique(column[~np.isnan(column)]))

    def sorted_order(self, index: int) -> np.ndarray:
        """Row order sorting examples by given attribute, missing values last."""
        return np.argsort(self.X[:, index], kind="stable")

    def mask_labels(self) -> Instances:
        """Returns a working copy whose label columns are missing. Original label
        values are kept in the :code:`truth` matrix of the copy.
        """
        working: Instances = self.copy()
        working.truth = self.X.copy()
        working.X[:, self.label_indices] = np.nan
        return working

    def true_values(self, index: int) -> np.ndarray:
        source: np.ndarray = self.X if self.truth is None else self.truth
        return source[:, index]

    def label_vectors(self) -> np.ndarray:
        source: np.ndarray = self.X if self.truth is None else self.truth
        return source[:, self.label_indices]
