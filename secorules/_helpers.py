import numpy as np
import pandas as pd

NOMINAL_DTYPES: tuple[str, ...] = ("object", "category", "bool", "str", "string")


def _nominal_mask(df: pd.DataFrame) -> np.ndarray:
    return np.array(
        [str(dtype) in NOMINAL_DTYPES for dtype in df.dtypes], dtype=bool
    )


def get_nominal_indexes(df: pd.DataFrame) -> list[int]:
    """Return indices of nominal columns in given dataframe

    Args:
        df (pd.DataFrame): DataFrame

    Returns:
        list[int]: list of indices of nominal columns
    """
    nominal_indexes = np.where(_nominal_mask(df))[0]
    return nominal_indexes.tolist()


def get_numerical_indexes(df: pd.DataFrame) -> list[int]:
    """Return indices of numerical columns in given dataframe

    Args:
        df (pd.DataFrame): DataFrame

    Returns:
        list[int]: list of indices of numerical columns
    """
    numerical_indexes = np.where(np.logical_not(_nominal_mask(df)))[0]
    return numerical_indexes.tolist()


def sorted_unique(values: pd.Series) -> list:
    """Return sorted, distinct and non-missing values of given column. Values
    which cannot be compared with each other are sorted by their string form.

    Args:
        values (pd.Series): column

    Returns:
        list: distinct values
    """
    uniques: list = list(pd.unique(values.dropna()))
    try:
        return sorted(uniques)
    except TypeError:
        return sorted(uniques, key=str)


def round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))
