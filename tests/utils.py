import os
import pathlib
from typing import Union

import pandas as pd

dir_path: pathlib.Path = pathlib.Path(os.path.dirname(os.path.realpath(__file__)))

LABEL_PREFIX: str = "label_"


def read_dataset(
    problem_type: str, dataset_name: str
) -> tuple[
    pd.DataFrame, Union[pd.Series, pd.DataFrame], pd.DataFrame, Union[pd.Series, pd.DataFrame]
]:
    base_path: pathlib.Path = dir_path / "datasets" / problem_type / dataset_name
    df_train: pd.DataFrame = pd.read_csv(base_path / "train.csv")
    df_test: pd.DataFrame = pd.read_csv(base_path / "test.csv")

    # multi-label datasets keep 0/1 label columns prefixed with "label_"
    if problem_type == "multilabel":
        label_columns: list[str] = [
            column for column in df_train.columns if column.startswith(LABEL_PREFIX)
        ]
        X_train, y_train = df_train.drop(label_columns, axis=1), df_train[label_columns]
        X_test, y_test = df_test.drop(label_columns, axis=1), df_test[label_columns]
        return X_train, y_train, X_test, y_test

    label_column: str = "class"
    X_train, y_train = df_train.drop(label_column, axis=1), df_train[label_column]
    X_test, y_test = df_test.drop(label_column, axis=1), df_test[label_column]
    return X_train, y_train, X_test, y_test
