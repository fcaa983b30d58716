from __future__ import annotations

from decision_rules.core.coverage import Coverage


class ConfusionMatrix:
    """Weighted two class confusion matrix of a rule predicting a class value.

    Args:
        tp (float, optional): true positives. Defaults to 0.0.
        fp (float, optional): false positives. Defaults to 0.0.
        tn (float, optional): true negatives. Defaults to 0.0.
        fn (float, optional): false negatives. Defaults to 0.0.
    """

    def __init__(
        self, tp: float = 0.0, fp: float = 0.0, tn: float = 0.0, fn: float = 0.0
    ):
        self.tp: float = float(tp)
        self.fp: float = float(fp)
        self.tn: float = float(tn)
        self.fn: float = float(fn)

    def add_true_positives(self, weight: float):
        self.tp += weight

    def add_false_positives(self, weight: float):
        self.fp += weight

    def add_true_negatives(self, weight: float):
        self.tn += weight

    def add_false_negatives(self, weight: float):
        self.fn += weight

    def set_true_positives(self, weight: float):
        self.tp = float(weight)

    def set_false_positives(self, weight: float):
        self.fp = float(weight)

    def set_true_negatives(self, weight: float):
        self.tn = float(weight)

    def set_false_negatives(self, weight: float):
        self.fn = float(weight)

    def merge(self, other: ConfusionMatrix):
        self.tp += other.tp
        self.fp += other.fp
        self.tn += other.tn
        self.fn += other.fn

    @property
    def positives(self) -> float:
        return self.tp + self.fn

    @property
    def negatives(self) -> float:
        return self.fp + self.tn

    @property
    def predicted_positive(self) -> float:
        return self.tp + self.fp

    @property
    def predicted_negative(self) -> float:
        return self.tn + self.fn

    @property
    def correct(self) -> float:
        return self.tp + self.tn

    @property
    def incorrect(self) -> float:
        return self.fp + self.fn

    @property
    def total(self) -> float:
        return self.tp + self.fp + self.tn + self.fn

    @property
    def accuracy(self) -> float:
        total: float = self.total
        if total == 0:
            return 0.0
        return self.correct / total

    def copy(self) -> ConfusionMatrix:
        return ConfusionMatrix(self.tp, self.fp, self.tn, self.fn)

    def to_coverage(self) -> Coverage:
        """Converts matrix into coverage object used by `decision_rules` quality
        measures.

        Returns:
            Coverage: coverage with p=tp, n=fp, P=tp+fn, N=fp+tn
        """
        return Coverage(p=self.tp, n=self.fp, P=self.positives, N=self.negatives)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfusionMatrix):
            return False
        return (self.tp, self.fp, self.tn, self.fn) == (
            other.tp,
            other.fp,
            other.tn,
            other.fn,
        )

    def __str__(self) -> str:
        return f"[[{self.tp:g} {self.fp:g}][{self.fn:g} {self.tn:g}]]"

    def __repr__(self) -> str:
        return f"ConfusionMatrix(tp={self.tp}, fp={self.fp}, tn={self.tn}, fn={self.fn})"
