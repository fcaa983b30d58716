from ._model import MultiLabelSeCoClassifier
from .covering import MulticlassCovering
from .evaluation import MultiLabelEvaluation
