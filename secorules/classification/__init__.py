from secorules.classification._model import RipperClassifier
from secorules.classification._model import SeCoClassifier

__all__ = ["SeCoClassifier", "RipperClassifier"]
