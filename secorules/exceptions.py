"""Exceptions raised by the rule learning algorithms."""


class SeCoError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(SeCoError, ValueError):
    """Raised when an algorithm is configured with invalid hyperparameters or
    with a combination of them which cannot be used on given data.
    """


class UnassignedClassError(SeCoError):
    """Raised when class values are requested from instances having no class
    attribute assigned. It is distinct from a missing class value.
    """


class EmptyDatasetError(SeCoError):
    """Raised when no training example is left after examples with missing
    class label were dropped.
    """
