"""Exceptions raised by the dataset pipeline and the classifier harness."""


class WineQualityError(Exception):
    """Base class for all package errors."""


class ConfigurationError(WineQualityError, ValueError):
    """Invalid scalar parameter (target count, split fraction, network shape)."""


class SchemaError(WineQualityError, ValueError):
    """Missing or invalid column, or non-finite values where numbers are required."""


class ShapeMismatchError(WineQualityError, ValueError):
    """Feature or label matrix dimensions incompatible with the classifier config."""


class ModelStateError(WineQualityError, RuntimeError):
    """Operation not valid in the classifier's current lifecycle state."""
