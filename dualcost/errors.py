"""Exceptions raised by the dual-cost engine."""


class DualCostError(Exception):
    """Base class for engine errors."""


class InvalidInputError(DualCostError, ValueError):
    """Negative or non-finite resource metrics, or non-positive prices."""


class ShapeMismatchError(DualCostError, ValueError):
    """Costs and their parallel identifier list differ in length."""
