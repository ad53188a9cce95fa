from __future__ import annotations


class FSRSError(Exception):
    """Base class for failures reported by fsrs_core."""


class InvalidParameterVector(FSRSError, ValueError):
    pass


class InvalidRetention(FSRSError, ValueError):
    pass


class EmptyHistory(FSRSError, ValueError):
    pass


class NoTrainableData(FSRSError, ValueError):
    pass


class NumericalDivergence(FSRSError, ArithmeticError):
    """Optimizer produced a non-finite loss or gradient."""


__all__ = [
    "FSRSError",
    "InvalidParameterVector",
    "InvalidRetention",
    "EmptyHistory",
    "NoTrainableData",
    "NumericalDivergence",
]
