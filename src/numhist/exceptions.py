"""
Exception types raised by histogram construction, merging and queries.

Every error is raised synchronously and leaves the operand unchanged.
User input errors derive from :class:`NumericError` (itself a ``ValueError``);
:class:`InvariantViolationError` signals corrupted internal state instead.
"""

__all__ = [
    "BinLayoutError",
    "IncompatibleBinsError",
    "IncompatibleUnitsError",
    "InvariantViolationError",
    "NumericError",
    "PercentileError",
]


class NumericError(ValueError):
    """Base exception type for histogram and scalar related errors."""


class IncompatibleUnitsError(NumericError):
    """Raised when merging or comparing numerics with different units."""


class IncompatibleBinsError(NumericError):
    """Raised when combining bins or histograms whose layouts differ."""


class BinLayoutError(NumericError):
    """Raised for invalid bin boundaries or non-contiguous bin layouts."""


class PercentileError(NumericError):
    """Raised when a percentile lies outside of [0, 1]."""


class InvariantViolationError(RuntimeError):
    """
    Raised when the bin counts of a histogram no longer agree with its
    recorded number of values. This indicates a defect, not bad input.
    """
