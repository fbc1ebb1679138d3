from .base import NumericBase, Significance
from .bin import HistogramBin
from .builder import FLOAT_MAX, HistogramBuilder
from .histogram import Histogram
from .scalar import Scalar
from .serialization import (
    BinSnapshot,
    HistogramSnapshot,
    NumericSnapshot,
    ScalarSnapshot,
)
from .summary import SummaryOptions, percent_from_string, percent_to_string

__all__ = [
    "FLOAT_MAX",
    "BinSnapshot",
    "Histogram",
    "HistogramBin",
    "HistogramBuilder",
    "HistogramSnapshot",
    "NumericBase",
    "NumericSnapshot",
    "Scalar",
    "ScalarSnapshot",
    "Significance",
    "SummaryOptions",
    "percent_from_string",
    "percent_to_string",
]
