"""
numhist summarizes large streams of numeric samples into compact, mergeable
histograms that answer percentile queries and detect significant differences
between two populations.
"""

from .config import (
    HistogramSettings,
    LoggingSettings,
    Settings,
    print_config,
    reload_settings,
    settings,
)
from .exceptions import (
    BinLayoutError,
    IncompatibleBinsError,
    IncompatibleUnitsError,
    InvariantViolationError,
    NumericError,
    PercentileError,
)
from .histogram import (
    Histogram,
    HistogramBin,
    HistogramBuilder,
    NumericBase,
    Scalar,
    Significance,
    SummaryOptions,
)
from .logger import configure_logger, logger
from .objects import (
    BreakdownDiagnostic,
    Diagnostic,
    GenericDiagnostic,
    Range,
    RunningStats,
)
from .units import ImprovementDirection, Unit

__all__ = [
    "BinLayoutError",
    "BreakdownDiagnostic",
    "Diagnostic",
    "GenericDiagnostic",
    "Histogram",
    "HistogramBin",
    "HistogramBuilder",
    "HistogramSettings",
    "ImprovementDirection",
    "IncompatibleBinsError",
    "IncompatibleUnitsError",
    "InvariantViolationError",
    "LoggingSettings",
    "NumericBase",
    "NumericError",
    "PercentileError",
    "Range",
    "RunningStats",
    "Scalar",
    "Settings",
    "Significance",
    "SummaryOptions",
    "Unit",
    "configure_logger",
    "logger",
    "print_config",
    "reload_settings",
    "settings",
]
