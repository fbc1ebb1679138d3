from .diagnostics import BreakdownDiagnostic, Diagnostic, GenericDiagnostic
from .range import Range
from .statistics import RunningStats

__all__ = [
    "BreakdownDiagnostic",
    "Diagnostic",
    "GenericDiagnostic",
    "Range",
    "RunningStats",
]
