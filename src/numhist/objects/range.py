from __future__ import annotations

from typing import Optional

__all__ = ["Range"]


class Range:
    """
    A closed numeric interval that starts out empty and grows as values are
    added to it.
    """

    __slots__ = ("_max", "_min")

    def __init__(self):
        self._min: Optional[float] = None
        self._max: Optional[float] = None

    @staticmethod
    def from_explicit_range(lower: float, upper: float) -> Range:
        rng = Range()
        rng._min = lower
        rng._max = upper
        return rng

    @property
    def empty(self) -> bool:
        return self._min is None

    @property
    def min(self) -> Optional[float]:
        return self._min

    @property
    def max(self) -> Optional[float]:
        return self._max

    @property
    def center(self) -> float:
        return (self._min + self._max) * 0.5

    @property
    def duration(self) -> float:
        if self.empty:
            return 0.0
        return self._max - self._min

    def add_value(self, value: float) -> None:
        if self.empty:
            self._min = value
            self._max = value
            return

        self._min = min(value, self._min)
        self._max = max(value, self._max)

    def add_range(self, other: Range) -> None:
        if other.empty:
            return
        self.add_value(other.min)
        self.add_value(other.max)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Range):
            return NotImplemented
        if self.empty or other.empty:
            return self.empty and other.empty
        return self._min == other._min and self._max == other._max

    def __hash__(self) -> int:
        return hash((self._min, self._max))

    def __repr__(self) -> str:
        if self.empty:
            return "Range(empty)"
        return f"Range({self._min}, {self._max})"
