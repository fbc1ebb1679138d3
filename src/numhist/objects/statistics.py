import math
import sys
from typing import Optional

from pydantic import Field

from numhist.utils.pydantic_utils import StandardBaseModel

__all__ = ["RunningStats"]

FLOAT_MAX = sys.float_info.max


class RunningStats(StandardBaseModel):
    """
    Running statistics over a stream of values computed in O(1) per value.
    1.  The mean and the sum of squared deviations use Welford's algorithm.
    2.  min and max start at the opposite ends of the float range.
    3.  meanlogs tracks the mean of the logarithms for the geometric mean and
        becomes None once a value <= 0 has been added.
    4.  Two instances merge associatively into a new instance.
    """

    count: int = Field(
        default=0,
        description="The number of values added to the running statistics.",
    )
    mean: float = Field(
        default=0.0,
        description="The arithmetic mean of the values added so far.",
    )
    max: float = Field(
        default=-FLOAT_MAX,
        description="The largest value added so far.",
    )
    min: float = Field(
        default=FLOAT_MAX,
        description="The smallest value added so far.",
    )
    sum: float = Field(
        default=0.0,
        description="The total sum of the values added to the running statistics.",
    )
    squared_deviations: float = Field(
        default=0.0,
        description="The sum of squared deviations from the mean (Welford's M2).",
    )
    meanlogs: Optional[float] = Field(
        default=0.0,
        description=(
            "The mean of the natural logarithms of the values added, or None "
            "if any value was not strictly positive."
        ),
    )

    @property
    def variance(self) -> Optional[float]:
        """
        :return: The sample variance with Bessel's correction applied,
            None if no values were added.
        """
        if self.count == 0:
            return None
        if self.count == 1:
            return 0.0
        return self.squared_deviations / (self.count - 1)

    @property
    def stddev(self) -> Optional[float]:
        """
        :return: The sample standard deviation, None if no values were added.
        """
        if self.count == 0:
            return None
        return math.sqrt(self.variance)

    @property
    def geometric_mean(self) -> Optional[float]:
        if self.count == 0 or self.meanlogs is None:
            return None
        return math.exp(self.meanlogs)

    def add(self, value: float) -> None:
        """
        Update the running statistics with a new value.

        :param value: The new value to add to the running statistics.
        """
        value = float(value)
        count = self.count + 1
        total = self.sum + value

        if value <= 0.0:
            meanlogs = None
        elif self.meanlogs is not None:
            meanlogs = self.meanlogs + (math.log(value) - self.meanlogs) / count
        else:
            meanlogs = None

        if count == 1:
            mean = value
            squared_deviations = 0.0
        else:
            old_mean = self.mean
            # the incremental update breaks down once the mean is infinite
            mean = (
                total / count
                if math.isinf(old_mean)
                else old_mean + (value - old_mean) / count
            )
            squared_deviations = self.squared_deviations + (value - old_mean) * (
                value - mean
            )

        self.count = count
        self.sum = total
        self.max = max(self.max, value)
        self.min = min(self.min, value)
        self.mean = mean
        self.squared_deviations = squared_deviations
        self.meanlogs = meanlogs

    def merge(self, other: "RunningStats") -> "RunningStats":
        """
        Combine two running statistics without modifying either of them.

        :param other: The statistics to combine with.
        :return: A new instance describing both streams.
        """
        count = self.count + other.count

        if count == 0:
            return RunningStats()

        if self.count == 0:
            return other.model_copy()

        if other.count == 0:
            return self.model_copy()

        delta_mean = self.mean - other.mean
        squared_deviations = (
            self.squared_deviations
            + other.squared_deviations
            + self.count * other.count * delta_mean * delta_mean / count
        )
        meanlogs = (
            None
            if self.meanlogs is None or other.meanlogs is None
            else (self.count * self.meanlogs + other.count * other.meanlogs) / count
        )

        return RunningStats(
            count=count,
            mean=(self.sum + other.sum) / count,
            max=max(self.max, other.max),
            min=min(self.min, other.min),
            sum=self.sum + other.sum,
            squared_deviations=squared_deviations,
            meanlogs=meanlogs,
        )
