from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field

from numhist.exceptions import PercentileError
from numhist.utils.pydantic_utils import StandardBaseModel

__all__ = [
    "SUMMARY_OPTION_ALIASES",
    "SummaryOptions",
    "percent_from_string",
    "percent_to_string",
]

SUMMARY_OPTION_ALIASES = {"mean": "avg", "stddev": "std"}


class SummaryOptions(StandardBaseModel):
    """
    Which statistics a histogram reports from get_summarized_scalars.
    Unknown option names are rejected.
    """

    model_config = ConfigDict(extra="forbid")

    count: bool = Field(default=True, description="Report the number of values.")
    sum: bool = Field(default=True, description="Report the sum of the values.")
    avg: bool = Field(default=True, description="Report the mean of the values.")
    std: bool = Field(
        default=True, description="Report the standard deviation of the values."
    )
    min: bool = Field(default=True, description="Report the smallest value.")
    max: bool = Field(default=True, description="Report the largest value.")
    nans: bool = Field(
        default=False, description="Report the number of non-numeric samples."
    )
    percentile: list[float] = Field(
        default_factory=list,
        description="Approximate percentiles to report, each within [0, 1].",
    )

    def customized(self, options: dict[str, Any]) -> SummaryOptions:
        """
        :param options: Options to change; ``mean`` and ``stddev`` are accepted
            as names for ``avg`` and ``std``.
        :return: A new instance with the given options replaced and every other
            option unchanged.
        :raises pydantic.ValidationError: If an option is unknown or invalid.
        """
        updates = {
            SUMMARY_OPTION_ALIASES.get(key, key): value
            for key, value in options.items()
        }

        return SummaryOptions.model_validate({**self.model_dump(), **updates})


def percent_to_string(percent: float) -> str:
    """
    Convert a percentile to the suffix used in summary names.
    0.x produces '0x0', 0.xx produces '0xx', 0.xxy produces '0xx_y',
    1.0 produces '100'.

    :raises PercentileError: If percent is outside of [0, 1] or cannot be
        written in plain decimal notation.
    """
    if not 0 <= percent <= 1:
        raise PercentileError(f"Percent must be within [0, 1], got {percent}")
    if percent == 0:
        return "000"
    if percent == 1:
        return "100"

    text = str(percent)
    if text[1] != ".":
        raise PercentileError(f"Unexpected percent: {percent}")

    text += "0" * max(4 - len(text), 0)
    if len(text) > 4:
        text = text[:4] + "_" + text[4:]

    return "0" + text[2:]


def percent_from_string(text: str) -> float:
    """
    Inverse of :func:`percent_to_string`, e.g. '099_5' produces 0.995.
    """
    return float(text[0] + "." + text[1:].replace("_", ""))
