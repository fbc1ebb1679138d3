"""
Pydantic snapshot models describing the serialized form of numerics.

Snapshots are plain data: the runtime classes in this package convert to and
from them, and the snapshots handle validation and the camelCase dictionary
layout. Non-finite sample and scalar values travel as the string tokens from
:mod:`numhist.utils.encoding`.
"""

from typing import Any, Literal, Optional

from pydantic import ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from numhist.objects.diagnostics import Diagnostic
from numhist.objects.statistics import RunningStats
from numhist.utils.encoding import EncodedFloat, decode_float, encode_float
from numhist.utils.pydantic_utils import StandardBaseModel

__all__ = [
    "BinSnapshot",
    "HistogramSnapshot",
    "NumericSnapshot",
    "ScalarSnapshot",
    "SnapshotModel",
]


class SnapshotModel(StandardBaseModel):
    """
    Base for snapshot models, keyed by camelCase aliases when dumped with
    ``by_alias=True`` while still accepting the snake_case field names.
    """

    model_config = ConfigDict(
        extra="ignore",
        use_enum_values=True,
        validate_assignment=True,
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class BinSnapshot(SnapshotModel):
    min: float = Field(description="Lower bound of the bin range.")
    max: float = Field(description="Upper bound of the bin range.")
    count: int = Field(default=0, ge=0, description="Number of values in the bin.")
    diagnostics: list[Diagnostic] = Field(
        default_factory=list,
        description="Uniformly sampled exemplars of the values in the bin.",
    )


class NumericSnapshot(SnapshotModel):
    unit: str = Field(description="Token of the unit the values are measured in.")
    type: str = Field(description="Discriminator naming the numeric class.")


class ScalarSnapshot(NumericSnapshot):
    type: Literal["scalar"] = "scalar"
    value: EncodedFloat = Field(
        description="The value, or 'Infinity', '-Infinity' or 'NaN'."
    )


class HistogramSnapshot(NumericSnapshot):
    type: Literal["numeric"] = "numeric"
    min: float = Field(description="Lowest boundary of the central bins.")
    max: float = Field(description="Highest boundary of the central bins.")
    num_nans: int = Field(
        default=0, ge=0, description="Number of non-numeric samples added."
    )
    nan_diagnostics: list[Diagnostic] = Field(
        default_factory=list,
        description="Uniformly sampled exemplars of the non-numeric samples.",
    )
    running: Optional[RunningStats] = Field(
        default=None, description="Running statistics of the numeric samples."
    )
    summary_options: Optional[dict[str, Any]] = Field(
        default=None, description="Statistics reported by the summary."
    )
    sample_values: list[EncodedFloat] = Field(
        default_factory=list,
        description="Uniformly sampled raw values, including NaN samples.",
    )
    max_num_sample_values: int = Field(
        gt=0, description="Capacity of the sample values reservoir."
    )
    underflow_bin: BinSnapshot
    central_bins: list[BinSnapshot]
    overflow_bin: BinSnapshot

    @field_validator("running", mode="before")
    @classmethod
    def _running_validator(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value

        return {
            key: decode_float(val) if isinstance(val, str) else val
            for key, val in value.items()
        }

    @field_serializer("running")
    def _running_serializer(
        self, running: Optional[RunningStats]
    ) -> Optional[dict[str, Any]]:
        # an infinite sample makes sum, mean and max infinite
        if running is None:
            return None

        return {
            key: val if val is None else encode_float(val)
            for key, val in running.model_dump().items()
        }
