from __future__ import annotations

from typing import Any, Union

from numhist.histogram.base import NumericBase
from numhist.histogram.serialization import ScalarSnapshot
from numhist.units import Unit
from numhist.utils.encoding import decode_float, encode_float, is_real_number

__all__ = ["Scalar"]


@NumericBase.register("scalar")
class Scalar(NumericBase):
    """
    A single value with its unit. Contributes exactly one sample when merged
    with other numerics.

    :param unit: The unit of the value.
    :param value: The value, NaN and infinities included.
    :raises TypeError: If unit is not a Unit or value is not a number.
    """

    def __init__(self, unit: Unit, value: Union[int, float]):
        super().__init__(unit)

        if not is_real_number(value):
            raise TypeError(f"Expected value to be a number, got {type(value)}")

        self.value = value

    def sample_values_into(self, samples: list[Any]) -> None:
        samples.append(self.value)

    def to_dict(self) -> dict[str, Any]:
        # NaN and infinities are not valid JSON numbers
        return ScalarSnapshot(
            unit=self.unit.as_token(), value=encode_float(self.value)
        ).to_dict()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Scalar:  # type: ignore[override]
        snapshot = ScalarSnapshot.model_validate(data)

        return cls(Unit.from_token(snapshot.unit), decode_float(snapshot.value))

    def __str__(self) -> str:
        return self.unit.format(self.value)

    def __repr__(self) -> str:
        return f"Scalar({self.unit.name!r}, {self.value!r})"
