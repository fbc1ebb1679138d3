"""
Diagnostic payloads attached to individual samples as exemplars.

Histograms never look inside a diagnostic; they only keep a bounded, uniformly
sampled subset of them per bin and serialize them. Each concrete diagnostic is
a pydantic model tagged by its ``type`` field and registered on
:class:`Diagnostic`, which makes ``Diagnostic.model_validate`` decode a payload
into the registered class for its tag. New diagnostic types are added by
registering a subclass:
::
    @Diagnostic.register("related_url")
    class RelatedUrlDiagnostic(Diagnostic):
        type: Literal["related_url"] = "related_url"
        url: str
"""

from __future__ import annotations

from typing import Any, ClassVar, Literal

from pydantic import Field

from numhist.utils.pydantic_utils import PydanticClassRegistryMixin

__all__ = ["BreakdownDiagnostic", "Diagnostic", "GenericDiagnostic"]


class Diagnostic(PydanticClassRegistryMixin["Diagnostic"]):
    """
    Base class for every exemplar payload, discriminated by ``type``.
    """

    schema_discriminator: ClassVar[str] = "type"

    type: str = Field(description="Tag naming the registered diagnostic class.")

    @classmethod
    def __pydantic_schema_base_type__(cls) -> type[Diagnostic]:
        if cls.__name__ == "Diagnostic":
            return cls

        return Diagnostic

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Diagnostic:
        """
        :param data: A payload produced by :meth:`to_dict`.
        :return: An instance of the class registered for ``data["type"]``.
        :raises ValueError: If the type tag is not registered.
        """
        if not Diagnostic.is_registered(data.get("type")):
            raise ValueError(f"Unrecognized diagnostic type: {data.get('type')!r}")

        return Diagnostic.model_validate(data)


@Diagnostic.register("generic")
class GenericDiagnostic(Diagnostic):
    """
    Wraps any JSON compatible value, e.g. a trace id or a request url.
    """

    type: Literal["generic"] = "generic"
    value: Any = Field(default=None, description="The wrapped value.")


@Diagnostic.register("breakdown")
class BreakdownDiagnostic(Diagnostic):
    """
    A named breakdown of a sample into numeric parts, e.g. phases of a request.
    """

    type: Literal["breakdown"] = "breakdown"
    values: dict[str, float] = Field(
        default_factory=dict, description="Value of each named part."
    )
