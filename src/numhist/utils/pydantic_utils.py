"""
Pydantic base models shared across numhist.

Provides the standard model configuration used for settings-like objects and
snapshots, plus a registry-backed polymorphic base that validates a payload
into the subclass named by its discriminator field.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, ClassVar, Generic, TypeVar

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, GetCoreSchemaHandler
from pydantic_core import CoreSchema, core_schema

from numhist.utils.registry import RegistryMixin

__all__ = [
    "PydanticClassRegistryMixin",
    "ReloadableBaseModel",
    "StandardBaseModel",
]


BaseModelT = TypeVar("BaseModelT", bound=BaseModel)
T = TypeVar("T", bound=BaseModel)


class ReloadableBaseModel(BaseModel):
    """
    Base model whose validation schema can be rebuilt after new subclasses
    are registered.
    """

    model_config = ConfigDict(
        extra="ignore",
        use_enum_values=True,
        validate_assignment=True,
        from_attributes=True,
        arbitrary_types_allowed=True,
    )

    @classmethod
    def reload_schema(cls) -> None:
        """
        Force a rebuild of the model schema to pick up registry changes.
        """
        cls.model_rebuild(force=True)


class StandardBaseModel(BaseModel):
    """
    Base Pydantic model with the standard numhist configuration.

    Example:
    ::
        class MyModel(StandardBaseModel):
            name: str
            value: int = 42

        MyModel.from_file(Path("model.yaml"), overrides={"value": 7})
    """

    model_config = ConfigDict(
        extra="ignore",
        use_enum_values=True,
        validate_assignment=True,
        from_attributes=True,
    )

    @classmethod
    def from_file(cls: type[T], filename: Path, overrides: dict | None = None) -> T:
        """
        Create a new instance of the model from a json or yaml file.

        :param filename: Path to a ``.json`` file; anything else is read as yaml.
        :param overrides: Optional values that replace those read from the file.
        :raises ValueError: If the file cannot be parsed.
        """
        try:
            with filename.open() as f:
                if str(filename).endswith(".json"):
                    data = json.load(f)
                else:  # Assume everything else is yaml
                    data = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            logger.error(f"Failed to parse {filename} as type {cls.__name__}")
            raise ValueError(f"Error when parsing file: {filename}") from e

        data.update(overrides or {})
        return cls.model_validate(data)


class PydanticClassRegistryMixin(
    ReloadableBaseModel, RegistryMixin[type[BaseModelT]], ABC, Generic[BaseModelT]
):
    """
    Polymorphic Pydantic model validated through a tagged union of the
    registered subclasses.

    Example:
    ::
        class Diagnostic(PydanticClassRegistryMixin["Diagnostic"]):
            schema_discriminator: ClassVar[str] = "type"
            type: str

            @classmethod
            def __pydantic_schema_base_type__(cls) -> type["Diagnostic"]:
                if cls.__name__ == "Diagnostic":
                    return cls
                return Diagnostic

        @Diagnostic.register("generic")
        class GenericDiagnostic(Diagnostic):
            type: Literal["generic"] = "generic"
            value: Any = None

        Diagnostic.model_validate({"type": "generic", "value": 1})

    :cvar schema_discriminator: Field name used for polymorphic type discrimination
    """

    schema_discriminator: ClassVar[str] = "model_type"

    @classmethod
    def register_decorator(
        cls, clazz: type[BaseModelT], name: str | list[str] | None = None
    ) -> type[BaseModelT]:
        """
        Register a Pydantic model class and rebuild the polymorphic schema.

        :param clazz: Pydantic model class to register in the polymorphic hierarchy
        :param name: Registry identifier for the class. Uses class name if None
        :return: The registered class unchanged for decorator chaining
        :raises TypeError: If clazz is not a Pydantic BaseModel subclass
        """
        if not issubclass(clazz, BaseModel):
            raise TypeError(
                f"Cannot register {clazz.__name__} as it is not a subclass of "
                "Pydantic BaseModel"
            )

        dec_clazz = super().register_decorator(clazz, name=name)
        cls.reload_schema()

        return dec_clazz

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        """
        Build a tagged union over the registered subclasses when validating
        the base type, or the plain model schema for a concrete subclass.
        """
        if source_type == cls.__pydantic_schema_base_type__():
            if not cls.registry:
                return cls.__pydantic_generate_base_schema__(handler)

            choices = {
                name: handler(model_class) for name, model_class in cls.registry.items()
            }

            return core_schema.tagged_union_schema(
                choices=choices,
                discriminator=cls.schema_discriminator,
            )

        return handler(cls)

    @classmethod
    @abstractmethod
    def __pydantic_schema_base_type__(cls) -> type[BaseModelT]:
        """
        :return: Base class type for the polymorphic model hierarchy
        """
        ...

    @classmethod
    def __pydantic_generate_base_schema__(
        cls, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        """
        Fallback schema used before any subclass has been registered.
        """
        return core_schema.any_schema()
