"""
Registry system for mapping type tags to implementations.

Classes that mix in :class:`RegistryMixin` keep their own table from a
lowercase name to a registered object. Entries are added explicitly with the
``register`` decorator when the defining module is imported, and looked up by
name when decoding tagged payloads such as serialized numerics or diagnostics.
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar, Generic, TypeVar

__all__ = ["RegistryMixin", "RegistryObjT"]


RegistryObjT = TypeVar("RegistryObjT", bound=Any)
"""
Generic type variable for objects managed by the registry system.
"""


class RegistryMixin(Generic[RegistryObjT]):
    """
    Generic mixin for tagged object registries.

    Example:
    ::
        class NumericBase(RegistryMixin):
            pass

        @NumericBase.register("scalar")
        class Scalar(NumericBase):
            pass

        NumericBase.get_registered_object("scalar")  # Scalar

    :cvar registry: Dictionary mapping lowercase names to registered objects
    """

    registry: ClassVar[dict[str, RegistryObjT] | None] = None

    @classmethod
    def register(
        cls, name: str | list[str] | None = None
    ) -> Callable[[RegistryObjT], RegistryObjT]:
        """
        Decorator that registers an object with the registry.

        :param name: Optional name(s) to register the object under.
            If None, the object name is used as the registry key.
        :return: A decorator function that registers the decorated object.
        :raises ValueError: If name is not a string, list of strings, or None.
        """
        if name is not None and not isinstance(name, (str, list)):
            raise ValueError(
                "RegistryMixin.register() name must be a string, list of strings, "
                f"or None. Got {name}."
            )

        return lambda obj: cls.register_decorator(obj, name=name)

    @classmethod
    def register_decorator(
        cls, obj: RegistryObjT, name: str | list[str] | None = None
    ) -> RegistryObjT:
        """
        Add ``obj`` to the registry under one or more names.

        :param obj: The object to register.
        :param name: Optional name(s) to register the object under.
            If None, the object name is used as the registry key.
        :return: The registered object.
        :raises ValueError: If a name is already taken or is not a string.
        """
        if not name:
            name = obj.__name__

        if cls.registry is None:
            cls.registry = {}

        names = [name] if isinstance(name, str) else list(name)

        for register_name in names:
            if not isinstance(register_name, str):
                raise ValueError(
                    "RegistryMixin.register_decorator name must be a string or "
                    f"a list of strings. Got {register_name}."
                )

            if register_name.lower() in cls.registry:
                raise ValueError(
                    f"RegistryMixin.register_decorator cannot register {obj} "
                    f"as {register_name} because the name is already registered."
                )

            cls.registry[register_name.lower()] = obj

        return obj

    @classmethod
    def registered_objects(cls) -> tuple[RegistryObjT, ...]:
        """
        :return: Tuple of all registered objects.
        :raises ValueError: If nothing has been registered yet.
        """
        if cls.registry is None:
            raise ValueError(
                "RegistryMixin.registered_objects() must be called after "
                "registering objects with RegistryMixin.register()."
            )

        return tuple(cls.registry.values())

    @classmethod
    def is_registered(cls, name: Any) -> bool:
        """
        :param name: The name to check for registration.
        :return: True if an object is registered under the name.
        """
        if cls.registry is None or not isinstance(name, str):
            return False

        return name.lower() in cls.registry

    @classmethod
    def get_registered_object(cls, name: str) -> RegistryObjT | None:
        """
        :param name: The name of the registered object.
        :return: The registered object if found, None otherwise.
        """
        if cls.registry is None:
            return None

        return cls.registry.get(name.lower())
