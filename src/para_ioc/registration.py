"""Registration entries and the key-to-entry registry.

This module defines :class:`ServiceRegistration` (the immutable description
of one service key) and :class:`ServiceRegistry` (the insertion-ordered store
the container reads from).
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from .constants import LIFECYCLE_SINGLETON, LIFECYCLES
from .exceptions import (
    ConstructionError,
    ContainerError,
    InvalidRegistrationError,
    ServiceNotRegisteredError,
)

Factory = Callable[..., Any]


@dataclass(frozen=True)
class ServiceRegistration:
    """Immutable description of how to build one service.

    Exactly one construction path is used: when both ``factory`` and
    ``implementation`` are given, the factory wins.

    Attributes:
        key: The service key.
        implementation: A class instantiated with the resolved dependencies
            as positional arguments.
        factory: A callable invoked with the resolved dependencies as
            positional arguments.
        lifecycle: ``'singleton'``, ``'scoped'`` or ``'transient'``.
        dependencies: Keys resolved, in order, before construction.

    Raises:
        InvalidRegistrationError: If ``key`` is empty, ``lifecycle`` is not
            a known lifecycle or a dependency key is not a string.
    """
    key: str
    implementation: Optional[type] = None
    factory: Optional[Factory] = None
    lifecycle: str = LIFECYCLE_SINGLETON
    dependencies: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.key, str) or not self.key:
            raise InvalidRegistrationError(str(self.key), "service key must be a non-empty string")
        if self.lifecycle not in LIFECYCLES:
            raise InvalidRegistrationError(
                self.key, f"unknown lifecycle '{self.lifecycle}' (expected one of {', '.join(LIFECYCLES)})"
            )
        if isinstance(self.dependencies, (str, bytes)):
            raise InvalidRegistrationError(self.key, "dependencies must be a sequence of keys, not a single string")
        deps = tuple(self.dependencies or ())
        for dep in deps:
            if not isinstance(dep, str) or not dep:
                raise InvalidRegistrationError(self.key, f"dependency keys must be non-empty strings, got {dep!r}")
        object.__setattr__(self, "dependencies", deps)

    @property
    def target(self) -> Optional[Factory]:
        """The callable that will build the instance, or ``None`` if unusable."""
        if self.factory is not None:
            return self.factory if callable(self.factory) else None
        if isinstance(self.implementation, type):
            return self.implementation
        return None

    def instantiate(self, args: Sequence[Any]) -> Any:
        """Build an instance from already-resolved dependency values.

        Raises:
            InvalidRegistrationError: If no usable factory or class is set.
            ConstructionError: If the factory or constructor raises.
        """
        target = self.target
        if target is None:
            if self.factory is not None:
                raise InvalidRegistrationError(self.key, "factory is not callable")
            if self.implementation is not None:
                raise InvalidRegistrationError(self.key, "implementation is not a class; register it as a factory")
            raise InvalidRegistrationError(self.key)
        try:
            return target(*args)
        except ContainerError:
            raise
        except Exception as creation_error:
            raise ConstructionError(self.key, creation_error) from creation_error


class ServiceRegistry:
    """Insertion-ordered mapping of service key to :class:`ServiceRegistration`.

    Entries are only added by :meth:`bind` and only removed by :meth:`clear`.
    Re-binding an existing key keeps its original position.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, ServiceRegistration] = {}

    def bind(self, registration: ServiceRegistration) -> None:
        """Store *registration*, replacing any previous entry for its key."""
        self._entries[registration.key] = registration

    def has(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str, origin: Optional[str] = None) -> ServiceRegistration:
        """Retrieve the entry for *key*.

        Args:
            key: The service key.
            origin: The service requesting this key (for error messages).

        Raises:
            ServiceNotRegisteredError: If nothing is bound to *key*.
        """
        try:
            return self._entries[key]
        except KeyError:
            raise ServiceNotRegisteredError(key, origin) from None

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def items(self) -> List[Tuple[str, ServiceRegistration]]:
        return list(self._entries.items())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
