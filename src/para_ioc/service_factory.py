"""Convenience facade over :class:`~para_ioc.container.ServiceContainer`.

:class:`ServiceFactory` forwards resolution to its container, builds services
from hand-picked dependencies for tests, and carries the ambient
:class:`~para_ioc.settings.Settings`. It is published to the container under
:data:`~para_ioc.constants.SETTINGS_KEY` as a transient service, so every
resolution of a service that depends on it sees the latest value.
"""

from typing import Any, Mapping, Optional, Sequence

from .constants import LIFECYCLE_TRANSIENT, LOGGER, SETTINGS_KEY
from .container import ServiceContainer
from .settings import Settings


class ServiceFactory:
    def __init__(self, container: ServiceContainer, settings: Optional[Settings] = None) -> None:
        self._container = container
        self._settings = settings if settings is not None else Settings()
        self.publish_settings()

    def publish_settings(self) -> None:
        """Bind SETTINGS_KEY in the container; call again after ``container.clear()``."""
        self._container.register_factory(SETTINGS_KEY, self._current_settings, lifecycle=LIFECYCLE_TRANSIENT)

    def _current_settings(self) -> Settings:
        return self._settings

    @property
    def container(self) -> ServiceContainer:
        return self._container

    @property
    def settings(self) -> Settings:
        return self._settings

    def create_service(self, key: str) -> Any:
        """Resolve *key* through the container."""
        return self._container.resolve(key)

    async def acreate_service(self, key: str) -> Any:
        return await self._container.aresolve(key)

    def create_with_dependencies(self, key: str, dependencies: Sequence[Any]) -> Any:
        """Build a fresh instance of *key* from the given dependency values.

        The registration's factory (or class) is called directly with
        *dependencies* as positional arguments. The dependency graph is not
        walked and nothing is cached.

        Raises:
            ServiceNotRegisteredError: If *key* is not registered.
            InvalidRegistrationError: If the entry has nothing to build with.
            ConstructionError: If the factory or constructor raises.
        """
        registration = self._container.get_registration(key)
        LOGGER.debug("Building '%s' with %d supplied dependencies", key, len(dependencies))
        return registration.instantiate(list(dependencies))

    def update_settings(self, changes: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Settings:
        """Deep-merge *changes* and keyword values into the current settings.

        Returns:
            The new :class:`Settings`, which is also what later resolutions of
            ``SETTINGS_KEY`` return. Singletons built earlier keep the
            settings they were given.
        """
        merged = dict(changes or {})
        merged.update(kwargs)
        self._settings = self._settings.merged(merged)
        LOGGER.debug("Settings updated: %s", sorted(merged))
        return self._settings
