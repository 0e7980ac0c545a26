import logging
from typing import Any, Dict, Iterable, Optional

from .constants import LIFECYCLE_SINGLETON, LOGGER
from .container import ServiceContainer
from .exceptions import InvalidRegistrationError
from .graph import validate as validate_graph
from .registration import ServiceRegistration
from .service_factory import ServiceFactory
from .settings import Settings


def _normalize_override(key: str, v: Any) -> ServiceRegistration:
    if isinstance(v, ServiceRegistration):
        return v
    if isinstance(v, type):
        return ServiceRegistration(key=key, implementation=v, lifecycle=LIFECYCLE_SINGLETON)
    if callable(v):
        return ServiceRegistration(key=key, factory=(lambda f=v: f()), lifecycle=LIFECYCLE_SINGLETON)
    return ServiceRegistration(key=key, factory=(lambda inst=v: inst), lifecycle=LIFECYCLE_SINGLETON)


def init(
    registrations: Iterable[ServiceRegistration],
    *,
    settings: Optional[Settings] = None,
    overrides: Optional[Dict[str, Any]] = None,
    validate: bool = True,
    container: Optional[ServiceContainer] = None,
    logger: Optional[logging.Logger] = None,
) -> ServiceFactory:
    """Build a container from a bootstrap registration list.

    Args:
        registrations: Entries registered in order; later entries for the
            same key replace earlier ones.
        settings: Ambient settings published under ``SETTINGS_KEY``.
        overrides: Replacements applied after *registrations*, keyed by
            service key. A value may be a :class:`ServiceRegistration`, a
            zero-argument callable, a class, or a ready instance. Anything
            but a registration becomes a dependency-free singleton.
        validate: Check for unregistered dependencies and cycles before
            returning.
        container: Populate this container instead of a new one.
        logger: Logger for the bootstrap summary.

    Returns:
        A :class:`ServiceFactory` wrapping the populated container.

    Raises:
        InvalidRegistrationError: If an entry is not a ServiceRegistration.
        InvalidBindingError: If *validate* is true and the graph is broken.
    """
    log = logger or LOGGER
    target = container if container is not None else ServiceContainer()
    factory = ServiceFactory(target, settings)

    count = 0
    for reg in registrations:
        if not isinstance(reg, ServiceRegistration):
            raise InvalidRegistrationError(str(getattr(reg, "key", reg)), f"expected ServiceRegistration, got {type(reg).__name__}")
        target.register(reg.key, reg)
        count += 1

    if overrides:
        for k, v in overrides.items():
            target.register(k, _normalize_override(k, v))
        log.debug("Applied %d overrides: %s", len(overrides), sorted(overrides))

    if validate:
        validate_graph(target)

    log.info("Service container initialised with %d registrations", count)
    return factory
