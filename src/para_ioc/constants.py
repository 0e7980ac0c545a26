"""Constants used throughout the para-ioc container.

This module defines the framework logger, the lifecycle identifiers accepted
by :class:`~para_ioc.registration.ServiceRegistration`, and the reserved key
under which :class:`~para_ioc.service_factory.ServiceFactory` publishes the
ambient settings.
"""

import logging

LOGGER_NAME: str = "para_ioc"
"""Default logger name for the para-ioc package."""

LOGGER: logging.Logger = logging.getLogger(LOGGER_NAME)
"""Package logger used for container diagnostics."""

LIFECYCLE_SINGLETON: str = "singleton"
"""One instance per container lifetime."""

LIFECYCLE_SCOPED: str = "scoped"
"""One instance per open scope; transient when no scope is open."""

LIFECYCLE_TRANSIENT: str = "transient"
"""A new instance on every resolution."""

LIFECYCLES: tuple = (LIFECYCLE_SINGLETON, LIFECYCLE_SCOPED, LIFECYCLE_TRANSIENT)

SETTINGS_KEY: str = "Settings"
"""Service key bound to the current :class:`~para_ioc.settings.Settings`."""
