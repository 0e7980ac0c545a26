# para_ioc/__init__.py
try:
    from ._version import __version__
except Exception:
    __version__ = "0.0.0"

from .constants import (
    LIFECYCLE_SCOPED,
    LIFECYCLE_SINGLETON,
    LIFECYCLE_TRANSIENT,
    SETTINGS_KEY,
)
from .exceptions import (
    AsyncResolutionError,
    CircularDependencyError,
    ConfigurationError,
    ConstructionError,
    ContainerError,
    InvalidBindingError,
    InvalidRegistrationError,
    ScopeError,
    ServiceNotRegisteredError,
)
from .registration import ServiceRegistration, ServiceRegistry
from .scope import InstanceCaches, ScopeManager
from .container import ServiceContainer
from .service_factory import ServiceFactory
from .settings import EnvSource, Settings, load_settings, read_settings_file, save_settings
from .graph import build_dependency_graph, export_graph, find_cycle, validate
from .api import init

__all__ = [
    "__version__",
    "LIFECYCLE_SINGLETON",
    "LIFECYCLE_SCOPED",
    "LIFECYCLE_TRANSIENT",
    "SETTINGS_KEY",
    "ContainerError",
    "ServiceNotRegisteredError",
    "CircularDependencyError",
    "InvalidRegistrationError",
    "ConstructionError",
    "AsyncResolutionError",
    "ConfigurationError",
    "InvalidBindingError",
    "ScopeError",
    "ServiceRegistration",
    "ServiceRegistry",
    "InstanceCaches",
    "ScopeManager",
    "ServiceContainer",
    "ServiceFactory",
    "Settings",
    "EnvSource",
    "load_settings",
    "read_settings_file",
    "save_settings",
    "build_dependency_graph",
    "find_cycle",
    "validate",
    "export_graph",
    "init",
]
