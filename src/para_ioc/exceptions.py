"""Exception hierarchy for para-ioc.

All container exceptions inherit from :class:`ContainerError`, so bootstrap
code can treat any wiring failure with a single ``except ContainerError``.
None of them is retried by the container: a missing or cyclic registration is
a programming error, not a runtime condition.
"""

from typing import Iterable, Optional, Sequence, Tuple


class ContainerError(Exception):
    """Base exception for all para-ioc errors."""

    pass


class ServiceNotRegisteredError(ContainerError):
    """Raised when ``resolve`` is asked for a key with no registration.

    Attributes:
        key: The service key that was not found.
        origin: The service whose dependency list requested the key, if any.
    """

    def __init__(self, key: str, origin: Optional[str] = None):
        requested_by = origin if origin else "caller"
        super().__init__(f"Service '{key}' is not registered (required by: '{requested_by}')")
        self.key = key
        self.origin = origin


def cycle_path(key: str, chain: Sequence[str]) -> Tuple[str, ...]:
    """Cut *chain* down to the loop that *key* closes, ending with *key*."""
    chain = tuple(chain)
    start = chain.index(key) if key in chain else 0
    return chain[start:] + (key,)


class CircularDependencyError(ContainerError):
    """Raised when resolution loops back to a key already under construction.

    Attributes:
        key: The key that closes the cycle.
        chain: Keys under construction when the cycle was found, outermost first.
        path: The cycle itself, starting and ending with ``key``.
    """

    def __init__(self, key: str, chain: Sequence[str]):
        self.key = key
        self.chain = tuple(chain)
        self.path = cycle_path(key, chain)
        super().__init__(f"Circular dependency detected: {' -> '.join(self.path)}")


class InvalidRegistrationError(ContainerError):
    """Raised when a registration cannot be used to build an instance.

    Attributes:
        key: The offending service key.
        reason: Human-readable description of what is wrong.
    """

    def __init__(self, key: str, reason: str = "neither a factory nor a constructible implementation is set"):
        super().__init__(f"Invalid service registration for '{key}': {reason}")
        self.key = key
        self.reason = reason


class ConstructionError(ContainerError):
    """Raised when a factory or constructor fails while building a service.

    Attributes:
        key: The service key whose construction failed.
        cause: The original exception.
    """

    def __init__(self, key: str, cause: Exception):
        super().__init__(f"Failed to construct service '{key}'; cause: {cause.__class__.__name__}: {cause}")
        self.key = key
        self.cause = cause


class AsyncResolutionError(ContainerError):
    """Raised when ``resolve()`` receives an awaitable from a factory.

    The service needs asynchronous construction; use
    ``await container.aresolve(key)`` instead.
    """

    def __init__(self, key: str):
        super().__init__(f"Synchronous resolve() received an awaitable for '{key}'. Use aresolve() instead.")
        self.key = key


class ConfigurationError(ContainerError):
    """Raised for settings problems (unreadable sources, bad interpolation)."""

    def __init__(self, msg: str):
        super().__init__(msg)


class InvalidBindingError(ContainerError):
    """Raised when static validation finds wiring problems.

    Attributes:
        errors: List of human-readable error descriptions.
    """

    def __init__(self, errors: Iterable[str]):
        errors = list(errors)
        super().__init__("Invalid bindings:\n" + "\n".join(f"- {e}" for e in errors))
        self.errors = errors


class ScopeError(ContainerError):
    """Raised for scope misuse (for example an empty scope id)."""

    def __init__(self, msg: str):
        super().__init__(msg)
