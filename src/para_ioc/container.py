# src/para_ioc/container.py
import asyncio
import contextvars
import dataclasses
import inspect
import threading
from contextlib import contextmanager
from typing import Any, Dict, Hashable, Iterable, List, Optional, Tuple

from .constants import LIFECYCLE_SINGLETON, LOGGER
from .exceptions import (
    AsyncResolutionError,
    CircularDependencyError,
    ConstructionError,
    ContainerError,
    InvalidRegistrationError,
)
from .registration import Factory, ServiceRegistration, ServiceRegistry
from .scope import InstanceCaches, ScopeManager

_MISSING = object()


class ServiceContainer:
    """Registry and resolver for named services.

    Services are registered under string keys with a lifecycle and an ordered
    list of dependency keys, then built on demand by :meth:`resolve`, which
    walks the dependency graph depth first and refuses to loop.

    Usage:
        container = ServiceContainer()
        container.register_implementation("Logger", Logger)
        container.register_implementation("Repo", Repo, dependencies=["Logger"])
        repo = container.resolve("Repo")
    """

    def __init__(
        self,
        registry: Optional[ServiceRegistry] = None,
        caches: Optional[InstanceCaches] = None,
        scopes: Optional[ScopeManager] = None,
    ) -> None:
        self._registry = registry if registry is not None else ServiceRegistry()
        self._caches = caches if caches is not None else InstanceCaches()
        self.scopes = scopes if scopes is not None else ScopeManager()
        self._lock = threading.RLock()
        self._chain_var: contextvars.ContextVar[Tuple[str, ...]] = contextvars.ContextVar(
            f"para_resolve_chain_{id(self):x}", default=()
        )
        self._async_guard: Optional[Tuple[asyncio.AbstractEventLoop, asyncio.Lock]] = None
        self._resolve_count = 0
        self._cache_hit_count = 0

    # -- registration -----------------------------------------------------

    def register(
        self,
        key: str,
        registration: Optional[ServiceRegistration] = None,
        *,
        implementation: Optional[type] = None,
        factory: Optional[Factory] = None,
        lifecycle: str = LIFECYCLE_SINGLETON,
        dependencies: Iterable[str] = (),
    ) -> ServiceRegistration:
        """Register a service under *key*, replacing any previous entry.

        Either pass a prepared :class:`ServiceRegistration` or describe the
        entry with keyword arguments. Replacing an entry does not evict
        instances already cached for *key*; only :meth:`clear` does.

        Returns:
            The stored registration.

        Raises:
            InvalidRegistrationError: If the entry is malformed or both forms
                are used at once.
        """
        if registration is None:
            registration = ServiceRegistration(
                key=key,
                implementation=implementation,
                factory=factory,
                lifecycle=lifecycle,
                dependencies=dependencies,
            )
        else:
            if implementation is not None or factory is not None or dependencies:
                raise InvalidRegistrationError(key, "pass either a registration or keyword options, not both")
            if registration.key != key:
                registration = dataclasses.replace(registration, key=key)

        with self._lock:
            if self._registry.has(key):
                LOGGER.debug("Re-registering service '%s'; cached instances are kept", key)
            self._registry.bind(registration)
        LOGGER.debug(
            "Registered '%s' [lifecycle=%s, dependencies=%s]",
            key,
            registration.lifecycle,
            list(registration.dependencies),
        )
        return registration

    def register_implementation(
        self,
        key: str,
        implementation: type,
        lifecycle: str = LIFECYCLE_SINGLETON,
        dependencies: Iterable[str] = (),
    ) -> ServiceRegistration:
        return self.register(key, implementation=implementation, lifecycle=lifecycle, dependencies=dependencies)

    def register_factory(
        self,
        key: str,
        factory: Factory,
        lifecycle: str = LIFECYCLE_SINGLETON,
        dependencies: Iterable[str] = (),
    ) -> ServiceRegistration:
        return self.register(key, factory=factory, lifecycle=lifecycle, dependencies=dependencies)

    def register_instance(self, key: str, value: Any) -> ServiceRegistration:
        """Register an already-built object as a singleton."""
        return self.register(key, factory=(lambda v=value: v), lifecycle=LIFECYCLE_SINGLETON)

    def get_registration(self, key: str) -> ServiceRegistration:
        with self._lock:
            return self._registry.get(key)

    def has(self, key: str) -> bool:
        with self._lock:
            return self._registry.has(key)

    def keys(self) -> List[str]:
        with self._lock:
            return self._registry.keys()

    def registrations(self) -> List[Tuple[str, ServiceRegistration]]:
        with self._lock:
            return self._registry.items()

    def clear(self) -> None:
        """Drop every registration, every cached instance and the active scope.

        Instances already handed out are not touched.
        """
        with self._lock:
            dropped = len(self._registry)
            self._registry.clear()
            self._caches.clear()
            self.scopes.end()
            self._chain_var.set(())
        LOGGER.info("Service container cleared (%d registrations dropped)", dropped)

    # -- resolution -------------------------------------------------------

    def resolve(self, key: str) -> Any:
        """Return an instance for *key*, building it and its dependencies as needed.

        Raises:
            ServiceNotRegisteredError: If *key* or one of its dependencies is
                not registered.
            CircularDependencyError: If the dependency graph loops back.
            InvalidRegistrationError: If an entry has nothing to build with.
            ConstructionError: If a factory or constructor raises.
            AsyncResolutionError: If a factory returns an awaitable.
        """
        with self._lock:
            try:
                return self._resolve_internal(key, origin=None)
            except ContainerError as e:
                LOGGER.debug("Resolution of '%s' failed: %s", key, e)
                raise

    def try_resolve(self, key: str, default: Any = None) -> Any:
        """Resolve *key* if it is registered; return *default* otherwise.

        Failures other than *key* itself being unregistered still propagate.
        """
        with self._lock:
            if not self._registry.has(key):
                return default
            return self.resolve(key)

    async def aresolve(self, key: str) -> Any:
        """Asynchronous :meth:`resolve` that awaits awaitable factory results.

        Dependencies are resolved one after another in declared order.
        Top-level calls on one event loop run one at a time, so concurrent
        tasks asking for the same uncached singleton or scoped key share a
        single construction; calls made from inside a factory that is being
        resolved skip the wait.
        """
        try:
            if self._chain_var.get():
                return await self._aresolve_internal(key, origin=None)
            async with self._loop_guard():
                return await self._aresolve_internal(key, origin=None)
        except ContainerError as e:
            LOGGER.debug("Resolution of '%s' failed: %s", key, e)
            raise

    def _loop_guard(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._async_guard is None or self._async_guard[0] is not loop:
            self._async_guard = (loop, asyncio.Lock())
        return self._async_guard[1]

    def _lookup(self, key: str, origin: Optional[str]) -> Tuple[ServiceRegistration, Any]:
        registration = self._registry.get(key, origin)
        cache = self._caches.for_lifecycle(self.scopes, registration.lifecycle)
        if cache.has(key):
            self._cache_hit_count += 1
            return registration, cache.get(key)
        return registration, _MISSING

    def _enter(self, key: str) -> contextvars.Token:
        chain = self._chain_var.get()
        if key in chain:
            raise CircularDependencyError(key, chain)
        return self._chain_var.set(chain + (key,))

    def _store(self, registration: ServiceRegistration, instance: Any) -> None:
        cache = self._caches.for_lifecycle(self.scopes, registration.lifecycle, create=True)
        cache.put(registration.key, instance)
        self._resolve_count += 1
        LOGGER.debug("Constructed '%s' [lifecycle=%s]", registration.key, registration.lifecycle)

    def _resolve_internal(self, key: str, origin: Optional[str]) -> Any:
        registration, cached = self._lookup(key, origin)
        if cached is not _MISSING:
            return cached

        token = self._enter(key)
        try:
            args = [self._resolve_internal(dep, origin=key) for dep in registration.dependencies]
            instance = registration.instantiate(args)
            if inspect.isawaitable(instance):
                if inspect.iscoroutine(instance):
                    instance.close()
                raise AsyncResolutionError(key)
            self._store(registration, instance)
            return instance
        finally:
            self._chain_var.reset(token)

    async def _aresolve_internal(self, key: str, origin: Optional[str]) -> Any:
        registration, cached = self._lookup(key, origin)
        if cached is not _MISSING:
            return cached

        token = self._enter(key)
        try:
            args = []
            for dep in registration.dependencies:
                args.append(await self._aresolve_internal(dep, origin=key))
            instance = registration.instantiate(args)
            if inspect.isawaitable(instance):
                try:
                    instance = await instance
                except ContainerError:
                    raise
                except Exception as creation_error:
                    raise ConstructionError(key, creation_error) from creation_error
            self._store(registration, instance)
            return instance
        finally:
            self._chain_var.reset(token)

    # -- scopes -----------------------------------------------------------

    @property
    def current_scope(self) -> Optional[Hashable]:
        return self.scopes.current

    def begin_scope(self, scope_id: Hashable) -> None:
        """Make *scope_id* the active scope for scoped services."""
        with self._lock:
            self.scopes.begin(scope_id)
        LOGGER.debug("Scope '%s' begun", scope_id)

    def end_scope(self) -> None:
        """Discard the active scope's instances and clear the active scope.

        No teardown is invoked on the dropped instances.
        """
        with self._lock:
            ended = self.scopes.end()
            if ended is None:
                return
            dropped = self._caches.drop_scope(ended)
        LOGGER.debug("Scope '%s' ended (%d instances dropped)", ended, dropped)

    @contextmanager
    def scope(self, scope_id: Hashable):
        self.begin_scope(scope_id)
        try:
            yield self
        finally:
            self.end_scope()

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            resolves = self._resolve_count
            hits = self._cache_hit_count
            total = resolves + hits
            return {
                "registered_services": len(self._registry),
                "singleton_instances": self._caches.singleton_count(),
                "cached_instances": sum(1 for _ in self._caches.all_items()),
                "open_scopes": self._caches.scope_ids(),
                "current_scope": self.scopes.current,
                "total_resolves": resolves,
                "cache_hits": hits,
                "cache_hit_rate": (hits / total) if total > 0 else 0.0,
            }
