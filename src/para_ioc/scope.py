"""Scope management for service lifecycles.

Provides :class:`InstanceCache`, :class:`ScopeManager` and
:class:`InstanceCaches` -- the machinery that ties resolved instances to a
lifecycle (singleton, scoped or transient).

Only one scope is active at a time. Beginning a scope while another is active
moves the pointer without touching the previous scope's cache, which becomes
current again if a scope with the same id is begun later.
"""

import logging
from typing import Any, Dict, Hashable, Iterator, List, Optional, Tuple

from .constants import LIFECYCLE_SCOPED, LIFECYCLE_SINGLETON
from .exceptions import ScopeError

_logger = logging.getLogger(__name__)


class InstanceCache:
    def __init__(self) -> None:
        self._instances: Dict[str, Any] = {}

    def has(self, key: str) -> bool:
        return key in self._instances

    def get(self, key: str) -> Any:
        return self._instances.get(key)

    def put(self, key: str, value: Any) -> None:
        self._instances[key] = value

    def items(self) -> List[Tuple[str, Any]]:
        return list(self._instances.items())

    def clear(self) -> None:
        self._instances.clear()

    def __len__(self) -> int:
        return len(self._instances)


class _NoCache(InstanceCache):
    def __init__(self) -> None:
        pass

    def has(self, key):
        return False

    def get(self, key):
        return None

    def put(self, key, value):
        return

    def items(self):
        return []

    def clear(self):
        return

    def __len__(self):
        return 0


class ScopeManager:
    """Holds the single active-scope pointer.

    There is no scope stack: :meth:`begin` replaces the pointer and
    :meth:`end` clears it.
    """

    def __init__(self) -> None:
        self._current: Optional[Hashable] = None

    @property
    def current(self) -> Optional[Hashable]:
        return self._current

    def begin(self, scope_id: Hashable) -> None:
        """Make *scope_id* the active scope.

        Raises:
            ScopeError: If *scope_id* is ``None`` or an empty string.
        """
        if scope_id is None or scope_id == "":
            raise ScopeError("Scope id must be a non-empty value")
        if self._current is not None and self._current != scope_id:
            _logger.debug("Scope '%s' replaces active scope '%s'", scope_id, self._current)
        self._current = scope_id

    def end(self) -> Optional[Hashable]:
        """Clear the active scope pointer and return the id that was active."""
        ended, self._current = self._current, None
        return ended


class InstanceCaches:
    """Instance storage for every lifecycle.

    Keeps the singleton cache, one cache per scope id, and a no-op cache used
    for transient services and for scoped services resolved with no scope
    open.
    """

    def __init__(self) -> None:
        self._singleton = InstanceCache()
        self._by_scope: Dict[Hashable, InstanceCache] = {}
        self._no_cache = _NoCache()

    def for_lifecycle(self, scopes: ScopeManager, lifecycle: str, *, create: bool = False) -> InstanceCache:
        """Return the cache that holds instances of the given lifecycle.

        Scoped caches are only created when *create* is true, so lookups never
        leave empty buckets behind.
        """
        if lifecycle == LIFECYCLE_SINGLETON:
            return self._singleton
        if lifecycle != LIFECYCLE_SCOPED:
            return self._no_cache

        sid = scopes.current
        if sid is None:
            return self._no_cache
        bucket = self._by_scope.get(sid)
        if bucket is not None:
            return bucket
        if not create:
            return self._no_cache
        bucket = InstanceCache()
        self._by_scope[sid] = bucket
        return bucket

    def drop_scope(self, scope_id: Hashable) -> int:
        """Forget every instance cached for *scope_id*; returns how many were dropped."""
        bucket = self._by_scope.pop(scope_id, None)
        return len(bucket) if bucket is not None else 0

    def scope_ids(self) -> Tuple[Hashable, ...]:
        return tuple(self._by_scope.keys())

    def singleton_count(self) -> int:
        return len(self._singleton)

    def all_items(self) -> Iterator[Tuple[str, Any]]:
        for item in self._singleton.items():
            yield item
        for bucket in list(self._by_scope.values()):
            for item in bucket.items():
                yield item

    def clear(self) -> None:
        self._singleton.clear()
        self._by_scope.clear()
