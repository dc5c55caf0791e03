"""
Armature - Lazy Service Proxy

Stands in for a lazy service until it is first used. The proxy keeps its
own state in slots and forwards everything else to the real instance, so
the service's attribute names are never shadowed.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

_UNSET = object()


class LazyServiceProxy:
    """Proxy that builds its target on first use."""

    __slots__ = ("_initializer", "_instance", "_lock", "_label")

    def __init__(
        self,
        initializer: Callable[[], Any],
        label: str = "",
        lock: Optional[threading.RLock] = None,
    ) -> None:
        object.__setattr__(self, "_initializer", initializer)
        object.__setattr__(self, "_instance", _UNSET)
        # Usually the owning container's lock
        object.__setattr__(self, "_lock", lock if lock is not None else threading.RLock())
        object.__setattr__(self, "_label", label)

    def _resolve(self) -> Any:
        instance = object.__getattribute__(self, "_instance")
        if instance is not _UNSET:
            return instance
        with object.__getattribute__(self, "_lock"):
            instance = object.__getattribute__(self, "_instance")
            if instance is _UNSET:
                instance = object.__getattribute__(self, "_initializer")()
                object.__setattr__(self, "_instance", instance)
        return instance

    def __getattr__(self, name: str) -> Any:
        return getattr(LazyServiceProxy._resolve(self), name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(LazyServiceProxy._resolve(self), name, value)

    def __delattr__(self, name: str) -> None:
        delattr(LazyServiceProxy._resolve(self), name)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return LazyServiceProxy._resolve(self)(*args, **kwargs)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, LazyServiceProxy):
            other = LazyServiceProxy._resolve(other)
        return LazyServiceProxy._resolve(self) == other

    def __ne__(self, other: Any) -> bool:
        return not self == other

    def __hash__(self) -> int:
        return hash(LazyServiceProxy._resolve(self))

    def __bool__(self) -> bool:
        return bool(LazyServiceProxy._resolve(self))

    def __str__(self) -> str:
        return str(LazyServiceProxy._resolve(self))

    def __repr__(self) -> str:
        if object.__getattribute__(self, "_instance") is _UNSET:
            return f"<LazyServiceProxy {object.__getattribute__(self, '_label')} (uninitialized)>"
        return repr(object.__getattribute__(self, "_instance"))

    def __len__(self) -> int:
        return len(LazyServiceProxy._resolve(self))

    def __iter__(self):
        return iter(LazyServiceProxy._resolve(self))

    def __contains__(self, item: Any) -> bool:
        return item in LazyServiceProxy._resolve(self)

    def __getitem__(self, key: Any) -> Any:
        return LazyServiceProxy._resolve(self)[key]

    def __setitem__(self, key: Any, value: Any) -> None:
        LazyServiceProxy._resolve(self)[key] = value


def is_initialized(proxy: LazyServiceProxy) -> bool:
    """Whether the proxy has already built its target."""
    return object.__getattribute__(proxy, "_instance") is not _UNSET


def get_wrapped_instance(proxy: Any) -> Any:
    """Return the real service behind a proxy (building it if needed)."""
    if isinstance(proxy, LazyServiceProxy):
        return LazyServiceProxy._resolve(proxy)
    return proxy
