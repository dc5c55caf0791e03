"""
Armature - Service Definitions

A Definition is the mutable blueprint the builder turns into a service:
what to construct, with which arguments, which setters to call afterwards,
and how the result is shared.

Usage:
    definition = (
        builder.register("user.service", "app.services.UserService")
        .set_arguments([Reference("user.repository"), "%app.name%"])
        .add_method_call("set_logger", [Reference("logger")])
        .add_tag("kernel.event_listener", event="user.created", priority=10)
    )
"""

from __future__ import annotations

import copy
import importlib
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from di.exceptions import ClassNotFoundError
from di.reference import Reference

MethodCall = Tuple[str, List[Any]]
Factory = Union[Callable[..., Any], Tuple[Any, str], None]


def import_string(path: str) -> type:
    """Import a class from a dotted path such as ``"package.module.Class"``."""
    module_path, _, attribute = path.rpartition(".")
    if not module_path:
        raise ClassNotFoundError(path)

    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        # The module part may itself be a class holding a nested class
        try:
            owner = import_string(module_path)
        except ClassNotFoundError:
            raise ClassNotFoundError(path, cause=e) from e
        module = owner

    try:
        return getattr(module, attribute)
    except AttributeError as e:
        raise ClassNotFoundError(path, cause=e) from e


class Definition:
    """Blueprint for one service."""

    def __init__(
        self,
        class_: Union[type, str, None] = None,
        arguments: Optional[List[Any]] = None,
    ) -> None:
        self.class_ = class_
        self.arguments: List[Any] = list(arguments or [])
        self.method_calls: List[MethodCall] = []
        self.tags: Dict[str, List[Dict[str, Any]]] = {}
        self.factory: Factory = None
        self.public = True
        self.shared = True
        self.autowired = False
        self.lazy = False
        self.synthetic = False
        self.abstract = False
        self.parent: Optional[str] = None
        # Names of attributes set explicitly, used when merging with a parent
        self.changes: Dict[str, bool] = {}

    def __repr__(self) -> str:
        return f"<Definition class={self.class_name!r} shared={self.shared} public={self.public}>"

    def _changed(self, name: str) -> None:
        self.changes[name] = True

    # Class

    @property
    def class_name(self) -> Optional[str]:
        if isinstance(self.class_, type):
            return f"{self.class_.__module__}.{self.class_.__qualname__}"
        return self.class_

    def set_class(self, class_: Union[type, str, None]) -> "Definition":
        self.class_ = class_
        self._changed("class")
        return self

    def resolve_class(self) -> Optional[type]:
        """Return the class object, importing it if given as a dotted path."""
        if self.class_ is None or isinstance(self.class_, type):
            return self.class_
        return import_string(self.class_)

    # Arguments

    def set_arguments(self, arguments: List[Any]) -> "Definition":
        self.arguments = list(arguments)
        self._changed("arguments")
        return self

    def add_argument(self, argument: Any) -> "Definition":
        self.arguments.append(argument)
        self._changed("arguments")
        return self

    def set_argument(self, index: int, argument: Any) -> "Definition":
        """Replace one positional argument."""
        if index < 0 or index >= len(self.arguments):
            raise IndexError(
                f"Argument index {index} is out of range for {len(self.arguments)} argument(s)."
            )
        self.arguments[index] = argument
        self._changed("arguments")
        return self

    def get_argument(self, index: int) -> Any:
        return self.arguments[index]

    # Method calls

    def add_method_call(self, method: str, arguments: Optional[List[Any]] = None) -> "Definition":
        if not method:
            raise ValueError("Method name cannot be empty.")
        self.method_calls.append((method, list(arguments or [])))
        return self

    def set_method_calls(self, calls: List[MethodCall]) -> "Definition":
        self.method_calls = []
        for method, arguments in calls:
            self.add_method_call(method, arguments)
        return self

    def has_method_call(self, method: str) -> bool:
        return any(name == method for name, _ in self.method_calls)

    def remove_method_call(self, method: str) -> "Definition":
        self.method_calls = [call for call in self.method_calls if call[0] != method]
        return self

    # Tags

    def add_tag(self, name: str, **attributes: Any) -> "Definition":
        """Tag the service. The same tag may be added several times."""
        self.tags.setdefault(name, []).append(attributes)
        return self

    def has_tag(self, name: str) -> bool:
        return name in self.tags

    def get_tag(self, name: str) -> List[Dict[str, Any]]:
        return list(self.tags.get(name, []))

    def clear_tag(self, name: str) -> "Definition":
        self.tags.pop(name, None)
        return self

    def clear_tags(self) -> "Definition":
        self.tags = {}
        return self

    # Factory

    def set_factory(self, factory: Factory) -> "Definition":
        """
        Create the service through a factory instead of the class.

        Accepts a callable, a ``(target, method)`` tuple where target is a
        Reference, a service id, or a class, or None to clear it.
        """
        if isinstance(factory, list):
            factory = tuple(factory)
        if isinstance(factory, tuple):
            if len(factory) != 2 or not isinstance(factory[1], str):
                raise ValueError("A factory tuple must be (target, method_name).")
        elif factory is not None and not callable(factory):
            raise ValueError(f"Factory must be callable or a (target, method) tuple, got {factory!r}.")
        self.factory = factory
        self._changed("factory")
        return self

    def factory_target_reference(self) -> Optional[Reference]:
        if isinstance(self.factory, tuple) and isinstance(self.factory[0], Reference):
            return self.factory[0]
        return None

    # Flags

    def set_public(self, public: bool) -> "Definition":
        self.public = public
        self._changed("public")
        return self

    def set_shared(self, shared: bool) -> "Definition":
        self.shared = shared
        self._changed("shared")
        return self

    def set_autowired(self, autowired: bool) -> "Definition":
        self.autowired = autowired
        self._changed("autowired")
        return self

    def set_lazy(self, lazy: bool) -> "Definition":
        self.lazy = lazy
        self._changed("lazy")
        return self

    def set_synthetic(self, synthetic: bool) -> "Definition":
        self.synthetic = synthetic
        return self

    def set_abstract(self, abstract: bool) -> "Definition":
        self.abstract = abstract
        return self

    def set_parent(self, parent: Optional[str]) -> "Definition":
        self.parent = parent
        return self

    def copy(self) -> "Definition":
        """Deep copy of the blueprint; argument values are copied shallowly."""
        clone = copy.copy(self)
        clone.arguments = list(self.arguments)
        clone.method_calls = [(name, list(args)) for name, args in self.method_calls]
        clone.tags = {name: [dict(attrs) for attrs in entries] for name, entries in self.tags.items()}
        clone.changes = dict(self.changes)
        return clone
