"""
Armature - Runtime Container

Holds instantiated services and parameters, creates services on demand
through the create_service() hook and caches the shared ones.

Features:
- Lazy, cached service instantiation
- Circular construction detection with the full dependency path
- %parameter% placeholder substitution, resolved at read time
- Thread-safe first construction; cached reads take no lock

Usage:
    container = Container({"app.name": "demo"})
    container.set("clock", SystemClock())

    clock = container.get("clock")
    name = container.get_parameter("app.name")
"""

from __future__ import annotations

import re
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from core.errors import ErrorContext
from di.exceptions import (
    CircularDependencyError,
    ContainerError,
    InvalidDefinitionError,
    ParameterCircularReferenceError,
    ParameterNotFoundError,
    ParameterResolutionError,
    ServiceNotFoundError,
)
from di.reference import InvalidBehavior, Reference, ServiceId, ServiceMethod, normalize_id
from observability.logging import get_logger
from observability.metrics import get_container_metrics

logger = get_logger(__name__)

SERVICE_CONTAINER_ID = "service_container"

_PLACEHOLDER = re.compile(r"%%|%([^%\s]+)%")
_WHOLE_PLACEHOLDER = re.compile(r"%([^%\s]+)%")
_MISSING = object()


class Container:
    """
    Runtime service container.

    The base class knows no definitions: every service must be provided with
    set(). Subclasses override create_service() to build services.
    """

    def __init__(self, parameters: Optional[Dict[str, Any]] = None) -> None:
        self._services: Dict[str, Any] = {}
        self._parameters: Dict[str, Any] = dict(parameters or {})
        # Ids under construction, in order; only touched while holding _lock
        self._loading: Dict[str, bool] = {}
        self._lock = threading.RLock()
        self._services[SERVICE_CONTAINER_ID] = self

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def get(
        self,
        service_id: ServiceId,
        invalid_behavior: InvalidBehavior = InvalidBehavior.EXCEPTION,
    ) -> Any:
        """
        Return the service registered under ``service_id``.

        Raises:
            ServiceNotFoundError: nothing is registered and the behavior is EXCEPTION
            CircularDependencyError: the service depends on itself
        """
        service_id = self._resolve_id(normalize_id(service_id))

        service = self._services.get(service_id, _MISSING)
        if service is not _MISSING:
            return service

        with self._lock:
            service = self._services.get(service_id, _MISSING)
            if service is not _MISSING:
                return service

            if invalid_behavior is not InvalidBehavior.EXCEPTION and not self.has(service_id):
                return None

            try:
                with self._loading_scope(service_id):
                    service = self.create_service(service_id)
                    if self._is_shared(service_id):
                        self._services[service_id] = service
            except ContainerError as e:
                if e.context is None:
                    e.context = ErrorContext.from_current_span(
                        operation="get",
                        component=type(self).__name__,
                        service_id=service_id,
                    )
                    get_container_metrics().record_resolution_error(service_id, e.error_code)
                raise

        return service

    def has(self, service_id: ServiceId) -> bool:
        """Whether get() can return something for this id."""
        return normalize_id(service_id) in self._services

    def set(self, service_id: ServiceId, service: Any) -> None:
        """Store an instance directly, e.g. to supply a synthetic service."""
        service_id = self._resolve_id(normalize_id(service_id))
        with self._lock:
            self._services[service_id] = service
        logger.debug("Service set", service_id=service_id)

    def initialized(self, service_id: ServiceId) -> bool:
        """Whether an instance is already cached for this id."""
        return self._resolve_id(normalize_id(service_id)) in self._services

    def get_service_ids(self) -> List[str]:
        return list(self._services)

    def create_service(self, service_id: str) -> Any:
        """
        Build the service for ``service_id``.

        Called by get() with the id already marked as loading. The base
        container has no definitions, so it can never build anything.
        """
        raise ServiceNotFoundError(service_id)

    def _resolve_id(self, service_id: str) -> str:
        return service_id

    def _is_shared(self, service_id: str) -> bool:
        return True

    @contextmanager
    def _loading_scope(self, service_id: str) -> Iterator[None]:
        """Mark ``service_id`` as under construction for the duration of the block."""
        with self._lock:
            if service_id in self._loading:
                raise CircularDependencyError([*self._loading, service_id])
            self._loading[service_id] = True
            try:
                yield
            finally:
                self._loading.pop(service_id, None)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def get_parameter(self, name: str) -> Any:
        """Return a parameter with every placeholder in it resolved."""
        return self._resolve_parameter(name, ())

    def has_parameter(self, name: str) -> bool:
        return name in self._parameters

    def set_parameter(self, name: str, value: Any) -> None:
        """Store a raw value; placeholders are resolved when it is read."""
        self._parameters[name] = value

    def get_parameter_names(self) -> List[str]:
        return list(self._parameters)

    @property
    def parameters(self) -> Dict[str, Any]:
        """Raw (unresolved) parameter values."""
        return dict(self._parameters)

    def resolve_value(self, value: Any) -> Any:
        """Resolve %placeholders% in a string, or element-wise in a list, tuple or dict."""
        return self._resolve_placeholders(value, ())

    def _resolve_parameter(self, name: str, chain: Tuple[str, ...]) -> Any:
        if name in chain:
            raise ParameterCircularReferenceError([*chain, name])
        if name not in self._parameters:
            raise ParameterNotFoundError(name, source=chain[-1] if chain else None)
        return self._resolve_placeholders(self._parameters[name], (*chain, name))

    def _resolve_placeholders(self, value: Any, chain: Tuple[str, ...]) -> Any:
        if isinstance(value, str):
            return self._resolve_string(value, chain)
        if isinstance(value, list):
            return [self._resolve_placeholders(item, chain) for item in value]
        if isinstance(value, tuple):
            return tuple(self._resolve_placeholders(item, chain) for item in value)
        if isinstance(value, dict):
            return {
                self._resolve_placeholders(key, chain): self._resolve_placeholders(item, chain)
                for key, item in value.items()
            }
        return value

    def _resolve_string(self, value: str, chain: Tuple[str, ...]) -> Any:
        # A lone placeholder keeps the parameter's own type
        whole = _WHOLE_PLACEHOLDER.fullmatch(value)
        if whole:
            return self._resolve_parameter(whole.group(1), chain)

        def substitute(match: "re.Match[str]") -> str:
            if match.group(0) == "%%":
                return "%"
            name = match.group(1)
            resolved = self._resolve_parameter(name, chain)
            if not isinstance(resolved, (str, int, float)):
                raise ParameterResolutionError(
                    f'A string value must be composed of strings and/or numbers, '
                    f'but parameter "{name}" of type {type(resolved).__name__} '
                    f'is embedded in "{value}".'
                )
            return str(resolved)

        return _PLACEHOLDER.sub(substitute, value)

    # ------------------------------------------------------------------
    # Arguments
    # ------------------------------------------------------------------

    def resolve_arguments(self, arguments: Sequence[Any]) -> List[Any]:
        return [self.resolve_argument(argument) for argument in arguments]

    def resolve_argument(self, argument: Any) -> Any:
        """
        Turn a definition argument into a runtime value.

        References become services, "@id" strings are service shorthands
        ("@@" escapes a literal "@"), other strings have their placeholders
        resolved, and containers are resolved element-wise.
        """
        if isinstance(argument, Reference):
            return self.get(argument.id, argument.invalid_behavior)
        if isinstance(argument, ServiceMethod):
            service = self.get(argument.id)
            method = getattr(service, argument.method, None)
            if not callable(method):
                raise InvalidDefinitionError(
                    f'Service "{argument.id}" has no callable "{argument.method}".'
                )
            return method
        if isinstance(argument, str):
            if argument.startswith("@@"):
                return argument[1:]
            if argument.startswith("@") and len(argument) > 1:
                return self.get(argument[1:])
            return self.resolve_value(argument)
        if isinstance(argument, list):
            return [self.resolve_argument(item) for item in argument]
        if isinstance(argument, tuple):
            return tuple(self.resolve_argument(item) for item in argument)
        if isinstance(argument, dict):
            return {
                self._resolve_key(key): self.resolve_argument(item)
                for key, item in argument.items()
            }
        return argument

    def _resolve_key(self, key: Any) -> Any:
        resolved = self.resolve_value(key)
        try:
            hash(resolved)
        except TypeError:
            raise ParameterResolutionError(
                f'Mapping key "{key}" resolves to an unhashable {type(resolved).__name__}.'
            ) from None
        return resolved
