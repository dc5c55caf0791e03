"""
Armature - Reference Validation Pass

Fails compilation when a definition points at a service that does not
exist, instead of waiting for the first get() to discover it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from di.compiler.base import CompilerPass
from di.exceptions import InvalidReferenceError
from di.reference import InvalidBehavior, Reference, ServiceMethod

if TYPE_CHECKING:
    from di.builder import ContainerBuilder


class ResolveReferencesPass(CompilerPass):
    """Check every raise-on-missing reference in arguments, method calls and factories."""

    def process(self, container: "ContainerBuilder") -> None:
        for service_id, definition in container.get_definitions().items():
            if definition.abstract:
                continue

            self._validate(container, service_id, definition.arguments)

            for _, arguments in definition.method_calls:
                self._validate(container, service_id, arguments)

            factory_reference = definition.factory_target_reference()
            if factory_reference is not None:
                self._validate(container, service_id, factory_reference)

    def _validate(self, container: "ContainerBuilder", service_id: str, value: Any) -> None:
        if isinstance(value, Reference):
            if value.invalid_behavior is InvalidBehavior.EXCEPTION and not container.has(value.id):
                raise InvalidReferenceError(service_id, value.id)
        elif isinstance(value, ServiceMethod):
            if not container.has(value.id):
                raise InvalidReferenceError(service_id, value.id)
        elif isinstance(value, str):
            if value.startswith("@") and not value.startswith("@@") and len(value) > 1:
                if not container.has(value[1:]):
                    raise InvalidReferenceError(service_id, value[1:])
        elif isinstance(value, (list, tuple)):
            for item in value:
                self._validate(container, service_id, item)
        elif isinstance(value, dict):
            for item in value.values():
                self._validate(container, service_id, item)
