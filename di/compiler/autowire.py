"""
Armature - Autowiring Pass

Registers type-name aliases for public services, then fills in the
constructor arguments of every autowired definition that has none.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List

from di.compiler.base import CompilerPass
from di.exceptions import ClassNotFoundError
from di.reference import type_name
from observability.logging import get_logger

if TYPE_CHECKING:
    from di.builder import ContainerBuilder

logger = get_logger(__name__)


class AutowirePass(CompilerPass):
    """
    Two steps, in order:

    1. For every public, non-abstract definition with an importable class,
       alias the type name of the class and of each of its bases to the
       service, unless that name is already a service or an alias. A base
       implemented by several services gets no alias, so autowiring it
       later reports the ambiguity.
    2. Autowire every autowired, non-abstract definition without a factory
       whose argument list is empty.
    """

    def process(self, container: "ContainerBuilder") -> None:
        self._register_type_aliases(container)

        for service_id, definition in container.get_definitions().items():
            if not definition.autowired or definition.abstract or definition.factory is not None:
                continue
            if definition.arguments:
                continue

            try:
                cls = definition.resolve_class()
            except ClassNotFoundError:
                logger.warning(
                    "Skipping autowiring, class not importable",
                    service_id=service_id,
                    class_name=definition.class_name,
                )
                continue
            if cls is None:
                continue

            definition.set_arguments(container.autowire(cls))
            logger.debug(
                "Autowired service",
                service_id=service_id,
                argument_count=len(definition.arguments),
            )

    def _register_type_aliases(self, container: "ContainerBuilder") -> None:
        implementers: Dict[str, List[str]] = {}
        exact: Dict[str, List[str]] = {}

        for service_id, definition in container.get_definitions().items():
            if definition.abstract or not definition.public or definition.synthetic:
                continue
            try:
                cls = definition.resolve_class()
            except ClassNotFoundError:
                continue
            if not isinstance(cls, type):
                continue

            exact.setdefault(type_name(cls), []).append(service_id)
            for klass in cls.__mro__:
                if klass is object or klass.__module__ == "builtins":
                    continue
                implementers.setdefault(type_name(klass), []).append(service_id)

        for name, service_ids in implementers.items():
            if container.has_definition(name) or container.has_alias(name):
                continue
            candidates = exact.get(name, []) if len(service_ids) > 1 else service_ids
            if len(candidates) != 1:
                logger.debug("No type alias, several services match", type=name, services=service_ids)
                continue
            container.set_alias(name, candidates[0])
