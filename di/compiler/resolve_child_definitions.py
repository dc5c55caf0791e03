"""
Armature - Child Definition Resolution

Definitions may name a parent (usually an abstract template). This pass
replaces each of them with the merge of its parent chain so that later
passes and the builder only ever see complete definitions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from di.compiler.base import CompilerPass
from di.definition import Definition
from di.exceptions import InvalidDefinitionError, ServiceNotFoundError
from observability.logging import get_logger

if TYPE_CHECKING:
    from di.builder import ContainerBuilder

logger = get_logger(__name__)

# Attributes a child inherits unless it set them itself
_INHERITED = ("factory", "public", "shared", "lazy", "autowired")


def resolve_definition(
    container: "ContainerBuilder",
    service_id: str,
    definition: Definition,
    seen: Optional[List[str]] = None,
) -> Definition:
    """
    Return ``definition`` merged with its parent chain.

    Arguments start from the parent's and the child's override them by
    position; method calls are the parent's followed by the child's; tags,
    abstract and synthetic always come from the child.
    """
    if definition.parent is None:
        return definition

    seen = seen or [service_id]
    parent_id = definition.parent
    if parent_id in seen:
        raise InvalidDefinitionError(
            f"Circular parent reference detected: {' -> '.join([*seen, parent_id])}"
        )
    if not container.has_definition(parent_id):
        raise ServiceNotFoundError(parent_id, source_id=service_id)

    parent = resolve_definition(
        container, parent_id, container.get_definition(parent_id), [*seen, parent_id]
    )

    merged = parent.copy()
    merged.parent = None
    merged.abstract = definition.abstract
    merged.synthetic = definition.synthetic
    merged.tags = {name: [dict(attrs) for attrs in entries] for name, entries in definition.tags.items()}

    if "class" in definition.changes or parent.class_ is None:
        merged.class_ = definition.class_
    for name in _INHERITED:
        if name in definition.changes:
            setattr(merged, name, getattr(definition, name))

    for index, argument in enumerate(definition.arguments):
        if index < len(merged.arguments):
            merged.arguments[index] = argument
        else:
            merged.arguments.append(argument)

    merged.method_calls.extend((name, list(args)) for name, args in definition.method_calls)
    merged.changes = {**parent.changes, **definition.changes}

    return merged


class ResolveChildDefinitionsPass(CompilerPass):
    """Replace every child definition with its merged form."""

    def process(self, container: "ContainerBuilder") -> None:
        for service_id, definition in container.get_definitions().items():
            if definition.parent is None:
                continue
            container.set_definition(service_id, resolve_definition(container, service_id, definition))
            logger.debug("Resolved child definition", service_id=service_id, parent=definition.parent)
